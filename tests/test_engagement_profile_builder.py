import pytest

from anthology.profiling.engagement_profile_builder import EngagementProfileBuilder
from conftest import make_event


@pytest.fixture
def builder():
    return EngagementProfileBuilder()


def test_quality_score_of_fully_engaged_session_without_scroll_data(builder):
    event = make_event(time_spent=600000, scroll_depth=1.0, scroll_speed=0.0,
                       completion_rate=1.0, time_of_day=14, day_of_week=2)

    # 0.3 + 0.2 + 0.3 + 0.2 * 0.5
    assert builder.calculate_engagement_quality(event) == pytest.approx(0.9)


def test_time_spent_is_capped_at_ten_minutes(builder):
    ten_minutes = make_event(time_spent=600000, scroll_depth=0.0, completion_rate=0.0)
    one_hour = make_event(time_spent=3600000, scroll_depth=0.0, completion_rate=0.0)

    assert builder.calculate_engagement_quality(one_hour) == pytest.approx(
        builder.calculate_engagement_quality(ten_minutes))


@pytest.mark.parametrize("scroll_speed, expected_scroll_score", [
    (0.5, 0.75),
    (1.0, 0.5),
    (2.0, 0.0),
    (5.0, 0.0),
])
def test_scroll_speed_is_inversely_scored(builder, scroll_speed, expected_scroll_score):
    event = make_event(time_spent=0, scroll_depth=0.0, completion_rate=0.0, scroll_speed=scroll_speed)

    assert builder.calculate_engagement_quality(event) == pytest.approx(0.2 * expected_scroll_score)


def test_empty_history_gives_empty_profile(builder):
    profile = builder.build_profile([])

    assert profile.preferred_hours == {}
    assert profile.preferred_days == {}
    assert profile.type_preferences == {}
    assert profile.tag_preferences == {}
    assert profile.avg_scroll_speed == 0
    assert profile.avg_time_spent == 0
    assert profile.avg_completion_rate == 0
    assert profile.event_count == 0


def test_quality_accumulates_per_hour_and_day(builder):
    events = [
        make_event(time_of_day=14, day_of_week=2),
        make_event(time_of_day=14, day_of_week=3),
        make_event(time_of_day=9, day_of_week=3, time_spent=0, scroll_depth=0.0, completion_rate=0.0),
    ]

    profile = builder.build_profile(events)

    assert profile.preferred_hours[14] == pytest.approx(1.8)
    assert profile.preferred_hours[9] == pytest.approx(0.1)
    assert profile.preferred_days[2] == pytest.approx(0.9)
    assert profile.preferred_days[3] == pytest.approx(1.0)
    assert profile.event_count == 3


def test_behavior_averages(builder):
    events = [
        make_event(time_spent=1000, scroll_speed=1.0, completion_rate=0.5),
        make_event(time_spent=3000, scroll_speed=0.0, completion_rate=1.0),
    ]

    profile = builder.build_profile(events)

    assert profile.avg_time_spent == pytest.approx(2000)
    assert profile.avg_scroll_speed == pytest.approx(0.5)
    assert profile.avg_completion_rate == pytest.approx(0.75)


def test_type_and_tag_preferences_are_not_learned(builder):
    profile = builder.build_profile([make_event(), make_event(content_id="c2")])

    assert profile.type_preferences == {}
    assert profile.tag_preferences == {}


def test_custom_quality_weights():
    builder = EngagementProfileBuilder(quality_weights={
        'time_spent': 1.0,
        'scroll_depth': 0.0,
        'completion': 0.0,
        'scroll_speed': 0.0,
    })

    event = make_event(time_spent=300000)

    assert builder.calculate_engagement_quality(event) == pytest.approx(0.5)
