import json
from datetime import datetime, timezone

import pytest

from anthology.models import RankingRequest
from anthology.orchestration.ranking_orchestrator import RankingOrchestrator, resolve_time_context
from anthology.ranking.ranking_engine import RankingEngine
from conftest import NOW, make_content, make_event


@pytest.mark.parametrize("moment, expected", [
    (datetime(2024, 5, 12, 9, 30, tzinfo=timezone.utc), (9, 0)),   # Sunday
    (datetime(2024, 5, 13, 0, 0, tzinfo=timezone.utc), (0, 1)),    # Monday
    (datetime(2024, 5, 18, 23, 59, tzinfo=timezone.utc), (23, 6)), # Saturday
])
def test_resolve_time_context_uses_sunday_as_day_zero(moment, expected):
    assert resolve_time_context(moment) == expected


def test_rank_request_builds_versioned_snapshot(orchestrator):
    request = RankingRequest(user_id="user-1",
                             contents=[make_content("a", age_days=40, completion_rate=1.0, viewed_days_ago=1),
                                       make_content("b", age_days=0)],
                             recent_engagements=[make_event("a")],
                             current_hour=14,
                             current_day=2)

    snapshot = orchestrator.rank_request(request, now=NOW)

    assert snapshot.user_id == "user-1"
    assert snapshot.playlist_id == "ALL"
    assert snapshot.algorithm_version == "test-v1"
    assert snapshot.computed_at == NOW
    assert snapshot.ranked_content_ids == ["b", "a"]


def test_rankings_json_uses_wire_field_names(orchestrator):
    request = RankingRequest(user_id="user-1", contents=[make_content("a")], current_hour=14, current_day=2)

    snapshot = orchestrator.rank_request(request, now=NOW)
    stored = json.loads(snapshot.rankings_json)

    assert stored == [{"contentId": "a", "score": pytest.approx(0.70), "reason": "Added recently"}]


def test_missing_time_context_is_taken_from_the_clock(orchestrator):
    # Engagement at the clock's hour makes the time-match term visible
    request = RankingRequest(user_id="user-1",
                             contents=[make_content("a", age_days=0)],
                             recent_engagements=[make_event(time_of_day=NOW.hour), make_event(time_of_day=NOW.hour)])

    snapshot = orchestrator.rank_request(request, now=NOW)

    assert snapshot.rankings[0].score == pytest.approx(0.90)


def test_explicit_time_context_wins_over_the_clock(orchestrator):
    request = RankingRequest(user_id="user-1",
                             contents=[make_content("a", age_days=0)],
                             recent_engagements=[make_event(time_of_day=NOW.hour), make_event(time_of_day=NOW.hour)],
                             current_hour=3,
                             current_day=0)

    snapshot = orchestrator.rank_request(request, now=NOW)

    assert snapshot.rankings[0].score == pytest.approx(0.70)


def test_explain_request(orchestrator):
    request = RankingRequest(user_id="user-1",
                             contents=[make_content("a", age_days=3), make_content("b", age_days=0)],
                             current_hour=14,
                             current_day=2)

    explanations = orchestrator.explain_request(request, now=NOW)

    assert [e.content_id for e in explanations] == ["b", "a"]
    assert explanations[1].reason == "Fresh content for you"


def test_explain_draws_its_own_exploration():
    draws = iter([0.0, 0.0, 0.0, 0.8])
    orchestrator = RankingOrchestrator(ranking_engine=RankingEngine(exploration=lambda: next(draws)))
    request = RankingRequest(user_id="user-1",
                             contents=[make_content("a", age_days=2), make_content("b", age_days=2)],
                             current_hour=14,
                             current_day=2)

    ranked = orchestrator.rank_request(request, now=NOW)
    explained = orchestrator.explain_request(request, now=NOW)

    # Equal scores keep input order when ranking, the new draw lifts "b" in the explanation
    assert ranked.ranked_content_ids == ["a", "b"]
    assert [e.content_id for e in explained] == ["b", "a"]
    assert explained[0].components.exploration == pytest.approx(0.04)
    assert explained[1].components.exploration == 0
