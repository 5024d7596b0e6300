from datetime import datetime, timedelta, timezone

import pytest

from anthology.models import ContentItem, EngagementEvent
from anthology.orchestration.ranking_orchestrator import RankingOrchestrator
from anthology.ranking.ranking_engine import RankingEngine

# Fixed reference time: Tuesday 2024-05-14 14:00 UTC
NOW = datetime(2024, 5, 14, 14, 0, tzinfo=timezone.utc)


def make_content(content_id="c1", *, age_days=0.0, completion_rate=0.0,
                 viewed_days_ago=None, content_type="BLOG", **extra) -> ContentItem:
    """Build a ContentItem relative to NOW"""
    last_viewed_at = NOW - timedelta(days=viewed_days_ago) if viewed_days_ago is not None else None
    return ContentItem(id=content_id,
                       type=content_type,
                       created_at=NOW - timedelta(days=age_days),
                       last_viewed_at=last_viewed_at,
                       completion_rate=completion_rate,
                       **extra)


def make_event(content_id="c1", *, time_spent=600000, scroll_depth=1.0, scroll_speed=0.0,
               completion_rate=1.0, time_of_day=14, day_of_week=2) -> EngagementEvent:
    return EngagementEvent(content_id=content_id,
                           time_spent=time_spent,
                           scroll_depth=scroll_depth,
                           scroll_speed=scroll_speed,
                           completion_rate=completion_rate,
                           time_of_day=time_of_day,
                           day_of_week=day_of_week)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    """Ranking engine with the exploration term fixed to 0"""
    return RankingEngine(exploration=lambda: 0.0)


@pytest.fixture
def random_engine():
    return RankingEngine()


@pytest.fixture
def orchestrator(engine):
    return RankingOrchestrator(ranking_engine=engine, algorithm_version="test-v1")
