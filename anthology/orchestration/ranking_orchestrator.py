import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from anthology.logging_setup import configure_logging
from anthology.models import RankingExplanation, RankingRequest, RankingSnapshot
from anthology.ranking.ranking_engine import RankingEngine

# Set up logging
logger = logging.getLogger(__name__)
configure_logging()


def resolve_time_context(now: datetime) -> Tuple[int, int]:
    """Hour (0-23) and weekday (0-6, Sunday = 0) of the given moment"""
    return now.hour, (now.weekday() + 1) % 7


class RankingOrchestrator:
    """
    High-level orchestrator for ranking requests.

    **Steps:**
    1. **Resolve**: Fill in the time context from the clock when the caller omits it
    2. **Rank**: Build the engagement profile and score the library
    3. **Snapshot**: Tag the ranking with the algorithm version for caching

    Design Pattern :

    Facade over the RankingEngine. Persisting the snapshot is left to the caller.
    """

    def __init__(self,
                 ranking_engine: Optional[RankingEngine] = None,
                 algorithm_version: str = "v1"):
        """Initialize the orchestrator with its ranking engine"""
        self.ranking_engine = ranking_engine or RankingEngine()
        self.algorithm_version = algorithm_version

        logger.info(f"Ranking orchestrator initialized (algorithm {algorithm_version})")

    def _resolve_request_time(self, request: RankingRequest, now: datetime) -> Tuple[int, int]:
        clock_hour, clock_day = resolve_time_context(now)
        current_hour = request.current_hour if request.current_hour is not None else clock_hour
        current_day = request.current_day if request.current_day is not None else clock_day
        return current_hour, current_day

    def rank_request(self, request: RankingRequest, now: Optional[datetime] = None) -> RankingSnapshot:
        """Rank a user's library and wrap the result in a snapshot"""
        now = now or datetime.now(timezone.utc)
        current_hour, current_day = self._resolve_request_time(request, now)

        logger.info(f"Ranking {len(request.contents)} items for user {request.user_id} "
                    f"(playlist={request.playlist_id}, hour={current_hour}, day={current_day})")

        rankings = self.ranking_engine.rank(request.contents,
                                            request.recent_engagements,
                                            current_hour,
                                            current_day,
                                            now=now)

        return RankingSnapshot(user_id=request.user_id,
                               playlist_id=request.playlist_id,
                               rankings=rankings,
                               computed_at=now,
                               algorithm_version=self.algorithm_version)

    def explain_request(self, request: RankingRequest, now: Optional[datetime] = None) -> List[RankingExplanation]:
        """
        Explain how each item of the request would be scored

        Exploration is drawn independently of rank_request, so scores and
        order match a ranking of the same request only up to exploration_max.
        """
        now = now or datetime.now(timezone.utc)
        current_hour, current_day = self._resolve_request_time(request, now)

        return self.ranking_engine.explain_ranking(request.contents,
                                                   request.recent_engagements,
                                                   current_hour,
                                                   current_day,
                                                   now=now)
