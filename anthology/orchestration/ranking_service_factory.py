import logging
from typing import Callable, Optional

from anthology.config import get_config
from anthology.logging_setup import configure_logging
from anthology.orchestration.ranking_orchestrator import RankingOrchestrator
from anthology.profiling.engagement_profile_builder import EngagementProfileBuilder
from anthology.ranking.ranking_engine import RankingEngine

# Set up logging
logger = logging.getLogger(__name__)
configure_logging()


class RankingServiceFactory:
    """Factory class for creating and configuring ranking services.

       Builds every component from the shared configuration so the API and
       the CLI rank with identical settings.
    """

    @staticmethod
    def create_profile_builder() -> EngagementProfileBuilder:
        """Create an engagement profile builder from the quality scoring config."""

        quality = get_config().ranking.quality_scoring

        return EngagementProfileBuilder(
            quality_weights={
                'time_spent': quality.time_spent_weight,
                'scroll_depth': quality.scroll_depth_weight,
                'completion': quality.completion_weight,
                'scroll_speed': quality.scroll_speed_weight,
            },
            time_spent_cap_ms=quality.time_spent_cap_ms,
            max_scroll_speed=quality.max_scroll_speed,
            no_scroll_score=quality.no_scroll_score
        )

    @staticmethod
    def create_ranking_engine(exploration: Optional[Callable[[], float]] = None) -> RankingEngine:
        """Create a configured ranking engine instance."""

        cfg = get_config()

        return RankingEngine(content_scoring=cfg.ranking.content_scoring_dict,
                             profile_builder=RankingServiceFactory.create_profile_builder(),
                             completion_tiers=cfg.ranking.completion_tiers_dict,
                             recency_decay_days=cfg.ranking.recency_decay_days,
                             freshness_ramp_days=cfg.ranking.freshness_ramp_days,
                             revisit_max_score=cfg.ranking.revisit_max_score,
                             default_type_preference=cfg.ranking.default_type_preference,
                             exploration_max=cfg.ranking.exploration_max,
                             exploration=exploration)

    @staticmethod
    def create_orchestrator(exploration: Optional[Callable[[], float]] = None) -> RankingOrchestrator:
        """Create a configured ranking orchestrator instance."""

        cfg = get_config()

        ranking_engine = RankingServiceFactory.create_ranking_engine(exploration)

        return RankingOrchestrator(ranking_engine=ranking_engine,
                                   algorithm_version=cfg.ranking.algorithm_version)
