import logging
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Dict

from omegaconf import OmegaConf

from anthology.logging_setup import configure_logging

# Set logger
logger = logging.getLogger(__name__)
configure_logging()


@dataclass
class ContentScoringConfig:
    recency_weight: float = 0.15
    time_match_weight: float = 0.20
    completion_weight: float = 0.25
    freshness_weight: float = 0.20
    type_preference_weight: float = 0.20


@dataclass
class CompletionTiersConfig:
    in_progress_score: float = 0.8
    unstarted_score: float = 1.0
    finished_score: float = 0.2
    finished_threshold: float = 0.9


@dataclass
class QualityScoringConfig:
    time_spent_weight: float = 0.3
    scroll_depth_weight: float = 0.2
    completion_weight: float = 0.3
    scroll_speed_weight: float = 0.2
    time_spent_cap_ms: int = 10 * 60 * 1000
    max_scroll_speed: float = 2.0
    no_scroll_score: float = 0.5


@dataclass
class RankingConfig:
    algorithm_version: str = "v1"
    content_scoring: ContentScoringConfig = field(default_factory=ContentScoringConfig)
    completion_tiers: CompletionTiersConfig = field(default_factory=CompletionTiersConfig)
    quality_scoring: QualityScoringConfig = field(default_factory=QualityScoringConfig)
    recency_decay_days: float = 30
    freshness_ramp_days: float = 7
    revisit_max_score: float = 0.5
    default_type_preference: float = 0.5
    exploration_max: float = 0.05

    @property
    def content_scoring_dict(self) -> Dict[str, float]:
        return asdict(self.content_scoring)

    @property
    def completion_tiers_dict(self) -> Dict[str, float]:
        return asdict(self.completion_tiers)


@dataclass
class ApiConfig:
    host: str = "localhost"
    port: int = 8000


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class AppConfig:
    ranking: RankingConfig
    api: ApiConfig
    logging: LoggingConfig


def load_config(config_file_name: str = "config.yaml") -> AppConfig:
    """Load configuration using OmegaConf"""
    base_dir = Path(__file__).resolve().parents[1]
    config_path = base_dir / "config" / config_file_name

    # Merge file values over the dataclass defaults
    schema = OmegaConf.structured(AppConfig(ranking=RankingConfig(),
                                            api=ApiConfig(),
                                            logging=LoggingConfig()))
    cfg = OmegaConf.merge(schema, OmegaConf.load(config_path))

    # Parse ranking with nested scoring configs
    content_scoring = ContentScoringConfig(**cfg.ranking.content_scoring)
    completion_tiers = CompletionTiersConfig(**cfg.ranking.completion_tiers)
    quality_scoring = QualityScoringConfig(**cfg.ranking.quality_scoring)
    ranking = RankingConfig(
        algorithm_version=cfg.ranking.algorithm_version,
        content_scoring=content_scoring,
        completion_tiers=completion_tiers,
        quality_scoring=quality_scoring,
        recency_decay_days=cfg.ranking.recency_decay_days,
        freshness_ramp_days=cfg.ranking.freshness_ramp_days,
        revisit_max_score=cfg.ranking.revisit_max_score,
        default_type_preference=cfg.ranking.default_type_preference,
        exploration_max=cfg.ranking.exploration_max
    )

    # Create main app config
    app_config = AppConfig(
        ranking=ranking,
        api=ApiConfig(**cfg.api),
        logging=LoggingConfig(**cfg.logging)
    )

    return app_config


# Global config instance - load once and reuse
config: AppConfig = None


def get_config() -> AppConfig:
    """Get the global config instance, loading it if necessary"""
    global config
    if config is None:
        config = load_config()
        logger.info(f"Config loaded (algorithm {config.ranking.algorithm_version})")
    return config
