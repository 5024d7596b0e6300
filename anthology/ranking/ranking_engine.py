import logging
import math
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from anthology.logging_setup import configure_logging
from anthology.models import (ContentItem, EngagementEvent, EngagementProfile, RankedContent,
                              RankingExplanation, ScoreComponents)
from anthology.profiling.engagement_profile_builder import EngagementProfileBuilder

# Set logger
logger = logging.getLogger(__name__)
configure_logging()

SECONDS_PER_DAY = 24 * 60 * 60


class RankingEngine:
    """
    Ranks a user's content library for the feed

    Stage 1: Aggregate recent engagement into an EngagementProfile
    Stage 2: Score every item against the shared profile with five weighted
             terms (recency, time-of-day match, completion state, freshness,
             type preference) plus a small random exploration bonus
    Stage 3: Sort by score, highest first, and attach a reason for display
    """

    def __init__(self,
                 content_scoring: Optional[Dict[str, float]] = None,
                 profile_builder: Optional[EngagementProfileBuilder] = None,
                 completion_tiers: Optional[Dict[str, float]] = None,
                 recency_decay_days: float = 30,
                 freshness_ramp_days: float = 7,
                 revisit_max_score: float = 0.5,
                 default_type_preference: float = 0.5,
                 exploration_max: float = 0.05,
                 exploration: Optional[Callable[[], float]] = None):
        """
        Initialize ranking engine

        Args:
            exploration: Returns a uniform value in [0, 1) for each scored item.
                         Defaults to a private random.Random; pass a constant
                         source for deterministic ranking.
        """

        self.profile_builder = profile_builder or EngagementProfileBuilder()

        # SCORING WEIGHTS - sum to 1.0, exploration is added on top
        self.weights = content_scoring or {
            'recency_weight': 0.15,
            'time_match_weight': 0.20,
            'completion_weight': 0.25,
            'freshness_weight': 0.20,
            'type_preference_weight': 0.20,
        }

        # COMPLETION TIERS - resume unfinished, surface fresh, bury finished
        self.completion_tiers = completion_tiers or {
            'in_progress_score': 0.8,
            'unstarted_score': 1.0,
            'finished_score': 0.2,
            'finished_threshold': 0.9,
        }

        # RECENCY DECAY - linear, reaches 0 after recency_decay_days
        self.recency_decay_days = recency_decay_days

        # REVISIT - previously viewed items ramp up to revisit_max_score
        self.freshness_ramp_days = freshness_ramp_days
        self.revisit_max_score = revisit_max_score

        # Type preferences are never learned, lookups fall back to this
        self.default_type_preference = default_type_preference

        # EXPLORATION - epsilon bonus so under-favored items still surface
        self.exploration_max = exploration_max
        self._exploration = exploration or random.Random().random

        logger.info("RankingEngine initialized")

    def _draw_exploration(self) -> float:
        """Fresh exploration bonus in [0, exploration_max)"""
        return self._exploration() * self.exploration_max

    @staticmethod
    def _days_since(moment: datetime, now: datetime) -> float:
        return (now - moment).total_seconds() / SECONDS_PER_DAY

    def calculate_recency_score(self, created_at: datetime, now: datetime) -> float:
        """
        Linear decay over the recency window

        Returns:
            float: 1.0 for content saved now, 0.0 once older than recency_decay_days
        """
        age_days = self._days_since(created_at, now)
        return max(0.0, 1 - age_days / self.recency_decay_days)

    def calculate_time_match_score(self, profile: EngagementProfile, current_hour: int) -> float:
        """Current hour's accumulated quality relative to the user's best hour"""
        hour_preference = profile.preferred_hours.get(current_hour, 0.0)
        # Floor at 1 so an empty profile scores 0
        max_hour_preference = max([*profile.preferred_hours.values(), 1])
        return hour_preference / max_hour_preference

    def calculate_completion_score(self, completion_rate: float) -> float:
        tiers = self.completion_tiers
        if 0 < completion_rate < tiers['finished_threshold']:
            return tiers['in_progress_score']
        elif completion_rate == 0:
            return tiers['unstarted_score']
        else:
            return tiers['finished_score']

    def calculate_freshness_score(self, last_viewed_at: Optional[datetime], now: datetime) -> float:
        """Never viewed scores 1.0, otherwise ramps to revisit_max_score after freshness_ramp_days"""
        if last_viewed_at is None:
            return 1.0
        days_since_view = self._days_since(last_viewed_at, now)
        return min(days_since_view / self.freshness_ramp_days, 1) * self.revisit_max_score

    def calculate_type_preference_score(self, profile: EngagementProfile, content_type: str) -> float:
        return profile.type_preferences.get(content_type, self.default_type_preference)

    def calculate_components(self,
                             content: ContentItem,
                             profile: EngagementProfile,
                             current_hour: int,
                             current_day: int,
                             now: datetime) -> ScoreComponents:
        """Compute every unweighted term for one item, including a fresh exploration draw"""

        # current_day is part of the time context, day preferences are not scored yet
        return ScoreComponents(
            recency=self.calculate_recency_score(content.created_at, now),
            time_match=self.calculate_time_match_score(profile, current_hour),
            completion=self.calculate_completion_score(content.completion_rate),
            freshness=self.calculate_freshness_score(content.last_viewed_at, now),
            type_preference=self.calculate_type_preference_score(profile, content.type),
            exploration=self._draw_exploration()
        )

    def combine_components(self, components: ScoreComponents) -> Tuple[float, float]:
        """
        Weight and sum the terms

        Returns:
            Tuple of (raw score, score clamped to [0, 1])
        """
        raw_score = (
            components.recency * self.weights['recency_weight'] +
            components.time_match * self.weights['time_match_weight'] +
            components.completion * self.weights['completion_weight'] +
            components.freshness * self.weights['freshness_weight'] +
            components.type_preference * self.weights['type_preference_weight'] +
            components.exploration
        )
        return raw_score, max(0.0, min(1.0, raw_score))

    def calculate_content_score(self,
                                content: ContentItem,
                                profile: EngagementProfile,
                                current_hour: int,
                                current_day: int,
                                now: Optional[datetime] = None) -> float:
        """
        Score a single content item against the engagement profile

        Returns:
            float: Score in [0, 1]
        """
        now = now or datetime.now(timezone.utc)
        components = self.calculate_components(content, profile, current_hour, current_day, now)
        _, score = self.combine_components(components)

        logger.debug(f"Content {content.id} score: recency={components.recency:.3f}, "
                     f"time_match={components.time_match:.3f}, completion={components.completion:.3f}, "
                     f"freshness={components.freshness:.3f}, type={components.type_preference:.3f}, "
                     f"exploration={components.exploration:.3f}, final={score:.3f}")

        return score

    def generate_reason(self, content: ContentItem, now: Optional[datetime] = None) -> str:
        """Pick the display reason by fixed priority, independent of the score"""
        if 0 < content.completion_rate < self.completion_tiers['finished_threshold']:
            # Round half up
            percent = math.floor(content.completion_rate * 100 + 0.5)
            return f"Continue where you left off ({percent}% complete)"

        if content.last_viewed_at is None:
            now = now or datetime.now(timezone.utc)
            if self._days_since(content.created_at, now) < 1:
                return "Added recently"
            return "Fresh content for you"

        return "Based on your reading patterns"

    def build_profile(self, recent_engagements: List[EngagementEvent]) -> EngagementProfile:
        return self.profile_builder.build_profile(recent_engagements)

    def rank(self,
             contents: List[ContentItem],
             recent_engagements: List[EngagementEvent],
             current_hour: int,
             current_day: int,
             now: Optional[datetime] = None) -> List[RankedContent]:
        """
        Score and rank content for the feed (highest first)

        Args:
            contents: The user's content library
            recent_engagements: Recent sessions, selected by the caller
            current_hour: Local hour 0-23
            current_day: Local weekday 0-6
            now: Reference time for age calculations, defaults to current UTC time

        Returns:
            One RankedContent per input item. Ties keep input order.
        """
        now = now or datetime.now(timezone.utc)
        profile = self.build_profile(recent_engagements)

        rankings = [
            RankedContent(
                content_id=content.id,
                score=self.calculate_content_score(content, profile, current_hour, current_day, now),
                reason=self.generate_reason(content, now)
            )
            for content in contents
        ]

        # sorted() is stable, equal scores keep input order
        ranked = sorted(rankings, key=lambda r: -r.score)

        logger.info(f"Ranked {len(ranked)} items using {len(recent_engagements)} engagement events")

        return ranked

    def get_ranking_explanation(self,
                                content: ContentItem,
                                profile: EngagementProfile,
                                current_hour: int,
                                current_day: int,
                                now: Optional[datetime] = None) -> RankingExplanation:
        """
        Get detailed explanation of the score calculation for one item

        The exploration term is a fresh draw, so the final score matches what
        rank() would produce only up to exploration_max.
        """
        now = now or datetime.now(timezone.utc)
        components = self.calculate_components(content, profile, current_hour, current_day, now)
        raw_score, final_score = self.combine_components(components)
        w = self.weights

        return RankingExplanation(
            content_id=content.id,
            final_score=final_score,
            raw_score=raw_score,
            reason=self.generate_reason(content, now),
            age_days=self._days_since(content.created_at, now),
            components=components,
            weights=dict(w),
            formula=(f"({components.recency:.3f} * {w['recency_weight']}) + "
                     f"({components.time_match:.3f} * {w['time_match_weight']}) + "
                     f"({components.completion:.3f} * {w['completion_weight']}) + "
                     f"({components.freshness:.3f} * {w['freshness_weight']}) + "
                     f"({components.type_preference:.3f} * {w['type_preference_weight']}) + "
                     f"{components.exploration:.3f} = {raw_score:.3f}")
        )

    def explain_ranking(self,
                        contents: List[ContentItem],
                        recent_engagements: List[EngagementEvent],
                        current_hour: int,
                        current_day: int,
                        now: Optional[datetime] = None) -> List[RankingExplanation]:
        """Explain every item, in ranked order"""
        now = now or datetime.now(timezone.utc)
        profile = self.build_profile(recent_engagements)

        explanations = [
            self.get_ranking_explanation(content, profile, current_hour, current_day, now)
            for content in contents
        ]
        return sorted(explanations, key=lambda e: -e.final_score)
