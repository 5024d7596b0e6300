import logging
from typing import Dict, List, Optional

from anthology.logging_setup import configure_logging
from anthology.models import EngagementEvent, EngagementProfile

# Set logger
logger = logging.getLogger(__name__)
configure_logging()


class EngagementProfileBuilder:
    """
    Aggregates recent engagement telemetry into an EngagementProfile

    Each session gets a quality score from its time, scroll and completion
    signals. Quality scores are summed per hour and per weekday, so hours with
    more engaged sessions dominate, not just hours with a high average.
    """

    def __init__(self,
                 quality_weights: Optional[Dict[str, float]] = None,
                 time_spent_cap_ms: float = 10 * 60 * 1000,
                 max_scroll_speed: float = 2.0,
                 no_scroll_score: float = 0.5):
        """Initialize the builder with per-session quality weights"""

        # QUALITY WEIGHTS - How much each session signal contributes
        self.quality_weights = quality_weights or {
            'time_spent': 0.3,       # Capped at time_spent_cap_ms
            'scroll_depth': 0.2,
            'completion': 0.3,
            'scroll_speed': 0.2,     # Slow scrolling = careful reading
        }

        self.time_spent_cap_ms = time_spent_cap_ms

        # Scroll speed (px/ms) at which the scroll score reaches 0
        self.max_scroll_speed = max_scroll_speed

        # Score for sessions without scroll data (videos, PDFs)
        self.no_scroll_score = no_scroll_score

    def calculate_engagement_quality(self, engagement: EngagementEvent) -> float:
        """
        Calculate how engaged a single session was

        Args:
            engagement: Session telemetry

        Returns:
            float: Quality score (0.0 to 1.0 for well-formed input)
        """
        score = 0.0

        # Time spent, normalized against the cap
        score += min(engagement.time_spent / self.time_spent_cap_ms, 1) * self.quality_weights['time_spent']

        score += engagement.scroll_depth * self.quality_weights['scroll_depth']

        score += engagement.completion_rate * self.quality_weights['completion']

        # Inverse relationship: slower scrolling scores higher
        if engagement.scroll_speed > 0:
            scroll_score = max(0.0, 1 - engagement.scroll_speed / self.max_scroll_speed)
        else:
            scroll_score = self.no_scroll_score
        score += scroll_score * self.quality_weights['scroll_speed']

        return score

    def build_profile(self, engagements: List[EngagementEvent]) -> EngagementProfile:
        """
        Build an engagement profile from recent sessions

        Type and tag preferences are left empty: every lookup against them
        falls back to the neutral default in the ranking engine.

        Args:
            engagements: Recent sessions, may be empty

        Returns:
            EngagementProfile: Time preferences and behavior averages
        """
        profile = EngagementProfile()

        if not engagements:
            return profile

        total_scroll_speed = 0.0
        total_time_spent = 0.0
        total_completion_rate = 0.0

        for engagement in engagements:
            # Time patterns, weighted by engagement quality
            quality_score = self.calculate_engagement_quality(engagement)

            hour_score = profile.preferred_hours.get(engagement.time_of_day, 0.0)
            profile.preferred_hours[engagement.time_of_day] = hour_score + quality_score

            day_score = profile.preferred_days.get(engagement.day_of_week, 0.0)
            profile.preferred_days[engagement.day_of_week] = day_score + quality_score

            # Behavior aggregates
            total_scroll_speed += engagement.scroll_speed
            total_time_spent += engagement.time_spent
            total_completion_rate += engagement.completion_rate

        count = len(engagements)
        profile.avg_scroll_speed = total_scroll_speed / count
        profile.avg_time_spent = total_time_spent / count
        profile.avg_completion_rate = total_completion_rate / count
        profile.event_count = count

        logger.debug(f"Built engagement profile from {count} events: "
                     f"hours={len(profile.preferred_hours)}, days={len(profile.preferred_days)}, "
                     f"avg_completion={profile.avg_completion_rate:.3f}")

        return profile
