"""
Data models for the anthology feed ranking service

This module defines the content, telemetry and ranking structures exchanged
with the reader app. Attributes are snake_case in Python and camelCase on the
wire, matching the records the app stores.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


def _ensure_utc(v):
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    return v


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys, serialized as camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentItem(CamelModel):
    """
    A saved piece of content in the user's library.

    Only created_at, last_viewed_at, completion_rate and type feed the score.
    The remaining fields are part of the stored record and pass through untouched.
    """
    id: str = Field(..., description="Unique identifier for the content")
    type: str = Field(..., description="Content kind (e.g. 'BLOG', 'YOUTUBE', 'PDF')")
    title: Optional[str] = Field(None, description="Content title")
    created_at: datetime = Field(..., description="When the content was saved")
    last_viewed_at: Optional[datetime] = Field(None, description="Last consumption time, absent if never viewed")
    view_count: int = Field(0, ge=0, description="Number of times viewed")
    completion_rate: float = Field(0.0, ge=0.0, le=1.0, description="Fraction consumed")
    semantic_tags: List[str] = Field(default_factory=list, description="Category labels")
    embedding_json: Optional[str] = Field(None, description="Serialized embedding vector (unused by ranking)")

    @field_validator("created_at", "last_viewed_at", mode="after")
    @classmethod
    def ensure_utc(cls, v):
        return _ensure_utc(v)


class EngagementEvent(CamelModel):
    """
    Telemetry for a single content-viewing session.

    The ranking only reads the time, scroll and completion signals. Other
    tracker fields are accepted so raw engagement records can be passed as-is.
    """
    content_id: str = Field(..., description="Content viewed during the session")
    time_spent: float = Field(..., ge=0, description="Session duration in milliseconds")
    scroll_depth: float = Field(0.0, ge=0.0, le=1.0, description="How far the content was scrolled")
    scroll_speed: float = Field(0.0, ge=0.0, description="Average scroll speed in pixels per millisecond")
    completion_rate: float = Field(0.0, ge=0.0, le=1.0, description="Fraction consumed in this session")
    time_of_day: int = Field(..., ge=0, le=23, description="Local hour the session ended")
    day_of_week: int = Field(..., ge=0, le=6, description="Local weekday, Sunday = 0")

    # Tracker fields not used for scoring
    session_id: Optional[str] = None
    scroll_pauses: Optional[int] = None
    video_pauses: Optional[int] = None
    video_seeks: Optional[int] = None
    touch_count: Optional[int] = None
    gyro_variance: Optional[float] = None
    focus_lost: Optional[int] = None
    swipe_direction: Optional[Literal["NEXT", "BACK", "NONE"]] = None

    @field_validator("scroll_depth", "scroll_speed", mode="before")
    @classmethod
    def default_missing_scroll(cls, v):
        # Content without a scroll surface reports null
        return 0.0 if v is None else v


class EngagementProfile(BaseModel):
    """When and how the user engages, aggregated from recent sessions"""
    preferred_hours: Dict[int, float] = Field(default_factory=dict)
    preferred_days: Dict[int, float] = Field(default_factory=dict)
    type_preferences: Dict[str, float] = Field(default_factory=dict)
    tag_preferences: Dict[str, float] = Field(default_factory=dict)
    avg_scroll_speed: float = 0.0
    avg_time_spent: float = 0.0
    avg_completion_rate: float = 0.0
    event_count: int = 0


class RankedContent(CamelModel):
    """One entry of the ranked feed"""
    content_id: str
    score: float
    reason: str


class ScoreComponents(CamelModel):
    """Unweighted value of every term of a content score"""
    recency: float
    time_match: float
    completion: float
    freshness: float
    type_preference: float
    exploration: float


class RankingExplanation(CamelModel):
    """Detailed breakdown of how a content item was scored"""
    content_id: str
    final_score: float
    raw_score: float
    reason: str
    age_days: float
    components: ScoreComponents
    weights: Dict[str, float]
    formula: str


class RankingRequest(CamelModel):
    """
    Request to rank a user's library.

    current_hour and current_day are optional; when absent they are resolved
    from the server clock.
    """
    user_id: str = Field(..., description="Owner of the content")
    playlist_id: str = Field("ALL", description="'ALL' for the whole library, otherwise a playlist id")
    contents: List[ContentItem] = Field(default_factory=list)
    recent_engagements: List[EngagementEvent] = Field(default_factory=list)
    current_hour: Optional[int] = Field(None, ge=0, le=23)
    current_day: Optional[int] = Field(None, ge=0, le=6)


class RankingSnapshot(CamelModel):
    """
    A computed ranking tagged with the algorithm version that produced it.

    This is the record cached per user and playlist so the feed can be
    rebuilt without re-ranking.
    """
    user_id: str
    playlist_id: str = "ALL"
    rankings: List[RankedContent]
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    algorithm_version: str

    @field_validator("computed_at", mode="after")
    @classmethod
    def ensure_utc(cls, v):
        return _ensure_utc(v)

    @computed_field(alias="rankingsJson")
    @property
    def rankings_json(self) -> str:
        """Serialize the rankings as the JSON array stored in the cache record"""
        return json.dumps([r.model_dump(by_alias=True) for r in self.rankings])

    @property
    def ranked_content_ids(self) -> List[str]:
        return [r.content_id for r in self.rankings]
