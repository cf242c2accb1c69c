# ===== TYPES & INTERFACES =====

from enum import Enum
from typing import TypedDict, Optional


class ReleaseFlag(Enum):
    """Tri-state manual release marker stored on an override."""
    RELEASED = "released"
    NOT_RELEASED = "not_released"
    UNSET = "unset"

    @classmethod
    def from_db(cls, value: Optional[int]) -> "ReleaseFlag":
        if value is None:
            return cls.UNSET
        return cls.RELEASED if value else cls.NOT_RELEASED

    def to_db(self) -> Optional[int]:
        if self is ReleaseFlag.UNSET:
            return None
        return 1 if self is ReleaseFlag.RELEASED else 0


class ReleaseOverride(TypedDict):
    """
    A manual or heuristic correction to the catalog's release/trending status.
    Authoritative over catalog data whenever a field is set.
    """
    game_id: int
    game_name: str
    is_released: ReleaseFlag
    release_date: Optional[str]
    is_trending: bool
    trending_score: float
    detected_via: Optional[str]
    notes: Optional[str]
    created_at: str
    updated_at: str


class VideoSignalCache(TypedDict):
    """Last known video activity for a game, written by the trending miner."""
    game_id: int
    game_name: str
    total_views: int
    video_count: int
    avg_views_per_video: int
    trending_score: int
    has_gameplay_videos: bool
    last_updated: str


class PublisherPriority(TypedDict):
    publisher_name: str
    publisher_slug: Optional[str]
    priority_score: float
