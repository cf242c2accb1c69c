# ===== TYPES & INTERFACES =====

from typing import TypedDict, List, Literal, Optional

Confidence = Literal["high", "medium", "low"]


class VideoStats(TypedDict):
    """A single video returned by a search, joined with its statistics."""
    video_id: str
    title: str
    view_count: int
    published_at: str
    channel_title: str


class GameplaySignal(TypedDict):
    """Verdict of the gameplay-footage heuristic for one game."""
    has_gameplay: bool
    video_count: int
    recent_views: int
    confidence: Confidence


class TrendingSignal(TypedDict):
    """
    Aggregate video activity for one game over the last two weeks.

    Attributes:
        total_views (int): Views summed over videos published in the last 14 days.
        video_count (int): Number of those videos.
        recent_video_count (int): Subset published in the last 7 days.
        trending_score (int): floor(log10(views)*100 + min(count*20, 200) + recent*50).
        videos (List[VideoStats]): Up to five sample videos.
    """
    game_name: str
    total_views: int
    video_count: int
    recent_video_count: int
    avg_views_per_video: int
    trending_score: int
    has_gameplay_videos: bool
    videos: List[VideoStats]


class VideoLookup(TypedDict):
    video_id: Optional[str]
    type: Optional[Literal["trailer", "gameplay"]]


def no_gameplay_signal() -> GameplaySignal:
    return GameplaySignal(has_gameplay=False, video_count=0, recent_views=0, confidence="low")
