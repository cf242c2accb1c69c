# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
import math
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from gamepulse.config import (
    GAMEPLAY_FALLBACK_QUERY_TEMPLATES, GAMEPLAY_MATCH_THRESHOLD, GAMEPLAY_MAX_RESULTS,
    GAMEPLAY_QUERY_TEMPLATES, RECENT_VIDEO_DAYS, REFRESH_BATCH_PAUSE_SECONDS, REFRESH_BATCH_SIZE,
    SEARCH_WINDOW_DAYS, TRAILER_MATCH_THRESHOLD, TRAILER_MAX_RESULTS, TRAILER_QUERY_TEMPLATES,
    TRENDING_MAX_RESULTS, TRENDING_QUERY_TEMPLATES, TRENDING_VIDEO_SAMPLE, VERY_RECENT_VIDEO_DAYS,
)
from gamepulse.models.game import CatalogGame
from gamepulse.models.signals import Confidence, GameplaySignal, TrendingSignal, VideoLookup, VideoStats
from gamepulse.sources.youtube import YouTubeClient
from gamepulse.utils.dates import days_ago, parse_timestamp, utc_now
from gamepulse.utils.text_matching import (
    clean_video_title, has_pre_release_marker, is_confirmed_release_title,
    is_relevant_video, normalize_game_name,
)

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# Gameplay verdict thresholds
MIN_VIDEOS = 5
MIN_CHANNELS = 3
MIN_VIEWS = 50000
MIN_CONFIRMED_VIDEOS = 2
MIN_CONFIRMED_VIEWS = 20000
HIGH_CONFIDENCE_CONFIRMED = 3
HIGH_CONFIDENCE_CHANNELS = 5

# ===== UTILITY FUNCTIONS =====

def gameplay_verdict(video_count: int, channel_count: int, total_views: int, confirmed_videos: int) -> bool:
    return (
        (video_count >= MIN_VIDEOS and channel_count >= MIN_CHANNELS and total_views >= MIN_VIEWS)
        or (confirmed_videos >= MIN_CONFIRMED_VIDEOS and total_views >= MIN_CONFIRMED_VIEWS)
    )


def gameplay_confidence(has_gameplay: bool, confirmed_videos: int, channel_count: int) -> Confidence:
    if has_gameplay and confirmed_videos >= HIGH_CONFIDENCE_CONFIRMED and channel_count >= HIGH_CONFIDENCE_CHANNELS:
        return "high"
    if has_gameplay:
        return "medium"
    return "low"


def compute_trending_score(total_views: int, recent_video_count: int, very_recent_video_count: int) -> int:
    view_score = math.log10(total_views) * 100 if total_views > 0 else 0
    volume_score = min(recent_video_count * 20, 200)
    recency_bonus = very_recent_video_count * 50
    return math.floor(view_score + volume_score + recency_bonus)

# ===== CORE BUSINESS LOGIC =====
class VideoSignalMiner:
    """
    Derives release and popularity signals for a game from video search results.

    Queries for one game run one after another; a failing query simply
    contributes nothing, so every public method returns a neutral value
    instead of raising.
    """

    def __init__(self, youtube: YouTubeClient, clock: Callable[[], datetime] = utc_now):
        self.youtube = youtube
        self._clock = clock

    async def _search_with_stats(self, query: str, game_name: str, max_results: int) -> List[VideoStats]:
        published_after = days_ago(self._clock(), SEARCH_WINDOW_DAYS)
        try:
            return await self.youtube.search_with_stats(
                query, game_name, max_results,
                published_after=published_after, threshold=GAMEPLAY_MATCH_THRESHOLD,
            )
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Query '{query}' failed: {e}")
            return []

    async def _search(self, query: str, max_results: int) -> List[dict]:
        try:
            return await self.youtube.search(query, max_results)
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Query '{query}' failed: {e}")
            return []

    def _is_since(self, video: VideoStats, cutoff: datetime) -> bool:
        published = parse_timestamp(video.get("published_at"))
        return published is not None and published >= cutoff

    async def mine_gameplay_signal(self, game_name: str) -> GameplaySignal:
        """
        Decides whether real gameplay footage of a game is circulating, which
        only happens once the game is actually out.
        """
        now = self._clock()
        recent_cutoff = days_ago(now, RECENT_VIDEO_DAYS)

        seen_ids: Set[str] = set()
        channels: Set[str] = set()
        video_count = 0
        total_views = 0
        confirmed_videos = 0

        for template in GAMEPLAY_QUERY_TEMPLATES:
            query = template.format(name=game_name)
            for video in await self._search_with_stats(query, game_name, GAMEPLAY_MAX_RESULTS):
                if video["video_id"] in seen_ids:
                    continue
                seen_ids.add(video["video_id"])

                if has_pre_release_marker(video["title"]):
                    logger.debug(f"[{self.__class__.__name__}] Skipping pre-release video: '{video['title']}'")
                    continue
                if not self._is_since(video, recent_cutoff):
                    continue

                video_count += 1
                total_views += video["view_count"]
                channels.add(video["channel_title"])
                if is_confirmed_release_title(video["title"]):
                    confirmed_videos += 1

        has_gameplay = gameplay_verdict(video_count, len(channels), total_views, confirmed_videos)
        confidence = gameplay_confidence(has_gameplay, confirmed_videos, len(channels))
        logger.info(
            f"[{self.__class__.__name__}] Gameplay check for '{game_name}': videos={video_count}, "
            f"channels={len(channels)}, views={total_views}, confirmed={confirmed_videos} -> "
            f"{has_gameplay} ({confidence})"
        )
        return GameplaySignal(
            has_gameplay=has_gameplay,
            video_count=video_count,
            recent_views=total_views,
            confidence=confidence,
        )

    async def mine_trending_score(self, game_name: str) -> Optional[TrendingSignal]:
        """
        Scores recent video activity for a game.
        Returns None when the searches found no videos at all, as opposed to a zero score.
        """
        now = self._clock()
        all_videos: List[VideoStats] = []
        seen_ids: Set[str] = set()

        for template in TRENDING_QUERY_TEMPLATES:
            query = template.format(name=game_name, year=now.year)
            for video in await self._search_with_stats(query, game_name, TRENDING_MAX_RESULTS):
                if video["video_id"] not in seen_ids:
                    seen_ids.add(video["video_id"])
                    all_videos.append(video)

        if not all_videos:
            logger.info(f"[{self.__class__.__name__}] No videos found for '{game_name}'.")
            return None

        recent_cutoff = days_ago(now, RECENT_VIDEO_DAYS)
        very_recent_cutoff = days_ago(now, VERY_RECENT_VIDEO_DAYS)
        recent_videos = [v for v in all_videos if self._is_since(v, recent_cutoff)]
        very_recent_videos = [v for v in recent_videos if self._is_since(v, very_recent_cutoff)]

        gameplay = await self.mine_gameplay_signal(game_name)

        total_views = sum(v["view_count"] for v in recent_videos)
        avg_views = total_views // len(recent_videos) if recent_videos else 0
        trending_score = compute_trending_score(total_views, len(recent_videos), len(very_recent_videos))

        logger.info(f"✅ [{self.__class__.__name__}] Trending score for '{game_name}': {trending_score}")
        return TrendingSignal(
            game_name=game_name,
            total_views=total_views,
            video_count=len(recent_videos),
            recent_video_count=len(very_recent_videos),
            avg_views_per_video=avg_views,
            trending_score=trending_score,
            has_gameplay_videos=gameplay["has_gameplay"],
            videos=recent_videos[:TRENDING_VIDEO_SAMPLE],
        )

    async def _first_relevant(self, queries: Iterable[str], game_name: str) -> Optional[str]:
        name_tokens = normalize_game_name(game_name)
        for query in queries:
            for item in await self._search(query, TRAILER_MAX_RESULTS):
                title = clean_video_title((item.get("snippet") or {}).get("title") or "")
                if is_relevant_video(title, name_tokens, TRAILER_MATCH_THRESHOLD):
                    return (item.get("id") or {}).get("videoId")
        return None

    async def find_trailer(self, game_name: str) -> Optional[str]:
        """Returns the id of the first relevant trailer, trying the most specific phrasing first."""
        queries = [template.format(name=game_name) for template in TRAILER_QUERY_TEMPLATES]
        return await self._first_relevant(queries, game_name)

    async def find_video(self, game_name: str) -> VideoLookup:
        """A trailer when one exists, otherwise any relevant gameplay video."""
        trailer_id = await self.find_trailer(game_name)
        if trailer_id:
            return VideoLookup(video_id=trailer_id, type="trailer")

        year = self._clock().year
        queries = [template.format(name=game_name, year=year) for template in GAMEPLAY_FALLBACK_QUERY_TEMPLATES]
        gameplay_id = await self._first_relevant(queries, game_name)
        if gameplay_id:
            return VideoLookup(video_id=gameplay_id, type="gameplay")
        return VideoLookup(video_id=None, type=None)

    async def batch_trending(
        self,
        games: List[CatalogGame],
        batch_size: int = REFRESH_BATCH_SIZE,
        pause: float = REFRESH_BATCH_PAUSE_SECONDS,
    ) -> Dict[int, TrendingSignal]:
        """
        Mines trending signals for many games: games within a batch run
        concurrently, batches run one after another with a fixed pause to
        stay within the API quota.
        """
        if batch_size < 1:
            logger.warning(f"⚠️ [{self.__class__.__name__}] batch_size={batch_size} mines nothing.")
            return {}

        results: Dict[int, TrendingSignal] = {}
        for start in range(0, len(games), batch_size):
            batch = games[start:start + batch_size]
            signals = await asyncio.gather(*(self.mine_trending_score(game["name"]) for game in batch))
            for game, signal in zip(batch, signals):
                if signal is not None:
                    results[game["id"]] = signal

            if start + batch_size < len(games):
                await asyncio.sleep(pause)

        logger.info(f"[{self.__class__.__name__}] Mined trending signals for {len(results)}/{len(games)} games.")
        return results
