# ===== IMPORTS & DEPENDENCIES =====
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp

from gamepulse.config import GAMEPLAY_MATCH_THRESHOLD, YOUTUBE_API_KEY, YOUTUBE_API_URL, YOUTUBE_CACHE_TTL
from gamepulse.core.base_client import BaseWebClient
from gamepulse.core.cache import TTLCache
from gamepulse.models.signals import VideoStats
from gamepulse.utils.dates import rfc3339
from gamepulse.utils.text_matching import clean_video_title, is_relevant_video, normalize_game_name

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# ===== CORE BUSINESS LOGIC =====
class YouTubeClient(BaseWebClient):
    """Thin client over the YouTube Data API v3 `search` and `videos` endpoints."""

    def __init__(self, session: aiohttp.ClientSession, cache: Optional[TTLCache] = None, api_key: str = YOUTUBE_API_KEY):
        super().__init__(session=session, cache=cache if cache is not None else TTLCache(ttl=YOUTUBE_CACHE_TTL))
        self._api_key = api_key

    async def search(
        self,
        query: str,
        max_results: int,
        order: Optional[str] = None,
        published_after: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Returns the raw search items for a query, or [] on any failure."""
        params: Dict[str, Any] = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
            "key": self._api_key,
        }
        if order:
            params["order"] = order
        if published_after:
            params["publishedAfter"] = rfc3339(published_after)

        data = await self._fetch(f"{YOUTUBE_API_URL}/search", params=params)
        if not isinstance(data, dict):
            return []
        items = data.get("items") or []
        logger.debug(f"[{self.__class__.__name__}] '{query}' -> {len(items)} results")
        return [item for item in items if isinstance(item, dict)]

    async def video_statistics(self, video_ids: List[str]) -> List[Dict[str, Any]]:
        if not video_ids:
            return []
        params = {"part": "statistics,snippet", "id": ",".join(video_ids), "key": self._api_key}
        data = await self._fetch(f"{YOUTUBE_API_URL}/videos", params=params)
        if not isinstance(data, dict):
            return []
        return [item for item in data.get("items") or [] if isinstance(item, dict)]

    @staticmethod
    def _to_video_stats(item: Dict[str, Any]) -> VideoStats:
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        try:
            view_count = int(statistics.get("viewCount") or 0)
        except (TypeError, ValueError):
            view_count = 0
        return VideoStats(
            video_id=str(item.get("id") or ""),
            title=clean_video_title(snippet.get("title") or ""),
            view_count=view_count,
            published_at=snippet.get("publishedAt") or "",
            channel_title=snippet.get("channelTitle") or "",
        )

    async def search_with_stats(
        self,
        query: str,
        game_name: str,
        max_results: int,
        published_after: Optional[datetime] = None,
        threshold: float = GAMEPLAY_MATCH_THRESHOLD,
    ) -> List[VideoStats]:
        """
        Searches by view count, keeps the results whose title matches the game and
        joins them with their statistics.
        """
        items = await self.search(query, max_results, order="viewCount", published_after=published_after)
        if not items:
            return []

        name_tokens = normalize_game_name(game_name)
        relevant_ids = []
        for item in items:
            title = clean_video_title((item.get("snippet") or {}).get("title") or "")
            video_id = (item.get("id") or {}).get("videoId")
            if video_id and is_relevant_video(title, name_tokens, threshold):
                relevant_ids.append(video_id)

        if not relevant_ids:
            logger.debug(f"[{self.__class__.__name__}] No relevant videos for '{query}'")
            return []

        stats_items = await self.video_statistics(relevant_ids)
        return [self._to_video_stats(item) for item in stats_items if item.get("id")]
