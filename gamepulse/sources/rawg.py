# ===== IMPORTS & DEPENDENCIES =====
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp

from gamepulse.config import RAWG_API_KEY, RAWG_API_URL, RAWG_CACHE_TTL
from gamepulse.core.base_client import BaseWebClient
from gamepulse.core.cache import TTLCache
from gamepulse.models.game import CatalogGame, GamesResponse, empty_games_response
from gamepulse.utils.dates import date_range, utc_date, utc_now

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

TRENDING_WINDOW_DAYS = 182  # ~6 months
RECENT_WINDOW_DAYS = 30
TRENDING_OVERFETCH = 5

# ===== CORE BUSINESS LOGIC =====
class RawgSource(BaseWebClient):
    """
    Fetches candidate games from the RAWG catalog.
    Every query degrades to an empty result when the catalog is unavailable.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        cache: Optional[TTLCache] = None,
        api_key: str = RAWG_API_KEY,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(session=session, cache=cache if cache is not None else TTLCache(ttl=RAWG_CACHE_TTL))
        self._api_key = api_key
        self._clock = clock

    def _today(self) -> date:
        return utc_date(self._clock())

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        query = {"key": self._api_key}
        query.update({k: str(v) for k, v in (params or {}).items() if v is not None and v != ""})
        return await self._fetch(f"{RAWG_API_URL}{endpoint}", params=query)

    @staticmethod
    def _to_games_response(data: Any) -> GamesResponse:
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            return empty_games_response()
        return GamesResponse(
            count=data.get("count") or 0,
            next=data.get("next"),
            previous=data.get("previous"),
            results=[game for game in data["results"] if isinstance(game, dict) and "id" in game],
        )

    async def fetch_games(self, params: Dict[str, Any]) -> GamesResponse:
        """Runs a `GET /games` query (ordering, dates, page_size, metacritic, genres, tags, ...)."""
        data = await self._get("/games", params)
        if data is None:
            logger.warning(f"⚠️ [{self.__class__.__name__}] No catalog data for query {params}. Returning empty list.")
        response = self._to_games_response(data)
        logger.info(f"[{self.__class__.__name__}] Catalog returned {len(response['results'])} games for {params}")
        return response

    async def fetch_trending_candidates(self, page: int = 1, page_size: int = 12) -> GamesResponse:
        """Most-added games of the last six months, over-fetched so ranking has room to reorder."""
        today = self._today()
        return await self.fetch_games({
            "ordering": "-added,-rating",
            "dates": date_range(today - timedelta(days=TRENDING_WINDOW_DAYS), today),
            "page": page,
            "page_size": page_size * TRENDING_OVERFETCH,
        })

    async def fetch_upcoming_candidates(self, page: int = 1) -> GamesResponse:
        today = self._today()
        return await self.fetch_games({
            "ordering": "-added",
            "dates": date_range(today + timedelta(days=1), date(today.year, 12, 31)),
            "page": page,
            "page_size": 40,
        })

    async def fetch_recent_candidates(self) -> GamesResponse:
        """The pool for today's pick: games added to the catalog in the last 30 days."""
        today = self._today()
        return await self.fetch_games({
            "ordering": "-added,-rating",
            "dates": date_range(today - timedelta(days=RECENT_WINDOW_DAYS), today),
            "page_size": 50,
        })

    async def fetch_year_candidates(self, year: int, until: date) -> GamesResponse:
        return await self.fetch_games({
            "ordering": "-rating,-ratings_count",
            "dates": date_range(date(year, 1, 1), until),
            "page": 1,
            "page_size": 50,
        })

    async def fetch_all_time_greats(self) -> Tuple[List[CatalogGame], List[CatalogGame]]:
        """Returns (legendary 95+, elite 90-94) games by Metacritic score."""
        legendary = await self.fetch_games({"ordering": "-metacritic", "metacritic": "95,100", "page_size": 30})
        elite = await self.fetch_games({"ordering": "-metacritic", "metacritic": "90,94", "page_size": 50})
        return legendary["results"], elite["results"]

    async def fetch_genre(
        self,
        genre_slug: str,
        page: int = 1,
        page_size: int = 20,
        ordering: str = "-rating",
        metacritic: Optional[str] = None,
        year: Optional[int] = None,
    ) -> GamesResponse:
        if not genre_slug:
            logger.warning(f"⚠️ [{self.__class__.__name__}] No genre given. Returning empty list.")
            return empty_games_response()
        params: Dict[str, Any] = {
            "genres": genre_slug,
            "page": page,
            "page_size": page_size,
            "ordering": ordering,
            "metacritic": metacritic,
        }
        if year:
            params["dates"] = date_range(date(int(year), 1, 1), date(int(year), 12, 31))
        return await self.fetch_games(params)

    async def search_games(self, query: str, page: int = 1, page_size: int = 20) -> GamesResponse:
        return await self.fetch_games({"search": query, "page": page, "page_size": page_size})

    async def get_game_details(self, game_id: int) -> Optional[CatalogGame]:
        data = await self._get(f"/games/{game_id}")
        if not isinstance(data, dict) or "id" not in data:
            logger.warning(f"⚠️ [{self.__class__.__name__}] No details found for game {game_id}.")
            return None
        return data
