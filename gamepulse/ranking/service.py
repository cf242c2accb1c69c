# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from gamepulse.config import (
    COMING_SOON_DAYS, MOMENTUM_SCALE, RATINGS_THRESHOLD_LOW, TODAYS_PICK_MINING_CANDIDATES,
    UPCOMING_CANDIDATE_POOL, UPCOMING_ROTATION_DAYS,
)
from gamepulse.core.database import Database
from gamepulse.models.game import CatalogGame, GamesResponse, empty_games_response
from gamepulse.models.store import PublisherPriority, VideoSignalCache
from gamepulse.ranking.release import ReleaseResolver
from gamepulse.ranking.scoring import (
    publisher_score_map, score_and_rank, score_pick_candidate, select_todays_pick,
)
from gamepulse.ranking.shuffle import seeded_shuffle
from gamepulse.signals.video_miner import VideoSignalMiner
from gamepulse.sources.rawg import RawgSource
from gamepulse.utils.dates import days_since_epoch, ist_date, ist_date_string, parse_date, utc_date, utc_now, week_seed

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

FEATURED_ELITE_COUNT = 5

# ===== CORE BUSINESS LOGIC =====
class RankingService:
    """
    Builds the ranked game lists shown to users: trending, upcoming, today's
    pick and the all-time greats.

    Each call is stateless; the only shared state is the store. Lists that must
    look the same for everyone (weekly trending order, daily pick, upcoming
    rotation) are derived from the date, not from shared memory.
    """

    def __init__(
        self,
        rawg: RawgSource,
        db: Database,
        miner: Optional[VideoSignalMiner] = None,
        clock: Callable[[], datetime] = utc_now,
        momentum_scale: float = MOMENTUM_SCALE,
    ):
        self.rawg = rawg
        self.db = db
        self.miner = miner
        self._clock = clock
        self._momentum_scale = momentum_scale
        self.resolver = ReleaseResolver(db, miner=miner, clock=clock)

    async def _load_video_signals(self, games: List[CatalogGame]) -> Dict[int, VideoSignalCache]:
        game_ids = [game["id"] for game in games]
        if not game_ids:
            return {}
        try:
            return await asyncio.to_thread(self.db.get_video_signals, game_ids)
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Video cache lookup failed: {e}")
            return {}

    async def _load_publishers(self) -> List[PublisherPriority]:
        try:
            return await asyncio.to_thread(self.db.get_priority_publishers)
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Publisher priority lookup failed: {e}")
            return []

    async def is_game_released(self, game: CatalogGame) -> bool:
        return await self.resolver.is_game_released(game)

    async def get_trending_games(self, page: int = 1, page_size: int = 12) -> GamesResponse:
        """Released games of the last six months ranked by recency, momentum, overrides and video buzz."""
        if page_size < 1:
            logger.warning(f"⚠️ [{self.__class__.__name__}] page_size={page_size} leaves nothing to show.")
            return empty_games_response()

        now = self._clock()
        response = await self.rawg.fetch_trending_candidates(page, page_size)
        candidates = response["results"]

        overrides, video_cache = await asyncio.gather(
            self.resolver.load_overrides(candidates),
            self._load_video_signals(candidates),
        )
        released = await self.resolver.filter_released_games(candidates, overrides, min_ratings_count=0)
        ranked = score_and_rank(
            released, overrides, video_cache,
            week_seed=week_seed(now), page_size=page_size, today=utc_date(now),
            momentum_scale=self._momentum_scale,
        )
        logger.info(f"✅ [{self.__class__.__name__}] Trending: {len(candidates)} candidates, {len(released)} released, {len(ranked)} shown.")
        return GamesResponse(count=response["count"], next=response["next"], previous=response["previous"], results=ranked)

    async def get_upcoming_games(self, page: int = 1, page_size: int = 4) -> GamesResponse:
        """
        Hyped games still to come this year. Games out within 30 days lead, soonest
        first; the rest follow by popularity. The pool is reshuffled every three days.
        """
        if page_size < 1:
            logger.warning(f"⚠️ [{self.__class__.__name__}] page_size={page_size} leaves nothing to show.")
            return empty_games_response()

        now = self._clock()
        today = utc_date(now)
        today_ist = ist_date(now)
        response = await self.rawg.fetch_upcoming_candidates(page)

        seen_ids = set()
        upcoming: List[CatalogGame] = []
        for game in response["results"]:
            released = parse_date(game.get("released"))
            if released is None or released.year != today.year or released <= today:
                continue
            if game.get("tba") or not game.get("background_image") or game["id"] in seen_ids:
                continue
            seen_ids.add(game["id"])
            upcoming.append(game)

        coming_soon_limit = today + timedelta(days=COMING_SOON_DAYS)

        def sort_key(game: CatalogGame):
            released = parse_date(game.get("released"))
            if released <= coming_soon_limit:
                return (0, released.toordinal(), 0)
            return (1, 0, -(game.get("ratings_count") or 0))

        ordered = sorted(upcoming, key=sort_key)
        seed = today_ist.year * 1000 + days_since_epoch(today_ist) // UPCOMING_ROTATION_DAYS
        results = seeded_shuffle(ordered[:UPCOMING_CANDIDATE_POOL], seed)[:page_size]
        return GamesResponse(count=response["count"], next=response["next"], previous=response["previous"], results=results)

    async def _fill_video_cache(self, games: List[CatalogGame], video_cache: Dict[int, VideoSignalCache]) -> bool:
        """Mines and stores trending signals for candidates the cache doesn't know yet."""
        if self.miner is None:
            return False

        updated = False
        for game in games[:TODAYS_PICK_MINING_CANDIDATES]:
            if game["id"] in video_cache:
                continue
            signal = await self.miner.mine_trending_score(game["name"])
            if signal is None:
                continue
            try:
                saved = await asyncio.to_thread(
                    self.db.upsert_video_signal, game["id"], game["name"],
                    signal["total_views"], signal["video_count"],
                    signal["trending_score"], signal["has_gameplay_videos"],
                )
            except Exception as e:
                logger.warning(f"⚠️ [{self.__class__.__name__}] Could not cache trending signal for '{game['name']}': {e}")
                continue
            updated = updated or saved
        return updated

    async def get_todays_pick_game(self) -> Optional[CatalogGame]:
        """
        One game for everyone today: the five best recent releases by publisher
        priority, video buzz and overrides, one of which is chosen by hashing the
        IST date.
        """
        now = self._clock()
        today = utc_date(now)
        today_ist = ist_date_string(now)

        publishers, recent = await asyncio.gather(self._load_publishers(), self.rawg.fetch_recent_candidates())
        publisher_scores = publisher_score_map(publishers)

        overrides = await self.resolver.load_overrides(recent["results"])
        candidates = await self.resolver.filter_released_games(recent["results"], overrides, min_ratings_count=0)

        if not candidates:
            logger.info(f"[{self.__class__.__name__}] No recent releases; falling back to this year's best rated.")
            fallback = await self.rawg.fetch_year_candidates(ist_date(now).year, today)
            overrides = await self.resolver.load_overrides(fallback["results"])
            candidates = await self.resolver.filter_released_games(
                fallback["results"], overrides, min_ratings_count=RATINGS_THRESHOLD_LOW,
            )

        if not candidates:
            logger.warning(f"⚠️ [{self.__class__.__name__}] No candidates for today's pick.")
            return None

        video_cache = await self._load_video_signals(candidates)
        if await self._fill_video_cache(candidates, video_cache):
            video_cache = await self._load_video_signals(candidates)

        scored = [
            score_pick_candidate(game, overrides.get(game["id"]), video_cache.get(game["id"]), publisher_scores)
            for game in candidates
        ]
        pick = select_todays_pick(scored, today_ist)
        if pick:
            logger.info(f"✅ [{self.__class__.__name__}] Today's pick for {today_ist}: '{pick.get('name')}'")
        return pick

    async def get_all_time_greats(self, rng: Optional[random.Random] = None) -> GamesResponse:
        """One legendary (95+) feature plus five elite (90-94) games, in random order."""
        rng = rng or random.Random()
        legendary, elite = await self.rawg.fetch_all_time_greats()
        legendary = await self.resolver.filter_released_games(legendary)
        elite = await self.resolver.filter_released_games(elite)

        legendary = list(legendary)
        elite = list(elite)
        rng.shuffle(legendary)
        rng.shuffle(elite)

        if legendary:
            results = [legendary[0]] + elite[:FEATURED_ELITE_COUNT]
        else:
            results = elite[:FEATURED_ELITE_COUNT + 1]
        return GamesResponse(count=len(results), next=None, previous=None, results=results)
