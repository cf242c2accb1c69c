# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
from typing import Any, Dict, List

from gamepulse.config import REFRESH_BATCH_PAUSE_SECONDS, REFRESH_BATCH_SIZE, REFRESH_TRENDING_COUNT, REFRESH_UPCOMING_COUNT
from gamepulse.core.database import Database
from gamepulse.models.game import CatalogGame
from gamepulse.ranking.service import RankingService
from gamepulse.signals.video_miner import VideoSignalMiner

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# ===== CORE BUSINESS LOGIC =====
class TrendingCacheRefresher:
    """Periodically re-mines video trending signals for the games users are most likely to see."""

    def __init__(
        self,
        ranking: RankingService,
        miner: VideoSignalMiner,
        db: Database,
        batch_size: int = REFRESH_BATCH_SIZE,
        batch_pause: float = REFRESH_BATCH_PAUSE_SECONDS,
    ):
        self.ranking = ranking
        self.miner = miner
        self.db = db
        self.batch_size = batch_size
        self.batch_pause = batch_pause

    async def _collect_games(self) -> List[CatalogGame]:
        """Trending and upcoming games, deduplicated by id (first occurrence wins)."""
        logger.info("--- Step 1: Collecting games to refresh ---")
        trending, upcoming = await asyncio.gather(
            self.ranking.get_trending_games(1, REFRESH_TRENDING_COUNT),
            self.ranking.get_upcoming_games(1, REFRESH_UPCOMING_COUNT),
        )
        unique: Dict[int, CatalogGame] = {}
        for game in trending["results"] + upcoming["results"]:
            unique.setdefault(game["id"], {"id": game["id"], "name": game.get("name", "")})
        return list(unique.values())

    async def run(self) -> Dict[str, Any]:
        logger.info("🚀 Starting trending cache refresh")
        try:
            games = await self._collect_games()
            logger.info(f"--- Step 2: Mining video signals for {len(games)} games ---")
            results = await self.miner.batch_trending(games, batch_size=self.batch_size, pause=self.batch_pause)

            logger.info("--- Step 3: Saving signals to the cache ---")
            saved_count = 0
            for game_id, signal in results.items():
                saved = await asyncio.to_thread(
                    self.db.upsert_video_signal, game_id, signal["game_name"],
                    signal["total_views"], signal["video_count"],
                    signal["trending_score"], signal["has_gameplay_videos"],
                )
                if saved:
                    saved_count += 1
        except Exception as e:
            logger.error(f"❌ Trending cache refresh failed: {e}", exc_info=True)
            return {"success": False, "error": str(e)}

        logger.info(f"🏁 Trending cache refresh finished: {saved_count}/{len(games)} games updated")
        return {
            "success": True,
            "checked": len(games),
            "updated": saved_count,
            "games": [
                {"id": game_id, "name": signal["game_name"], "score": signal["trending_score"],
                 "has_gameplay": signal["has_gameplay_videos"]}
                for game_id, signal in results.items()
            ],
        }
