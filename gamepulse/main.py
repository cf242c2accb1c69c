# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
import os

import aiohttp

# --- Configuration ---
from gamepulse.config import CACHE_DIR, DATABASE_PATH, LOG_LEVEL, RAWG_CACHE_TTL, YOUTUBE_CACHE_TTL

# --- Core Components ---
from gamepulse.core.cache import TTLCache
from gamepulse.core.database import Database

# --- Data Sources ---
from gamepulse.sources.rawg import RawgSource
from gamepulse.sources.youtube import YouTubeClient

# --- Signals & Ranking ---
from gamepulse.signals.video_miner import VideoSignalMiner
from gamepulse.ranking.service import RankingService
from gamepulse.ranking.top10 import get_todays_theme
from gamepulse.jobs.update_trending import TrendingCacheRefresher

# ===== CONFIGURATION & CONSTANTS =====
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

# ===== INITIALIZATION & STARTUP =====
async def main():
    """Refreshes the video trending cache once, then reports today's theme and pick. Meant to run from cron."""
    db = Database(DATABASE_PATH)

    async with aiohttp.ClientSession() as session:
        rawg = RawgSource(session, cache=TTLCache(ttl=RAWG_CACHE_TTL, cache_dir=os.path.join(CACHE_DIR, "rawg")))
        youtube = YouTubeClient(session, cache=TTLCache(ttl=YOUTUBE_CACHE_TTL, cache_dir=os.path.join(CACHE_DIR, "youtube")))
        miner = VideoSignalMiner(youtube)
        ranking = RankingService(rawg, db, miner)
        refresher = TrendingCacheRefresher(ranking, miner, db)

        try:
            summary = await refresher.run()
            logger.info(f"Refresh summary: checked={summary.get('checked')}, updated={summary.get('updated')}")

            theme = get_todays_theme()
            logger.info(f"{theme['emoji']} Today's theme: {theme['title']}")

            pick = await ranking.get_todays_pick_game()
            logger.info(f"⭐ Today's pick: {pick['name'] if pick else 'none'}")
        except Exception as e:
            logger.critical(f"🔥 A critical error occurred while refreshing rankings: {e}", exc_info=True)

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
