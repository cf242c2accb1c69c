# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from gamepulse.config import RATINGS_THRESHOLD_LOW
from gamepulse.core.database import Database
from gamepulse.models.game import CatalogGame
from gamepulse.models.ranking import ReleaseDecision
from gamepulse.models.signals import no_gameplay_signal
from gamepulse.models.store import ReleaseFlag, ReleaseOverride
from gamepulse.signals.video_miner import VideoSignalMiner
from gamepulse.utils.dates import parse_date, utc_date, utc_now

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

VIDEO_HEURISTIC_SOURCE = "video-heuristic"

# Catalog verdicts that the single-game path may still overturn with video evidence
HEURISTIC_ELIGIBLE_RULES = {"catalog-tba", "catalog-no-date", "catalog-future"}

# ===== UTILITY FUNCTIONS =====

def _decision(status: ReleaseFlag, rule: str) -> ReleaseDecision:
    return ReleaseDecision(status=status, rule=rule)


def resolve_released(
    game: CatalogGame,
    override: Optional[ReleaseOverride],
    today: date,
    min_ratings_count: int = 0,
) -> ReleaseDecision:
    """
    Applies the release rules in order; the first one that matches decides.

    Overrides always beat catalog data. A catalog release date in the past only
    counts when the game has at least `min_ratings_count` ratings, which weeds
    placeholder entries out of listings.
    """
    if override is not None:
        flag = override.get("is_released", ReleaseFlag.UNSET)
        if flag is ReleaseFlag.RELEASED:
            return _decision(ReleaseFlag.RELEASED, "override-released")
        if flag is ReleaseFlag.NOT_RELEASED:
            return _decision(ReleaseFlag.NOT_RELEASED, "override-not-released")
        override_date = parse_date(override.get("release_date"))
        if override_date is not None and override_date <= today:
            return _decision(ReleaseFlag.RELEASED, "override-release-date")

    if game.get("tba"):
        return _decision(ReleaseFlag.NOT_RELEASED, "catalog-tba")

    released = parse_date(game.get("released"))
    if released is None:
        return _decision(ReleaseFlag.NOT_RELEASED, "catalog-no-date")

    if released <= today:
        if (game.get("ratings_count") or 0) >= min_ratings_count:
            return _decision(ReleaseFlag.RELEASED, "catalog-released")
        return _decision(ReleaseFlag.NOT_RELEASED, "catalog-below-ratings-floor")

    return _decision(ReleaseFlag.NOT_RELEASED, "catalog-future")

# ===== CORE BUSINESS LOGIC =====
class ReleaseResolver:
    """Decides whether catalog games are actually out, for single pages and for listings."""

    def __init__(self, db: Database, miner: Optional[VideoSignalMiner] = None, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.miner = miner
        self._clock = clock

    def _today(self) -> date:
        return utc_date(self._clock())

    async def _load_override(self, game_id: int) -> Optional[ReleaseOverride]:
        try:
            return await asyncio.to_thread(self.db.get_override, game_id)
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Override lookup failed for game {game_id}: {e}")
            return None

    async def load_overrides(self, games: List[CatalogGame]) -> Dict[int, ReleaseOverride]:
        """One store lookup for a whole list of games."""
        game_ids = [game["id"] for game in games]
        if not game_ids:
            return {}
        try:
            return await asyncio.to_thread(self.db.get_overrides, game_ids)
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Batch override lookup failed: {e}")
            return {}

    async def _record_detection(self, game: CatalogGame) -> None:
        try:
            saved = await asyncio.to_thread(
                self.db.upsert_override, game["id"], game.get("name", ""),
                is_released=ReleaseFlag.RELEASED, detected_via=VIDEO_HEURISTIC_SOURCE,
            )
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Could not record detected release of '{game.get('name')}': {e}")
            return
        if not saved:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Detected release of '{game.get('name')}' was not saved.")

    async def is_game_released(self, game: CatalogGame) -> bool:
        """
        Single-game check (detail pages). No ratings floor applies here, and when
        the catalog says "not yet" the video heuristic gets the final word. A
        positive detection is stored as an override so later calls stop at rule 1.
        """
        override = await self._load_override(game["id"])
        decision = resolve_released(game, override, self._today())
        logger.debug(f"[{self.__class__.__name__}] '{game.get('name')}': {decision['rule']}")

        if decision["status"] is ReleaseFlag.RELEASED:
            return True
        if decision["rule"] not in HEURISTIC_ELIGIBLE_RULES or self.miner is None:
            return False

        try:
            signal = await self.miner.mine_gameplay_signal(game.get("name", ""))
        except Exception as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Gameplay check failed for '{game.get('name')}': {e}")
            signal = no_gameplay_signal()

        if not signal["has_gameplay"]:
            return False

        logger.info(f"✅ [{self.__class__.__name__}] Gameplay footage shows '{game.get('name')}' is out ({signal['confidence']}).")
        await self._record_detection(game)
        return True

    async def filter_released_games(
        self,
        games: List[CatalogGame],
        overrides: Optional[Dict[int, ReleaseOverride]] = None,
        min_ratings_count: int = RATINGS_THRESHOLD_LOW,
    ) -> List[CatalogGame]:
        """
        Keeps only released games, in their original order. Never consults the
        video heuristic, so a list costs at most one store lookup.
        """
        if overrides is None:
            overrides = await self.load_overrides(games)
        today = self._today()

        released = [
            game for game in games
            if resolve_released(game, overrides.get(game["id"]), today, min_ratings_count)["status"] is ReleaseFlag.RELEASED
        ]
        logger.debug(f"[{self.__class__.__name__}] {len(released)}/{len(games)} games are released.")
        return released
