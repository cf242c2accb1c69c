# ===== IMPORTS & DEPENDENCIES =====
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from gamepulse.models.store import PublisherPriority, ReleaseFlag, ReleaseOverride, VideoSignalCache

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

OVERRIDE_FIELDS = ("is_released", "release_date", "is_trending", "trending_score", "detected_via", "notes")

# ===== CORE BUSINESS LOGIC =====
class Database:
    """
    Persists release overrides, the video signal cache and the publisher priority table.

    Reads degrade to "no data" and writes report failure with False instead of
    raising: both stores are best-effort inputs to ranking.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self._create_tables()
        logger.info(f"[{self.__class__.__name__}] Database initialized at: {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        """Returns a new database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self):
        """Creates required tables if they don't exist."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            # is_released is NULL when no manual verdict has been recorded
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS game_overrides (
                    game_id INTEGER PRIMARY KEY,
                    game_name TEXT NOT NULL,
                    is_released INTEGER,
                    release_date TEXT,
                    is_trending INTEGER NOT NULL DEFAULT 0,
                    trending_score REAL NOT NULL DEFAULT 0,
                    detected_via TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS video_signal_cache (
                    game_id INTEGER PRIMARY KEY,
                    game_name TEXT NOT NULL,
                    total_views INTEGER NOT NULL DEFAULT 0,
                    video_count INTEGER NOT NULL DEFAULT 0,
                    avg_views_per_video INTEGER NOT NULL DEFAULT 0,
                    trending_score INTEGER NOT NULL DEFAULT 0,
                    has_gameplay_videos INTEGER NOT NULL DEFAULT 0,
                    last_updated TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS priority_publishers (
                    publisher_name TEXT PRIMARY KEY COLLATE NOCASE,
                    publisher_slug TEXT,
                    priority_score REAL NOT NULL DEFAULT 0
                )
            """)
            conn.commit()
            logger.info(f"[{self.__class__.__name__}] Database tables verified/created.")

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_override(row: sqlite3.Row) -> ReleaseOverride:
        return ReleaseOverride(
            game_id=row["game_id"],
            game_name=row["game_name"],
            is_released=ReleaseFlag.from_db(row["is_released"]),
            release_date=row["release_date"],
            is_trending=bool(row["is_trending"]),
            trending_score=row["trending_score"] or 0,
            detected_via=row["detected_via"],
            notes=row["notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_video_signal(row: sqlite3.Row) -> VideoSignalCache:
        return VideoSignalCache(
            game_id=row["game_id"],
            game_name=row["game_name"],
            total_views=row["total_views"],
            video_count=row["video_count"],
            avg_views_per_video=row["avg_views_per_video"],
            trending_score=row["trending_score"],
            has_gameplay_videos=bool(row["has_gameplay_videos"]),
            last_updated=row["last_updated"],
        )

    def _select_by_ids(self, table: str, game_ids: Iterable[int]) -> List[sqlite3.Row]:
        ids = sorted(set(game_ids))
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        with self._get_connection() as conn:
            cursor = conn.execute(f"SELECT * FROM {table} WHERE game_id IN ({placeholders})", ids)
            return cursor.fetchall()

    # --- Release overrides ---

    def get_override(self, game_id: int) -> Optional[ReleaseOverride]:
        """Returns the override recorded for a game, if any."""
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM game_overrides WHERE game_id = ?", (game_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading override for game {game_id}: {e}", exc_info=True)
            return None
        return self._row_to_override(row) if row else None

    def get_overrides(self, game_ids: Iterable[int]) -> Dict[int, ReleaseOverride]:
        """Returns the overrides for a batch of games, keyed by game id, in one query."""
        try:
            rows = self._select_by_ids("game_overrides", game_ids)
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading overrides: {e}", exc_info=True)
            return {}
        return {row["game_id"]: self._row_to_override(row) for row in rows}

    def upsert_override(self, game_id: int, game_name: str, **updates: Any) -> bool:
        """
        Creates or updates the override of a game (last write wins).
        Only the given fields change; `is_released` accepts a ReleaseFlag.
        """
        unknown = set(updates) - set(OVERRIDE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown override fields: {', '.join(sorted(unknown))}")

        values = dict(updates)
        if "is_released" in values:
            values["is_released"] = ReleaseFlag(values["is_released"]).to_db()
        if "is_trending" in values:
            values["is_trending"] = 1 if values["is_trending"] else 0

        now = self._now()
        columns = ["game_id", "game_name", *values.keys(), "created_at", "updated_at"]
        params = [game_id, game_name, *values.values(), now, now]
        assignments = ", ".join(f"{col} = excluded.{col}" for col in ["game_name", *values.keys(), "updated_at"])
        sql = (
            f"INSERT INTO game_overrides ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT(game_id) DO UPDATE SET {assignments}"
        )
        try:
            with self._get_connection() as conn:
                conn.execute(sql, params)
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error saving override for game {game_id}: {e}", exc_info=True)
            return False
        logger.info(f"[{self.__class__.__name__}] Saved override for game={game_id} ('{game_name}'): {updates}")
        return True

    # --- Video signal cache ---

    def get_video_signal(self, game_id: int) -> Optional[VideoSignalCache]:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM video_signal_cache WHERE game_id = ?", (game_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading video signal for game {game_id}: {e}", exc_info=True)
            return None
        return self._row_to_video_signal(row) if row else None

    def get_video_signals(self, game_ids: Iterable[int]) -> Dict[int, VideoSignalCache]:
        try:
            rows = self._select_by_ids("video_signal_cache", game_ids)
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading video signals: {e}", exc_info=True)
            return {}
        return {row["game_id"]: self._row_to_video_signal(row) for row in rows}

    def upsert_video_signal(
        self,
        game_id: int,
        game_name: str,
        total_views: int,
        video_count: int,
        trending_score: int,
        has_gameplay_videos: bool,
    ) -> bool:
        """Stores the latest video activity of a game, replacing the previous entry."""
        avg_views = total_views // video_count if video_count > 0 else 0
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO video_signal_cache "
                    "(game_id, game_name, total_views, video_count, avg_views_per_video, trending_score, has_gameplay_videos, last_updated) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (game_id, game_name, total_views, video_count, avg_views, trending_score,
                     1 if has_gameplay_videos else 0, self._now())
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error saving video signal for game {game_id}: {e}", exc_info=True)
            return False
        logger.debug(f"[{self.__class__.__name__}] Cached video signal for game={game_id}: score={trending_score}")
        return True

    # --- Publisher priority ---

    def get_priority_publishers(self) -> List[PublisherPriority]:
        """Returns the whole priority table, highest score first."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT publisher_name, publisher_slug, priority_score FROM priority_publishers "
                    "ORDER BY priority_score DESC"
                ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading priority publishers: {e}", exc_info=True)
            return []
        return [PublisherPriority(**dict(row)) for row in rows]

    def get_publisher_priority(self, publisher_name: str) -> float:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT priority_score FROM priority_publishers WHERE publisher_name = ?",
                    (publisher_name,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error reading priority for '{publisher_name}': {e}", exc_info=True)
            return 0
        return row["priority_score"] if row else 0

    def upsert_priority_publisher(self, publisher_name: str, priority_score: float, publisher_slug: Optional[str] = None) -> bool:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO priority_publishers (publisher_name, publisher_slug, priority_score) VALUES (?, ?, ?)",
                    (publisher_name, publisher_slug, priority_score)
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"[{self.__class__.__name__}] Error saving priority for '{publisher_name}': {e}", exc_info=True)
            return False
        logger.info(f"[{self.__class__.__name__}] Publisher '{publisher_name}' priority set to {priority_score}")
        return True
