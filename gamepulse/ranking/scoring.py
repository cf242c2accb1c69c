# ===== IMPORTS & DEPENDENCIES =====
import logging
import math
from datetime import date
from typing import Dict, List, Mapping, Optional

from gamepulse.config import (
    MOMENTUM_SCALE, MOMENTUM_SCORE_CAP, RECENCY_SCORE_30_DAYS, RECENCY_SCORE_60_DAYS,
    RECENCY_SCORE_90_DAYS, RECENCY_SCORE_CURRENT_YEAR, TODAYS_PICK_POOL, TOP_TIER_FRACTION,
    TRENDING_BOOST,
)
from gamepulse.models.game import CatalogGame
from gamepulse.models.ranking import ScoreComponents, ScoredGame
from gamepulse.models.store import PublisherPriority, ReleaseOverride, VideoSignalCache
from gamepulse.ranking.shuffle import date_seed, seeded_shuffle
from gamepulse.utils.dates import parse_date

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# ===== UTILITY FUNCTIONS =====

def recency_score(released: Optional[date], today: date) -> int:
    """Bucketed bonus for fresh releases."""
    if released is None:
        return 0
    age_days = (today - released).days
    if age_days <= 30:
        return RECENCY_SCORE_30_DAYS
    if age_days <= 60:
        return RECENCY_SCORE_60_DAYS
    if age_days <= 90:
        return RECENCY_SCORE_90_DAYS
    if released.year == today.year:
        return RECENCY_SCORE_CURRENT_YEAR
    return 0


def days_since_release(released: Optional[date], today: date) -> int:
    if released is None:
        return 1
    return max(1, (today - released).days)


def momentum_score(
    ratings_count: int,
    days_since: int,
    scale: float = MOMENTUM_SCALE,
    cap: int = MOMENTUM_SCORE_CAP,
) -> int:
    """Ratings per day since release, scaled and capped."""
    ratings_per_day = (ratings_count or 0) / max(1, days_since)
    return min(cap, math.floor(ratings_per_day * scale))


def override_boost(override: Optional[ReleaseOverride]) -> float:
    if not override:
        return 0
    if override.get("is_trending"):
        return TRENDING_BOOST
    return override.get("trending_score") or 0


def video_trending(entry: Optional[VideoSignalCache]) -> int:
    if not entry:
        return 0
    return entry.get("trending_score") or 0


def publisher_score_map(publishers: List[PublisherPriority]) -> Dict[str, float]:
    return {p["publisher_name"].lower(): p["priority_score"] for p in publishers}


def publisher_boost(game: CatalogGame, publisher_scores: Mapping[str, float]) -> float:
    """The best priority among the game's publishers (names compared case-insensitively)."""
    best = 0
    for publisher in game.get("publishers") or []:
        name = (publisher.get("name") or "").lower()
        best = max(best, publisher_scores.get(name, 0))
    return best


def _scored(game: CatalogGame, components: ScoreComponents) -> ScoredGame:
    return ScoredGame(game=game, components=components, total_score=sum(components.values()))


def rank_scored(scored: List[ScoredGame]) -> List[ScoredGame]:
    """Highest total first; ties keep their input order."""
    return sorted(scored, key=lambda sg: sg["total_score"], reverse=True)

# ===== CORE BUSINESS LOGIC =====

def score_trending_game(
    game: CatalogGame,
    override: Optional[ReleaseOverride],
    video_entry: Optional[VideoSignalCache],
    today: date,
    momentum_scale: float = MOMENTUM_SCALE,
) -> ScoredGame:
    released = parse_date(game.get("released"))
    # Undated games (released only through an override) have no rate to measure
    momentum = 0
    if released is not None:
        momentum = momentum_score(game.get("ratings_count") or 0, days_since_release(released, today), scale=momentum_scale)
    components = ScoreComponents(
        recency=recency_score(released, today),
        momentum=momentum,
        publisher_boost=0,
        video_trending=video_trending(video_entry),
        override_boost=override_boost(override),
    )
    return _scored(game, components)


def score_and_rank(
    games: List[CatalogGame],
    overrides: Mapping[int, ReleaseOverride],
    video_cache: Mapping[int, VideoSignalCache],
    week_seed: int,
    page_size: int,
    today: date,
    momentum_scale: float = MOMENTUM_SCALE,
) -> List[CatalogGame]:
    """
    Ranks games by fused score, pins the top tier and reshuffles the next
    candidates with a weekly seed so the list changes week to week but stays
    stable within a week.
    """
    if page_size < 1:
        logger.warning(f"⚠️ page_size={page_size} leaves nothing to rank.")
        return []

    scored = rank_scored([
        score_trending_game(game, overrides.get(game["id"]), video_cache.get(game["id"]), today, momentum_scale)
        for game in games
    ])

    top_count = math.ceil(page_size * TOP_TIER_FRACTION)
    top_tier = [sg["game"] for sg in scored[:top_count]]
    mid_tier = seeded_shuffle([sg["game"] for sg in scored[top_count:page_size * 2]], week_seed)

    ranked = (top_tier + mid_tier)[:page_size]
    logger.debug(f"Ranked {len(games)} games -> {len(ranked)} (top tier {len(top_tier)}, seed {week_seed})")
    return ranked


def score_pick_candidate(
    game: CatalogGame,
    override: Optional[ReleaseOverride],
    video_entry: Optional[VideoSignalCache],
    publisher_scores: Mapping[str, float],
) -> ScoredGame:
    # Candidates are already limited to recent releases, so recency and momentum are left out
    components = ScoreComponents(
        recency=0,
        momentum=0,
        publisher_boost=publisher_boost(game, publisher_scores),
        video_trending=video_trending(video_entry),
        override_boost=override_boost(override),
    )
    return _scored(game, components)


def select_todays_pick(scored: List[ScoredGame], date_ist: str) -> Optional[CatalogGame]:
    """Picks one of the five best candidates by hashing the IST date, so everyone sees the same game all day."""
    top = [sg["game"] for sg in rank_scored(scored)[:TODAYS_PICK_POOL]]
    if not top:
        return None
    return top[date_seed(date_ist) % len(top)]
