# ===== TYPES & INTERFACES =====

from typing import TypedDict, List

from gamepulse.models.game import CatalogGame
from gamepulse.models.store import ReleaseFlag


class ScoreComponents(TypedDict):
    recency: float
    momentum: float
    publisher_boost: float
    video_trending: float
    override_boost: float


class ScoredGame(TypedDict):
    """A game with its per-signal scores; lives only for one ranking call."""
    game: CatalogGame
    components: ScoreComponents
    total_score: float


class ReleaseDecision(TypedDict):
    """The release verdict and the name of the single rule that produced it."""
    status: ReleaseFlag
    rule: str


class Top10Theme(TypedDict, total=False):
    """
    One entry of the daily Top-10 rotation.
    `genre`, `tag` and `year` are optional catalog filters; `ordering` defaults to '-rating'.
    """
    id: str
    title: str
    emoji: str
    genre: str
    tag: str
    year: int
    ordering: str
    description: str


class RankingCategory(TypedDict):
    id: str
    title: str
    subtitle: str
    icon: str
    games: List[CatalogGame]
    last_updated: str
