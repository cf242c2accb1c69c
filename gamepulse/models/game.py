# ===== TYPES & INTERFACES =====

from typing import TypedDict, List, Optional


class NamedRef(TypedDict, total=False):
    """A catalog reference entity (genre, tag, publisher, ...)."""
    id: int
    name: str
    slug: str


class CatalogGame(TypedDict, total=False):
    """
    A game record as returned by the RAWG catalog API.
    Keys mirror the upstream JSON so results can be passed through untouched;
    `total=False` because list endpoints omit some of them.

    Attributes:
        id (int): Stable catalog identifier, the join key for overrides and caches.
        slug (str): URL slug of the game.
        name (str): Display name, also used as the video search subject.
        released (Optional[str]): ISO release date ('YYYY-MM-DD') or None when unknown.
        tba (bool): True when the catalog marks the release date as "to be announced".
        rating (float): Average user rating (0-5).
        ratings_count (int): Number of user ratings, used for momentum.
        metacritic (Optional[int]): Critic score (0-100).
        publishers (List[NamedRef]): Publishers, matched against the priority table.
        background_image (Optional[str]): Artwork URL, required by some listings.
        playtime (int): Average playtime in hours.
        genres, tags (List[NamedRef]): Classification references.
        platforms (List[dict]): Platform wrappers, passed through.
    """
    id: int
    slug: str
    name: str
    released: Optional[str]
    tba: bool
    rating: float
    ratings_count: int
    metacritic: Optional[int]
    publishers: List[NamedRef]
    background_image: Optional[str]
    playtime: int
    genres: List[NamedRef]
    tags: List[NamedRef]
    platforms: List[dict]


class GamesResponse(TypedDict):
    """A paginated list of games from the catalog."""
    count: int
    next: Optional[str]
    previous: Optional[str]
    results: List[CatalogGame]


def empty_games_response() -> GamesResponse:
    """The neutral value returned whenever the catalog can't be reached."""
    return GamesResponse(count=0, next=None, previous=None, results=[])
