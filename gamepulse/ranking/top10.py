# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from gamepulse.config import RATINGS_THRESHOLD_LOW
from gamepulse.models.game import CatalogGame
from gamepulse.models.ranking import RankingCategory, Top10Theme
from gamepulse.ranking.shuffle import date_seed, seeded_shuffle
from gamepulse.sources.rawg import RawgSource
from gamepulse.utils.dates import date_range, day_of_year, ist_date, ist_date_string, parse_date, utc_date, utc_now

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

TOP10_SIZE = 10

# The rotation cycles through these in order, one per IST calendar day
TOP10_THEMES: List[Top10Theme] = [
    # Horror & Dark
    {"id": "horror", "title": "Top 10 Horror Games", "emoji": "👻", "genre": "horror", "ordering": "-rating", "description": "Games that will keep you up at night"},
    {"id": "horror-2025", "title": "Top 10 Horror Games of 2025", "emoji": "🎃", "genre": "horror", "year": 2025, "ordering": "-rating", "description": "This year's scariest experiences"},
    # Story & Narrative
    {"id": "story", "title": "Top 10 Story-Driven Games", "emoji": "📖", "tag": "story-rich", "ordering": "-rating", "description": "Games with unforgettable narratives"},
    {"id": "emotional", "title": "Top 10 Emotional Journeys", "emoji": "😢", "tag": "emotional", "ordering": "-rating", "description": "Games that will make you feel"},
    # Action & Adventure
    {"id": "action", "title": "Top 10 Action Games", "emoji": "💥", "genre": "action", "ordering": "-rating", "description": "Non-stop adrenaline rush"},
    {"id": "adventure", "title": "Top 10 Adventure Games", "emoji": "🗺️", "genre": "adventure", "ordering": "-rating", "description": "Epic journeys await"},
    {"id": "action-2025", "title": "Top 10 Action Games of 2025", "emoji": "🔥", "genre": "action", "year": 2025, "ordering": "-rating", "description": "This year's best action"},
    # RPG
    {"id": "rpg", "title": "Top 10 RPGs", "emoji": "⚔️", "genre": "role-playing-games-rpg", "ordering": "-rating", "description": "Become the hero you want to be"},
    {"id": "jrpg", "title": "Top 10 JRPGs", "emoji": "🎌", "tag": "jrpg", "ordering": "-rating", "description": "Japanese RPG masterpieces"},
    {"id": "rpg-2025", "title": "Top 10 RPGs of 2025", "emoji": "🛡️", "genre": "role-playing-games-rpg", "year": 2025, "ordering": "-rating", "description": "This year's role-playing adventures"},
    # Open World
    {"id": "openworld", "title": "Top 10 Open World Games", "emoji": "🌍", "tag": "open-world", "ordering": "-rating", "description": "Explore without limits"},
    {"id": "sandbox", "title": "Top 10 Sandbox Games", "emoji": "🏗️", "tag": "sandbox", "ordering": "-rating", "description": "Create your own adventure"},
    # Indie
    {"id": "indie", "title": "Top 10 Indie Gems", "emoji": "💎", "genre": "indie", "ordering": "-rating", "description": "Hidden treasures from indie devs"},
    {"id": "indie-2025", "title": "Top 10 Indie Games of 2025", "emoji": "✨", "genre": "indie", "year": 2025, "ordering": "-rating", "description": "This year's indie highlights"},
    # Multiplayer
    {"id": "multiplayer", "title": "Top 10 Multiplayer Games", "emoji": "👥", "tag": "multiplayer", "ordering": "-rating", "description": "Best with friends"},
    {"id": "coop", "title": "Top 10 Co-op Games", "emoji": "🤝", "tag": "co-op", "ordering": "-rating", "description": "Team up for fun"},
    {"id": "pvp", "title": "Top 10 Competitive Games", "emoji": "🏆", "tag": "competitive", "ordering": "-rating", "description": "Prove you're the best"},
    # Genres
    {"id": "puzzle", "title": "Top 10 Puzzle Games", "emoji": "🧩", "genre": "puzzle", "ordering": "-rating", "description": "Challenge your mind"},
    {"id": "platformer", "title": "Top 10 Platformers", "emoji": "🏃", "genre": "platformer", "ordering": "-rating", "description": "Jump and run classics"},
    {"id": "shooter", "title": "Top 10 Shooters", "emoji": "🔫", "genre": "shooter", "ordering": "-rating", "description": "Aim for the top"},
    {"id": "strategy", "title": "Top 10 Strategy Games", "emoji": "♟️", "genre": "strategy", "ordering": "-rating", "description": "Outsmart your opponents"},
    {"id": "simulation", "title": "Top 10 Simulation Games", "emoji": "🎮", "genre": "simulation", "ordering": "-rating", "description": "Life simulators and more"},
    {"id": "racing", "title": "Top 10 Racing Games", "emoji": "🏎️", "genre": "racing", "ordering": "-rating", "description": "Speed demons unite"},
    {"id": "sports", "title": "Top 10 Sports Games", "emoji": "⚽", "genre": "sports", "ordering": "-rating", "description": "Athletic excellence"},
    {"id": "fighting", "title": "Top 10 Fighting Games", "emoji": "🥊", "genre": "fighting", "ordering": "-rating", "description": "Ready to rumble"},
    # Specific Tags
    {"id": "roguelike", "title": "Top 10 Roguelikes", "emoji": "💀", "tag": "roguelike", "ordering": "-rating", "description": "Die, learn, repeat"},
    {"id": "survival", "title": "Top 10 Survival Games", "emoji": "🏕️", "tag": "survival", "ordering": "-rating", "description": "Stay alive at all costs"},
    {"id": "metroidvania", "title": "Top 10 Metroidvanias", "emoji": "🗝️", "tag": "metroidvania", "ordering": "-rating", "description": "Explore and unlock"},
    {"id": "soulslike", "title": "Top 10 Souls-like Games", "emoji": "🌑", "tag": "souls-like", "ordering": "-rating", "description": "Prepare to die"},
    {"id": "stealth", "title": "Top 10 Stealth Games", "emoji": "🥷", "tag": "stealth", "ordering": "-rating", "description": "Silent but deadly"},
    {"id": "exploration", "title": "Top 10 Exploration Games", "emoji": "🔭", "tag": "exploration", "ordering": "-rating", "description": "Discover the unknown"},
    # Year-based
    {"id": "best-2025", "title": "Best Games of 2025", "emoji": "🌟", "year": 2025, "ordering": "-rating", "description": "This year's finest"},
    {"id": "best-2024", "title": "Best Games of 2024", "emoji": "🏅", "year": 2024, "ordering": "-rating", "description": "Last year's highlights"},
    {"id": "best-2023", "title": "Best Games of 2023", "emoji": "🎖️", "year": 2023, "ordering": "-rating", "description": "2023's greatest hits"},
    # Settings
    {"id": "scifi", "title": "Top 10 Sci-Fi Games", "emoji": "🚀", "tag": "sci-fi", "ordering": "-rating", "description": "Explore the future"},
    {"id": "fantasy", "title": "Top 10 Fantasy Games", "emoji": "🧙", "tag": "fantasy", "ordering": "-rating", "description": "Magic and wonder"},
    {"id": "cyberpunk", "title": "Top 10 Cyberpunk Games", "emoji": "🤖", "tag": "cyberpunk", "ordering": "-rating", "description": "High-tech dystopia"},
    {"id": "postapoc", "title": "Top 10 Post-Apocalyptic Games", "emoji": "☢️", "tag": "post-apocalyptic", "ordering": "-rating", "description": "Survive the end"},
    {"id": "medieval", "title": "Top 10 Medieval Games", "emoji": "🏰", "tag": "medieval", "ordering": "-rating", "description": "Knights and kingdoms"},
    {"id": "anime", "title": "Top 10 Anime-Style Games", "emoji": "🎨", "tag": "anime", "ordering": "-rating", "description": "Beautiful anime aesthetics"},
    # Playstyle
    {"id": "relaxing", "title": "Top 10 Relaxing Games", "emoji": "🧘", "tag": "relaxing", "ordering": "-rating", "description": "Unwind and chill"},
    {"id": "difficult", "title": "Top 10 Most Challenging Games", "emoji": "😤", "tag": "difficult", "ordering": "-rating", "description": "For the hardcore"},
    {"id": "short", "title": "Top 10 Short But Sweet Games", "emoji": "⏱️", "tag": "short", "ordering": "-rating", "description": "Quality over quantity"},
    {"id": "atmospheric", "title": "Top 10 Atmospheric Games", "emoji": "🌌", "tag": "atmospheric", "ordering": "-rating", "description": "Immersive worlds"},
    {"id": "beautiful", "title": "Top 10 Most Beautiful Games", "emoji": "🖼️", "tag": "beautiful", "ordering": "-rating", "description": "Visual masterpieces"},
    # Evergreen
    {"id": "classic", "title": "Top 10 Classic Games", "emoji": "🕹️", "tag": "classic", "ordering": "-rating", "description": "Timeless legends"},
    {"id": "underrated", "title": "Top 10 Underrated Gems", "emoji": "💠", "tag": "hidden-gem", "ordering": "-added", "description": "Overlooked masterpieces"},
    {"id": "free", "title": "Top 10 Free-to-Play Games", "emoji": "🆓", "tag": "free-to-play", "ordering": "-rating", "description": "No cost, all fun"},
    {"id": "singleplayer", "title": "Top 10 Single-Player Games", "emoji": "🎯", "tag": "singleplayer", "ordering": "-rating", "description": "Solo adventures"},
]

# ===== UTILITY FUNCTIONS =====

def get_todays_theme(now: Optional[datetime] = None) -> Top10Theme:
    """Theme of the current IST day: day_of_year mod len(TOP10_THEMES)."""
    today = ist_date(now or utc_now())
    return TOP10_THEMES[day_of_year(today) % len(TOP10_THEMES)]


def build_top10_params(theme: Top10Theme) -> Dict[str, Any]:
    """Catalog query parameters for a theme."""
    params: Dict[str, Any] = {
        "page_size": TOP10_SIZE,
        "ordering": theme.get("ordering") or "-rating",
    }
    if theme.get("genre"):
        params["genres"] = theme["genre"]
    if theme.get("tag"):
        params["tags"] = theme["tag"]
    if theme.get("year"):
        year = theme["year"]
        params["dates"] = date_range(date(year, 1, 1), date(year, 12, 31))
    # Only games with a critic score
    params["metacritic"] = "1,100"
    return params


def should_refresh_rankings(last_updated: str, now: Optional[datetime] = None) -> bool:
    """Rankings go stale at midnight IST."""
    return last_updated != ist_date_string(now or utc_now())

# ===== CORE BUSINESS LOGIC =====
class Top10Service:
    """Daily Top-10 lists. Every list is a pure function of the IST date and the catalog's answer."""

    def __init__(self, rawg: RawgSource, clock: Callable[[], datetime] = utc_now):
        self.rawg = rawg
        self._clock = clock

    def _daily_seed(self) -> int:
        return date_seed(ist_date_string(self._clock()))

    async def get_theme_games(self, theme: Optional[Top10Theme] = None) -> List[CatalogGame]:
        theme = theme or get_todays_theme(self._clock())
        response = await self.rawg.fetch_games(build_top10_params(theme))
        logger.info(f"[{self.__class__.__name__}] Theme '{theme['id']}' -> {len(response['results'])} games")
        return response["results"][:TOP10_SIZE]

    async def get_todays_top10_games(self) -> List[CatalogGame]:
        """Well-rated releases of the last 30 days, in a daily shuffled order."""
        today = utc_date(self._clock())
        response = await self.rawg.fetch_games({
            "ordering": "-rating,-ratings_count",
            "dates": date_range(today - timedelta(days=30), today),
            "page_size": 50,
            "metacritic": "70,100",
        })
        valid_games = [
            game for game in response["results"]
            if game.get("background_image")
            and (game.get("rating") or 0) >= 3.5
            and (game.get("ratings_count") or 0) >= RATINGS_THRESHOLD_LOW
            and not game.get("tba")
        ]
        return seeded_shuffle(valid_games[:30], self._daily_seed())[:TOP10_SIZE]

    async def get_top10_games_of_year(self, year: Optional[int] = None) -> List[CatalogGame]:
        today = utc_date(self._clock())
        year = year or today.year
        response = await self.rawg.fetch_games({
            "ordering": "-metacritic,-rating",
            "dates": date_range(date(year, 1, 1), date(year, 12, 31)),
            "page_size": 50,
            "metacritic": "80,100",
        })

        def is_valid(game: CatalogGame) -> bool:
            released = parse_date(game.get("released"))
            return bool(
                game.get("background_image")
                and (game.get("metacritic") or 0) >= 80
                and not game.get("tba")
                and released is not None and released <= today
            )

        ranked = sorted(filter(is_valid, response["results"]), key=lambda g: g.get("metacritic") or 0, reverse=True)
        return seeded_shuffle(ranked[:20], self._daily_seed())[:TOP10_SIZE]

    async def get_top10_horror_games(self, year: int) -> List[CatalogGame]:
        response = await self.rawg.fetch_games({
            "ordering": "-metacritic,-rating",
            "dates": date_range(date(year, 1, 1), date(year, 12, 31)),
            "tags": "horror",
            "page_size": 50,
        })
        valid_games = [
            game for game in response["results"]
            if game.get("background_image") and (game.get("rating") or 0) >= 3.0 and not game.get("tba")
        ]
        return seeded_shuffle(valid_games[:20], self._daily_seed())[:TOP10_SIZE]

    async def get_all_rankings(self) -> List[RankingCategory]:
        now = self._clock()
        today_ist = ist_date_string(now)
        current_year = ist_date(now).year
        horror_year = current_year - 1

        todays_top10, top_of_year, horror = await asyncio.gather(
            self.get_todays_top10_games(),
            self.get_top10_games_of_year(current_year),
            self.get_top10_horror_games(horror_year),
        )
        return [
            RankingCategory(id="todays-top-10", title="Today's Top 10", subtitle="Most popular games right now",
                            icon="🔥", games=todays_top10, last_updated=today_ist),
            RankingCategory(id=f"top-{current_year}", title=f"Best of {current_year}",
                            subtitle=f"Top rated games of {current_year}", icon="🏆",
                            games=top_of_year, last_updated=today_ist),
            RankingCategory(id=f"horror-{horror_year}", title=f"Horror Gems {horror_year}",
                            subtitle=f"Best horror games of {horror_year}", icon="👻",
                            games=horror, last_updated=today_ist),
        ]
