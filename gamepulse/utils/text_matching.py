# ===== IMPORTS & DEPENDENCIES =====
import logging
import re
from typing import Iterable, Set

from bs4 import BeautifulSoup

from gamepulse.config import CONFIRMED_RELEASE_TERMS, PRE_RELEASE_TERMS, TRAILER_MATCH_THRESHOLD

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

NON_ALNUM_PATTERN = re.compile(r'[^a-z0-9\s]')
MIN_TOKEN_LENGTH = 3

# ===== UTILITY FUNCTIONS =====

def clean_video_title(raw_title: str) -> str:
    """
    Turns a title as delivered by the video API (HTML-escaped, e.g. "Let&#39;s Play")
    into plain text.
    """
    if not raw_title:
        return ""
    if "&" not in raw_title and "<" not in raw_title:
        return raw_title.strip()
    soup = BeautifulSoup(raw_title, "lxml")
    text = soup.get_text(separator=' ', strip=True)
    return re.sub(r'\s\s+', ' ', text)


def normalize_game_name(name: str) -> Set[str]:
    """
    Lowercases, strips punctuation and keeps the words longer than two characters.
    Short words ("of", "II", "a") carry no signal when matching titles.
    """
    if not name:
        return set()
    cleaned = NON_ALNUM_PATTERN.sub('', name.lower())
    return {word for word in cleaned.split() if len(word) >= MIN_TOKEN_LENGTH}


def match_ratio(title: str, name_tokens: Iterable[str]) -> float:
    """Share of the game name's tokens that also appear among the title's tokens."""
    name_tokens = set(name_tokens)
    if not name_tokens:
        return 0.0
    title_tokens = normalize_game_name(title)
    return len(title_tokens & name_tokens) / len(name_tokens)


def is_relevant_video(title: str, name_tokens: Iterable[str], threshold: float = TRAILER_MATCH_THRESHOLD) -> bool:
    name_tokens = set(name_tokens)
    # A name without usable tokens can't be matched against anything
    if not name_tokens:
        return False
    return match_ratio(title, name_tokens) >= threshold


def has_pre_release_marker(title: str) -> bool:
    title_lower = (title or "").lower()
    return any(term in title_lower for term in PRE_RELEASE_TERMS)


def is_confirmed_release_title(title: str) -> bool:
    """Titles like "Part 1", "Full Game" or "Ending" only exist once a game is out."""
    title_lower = (title or "").lower()
    return any(term in title_lower for term in CONFIRMED_RELEASE_TERMS)
