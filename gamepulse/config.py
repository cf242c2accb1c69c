# ===== CONFIGURATION & CONSTANTS =====
import os
from datetime import timedelta, timezone

# --- General Settings ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CACHE_DIR = os.getenv("GAMEPULSE_CACHE_DIR", "cache")
DEFAULT_CACHE_TTL = 3600  # 1 hour in seconds
DATABASE_PATH = os.getenv("GAMEPULSE_DB_PATH", "data/gamepulse.db")
HTTP_TIMEOUT_SECONDS = 25

# Every daily rotation flips at midnight IST, regardless of where the request comes from
IST_OFFSET = timezone(timedelta(hours=5, minutes=30))

# --- API Headers ---
COMMON_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36',
    'Accept-Language': 'en-US,en;q=0.9',
    'Accept': 'application/json, text/plain, */*',
    'Accept-Encoding': 'gzip, deflate, br',
    'Connection': 'keep-alive'
}

# --- RAWG Catalog Source ---
RAWG_API_URL = "https://api.rawg.io/api"
RAWG_API_KEY = os.getenv("RAWG_API_KEY", "")
RAWG_CACHE_TTL = 3600

# --- YouTube Data API ---
YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "")
YOUTUBE_CACHE_TTL = 1800

# --- Trending Score Fusion ---
RECENCY_SCORE_30_DAYS = 400
RECENCY_SCORE_60_DAYS = 250
RECENCY_SCORE_90_DAYS = 100
RECENCY_SCORE_CURRENT_YEAR = 50
MOMENTUM_SCORE_CAP = 300
MOMENTUM_SCALE = float(os.getenv("GAMEPULSE_MOMENTUM_SCALE", "10"))
TRENDING_BOOST = 500
RATINGS_THRESHOLD_LOW = 10
TOP_TIER_FRACTION = 0.4
TODAYS_PICK_POOL = 5
TODAYS_PICK_MINING_CANDIDATES = 10
UPCOMING_CANDIDATE_POOL = 12
UPCOMING_ROTATION_DAYS = 3
COMING_SOON_DAYS = 30

# --- Video Signal Mining ---
GAMEPLAY_QUERY_TEMPLATES = [
    "{name} full gameplay",
    "{name} let's play part 1",
    "{name} walkthrough part 1",
    "{name} review gameplay",
]
TRENDING_QUERY_TEMPLATES = [
    "{name} gameplay {year}",
    "{name} review",
    "{name} trailer",
]
TRAILER_QUERY_TEMPLATES = [
    "{name} official trailer",
    "{name} gameplay trailer",
    "{name} game trailer",
    "{name} trailer",
]
GAMEPLAY_FALLBACK_QUERY_TEMPLATES = [
    "{name} gameplay",
    "{name} gameplay {year}",
]

# Titles carrying any of these are footage of an unreleased build
PRE_RELEASE_TERMS = [
    "preview", "demo", "beta", "alpha", "early access", "hands-on", "first look",
    "sneak peek", "announcement", "reveal", "leaked", "before release", "upcoming",
]
CONFIRMED_RELEASE_TERMS = ["part 1", "full", "complete", "100%", "ending"]

TRAILER_MATCH_THRESHOLD = 0.5
GAMEPLAY_MATCH_THRESHOLD = 0.4
TRAILER_MAX_RESULTS = 5
GAMEPLAY_MAX_RESULTS = 8
TRENDING_MAX_RESULTS = 10
SEARCH_WINDOW_DAYS = 30
RECENT_VIDEO_DAYS = 14
VERY_RECENT_VIDEO_DAYS = 7
TRENDING_VIDEO_SAMPLE = 5

# --- Trending Cache Refresh Job ---
REFRESH_BATCH_SIZE = 3
REFRESH_BATCH_PAUSE_SECONDS = 0.3
REFRESH_TRENDING_COUNT = 20
REFRESH_UPCOMING_COUNT = 10
