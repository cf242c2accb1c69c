# ===== IMPORTS & DEPENDENCIES =====
import asyncio
import json
import logging
from typing import Optional, Any, Dict

import aiohttp

from gamepulse.config import COMMON_HEADERS, HTTP_TIMEOUT_SECONDS
from gamepulse.core.cache import TTLCache

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# Query parameters that never take part in a cache key
SECRET_PARAMS = {"key"}

# ===== CORE BUSINESS LOGIC =====
class BaseWebClient:
    """A base class for JSON API clients with response caching and failure isolation."""

    def __init__(self, session: aiohttp.ClientSession, cache: Optional[TTLCache] = None):
        self._session = session
        self._cache = cache
        logger.debug(f"[{self.__class__.__name__}] Initialized (cache: {'on' if cache else 'off'})")

    def _cache_key(self, url: str, params: Optional[Dict[str, Any]]) -> str:
        """Builds a stable cache key from the URL and its non-secret parameters."""
        public_params = {k: v for k, v in (params or {}).items() if k not in SECRET_PARAMS}
        return f"{url}?{json.dumps(public_params, sort_keys=True, default=str)}"

    async def _fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Any]:
        """
        Fetches a JSON document once, serving it from the cache when still fresh.
        Any HTTP, network or decoding failure is logged and reported as None.
        """
        cache_key = self._cache_key(url, params)
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"✅ [{self.__class__.__name__}] Loaded from cache: {url}")
                return cached

        logger.info(f"➡️ [{self.__class__.__name__}] Fetching from network: {url}")
        request_headers = headers or COMMON_HEADERS

        try:
            async with self._session.request(
                'GET', url, params=params, headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
            ) as response:
                response.raise_for_status()
                # content_type=None handles non-standard API content-types
                content = await response.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] HTTP error on {url}: Status {e.status}")
            return None
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Network error on {url}: {type(e).__name__}")
            return None
        except ValueError as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Invalid JSON from {url}: {e}")
            return None
        except Exception as e:
            logger.error(f"❌ [{self.__class__.__name__}] Unexpected error fetching {url}: {e}", exc_info=True)
            return None

        if self._cache is not None and content is not None:
            self._cache.set(cache_key, content)
        return content
