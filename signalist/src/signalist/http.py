import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from .cache.sqlite import SQLiteCache
from .errors import HttpError

logger = logging.getLogger(__name__)

# Query parameters that must never end up in cache keys or logs
_SECRET_PARAMS = {"token"}


def _cache_key(url: str, params: Optional[Dict[str, Any]]) -> str:
    public = [(k, v) for k, v in (params or {}).items() if k not in _SECRET_PARAMS]
    if not public:
        return f"http:{url}"
    return f"http:{url}?{urlencode(public)}"


def fetch_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    *,
    cache_ttl: Optional[int] = None,
    cache: Optional[SQLiteCache] = None,
    session: Optional[requests.Session] = None,
    timeout: int = 10,
) -> Any:
    """
    GET a JSON document.

    When both cache and cache_ttl are given, a stored response younger than
    cache_ttl seconds is returned without touching the network, and fresh
    responses are written back. Raises HttpError on non-2xx status,
    transport failure, or a body that is not JSON.
    """
    key = _cache_key(url, params)
    if cache is not None and cache_ttl:
        cached = cache.get(key, max_age=cache_ttl)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

    getter = session.get if session is not None else requests.get
    try:
        resp = getter(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Request failed for {key}: {e}")
        raise HttpError(None, str(e), {"url": url})

    if not resp.ok:
        logger.warning(f"HTTP {resp.status_code} for {key}")
        raise HttpError(resp.status_code, resp.reason or "", {"url": url})

    try:
        data = resp.json()
    except ValueError as e:
        raise HttpError(resp.status_code, f"Invalid JSON body: {e}", {"url": url})

    if cache is not None and cache_ttl:
        cache.put(key, data)
    return data
