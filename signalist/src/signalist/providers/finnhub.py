import datetime
import logging
from typing import Any, Dict, List, Optional

import requests

from ..cache.sqlite import SQLiteCache
from ..errors import ConfigurationError, HttpError
from ..http import fetch_json

logger = logging.getLogger(__name__)

BASE_URL = "https://finnhub.io/api/v1"

# Freshness limits (seconds) for each endpoint
COMPANY_NEWS_TTL = 600
GENERAL_NEWS_TTL = 300
SEARCH_TTL = 1800
PROFILE_TTL = 3600


class FinnhubClient:
    """
    Thin Finnhub REST client. Every method returns decoded JSON and raises
    HttpError on failure; normalization is left to callers.
    Reference: https://finnhub.io/docs/api
    """

    def __init__(
        self,
        api_key: str,
        *,
        cache: Optional[SQLiteCache] = None,
        session: Optional[requests.Session] = None,
        timeout: int = 10,
    ):
        if not api_key:
            raise ConfigurationError(
                "FINNHUB_API_KEY is missing or invalid. "
                "Please add it to your .env file."
            )
        self.api_key = api_key
        self.cache = cache
        self.session = session
        self.timeout = timeout

    def _get(self, path: str, params: Dict[str, Any], cache_ttl: Optional[int] = None) -> Any:
        # token goes last to keep the provider's documented query shape
        query = dict(params)
        query["token"] = self.api_key
        return fetch_json(
            f"{BASE_URL}/{path}",
            query,
            cache_ttl=cache_ttl,
            cache=self.cache,
            session=self.session,
            timeout=self.timeout,
        )

    def _get_list(self, path: str, params: Dict[str, Any], cache_ttl: int) -> List[Any]:
        data = self._get(path, params, cache_ttl)
        if not isinstance(data, list):
            raise HttpError(200, f"Expected a JSON array from {path}, got {type(data).__name__}")
        return data

    def company_news(self, symbol: str, start: datetime.date, end: datetime.date) -> List[Any]:
        """
        Company news for one symbol between two calendar dates (inclusive).
        Reference: https://finnhub.io/docs/api/company-news
        """
        params = {
            "symbol": symbol,
            "from": start.isoformat(),
            "to": end.isoformat(),
        }
        return self._get_list("company-news", params, COMPANY_NEWS_TTL)

    def market_news(self, category: str = "general") -> List[Any]:
        """
        Broad market headlines.
        Reference: https://finnhub.io/docs/api/market-news
        """
        return self._get_list("news", {"category": category}, GENERAL_NEWS_TTL)

    def symbol_search(self, query: str) -> Dict[str, Any]:
        data = self._get("search", {"q": query}, SEARCH_TTL)
        return data if isinstance(data, dict) else {}

    def company_profile(self, symbol: str) -> Dict[str, Any]:
        data = self._get("stock/profile2", {"symbol": symbol}, PROFILE_TTL)
        return data if isinstance(data, dict) else {}
