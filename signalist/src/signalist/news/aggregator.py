import concurrent.futures
import datetime
import logging
from collections import deque
from typing import Callable, Dict, List, Optional, Sequence

from ..cache.sqlite import SQLiteCache
from ..config import get_finnhub_key
from ..errors import ConfigurationError, HttpError, NewsFetchError
from ..models.news import NormalizedArticle
from ..providers.finnhub import FinnhubClient
from .normalize import dedupe_articles, normalize_articles, sort_newest_first

logger = logging.getLogger(__name__)

MAX_ARTICLES = 6
LOOKBACK_DAYS = 5


def clean_symbols(symbols: Optional[Sequence[str]]) -> List[str]:
    """
    Trim and upper-case tickers, dropping empties.
    Order and duplicates are kept; a repeated symbol gets extra round-robin turns.
    """
    return [s.strip().upper() for s in (symbols or []) if s and s.strip()]


def news_window(today: datetime.date) -> tuple:
    """Trailing (from, to) calendar-date window ending today."""
    return today - datetime.timedelta(days=LOOKBACK_DAYS), today


class NewsAggregator:
    """
    Picks a small, fair, de-duplicated set of recent articles for a list of
    tickers, falling back to general market news when none are found.

    All selection state lives inside get_news, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        client: Optional[FinnhubClient] = None,
        *,
        api_key: Optional[str] = None,
        cache: Optional[SQLiteCache] = None,
        max_workers: int = 4,
        today: Callable[[], datetime.date] = datetime.date.today,
    ):
        self._client = client
        self._api_key = api_key
        self._cache = cache
        self.max_workers = max_workers
        self._today = today

    def _resolve_client(self):
        api_key = self._api_key or get_finnhub_key()
        if not api_key:
            logger.error("Failed to fetch news: Finnhub API key is not configured")
            raise ConfigurationError(
                "FINNHUB_API_KEY is missing or invalid. "
                "Please add it to your .env file."
            )
        if self._client is not None:
            return self._client
        return FinnhubClient(api_key, cache=self._cache)

    def get_news(self, symbols: Optional[Sequence[str]] = None) -> List[NormalizedArticle]:
        """
        Return at most MAX_ARTICLES articles, newest first, unique by dedup key.

        Raises ConfigurationError when no API key is configured and
        NewsFetchError when the general feed (or anything outside a single
        symbol's fetch) fails.
        """
        client = self._resolve_client()
        tickers = clean_symbols(symbols)

        try:
            if tickers:
                picked = self._round_robin(client, tickers)
                if picked:
                    return sort_newest_first(picked)[:MAX_ARTICLES]
                logger.info("No symbol news found, falling back to general news")
            return self._general_news(client)
        except Exception as e:
            logger.error(f"Failed to fetch news: {e}")
            raise NewsFetchError("Failed to fetch news") from e

    def _fetch_symbol(self, client, symbol: str, start: datetime.date, end: datetime.date) -> List[NormalizedArticle]:
        try:
            raw = client.company_news(symbol, start, end)
            return sort_newest_first(normalize_articles(raw))
        except HttpError as e:
            logger.warning(f"Company news fetch failed for {symbol}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error fetching news for {symbol}: {e}")
        return []

    def _fetch_per_symbol(self, client, tickers: List[str]) -> Dict[str, List[NormalizedArticle]]:
        start, end = news_window(self._today())
        distinct = list(dict.fromkeys(tickers))
        per_symbol: Dict[str, List[NormalizedArticle]] = {}

        workers = max(1, min(self.max_workers, len(distinct)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._fetch_symbol, client, sym, start, end): sym
                for sym in distinct
            }
            for fut in concurrent.futures.as_completed(futures):
                per_symbol[futures[fut]] = fut.result()
        return per_symbol

    def _round_robin(self, client, tickers: List[str]) -> List[NormalizedArticle]:
        queues = {sym: deque(items) for sym, items in self._fetch_per_symbol(client, tickers).items()}
        seen = set()
        picked = []

        for round_no in range(MAX_ARTICLES):
            queue = queues[tickers[round_no % len(tickers)]]
            while queue:
                candidate = queue.popleft()
                key = candidate.dedup_key()
                if key in seen or not candidate.is_valid():
                    continue
                seen.add(key)
                picked.append(candidate)
                break
        return picked

    def _general_news(self, client) -> List[NormalizedArticle]:
        raw = client.market_news("general")
        general = [a for a in dedupe_articles(normalize_articles(raw)) if a.is_valid()]
        return sort_newest_first(general)[:MAX_ARTICLES]


def get_news(symbols: Optional[Sequence[str]] = None, *, cache: Optional[SQLiteCache] = None) -> List[NormalizedArticle]:
    """Aggregate news with a default aggregator using the configured API key."""
    return NewsAggregator(cache=cache).get_news(symbols)
