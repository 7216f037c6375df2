import logging
from typing import Iterable, List, Optional

from .errors import SignalistError
from .models.search import StockSearchResult, SymbolMatch
from .providers.finnhub import FinnhubClient

logger = logging.getLogger(__name__)

POPULAR_STOCK_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "NFLX", "ORCL", "CRM",
    "ADBE", "INTC", "AMD", "PYPL", "UBER", "ZOOM", "SPOT", "SQ", "SHOP", "ROKU",
]

POPULAR_LIMIT = 10
MAX_RESULTS = 15


def _popular_matches(client: FinnhubClient) -> List[SymbolMatch]:
    matches = []
    for symbol in POPULAR_STOCK_SYMBOLS[:POPULAR_LIMIT]:
        try:
            profile = client.company_profile(symbol)
        except SignalistError as e:
            logger.warning(f"Profile fetch failed for {symbol}: {e}")
            continue
        if not profile:
            continue
        matches.append(SymbolMatch(
            symbol=symbol,
            name=profile.get("name") or symbol,
            exchange=profile.get("exchange") or "US",
            type="Common Stock",
        ))
    return matches


def _query_matches(client: FinnhubClient, query: str) -> List[SymbolMatch]:
    data = client.symbol_search(query)
    matches = []
    for r in data.get("result") or []:
        if not isinstance(r, dict):
            continue
        symbol = (r.get("symbol") or "").strip().upper()
        if not symbol:
            continue
        matches.append(SymbolMatch(
            symbol=symbol,
            name=r.get("description") or symbol,
            exchange=r.get("displaySymbol") or "US",
            type=r.get("type") or "Stock",
        ))
    return matches


def search_stocks(
    query: Optional[str] = None,
    *,
    client: FinnhubClient,
    watchlist_symbols: Iterable[str] = (),
) -> List[StockSearchResult]:
    """
    Search tickers by free text. A blank query lists popular companies.
    Failures are logged and yield an empty list.
    """
    watched = {s.strip().upper() for s in watchlist_symbols if s}
    q = (query or "").strip()
    try:
        matches = _query_matches(client, q) if q else _popular_matches(client)
    except SignalistError as e:
        logger.error(f"Error in stock search: {e}")
        return []

    return [
        StockSearchResult(**m.model_dump(), is_in_watchlist=m.symbol in watched)
        for m in matches[:MAX_RESULTS]
    ]
