from pydantic import BaseModel


class SymbolMatch(BaseModel):
    """
    Intermediate search hit, built from either a symbol search result or a
    company profile before watchlist state is known.
    """
    symbol: str
    name: str
    exchange: str
    type: str


class StockSearchResult(BaseModel):
    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False
