import math
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr

Timestamp = Union[StrictInt, StrictFloat]


class Article(BaseModel):
    """
    Raw Finnhub news record, as returned by company-news and news.
    Every field may be absent; a field with the wrong JSON type fails validation.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[StrictInt] = None
    headline: Optional[StrictStr] = None
    summary: Optional[StrictStr] = None
    source: Optional[StrictStr] = None
    url: Optional[StrictStr] = None
    datetime: Optional[Timestamp] = None  # UNIX epoch seconds
    category: Optional[StrictStr] = None
    related: Optional[StrictStr] = None
    image: Optional[StrictStr] = None


class NormalizedArticle(BaseModel):
    """
    Article with defaults filled in. image stays optional.
    """
    id: int = 0
    headline: str = ""
    summary: str = ""
    source: str = ""
    url: str = ""
    datetime: Union[int, float] = 0
    category: str = ""
    related: str = ""
    image: Optional[str] = None

    def has_key(self) -> bool:
        return self.id > 0 or bool(self.url) or bool(self.headline)

    def is_valid(self) -> bool:
        """Has a distinguishing key and a usable timestamp."""
        if not self.has_key():
            return False
        return isinstance(self.datetime, (int, float)) and not math.isnan(self.datetime)

    def dedup_key(self) -> str:
        if self.id > 0:
            return str(self.id)
        if self.url:
            return self.url
        if self.headline:
            return self.headline
        return f"{self.datetime}-{self.source or 'unknown'}"
