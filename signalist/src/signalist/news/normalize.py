import logging
from typing import Any, Iterable, List

import pydantic

from ..errors import ValidationError
from ..models.news import Article, NormalizedArticle

logger = logging.getLogger(__name__)


def normalize_article(raw: Any) -> NormalizedArticle:
    """
    Turn a raw Finnhub record into a NormalizedArticle.

    Missing optional fields default to "" or 0, a missing datetime included.
    Raises ValidationError when the record is not an object, has mistyped
    fields, has a NaN timestamp, or has no distinguishing key.
    """
    if isinstance(raw, Article):
        article = raw
    elif isinstance(raw, dict):
        try:
            article = Article.model_validate(raw)
        except pydantic.ValidationError as e:
            raise ValidationError("Malformed article", {"errors": e.errors(include_url=False)})
    else:
        raise ValidationError(f"Article must be an object, got {type(raw).__name__}")

    normalized = NormalizedArticle(
        id=article.id or 0,
        headline=article.headline or "",
        summary=article.summary or "",
        source=article.source or "",
        url=article.url or "",
        datetime=article.datetime if article.datetime is not None else 0,
        category=article.category or "",
        related=article.related or "",
        image=article.image,
    )
    if not normalized.is_valid():
        raise ValidationError("Article has no usable key or timestamp")
    return normalized


def normalize_articles(items: Iterable[Any]) -> List[NormalizedArticle]:
    """Normalize a feed, silently dropping records that fail validation."""
    out = []
    dropped = 0
    for raw in items:
        try:
            out.append(normalize_article(raw))
        except ValidationError:
            dropped += 1
    if dropped:
        logger.debug(f"Dropped {dropped} malformed or invalid articles")
    return out


def dedupe_articles(items: Iterable[NormalizedArticle]) -> List[NormalizedArticle]:
    """First occurrence of each dedup key wins; order is preserved."""
    seen = set()
    out = []
    for item in items:
        key = item.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def sort_newest_first(items: Iterable[NormalizedArticle]) -> List[NormalizedArticle]:
    return sorted(items, key=lambda a: a.datetime, reverse=True)
