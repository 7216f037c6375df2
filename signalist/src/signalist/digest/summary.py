import datetime
import json
import logging
from typing import Callable, List, Optional, Sequence

from ..models.news import NormalizedArticle

logger = logging.getLogger(__name__)

# Receives the article list serialized as JSON, returns free text (or nothing)
Summarizer = Callable[[str], Optional[str]]

FALLBACK_SUMMARY = "No market news"

NEWS_SUMMARY_EMAIL_PROMPT = """You are a financial news writer for a daily market email. Summarize the articles below for a retail investor.

Requirements:
- Start with a one-line market overview
- Group related stories; at most 6 bullet points
- Each bullet: bold headline, one or two plain-language sentences, and the source link
- Keep tone neutral and factual; no investment advice
- Output Markdown only

News data (JSON):
{{newsData}}
"""


def serialize_articles(articles: Sequence[NormalizedArticle]) -> str:
    return json.dumps([a.model_dump(mode="json") for a in articles], indent=2)


def build_news_prompt(news_json: str) -> str:
    return NEWS_SUMMARY_EMAIL_PROMPT.replace("{{newsData}}", news_json)


def summarize_news(articles: Sequence[NormalizedArticle], summarizer: Summarizer) -> str:
    """
    Run the summarizer over the serialized articles.
    An empty or missing reply becomes FALLBACK_SUMMARY; summarizer errors propagate.
    """
    text = summarizer(serialize_articles(articles))
    if not text or not text.strip():
        return FALLBACK_SUMMARY
    return text


def markdown_summary(news_json: str) -> Optional[str]:
    """Offline summarizer: a Markdown headline list built from the JSON payload."""
    try:
        items = json.loads(news_json)
    except ValueError as e:
        logger.warning(f"Cannot summarize malformed news payload: {e}")
        return None
    if not isinstance(items, list) or not items:
        return None

    lines: List[str] = ["## Today's Market News", ""]
    for item in items:
        if not isinstance(item, dict):
            continue
        headline = item.get("headline") or "Untitled"
        url = item.get("url") or ""
        source = item.get("source") or "Unknown"
        ts = item.get("datetime")
        when = ""
        if isinstance(ts, (int, float)) and ts > 0:
            when = datetime.datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")
        title = f"[{headline}]({url})" if url else headline
        meta = " | ".join(part for part in (source, item.get("related") or "", when) if part)
        lines.append(f"- **{title}** ({meta})")
        summary = (item.get("summary") or "").strip()
        if summary:
            lines.append(f"  {summary}")
    return "\n".join(lines)
