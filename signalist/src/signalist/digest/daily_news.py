import concurrent.futures
import datetime
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..export.outbox import slugify_email
from ..models.news import NormalizedArticle
from ..news.aggregator import MAX_ARTICLES, NewsAggregator
from ..watchlist.store import WatchlistStore
from .summary import Summarizer, build_news_prompt, serialize_articles, summarize_news

logger = logging.getLogger(__name__)

# sender(email, date, content)
Sender = Callable[[str, str, str], Any]


def collect_user_news(store: WatchlistStore, aggregator: NewsAggregator, email: str) -> List[NormalizedArticle]:
    """
    Watchlist news for one user, falling back to general news when empty.
    Any aggregation failure yields an empty list.
    """
    try:
        symbols = store.get_watchlist_symbols_by_email(email)
        articles = (aggregator.get_news(symbols) or [])[:MAX_ARTICLES]
        if not articles:
            articles = (aggregator.get_news() or [])[:MAX_ARTICLES]
        return articles
    except Exception as e:
        logger.error(f"daily-news: error preparing user news for {email}: {e}")
        return []


def _export_prompt(prompt_dir: Path, date_str: str, email: str, articles: List[NormalizedArticle]) -> None:
    prompt_path = prompt_dir / f"{date_str}_{slugify_email(email)}_prompt.txt"
    try:
        prompt_dir.mkdir(parents=True, exist_ok=True)
        with open(prompt_path, "w") as f:
            f.write(build_news_prompt(serialize_articles(articles)))
    except OSError as e:
        logger.error(f"Failed to write summary prompt for {email} to {prompt_path}: {e}")


def send_daily_news_summary(
    store: WatchlistStore,
    aggregator: NewsAggregator,
    summarizer: Summarizer,
    sender: Sender,
    *,
    max_workers: int = 4,
    today: Optional[datetime.date] = None,
    prompt_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Build and send the personalised daily news email for every user.
    One user's failure never stops the others.
    """
    users = store.list_users()
    if not users:
        return {"success": False, "message": "No users found for news email"}

    date_str = (today or datetime.date.today()).isoformat()

    # Step 1: news per user
    per_user = []
    for user in users:
        articles = collect_user_news(store, aggregator, user["email"])
        per_user.append((user, articles))

    # Step 2: summaries
    summaries = []
    for user, articles in per_user:
        if prompt_dir is not None:
            _export_prompt(prompt_dir, date_str, user["email"], articles)
        try:
            content = summarize_news(articles, summarizer)
        except Exception as e:
            logger.error(f"Failed to summarize news for {user['email']}: {e}")
            content = None
        summaries.append((user, content))

    # Step 3: delivery
    sent = skipped = failed = 0
    to_send = []
    for user, content in summaries:
        if not content:
            skipped += 1
            continue
        to_send.append((user, content))

    if to_send:
        workers = max(1, min(max_workers, len(to_send)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(sender, user["email"], date_str, content): user
                for user, content in to_send
            }
            for fut in concurrent.futures.as_completed(futures):
                user = futures[fut]
                try:
                    fut.result()
                    sent += 1
                except Exception as e:
                    logger.error(f"Failed to send news email to {user['email']}: {e}")
                    failed += 1

    logger.info(f"Daily news: {sent} sent, {skipped} skipped, {failed} failed")
    return {
        "success": True,
        "message": "Daily news summary emails sent successfully",
        "sent": sent,
        "skipped": skipped,
        "failed": failed,
    }
