import sys
import json
import click
import logging
from pathlib import Path
from .errors import format_error, ConfigurationError, ValidationError
from .logging import configure_logging
from .config import get_finnhub_key, get_cache_path, get_db_path
from .cache.sqlite import SQLiteCache
from .providers.finnhub import FinnhubClient
from .news.aggregator import NewsAggregator
from .search import search_stocks
from .watchlist.store import WatchlistStore
from .watchlist.loader import load_users, import_users
from .digest.summary import markdown_summary
from .digest.daily_news import send_daily_news_summary
from .digest.welcome import build_welcome_prompt, compose_welcome_intro
from .export.outbox import OutboxSender

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _store() -> WatchlistStore:
    return WatchlistStore(db_path=get_db_path())


def _cache(force: bool):
    # --force skips reads and writes so the provider is always hit
    return None if force else SQLiteCache(db_path=get_cache_path())


def _client(force: bool = False) -> FinnhubClient:
    api_key = get_finnhub_key()
    if not api_key:
        raise ConfigurationError(
            "FINNHUB_API_KEY is missing or invalid. "
            "Please add it to your .env file."
        )
    return FinnhubClient(api_key, cache=_cache(force))


def _split_symbols(symbols):
    return [s for s in (symbols or "").split(",") if s.strip()]


def _require_user(store: WatchlistStore, email: str):
    user = store.get_user_by_email(email)
    if not user:
        raise ValidationError(f"Unknown user: {email}")
    return user


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """signalist: watchlist news digests."""
    configure_logging(verbose=verbose)


@cli.command()
def version():
    """Print version information."""
    _print_json({"version": VERSION})


@cli.command()
@click.option("--symbols", required=False, help="Comma-separated tickers (e.g. AAPL,MSFT); omit for general news")
@click.option("--workers", default=4, show_default=True, type=int, help="Max parallel per-symbol fetches")
@click.option("--force", is_flag=True, help="Bypass cache")
def news(symbols, workers, force):
    """Fetch the aggregated news set for a list of tickers."""
    if workers < 1:
        raise click.BadParameter("--workers must be >= 1.")
    aggregator = NewsAggregator(cache=_cache(force), max_workers=workers)
    articles = aggregator.get_news(_split_symbols(symbols))
    _print_json([a.model_dump(mode="json") for a in articles])


@cli.command()
@click.option("--query", default="", help="Free-text search; blank lists popular stocks")
@click.option("--email", required=False, help="Mark results already on this user's watchlist")
@click.option("--force", is_flag=True, help="Bypass cache")
def search(query, email, force):
    """Search ticker symbols."""
    watched = _store().get_watchlist_symbols_by_email(email) if email else []
    results = search_stocks(query, client=_client(force), watchlist_symbols=watched)
    _print_json([r.model_dump(mode="json") for r in results])


@cli.group()
def users():
    """Manage users."""
    pass


@users.command("add")
@click.option("--email", required=True, help="User email")
@click.option("--name", default="", help="Display name")
@click.option("--country", default=None)
@click.option("--investment-goals", default=None)
@click.option("--risk-tolerance", default=None)
@click.option("--preferred-industry", default=None)
def users_add(email, name, country, investment_goals, risk_tolerance, preferred_industry):
    """Create or update a user."""
    if not email.strip():
        raise click.BadParameter("email must be non-empty.")
    user_id = _store().add_user(
        email,
        name,
        country=country,
        investment_goals=investment_goals,
        risk_tolerance=risk_tolerance,
        preferred_industry=preferred_industry,
    )
    _print_json({"id": user_id, "email": email.strip().lower()})


@cli.group()
def watchlist():
    """Manage a user's watchlist."""
    pass


@watchlist.command("add")
@click.option("--email", required=True, help="User email")
@click.option("--symbol", required=True, help="Ticker symbol")
@click.option("--company", default="", help="Company name (defaults to the symbol)")
def watchlist_add(email, symbol, company):
    """Add a ticker to a watchlist."""
    if not symbol.strip():
        raise click.BadParameter("symbol must be a non-empty ticker.")
    store = _store()
    user = _require_user(store, email)
    added = store.add_symbol(user["id"], symbol, company)
    _print_json({"symbol": symbol.strip().upper(), "added": added})


@watchlist.command("remove")
@click.option("--email", required=True, help="User email")
@click.option("--symbol", required=True, help="Ticker symbol")
def watchlist_remove(email, symbol):
    """Remove a ticker from a watchlist."""
    store = _store()
    user = _require_user(store, email)
    removed = store.remove_symbol(user["id"], symbol)
    _print_json({"symbol": symbol.strip().upper(), "removed": removed})


@watchlist.command("list")
@click.option("--email", required=True, help="User email")
def watchlist_list(email):
    """List a user's watchlist."""
    store = _store()
    user = _require_user(store, email)
    _print_json(store.get_watchlist(user["id"]))


@watchlist.command("import")
@click.option("--path", default="users.yaml", show_default=True, help="Users YAML file")
def watchlist_import(path):
    """Import users and watchlists from YAML."""
    counts = import_users(_store(), load_users(path))
    _print_json(counts)


@cli.command()
@click.option("--out", default="./exports", help="Export root directory")
@click.option("--workers", default=4, show_default=True, type=int, help="Max parallel sends")
@click.option("--prompts", is_flag=True, help="Also write the summarization prompt per user")
@click.option("--force", is_flag=True, help="Bypass cache")
def digest(out, workers, prompts, force):
    """
    Run the daily news digest for every user.
    Summaries are rendered offline and written to the outbox under --out.
    """
    if workers < 1:
        raise click.BadParameter("--workers must be >= 1.")
    logger.info("Starting daily news digest")
    result = send_daily_news_summary(
        _store(),
        NewsAggregator(cache=_cache(force), max_workers=workers),
        markdown_summary,
        OutboxSender(out),
        max_workers=workers,
        prompt_dir=Path(out) / "prompts" if prompts else None,
    )
    _print_json(result)


@cli.command()
@click.option("--email", required=True, help="User email")
def welcome(email):
    """Show the welcome prompt and the intro text for a user."""
    user = _require_user(_store(), email)
    # No model is wired in offline, so the stock intro is used
    intro = compose_welcome_intro(user, lambda prompt: None)
    _print_json({"email": user["email"], "prompt": build_welcome_prompt(user), "intro": intro})


def _print_json(data):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": 1
        }
    }
    click.echo(json.dumps(payload, indent=2, default=str))


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except Exception as e:
        if isinstance(e, click.exceptions.Exit):
            sys.exit(e.exit_code)
        if isinstance(e, click.exceptions.Abort):
            sys.exit(130)

        print(format_error(e))
        sys.exit(1)

if __name__ == "__main__":
    main()
