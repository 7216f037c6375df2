import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ValidationError

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("country", "investment_goals", "risk_tolerance", "preferred_industry")


class WatchlistStore:
    """Users and their watchlists in SQLite."""

    def __init__(self, db_path: str = "signalist.db"):
        self.db_path = Path(db_path)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        email TEXT UNIQUE NOT NULL,
                        name TEXT,
                        country TEXT,
                        investment_goals TEXT,
                        risk_tolerance TEXT,
                        preferred_industry TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS watchlist (
                        user_id INTEGER NOT NULL,
                        symbol TEXT NOT NULL,
                        company TEXT NOT NULL,
                        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (user_id, symbol)
                    )
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_watchlist_user ON watchlist (user_id)")
                conn.commit()
        except Exception as exc:
            logger.error(f"Failed to init watchlist store at {self.db_path}: {exc}")

    def add_user(self, email: str, name: str = "", **profile: Any) -> int:
        """Insert a user, or update name/profile if the email exists. Returns the user id."""
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("email must be a non-empty string")
        values = {k: profile.get(k) for k in _PROFILE_FIELDS}
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (email, name, country, investment_goals, risk_tolerance, preferred_industry)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(email) DO UPDATE SET
                    name = excluded.name,
                    country = COALESCE(excluded.country, users.country),
                    investment_goals = COALESCE(excluded.investment_goals, users.investment_goals),
                    risk_tolerance = COALESCE(excluded.risk_tolerance, users.risk_tolerance),
                    preferred_industry = COALESCE(excluded.preferred_industry, users.preferred_industry)
                """,
                (email, name, *[values[k] for k in _PROFILE_FIELDS]),
            )
            row = conn.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            conn.commit()
        return row["id"]

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = (email or "").strip().lower()
        if not email:
            return None
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return dict(row) if row else None

    def list_users(self) -> List[Dict[str, Any]]:
        """Users eligible for the news email."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, email, name FROM users WHERE email IS NOT NULL AND email != '' ORDER BY id"
            ).fetchall()
        return [dict(r) for r in rows]

    def add_symbol(self, user_id: int, symbol: str, company: str = "") -> bool:
        """Add a ticker to a watchlist. Returns False if it was already there."""
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValidationError("symbol must be a non-empty string")
        company = (company or "").strip() or symbol
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO watchlist (user_id, symbol, company) VALUES (?, ?, ?)",
                (user_id, symbol, company),
            )
            conn.commit()
        return cur.rowcount > 0

    def remove_symbol(self, user_id: int, symbol: str) -> bool:
        symbol = (symbol or "").strip().upper()
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM watchlist WHERE user_id = ? AND symbol = ?",
                (user_id, symbol),
            )
            conn.commit()
        return cur.rowcount > 0

    def get_watchlist(self, user_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT symbol, company, added_at FROM watchlist WHERE user_id = ? ORDER BY added_at, rowid",
                (user_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    def is_in_watchlist(self, user_id: int, symbol: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM watchlist WHERE user_id = ? AND symbol = ?",
                (user_id, (symbol or "").strip().upper()),
            ).fetchone()
        return row is not None

    def get_watchlist_symbols_by_email(self, email: str) -> List[str]:
        """Watchlist tickers for a user; empty on unknown user or any error."""
        if not email:
            return []
        try:
            user = self.get_user_by_email(email)
            if not user:
                return []
            return [
                str(item["symbol"])
                for item in self.get_watchlist(user["id"])
                if item.get("symbol")
            ]
        except Exception as exc:
            logger.error(f"Error fetching watchlist symbols by email: {exc}")
            return []
