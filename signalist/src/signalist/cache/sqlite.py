import sqlite3
import json
import logging
import time
from typing import Optional, Any

logger = logging.getLogger(__name__)

class SQLiteCache:
    """
    Key-Value cache backed by SQLite with per-read freshness limits.
    Schema: cache(key TEXT PRIMARY KEY, data TEXT, created_at REAL)
    created_at is stored as UNIX epoch seconds.
    """
    def __init__(self, db_path: str = "signalist_cache.db", *, clock=time.time):
        self.db_path = db_path
        self._clock = clock
        self._init_db()

    def _init_db(self):
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS cache (
                        key TEXT PRIMARY KEY,
                        data TEXT,
                        created_at REAL
                    )
                """)
                conn.commit()
        except Exception as e:
            logger.error(f"Failed to init cache at {self.db_path}: {e}")

    def get(self, key: str, max_age: Optional[float] = None) -> Optional[Any]:
        """
        Retrieve and parse JSON data from cache.
        Entries older than max_age seconds are treated as missing.
        """
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(
                    "SELECT data, created_at FROM cache WHERE key = ?", (key,)
                )
                row = cursor.fetchone()
                if not row:
                    return None
                data, created_at = row
                if max_age is not None and (created_at is None or self._clock() - created_at > max_age):
                    logger.debug(f"Cache expired for {key}")
                    return None
                return json.loads(data)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
        return None

    def put(self, key: str, value: Any):
        """Store data as JSON string."""
        try:
            json_str = json.dumps(value)
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO cache (key, data, created_at)
                    VALUES (?, ?, ?)
                """, (key, json_str, self._clock()))
                conn.commit()
        except Exception as e:
            logger.error(f"Cache put failed for {key}: {e}")
