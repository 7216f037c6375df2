import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_PLACEHOLDER_KEYS = {"your_key_here"}

def load_env_file(path: str = ".env"):
    """
    Load environment variables from a .env file into os.environ.
    Does not override existing values.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except Exception as e:
        logger.warning(f"Failed to load .env: {e}")

# Load on import
load_env_file()

def get_finnhub_key() -> Optional[str]:
    """Get the Finnhub API key, or None when it is missing."""
    key = os.environ.get("FINNHUB_API_KEY") or os.environ.get("NEXT_PUBLIC_FINNHUB_API_KEY")
    if key:
        key = key.strip()
    if not key or key in _PLACEHOLDER_KEYS:
        return None
    return key

def get_cache_path() -> str:
    """SQLite file backing the HTTP response cache."""
    return os.environ.get("SIGNALIST_CACHE_DB") or "signalist_cache.db"

def get_db_path() -> str:
    """SQLite file backing users and watchlists."""
    return os.environ.get("SIGNALIST_DB") or "signalist.db"
