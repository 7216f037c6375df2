from pathlib import Path
from typing import Any, Dict, List
import yaml
from ..errors import ValidationError
from .store import WatchlistStore

_PROFILE_KEYS = ("country", "investment_goals", "risk_tolerance", "preferred_industry")


def load_users(path: str = "users.yaml") -> List[Dict[str, Any]]:
    """
    Load users and their watchlists from YAML.
    Expected shape:
      users:
        - email: jane@example.com
          name: Jane
          risk_tolerance: Medium
          watchlist: [AAPL, MSFT]
    """
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Users file not found: {path}")

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid users YAML: {e}")

    users = data.get("users") if isinstance(data, dict) else None
    if not isinstance(users, list):
        raise ValidationError("Users file must contain a 'users' list.")

    out = []
    for idx, entry in enumerate(users):
        if not isinstance(entry, dict):
            raise ValidationError(f"users[{idx}] must be an object.")
        email = entry.get("email")
        if not isinstance(email, str) or not email.strip():
            raise ValidationError(f"users[{idx}].email must be a non-empty string.")

        watchlist = entry.get("watchlist") or []
        if not isinstance(watchlist, list):
            raise ValidationError(f"users[{idx}].watchlist must be a list.")
        symbols = []
        for s in watchlist:
            if not isinstance(s, str) or not s.strip():
                raise ValidationError("All watchlist symbols must be non-empty strings.")
            symbols.append(s.strip().upper())

        user = {
            "email": email.strip().lower(),
            "name": entry.get("name") or "",
            "watchlist": symbols,
        }
        for key in _PROFILE_KEYS:
            if entry.get(key) is not None:
                user[key] = str(entry[key])
        out.append(user)

    return out


def import_users(store: WatchlistStore, users: List[Dict[str, Any]]) -> Dict[str, int]:
    """Write loaded users into the store. Returns counts of users and new symbols."""
    added = 0
    for user in users:
        profile = {k: user[k] for k in _PROFILE_KEYS if k in user}
        user_id = store.add_user(user["email"], user.get("name", ""), **profile)
        for symbol in user.get("watchlist", []):
            if store.add_symbol(user_id, symbol):
                added += 1
    return {"users": len(users), "symbols_added": added}
