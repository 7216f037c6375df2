import tempfile
import textwrap
import unittest
from pathlib import Path
import sys
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "signalist" / "src"
sys.path.insert(0, str(SRC))

from signalist.errors import ValidationError
from signalist.watchlist.loader import import_users, load_users
from signalist.watchlist.store import WatchlistStore


class TestWatchlistStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = WatchlistStore(db_path=str(Path(self._tmp.name) / "signalist.db"))

    def tearDown(self):
        self._tmp.cleanup()

    def test_symbols_by_email(self):
        user_id = self.store.add_user("Jane@Example.com", "Jane")
        self.assertTrue(self.store.add_symbol(user_id, " aapl ", "Apple Inc."))
        self.assertTrue(self.store.add_symbol(user_id, "MSFT"))
        self.assertFalse(self.store.add_symbol(user_id, "AAPL", "Apple again"))

        self.assertEqual(self.store.get_watchlist_symbols_by_email("jane@example.com"), ["AAPL", "MSFT"])
        self.assertTrue(self.store.is_in_watchlist(user_id, "aapl"))
        self.assertEqual(self.store.get_watchlist(user_id)[1]["company"], "MSFT")

    def test_remove_symbol(self):
        user_id = self.store.add_user("jane@example.com")
        self.store.add_symbol(user_id, "AAPL")
        self.assertTrue(self.store.remove_symbol(user_id, "aapl"))
        self.assertFalse(self.store.remove_symbol(user_id, "AAPL"))
        self.assertEqual(self.store.get_watchlist_symbols_by_email("jane@example.com"), [])

    def test_blank_email_or_symbol_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.store.add_user("   ")
        user_id = self.store.add_user("jane@example.com")
        with self.assertRaises(ValidationError):
            self.store.add_symbol(user_id, " ")
        self.assertEqual(self.store.get_watchlist(user_id), [])

    def test_add_user_is_idempotent_by_email(self):
        first = self.store.add_user("jane@example.com", "Jane", country="US")
        second = self.store.add_user("jane@example.com", "Jane D.", risk_tolerance="High")
        self.assertEqual(first, second)
        user = self.store.get_user_by_email("jane@example.com")
        self.assertEqual(user["name"], "Jane D.")
        self.assertEqual(user["country"], "US")
        self.assertEqual(user["risk_tolerance"], "High")
        self.assertEqual(len(self.store.list_users()), 1)

    def test_unknown_or_empty_email_returns_empty(self):
        self.assertEqual(self.store.get_watchlist_symbols_by_email(""), [])
        self.assertEqual(self.store.get_watchlist_symbols_by_email("nobody@example.com"), [])

    def test_lookup_errors_are_swallowed(self):
        with mock.patch.object(self.store, "get_user_by_email", side_effect=RuntimeError("db gone")):
            self.assertEqual(self.store.get_watchlist_symbols_by_email("jane@example.com"), [])


class TestLoadUsers(unittest.TestCase):
    def _write(self, tmpdir, body):
        path = Path(tmpdir) / "users.yaml"
        path.write_text(textwrap.dedent(body))
        return str(path)

    def test_load_and_import(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self._write(tmpdir, """
                users:
                  - email: Jane@Example.com
                    name: Jane
                    risk_tolerance: Medium
                    watchlist: [aapl, " msft "]
                  - email: bob@example.com
            """)
            users = load_users(path)
            self.assertEqual(users[0]["email"], "jane@example.com")
            self.assertEqual(users[0]["watchlist"], ["AAPL", "MSFT"])
            self.assertEqual(users[1]["watchlist"], [])

            store = WatchlistStore(db_path=str(Path(tmpdir) / "signalist.db"))
            counts = import_users(store, users)
            self.assertEqual(counts, {"users": 2, "symbols_added": 2})
            self.assertEqual(store.get_user_by_email("jane@example.com")["risk_tolerance"], "Medium")

    def test_missing_file(self):
        with self.assertRaises(ValidationError):
            load_users("/nonexistent/users.yaml")

    def test_bad_shapes(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            for body in ("users: nope\n", "users:\n  - name: no email\n", "users:\n  - email: a@b.c\n    watchlist: [1]\n"):
                with self.assertRaises(ValidationError):
                    load_users(self._write(tmpdir, body))


if __name__ == "__main__":
    unittest.main()
