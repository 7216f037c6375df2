import datetime
import json
import tempfile
import unittest
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "signalist" / "src"
sys.path.insert(0, str(SRC))

from signalist.digest.daily_news import collect_user_news, send_daily_news_summary
from signalist.digest.summary import FALLBACK_SUMMARY, build_news_prompt, markdown_summary, summarize_news
from signalist.digest.welcome import FALLBACK_WELCOME_INTRO, build_welcome_prompt, compose_welcome_intro
from signalist.errors import NewsFetchError
from signalist.export.outbox import OutboxSender
from signalist.models.news import NormalizedArticle
from signalist.watchlist.store import WatchlistStore


def _articles(prefix, count, ts=1_760_000_000):
    return [
        NormalizedArticle(
            id=i + 1,
            headline=f"{prefix} story {i + 1}",
            url=f"https://example.com/{prefix}/{i + 1}",
            source="Example Wire",
            datetime=ts - i,
        )
        for i in range(count)
    ]


class FakeAggregator:
    """Maps a tuple of symbols to a result list or an exception."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def get_news(self, symbols=None):
        key = tuple(symbols or ())
        self.calls.append(key)
        result = self.results.get(key, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class RecordingSender:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.sent = []

    def __call__(self, email, date, content):
        if email in self.fail_for:
            raise RuntimeError("mailbox full")
        self.sent.append((email, date, content))
        return True


class TestDailyNews(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        self.store = WatchlistStore(db_path=str(self.tmpdir / "signalist.db"))

    def tearDown(self):
        self._tmp.cleanup()

    def _user(self, email, *symbols):
        user_id = self.store.add_user(email)
        for s in symbols:
            self.store.add_symbol(user_id, s)

    def test_no_users(self):
        result = send_daily_news_summary(self.store, FakeAggregator({}), markdown_summary, RecordingSender())
        self.assertEqual(result, {"success": False, "message": "No users found for news email"})

    def test_watchlist_news_with_general_fallback(self):
        self._user("a@example.com", "AAPL")
        self._user("b@example.com", "TSLA")
        aggregator = FakeAggregator({
            ("AAPL",): _articles("aapl", 9),
            ("TSLA",): [],
            (): _articles("general", 3),
        })

        a_news = collect_user_news(self.store, aggregator, "a@example.com")
        b_news = collect_user_news(self.store, aggregator, "b@example.com")

        self.assertEqual(len(a_news), 6)
        self.assertEqual([n.headline for n in b_news], ["general story 1", "general story 2", "general story 3"])

    def test_aggregator_failure_yields_empty_list(self):
        self._user("a@example.com", "AAPL")
        aggregator = FakeAggregator({("AAPL",): NewsFetchError("Failed to fetch news")})
        self.assertEqual(collect_user_news(self.store, aggregator, "a@example.com"), [])

    def test_failures_are_isolated_per_user(self):
        self._user("ok@example.com", "AAPL")
        self._user("broken@example.com", "MSFT")
        self._user("bounce@example.com", "NVDA")
        aggregator = FakeAggregator({
            ("AAPL",): _articles("aapl", 2),
            ("MSFT",): NewsFetchError("Failed to fetch news"),
            ("NVDA",): _articles("nvda", 1),
        })

        def summarizer(news_json):
            items = json.loads(news_json)
            if not items:
                raise RuntimeError("model unavailable")
            return f"{len(items)} stories"

        sender = RecordingSender(fail_for={"bounce@example.com"})
        result = send_daily_news_summary(
            self.store,
            aggregator,
            summarizer,
            sender,
            today=datetime.date(2026, 1, 25),
        )

        self.assertTrue(result["success"])
        self.assertEqual((result["sent"], result["skipped"], result["failed"]), (1, 1, 1))
        self.assertEqual(sender.sent, [("ok@example.com", "2026-01-25", "2 stories")])

    def test_outbox_and_prompts_written(self):
        self._user("jane@example.com", "AAPL")
        aggregator = FakeAggregator({("AAPL",): _articles("aapl", 2)})
        prompt_dir = self.tmpdir / "prompts"

        result = send_daily_news_summary(
            self.store,
            aggregator,
            markdown_summary,
            OutboxSender(self.tmpdir),
            today=datetime.date(2026, 1, 25),
            prompt_dir=prompt_dir,
        )

        self.assertEqual(result["sent"], 1)
        md = (self.tmpdir / "emails" / "2026-01-25" / "jane-example-com.md").read_text()
        self.assertIn("[aapl story 1](https://example.com/aapl/1)", md)
        payload = json.loads((self.tmpdir / "emails" / "2026-01-25" / "jane-example-com.json").read_text())
        self.assertEqual(payload["to"], "jane@example.com")
        prompt = (prompt_dir / "2026-01-25_jane-example-com_prompt.txt").read_text()
        self.assertIn('"headline": "aapl story 2"', prompt)
        self.assertNotIn("{{newsData}}", prompt)

    def test_unwritable_prompt_dir_does_not_block_sends(self):
        self._user("a@example.com", "AAPL")
        self._user("b@example.com", "MSFT")
        aggregator = FakeAggregator({
            ("AAPL",): _articles("aapl", 2),
            ("MSFT",): _articles("msft", 1),
        })
        blocked = self.tmpdir / "prompts"
        blocked.write_text("not a directory")
        sender = RecordingSender()

        with self.assertLogs("signalist.digest.daily_news", level="ERROR"):
            result = send_daily_news_summary(
                self.store,
                aggregator,
                markdown_summary,
                sender,
                today=datetime.date(2026, 1, 25),
                prompt_dir=blocked,
            )

        self.assertTrue(result["success"])
        self.assertEqual(result["sent"], 2)
        self.assertEqual(sorted(email for email, _, _ in sender.sent), ["a@example.com", "b@example.com"])


class TestSummaries(unittest.TestCase):
    def test_empty_reply_uses_fallback(self):
        self.assertEqual(summarize_news(_articles("x", 1), lambda _: None), FALLBACK_SUMMARY)
        self.assertEqual(summarize_news(_articles("x", 1), lambda _: "  "), FALLBACK_SUMMARY)

    def test_summarizer_receives_json(self):
        received = []
        summarize_news(_articles("x", 2), lambda payload: received.append(json.loads(payload)) or "ok")
        self.assertEqual([a["id"] for a in received[0]], [1, 2])

    def test_markdown_summary_of_nothing(self):
        self.assertIsNone(markdown_summary("[]"))
        self.assertIsNone(markdown_summary("not json"))

    def test_news_prompt_substitution(self):
        self.assertIn("[1, 2]", build_news_prompt("[1, 2]"))


class TestWelcome(unittest.TestCase):
    USER = {
        "email": "jane@example.com",
        "country": "Japan",
        "investment_goals": "Growth",
        "risk_tolerance": "Medium",
        "preferred_industry": "Technology",
    }

    def test_prompt_contains_profile(self):
        prompt = build_welcome_prompt(self.USER)
        self.assertIn("- Country: Japan", prompt)
        self.assertIn("- Preferred industry: Technology", prompt)

    def test_fallback_intro(self):
        self.assertEqual(compose_welcome_intro(self.USER, lambda _: ""), FALLBACK_WELCOME_INTRO)

        def boom(_):
            raise RuntimeError("quota")

        self.assertEqual(compose_welcome_intro(self.USER, boom), FALLBACK_WELCOME_INTRO)
        self.assertEqual(compose_welcome_intro(self.USER, lambda _: " Welcome, Jane! "), "Welcome, Jane!")


if __name__ == "__main__":
    unittest.main()
