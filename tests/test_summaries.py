import asyncio
import tempfile
import unittest

import requests

from concierge.errors import SummarySourceError
from concierge.summaries import (
    TOPICS,
    AppContextBuilder,
    RestSummarySource,
    format_books,
    format_clubs,
    format_events,
    format_lost_found,
    format_notices,
)
from tests.helpers import read_events
from utils.tracer import RunTracer


class FormatterTest(unittest.TestCase):
    def test_notices(self):
        rows = [
            {"title": "Exam routine published", "category": "exam", "publishedDate": "2025-09-01"},
            {"title": "Holiday notice", "published_date": "2025-09-03"},
        ]
        self.assertEqual(
            format_notices(rows),
            "Recent Notices (2):\n"
            "1. [exam] Exam routine published (2025-09-01)\n"
            "2. [general] Holiday notice (2025-09-03)",
        )

    def test_events(self):
        rows = [
            {
                "title": "Robotics Workshop",
                "clubName": "Robotics Club",
                "eventStartTime": "2025-09-05T10:00:00Z",
                "venue": "ICTC Hall",
            },
            {"title": "Open Mic", "event_start_time": "2025-10-12T17:30:00"},
        ]
        self.assertEqual(
            format_events(rows),
            "Upcoming Events (2):\n"
            '1. "Robotics Workshop" by Robotics Club - Sep 5, 2025 at ICTC Hall\n'
            '2. "Open Mic" by a campus club - Oct 12, 2025',
        )

    def test_clubs_truncate_long_descriptions(self):
        text = format_clubs([{"name": "Music Club", "aboutClub": "x" * 130}, {"name": "SEDS"}])
        lines = text.splitlines()
        self.assertEqual(lines[0], "Active Clubs (2):")
        self.assertEqual(lines[1], "1. Music Club - " + "x" * 120 + "...")
        self.assertEqual(lines[2], "2. SEDS - No description")

    def test_lost_found(self):
        rows = [
            {
                "title": "Blue umbrella",
                "item_type": "found",
                "category": "accessories",
                "location_text": "Library gate",
                "lost_found_date": "2025-09-02T08:00:00Z",
            }
        ]
        self.assertEqual(
            format_lost_found(rows),
            "Open Lost & Found Items (1):\n1. [FOUND] Blue umbrella - accessories, near Library gate (Sep 2)",
        )

    def test_books(self):
        rows = [
            {"title": "Engineering Drawing", "author": "N.D. Bhatt", "price": 450, "condition": "good", "courseCode": "ME 101"},
            {"title": "Physics", "price": 300},
        ]
        self.assertEqual(
            format_books(rows),
            "Available Books (2):\n"
            '1. "Engineering Drawing" by N.D. Bhatt - Rs. 450, good (ME 101)\n'
            '2. "Physics" by unknown author - Rs. 300, used',
        )

    def test_empty_topics(self):
        self.assertEqual(format_notices([]), "No notices available at the moment.")
        self.assertEqual(format_events([]), "No upcoming events at the moment.")
        self.assertEqual(format_clubs([]), "No active clubs found.")
        self.assertEqual(format_lost_found([]), "No open lost & found items at the moment.")
        self.assertEqual(format_books([]), "No books available in the marketplace at the moment.")


class FakeResponse:
    def __init__(self, payload, status_error=None):
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self):
        if self.status_error:
            raise self.status_error

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.error:
            raise self.error
        return self.response


class RestSummarySourceTest(unittest.TestCase):
    def test_fetches_and_limits_rows(self):
        rows = [{"title": f"Notice {i}", "category": "exam"} for i in range(12)]
        session = FakeSession(FakeResponse(rows))
        source = RestSummarySource("http://app.local/api/", timeout=3, session=session)
        self.assertEqual(len(source.fetch_rows("notices")), 10)
        self.assertEqual(session.calls[0], ("http://app.local/api/notices", {"limit": 10}, 3))

    def test_accepts_wrapped_payload(self):
        session = FakeSession(FakeResponse({"data": [{"name": "SEDS", "description": "Space club"}]}))
        source = RestSummarySource("http://app.local/api", session=session)
        self.assertEqual(source.summary("clubs"), "Active Clubs (1):\n1. SEDS - Space club")
        self.assertEqual(session.calls[0][1], None)

    def test_bad_payload(self):
        source = RestSummarySource("http://app.local", session=FakeSession(FakeResponse({"error": "nope"})))
        with self.assertRaises(SummarySourceError):
            source.fetch_rows("events")

    def test_http_errors_are_wrapped(self):
        source = RestSummarySource("http://app.local", session=FakeSession(error=requests.ConnectionError("refused")))
        with self.assertRaises(SummarySourceError):
            source.fetch_rows("events")
        failing = FakeSession(FakeResponse([], status_error=requests.HTTPError("500")))
        with self.assertRaises(SummarySourceError):
            RestSummarySource("http://app.local", session=failing).fetch_rows("events")
        garbled = FakeSession(FakeResponse(ValueError("bad json")))
        with self.assertRaises(SummarySourceError):
            RestSummarySource("http://app.local", session=garbled).fetch_rows("events")

    def test_fetchers_cover_every_topic(self):
        source = RestSummarySource("http://app.local", session=FakeSession(FakeResponse([])))
        fetchers = source.fetchers()
        self.assertEqual(tuple(fetchers), TOPICS)
        self.assertEqual(fetchers["marketplace"](), "No books available in the marketplace at the moment.")


class AppContextBuilderTest(unittest.IsolatedAsyncioTestCase):
    async def test_failures_are_isolated_per_topic(self):
        def broken():
            raise SummarySourceError("events: backend down")

        builder = AppContextBuilder({"notices": lambda: "Recent Notices (0)", "events": broken})
        text = await builder.build(["notices", "events"])
        self.assertEqual(text, "Recent Notices (0)\n\nevents: data temporarily unavailable")

    async def test_all_expands_to_every_topic(self):
        builder = AppContextBuilder({topic: (lambda t=topic: f"<{t}>") for topic in TOPICS})
        text = await builder.build("all")
        self.assertEqual(text, "\n\n".join(f"<{t}>" for t in TOPICS))

    async def test_unknown_topic_gets_placeholder(self):
        builder = AppContextBuilder({})
        self.assertEqual(await builder.build("weather"), "weather: data temporarily unavailable")

    async def test_async_fetchers_are_awaited(self):
        async def notices():
            return "async notices"

        builder = AppContextBuilder({"notices": notices})
        self.assertEqual(await builder.build("notices"), "async notices")

    async def test_slow_topic_times_out(self):
        async def slow():
            await asyncio.sleep(1)
            return "late"

        with tempfile.TemporaryDirectory() as tmp:
            tracer = RunTracer(tmp)
            builder = AppContextBuilder({"events": slow, "clubs": lambda: "clubs"}, timeout=0.05, tracer=tracer)
            text = await builder.build(["events", "clubs"])
            self.assertEqual(text, "events: data temporarily unavailable\n\nclubs")
            events = read_events(tracer)
            self.assertEqual([e["type"] for e in events], ["context_topic_error"])
            self.assertEqual(events[0]["topic"], "events")


if __name__ == "__main__":
    unittest.main()
