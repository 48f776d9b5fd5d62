"""
Live app-data summaries used as grounding text for the app-context bridge.

A summary source fetches rows (notices, events, clubs, lost & found items,
book listings) from the app backend and renders each topic as a short
numbered list. AppContextBuilder fans out over the requested topics in
parallel and isolates failures per topic.
"""
import asyncio
import inspect
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import requests

from concierge.errors import SummarySourceError

TOPICS = ("notices", "events", "clubs", "lost_found", "marketplace")

DEFAULT_ENDPOINTS: Dict[str, str] = {
    "notices": "/notices",
    "events": "/events/upcoming",
    "clubs": "/clubs",
    "lost_found": "/lost-found",
    "marketplace": "/books",
}

DEFAULT_LIMITS: Dict[str, Optional[int]] = {
    "notices": 10,
    "events": 8,
    "clubs": None,
    "lost_found": 8,
    "marketplace": 8,
}

CLUB_DESCRIPTION_LIMIT = 120


def _field(row: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = row.get(name)
        if value not in (None, ""):
            return value
    return None


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _short_date(value: Any, with_year: bool = True) -> str:
    parsed = _parse_date(value)
    if parsed is None:
        return str(value) if value else "unknown date"
    if with_year:
        return f"{parsed:%b} {parsed.day}, {parsed.year}"
    return f"{parsed:%b} {parsed.day}"


def format_notices(rows: Sequence[Mapping[str, Any]]) -> str:
    if not rows:
        return "No notices available at the moment."
    lines = []
    for i, row in enumerate(rows, start=1):
        date = _field(row, "publishedDate", "published_date") or "unknown date"
        lines.append(f"{i}. [{_field(row, 'category') or 'general'}] {_field(row, 'title')} ({date})")
    return f"Recent Notices ({len(rows)}):\n" + "\n".join(lines)


def format_events(rows: Sequence[Mapping[str, Any]]) -> str:
    if not rows:
        return "No upcoming events at the moment."
    lines = []
    for i, row in enumerate(rows, start=1):
        start = _short_date(_field(row, "eventStartTime", "event_start_time"))
        venue = _field(row, "venue")
        club = _field(row, "clubName", "club_name") or "a campus club"
        line = f'{i}. "{_field(row, "title")}" by {club} - {start}'
        lines.append(f"{line} at {venue}" if venue else line)
    return f"Upcoming Events ({len(rows)}):\n" + "\n".join(lines)


def format_clubs(rows: Sequence[Mapping[str, Any]]) -> str:
    if not rows:
        return "No active clubs found."
    lines = []
    for i, row in enumerate(rows, start=1):
        desc = _field(row, "aboutClub", "about_club", "description") or "No description"
        if len(desc) > CLUB_DESCRIPTION_LIMIT:
            desc = desc[:CLUB_DESCRIPTION_LIMIT] + "..."
        lines.append(f"{i}. {_field(row, 'name')} - {desc}")
    return f"Active Clubs ({len(rows)}):\n" + "\n".join(lines)


def format_lost_found(rows: Sequence[Mapping[str, Any]]) -> str:
    if not rows:
        return "No open lost & found items at the moment."
    lines = []
    for i, row in enumerate(rows, start=1):
        item_type = str(_field(row, "itemType", "item_type") or "item").upper()
        date = _short_date(_field(row, "lostFoundDate", "lost_found_date"), with_year=False)
        place = _field(row, "locationText", "location_text") or "unknown place"
        lines.append(
            f"{i}. [{item_type}] {_field(row, 'title')} - {_field(row, 'category') or 'other'}, near {place} ({date})"
        )
    return f"Open Lost & Found Items ({len(rows)}):\n" + "\n".join(lines)


def format_books(rows: Sequence[Mapping[str, Any]]) -> str:
    if not rows:
        return "No books available in the marketplace at the moment."
    lines = []
    for i, row in enumerate(rows, start=1):
        course = _field(row, "courseCode", "course_code")
        line = (
            f'{i}. "{_field(row, "title")}" by {_field(row, "author") or "unknown author"}'
            f" - Rs. {_field(row, 'price')}, {_field(row, 'condition') or 'used'}"
        )
        lines.append(f"{line} ({course})" if course else line)
    return f"Available Books ({len(rows)}):\n" + "\n".join(lines)


FORMATTERS: Dict[str, Callable[[Sequence[Mapping[str, Any]]], str]] = {
    "notices": format_notices,
    "events": format_events,
    "clubs": format_clubs,
    "lost_found": format_lost_found,
    "marketplace": format_books,
}


class RestSummarySource:
    """
    Pulls topic rows from the app backend over HTTP and formats them.
    Endpoints return a JSON list, or an object with the list under "data" or "items".
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        endpoints: Optional[Mapping[str, str]] = None,
        limits: Optional[Mapping[str, Optional[int]]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.endpoints = {**DEFAULT_ENDPOINTS, **(endpoints or {})}
        self.limits = {**DEFAULT_LIMITS, **(limits or {})}
        self.session = session or requests.Session()

    def fetch_rows(self, topic: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{self.endpoints[topic]}"
        limit = self.limits.get(topic)
        params = {"limit": limit} if limit else None
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise SummarySourceError(f"{topic}: {exc}") from exc
        if isinstance(data, dict):
            data = data.get("data", data.get("items"))
        if not isinstance(data, list):
            raise SummarySourceError(f"{topic}: unexpected payload from {url}")
        rows = [row for row in data if isinstance(row, dict)]
        return rows[:limit] if limit else rows

    def summary(self, topic: str) -> str:
        return FORMATTERS[topic](self.fetch_rows(topic))

    def fetchers(self) -> Dict[str, Callable[[], str]]:
        return {topic: (lambda t=topic: self.summary(t)) for topic in TOPICS}


class AppContextBuilder:
    """
    Builds grounding text for one or more topics; "all" expands to every topic.
    A failing topic becomes a one-line placeholder instead of an error.
    """

    def __init__(
        self,
        fetchers: Mapping[str, Callable[[], Any]],
        timeout: float = 5.0,
        tracer=None,
    ) -> None:
        self.fetchers = dict(fetchers)
        self.timeout = timeout
        self.tracer = tracer

    @classmethod
    def from_source(cls, source: RestSummarySource, **kwargs) -> "AppContextBuilder":
        return cls(source.fetchers(), **kwargs)

    def topics_for(self, topics: Union[str, Sequence[str]]) -> List[str]:
        requested = [topics] if isinstance(topics, str) else list(topics)
        if "all" in requested:
            return list(TOPICS)
        return [t for t in requested if t != "all"]

    async def build(self, topics: Union[str, Sequence[str]]) -> str:
        keys = self.topics_for(topics)
        results = await asyncio.gather(*(self._fetch(key) for key in keys))
        return "\n\n".join(results)

    async def _fetch(self, key: str) -> str:
        try:
            fetcher = self.fetchers[key]
            if inspect.iscoroutinefunction(fetcher):
                pending = fetcher()
            else:
                pending = asyncio.to_thread(fetcher)
            return str(await asyncio.wait_for(pending, timeout=self.timeout))
        except Exception as exc:
            print(f"AppContextBuilder: failed to fetch {key}: {exc!r}")
            if self.tracer:
                self.tracer.log_event({"type": "context_topic_error", "topic": key, "error": repr(exc)})
            return f"{key}: data temporarily unavailable"
