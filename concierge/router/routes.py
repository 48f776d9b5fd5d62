"""
Route phrase extraction: pulls a raw (start, end) pair out of route-shaped text.
"""
import re
from typing import Optional

from concierge.text import includes_any, normalize
from concierge.types import RouteEndpoints

ROUTE_VOCABULARY = ("route", "directions", "navigate", "how to get from")

_FROM_TO = re.compile(r"\bfrom\s+(.+?)\s+\bto\s+(.+)$")
_BETWEEN_AND = re.compile(r"\bbetween\s+(.+?)\s+\band\s+(.+)$")
_PLAIN_TO = re.compile(r"^(.+?)\s+\bto\s+(.+)$")

# A bare "<A> to <B>" whose A is one of these is a sentence, not a route.
INVALID_PLAIN_START = frozenset(
    {
        "how",
        "what",
        "where",
        "when",
        "why",
        "who",
        "go",
        "walk",
        "move",
        "head",
        "get",
        "take",
        "need",
        "want",
        "trying",
    }
)
MIN_FRAGMENT_LENGTH = 3


def extract_route_endpoints(query: str) -> Optional[RouteEndpoints]:
    text = normalize(query)
    for pattern in (_FROM_TO, _BETWEEN_AND):
        match = pattern.search(text)
        if match:
            return RouteEndpoints(start=match.group(1).strip(), end=match.group(2).strip())

    # terse form, e.g. "dean office to om stationery"
    match = _PLAIN_TO.search(text)
    if match:
        start, end = match.group(1).strip(), match.group(2).strip()
        if (
            start not in INVALID_PLAIN_START
            and len(start) >= MIN_FRAGMENT_LENGTH
            and len(end) >= MIN_FRAGMENT_LENGTH
        ):
            return RouteEndpoints(start=start, end=end)
    return None


def is_route_query(query: str) -> bool:
    if extract_route_endpoints(query):
        return True
    return includes_any(normalize(query), ROUTE_VOCABULARY)
