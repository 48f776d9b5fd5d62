"""
Keyword based intent router (strict, ordered).

Buckets are checked top to bottom and the first hit wins, so a query that
mentions both "fee" and "office" is a policy_query. The order is part of the
contract; do not sort it.
"""
from typing import Dict, Optional, Sequence, Tuple

from concierge.text import includes_any, normalize

# Route signals (used together with "from ... to ...")
ROUTE_HINTS: Tuple[str, ...] = (
    "route",
    "directions",
    "navigate",
    "how to get",
    "take me from",
    "from",
    "to",
    "between",
)

LOCATION_HINTS: Tuple[str, ...] = (
    "where is",
    "locate",
    "show me",
    "find",
    "nearest",
    "location",
    "which block",
)

SUPPORT_HINTS: Tuple[str, ...] = (
    "admission",
    "document",
    "registration",
    "exam",
    "transcript",
    "certificate",
    "hostel",
    "fee",
    "payment",
    "deadline",
    "complaint",
    "health",
    "clinic",
    "library",
    "borrow",
    "id card",
)

NOTICE_HINTS: Tuple[str, ...] = (
    "notice",
    "notices",
    "result",
    "results",
    "exam routine",
    "exam center",
    "application form",
    "summarize notice",
    "latest notice",
    "recent notice",
)

EVENT_HINTS: Tuple[str, ...] = (
    "event",
    "events",
    "upcoming event",
    "workshop",
    "hackathon",
    "seminar",
    "competition",
    "register for",
    "what events",
)

CLUB_HINTS: Tuple[str, ...] = (
    "club",
    "clubs",
    "society",
    "organization",
    "student club",
    "active club",
    "list club",
)

LOST_FOUND_HINTS: Tuple[str, ...] = (
    "lost and found",
    "lost item",
    "found item",
    "missing item",
    "anyone found",
    "lost something",
)

MARKETPLACE_HINTS: Tuple[str, ...] = (
    "book marketplace",
    "sell book",
    "buy book",
    "marketplace",
    "textbook",
    "second hand book",
    "available book",
)

APP_HELP_HINTS: Tuple[str, ...] = (
    "how to use",
    "app help",
    "what can you do",
    "help me",
    "what features",
    "how does this app",
)

# (intent, trigger phrases), checked in this exact order after route_navigation
INTENT_BUCKETS: Tuple[Tuple[str, Sequence[str]], ...] = (
    ("deadline_query", ("deadline", "last date", "closing date")),
    ("escalation", ("emergency", "urgent", "complaint", "report", "harassment", "lost")),
    ("policy_query", ("policy", "rules", "hours", "timing", "fee", "payment", "receipt")),
    ("office_lookup", ("where", "office", "whom to contact", "who handles", "which office")),
    ("process_howto", ("how", "process", "apply", "register")),
    (
        "service_lookup",
        ("service", "canteen", "atm", "water", "toilet", "hostel", "library", "clinic", "print", "stationery"),
    ),
    ("location_lookup", LOCATION_HINTS),
    # app-wide intents
    ("notice_query", NOTICE_HINTS),
    ("event_query", EVENT_HINTS),
    ("club_query", CLUB_HINTS),
    ("lost_found_query", LOST_FOUND_HINTS),
    ("marketplace_query", MARKETPLACE_HINTS),
    ("app_help", APP_HELP_HINTS),
)

SUPPORT_HEAVY_INTENTS = frozenset(
    {"process_howto", "policy_query", "office_lookup", "deadline_query", "escalation"}
)

# Intents answered from live app data, mapped to their summary topic.
APP_INTENT_TOPICS: Dict[str, str] = {
    "notice_query": "notices",
    "event_query": "events",
    "club_query": "clubs",
    "lost_found_query": "lost_found",
    "marketplace_query": "marketplace",
    "app_help": "all",
}


def classify_intent(query: str) -> str:
    normalized = normalize(query)
    if "from " in normalized and " to " in normalized and includes_any(normalized, ROUTE_HINTS):
        return "route_navigation"
    for intent, terms in INTENT_BUCKETS:
        if includes_any(normalized, terms):
            return intent
    return "unknown"


def is_location_ask(query: str) -> bool:
    normalized = normalize(query)
    return (
        includes_any(normalized, LOCATION_HINTS)
        or normalized.startswith("where ")
        or normalized.startswith("show ")
    )


def is_support_heavy(intent: str, query: str) -> bool:
    return intent in SUPPORT_HEAVY_INTENTS or includes_any(normalize(query), SUPPORT_HINTS)


def app_topic_for(intent: str) -> Optional[str]:
    return APP_INTENT_TOPICS.get(intent)
