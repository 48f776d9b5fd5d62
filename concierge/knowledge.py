"""
Student-support knowledge base: FAQ matching and canned fallbacks.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from concierge.catalog import DATA_DIR, BuildingIndex
from concierge.errors import ConfigError
from concierge.text import includes_any, normalize
from concierge.types import (
    SOURCE_PRIORITY,
    ConciergeLocation,
    ConciergeResponse,
    FallbackEntry,
    KnowledgeBaseEntry,
)

DEFAULT_KB_PATH = DATA_DIR / "student_support_kb.json"

PATTERN_SCORE = 8
KEYWORD_SCORE = 2
# Entries scoring below this never answer on their own.
KB_MIN_SCORE = 4

FALLBACK_BUCKETS = ("deadline_query", "escalation", "policy_query")

DEFAULT_FALLBACK = FallbackEntry(
    message="I could not find a verified answer for that. Please check with the Dean Office.",
)
DEFAULT_FALLBACK_FOLLOW_UP = ["Ask a specific office-focused question and I will guide you there."]

# keyword sniffing for fallbacks without explicit pins, first hit wins
FALLBACK_PIN_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("exam", "admit", "result", "transcript", "roll"), ("exam-control-office",)),
    (("health", "medical", "sick", "injury"), ("fsu-clinic",)),
    (("complaint", "harassment", "union"), ("fsu-office",)),
    (("hostel", "mess", "canteen"), ("campus-mess", "girls-hostel")),
    (("library", "book issue", "reading"), ("pulchowk-library",)),
    (("print", "stationery", "photocopy"), ("om-stationery",)),
)
INTENT_PINS: Dict[str, Tuple[str, ...]] = {
    "deadline_query": ("exam-control-office", "dean-office"),
    "escalation": ("dean-office",),
}
DEFAULT_PINS: Tuple[str, ...] = ("dean-office",)


def action_for_count(count: int) -> str:
    return "show_location" if count <= 1 else "show_multiple_locations"


def _verified_timestamp(value: str) -> float:
    if not value:
        return 0.0
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def resolve_locations(index: BuildingIndex, building_ids: Sequence[str]) -> List[ConciergeLocation]:
    """Map ids to destination pins, silently dropping ids the catalog does not know."""
    locations: List[ConciergeLocation] = []
    for building_id in building_ids:
        building = index.get(building_id)
        if building:
            locations.append(ConciergeLocation.from_building(building))
    return locations


class KnowledgeBase:
    def __init__(
        self,
        entries: Sequence[KnowledgeBaseEntry],
        fallbacks: Optional[Mapping[str, FallbackEntry]] = None,
        min_score: int = KB_MIN_SCORE,
    ) -> None:
        self.entries = tuple(entries)
        self.fallbacks: Dict[str, FallbackEntry] = dict(fallbacks or {})
        self.min_score = min_score
        self._normalized = tuple(
            (
                entry,
                [p for p in (normalize(x) for x in entry.question_patterns) if p],
                [k for k in (normalize(x) for x in entry.keywords) if k],
            )
            for entry in self.entries
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs) -> "KnowledgeBase":
        try:
            entries = [KnowledgeBaseEntry.from_dict(row) for row in data.get("entries", [])]
            fallbacks = {
                key: FallbackEntry.from_dict(value)
                for key, value in (data.get("fallbacks") or {}).items()
            }
        except (KeyError, TypeError, AttributeError) as exc:
            raise ConfigError(f"Invalid knowledge base record: {exc}") from exc
        return cls(entries, fallbacks, **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path, None] = None, **kwargs) -> "KnowledgeBase":
        return cls.from_dict(load_knowledge_base(path), **kwargs)

    def score(self, query: str) -> List[Tuple[KnowledgeBaseEntry, int]]:
        normalized = normalize(query)
        scored = []
        for entry, patterns, keywords in self._normalized:
            score = PATTERN_SCORE * sum(1 for p in patterns if p in normalized)
            score += KEYWORD_SCORE * sum(1 for k in keywords if k in normalized)
            if score > 0:
                scored.append((entry, score))
        # score, then source authority, then most recently verified
        scored.sort(
            key=lambda item: (
                item[1],
                SOURCE_PRIORITY.get(item[0].source_type, 0),
                _verified_timestamp(item[0].last_verified_at),
            ),
            reverse=True,
        )
        return scored

    def match(self, query: str) -> Optional[KnowledgeBaseEntry]:
        scored = self.score(query)
        if not scored or scored[0][1] < self.min_score:
            return None
        return scored[0][0]

    def answer(self, entry: KnowledgeBaseEntry, index: BuildingIndex) -> ConciergeResponse:
        locations = resolve_locations(index, entry.location_ids)
        return ConciergeResponse(
            message=entry.answer,
            locations=locations,
            action=action_for_count(len(locations)),
            intent=entry.intent,
            verified=True,
            sources=[
                f"student_support_kb:{entry.id}",
                f"source_type:{entry.source_type}",
                f"last_verified:{entry.last_verified_at}",
            ],
            follow_up=list(entry.follow_up),
        )

    def fallback(self, intent: str, query: str, index: BuildingIndex) -> ConciergeResponse:
        """
        Canned, unverified answer for an intent. Never fails.
        """
        key = intent if intent in FALLBACK_BUCKETS else "general"
        entry = self.fallbacks.get(key) or self.fallbacks.get("general") or DEFAULT_FALLBACK
        location_ids = entry.location_ids or fallback_pins(intent, query)
        locations = resolve_locations(index, location_ids)
        return ConciergeResponse(
            message=entry.message,
            locations=locations,
            action=action_for_count(len(locations)),
            intent="office_lookup" if intent == "unknown" else intent,
            verified=False,
            sources=[],
            follow_up=list(entry.follow_up) if entry.follow_up is not None else list(DEFAULT_FALLBACK_FOLLOW_UP),
        )

    def dangling_location_ids(self, index: BuildingIndex) -> Dict[str, List[str]]:
        dangling: Dict[str, List[str]] = {}
        for entry in self.entries:
            missing = [bid for bid in entry.location_ids if bid not in index]
            if missing:
                dangling[entry.id] = missing
        for key, entry in self.fallbacks.items():
            missing = [bid for bid in entry.location_ids if bid not in index]
            if missing:
                dangling[f"fallback:{key}"] = missing
        return dangling


def fallback_pins(intent: str, query: str) -> Tuple[str, ...]:
    normalized = normalize(query)
    for terms, building_ids in FALLBACK_PIN_RULES:
        if includes_any(normalized, terms):
            return building_ids
    return INTENT_PINS.get(intent, DEFAULT_PINS)


def load_knowledge_base(path: Union[str, Path, None] = None) -> Dict[str, Any]:
    kb_path = Path(path) if path else DEFAULT_KB_PATH
    if not kb_path.exists():
        raise ConfigError(f"Knowledge base not found: {kb_path}")
    try:
        with kb_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Knowledge base is not valid JSON ({kb_path}): {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Knowledge base must be a JSON object: {kb_path}")
    return data
