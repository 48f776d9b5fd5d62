"""
Data types for the campus concierge.

Catalog types (Building, KnowledgeBaseEntry, FallbackEntry) are frozen: they are
loaded once and shared read-only by every request. Response types are plain
dataclasses serialized with `to_dict()`.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ACTIONS: Tuple[str, ...] = (
    "show_route",
    "show_location",
    "show_multiple_locations",
    "text_answer",
)

INTENTS: Tuple[str, ...] = (
    "route_navigation",
    "location_lookup",
    "process_howto",
    "policy_query",
    "service_lookup",
    "office_lookup",
    "deadline_query",
    "escalation",
    "unknown",
    "notice_query",
    "event_query",
    "club_query",
    "lost_found_query",
    "marketplace_query",
    "app_help",
)

ROLES: Tuple[str, ...] = ("start", "end", "destination")

# Authority rank; higher wins a knowledge-base tie.
SOURCE_PRIORITY: Dict[str, int] = {
    "official_page": 3,
    "office_confirmed": 2,
    "map_data": 1,
}


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class BuildingService:
    name: str = ""
    purpose: str = ""
    location: str = ""


@dataclass(frozen=True)
class Building:
    id: str
    name: str
    coordinates: Coordinates
    description: str = ""
    services: Tuple[BuildingService, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Building":
        coords = data.get("coordinates") or {}
        services = tuple(
            BuildingService(
                name=item.get("name") or "",
                purpose=item.get("purpose") or "",
                location=item.get("location") or "",
            )
            for item in data.get("services") or []
            if isinstance(item, dict)
        )
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            coordinates=Coordinates(lat=float(coords["lat"]), lng=float(coords["lng"])),
            description=data.get("description") or "",
            services=services,
        )


@dataclass(frozen=True)
class KnowledgeBaseEntry:
    id: str
    intent: str
    category: str
    question_patterns: Tuple[str, ...]
    keywords: Tuple[str, ...]
    answer: str
    source_type: str
    last_verified_at: str
    location_ids: Tuple[str, ...] = ()
    follow_up: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeBaseEntry":
        return cls(
            id=str(data["id"]),
            intent=data.get("intent") or "unknown",
            category=data.get("category") or "",
            question_patterns=tuple(data.get("question_patterns") or ()),
            keywords=tuple(data.get("keywords") or ()),
            answer=data["answer"],
            source_type=data.get("source_type") or "map_data",
            last_verified_at=data.get("last_verified_at") or "",
            location_ids=tuple(data.get("location_ids") or ()),
            follow_up=tuple(data.get("follow_up") or ()),
        )


@dataclass(frozen=True)
class FallbackEntry:
    message: str
    location_ids: Tuple[str, ...] = ()
    follow_up: Optional[Tuple[str, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FallbackEntry":
        follow_up = data.get("follow_up")
        return cls(
            message=data["message"],
            location_ids=tuple(data.get("location_ids") or ()),
            follow_up=tuple(follow_up) if follow_up is not None else None,
        )


@dataclass
class ConciergeLocation:
    building_id: str
    building_name: str
    coordinates: Coordinates
    service_name: Optional[str] = None
    service_location: Optional[str] = None
    role: str = "destination"

    @classmethod
    def from_building(
        cls,
        building: Building,
        role: str = "destination",
        service: Optional[BuildingService] = None,
    ) -> "ConciergeLocation":
        return cls(
            building_id=building.id,
            building_name=building.name,
            coordinates=building.coordinates,
            service_name=(service.name or None) if service else None,
            service_location=(service.location or None) if service else None,
            role=role,
        )


@dataclass
class ConciergeResponse:
    """
    The only thing the resolver ever returns; callers just serialize it.
    """
    message: str
    action: str
    intent: str
    verified: bool
    locations: List[ConciergeLocation] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    follow_up: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RouteEndpoints:
    start: str
    end: str
