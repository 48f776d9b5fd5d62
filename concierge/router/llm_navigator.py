"""
LLM navigation bridge for ambiguous location and route queries.

The model only ever sees the verified building list, and nothing it returns is
trusted: every location is re-resolved against the BuildingIndex and dropped
when that fails. A route that loses an endpoint, or any answer left with no
locations, is discarded as a whole.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

from concierge.catalog import CONFIDENT_MATCH_SCORE, BuildingIndex
from concierge.llm_client import DEFAULT_MODEL, SimpleLLMClient, parse_json_object
from concierge.types import ConciergeLocation, ConciergeResponse
from utils.prompt_loader import load_prompt

PROMPT_FILE = "navigation_system.md"

DEFAULT_SYSTEM_PROMPT = """
You are a campus navigation assistant. Use only the verified building list provided.
Do not invent buildings.

Return only JSON:
{
  "message": "short helpful text without coordinates",
  "action": "show_route" | "show_location" | "show_multiple_locations",
  "locations": [{"building_id": "verified id", "building_name": "verified name", "role": "start" | "end" | "destination"}]
}
"""

ALLOWED_ACTIONS = ("show_route", "show_multiple_locations")
DEFAULT_MESSAGE = "I found relevant campus locations and highlighted them on the map."
ROLE_ORDER = {"start": 0, "destination": 1, "end": 2}


def sanitize_action(action: Any) -> str:
    return action if action in ALLOWED_ACTIONS else "show_location"


class LLMNavigator:
    """
    Asks the model to pick 1-2 catalog buildings and an action; returns a validated response or None.
    """

    def __init__(
        self,
        index: BuildingIndex,
        client: Optional[Any] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 15.0,
        prompt_file: str = PROMPT_FILE,
        min_score: int = CONFIDENT_MATCH_SCORE,
        tracer=None,
    ) -> None:
        self.index = index
        self.client = client or SimpleLLMClient(model=model, timeout=timeout)
        self.model = getattr(self.client, "model", model)
        self.timeout = timeout
        self.min_score = min_score
        self.tracer = tracer
        # Try loading prompt from prompts directory; fall back to baked-in default if missing.
        try:
            self.system_prompt = load_prompt(prompt_file)
        except Exception as exc:
            print(f"LLMNavigator prompt load failed ({prompt_file}): {exc}")
            self.system_prompt = DEFAULT_SYSTEM_PROMPT
        self._catalog_json = json.dumps(
            [
                {
                    "id": b.id,
                    "name": b.name,
                    "coordinates": {"lat": b.coordinates.lat, "lng": b.coordinates.lng},
                    "description": b.description,
                }
                for b in index.buildings
            ],
            ensure_ascii=False,
        )

    def build_prompt(self, query: str) -> str:
        return f"Buildings:\n{self._catalog_json}\n\nUser query: {query}"

    async def resolve(self, query: str) -> Optional[ConciergeResponse]:
        if not query:
            return None
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.generate,
                    prompt=self.build_prompt(query),
                    system_prompt=self.system_prompt,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
            return self.validate(raw)
        except Exception as exc:
            print(f"LLMNavigator failed: {exc!r}")
            if self.tracer:
                self.tracer.log_event({"type": "navigator_error", "query": query, "error": repr(exc)})
        return None

    def validate(self, raw: str) -> Optional[ConciergeResponse]:
        data = parse_json_object(raw)
        if not data or not isinstance(data.get("locations"), list):
            return None

        action = sanitize_action(data.get("action"))
        is_route = action == "show_route"
        locations: List[ConciergeLocation] = []
        seen = set()
        for position, item in enumerate(data["locations"]):
            if is_route:
                default_role = "start" if position == 0 else "end"
            else:
                default_role = "destination"
            location = self._map_location(item, default_role)
            if location is None or location.building_id in seen:
                continue
            seen.add(location.building_id)
            locations.append(location)

        if is_route:
            locations = sorted(locations, key=lambda loc: ROLE_ORDER.get(loc.role, 1))[:2]
            if len(locations) < 2:
                return None
            locations[0].role = "start"
            locations[1].role = "end"
        elif not locations:
            return None

        message = data.get("message")
        return ConciergeResponse(
            message=message.strip() if isinstance(message, str) and message.strip() else DEFAULT_MESSAGE,
            locations=locations,
            action=action,
            intent="route_navigation" if is_route else "location_lookup",
            verified=True,
            sources=["campus_data:buildings", "source_type:map_data", f"llm:{self.model}"],
            follow_up=["Ask for landmark-based directions if you need simpler wayfinding."],
        )

    def _map_location(self, item: Any, default_role: str) -> Optional[ConciergeLocation]:
        if not isinstance(item, dict):
            return None
        building = None
        building_id = item.get("building_id")
        if isinstance(building_id, str):
            building = self.index.get(building_id)
        if building is None:
            name = item.get("building_name")
            if isinstance(name, str) and name.strip():
                match = self.index.best_match(name, min_score=self.min_score)
                building = match.building if match else None
        if building is None:
            return None
        role = item.get("role")
        return ConciergeLocation.from_building(
            building, role=role if role in ("start", "end") else default_role
        )
