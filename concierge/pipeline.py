"""
Concierge orchestrator: a fixed chain of resolution stages.

Each stage takes the request context and returns a ConciergeResponse or None;
the first response wins. The chain always ends in the static fallback, so
resolve() never raises and never returns nothing.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from concierge.catalog import CONFIDENT_MATCH_SCORE, BuildingIndex, MatchWeights
from concierge.knowledge import KB_MIN_SCORE, KnowledgeBase
from concierge.llm_client import DEFAULT_MODEL, SimpleLLMClient
from concierge.router.app_context import AppContextResponder
from concierge.router.keywords import app_topic_for, classify_intent, is_location_ask, is_support_heavy
from concierge.router.llm_navigator import LLMNavigator
from concierge.router.routes import extract_route_endpoints, is_route_query
from concierge.summaries import AppContextBuilder, RestSummarySource
from concierge.types import ConciergeLocation, ConciergeResponse
from utils.tracer import RunTracer

MAP_SOURCES = ("campus_data:buildings", "source_type:map_data")


@dataclass
class ResolutionContext:
    raw: str
    allow_llm: bool
    _intent: Optional[str] = None

    @property
    def intent(self) -> str:
        if self._intent is None:
            self._intent = classify_intent(self.raw)
        return self._intent


Stage = Callable[[ResolutionContext], Awaitable[Optional[ConciergeResponse]]]


class Concierge:
    """
    Single-turn campus concierge. Build once, call resolve() per query.
    """

    def __init__(
        self,
        index: BuildingIndex,
        knowledge_base: KnowledgeBase,
        llm_client: Optional[Any] = None,
        context_builder: Optional[Any] = None,
        navigator: Optional[LLMNavigator] = None,
        app_responder: Optional[AppContextResponder] = None,
        entity_confidence: int = CONFIDENT_MATCH_SCORE,
        llm_timeout: float = 15.0,
        tracer: Optional[RunTracer] = None,
        ui=None,
    ) -> None:
        self.index = index
        self.kb = knowledge_base
        self.entity_confidence = entity_confidence
        self.tracer = tracer
        self.ui = ui

        if navigator is None and llm_client is not None:
            navigator = LLMNavigator(
                index, client=llm_client, timeout=llm_timeout, min_score=entity_confidence, tracer=tracer
            )
        if app_responder is None and llm_client is not None and context_builder is not None:
            app_responder = AppContextResponder(
                context_builder, client=llm_client, timeout=llm_timeout, tracer=tracer
            )
        self.navigator = navigator
        self.app_responder = app_responder

        dangling = self.kb.dangling_location_ids(index)
        if dangling:
            print(f"Concierge: knowledge base references unknown buildings: {dangling}")
            if tracer:
                tracer.info("kb_dangling_location_ids", {"dangling": dangling})

        # Order matters: each stage only sees queries the previous ones passed on.
        self.stages: List[Stage] = [
            self._blank_query,
            self._route,
            self._knowledge_base,
            self._location_ask,
            self._classify,
            self._app_intent,
            self._support_fallback,
            self._entity_or_navigator,
            self._app_help,
            self._terminal_fallback,
        ]

    @classmethod
    def from_config(
        cls,
        cfg: Dict[str, Any],
        llm_client: Optional[Any] = None,
        tracer: Optional[RunTracer] = None,
        ui=None,
    ) -> "Concierge":
        """
        Build the catalog, knowledge base and optional LLM bridges from a user config dict.
        Catalog errors raise ConfigError here, before any query is served.
        """
        catalog_cfg = cfg.get("catalog", {})
        matching_cfg = cfg.get("matching", {})
        llm_cfg = cfg.get("llm", {})
        app_cfg = cfg.get("app_context", {})

        index = BuildingIndex.from_file(
            catalog_cfg.get("buildings_path"),
            weights=MatchWeights.from_config(matching_cfg.get("weights")),
        )
        kb = KnowledgeBase.from_file(
            catalog_cfg.get("knowledge_base_path"),
            min_score=matching_cfg.get("kb_min_score", KB_MIN_SCORE),
        )
        llm_timeout = float(llm_cfg.get("timeout_seconds", 15))
        if llm_client is None and llm_cfg.get("enabled", False):
            try:
                llm_client = SimpleLLMClient(model=llm_cfg.get("model", DEFAULT_MODEL), timeout=llm_timeout)
            except RuntimeError as exc:
                print(f"Concierge: LLM disabled ({exc})")

        context_builder = None
        if app_cfg.get("enabled", False) and app_cfg.get("base_url"):
            source = RestSummarySource(
                app_cfg["base_url"],
                timeout=float(app_cfg.get("timeout_seconds", 5)),
                limits=app_cfg.get("limits"),
            )
            context_builder = AppContextBuilder.from_source(
                source, timeout=float(app_cfg.get("timeout_seconds", 5)), tracer=tracer
            )

        return cls(
            index,
            kb,
            llm_client=llm_client,
            context_builder=context_builder,
            entity_confidence=int(matching_cfg.get("entity_confidence", CONFIDENT_MATCH_SCORE)),
            llm_timeout=llm_timeout,
            tracer=tracer,
            ui=ui,
        )

    async def resolve(self, query: Optional[str], allow_llm: bool = True) -> ConciergeResponse:
        raw = (query or "").strip()
        ctx = ResolutionContext(raw=raw, allow_llm=allow_llm)
        if self.tracer:
            self.tracer.log_event({"type": "pipeline_start", "query": raw, "allow_llm": allow_llm})
        name = ""
        try:
            for stage in self.stages:
                name = stage.__name__.lstrip("_")
                self._stage(name, "in_progress")
                response = await stage(ctx)
                self._stage(name, "completed")
                if response is None:
                    continue
                if self.tracer:
                    self.tracer.log_event(
                        {
                            "type": "stage_hit",
                            "stage": name,
                            "action": response.action,
                            "intent": response.intent,
                            "verified": response.verified,
                        }
                    )
                return response
        except Exception as exc:
            print(f"Concierge stage {name} failed: {exc!r}")
            self._stage(name, "error")
            if self.tracer:
                self.tracer.info("pipeline_error", {"query": raw, "stage": name, "error": repr(exc)})
        return self.kb.fallback("unknown", raw, self.index)

    # Stages
    async def _blank_query(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if not ctx.raw:
            return self.kb.fallback("unknown", ctx.raw, self.index)
        return None

    async def _route(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if not is_route_query(ctx.raw):
            return None
        response = self.deterministic_route(ctx.raw)
        if response is None and ctx.allow_llm and self.navigator:
            response = await self.navigator.resolve(ctx.raw)
        return response or self.kb.fallback("route_navigation", ctx.raw, self.index)

    async def _knowledge_base(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        entry = self.kb.match(ctx.raw)
        return self.kb.answer(entry, self.index) if entry else None

    async def _location_ask(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if is_location_ask(ctx.raw):
            return self.location_lookup(ctx.raw)
        return None

    async def _classify(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if self.tracer:
            self.tracer.info("intent", {"query": ctx.raw, "intent": ctx.intent})
        if self.ui:
            self.ui.log("Router", f"intent: {ctx.intent}")
        return None

    async def _app_intent(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if ctx.allow_llm and self.app_responder and app_topic_for(ctx.intent):
            return await self.app_responder.resolve(ctx.raw, ctx.intent)
        return None

    async def _support_fallback(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if is_support_heavy(ctx.intent, ctx.raw):
            return self.kb.fallback(ctx.intent, ctx.raw, self.index)
        return None

    async def _entity_or_navigator(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        response = self.location_lookup(ctx.raw)
        if response is None and ctx.allow_llm and self.navigator and is_location_ask(ctx.raw):
            response = await self.navigator.resolve(ctx.raw)
        return response

    async def _app_help(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        if ctx.allow_llm and self.app_responder:
            return await self.app_responder.resolve(ctx.raw, "app_help")
        return None

    async def _terminal_fallback(self, ctx: ResolutionContext) -> Optional[ConciergeResponse]:
        return self.kb.fallback(classify_intent(ctx.raw), ctx.raw, self.index)

    # Deterministic resolvers
    def deterministic_route(self, query: str) -> Optional[ConciergeResponse]:
        endpoints = extract_route_endpoints(query)
        if not endpoints:
            return None
        start = self.index.best_match(endpoints.start, min_score=self.entity_confidence)
        end = self.index.best_match(endpoints.end, min_score=self.entity_confidence)
        if not start or not end or start.building.id == end.building.id:
            return None
        return ConciergeResponse(
            message=(
                f"From {start.building.name}, walk toward {end.building.name}. "
                "I have pinned both points so you can follow the map route clearly."
            ),
            locations=[
                ConciergeLocation.from_building(start.building, role="start"),
                ConciergeLocation.from_building(end.building, role="end"),
            ],
            action="show_route",
            intent="route_navigation",
            verified=True,
            sources=list(MAP_SOURCES),
            follow_up=["If you want, ask for landmarks near the destination before you start."],
        )

    def location_lookup(self, query: str) -> Optional[ConciergeResponse]:
        matches = [m for m in self.index.find_buildings(query, limit=3) if m.score >= self.entity_confidence]
        if not matches:
            return None
        locations = [
            ConciergeLocation.from_building(m.building, service=self.index.match_service(m.building, query))
            for m in matches
        ]
        if len(locations) == 1:
            building = matches[0].building
            return ConciergeResponse(
                message=f"{building.name} is mapped on campus. "
                + (building.description or "I have highlighted the location for you."),
                locations=locations,
                action="show_location",
                intent="location_lookup",
                verified=True,
                sources=list(MAP_SOURCES),
                follow_up=["Ask for directions from your current point if needed."],
            )
        return ConciergeResponse(
            message="I found multiple relevant locations: "
            + ", ".join(m.building.name for m in matches)
            + ".",
            locations=locations,
            action="show_multiple_locations",
            intent="location_lookup",
            verified=True,
            sources=list(MAP_SOURCES),
            follow_up=["Tell me your start and destination if you want route guidance."],
        )

    def _stage(self, name: str, status: str) -> None:
        if self.ui:
            self.ui.stage(name, status)
