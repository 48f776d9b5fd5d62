"""
Campus concierge: single-turn resolver for campus navigation and student-support questions.
"""
from concierge.catalog import BuildingIndex, MatchWeights, load_building_catalog
from concierge.errors import ConfigError, SummarySourceError
from concierge.knowledge import KnowledgeBase, load_knowledge_base
from concierge.pipeline import Concierge
from concierge.summaries import AppContextBuilder, RestSummarySource
from concierge.types import Building, ConciergeLocation, ConciergeResponse

__all__ = [
    "AppContextBuilder",
    "Building",
    "BuildingIndex",
    "Concierge",
    "ConciergeLocation",
    "ConciergeResponse",
    "ConfigError",
    "KnowledgeBase",
    "MatchWeights",
    "RestSummarySource",
    "SummarySourceError",
    "load_building_catalog",
    "load_knowledge_base",
]
