from concierge.router.app_context import AppContextResponder
from concierge.router.keywords import classify_intent, is_location_ask, is_support_heavy
from concierge.router.llm_navigator import LLMNavigator
from concierge.router.routes import extract_route_endpoints, is_route_query

__all__ = [
    "AppContextResponder",
    "LLMNavigator",
    "classify_intent",
    "extract_route_endpoints",
    "is_location_ask",
    "is_route_query",
    "is_support_heavy",
]
