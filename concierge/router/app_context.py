"""
App-context bridge: answers app-wide questions (notices, events, clubs,
lost & found, marketplace, app help) from live summaries plus the model.
"""
import asyncio
from typing import Any, Optional

from concierge.llm_client import DEFAULT_MODEL, SimpleLLMClient, parse_json_object
from concierge.router.keywords import app_topic_for
from concierge.types import ConciergeResponse
from utils.prompt_loader import load_prompt

PROMPT_FILE = "app_context_system.md"

DEFAULT_SYSTEM_PROMPT = """
You are Smart Pulchowk Assistant, a campus companion for Pulchowk Campus students.
Answer using only the live app data provided. Do NOT make up data.
Return only JSON: {"message": "your helpful response"}
"""

APP_KNOWLEDGE = """
Smart Pulchowk is a campus companion app for Pulchowk Campus (IOE, Tribhuvan University) students.
Key features:
- Notices: IOE exam results, routines, application forms and general campus notices.
- Events: Browse and register for campus events organized by student clubs.
- Clubs: View active student clubs, their profiles, missions and social links.
- Map & Navigation: Interactive campus map with building locations and route guidance.
- Book Marketplace: Buy and sell second-hand textbooks with other students.
- Lost & Found: Report or search for lost and found items on campus.
- Chat: Direct messaging between students for book deals.
- Notifications: Push notifications for new notices, events and chat messages.
- Calendar: Academic calendar view.
- Classroom: Classroom and course information.
""".strip()


class AppContextResponder:
    def __init__(
        self,
        context_builder,
        client: Optional[Any] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 20.0,
        prompt_file: str = PROMPT_FILE,
        tracer=None,
    ) -> None:
        self.context_builder = context_builder
        self.client = client or SimpleLLMClient(model=model, timeout=timeout)
        self.model = getattr(self.client, "model", model)
        self.timeout = timeout
        self.tracer = tracer
        try:
            self.system_prompt = load_prompt(prompt_file)
        except Exception as exc:
            print(f"AppContextResponder prompt load failed ({prompt_file}): {exc}")
            self.system_prompt = DEFAULT_SYSTEM_PROMPT

    def build_prompt(self, query: str, context_data: str) -> str:
        return (
            f"About the app:\n{APP_KNOWLEDGE}\n\n"
            f"Live data from the app:\n{context_data}\n\n"
            f"User query: {query}"
        )

    async def resolve(self, query: str, intent: str) -> Optional[ConciergeResponse]:
        topic = app_topic_for(intent)
        if not topic:
            return None
        try:
            context_data = await asyncio.wait_for(self.context_builder.build(topic), timeout=self.timeout)
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.generate,
                    prompt=self.build_prompt(query, context_data),
                    system_prompt=self.system_prompt,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
        except Exception as exc:
            print(f"AppContextResponder failed: {exc!r}")
            if self.tracer:
                self.tracer.log_event(
                    {"type": "app_context_error", "topic": topic, "query": query, "error": repr(exc)}
                )
            return None

        parsed = parse_json_object(raw)
        message = parsed.get("message") if parsed else None
        if not isinstance(message, str) or not message.strip():
            return None
        return ConciergeResponse(
            message=message.strip(),
            locations=[],
            action="text_answer",
            intent=intent,
            verified=True,
            sources=[f"app_context:{topic}", f"llm:{self.model}"],
            follow_up=[],
        )
