"""
Shared fixtures and fakes for the concierge tests.
"""
import json
import time
from typing import Any, Dict, List, Optional, Sequence, Union

from concierge.catalog import BuildingIndex
from concierge.knowledge import KnowledgeBase

FIXTURE_BUILDINGS: List[Dict[str, Any]] = [
    {
        "id": "dean-office",
        "name": "Dean Office",
        "coordinates": {"lat": 27.68190, "lng": 85.31880},
        "description": "Main administrative office.",
        "services": [
            {"name": "Account Section", "purpose": "Fee verification", "location": "Ground floor"},
        ],
    },
    {
        "id": "pulchowk-library",
        "name": "Pulchowk Library",
        "coordinates": {"lat": 27.68158, "lng": 85.31943},
        "description": "Central library with reading halls.",
    },
    {
        "id": "campus-mess",
        "name": "Campus Mess",
        "coordinates": {"lat": 27.68101, "lng": 85.31953},
        "description": "Student dining hall.",
    },
    {
        "id": "exam-control-office",
        "name": "Exam Control Office",
        "coordinates": {"lat": 27.68210, "lng": 85.31850},
        "description": "Admit cards and transcripts.",
    },
    {
        "id": "fsu-office",
        "name": "FSU Office",
        "coordinates": {"lat": 27.68050, "lng": 85.32010},
        "description": "Free Students Union office.",
    },
    {
        "id": "fsu-clinic",
        "name": "FSU Clinic",
        "coordinates": {"lat": 27.68040, "lng": 85.32030},
        "description": "Health clinic.",
    },
]

FIXTURE_KB: Dict[str, Any] = {
    "entries": [
        {
            "id": "exam-office",
            "intent": "office_lookup",
            "category": "exams",
            "question_patterns": ["exam office"],
            "keywords": ["admit card"],
            "answer": "The Exam Control Office issues admit cards.",
            "location_ids": ["exam-control-office"],
            "source_type": "official_page",
            "last_verified_at": "2025-01-01T00:00:00Z",
            "follow_up": ["Ask about transcripts."],
        },
    ],
    "fallbacks": {
        "general": {"message": "No verified answer yet."},
        "escalation": {
            "message": "Reach the FSU Office or the Dean Office.",
            "location_ids": ["fsu-office", "dean-office"],
            "follow_up": ["Ask how to file a complaint."],
        },
    },
}


def fixture_index(**kwargs) -> BuildingIndex:
    return BuildingIndex.from_dicts(FIXTURE_BUILDINGS, **kwargs)


def fixture_kb(**kwargs) -> KnowledgeBase:
    return KnowledgeBase.from_dict(FIXTURE_KB, **kwargs)


class FakeLLM:
    """
    Stands in for SimpleLLMClient: returns canned replies in order (the last one repeats)
    and records every call. An Exception instance in the replies is raised instead.
    """

    def __init__(self, replies: Union[str, Exception, Sequence[Any]] = "", model: str = "fake-model") -> None:
        if isinstance(replies, (str, Exception, dict)):
            replies = [replies]
        self.replies = list(replies)
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    def generate(self, prompt: str, system_prompt: str = "", response_format: Optional[Dict[str, Any]] = None) -> str:
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "response_format": response_format})
        index = min(len(self.calls), len(self.replies)) - 1
        reply = self.replies[index] if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class SlowLLM(FakeLLM):
    def __init__(self, delay: float, replies: Any = "{}") -> None:
        super().__init__(replies)
        self.delay = delay

    def generate(self, prompt: str, system_prompt: str = "", response_format: Optional[Dict[str, Any]] = None) -> str:
        time.sleep(self.delay)
        return super().generate(prompt, system_prompt, response_format)


class FakeContextBuilder:
    def __init__(self, text: str = "Recent Notices (1):\n1. [exam] Routine published (2025-09-01)", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[Any] = []

    async def build(self, topics) -> str:
        self.calls.append(topics)
        if self.error:
            raise self.error
        return self.text


def read_events(tracer) -> List[Dict[str, Any]]:
    if not tracer.events_file.exists():
        return []
    with tracer.events_file.open("r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
