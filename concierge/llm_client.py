import json
import os
from typing import Any, Dict, Optional

from openai import OpenAI

DEFAULT_MODEL = "gpt-4o-mini"


class SimpleLLMClient:
    """
    A stateless, lightweight LLM client for single-turn JSON completions.
    Works against OpenAI or any OpenAI-compatible endpoint (e.g. Ollama).
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        resolved_base_url = (
            base_url
            or os.environ.get("OPENAI_BASE_URL")
            or os.environ.get("OLLAMA_BASE_URL")
        )
        resolved_api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not resolved_api_key and resolved_base_url:
            resolved_api_key = "ollama"
        if not resolved_api_key:
            raise RuntimeError("OPENAI_API_KEY must be set (or provide api_key manually)")

        self.client = OpenAI(
            api_key=resolved_api_key,
            base_url=resolved_base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.model = model

    def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {"model": self.model, "messages": messages}
        if response_format:
            kwargs["response_format"] = response_format
        response = self.client.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Tolerant JSON parse for model output: whole text first, then the outermost {...}.
    Anything that is not a JSON object yields None.
    """
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        start = text.find("{")
        end = text.rfind("}")
        if start < 0 or end <= start:
            return None
        try:
            data = json.loads(text[start : end + 1])
        except ValueError:
            return None
    return data if isinstance(data, dict) else None
