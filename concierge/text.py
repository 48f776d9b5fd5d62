"""
Text normalization helpers shared by every matcher.
"""
import re
from typing import Iterable, List

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(value: str) -> str:
    if not value:
        return ""
    text = _NON_ALNUM.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(value: str) -> List[str]:
    # single characters carry no signal for substring scoring
    return [token for token in normalize(value).split(" ") if len(token) > 1]


def includes_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)
