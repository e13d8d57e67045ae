"""
Reader AI - Response Parser
Turns raw provider replies into summaries and book recommendations
"""

import json
from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Any

from core.logger import log_warning
from llm.errors import MalformedRecommendationResponse

REQUIRED_FIELDS = ("title", "author", "reason")


@dataclass(frozen=True)
class Recommendation:
    """One suggested book. Title, author and reason are always present."""
    title: str
    author: str
    reason: str
    tags: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def search_key(self) -> str:
        """Query used to look the book up in an ordinary library search."""
        return f"{self.title} {self.author}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "reason": self.reason,
            "tags": list(self.tags),
            "search_key": self.search_key,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Recommendation":
        """
        Build a recommendation from a decoded JSON object.

        Raises:
            ValueError: If the object is not a mapping, a required field is
                missing or null, or tags is not a list
        """
        if not isinstance(data, dict):
            raise ValueError(f"recommendation must be an object, got {type(data).__name__}")

        values = {}
        for name in REQUIRED_FIELDS:
            value = data.get(name)
            if value is None or isinstance(value, (dict, list, bool)):
                raise ValueError(f"missing or invalid '{name}'")
            values[name] = str(value)

        tags = data.get("tags")
        if tags is None:
            tags = []
        if not isinstance(tags, list):
            raise ValueError("'tags' must be a list")

        return cls(tags=tuple(str(tag) for tag in tags), **values)


def parse_summary(raw: str) -> str:
    """The reply is the summary itself; only surrounding whitespace is removed."""
    return raw.strip()


def extract_json_span(raw: str) -> str:
    """
    Return the text from the first '{' to the last '}' inclusive.

    Providers sometimes wrap the requested JSON in prose; this assumes the
    single top-level object is the payload and does not balance braces.

    Raises:
        MalformedRecommendationResponse: If no non-empty span exists
    """
    start = raw.find("{")
    end = raw.rfind("}") + 1

    if start == -1 or end <= start:
        raise MalformedRecommendationResponse("no JSON object found in response", raw)

    return raw[start:end]


def parse_recommendations(raw: str) -> List[Recommendation]:
    """
    Parse a recommendation reply into Recommendation values.

    All-or-nothing: one invalid element fails the whole parse.

    Raises:
        MalformedRecommendationResponse: Carries the raw reply for diagnostics
    """
    span = extract_json_span(raw)

    try:
        payload = json.loads(span)
    except json.JSONDecodeError as e:
        log_warning(f"Recommendation reply is not valid JSON: {e}")
        raise MalformedRecommendationResponse(f"invalid JSON ({e.msg})", raw) from e

    if not isinstance(payload, dict):
        raise MalformedRecommendationResponse("top-level JSON value is not an object", raw)

    items = payload.get("recommendations")
    if not isinstance(items, list):
        raise MalformedRecommendationResponse("'recommendations' array missing", raw)

    recommendations = []
    for index, item in enumerate(items):
        try:
            recommendations.append(Recommendation.from_dict(item))
        except ValueError as e:
            raise MalformedRecommendationResponse(f"item {index}: {e}", raw) from e

    return recommendations
