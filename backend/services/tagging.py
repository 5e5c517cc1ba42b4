"""
Tag inference for a place from its name and city, using the language model's
general knowledge. Returns a subset of ALLOWED_TAGS; never raises.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from domain.models import ALLOWED_TAGS, MAX_TAGS

logger = logging.getLogger(__name__)

_ALLOWED_SET = frozenset(ALLOWED_TAGS)


class TaggingModel(Protocol):
    def infer_tags(self, prompt: str) -> str:
        ...


def build_tag_prompt(name: str, city: Optional[str] = None) -> str:
    city_part = f" in or near {city.strip()}" if city and city.strip() else ""
    return (
        f'Given the place name "{name}"{city_part}, choose 1 to 3 categories that best fit. '
        f"Use ONLY these exact strings (comma-separated): {', '.join(ALLOWED_TAGS)}. "
        "If uncertain, return fewer (even 0). No other text, no explanation."
    )


def parse_tags(content: Optional[str]) -> List[str]:
    """Split on commas, keep allowed tags in first-seen order, at most MAX_TAGS."""
    if not content:
        return []
    out: List[str] = []
    for token in content.split(","):
        tag = token.strip().lower()
        if tag in _ALLOWED_SET and tag not in out:
            out.append(tag)
            if len(out) >= MAX_TAGS:
                break
    return out


class TagInferrer:
    def __init__(self, model: TaggingModel):
        self.model = model

    def infer_tags(self, name: str, city: Optional[str] = None) -> List[str]:
        try:
            content = self.model.infer_tags(build_tag_prompt(name, city))
            return parse_tags(content.strip() if content else None)
        except Exception as exc:
            logger.warning("Tag inference failed for %r: %s", name, exc)
            return []
