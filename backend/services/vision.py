"""
Image place extraction.

Sends a batch of images to the vision model in a single request and turns
its loosely-structured JSON answer into clean Place candidates:

1. strip markdown fences, parse JSON, tolerate a missing `places` list
2. trim names, drop generic phrases ("a restaurant", "the beach", ...)
3. de-duplicate by case-insensitive name, first occurrence wins
4. assign ids, default the city, clamp confidence, default evidence index

Any failure up to and including parsing degrades to an empty result with
an advisory error string; it never propagates to the caller.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from domain.models import (
    UNKNOWN_CITY,
    Evidence,
    ExtractionResult,
    MediaFile,
    Place,
    clamp_confidence,
    is_finite_number,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a place-extraction assistant. You receive one or more images from a social-media clip. Identify every real, specific, named place visible or referenced in the images (restaurants, cafés, bars, landmarks, parks, shops, etc.).

Return ONLY valid JSON, no markdown fences, no commentary:
{
  "places": [
    {
      "name": "<place name>",
      "city_guess": "<city or region>",
      "confidence": <0-1>,
      "evidence": { "source": "frame", "index": <0-based image index> }
    }
  ]
}

Rules:
- "name" must be the specific name of a real place (e.g. "Blue Bottle Coffee", "Colosseum").
- Do NOT include generic descriptions like "a restaurant", "the beach", "a coffee shop".
- "city_guess" is your best guess at the city or region.
- "confidence" reflects how sure you are (0 = guess, 1 = certain).
- "index" is the 0-based index of the image where you found the evidence.
- If you find no real places, return { "places": [] }."""

# Non-specific descriptors; also rejected with an "a " or "the " prefix.
GENERIC_PHRASES = (
    "restaurant",
    "cafe",
    "coffee shop",
    "bar",
    "beach",
    "park",
    "hotel",
    "shop",
    "store",
    "market",
    "street",
    "building",
    "a place",
    "unknown",
    "n/a",
)

_GENERIC_NAMES = frozenset(
    variant
    for phrase in GENERIC_PHRASES
    for variant in (phrase, f"a {phrase}", f"the {phrase}")
)

MIN_NAME_LENGTH = 2

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class VisionModel(Protocol):
    def extract(self, images: Sequence[MediaFile], system_prompt: str, instruction: str) -> str:
        ...


def build_instruction(image_count: int) -> str:
    return f"I have {image_count} image(s) from a TikTok clip. Extract all real place names."


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw).replace("```", "").strip()


def parse_places_payload(raw: str) -> List[Any]:
    """
    Parse the model's text into the raw `places` list.

    Raises ValueError (json.JSONDecodeError) on unparseable text. A valid
    document without a `places` list yields [].
    """
    parsed = json.loads(strip_code_fences(raw))
    if not isinstance(parsed, dict):
        return []
    places = parsed.get("places")
    if not isinstance(places, list):
        return []
    return places


def is_generic_name(name: str) -> bool:
    lowered = name.strip().lower()
    return len(lowered) < MIN_NAME_LENGTH or lowered in _GENERIC_NAMES


def dedupe_by_name(candidates: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first candidate per case-insensitive trimmed name."""
    seen = set()
    result = []
    for cand in candidates:
        key = cand["name"].strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(cand)
    return result


def _frame_evidence(raw: Any) -> Evidence:
    index = raw.get("index") if isinstance(raw, dict) else None
    if not is_finite_number(index) or index < 0:
        return Evidence.frame(0)
    return Evidence.frame(int(index))


def _city(raw: Any) -> str:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return UNKNOWN_CITY


def normalize_candidates(raw_places: Iterable[Any]) -> List[Place]:
    """Filter, de-duplicate and convert raw model candidates to Places."""
    named = []
    for item in raw_places:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            continue
        name = item["name"].strip()
        if is_generic_name(name):
            continue
        named.append({**item, "name": name})

    return [
        Place(
            id=Place.generate_id(),
            name=cand["name"],
            city_guess=_city(cand.get("city_guess")),
            confidence=clamp_confidence(cand.get("confidence")),
            evidence=_frame_evidence(cand.get("evidence")),
        )
        for cand in dedupe_by_name(named)
    ]


class VisionExtractor:
    """Runs the extraction pipeline against an injected model client."""

    def __init__(self, model: VisionModel):
        self.model = model

    def extract_places(self, images: Sequence[MediaFile]) -> ExtractionResult:
        try:
            logger.info("Sending %d image(s) to vision model", len(images))
            raw = self.model.extract(images, SYSTEM_PROMPT, build_instruction(len(images)))
            logger.debug("Raw vision response: %s", raw)
            raw_places = parse_places_payload(raw)
            places = normalize_candidates(raw_places)
        except Exception as exc:
            message = str(exc) or "Vision extraction failed"
            logger.warning("Vision extraction failed: %s", message)
            return ExtractionResult(places=[], error=message)

        logger.info("Extracted %d place(s) from %d raw candidate(s)", len(places), len(raw_places))
        return ExtractionResult(places=places)


def describe_result(result: ExtractionResult) -> Optional[str]:
    """Short log-friendly summary."""
    if result.degraded:
        return f"degraded: {result.error}"
    return f"{len(result.places)} place(s)"
