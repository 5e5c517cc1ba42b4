"""
Core domain models for the place-extraction backend.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import math
import uuid


# Fixed closed vocabulary for place tags, in display order.
ALLOWED_TAGS = (
    "cafe/bakery",
    "food truck",
    "coffee",
    "bar",
    "club",
    "activity location",
    "viewpoint",
    "restaurant",
)
MAX_TAGS = 3
UNKNOWN_CITY = "Unknown"
DEFAULT_CONFIDENCE = 0.5


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass through a datetime). Returns None when unparseable."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    """True for real numbers other than NaN and +/-Infinity."""
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:  # int too large for a float
        return False


def clamp_confidence(value: Any) -> float:
    """Clamp into [0, 1]; missing or non-numeric values fall back to DEFAULT_CONFIDENCE."""
    if not _is_number(value) or value != value:  # NaN
        return DEFAULT_CONFIDENCE
    return float(max(0.0, min(1.0, value)))


class EvidenceSource(str, Enum):
    """Where a place was found in the submitted media."""
    FRAME = "frame"
    AUDIO = "audio"


@dataclass(frozen=True)
class Evidence:
    """
    Provenance of an extracted place.

    Exactly one variant is populated, selected by `source`:
    - frame: `index` is the 0-based image position in the submitted batch
    - audio: `timestamp_s` is the offset into the clip's audio track
    """
    source: EvidenceSource
    index: Optional[int] = None
    timestamp_s: Optional[float] = None

    @classmethod
    def frame(cls, index: int = 0) -> "Evidence":
        return cls(source=EvidenceSource.FRAME, index=index)

    @classmethod
    def audio(cls, timestamp_s: float) -> "Evidence":
        return cls(source=EvidenceSource.AUDIO, timestamp_s=timestamp_s)

    def to_dict(self) -> Dict[str, Any]:
        if self.source is EvidenceSource.FRAME:
            return {"source": self.source.value, "index": self.index}
        if self.source is EvidenceSource.AUDIO:
            return {"source": self.source.value, "timestamp_s": self.timestamp_s}
        raise ValueError(f"Unknown evidence source: {self.source}")

    @classmethod
    def from_dict(cls, data: Any) -> "Evidence":
        """Build evidence from wire data, defaulting to frame index 0 when malformed."""
        if not isinstance(data, dict):
            return cls.frame(0)
        source = data.get("source")
        if source == EvidenceSource.AUDIO.value:
            ts = data.get("timestamp_s")
            if is_finite_number(ts) and ts >= 0:
                return cls.audio(float(ts))
            return cls.frame(0)
        index = data.get("index")
        if is_finite_number(index) and index >= 0:
            return cls.frame(int(index))
        return cls.frame(0)


@dataclass
class Place:
    """
    A candidate or saved point of interest.

    Extraction produces the first five fields only. The collection fields
    (is_favorite, is_visited, created_at, tags, note) stay None until the
    place is normalized on save into a Collection.
    """
    id: str
    name: str
    city_guess: str = UNKNOWN_CITY
    confidence: float = DEFAULT_CONFIDENCE
    evidence: Evidence = field(default_factory=Evidence.frame)
    is_favorite: Optional[bool] = None
    is_visited: Optional[bool] = None
    created_at: Optional[datetime] = None
    tags: Optional[List[str]] = None
    note: Optional[str] = None

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    @property
    def is_saved(self) -> bool:
        return self.created_at is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "city_guess": self.city_guess,
            "confidence": self.confidence,
            "evidence": self.evidence.to_dict(),
        }
        if self.is_favorite is not None:
            data["isFavorite"] = self.is_favorite
        if self.is_visited is not None:
            data["isVisited"] = self.is_visited
        if self.created_at is not None:
            data["created_at"] = self.created_at.isoformat()
        if self.tags is not None:
            data["tags"] = list(self.tags)
        if self.is_saved or self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        """Lenient wire decoding; policy checks live in the services layer."""
        city = data.get("city_guess")
        tags = data.get("tags")
        note = data.get("note")
        place_id = data.get("id")
        return cls(
            id=place_id if isinstance(place_id, str) and place_id else "",
            name=str(data.get("name", "")).strip(),
            city_guess=city.strip() if isinstance(city, str) and city.strip() else UNKNOWN_CITY,
            confidence=clamp_confidence(data.get("confidence")),
            evidence=Evidence.from_dict(data.get("evidence")),
            is_favorite=data["isFavorite"] if isinstance(data.get("isFavorite"), bool) else None,
            is_visited=data["isVisited"] if isinstance(data.get("isVisited"), bool) else None,
            created_at=parse_timestamp(data.get("created_at")),
            tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else None,
            note=note if isinstance(note, str) else None,
        )


@dataclass
class Collection:
    """
    A named, ordered group of places.

    The id is supplied by the caller and acts as the create-vs-append key.
    """
    id: str
    name: str
    places: List[Place] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)

    def find_place(self, place_id: str) -> Optional[Place]:
        for place in self.places:
            if place.id == place_id:
                return place
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "places": [p.to_dict() for p in self.places],
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Collection":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            places=[Place.from_dict(p) for p in data.get("places") or []],
            created_at=parse_timestamp(data.get("created_at")) or utc_now(),
        )


@dataclass
class FavoriteItem:
    """Read-only projection of a favorited place plus its owning collection."""
    place: Place
    collection_id: str
    collection_name: str

    def to_dict(self) -> Dict[str, Any]:
        data = self.place.to_dict()
        data["collectionId"] = self.collection_id
        data["collectionName"] = self.collection_name
        return data


@dataclass
class MediaFile:
    """An uploaded attachment with its resolved MIME type."""
    content: bytes
    mime_type: str
    filename: Optional[str] = None


@dataclass
class ExtractionResult:
    """
    Outcome of a vision extraction.

    A failed model call is not an exception: places is empty and error
    carries an advisory message for the response envelope.
    """
    places: List[Place] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass
class IngestResult:
    clip_id: str
    places: List[Place] = field(default_factory=list)
    error: Optional[str] = None

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "clip_id": self.clip_id,
            "places": [p.to_dict() for p in self.places],
        }
        if self.error:
            data["error"] = self.error
        return data
