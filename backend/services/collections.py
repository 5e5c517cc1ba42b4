"""
Collection mutation protocol.

Create-or-append saves, favorite/visited/note/tags patches, place deletion
and the derived list/favorites views. Read-modify-write operations are
serialized per collection id; each call either fully applies or leaves the
stored collection untouched.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

from domain.errors import NotFoundError, ValidationError
from domain.models import (
    ALLOWED_TAGS,
    MAX_TAGS,
    Collection,
    FavoriteItem,
    Place,
    clamp_confidence,
    utc_now,
)
from repositories.collections import CollectionStore

logger = logging.getLogger(__name__)

_ALLOWED_SET = frozenset(ALLOWED_TAGS)


def normalize_note(value: Optional[str]) -> Optional[str]:
    """Empty or whitespace-only notes become None."""
    if value is None or not value.strip():
        return None
    return value


def validate_tags(value: Any) -> List[str]:
    """
    Check a submitted tag list against the vocabulary and the size cap.

    Tags are trimmed and lower-cased before the membership check; the cap
    applies to the list as submitted. Duplicates collapse to the first one.
    """
    if not isinstance(value, list):
        raise ValidationError("tags must be an array of strings")
    if len(value) > MAX_TAGS:
        raise ValidationError(f"At most {MAX_TAGS} tags are allowed")
    result: List[str] = []
    for item in value:
        tag = item.strip().lower() if isinstance(item, str) else None
        if tag not in _ALLOWED_SET:
            raise ValidationError(
                f"Invalid tag: {item!r}. Allowed tags: {', '.join(ALLOWED_TAGS)}"
            )
        if tag not in result:
            result.append(tag)
    return result


def normalize_place(place: Place, now: Optional[datetime] = None) -> Place:
    """
    Fill in the collection fields of a place being saved.

    Only absent fields are defaulted, so normalizing twice is a no-op.
    """
    return replace(
        place,
        id=place.id or Place.generate_id(),
        confidence=clamp_confidence(place.confidence),
        is_favorite=place.is_favorite if place.is_favorite is not None else False,
        is_visited=place.is_visited if place.is_visited is not None else False,
        created_at=place.created_at or now or utc_now(),
        tags=list(place.tags) if place.tags is not None else [],
        note=normalize_note(place.note),
    )


def place_from_payload(item: Any) -> Place:
    """Validate one wire place object and decode it."""
    if isinstance(item, Place):
        return item
    if not isinstance(item, dict):
        raise ValidationError("Each place must be an object")
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Each place requires a non-empty name")
    place = Place.from_dict(item)
    if item.get("tags") is not None:
        place.tags = validate_tags(item["tags"])
    return place


@dataclass
class SaveResult:
    collection: Collection
    created: bool


class KeyedLocks:
    """
    One lock per key, alive only while some caller holds or waits on it.

    Entries are reference-counted so ids that are only ever looked up (404s)
    do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


class CollectionService:
    def __init__(self, store: CollectionStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self._locks = KeyedLocks()

    def _require(self, collection_id: str) -> Collection:
        collection = self.store.get(collection_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        return collection

    def save_places(self, collection_id: str, places: Any, name: Any = None) -> SaveResult:
        """
        Create the collection on first save for an id, append on every later one.

        A name is required to create; on append a supplied name replaces the
        current one.
        """
        if not isinstance(places, list):
            raise ValidationError("places[] is required")
        decoded = [place_from_payload(p) for p in places]
        new_name = name.strip() if isinstance(name, str) and name.strip() else None

        with self._locks.hold(collection_id):
            now = self.clock()
            normalized = [normalize_place(p, now) for p in decoded]
            existing = self.store.get(collection_id)

            if existing is None:
                if new_name is None:
                    raise ValidationError("name is required when creating a collection")
                collection = Collection(
                    id=collection_id,
                    name=new_name,
                    places=normalized,
                    created_at=now,
                )
                self.store.set(collection)
                logger.debug("Created collection %s with %d place(s)", collection_id, len(normalized))
                return SaveResult(collection=collection, created=True)

            existing.places.extend(normalized)
            if new_name is not None:
                existing.name = new_name
            self.store.set(existing)
            logger.debug("Appended %d place(s) to collection %s", len(normalized), collection_id)
            return SaveResult(collection=existing, created=False)

    def patch_place(self, collection_id: str, place_id: str, payload: Any) -> Collection:
        """
        Apply any of isFavorite, isVisited, note and tags to one place.

        Booleans change only when present and boolean-typed; invalid tags fail
        the whole patch before anything is written.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        with self._locks.hold(collection_id):
            collection = self._require(collection_id)
            place = collection.find_place(place_id)
            if place is None:
                raise NotFoundError("Place not found")

            tags = validate_tags(payload["tags"]) if payload.get("tags") is not None else None

            if isinstance(payload.get("isFavorite"), bool):
                place.is_favorite = payload["isFavorite"]
            if isinstance(payload.get("isVisited"), bool):
                place.is_visited = payload["isVisited"]
            if "note" in payload:
                note = payload["note"]
                if note is None or isinstance(note, str):
                    place.note = normalize_note(note)
            if tags is not None:
                place.tags = tags

            self.store.set(collection)
            logger.debug("Patched place %s in collection %s", place_id, collection_id)
            return collection

    def delete_place(self, collection_id: str, place_id: str) -> Collection:
        with self._locks.hold(collection_id):
            collection = self._require(collection_id)
            remaining = [p for p in collection.places if p.id != place_id]
            if len(remaining) == len(collection.places):
                raise NotFoundError("Place not found")
            collection.places = remaining
            self.store.set(collection)
            logger.debug("Deleted place %s from collection %s", place_id, collection_id)
            return collection

    def get_collection(self, collection_id: str) -> Collection:
        return self._require(collection_id)

    def list_collections(self) -> List[Collection]:
        """All collections, newest first."""
        return sorted(self.store.values(), key=lambda c: c.created_at, reverse=True)

    def list_favorites(self) -> List[FavoriteItem]:
        """Favorited places in store order, then place order within each collection."""
        return [
            FavoriteItem(place=place, collection_id=collection.id, collection_name=collection.name)
            for collection in self.store.values()
            for place in collection.places
            if place.is_favorite is True
        ]
