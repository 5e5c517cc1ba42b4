"""
Demo seed data for dev/demo mode only (SEED_DEMO_DATA=true).

Idempotent: a demo collection is added only if its fixed id is not already
in the store. User-created collections are never touched.
"""
import logging
from typing import List, Optional

from domain.models import Collection, Evidence, Place, utc_now
from repositories.collections import CollectionStore

logger = logging.getLogger(__name__)

DEMO_SEATTLE_ID = "demo-seattle"
DEMO_MANHATTAN_ID = "demo-manhattan"


def _place(
    place_id: str,
    name: str,
    city: str,
    tags: List[str],
    note: Optional[str] = None,
    favorite: bool = False,
    visited: bool = False,
) -> Place:
    return Place(
        id=place_id,
        name=name,
        city_guess=city,
        confidence=0.95,
        evidence=Evidence.frame(0),
        is_favorite=favorite,
        is_visited=visited,
        created_at=utc_now(),
        tags=tags,
        note=note,
    )


def build_seattle_collection() -> Collection:
    return Collection(
        id=DEMO_SEATTLE_ID,
        name="Seattle",
        places=[
            _place("demo-seattle-1", "Pike Place Market", "Seattle", ["viewpoint", "restaurant"],
                   note="Must-see for first-time visitors. Great food and flowers.",
                   favorite=True, visited=True),
            _place("demo-seattle-2", "Space Needle", "Seattle", ["viewpoint", "activity location"],
                   note="Iconic tower with observation deck.", favorite=True),
            _place("demo-seattle-3", "Museum of Pop Culture", "Seattle", ["activity location"],
                   visited=True),
            _place("demo-seattle-4", "Starbucks Reserve Roastery", "Seattle", ["coffee", "cafe/bakery"],
                   note="Largest Starbucks in the world."),
        ],
    )


def build_manhattan_collection() -> Collection:
    return Collection(
        id=DEMO_MANHATTAN_ID,
        name="Manhattan",
        places=[
            _place("demo-manhattan-1", "Central Park", "New York", ["viewpoint", "activity location"],
                   note="Perfect for a long walk or picnic.", favorite=True, visited=True),
            _place("demo-manhattan-2", "Empire State Building", "New York", ["viewpoint"],
                   favorite=True),
            _place("demo-manhattan-3", "Times Square", "New York", ["viewpoint", "activity location"],
                   note="Overwhelming but worth seeing once.", visited=True),
            _place("demo-manhattan-4", "The High Line", "New York", ["viewpoint", "activity location"]),
            _place("demo-manhattan-5", "Katz's Delicatessen", "New York", ["restaurant"],
                   note="Classic pastrami. Cash preferred.", visited=True),
        ],
    )


def seed_demo_data(store: CollectionStore) -> List[str]:
    """Insert missing demo collections; returns the ids that were added."""
    added = []
    for builder in (build_seattle_collection, build_manhattan_collection):
        collection = builder()
        if store.has(collection.id):
            continue
        store.set(collection)
        added.append(collection.id)
    if added:
        logger.info("Seeded demo collections: %s", ", ".join(added))
    return added
