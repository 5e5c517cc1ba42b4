"""
Canned places returned when the upload cannot go through vision extraction
(videos, or batches mixing images with other media).
"""
import random
from typing import List, Optional

from domain.models import Evidence, Place

MOCK_CATALOG = (
    ("Café de Flore", "Paris", 0.92, Evidence.frame(0)),
    ("Shibuya Crossing", "Tokyo", 0.87, Evidence.frame(3)),
    ("Taquería Orinoco", "Mexico City", 0.78, Evidence.audio(14.0)),
    ("Pike Place Market", "Seattle", 0.95, Evidence.frame(7)),
)

MIN_MOCK_PLACES = 2
MAX_MOCK_PLACES = 4


def get_mock_places(rng: Optional[random.Random] = None) -> List[Place]:
    """Return 2-4 distinct catalog places in random order, each with a fresh id."""
    rng = rng or random.Random()
    count = rng.randint(MIN_MOCK_PLACES, min(MAX_MOCK_PLACES, len(MOCK_CATALOG)))
    picked = rng.sample(MOCK_CATALOG, count)
    return [
        Place(
            id=Place.generate_id(),
            name=name,
            city_guess=city,
            confidence=confidence,
            evidence=evidence,
        )
        for name, city, confidence, evidence in picked
    ]
