import random

from domain.models import EvidenceSource
from services.mock_places import MOCK_CATALOG, get_mock_places

CATALOG_NAMES = {entry[0] for entry in MOCK_CATALOG}


def test_count_and_uniqueness_across_seeds():
    counts = set()
    for seed in range(50):
        places = get_mock_places(random.Random(seed))
        counts.add(len(places))
        assert 2 <= len(places) <= 4
        names = [p.name for p in places]
        assert len(set(names)) == len(names)
        assert set(names) <= CATALOG_NAMES
    assert counts == {2, 3, 4}


def test_fresh_ids_every_call():
    first = get_mock_places(random.Random(1))
    second = get_mock_places(random.Random(1))
    assert [p.name for p in first] == [p.name for p in second]
    assert not {p.id for p in first} & {p.id for p in second}


def test_places_are_valid_candidates():
    for place in get_mock_places():
        assert 0.0 <= place.confidence <= 1.0
        evidence = place.evidence.to_dict()
        if place.evidence.source is EvidenceSource.FRAME:
            assert set(evidence) == {"source", "index"}
        else:
            assert set(evidence) == {"source", "timestamp_s"}
        assert place.created_at is None
