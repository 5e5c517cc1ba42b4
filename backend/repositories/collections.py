"""
Collection persistence.

Two interchangeable stores keyed by collection id: a volatile in-memory map
and a SQLAlchemy-backed table. Both return detached copies, so the only way
to change stored state is `set`.
"""
import copy
import threading
from datetime import timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from domain.models import Collection
from repositories.models import CollectionORM


class CollectionStore:
    """Key-value store of collections. Iteration is insertion order."""

    def get(self, collection_id: str) -> Optional[Collection]:
        raise NotImplementedError

    def set(self, collection: Collection) -> None:
        raise NotImplementedError

    def values(self) -> List[Collection]:
        raise NotImplementedError

    def has(self, collection_id: str) -> bool:
        return self.get(collection_id) is not None


class InMemoryCollectionStore(CollectionStore):
    def __init__(self) -> None:
        self._data: Dict[str, Collection] = {}
        self._lock = threading.Lock()

    def get(self, collection_id: str) -> Optional[Collection]:
        with self._lock:
            found = self._data.get(collection_id)
            return copy.deepcopy(found) if found else None

    def set(self, collection: Collection) -> None:
        with self._lock:
            self._data[collection.id] = copy.deepcopy(collection)

    def values(self) -> List[Collection]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._data.values()]

    def has(self, collection_id: str) -> bool:
        with self._lock:
            return collection_id in self._data


def _collection_from_orm(orm: CollectionORM) -> Collection:
    created_at = orm.created_at
    # SQLite drops tzinfo on the way back out
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Collection.from_dict(
        {
            "id": orm.id,
            "name": orm.name,
            "places": orm.places or [],
            "created_at": created_at,
        }
    )


class SqlCollectionStore(CollectionStore):
    """Collections persisted as one row each, places stored as a JSON column."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        # Guards the max(seq)+1 read against concurrent creates of other ids
        self._write_lock = threading.Lock()

    def get(self, collection_id: str) -> Optional[Collection]:
        with self._session_factory() as session:
            orm = session.get(CollectionORM, collection_id)
            return _collection_from_orm(orm) if orm else None

    def set(self, collection: Collection) -> None:
        places = [p.to_dict() for p in collection.places]
        with self._write_lock, self._session_factory() as session:
            orm = session.get(CollectionORM, collection.id)
            if orm is None:
                orm = CollectionORM(
                    id=collection.id,
                    seq=self._next_seq(session),
                    created_at=collection.created_at,
                )
            orm.name = collection.name
            orm.places = places
            session.add(orm)
            session.commit()

    def values(self) -> List[Collection]:
        with self._session_factory() as session:
            rows = session.query(CollectionORM).order_by(CollectionORM.seq.asc()).all()
            return [_collection_from_orm(r) for r in rows]

    def has(self, collection_id: str) -> bool:
        with self._session_factory() as session:
            return session.get(CollectionORM, collection_id) is not None

    @staticmethod
    def _next_seq(session: Session) -> int:
        current = session.query(func.max(CollectionORM.seq)).scalar()
        return (current or 0) + 1
