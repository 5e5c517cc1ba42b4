from .collections import CollectionStore, InMemoryCollectionStore, SqlCollectionStore
from . import models

__all__ = ["CollectionStore", "InMemoryCollectionStore", "SqlCollectionStore", "models"]
