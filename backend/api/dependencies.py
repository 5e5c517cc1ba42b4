"""
Service wiring.

Everything is constructed once per application in `build_services` and
hung on `app.state`; routes pull what they need through FastAPI Depends.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from db import init_db, make_engine, make_session_factory
from repositories import CollectionStore, InMemoryCollectionStore, SqlCollectionStore
from services.collections import CollectionService
from services.ingest import IngestOrchestrator
from services.model_client import ModelClient
from services.tagging import TagInferrer
from services.vision import VisionExtractor
from settings import Settings


@dataclass
class Services:
    store: CollectionStore
    collections: CollectionService
    ingest: IngestOrchestrator
    tagger: TagInferrer


def build_store(settings: Settings) -> CollectionStore:
    if settings.COLLECTION_STORE == "memory":
        return InMemoryCollectionStore()
    if settings.COLLECTION_STORE == "sqlite":
        engine = make_engine(settings.DATABASE_URL)
        init_db(engine)
        return SqlCollectionStore(make_session_factory(engine))
    raise ValueError(f"Unknown COLLECTION_STORE: {settings.COLLECTION_STORE}")


def build_services(
    settings: Settings,
    store: Optional[CollectionStore] = None,
    model=None,
) -> Services:
    """`model` is anything with extract()/infer_tags(); defaults to the OpenAI client."""
    store = store if store is not None else build_store(settings)
    model = model if model is not None else ModelClient(settings)
    return Services(
        store=store,
        collections=CollectionService(store),
        ingest=IngestOrchestrator(
            VisionExtractor(model),
            max_media_files=settings.MAX_MEDIA_FILES,
        ),
        tagger=TagInferrer(model),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_collection_service(request: Request) -> CollectionService:
    return get_services(request).collections


def get_ingest_orchestrator(request: Request) -> IngestOrchestrator:
    return get_services(request).ingest


def get_tag_inferrer(request: Request) -> TagInferrer:
    return get_services(request).tagger
