"""
Collections API routes.

Bodies are taken as raw JSON so that wrongly-typed patch fields are ignored
instead of being coerced or rejected wholesale.
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from api.dependencies import get_collection_service
from api.errors import to_http_exception
from domain.errors import SpotclipError
from services.collections import CollectionService

router = APIRouter()


@router.get("")
async def list_collections(service: CollectionService = Depends(get_collection_service)):
    """List all collections, newest first."""
    return {"collections": [c.to_dict() for c in service.list_collections()]}


@router.get("/{collection_id}")
async def get_collection(
    collection_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    try:
        return service.get_collection(collection_id).to_dict()
    except SpotclipError as exc:
        raise to_http_exception(exc)


@router.post("/{collection_id}/places")
async def save_places(
    collection_id: str,
    response: Response,
    payload: Any = Body(None),
    service: CollectionService = Depends(get_collection_service),
):
    """
    Save places into a collection.

    The first save for an id creates the collection (201, name required);
    later saves append to it (200, optional name replaces the current one).
    """
    body = payload if isinstance(payload, dict) else {}
    try:
        result = service.save_places(collection_id, body.get("places"), body.get("name"))
    except SpotclipError as exc:
        raise to_http_exception(exc)
    response.status_code = 201 if result.created else 200
    return {"collection": result.collection.to_dict()}


@router.patch("/{collection_id}/places/{place_id}")
async def patch_place(
    collection_id: str,
    place_id: str,
    payload: Any = Body(None),
    service: CollectionService = Depends(get_collection_service),
):
    """Update isFavorite, isVisited, note and/or tags on a saved place."""
    try:
        collection = service.patch_place(collection_id, place_id, payload)
    except SpotclipError as exc:
        raise to_http_exception(exc)
    return collection.to_dict()


@router.delete("/{collection_id}/places/{place_id}")
async def delete_place(
    collection_id: str,
    place_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    try:
        collection = service.delete_place(collection_id, place_id)
    except SpotclipError as exc:
        raise to_http_exception(exc)
    return collection.to_dict()
