"""
Favorites API routes.
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_collection_service
from services.collections import CollectionService

router = APIRouter()


@router.get("")
async def list_favorites(service: CollectionService = Depends(get_collection_service)):
    """Every favorited place across collections, tagged with its collection."""
    return {"favorites": [f.to_dict() for f in service.list_favorites()]}
