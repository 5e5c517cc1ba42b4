"""
Place helper routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_tag_inferrer
from services.tagging import TagInferrer

router = APIRouter()


class TagRequest(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None


class TagResponse(BaseModel):
    tags: List[str]


@router.post("/tags", response_model=TagResponse)
async def infer_tags(data: TagRequest, tagger: TagInferrer = Depends(get_tag_inferrer)):
    """Suggest up to three tags for a place. Model failures yield an empty list."""
    if not data.name or not data.name.strip():
        raise HTTPException(status_code=400, detail="name is required")
    tags = await run_in_threadpool(tagger.infer_tags, data.name.strip(), data.city)
    return TagResponse(tags=tags)
