"""
Clip ingest API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_ingest_orchestrator
from api.errors import to_http_exception
from domain.errors import SpotclipError
from domain.models import MediaFile
from services.ingest import IngestOrchestrator
from services.media import resolve_mime_type

router = APIRouter()


async def _read_uploads(uploads: List[UploadFile]) -> List[MediaFile]:
    files = []
    for upload in uploads:
        content = await upload.read()
        files.append(
            MediaFile(
                content=content,
                mime_type=resolve_mime_type(upload.filename, upload.content_type, content),
                filename=upload.filename,
            )
        )
    return files


@router.post("/ingest")
async def ingest_clip(
    tiktok_url: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    orchestrator: IngestOrchestrator = Depends(get_ingest_orchestrator),
):
    """
    Extract candidate places from an uploaded clip.

    Image-only batches go through vision extraction; anything else gets mock
    places. A failed extraction still returns 200 with an `error` field.
    """
    try:
        orchestrator.validate(tiktok_url, media)
        files = await _read_uploads(media)
        # Model call is blocking; keep it off the event loop
        result = await run_in_threadpool(orchestrator.ingest, tiktok_url, files)
    except SpotclipError as exc:
        raise to_http_exception(exc)
    return result.to_dict()
