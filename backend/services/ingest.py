"""
Clip ingest: validates the request, picks vision extraction for image-only
batches and the mock generator for anything else, and builds the envelope.
"""
import logging
from typing import Any, Callable, List, Optional, Sequence

from domain.errors import ValidationError
from domain.models import IngestResult, MediaFile, Place
from services.media import is_image_batch
from services.mock_places import get_mock_places
from services.vision import VisionExtractor, describe_result

logger = logging.getLogger(__name__)


class IngestOrchestrator:
    def __init__(
        self,
        vision: VisionExtractor,
        mock_generator: Callable[[], List[Place]] = get_mock_places,
        max_media_files: Optional[int] = None,
    ):
        self.vision = vision
        self.mock_generator = mock_generator
        self.max_media_files = max_media_files

    def validate(self, source_url: Any, media: Optional[Sequence[MediaFile]]) -> None:
        if not source_url or not isinstance(source_url, str) or not source_url.strip():
            raise ValidationError("tiktok_url is required")
        if not media:
            raise ValidationError("At least one media file is required")
        if self.max_media_files is not None and len(media) > self.max_media_files:
            raise ValidationError(f"At most {self.max_media_files} media files are allowed")

    def ingest(self, source_url: Any, media: Optional[Sequence[MediaFile]]) -> IngestResult:
        self.validate(source_url, media)
        clip_id = IngestResult.generate_id()

        if is_image_batch(media):
            logger.info("Clip %s: %d image(s), using vision extraction", clip_id, len(media))
            result = self.vision.extract_places(list(media))
            logger.info("Clip %s: %s", clip_id, describe_result(result))
            return IngestResult(clip_id=clip_id, places=result.places, error=result.error)

        types = sorted({m.mime_type for m in media})
        logger.info("Clip %s: non-image media %s, using mock places", clip_id, types)
        return IngestResult(clip_id=clip_id, places=self.mock_generator())
