"""
Media helpers for uploaded attachments.

Resolves MIME types, classifies batches (image-only vs. anything else),
converts HEIC/HEIF to JPEG and builds inline data URLs for the vision model.
"""
import base64
import logging
from io import BytesIO
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from domain.models import MediaFile

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/heic",
        "image/heif",
    }
)

HEIC_TYPES = frozenset({"image/heic", "image/heif", "image/heic-sequence", "image/heif-sequence"})

OCTET_STREAM = "application/octet-stream"

_EXTENSION_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
    "mp4": "video/mp4",
    "m4v": "video/x-m4v",
    "mov": "video/quicktime",
    "webm": "video/webm",
    "3gp": "video/3gpp",
}

# Pillow format name -> MIME type
_PIL_FORMAT_TYPES = {
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "HEIF": "image/heif",
}


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.lower().rsplit(".", 1)[-1]


def _sniff_image_type(content: bytes) -> Optional[str]:
    try:
        with Image.open(BytesIO(content)) as img:
            return _PIL_FORMAT_TYPES.get(img.format or "")
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def resolve_mime_type(
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes = b"",
) -> str:
    """
    Work out the MIME type of an upload.

    Order: declared image/* or video/* type, then file extension, then a
    Pillow sniff of the bytes. Falls back to application/octet-stream.
    """
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared.startswith("image/") or declared.startswith("video/"):
        if declared == "image/jpg":
            return "image/jpeg"
        return declared

    by_ext = _EXTENSION_TYPES.get(_extension(filename))
    if by_ext:
        return by_ext

    if content:
        sniffed = _sniff_image_type(content)
        if sniffed:
            return sniffed

    return declared or OCTET_STREAM


def is_supported_image(mime_type: str) -> bool:
    return mime_type in SUPPORTED_IMAGE_TYPES


def is_image_batch(files: Iterable[MediaFile]) -> bool:
    """True if the batch is non-empty and every file is a supported image."""
    files = list(files)
    return bool(files) and all(is_supported_image(f.mime_type) for f in files)


def is_heic_file(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    """
    Check if a file is a HEIC/HEIF image.

    Args:
        filename: Original filename
        content_type: MIME content type if available

    Returns:
        True if the file is likely HEIC/HEIF.
    """
    if _extension(filename) in ("heic", "heif"):
        return True
    if content_type and content_type.lower() in HEIC_TYPES:
        return True
    return False


def convert_heic_to_jpeg(file_bytes: bytes, quality: int = 90) -> bytes:
    """
    Convert HEIC/HEIF image bytes to JPEG.

    Raises:
        Exception if conversion fails (opener not registered, invalid image, etc.)
    """
    img = Image.open(BytesIO(file_bytes))

    # HEIC may carry alpha or other modes
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    output = BytesIO()
    img.save(output, format="JPEG", quality=quality, optimize=True)
    output.seek(0)
    return output.read()


def register_heif_opener() -> bool:
    """
    Register HEIF/HEIC opener with Pillow if pillow-heif is available.

    Call this at application startup to enable HEIC support.
    Safe to call multiple times.
    """
    try:
        from pillow_heif import register_heif_opener as _register
        _register()
        return True
    except ImportError:
        logger.warning("pillow-heif not installed; HEIC uploads are sent to the model unconverted")
        return False


def prepare_for_vision(media: MediaFile) -> MediaFile:
    """
    Return a file the vision endpoint accepts.

    HEIC/HEIF is converted to JPEG; when conversion fails the original bytes
    are passed through with their declared type.
    """
    if not is_heic_file(media.filename, media.mime_type):
        return media
    try:
        jpeg = convert_heic_to_jpeg(media.content)
    except Exception as exc:
        logger.warning("HEIC conversion failed for %s: %s", media.filename or "<upload>", exc)
        return media
    return MediaFile(content=jpeg, mime_type="image/jpeg", filename=media.filename)


def to_data_url(media: MediaFile) -> str:
    encoded = base64.b64encode(media.content).decode("ascii")
    return f"data:{media.mime_type};base64,{encoded}"
