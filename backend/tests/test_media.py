"""
Tests for upload MIME resolution and image preparation.
"""
import base64
from io import BytesIO

import pytest
from PIL import Image

from domain.models import MediaFile
from services import media
from services.media import (
    is_heic_file,
    is_image_batch,
    prepare_for_vision,
    resolve_mime_type,
    to_data_url,
)


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


class TestResolveMimeType:
    def test_declared_type_wins(self):
        assert resolve_mime_type("clip.bin", "video/mp4") == "video/mp4"

    def test_declared_type_parameters_stripped(self):
        assert resolve_mime_type(None, "image/PNG; charset=binary") == "image/png"

    def test_image_jpg_alias(self):
        assert resolve_mime_type(None, "image/jpg") == "image/jpeg"

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("photo.JPG", "image/jpeg"),
            ("photo.heic", "image/heic"),
            ("frame.webp", "image/webp"),
            ("clip.mov", "video/quicktime"),
        ],
    )
    def test_extension_when_generic_type(self, filename, expected):
        assert resolve_mime_type(filename, "application/octet-stream") == expected

    def test_sniffs_image_bytes(self):
        assert resolve_mime_type("upload", "application/octet-stream", _png_bytes()) == "image/png"

    def test_unknown_falls_back(self):
        assert resolve_mime_type("fixture.txt", None, b"fake-media-content") == "application/octet-stream"

    def test_unknown_keeps_declared_non_media_type(self):
        assert resolve_mime_type("fixture.txt", "text/plain", b"hello") == "text/plain"


def test_is_image_batch():
    png = MediaFile(content=b"", mime_type="image/png")
    heif = MediaFile(content=b"", mime_type="image/heif")
    video = MediaFile(content=b"", mime_type="video/mp4")
    svg = MediaFile(content=b"", mime_type="image/svg+xml")
    assert is_image_batch([png, heif])
    assert not is_image_batch([png, video])
    assert not is_image_batch([svg])
    assert not is_image_batch([])


def test_is_heic_file():
    assert is_heic_file("IMG_0001.HEIC")
    assert is_heic_file("upload", "image/heif")
    assert not is_heic_file("photo.jpg", "image/jpeg")


def test_to_data_url():
    url = to_data_url(MediaFile(content=b"abc", mime_type="image/gif"))
    assert url == "data:image/gif;base64," + base64.b64encode(b"abc").decode()


def test_prepare_passes_through_non_heic():
    original = MediaFile(content=b"jpeg", mime_type="image/jpeg", filename="a.jpg")
    assert prepare_for_vision(original) is original


def test_prepare_converts_heic(monkeypatch):
    monkeypatch.setattr(media, "convert_heic_to_jpeg", lambda data: b"converted")
    out = prepare_for_vision(MediaFile(content=b"heic", mime_type="image/heic", filename="a.heic"))
    assert out.mime_type == "image/jpeg"
    assert out.content == b"converted"


def test_prepare_keeps_original_when_conversion_fails():
    original = MediaFile(content=b"not-really-heic", mime_type="image/heic", filename="a.heic")
    out = prepare_for_vision(original)
    assert out is original


def test_convert_real_image_to_jpeg():
    jpeg = media.convert_heic_to_jpeg(_png_bytes())
    with Image.open(BytesIO(jpeg)) as img:
        assert img.format == "JPEG"
