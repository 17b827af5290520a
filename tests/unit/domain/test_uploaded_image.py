"""Unit tests for UploadedImage and the shared intake rules."""

import base64

import pytest

from calai.domain.analysis.image import MAX_IMAGE_BYTES, UploadedImage, is_image_media_type


@pytest.mark.parametrize(
    "media_type, expected",
    [
        ("image/jpeg", True),
        ("image/png", True),
        ("image/heic", True),
        ("application/pdf", False),
        ("text/plain", False),
        ("", False),
        (None, False),
        ("IMAGE/JPEG", False),
    ],
)
def test_is_image_media_type(media_type: str, expected: bool) -> None:
    assert is_image_media_type(media_type) is expected


def test_max_image_bytes_is_5_mib() -> None:
    assert MAX_IMAGE_BYTES == 5 * 1024 * 1024


def test_exceeds_limit_boundaries() -> None:
    at_limit = UploadedImage(data=b"\0" * MAX_IMAGE_BYTES, media_type="image/jpeg")
    over_limit = UploadedImage(data=b"\0" * (MAX_IMAGE_BYTES + 1), media_type="image/jpeg")

    assert at_limit.exceeds() is False
    assert over_limit.exceeds() is True
    assert over_limit.size == MAX_IMAGE_BYTES + 1


def test_data_uri_uses_original_media_type() -> None:
    image = UploadedImage(data=b"\x89PNG fake", media_type="image/png", filename="x.png")

    uri = image.to_data_uri()

    assert uri.startswith("data:image/png;base64,")
    assert base64.b64decode(uri.split(",", 1)[1]) == b"\x89PNG fake"


def test_repr_does_not_include_payload() -> None:
    image = UploadedImage(data=b"secret-bytes", media_type="image/jpeg", filename="a.jpg")

    assert "secret-bytes" not in repr(image)
    assert "size=12" in repr(image)
