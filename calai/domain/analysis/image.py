"""
Uploaded image value object and the intake rules shared by client and server.

Images only ever live in memory. Nothing here writes to disk.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional

# 5 MiB
MAX_IMAGE_BYTES = 5 * 1024 * 1024

IMAGE_MEDIA_PREFIX = "image/"


def is_image_media_type(media_type: Optional[str]) -> bool:
    """True if the declared media type is an image type."""
    return media_type is not None and media_type.startswith(IMAGE_MEDIA_PREFIX)


@dataclass(frozen=True)
class UploadedImage:
    """
    Binary payload with its declared media type.

    Attributes:
        data: Raw image bytes
        media_type: Declared media type (e.g. ``image/jpeg``)
        filename: Original file name, informative only
    """

    data: bytes
    media_type: str
    filename: str = "image"

    @property
    def size(self) -> int:
        return len(self.data)

    def exceeds(self, max_bytes: int = MAX_IMAGE_BYTES) -> bool:
        return self.size > max_bytes

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        """``data:<media_type>;base64,<payload>`` using the original media type."""
        return f"data:{self.media_type};base64,{self.to_base64()}"

    def __repr__(self) -> str:
        # keep payload bytes out of logs and tracebacks
        return (
            f"UploadedImage(media_type={self.media_type!r}, "
            f"filename={self.filename!r}, size={self.size})"
        )
