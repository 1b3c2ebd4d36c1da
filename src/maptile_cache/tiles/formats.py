"""
Image Format Detection

Classifies tile payloads as PNG or JPEG, trusting an advertised content type
when it names one of the two formats and falling back to the leading byte
signature otherwise. Unknown payloads are treated as PNG.
"""

from enum import Enum
from typing import Optional

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class ImageFormat(Enum):
    """Tile image formats the cache understands."""
    PNG = ("png", "image/png")
    JPEG = ("jpg", "image/jpeg")

    @property
    def extension(self) -> str:
        return self.value[0]

    @property
    def content_type(self) -> str:
        return self.value[1]


_CONTENT_TYPES = {
    "image/png": ImageFormat.PNG,
    "image/x-png": ImageFormat.PNG,
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/pjpeg": ImageFormat.JPEG,
}


def format_from_content_type(content_type: Optional[str]) -> Optional[ImageFormat]:
    """Map a Content-Type header value to a format, ``None`` if unrecognised."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return _CONTENT_TYPES.get(media_type)


def sniff(data: bytes) -> Optional[ImageFormat]:
    """Detect the format from the byte signature, ``None`` if neither matches."""
    if data.startswith(JPEG_SIGNATURE):
        return ImageFormat.JPEG
    if data.startswith(PNG_SIGNATURE):
        return ImageFormat.PNG
    return None


def classify(data: bytes, advertised_content_type: Optional[str] = None) -> ImageFormat:
    """
    Classify tile bytes as PNG or JPEG.

    Args:
        data: Raw tile payload, possibly empty
        advertised_content_type: Content-Type reported alongside the payload

    Returns:
        The detected format; PNG when nothing else can be determined
    """
    return (
        format_from_content_type(advertised_content_type)
        or sniff(data or b"")
        or ImageFormat.PNG
    )
