"""
Recipe Remix - Image intake.

Photos arrive either as raw bytes plus a content type (multipart upload) or
as a data URL (what the browser's FileReader produces). Both become an
ImageInput: base64 text plus media type, ready for the vision call.
"""

import base64
import binascii
import re
from dataclasses import dataclass

from recipe_remix.errors import InvalidInput

_DATA_URL = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)

# 20 MB, the vision endpoint's request ceiling
MAX_IMAGE_BYTES = 20 * 1024 * 1024


@dataclass(frozen=True)
class ImageInput:
    data: str  # base64, no data-URL prefix
    media_type: str

    def as_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def parse_image(image: bytes | str, content_type: str | None = None) -> ImageInput:
    """
    Validate an uploaded photo.

    Raises:
        InvalidInput: not an image, empty, too large, or not valid base64
    """
    if isinstance(image, (bytes, bytearray)):
        media_type = (content_type or "").strip().lower()
        raw = bytes(image)
    else:
        text = image.strip()
        match = _DATA_URL.match(text)
        if match:
            media_type = match.group("media_type").lower()
            text = match.group("data")
        else:
            media_type = (content_type or "").strip().lower()
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidInput("The image data is not valid base64") from None

    if not media_type.startswith("image/"):
        raise InvalidInput("Invalid file type. Please upload an image file")
    if not raw:
        raise InvalidInput("The image is empty")
    if len(raw) > MAX_IMAGE_BYTES:
        raise InvalidInput("The image is too large (20 MB max)")

    return ImageInput(data=base64.b64encode(raw).decode("ascii"), media_type=media_type)
