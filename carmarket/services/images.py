"""Decoding of embedded (data-URI) images."""

import base64
import binascii
import re
import time
from dataclasses import dataclass
from typing import Optional

DATA_URI_PREFIX = "data:image/"
DEFAULT_EXTENSION = "jpeg"

_EXTENSION_RE = re.compile(r"^data:image/([a-zA-Z0-9]+);")


class InvalidImageError(ValueError):
    """The payload is not a recognized embedded image."""


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    extension: str

    @property
    def content_type(self) -> str:
        return f"image/{self.extension}"

    def filename(self, index: int, timestamp_ms: Optional[int] = None) -> str:
        """Storage filename, unique within a listing through timestamp and position."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"image-{timestamp_ms}-{index}.{self.extension}"


def decode_data_uri(value: object) -> DecodedImage:
    """Decode a `data:image/<ext>;base64,<payload>` string.

    Raises:
        InvalidImageError: If the value is not a decodable embedded image
    """
    if not isinstance(value, str) or not value.startswith(DATA_URI_PREFIX):
        raise InvalidImageError("not an embedded image payload")

    header, separator, payload = value.partition(",")
    if not separator or not payload:
        raise InvalidImageError("missing image payload")
    if not header.endswith(";base64"):
        raise InvalidImageError("image payload is not base64 encoded")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"invalid base64 payload: {e}") from e
    if not data:
        raise InvalidImageError("empty image payload")

    match = _EXTENSION_RE.match(value)
    extension = match.group(1).lower() if match else DEFAULT_EXTENSION
    return DecodedImage(data=data, extension=extension)
