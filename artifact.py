"""Image artifacts exchanged between the model gateway and the GUI.

An artifact is the raw image bytes plus the media type reported by the model.
At the boundary it is represented as a self-describing data URI.
"""
import base64
import binascii
import re
import time
from dataclasses import dataclass
from typing import Optional

from errors import MalformedInputError


DEFAULT_MIME_TYPE = "image/png"

_DATA_URI_RE = re.compile(r"^data:(image/[A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class ImageArtifact:
    mime_type: str
    data: bytes

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImageArtifact":
        """Parse ``data:image/<subtype>;base64,<payload>`` into an artifact."""
        if not isinstance(uri, str):
            raise MalformedInputError("Invalid image data URL")
        match = _DATA_URI_RE.match(uri.strip())
        if not match:
            raise MalformedInputError("Invalid image data URL")
        mime_type, payload = match.group(1), match.group(2)
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise MalformedInputError("Invalid base64 payload in image data URL")
        return cls(mime_type=mime_type.lower(), data=data)

    @classmethod
    def from_base64(cls, payload: str, mime_type: Optional[str] = None) -> "ImageArtifact":
        """Wrap a standard base64 payload; raises binascii.Error if it does not decode."""
        return cls(mime_type=mime_type or DEFAULT_MIME_TYPE, data=base64.b64decode(payload, validate=True))

    @property
    def base64_payload(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_payload}"

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.mime_type.lower(), "png")

    def suggested_filename(self, timestamp_ms: Optional[int] = None) -> str:
        """Timestamped download name, e.g. ``sketch-genius-1700000000000.png``."""
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"sketch-genius-{timestamp_ms}.{self.extension}"

    def __repr__(self) -> str:
        return f"ImageArtifact(mime_type={self.mime_type!r}, size={len(self.data)})"
