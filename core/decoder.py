"""Decoder adapters: opaque placeholder string -> pixels or renderable URI.

The harness treats decoding as a black box. Both modes are synchronous,
never return a partially populated result and raise ``DecodeError`` on
malformed input. Which mode is cheaper is exactly what the benchmark
measures, so nothing here should assume it.
"""
import base64
import binascii
import io
import logging
from abc import ABC, abstractmethod

from PIL import Image, UnidentifiedImageError

from core.errors import DecodeError
from core.models import DecodedPixels

logger = logging.getLogger(__name__)


def decode_placeholder_bytes(placeholder: str) -> bytes:
    """Strict base64 decode. Missing padding is tolerated, stray characters are not."""
    if not isinstance(placeholder, str):
        raise DecodeError(repr(placeholder), "placeholder must be a string")
    text = placeholder.strip()
    if not text:
        raise DecodeError(placeholder, "empty placeholder")
    if len(text) % 4 == 1:
        raise DecodeError(placeholder, "truncated base64")
    text += "=" * (-len(text) % 4)
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(placeholder, f"invalid base64 ({e})") from e
    if not data:
        raise DecodeError(placeholder, "empty payload")
    return data


class PlaceholderDecoder(ABC):

    @abstractmethod
    def decode_to_pixels(self, placeholder: str) -> DecodedPixels:
        """Return an RGBA buffer of exactly width*height*4 bytes."""

    @abstractmethod
    def decode_to_uri(self, placeholder: str) -> str:
        """Return a self-contained image URI (e.g. a data: URI)."""


class PillowPlaceholderDecoder(PlaceholderDecoder):
    """Placeholders are base64-encoded tiny image files that Pillow can read.

    ``max_side`` keeps placeholders low resolution; anything larger is
    rejected before its pixel data is loaded.
    """

    URI_FORMAT = "PNG"

    def __init__(self, max_side: int = 100):
        self.max_side = max_side

    def _open_rgba(self, placeholder: str) -> Image.Image:
        data = decode_placeholder_bytes(placeholder)
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                if width > self.max_side or height > self.max_side:
                    too_large = f"{width}x{height} exceeds {self.max_side}px"
                else:
                    too_large = None
                    img.load()
                    rgba = img.convert("RGBA")
        except UnidentifiedImageError as e:
            raise DecodeError(placeholder, "unrecognised image header") from e
        except (OSError, SyntaxError, ValueError, EOFError, Image.DecompressionBombError) as e:
            raise DecodeError(placeholder, f"corrupt payload ({e})") from e
        if too_large:
            raise DecodeError(placeholder, too_large)
        return rgba

    def decode_to_pixels(self, placeholder: str) -> DecodedPixels:
        rgba = self._open_rgba(placeholder)
        return DecodedPixels(rgba.width, rgba.height, rgba.tobytes())

    def decode_to_uri(self, placeholder: str) -> str:
        rgba = self._open_rgba(placeholder)
        out = io.BytesIO()
        rgba.save(out, self.URI_FORMAT, optimize=False)
        encoded = base64.b64encode(out.getvalue()).decode("ascii")
        return f"data:image/{self.URI_FORMAT.lower()};base64,{encoded}"
