"""Tests for core.decoder: the Pillow-backed placeholder adapter."""

import base64
import io

import pytest
from PIL import Image

from core.decoder import PillowPlaceholderDecoder, decode_placeholder_bytes
from core.errors import DecodeError
from tests.conftest import make_placeholder


class TestDecodeBytes:
    def test_unpadded_base64_accepted(self):
        raw = b"\x89PNG\r\n"
        encoded = base64.b64encode(raw).decode().rstrip("=")
        assert decode_placeholder_bytes(encoded) == raw

    @pytest.mark.parametrize("bad", ["", "   ", "abcde", "ab$d", "a"])
    def test_malformed_base64_rejected(self, bad):
        with pytest.raises(DecodeError):
            decode_placeholder_bytes(bad)

    def test_non_string_rejected(self):
        with pytest.raises(DecodeError):
            decode_placeholder_bytes(None)


class TestPillowDecoder:
    def test_pixels_match_dimensions(self, decoder):
        decoded = decoder.decode_to_pixels(make_placeholder((5, 3), (1, 2, 3, 255)))
        assert (decoded.width, decoded.height) == (5, 3)
        assert len(decoded.pixels) == 5 * 3 * 4
        assert decoded.pixels[:4] == bytes((1, 2, 3, 255))

    def test_rgb_payload_becomes_rgba(self, decoder):
        img = Image.new("RGB", (2, 2), (9, 8, 7))
        out = io.BytesIO()
        img.save(out, "PNG")
        decoded = decoder.decode_to_pixels(base64.b64encode(out.getvalue()).decode())
        assert decoded.pixels[:4] == bytes((9, 8, 7, 255))

    def test_uri_is_self_contained_png(self, decoder):
        uri = decoder.decode_to_uri(make_placeholder((4, 4)))
        assert uri.startswith("data:image/png;base64,")
        payload = base64.b64decode(uri.split(",", 1)[1])
        with Image.open(io.BytesIO(payload)) as img:
            assert img.size == (4, 4)

    def test_bad_header_rejected(self, decoder):
        garbage = base64.b64encode(b"definitely not an image").decode()
        with pytest.raises(DecodeError) as exc:
            decoder.decode_to_pixels(garbage)
        assert exc.value.placeholder == garbage
        with pytest.raises(DecodeError):
            decoder.decode_to_uri(garbage)

    def test_truncated_payload_rejected(self, decoder):
        data = base64.b64decode(make_placeholder((20, 20)))
        truncated = base64.b64encode(data[: len(data) // 2]).decode()
        with pytest.raises(DecodeError):
            decoder.decode_to_pixels(truncated)

    def test_oversized_placeholder_rejected(self):
        small = PillowPlaceholderDecoder(max_side=8)
        with pytest.raises(DecodeError):
            small.decode_to_pixels(make_placeholder((9, 2)))
        assert small.decode_to_pixels(make_placeholder((8, 8))).width == 8
