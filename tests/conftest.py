"""
Shared pytest fixtures for placeholder-bench tests.
"""
import base64
import io
import os
import sys
import time

# Ensure project root is on path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# QImage/QPainter and the event loop need a platform plugin but no display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image
from PySide6.QtCore import QCoreApplication, QEventLoop
from PySide6.QtGui import QGuiApplication

from core.decoder import PillowPlaceholderDecoder
from core.models import SampleImage
from render.image_loader import ImageLoader
from render.strategy import RenderOptions
from render.style_sheet import RuleCache, StyleSheet


class MockConfigManager:
    """Minimal ConfigManager substitute that accepts a plain dict."""

    def __init__(self, overrides: dict | None = None):
        self._cfg: dict = {
            "bench": {
                "image_count": 10,
                "min_image_count": 1,
                "max_image_count": 500,
                "settle_window_ms": 500,
                "settle_mode": "barrier",
            },
            "render": {
                "crossfade_ms": 0,
                "blur_radius": 20,
                "placeholder_scale": 1.1,
                "load_timeout_ms": 0,
            },
        }
        if overrides:
            for section, values in overrides.items():
                if isinstance(values, dict):
                    self._cfg.setdefault(section, {}).update(values)
                else:
                    self._cfg[section] = values

    def get(self, key: str, default=None):
        keys = key.split(".")
        val = self._cfg
        for k in keys:
            if isinstance(val, dict):
                val = val.get(k)
            else:
                return default
        return val if val is not None else default


class FakeImageLoader(ImageLoader):
    """Records load requests; tests decide when (and whether) they complete."""

    def __init__(self):
        self.requests = []  # [(url, on_loaded, on_failed)]

    def load(self, url, on_loaded, on_failed):
        self.requests.append((url, on_loaded, on_failed))

    @property
    def urls(self):
        return [r[0] for r in self.requests]

    def complete(self, url):
        for u, on_loaded, _ in self.requests:
            if u == url:
                on_loaded(u)

    def fail(self, url, reason="404"):
        for u, _, on_failed in self.requests:
            if u == url:
                on_failed(u, reason)

    def complete_all(self):
        for u, on_loaded, _ in list(self.requests):
            on_loaded(u)


def make_placeholder(size=(4, 3), color=(10, 20, 30, 255), fmt="PNG") -> str:
    """A placeholder string the Pillow decoder accepts."""
    img = Image.new("RGBA", size, color)
    out = io.BytesIO()
    img.save(out, fmt)
    return base64.b64encode(out.getvalue()).decode("ascii")


def make_samples(count, placeholder=None, url_prefix="img"):
    return [
        SampleImage(
            id=str(i),
            placeholder=placeholder or make_placeholder(color=(i % 256, 40, 80, 255)),
            url=f"{url_prefix}/{i}.jpg" if url_prefix else None,
        )
        for i in range(count)
    ]


def wait_until(predicate, timeout_ms=3000) -> bool:
    """Spin the Qt event loop until *predicate* holds or the timeout passes."""
    deadline = time.monotonic() + timeout_ms / 1000.0
    while not predicate():
        if time.monotonic() > deadline:
            return False
        QCoreApplication.processEvents(QEventLoop.ProcessEventsFlag.AllEvents, 20)
        time.sleep(0.001)
    return True


@pytest.fixture(scope="session")
def qapp():
    app = QGuiApplication.instance() or QGuiApplication([])
    yield app


@pytest.fixture()
def decoder():
    return PillowPlaceholderDecoder()


@pytest.fixture()
def rule_cache():
    """A fresh cache per test; the sheet is never shared between tests."""
    return RuleCache(StyleSheet("test-placeholder-styles"))


@pytest.fixture()
def loader():
    return FakeImageLoader()


@pytest.fixture()
def options():
    return RenderOptions(crossfade_ms=0, load_timeout_ms=0)
