"""Tests for render.image_loader.QtImageLoader with local files."""

import pytest
from PIL import Image

from render.image_loader import QtImageLoader
from tests.conftest import wait_until

pytestmark = pytest.mark.usefixtures("qapp")


class _Outcome:
    def __init__(self):
        self.loaded = []
        self.failed = []

    def on_loaded(self, url):
        self.loaded.append(url)

    def on_failed(self, url, reason):
        self.failed.append((url, reason))

    @property
    def done(self):
        return bool(self.loaded or self.failed)


@pytest.fixture()
def photo(tmp_path):
    path = tmp_path / "photo.png"
    Image.new("RGB", (64, 48), "orange").save(path, "PNG")
    return path


def test_local_path_loads_asynchronously(photo):
    outcome = _Outcome()
    QtImageLoader().load(str(photo), outcome.on_loaded, outcome.on_failed)
    assert not outcome.done
    assert wait_until(lambda: outcome.done)
    assert outcome.loaded == [str(photo)]
    assert outcome.failed == []


def test_file_url_loads(photo):
    outcome = _Outcome()
    url = photo.as_uri()
    QtImageLoader().load(url, outcome.on_loaded, outcome.on_failed)
    assert wait_until(lambda: outcome.done)
    assert outcome.loaded == [url]


def test_missing_file_fails(tmp_path):
    outcome = _Outcome()
    missing = str(tmp_path / "missing.jpg")
    QtImageLoader().load(missing, outcome.on_loaded, outcome.on_failed)
    assert wait_until(lambda: outcome.done)
    assert outcome.loaded == []
    assert outcome.failed[0][0] == missing


def test_not_an_image_fails(tmp_path):
    bogus = tmp_path / "bogus.jpg"
    bogus.write_bytes(b"plain text")
    outcome = _Outcome()
    QtImageLoader().load(str(bogus), outcome.on_loaded, outcome.on_failed)
    assert wait_until(lambda: outcome.done)
    assert len(outcome.failed) == 1


def test_unsupported_scheme_fails():
    outcome = _Outcome()
    QtImageLoader().load("ftp://example.com/a.jpg", outcome.on_loaded, outcome.on_failed)
    assert wait_until(lambda: outcome.done)
    assert "unsupported scheme" in outcome.failed[0][1]
