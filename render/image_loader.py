"""Final-image loading.

The harness only cares whether the full-resolution image arrived. Each
request ends in exactly one callback: ``on_loaded(url)`` or
``on_failed(url, reason)``, delivered on the Qt event loop.
"""
import logging
from typing import Callable, Set
from urllib.parse import urlparse
from urllib.request import url2pathname

from PySide6.QtCore import QTimer, QUrl
from PySide6.QtGui import QImage, QImageReader
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

logger = logging.getLogger(__name__)

LoadedFn = Callable[[str], None]
FailedFn = Callable[[str, str], None]


class ImageLoader:
    def load(self, url: str, on_loaded: LoadedFn, on_failed: FailedFn) -> None:
        raise NotImplementedError


class QtImageLoader(ImageLoader):
    """Local files through QImageReader, http(s) through QNetworkAccessManager."""

    def __init__(self):
        self._network = None
        self._pending: Set[QNetworkReply] = set()

    def load(self, url: str, on_loaded: LoadedFn, on_failed: FailedFn) -> None:
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            self._load_network(url, on_loaded, on_failed)
            return
        if parsed.scheme == "file":
            path = url2pathname(parsed.path)
        elif parsed.scheme and len(parsed.scheme) > 1:
            QTimer.singleShot(0, lambda: on_failed(url, f"unsupported scheme {parsed.scheme!r}"))
            return
        else:
            path = url
        # why: callers must always see the result asynchronously, as with a network load
        QTimer.singleShot(0, lambda: self._load_local(url, path, on_loaded, on_failed))

    def _load_local(self, url: str, path: str, on_loaded: LoadedFn, on_failed: FailedFn) -> None:
        reader = QImageReader(path)
        image = reader.read()
        if image.isNull():
            on_failed(url, reader.errorString())
            return
        logger.debug("Loaded %s (%dx%d)", url, image.width(), image.height())
        on_loaded(url)

    def _load_network(self, url: str, on_loaded: LoadedFn, on_failed: FailedFn) -> None:
        if self._network is None:
            self._network = QNetworkAccessManager()
        reply = self._network.get(QNetworkRequest(QUrl(url)))
        self._pending.add(reply)

        def _finished():
            self._pending.discard(reply)
            try:
                if reply.error() != QNetworkReply.NetworkError.NoError:
                    on_failed(url, reply.errorString())
                    return
                image = QImage()
                if not image.loadFromData(reply.readAll()):
                    on_failed(url, "response is not a readable image")
                    return
                on_loaded(url)
            finally:
                reply.deleteLater()

        reply.finished.connect(_finished)

    @property
    def pending_count(self) -> int:
        return len(self._pending)
