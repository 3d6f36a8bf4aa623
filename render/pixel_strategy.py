"""Pixel-buffer strategy: decode to RGBA, blit to a tiny offscreen surface."""
import logging
import time
from typing import Optional, Tuple

from PySide6.QtGui import QImage, QPainter

from core.decoder import PlaceholderDecoder
from core.errors import DecodeError
from core.models import DecodedPixels, SampleImage
from core.timing_collector import elapsed_ms
from render.image_loader import ImageLoader
from render.strategy import PlaceholderInstance, RenderOptions, RenderStrategy, ReportFn

logger = logging.getLogger(__name__)

_FORMAT = QImage.Format.Format_RGBA8888


class PixelSurface:
    """Offscreen surface at the decoded resolution.

    It is scaled up visually (``scale``, ``blur_radius``), never resampled,
    so the backing image must always match the decoded buffer exactly.
    """

    def __init__(self):
        self.image: Optional[QImage] = None
        self.visible = True
        self.released = False
        self.opacity = 1.0
        self.blur_radius = 0.0
        self.scale = 1.0
        self.allocations = 0

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        if self.image is None:
            return None
        return self.image.width(), self.image.height()

    def ensure_size(self, width: int, height: int) -> None:
        if self.size != (width, height):
            self.image = QImage(width, height, _FORMAT)
            self.allocations += 1

    def blit(self, decoded: DecodedPixels) -> None:
        self.ensure_size(decoded.width, decoded.height)
        source = QImage(decoded.pixels, decoded.width, decoded.height,
                        decoded.width * 4, _FORMAT)
        painter = QPainter(self.image)
        try:
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
            painter.drawImage(0, 0, source)
        finally:
            painter.end()

    def apply_transform(self, blur_radius: float, scale: float) -> None:
        self.blur_radius = blur_radius
        self.scale = scale

    def hide(self) -> None:
        self.visible = False

    def release(self) -> None:
        self.image = None
        self.visible = False
        self.released = True


class PixelBufferInstance(PlaceholderInstance):

    def __init__(self, sample: SampleImage, report: ReportFn, loader: ImageLoader,
                 options: RenderOptions, decoder: PlaceholderDecoder):
        super().__init__(sample, report, loader, options)
        self._decoder = decoder
        self.surface = PixelSurface()

    def render_placeholder(self) -> None:
        start = time.perf_counter()
        try:
            decoded = self._decoder.decode_to_pixels(self.sample.placeholder)
        except DecodeError as e:
            self.surface.hide()
            self._fail_decode(e)
            return
        self.surface.blit(decoded)
        # decode + surface allocation + blit
        self._deliver_sample(elapsed_ms(start))
        self.surface.apply_transform(self.options.blur_radius, self.options.placeholder_scale)

    def on_fade_progress(self, value: float) -> None:
        self.surface.opacity = 1.0 - value

    def on_fade_finished(self) -> None:
        self.surface.release()

    def release_placeholder(self) -> None:
        self.surface.release()


class PixelBufferStrategy(RenderStrategy):
    name = "pixel"
    label = "Pixel Buffer"

    def __init__(self, decoder: PlaceholderDecoder):
        self.decoder = decoder

    def create_instance(self, sample: SampleImage, report: ReportFn,
                        loader: ImageLoader, options: RenderOptions) -> PixelBufferInstance:
        return PixelBufferInstance(sample, report, loader, options, self.decoder)
