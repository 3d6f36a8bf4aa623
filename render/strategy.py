# render/strategy.py
"""Placeholder render strategies: shared instance lifecycle.

An instance paints its placeholder, reports one timing sample, then asks
the loader for the final image and cross-fades to it once it arrives.
Decode always precedes the fade for a given instance; across instances no
ordering is assumed.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from core.errors import DecodeError
from core.models import SampleImage
from render.crossfade import CrossFade
from render.image_loader import ImageLoader

logger = logging.getLogger(__name__)

ReportFn = Callable[[float], object]


@dataclass(frozen=True)
class RenderOptions:
    crossfade_ms: int = 300
    blur_radius: float = 20.0
    placeholder_scale: float = 1.1
    load_timeout_ms: int = 5000  # 0 disables the timeout

    @classmethod
    def from_config(cls, config) -> "RenderOptions":
        return cls(
            crossfade_ms=int(config.get("render.crossfade_ms", cls.crossfade_ms)),
            blur_radius=float(config.get("render.blur_radius", cls.blur_radius)),
            placeholder_scale=float(config.get("render.placeholder_scale", cls.placeholder_scale)),
            load_timeout_ms=int(config.get("render.load_timeout_ms", cls.load_timeout_ms)),
        )


class PlaceholderInstance(QObject):
    """One mounted sample under one strategy.

    ``settled`` fires exactly once, as soon as the decode outcome is known
    (sample reported or decode failed). A final image that fails to load,
    or does not load within ``load_timeout_ms``, leaves the placeholder in
    place and never affects the timing sample.
    """

    reported = Signal(float)
    settled = Signal()

    def __init__(self, sample: SampleImage, report: ReportFn,
                 loader: ImageLoader, options: RenderOptions):
        super().__init__()
        self.sample = sample
        self.options = options
        self._report = report
        self._loader = loader

        self.mounted = False
        self.torn_down = False
        self.is_settled = False
        self.sample_ms: Optional[float] = None
        self.decode_error: Optional[DecodeError] = None
        self.image_requested = False
        self.image_loaded = False
        self.load_failed = False
        self.final_image_opacity = 0.0
        self.faded_in = False

        self._fade: Optional[CrossFade] = None
        self._load_timer: Optional[QTimer] = None

    @property
    def decode_failed(self) -> bool:
        return self.decode_error is not None

    def mount(self) -> None:
        if self.mounted or self.torn_down:
            return
        self.mounted = True
        self.render_placeholder()
        self._request_final_image()

    def render_placeholder(self) -> None:
        raise NotImplementedError

    def teardown(self) -> None:
        """Stop timers and animations; callbacks arriving later are ignored."""
        if self.torn_down:
            return
        self.torn_down = True
        self._stop_load_timer()
        if self._fade is not None:
            self._fade.stop()
        self.release_placeholder()

    def release_placeholder(self) -> None:
        pass

    # -- decode outcome -----------------------------------------------------

    def _deliver_sample(self, duration_ms: float) -> None:
        self.sample_ms = duration_ms
        self._report(duration_ms)
        self.reported.emit(duration_ms)
        self._mark_settled()

    def _fail_decode(self, error: DecodeError) -> None:
        self.decode_error = error
        logger.warning("%s: placeholder for %s failed: %s",
                       type(self).__name__, self.sample.id, error.reason)
        self._mark_settled()

    def _mark_settled(self) -> None:
        if not self.is_settled:
            self.is_settled = True
            self.settled.emit()

    # -- final image --------------------------------------------------------

    def _request_final_image(self) -> None:
        if not self.sample.url:
            return
        self.image_requested = True
        if self.options.load_timeout_ms > 0:
            self._load_timer = QTimer(self)
            self._load_timer.setSingleShot(True)
            self._load_timer.setInterval(self.options.load_timeout_ms)
            self._load_timer.timeout.connect(self._on_load_timeout)
            self._load_timer.start()
        self._loader.load(self.sample.url, self._on_image_loaded, self._on_image_failed)

    def _stop_load_timer(self) -> None:
        if self._load_timer is not None:
            self._load_timer.stop()
            self._load_timer = None

    def _on_image_loaded(self, url: str) -> None:
        if self.torn_down or self.image_loaded or self.load_failed:
            return
        self._stop_load_timer()
        self.image_loaded = True
        self._fade = CrossFade(self.options.crossfade_ms, self._on_fade_value, self._on_fade_finished)
        self._fade.start()

    def _on_image_failed(self, url: str, reason: str) -> None:
        if self.torn_down or self.image_loaded or self.load_failed:
            return
        self._stop_load_timer()
        self.load_failed = True
        logger.warning("Final image for %s did not load (%s); keeping placeholder",
                       self.sample.id, reason)

    def _on_load_timeout(self) -> None:
        self._on_image_failed(self.sample.url, f"no load event within {self.options.load_timeout_ms} ms")

    def _on_fade_value(self, value: float) -> None:
        self.final_image_opacity = value
        self.on_fade_progress(value)

    def _on_fade_finished(self) -> None:
        self.faded_in = True
        self.on_fade_finished()

    def on_fade_progress(self, value: float) -> None:
        pass

    def on_fade_finished(self) -> None:
        pass


class RenderStrategy:
    name = ""
    label = ""

    def create_instance(self, sample: SampleImage, report: ReportFn,
                        loader: ImageLoader, options: RenderOptions) -> PlaceholderInstance:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
