from typing import Callable, Optional

from PySide6.QtCore import QEasingCurve, QVariantAnimation


class CrossFade:
    """Drives a 0.0 -> 1.0 opacity ramp over *duration_ms* on the Qt event loop."""

    def __init__(self, duration_ms: int, on_value: Callable[[float], None],
                 on_finished: Optional[Callable[[], None]] = None):
        self.duration_ms = max(0, int(duration_ms))
        self._on_value = on_value
        self._on_finished = on_finished
        self._done = False
        self._animation = None
        if self.duration_ms > 0:
            self._animation = QVariantAnimation()
            self._animation.setStartValue(0.0)
            self._animation.setEndValue(1.0)
            self._animation.setDuration(self.duration_ms)
            self._animation.setEasingCurve(QEasingCurve.Type.OutCubic)
            self._animation.valueChanged.connect(lambda v: self._on_value(float(v)))
            self._animation.finished.connect(self._finish)

    @property
    def running(self) -> bool:
        return (self._animation is not None
                and self._animation.state() == QVariantAnimation.State.Running)

    @property
    def done(self) -> bool:
        return self._done

    def start(self) -> None:
        if self._animation is None:
            self._on_value(1.0)
            self._finish()
            return
        self._animation.start()

    def stop(self) -> None:
        if self._animation is not None:
            self._animation.stop()

    def _finish(self) -> None:
        if self._done:
            return
        self._done = True
        # the final valueChanged is not guaranteed to land exactly on 1.0
        self._on_value(1.0)
        if self._on_finished:
            self._on_finished()
