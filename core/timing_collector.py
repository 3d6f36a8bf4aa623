import logging
import math
import threading
import time
from typing import List, Tuple

logger = logging.getLogger(__name__)


def elapsed_ms(start: float) -> float:
    """Milliseconds since *start*, a ``time.perf_counter()`` reading."""
    return (time.perf_counter() - start) * 1000.0


class RunBuffer:
    """Append-only sample buffer scoped to a single run.

    Once frozen, further appends are refused so a straggler from a finished
    run can never end up in another run's statistics.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self._samples: List[float] = []
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        with self._lock:
            return self._frozen

    def append(self, duration_ms: float) -> bool:
        with self._lock:
            if self._frozen:
                logger.debug("RunBuffer %s: dropping late sample %.3f ms",
                             self.run_id, duration_ms)
                return False
            self._samples.append(duration_ms)
            return True

    def freeze(self) -> Tuple[float, ...]:
        with self._lock:
            self._frozen = True
            return tuple(self._samples)

    def snapshot(self) -> Tuple[float, ...]:
        with self._lock:
            return tuple(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


class TimingCollector:
    """Receives one duration per instance and files it into its run's buffer."""

    def __init__(self, buffer: RunBuffer):
        self.buffer = buffer

    @property
    def run_id(self) -> str:
        return self.buffer.run_id

    def record(self, duration_ms: float) -> bool:
        duration_ms = float(duration_ms)
        if math.isnan(duration_ms) or math.isinf(duration_ms) or duration_ms < 0:
            raise ValueError(f"Invalid duration: {duration_ms!r}")
        return self.buffer.append(duration_ms)
