import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from PySide6.QtCore import QEventLoop, QObject, QTimer, Signal

from core.errors import ConcurrentRunError, InsufficientDataError
from core.models import RunResult, SampleImage, Verdict
from core.run_stats import compare, summarize
from core.timing_collector import RunBuffer, TimingCollector
from render.image_loader import ImageLoader
from render.strategy import PlaceholderInstance, RenderOptions, RenderStrategy

logger = logging.getLogger(__name__)

SETTLE_WINDOW = "window"
SETTLE_BARRIER = "barrier"
SETTLE_MODES = (SETTLE_WINDOW, SETTLE_BARRIER)


@dataclass
class _ActiveRun:
    run_id: str
    strategy: RenderStrategy
    buffer: RunBuffer
    timer: QTimer
    instances: List[PlaceholderInstance] = field(default_factory=list)
    settled_count: int = 0


class RunOrchestrator(QObject):
    """Runs one strategy over a sample set at a time.

    Every run gets its own RunBuffer; instances report through a collector
    bound to that buffer, so nothing from an earlier run can reach a later
    one. The settle window is a timeout, not a completion proof: in
    ``"window"`` mode the run always waits the full window, in ``"barrier"``
    mode it ends as soon as every instance has settled and falls back to
    the window otherwise. Instances that have not reported by then are
    left out of the result.
    """

    runStarted = Signal(str)     # run_id
    runFinished = Signal(object)  # RunResult

    def __init__(self, loader: ImageLoader, settle_window_ms: int = 1000,
                 settle_mode: str = SETTLE_BARRIER, min_count: int = 10,
                 max_count: int = 500, options: Optional[RenderOptions] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        if settle_mode not in SETTLE_MODES:
            raise ValueError(f"Unknown settle mode {settle_mode!r}; expected one of {SETTLE_MODES}")
        if settle_window_ms <= 0:
            raise ValueError("settle_window_ms must be positive")
        if not 0 < min_count <= max_count:
            raise ValueError(f"Invalid sample bounds [{min_count}, {max_count}]")
        self._loader = loader
        self.settle_window_ms = settle_window_ms
        self.settle_mode = settle_mode
        self.min_count = min_count
        self.max_count = max_count
        self.options = options or RenderOptions()
        self._active: Optional[_ActiveRun] = None
        self._results: Dict[str, RunResult] = {}

    @classmethod
    def from_config(cls, config, loader: ImageLoader) -> "RunOrchestrator":
        return cls(
            loader,
            settle_window_ms=int(config.get("bench.settle_window_ms", 1000)),
            settle_mode=config.get("bench.settle_mode", SETTLE_BARRIER),
            min_count=int(config.get("bench.min_image_count", 10)),
            max_count=int(config.get("bench.max_image_count", 500)),
            options=RenderOptions.from_config(config),
        )

    @property
    def is_running(self) -> bool:
        return self._active is not None

    @property
    def active_run_id(self) -> Optional[str]:
        return self._active.run_id if self._active else None

    @property
    def active_instances(self) -> List[PlaceholderInstance]:
        return list(self._active.instances) if self._active else []

    # -- lifecycle ----------------------------------------------------------

    def start_run(self, strategy: RenderStrategy, samples: Iterable[SampleImage]) -> str:
        if self._active is not None:
            raise ConcurrentRunError(
                f"Run {self._active.run_id} is still active; wait for it to finish"
            )
        samples = list(samples)
        if not self.min_count <= len(samples) <= self.max_count:
            raise ValueError(
                f"Sample count {len(samples)} outside [{self.min_count}, {self.max_count}]"
            )

        run_id = f"{strategy.name}-{uuid.uuid4().hex[:8]}"
        buffer = RunBuffer(run_id)
        collector = TimingCollector(buffer)

        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(self.settle_window_ms)
        run = _ActiveRun(run_id, strategy, buffer, timer)
        timer.timeout.connect(lambda r=run: self._finish(r))

        for sample in samples:
            instance = strategy.create_instance(sample, collector.record, self._loader, self.options)
            instance.settled.connect(lambda r=run: self._on_instance_settled(r))
            run.instances.append(instance)

        self._active = run
        # Mount on the event loop, one callback per instance, like a UI paint pass.
        for instance in run.instances:
            QTimer.singleShot(0, instance.mount)
        timer.start()

        logger.info("Run %s started: %d instances, settle %d ms (%s)",
                    run_id, len(samples), self.settle_window_ms, self.settle_mode)
        self.runStarted.emit(run_id)
        return run_id

    def _on_instance_settled(self, run: _ActiveRun) -> None:
        if self._active is not run:
            return
        run.settled_count += 1
        if self.settle_mode == SETTLE_BARRIER and run.settled_count >= len(run.instances):
            # why: defer so the instance that settled last can finish its mount first
            QTimer.singleShot(0, lambda r=run: self._finish(r))

    def _finish(self, run: _ActiveRun) -> None:
        if self._active is not run:
            return
        run.timer.stop()
        samples = run.buffer.freeze()
        result = summarize(run.strategy.label, samples)

        unsettled = len(run.instances) - run.settled_count
        if unsettled:
            logger.warning("Run %s: %d of %d instances did not settle within %d ms",
                           run.run_id, unsettled, len(run.instances), self.settle_window_ms)

        self._teardown(run)
        self._active = None
        self._results[run.strategy.name] = result

        if result.is_empty:
            logger.warning("Run %s finished without valid samples", run.run_id)
        else:
            logger.info("Run %s finished: %d samples, total %.2f ms, avg %.3f ms",
                        run.run_id, result.sample_count, result.total_time, result.avg_time)
        self.runFinished.emit(result)

    def cancel_run(self) -> bool:
        """Abort the active run without producing a result."""
        run = self._active
        if run is None:
            return False
        run.timer.stop()
        run.buffer.freeze()
        self._teardown(run)
        self._active = None
        logger.info("Run %s cancelled", run.run_id)
        return True

    def _teardown(self, run: _ActiveRun) -> None:
        for instance in run.instances:
            instance.teardown()
        run.timer.deleteLater()

    def run_and_wait(self, strategy: RenderStrategy, samples: Iterable[SampleImage]) -> RunResult:
        """Start a run and spin a local event loop until it finishes."""
        loop = QEventLoop()
        finished: List[RunResult] = []

        def _on_finished(result):
            finished.append(result)
            loop.quit()

        self.runFinished.connect(_on_finished)
        try:
            self.start_run(strategy, samples)
            if self._active is not None:
                loop.exec()
        finally:
            self.runFinished.disconnect(_on_finished)
        return finished[0]

    # -- results ------------------------------------------------------------

    @property
    def results(self) -> Dict[str, RunResult]:
        return dict(self._results)

    def result_for(self, strategy_name: str) -> Optional[RunResult]:
        return self._results.get(strategy_name)

    def verdict(self, name_a: str, name_b: str) -> Verdict:
        """Compare the latest results of two strategies. Never cached."""
        missing = [n for n in (name_a, name_b) if n not in self._results]
        if missing:
            raise InsufficientDataError(f"No completed run for {', '.join(missing)}")
        return compare(self._results[name_a], self._results[name_b])

    def clear_results(self) -> None:
        self._results.clear()
