# core/models.py
"""Qt-free value types shared by the harness, the strategies and the CLI."""
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class SampleImage:
    id: str
    placeholder: str
    url: Optional[str] = None


@dataclass(frozen=True)
class DecodedPixels:
    width: int
    height: int
    pixels: bytes = field(repr=False)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid placeholder size {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"RGBA buffer has {len(self.pixels)} bytes, expected {expected}"
            )


@dataclass(frozen=True)
class RunResult:
    """Summary of one frozen run buffer.

    ``avg_time``, ``min_time`` and ``max_time`` are ``None`` for an empty run
    so callers have to handle "no data" explicitly.
    """
    method: str
    total_time: float
    avg_time: Optional[float]
    min_time: Optional[float]
    max_time: Optional[float]
    sample_count: int
    samples: Tuple[float, ...] = ()

    @classmethod
    def empty(cls, method: str) -> "RunResult":
        return cls(method, 0.0, None, None, None, 0, ())

    @property
    def is_empty(self) -> bool:
        return self.sample_count == 0

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "total_time": self.total_time,
            "avg_time": self.avg_time,
            "min_time": self.min_time,
            "max_time": self.max_time,
            "sample_count": self.sample_count,
            "empty": self.is_empty,
            "samples": list(self.samples),
        }


@dataclass(frozen=True)
class Verdict:
    """Comparison of two non-empty runs. ``winner`` is ``None`` on a tie."""
    winner: Optional[str]
    loser: Optional[str]
    difference: float
    percent_difference: float
    speedup_ratio: float
    a: RunResult = field(repr=False)
    b: RunResult = field(repr=False)

    @property
    def is_tie(self) -> bool:
        return self.winner is None

    def to_dict(self) -> dict:
        return {
            "winner": self.winner,
            "loser": self.loser,
            "tie": self.is_tie,
            "difference": self.difference,
            "percent_difference": self.percent_difference,
            "speedup_ratio": self.speedup_ratio,
        }
