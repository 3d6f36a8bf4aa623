"""Run summaries and the comparative verdict.

Pure functions, no Qt. Everything here is order-independent: the input
samples are treated as a multiset.
"""

import math
from typing import Iterable, Optional

from core.errors import InsufficientDataError
from core.models import RunResult, Verdict


def _valid(sample: Optional[float]) -> bool:
    return sample is not None and math.isfinite(sample) and sample > 0


def summarize(method: str, samples: Iterable[Optional[float]]) -> RunResult:
    """Build a RunResult from raw samples.

    Missing, non-finite and non-positive samples are dropped first. If
    nothing survives, the result is explicitly empty.
    """
    valid = tuple(float(s) for s in samples if _valid(s))
    if not valid:
        return RunResult.empty(method)

    total = math.fsum(valid)
    return RunResult(
        method=method,
        total_time=total,
        avg_time=total / len(valid),
        min_time=min(valid),
        max_time=max(valid),
        sample_count=len(valid),
        samples=valid,
    )


def compare(a: RunResult, b: RunResult) -> Verdict:
    """Compare two runs by total time.

    Equal totals are a tie (``winner is None``); the result does not depend
    on argument order apart from which run sits in ``a``/``b``.
    """
    for result in (a, b):
        if result.sample_count <= 0 or not result.total_time > 0:
            raise InsufficientDataError(
                f"Run {result.method!r} has no usable timings; cannot compare"
            )

    slower = max(a.total_time, b.total_time)
    faster = min(a.total_time, b.total_time)
    difference = abs(a.total_time - b.total_time)

    if a.total_time < b.total_time:
        winner, loser = a.method, b.method
    elif b.total_time < a.total_time:
        winner, loser = b.method, a.method
    else:
        winner = loser = None

    return Verdict(
        winner=winner,
        loser=loser,
        difference=difference,
        percent_difference=difference / slower * 100.0,
        speedup_ratio=slower / faster,
        a=a,
        b=b,
    )
