"""Tests for core.run_stats: summaries and the comparative verdict."""

import math

import pytest

from core.errors import InsufficientDataError
from core.models import RunResult
from core.run_stats import compare, summarize


def _result(method, total, count=1):
    return RunResult(method, float(total), total / count, 1.0, 1.0, count, ())


# ---------------------------------------------------------------------------
#  summarize
# ---------------------------------------------------------------------------

class TestSummarize:
    def test_reference_buffer(self):
        r = summarize("A", [12.0, 8.0, 20.0])
        assert r.total_time == 40.0
        assert r.avg_time == pytest.approx(13.333, abs=1e-3)
        assert r.min_time == 8.0
        assert r.max_time == 20.0
        assert r.sample_count == 3
        assert r.samples == (12.0, 8.0, 20.0)

    def test_avg_equals_total_over_count(self):
        for samples in ([0.1], [0.3, 0.7, 1.1], [5.5] * 17, [0.013, 99.0, 3.25, 0.5]):
            r = summarize("m", samples)
            assert r.avg_time == pytest.approx(r.total_time / r.sample_count)

    def test_filters_missing_and_non_positive(self):
        r = summarize("m", [None, 0.0, -3.0, 4.0, float("nan"), float("inf"), 6.0])
        assert r.sample_count == 2
        assert r.total_time == 10.0
        assert r.min_time == 4.0

    def test_empty_input_is_explicitly_empty(self):
        r = summarize("m", [])
        assert r.is_empty
        assert r.sample_count == 0
        assert r.total_time == 0.0
        assert r.avg_time is None and r.min_time is None and r.max_time is None

    def test_all_filtered_is_empty_not_nan(self):
        r = summarize("m", [0.0, -1.0, None])
        assert r.is_empty
        for value in r.to_dict().values():
            assert not (isinstance(value, float) and math.isnan(value))

    def test_order_independent(self):
        a = summarize("m", [3.0, 1.0, 2.0])
        b = summarize("m", [2.0, 3.0, 1.0])
        assert (a.total_time, a.min_time, a.max_time, a.avg_time) == \
               (b.total_time, b.min_time, b.max_time, b.avg_time)


# ---------------------------------------------------------------------------
#  compare
# ---------------------------------------------------------------------------

class TestCompare:
    def test_reference_comparison(self):
        v = compare(_result("A", 150), _result("B", 200))
        assert v.winner == "A"
        assert v.loser == "B"
        assert v.difference == 50.0
        assert v.percent_difference == pytest.approx(25.0)
        assert v.speedup_ratio == pytest.approx(1.333, abs=1e-3)

    def test_swapped_operands_agree(self):
        a, b = _result("A", 150), _result("B", 200)
        v1, v2 = compare(a, b), compare(b, a)
        assert v1.winner == v2.winner == "A"
        assert v1.percent_difference == pytest.approx(v2.percent_difference)
        assert v1.speedup_ratio == pytest.approx(v2.speedup_ratio)

    def test_tie_has_no_winner(self):
        v = compare(_result("A", 80), _result("B", 80))
        assert v.is_tie
        assert v.winner is None and v.loser is None
        assert v.difference == 0.0
        assert v.percent_difference == 0.0
        assert v.speedup_ratio == 1.0

    def test_tie_is_symmetric(self):
        a, b = _result("A", 42), _result("B", 42)
        assert compare(a, b).winner == compare(b, a).winner is None

    def test_both_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            compare(RunResult.empty("A"), RunResult.empty("B"))

    def test_one_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            compare(_result("A", 10), RunResult.empty("B"))
        with pytest.raises(InsufficientDataError):
            compare(RunResult.empty("A"), _result("B", 10))

    def test_zero_total_with_samples_raises(self):
        with pytest.raises(InsufficientDataError):
            compare(_result("A", 0.0), _result("B", 10))
        with pytest.raises(InsufficientDataError):
            compare(_result("A", 10), _result("B", 0.0))

    def test_to_dict(self):
        d = compare(_result("A", 150), _result("B", 200)).to_dict()
        assert d["winner"] == "A"
        assert d["tie"] is False
