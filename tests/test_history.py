from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from podmeter.estimator.history import build_series, synthesize, normalize_samples
from podmeter.model.entities import MetricDataPoint
from podmeter.types import CPU, MEMORY, DISK, HISTORY_POINTS

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _samples(values, start=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)):
    return [
        MetricDataPoint(timestamp=(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M:%SZ"), value=v)
        for i, v in enumerate(values)
    ]


class TestSyntheticSeries:
    @pytest.mark.parametrize("dimension", [CPU, MEMORY, DISK])
    def test_ends_at_current_value(self, dimension) -> None:
        series = build_series(dimension, None, 0, 42.0, NOW)
        assert series.is_synthetic
        assert len(series.points) == HISTORY_POINTS
        assert series.points[-1].value == pytest.approx(42.0)
        assert series.points[-1].timestamp == "2026-03-01T12:00:00Z"
        assert series.points[0].timestamp == "2026-02-28T13:00:00Z"

    def test_values_stay_in_range_near_the_top(self) -> None:
        for p in synthesize(CPU, 100.0, NOW):
            assert 0.0 <= p.value <= 100.0

    def test_zero_current_value_is_flat_zero(self) -> None:
        series = build_series(MEMORY, [], 1024, 0.0, NOW)
        assert series.is_synthetic
        assert [p.value for p in series.points] == [0.0] * HISTORY_POINTS

    def test_deterministic(self) -> None:
        assert synthesize(DISK, 33.3, NOW) == synthesize(DISK, 33.3, NOW)

    def test_curve_is_not_flat(self) -> None:
        values = {round(p.value, 6) for p in synthesize(CPU, 50.0, NOW)}
        assert len(values) > 1


class TestRealSeries:
    def test_normalized_with_denominator_and_left_padded(self) -> None:
        series = build_series(MEMORY, _samples([100, 200, 300]), 400, 99.0, NOW)
        assert not series.is_synthetic
        values = [p.value for p in series.points]
        assert len(values) == HISTORY_POINTS
        assert values[:21] == [25.0] * 21
        assert values[21:] == [25.0, 50.0, 75.0]
        assert series.points[0].timestamp == "2026-02-28T12:00:00Z"
        assert series.points[21].timestamp == "2026-03-01T09:00:00Z"

    def test_only_last_day_is_kept(self) -> None:
        start = datetime(2026, 2, 28, 0, 0, tzinfo=timezone.utc)
        series = build_series(CPU, _samples(list(range(30)), start=start), 100, 0.0, NOW)
        assert [p.value for p in series.points] == [float(v) for v in range(6, 30)]

    def test_unordered_samples_are_sorted(self) -> None:
        samples = list(reversed(_samples([10, 20])))
        points = normalize_samples(samples, 100)
        assert [p.value for p in points[-2:]] == [10.0, 20.0]

    def test_values_are_clamped(self) -> None:
        series = build_series(CPU, _samples([800]), 400, 0.0, NOW)
        assert {p.value for p in series.points} == {100.0}

    def test_no_denominator_gives_zero(self) -> None:
        series = build_series(CPU, _samples([800]), 0, 10.0, NOW)
        assert not series.is_synthetic
        assert {p.value for p in series.points} == {0.0}

    def test_unparseable_timestamps_fall_back_to_synthetic(self) -> None:
        bad = [MetricDataPoint(timestamp="yesterday", value=1.0)]
        series = build_series(CPU, bad, 100, 10.0, NOW)
        assert series.is_synthetic
