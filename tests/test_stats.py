"""Tests for the pure statistics helpers (no AnkiConnect needed)."""

from datetime import date, timedelta

import pytest
from anki_stats_mcp.errors import InvalidParameterError
from anki_stats_mcp.stats import (
    DailyCount,
    bucket_labels,
    calculate_streak,
    compute_distribution,
    compute_retention,
)


EASE_BUCKETS = [2.0, 2.5, 3.0]
INTERVAL_BUCKETS = [7, 21, 90]


class TestBucketLabels:
    def test_float_boundaries(self):
        assert bucket_labels(EASE_BUCKETS) == ["<2.0", "2.0-2.5", "2.5-3.0", ">3.0"]

    def test_integer_boundaries_with_suffix(self):
        assert bucket_labels(INTERVAL_BUCKETS, "d") == ["<7d", "7-21d", "21-90d", ">90d"]

    def test_single_boundary(self):
        assert bucket_labels([1.75]) == ["<1.75", ">1.75"]


class TestComputeDistribution:
    def test_empty_values(self):
        """Empty input yields zeros and every bucket present."""
        result = compute_distribution([], EASE_BUCKETS)

        assert result.count == 0
        assert result.mean == 0
        assert result.median == 0
        assert result.min == 0
        assert result.max == 0
        assert result.buckets == {"<2.0": 0, "2.0-2.5": 0, "2.5-3.0": 0, ">3.0": 0}

    def test_summary_statistics(self):
        result = compute_distribution([2.1, 2.5, 3.0, 2.8], EASE_BUCKETS)

        assert result.count == 4
        assert result.mean == pytest.approx(2.6)
        assert result.median == pytest.approx(2.65)
        assert result.min == 2.1
        assert result.max == 3.0

    def test_odd_count_median(self):
        result = compute_distribution([5, 1, 3], INTERVAL_BUCKETS)
        assert result.median == 3

    def test_boundary_values_go_to_upper_bucket(self):
        """A value equal to a boundary belongs to the range starting there."""
        result = compute_distribution([2.0, 2.5, 3.0, 1.99], EASE_BUCKETS)

        assert result.buckets == {"<2.0": 1, "2.0-2.5": 1, "2.5-3.0": 1, ">3.0": 1}

    def test_interval_buckets_with_suffix(self):
        result = compute_distribution([1, 6, 7, 20, 21, 89, 90, 365], INTERVAL_BUCKETS, "d")

        assert result.buckets == {"<7d": 2, "7-21d": 2, "21-90d": 2, ">90d": 2}

    def test_bucket_counts_sum_to_count(self):
        values = [0.5, 1.3, 1.9, 2.2, 2.5, 2.6, 2.9, 3.1, 4.0, 5.5, 2.5]
        result = compute_distribution(values, EASE_BUCKETS)

        assert result.count == len(values)
        assert sum(result.buckets.values()) == result.count
        assert result.min <= result.median <= result.max
        assert result.min <= result.mean <= result.max

    def test_input_not_mutated(self):
        values = [3.0, 1.0, 2.0]
        compute_distribution(values, EASE_BUCKETS)
        assert values == [3.0, 1.0, 2.0]

    def test_buckets_keep_boundary_order(self):
        result = compute_distribution([100, 1], INTERVAL_BUCKETS, "d")
        assert list(result.buckets) == ["<7d", "7-21d", "21-90d", ">90d"]

    def test_to_dict(self):
        result = compute_distribution([2.5], EASE_BUCKETS).to_dict()

        assert set(result) == {"count", "mean", "median", "min", "max", "buckets"}
        assert result["buckets"]["2.5-3.0"] == 1

    @pytest.mark.parametrize("boundaries", [
        [2.5, 2.0, 3.0],
        [2.0, 2.0, 3.0],
        [0, 1, 2],
        [-1, 2],
        [],
    ])
    def test_invalid_boundaries(self, boundaries):
        with pytest.raises(InvalidParameterError):
            compute_distribution([1.0], boundaries)


class TestComputeRetention:
    def test_one_of_each(self):
        result = compute_retention([1, 2, 3, 4])

        assert result.overall == 0.75
        assert result.by_rating.again == 1
        assert result.by_rating.hard == 1
        assert result.by_rating.good == 1
        assert result.by_rating.easy == 1

    def test_empty(self):
        result = compute_retention([])

        assert result.overall == 0
        assert result.to_dict() == {
            "overall": 0,
            "by_rating": {"again": 0, "hard": 0, "good": 0, "easy": 0},
        }

    def test_mixed_presses(self):
        result = compute_retention([3, 4, 2, 3, 1, 3])

        assert result.overall == pytest.approx(5 / 6)
        assert result.by_rating.good == 3
        assert result.by_rating.total == 6

    def test_all_again(self):
        assert compute_retention([1, 1, 1]).overall == 0

    @pytest.mark.parametrize("rating", [0, 5, -1])
    def test_out_of_range_rating(self, rating):
        with pytest.raises(InvalidParameterError, match="between 1 and 4"):
            compute_retention([3, rating])


def days(*offsets: int, anchor: date = date(2026, 1, 15)) -> list[DailyCount]:
    """DailyCounts for anchor+offset days, sorted ascending."""
    return [DailyCount(anchor + timedelta(days=o), 5) for o in sorted(offsets)]


class TestCalculateStreak:
    def test_empty(self):
        assert calculate_streak([]) == 0

    def test_consecutive_days(self):
        assert calculate_streak(days(-2, -1, 0)) == 3

    def test_gap_before_anchor(self):
        """Only the anchor counts when the previous day is missing."""
        assert calculate_streak(days(-2, 0)) == 1

    def test_stops_at_first_gap(self):
        assert calculate_streak(days(-6, -5, -4, -2, -1, 0)) == 3

    def test_single_day(self):
        assert calculate_streak(days(0)) == 1

    def test_anchor_is_last_entry_not_today(self):
        """A window ending long ago still reports its trailing run."""
        old = days(-1, 0, anchor=date(2001, 3, 1))
        assert calculate_streak(old) == 2

    def test_across_month_boundary(self):
        entries = days(0, 1, 2, anchor=date(2024, 2, 28))  # leap year
        assert [e.date.isoformat() for e in entries] == ["2024-02-28", "2024-02-29", "2024-03-01"]
        assert calculate_streak(entries) == 3
