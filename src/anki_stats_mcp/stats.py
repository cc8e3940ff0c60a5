"""
Statistical helpers for deck and review analytics.

This is a pure computation module with no I/O: distributions over card
samples, retention from answer buttons, and study streaks from daily counts.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from enum import IntEnum
from typing import Sequence

from .errors import InvalidParameterError


class Rating(IntEnum):
    """Answer button pressed during a review."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


# Buttons that count as a successful recall
REMEMBERED = frozenset({Rating.HARD, Rating.GOOD, Rating.EASY})


@dataclass
class Distribution:
    """
    Summary statistics and histogram for a set of samples.

    Attributes:
        count: Number of samples.
        mean: Arithmetic mean (0 when empty).
        median: Middle value of the sorted samples (0 when empty).
        min: Smallest sample (0 when empty).
        max: Largest sample (0 when empty).
        buckets: Histogram keyed by range label, in boundary order.
    """

    count: int
    mean: float
    median: float
    min: float
    max: float
    buckets: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RatingCounts:
    """Number of reviews answered with each button."""

    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0

    @property
    def total(self) -> int:
        return self.again + self.hard + self.good + self.easy


@dataclass
class Retention:
    """Share of reviews that were not an "Again" plus per-button counts."""

    overall: float
    by_rating: RatingCounts

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DailyCount:
    """Number of reviews on one calendar day (only days with reviews exist)."""

    date: date
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "count": self.count}


def validate_boundaries(boundaries: Sequence[float], name: str = "boundaries") -> list[float]:
    """
    Check that bucket boundaries are non-empty, positive and strictly ascending.

    Returns:
        The boundaries as a new list.

    Raises:
        InvalidParameterError: If any constraint is violated.
    """
    values = list(boundaries)
    if not values:
        raise InvalidParameterError(f"{name} must contain at least one boundary")
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidParameterError(f"{name} must be numbers, got {value!r}")
        if value <= 0:
            raise InvalidParameterError(f"{name} must be positive, got {value!r}")
    for lower, upper in zip(values, values[1:]):
        if upper <= lower:
            raise InvalidParameterError(
                f"{name} must be in strictly ascending order, got {values!r}"
            )
    return values


def bucket_labels(boundaries: Sequence[float], unit_suffix: str = "") -> list[str]:
    """
    Build histogram labels for the N+1 ranges defined by N boundaries.

    Example: ``[2.0, 2.5, 3.0]`` gives ``["<2.0", "2.0-2.5", "2.5-3.0", ">3.0"]``
    and ``[7, 21, 90]`` with suffix ``"d"`` gives ``["<7d", "7-21d", "21-90d", ">90d"]``.
    """
    labels = [f"<{boundaries[0]}{unit_suffix}"]
    for lower, upper in zip(boundaries, boundaries[1:]):
        labels.append(f"{lower}-{upper}{unit_suffix}")
    labels.append(f">{boundaries[-1]}{unit_suffix}")
    return labels


def _bucket_index(value: float, boundaries: Sequence[float]) -> int:
    # First boundary the value is strictly below; past the last one goes to the open bucket
    for i, boundary in enumerate(boundaries):
        if value < boundary:
            return i
    return len(boundaries)


def compute_distribution(
    values: Sequence[float],
    boundaries: Sequence[float],
    unit_suffix: str = "",
) -> Distribution:
    """
    Compute mean, median, min, max, count and a bucketed histogram.

    Args:
        values: Raw samples; may be empty. Not modified.
        boundaries: Strictly ascending positive bucket boundaries.
        unit_suffix: Appended to every bucket label (e.g. ``"d"`` for days).

    Returns:
        Distribution whose bucket counts sum to ``count``.

    Raises:
        InvalidParameterError: If the boundaries are invalid.
    """
    boundaries = validate_boundaries(boundaries)
    labels = bucket_labels(boundaries, unit_suffix)
    buckets = dict.fromkeys(labels, 0)

    if not values:
        return Distribution(count=0, mean=0, median=0, min=0, max=0, buckets=buckets)

    ordered = sorted(values)
    count = len(ordered)
    middle = count // 2
    if count % 2 == 0:
        median = (ordered[middle - 1] + ordered[middle]) / 2
    else:
        median = ordered[middle]

    for value in ordered:
        buckets[labels[_bucket_index(value, boundaries)]] += 1

    return Distribution(
        count=count,
        mean=sum(ordered) / count,
        median=median,
        min=ordered[0],
        max=ordered[-1],
        buckets=buckets,
    )


def compute_retention(ratings: Sequence[int]) -> Retention:
    """
    Tally answer buttons and compute the overall retention rate.

    Retention is ``(hard + good + easy) / total``, or 0 for no reviews.

    Raises:
        InvalidParameterError: If a rating is not one of 1 (Again) to 4 (Easy).
            Dropping it silently would skew ``overall``.
    """
    counts = RatingCounts()
    for raw in ratings:
        try:
            rating = Rating(raw)
        except ValueError:
            raise InvalidParameterError(
                f"Review rating must be between 1 and 4, got {raw!r}"
            ) from None
        name = rating.name.lower()
        setattr(counts, name, getattr(counts, name) + 1)

    total = counts.total
    remembered = total - counts.again
    return Retention(
        overall=remembered / total if total else 0,
        by_rating=counts,
    )


def calculate_streak(daily_counts: Sequence[DailyCount]) -> int:
    """
    Count consecutive study days ending at the most recent entry.

    ``daily_counts`` must be sorted ascending by date and only hold days with
    at least one review. The streak is anchored on the last entry, not on
    today's date, so a window that ends before today still reports the run
    of days leading up to its last review.
    """
    if not daily_counts:
        return 0

    streak = 1
    expected = daily_counts[-1].date - timedelta(days=1)
    for entry in reversed(daily_counts[:-1]):
        if entry.date != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak
