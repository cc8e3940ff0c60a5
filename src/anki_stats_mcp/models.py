"""Typed records for AnkiConnect responses and statistics results."""

from dataclasses import asdict, dataclass, field
from typing import Any

from .errors import MalformedResponseError
from .stats import DailyCount, Distribution, Rating, Retention

RATINGS = frozenset(Rating)

# Button recorded for log entries written without an answer: manual
# rescheduling, "set due date" and filtered-deck moves.
NO_ANSWER = 0
LOGGED_BUTTONS = RATINGS | {NO_ANSWER}


@dataclass(frozen=True)
class CardCounts:
    """Card counts by scheduling state."""

    total: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0

    def __add__(self, other: "CardCounts") -> "CardCounts":
        return CardCounts(
            total=self.total + other.total,
            new=self.new + other.new,
            learning=self.learning + other.learning,
            review=self.review + other.review,
        )


@dataclass(frozen=True)
class DeckCounts:
    """One entry of an AnkiConnect ``getDeckStats`` response."""

    deck_id: int
    name: str
    counts: CardCounts

    @classmethod
    def from_response(cls, entry: Any) -> "DeckCounts":
        """
        Build from a raw getDeckStats value.

        Raw keys: deck_id, name, new_count, learn_count, review_count, total_in_deck.
        """
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise MalformedResponseError("getDeckStats", f"unexpected deck entry {entry!r}")
        return cls(
            deck_id=entry.get("deck_id", 0),
            name=entry["name"],
            counts=CardCounts(
                total=entry.get("total_in_deck") or 0,
                new=entry.get("new_count") or 0,
                learning=entry.get("learn_count") or 0,
                review=entry.get("review_count") or 0,
            ),
        )


@dataclass(frozen=True)
class CardReview:
    """
    One entry of an AnkiConnect ``cardReviews`` response.

    The raw tuple is ``[timestamp_ms, card_id, usn, button, new_interval,
    previous_interval, ease, time_ms, review_type]``; only the first four
    positions are required. Entries Anki writes without an answer carry
    button 0 (NO_ANSWER).
    """

    timestamp_ms: int
    card_id: int
    button: int

    @classmethod
    def from_tuple(cls, entry: Any) -> "CardReview":
        if not isinstance(entry, (list, tuple)) or len(entry) < 4:
            raise MalformedResponseError("cardReviews", f"unexpected review entry {entry!r}")
        timestamp, card_id, _usn, button = entry[:4]
        if not isinstance(timestamp, (int, float)) or button not in LOGGED_BUTTONS:
            raise MalformedResponseError("cardReviews", f"unexpected review entry {entry!r}")
        return cls(timestamp_ms=int(timestamp), card_id=card_id, button=button)


@dataclass
class DeckStats:
    """Card counts plus ease and interval distributions for one deck."""

    deck: str
    counts: CardCounts
    ease: Distribution
    intervals: Distribution

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DeckBreakdown:
    """Per-deck counts listed in a collection report."""

    deck: str
    total: int
    new: int
    learning: int
    review: int


@dataclass
class CollectionStats:
    """Counts and distributions aggregated across every deck."""

    total_decks: int
    counts: CardCounts
    ease: Distribution
    intervals: Distribution
    per_deck: list[DeckBreakdown] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReviewSummary:
    total_reviews: int
    average_per_day: float
    days_studied: int
    max_day: DailyCount | None
    min_day: DailyCount | None
    streak: int

    def to_dict(self) -> dict:
        return {
            "total_reviews": self.total_reviews,
            "average_per_day": self.average_per_day,
            "days_studied": self.days_studied,
            "max_day": self.max_day.to_dict() if self.max_day else None,
            "min_day": self.min_day.to_dict() if self.min_day else None,
            "streak": self.streak,
        }


@dataclass
class ReviewStats:
    """Review activity for a deck over a date range."""

    deck: str
    start: str
    end: str
    reviews_by_day: list[DailyCount]
    summary: ReviewSummary
    retention: Retention

    def to_dict(self) -> dict:
        return {
            "period": {"start": self.start, "end": self.end},
            "deck": self.deck,
            "reviews_by_day": [day.to_dict() for day in self.reviews_by_day],
            "summary": self.summary.to_dict(),
            "retention": self.retention.to_dict(),
        }
