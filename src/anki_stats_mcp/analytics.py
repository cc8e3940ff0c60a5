"""
Deck, collection and review-history statistics.

Coordinates AnkiConnect queries and turns the raw scheduling data into
the distributions and summaries computed in ``stats``.
"""

import logging
import re
from collections import Counter
from dataclasses import asdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Sequence

from .anki_client import AnkiClient
from .errors import DeckNotFoundError, InvalidParameterError
from .models import (
    RATINGS,
    CardCounts,
    CardReview,
    CollectionStats,
    DeckBreakdown,
    DeckStats,
    ReviewStats,
    ReviewSummary,
)
from .stats import (
    DailyCount,
    Distribution,
    calculate_streak,
    compute_distribution,
    compute_retention,
    validate_boundaries,
)

logger = logging.getLogger(__name__)

DEFAULT_EASE_BUCKETS = (2.0, 2.5, 3.0)
DEFAULT_INTERVAL_BUCKETS = (7, 21, 90)

INTERVAL_SUFFIX = "d"
EASE_SCALE = 1000

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# Sample transforms shared by every aggregation

def ease_values(raw_factors: Sequence[int]) -> list[float]:
    """
    Convert permille ease factors to multipliers (2500 -> 2.5).

    A factor of 0 means the card has not been scheduled yet and is dropped.
    """
    return [factor / EASE_SCALE for factor in raw_factors if factor > 0]


def review_intervals(raw_intervals: Sequence[int]) -> list[int]:
    """
    Keep only intervals of cards in the review phase.

    AnkiConnect encodes the phase in the sign: positive intervals are days,
    negative ones are seconds for cards still in (re)learning and are not
    comparable with day intervals. Zero means no interval yet.
    """
    return [interval for interval in raw_intervals if interval > 0]


def answered_reviews(reviews: Iterable[CardReview]) -> list[CardReview]:
    """
    Keep only log entries where the card was actually answered.

    Rescheduling and other manual entries are logged with button 0; they are
    not study activity and count neither as reviews nor towards retention.
    """
    return [review for review in reviews if review.button in RATINGS]


def parse_date(value: str, name: str) -> date:
    """Parse a YYYY-MM-DD string, rejecting other formats and impossible dates."""
    if not isinstance(value, str) or not ISO_DATE.match(value):
        raise InvalidParameterError(f"{name} must be ISO date format YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidParameterError(f"{name} is not a valid date: {value!r}") from None


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _epoch_ms(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp() * 1000)


def _review_day(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date()


def deck_query(deck: str) -> str:
    """
    Anki search expression matching every card of exactly this deck.

    Backslash, double quote and the wildcards ``*`` and ``_`` are escaped so
    they match literally.
    """
    escaped = re.sub(r'([\\"*_])', r"\\\1", deck)
    return f'"deck:{escaped}"'


class StatsService:
    """
    Read-only statistics over an Anki collection.

    Each call issues a short, strictly sequential series of AnkiConnect
    queries and stops as soon as the answer is known.
    """

    def __init__(self, anki: AnkiClient):
        self._anki = anki

    def _empty(
        self,
        ease_buckets: Sequence[float],
        interval_buckets: Sequence[float],
    ) -> tuple[Distribution, Distribution]:
        return (
            compute_distribution([], ease_buckets),
            compute_distribution([], interval_buckets, INTERVAL_SUFFIX),
        )

    async def _card_distributions(
        self,
        card_ids: list[int],
        ease_buckets: Sequence[float],
        interval_buckets: Sequence[float],
    ) -> tuple[Distribution, Distribution]:
        logger.info("Fetching ease factors and intervals for %d cards", len(card_ids))
        ease = ease_values(await self._anki.get_ease_factors(card_ids))
        intervals = review_intervals(await self._anki.get_intervals(card_ids))
        return (
            compute_distribution(ease, ease_buckets),
            compute_distribution(intervals, interval_buckets, INTERVAL_SUFFIX),
        )

    async def deck_stats(
        self,
        deck: str,
        ease_buckets: Sequence[float] = DEFAULT_EASE_BUCKETS,
        interval_buckets: Sequence[float] = DEFAULT_INTERVAL_BUCKETS,
    ) -> DeckStats:
        """
        Get card counts with ease and interval distributions for one deck.

        Args:
            deck: Deck name
            ease_buckets: Ease distribution boundaries
            interval_buckets: Interval distribution boundaries, in days

        Raises:
            InvalidParameterError: If the deck name or boundaries are invalid
            DeckNotFoundError: If Anki does not know the deck
        """
        if not deck:
            raise InvalidParameterError("deck must be a non-empty deck name")
        ease_buckets = validate_boundaries(ease_buckets, "ease_buckets")
        interval_buckets = validate_boundaries(interval_buckets, "interval_buckets")

        logger.info("Getting statistics for deck: %s", deck)
        entries = await self._anki.get_deck_stats([deck])
        match = next((entry for entry in entries if entry.name == deck), None)
        if match is None:
            raise DeckNotFoundError(deck)
        counts = match.counts

        if counts.total == 0:
            logger.info('Deck "%s" is empty', deck)
            ease, intervals = self._empty(ease_buckets, interval_buckets)
            return DeckStats(deck=deck, counts=counts, ease=ease, intervals=intervals)

        card_ids = await self._anki.find_cards(deck_query(deck))
        if not card_ids:
            logger.warning(
                'No cards found via findCards for deck "%s", using counts from getDeckStats',
                deck,
            )
            ease, intervals = self._empty(ease_buckets, interval_buckets)
            return DeckStats(deck=deck, counts=counts, ease=ease, intervals=intervals)

        ease, intervals = await self._card_distributions(card_ids, ease_buckets, interval_buckets)
        logger.info(
            'Deck "%s": %d total cards, %d with ease values, %d review cards',
            deck, counts.total, ease.count, intervals.count,
        )
        return DeckStats(deck=deck, counts=counts, ease=ease, intervals=intervals)

    async def collection_stats(
        self,
        ease_buckets: Sequence[float] = DEFAULT_EASE_BUCKETS,
        interval_buckets: Sequence[float] = DEFAULT_INTERVAL_BUCKETS,
    ) -> CollectionStats:
        """
        Get counts and distributions across all decks with a per-deck breakdown.

        Uses one getDeckStats call for all decks and one findCards call for
        the whole collection rather than querying deck by deck.
        """
        ease_buckets = validate_boundaries(ease_buckets, "ease_buckets")
        interval_buckets = validate_boundaries(interval_buckets, "interval_buckets")

        logger.info("Getting collection-wide statistics")
        deck_names = await self._anki.deck_names()
        if not deck_names:
            logger.info("No decks found in collection")
            ease, intervals = self._empty(ease_buckets, interval_buckets)
            return CollectionStats(
                total_decks=0, counts=CardCounts(), ease=ease, intervals=intervals
            )

        entries = await self._anki.get_deck_stats(deck_names)
        counts = CardCounts()
        per_deck = []
        for entry in entries:
            counts += entry.counts
            per_deck.append(DeckBreakdown(deck=entry.name, **asdict(entry.counts)))
        logger.info(
            "Aggregated counts: %d total cards across %d decks", counts.total, len(deck_names)
        )

        ease, intervals = self._empty(ease_buckets, interval_buckets)
        if counts.total == 0:
            logger.info("Collection is empty (no cards)")
        else:
            card_ids = await self._anki.find_cards("deck:*")
            if card_ids:
                ease, intervals = await self._card_distributions(
                    card_ids, ease_buckets, interval_buckets
                )
            else:
                logger.warning("No cards found via findCards, using counts from getDeckStats")

        return CollectionStats(
            total_decks=len(deck_names),
            counts=counts,
            ease=ease,
            intervals=intervals,
            per_deck=per_deck,
        )

    async def review_stats(
        self,
        deck: str,
        start_date: str,
        end_date: str | None = None,
    ) -> ReviewStats:
        """
        Analyze reviews of a deck between two dates (both inclusive, UTC days).

        Reviews logged at or after midnight UTC following end_date are
        excluded, so every reported day lies inside the period. Log entries
        without an answer (button 0) are ignored.

        Args:
            deck: Deck name
            start_date: First day, YYYY-MM-DD
            end_date: Last day, YYYY-MM-DD (default: today)

        Raises:
            InvalidParameterError: If the deck or dates are invalid
        """
        if not deck:
            raise InvalidParameterError("deck must be a non-empty deck name")
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date") if end_date is not None else utc_today()
        if end < start:
            raise InvalidParameterError(
                f"start_date must be less than or equal to end_date "
                f"({start.isoformat()} > {end.isoformat()})"
            )

        logger.info(
            "Getting review statistics from %s to %s for deck: %s",
            start.isoformat(), end.isoformat(), deck,
        )
        # cardReviews only filters on the start; the end is applied here
        end_ms = _epoch_ms(end + timedelta(days=1))
        reviews = [
            review
            for review in answered_reviews(await self._anki.card_reviews(deck, _epoch_ms(start)))
            if review.timestamp_ms < end_ms
        ]

        per_day = Counter(_review_day(review.timestamp_ms) for review in reviews)
        reviews_by_day = [DailyCount(day, count) for day, count in sorted(per_day.items())]
        retention = compute_retention([review.button for review in reviews])
        summary = summarize(reviews_by_day)

        logger.info(
            "%d total reviews, %d days studied, %.1f%% retention, %d day streak",
            summary.total_reviews, summary.days_studied,
            retention.overall * 100, summary.streak,
        )
        return ReviewStats(
            deck=deck,
            start=start.isoformat(),
            end=end.isoformat(),
            reviews_by_day=reviews_by_day,
            summary=summary,
            retention=retention,
        )


def summarize(reviews_by_day: Sequence[DailyCount]) -> ReviewSummary:
    """
    Summarize daily review counts sorted ascending by date.

    Ties for the busiest and quietest day go to the earliest date.
    """
    total = sum(day.count for day in reviews_by_day)
    studied = [day for day in reviews_by_day if day.count > 0]
    max_day = min_day = None
    for day in studied:
        if max_day is None or day.count > max_day.count:
            max_day = day
        if min_day is None or day.count < min_day.count:
            min_day = day

    return ReviewSummary(
        total_reviews=total,
        average_per_day=total / len(reviews_by_day) if reviews_by_day else 0,
        days_studied=len(studied),
        max_day=max_day,
        min_day=min_day,
        streak=calculate_streak(studied),
    )
