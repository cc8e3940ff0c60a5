"""Anki Stats MCP Server - Deck, collection and review statistics via AnkiConnect."""

__version__ = "0.1.0"

from .anki_client import AnkiClient
from .analytics import StatsService
from .errors import (
    AnkiConnectError,
    AnkiUnavailableError,
    DeckNotFoundError,
    InvalidParameterError,
    MalformedResponseError,
)
from .stats import (
    calculate_streak,
    compute_distribution,
    compute_retention,
)

__all__ = [
    "AnkiClient",
    "AnkiConnectError",
    "AnkiUnavailableError",
    "DeckNotFoundError",
    "InvalidParameterError",
    "MalformedResponseError",
    "StatsService",
    "calculate_streak",
    "compute_distribution",
    "compute_retention",
]
