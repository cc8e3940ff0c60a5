"""AnkiConnect API client wrapper."""

import logging
from typing import Any

import httpx

from .errors import AnkiConnectError, AnkiUnavailableError, MalformedResponseError
from .models import CardReview, DeckCounts

logger = logging.getLogger(__name__)


class AnkiClient:
    """Client for communicating with AnkiConnect."""

    def __init__(
        self,
        url: str = "http://localhost:8765",
        version: int = 6,
        timeout: float = 30.0,
    ):
        """
        Initialize the AnkiConnect client.

        Args:
            url: AnkiConnect server URL (default: http://localhost:8765)
            version: AnkiConnect API version sent with every request
            timeout: HTTP timeout in seconds
        """
        self.url = url
        self.api_version = version
        self.client = httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _invoke(self, action: str, **params) -> Any:
        """
        Invoke an AnkiConnect action.

        Args:
            action: AnkiConnect action name
            **params: Action parameters

        Returns:
            Response result

        Raises:
            AnkiConnectError: If AnkiConnect returns an error
            AnkiUnavailableError: If the request fails
            MalformedResponseError: If the body is not an AnkiConnect envelope
        """
        payload = {
            "action": action,
            "version": self.api_version,
            "params": params
        }

        logger.debug("AnkiConnect request: %s", action)
        try:
            response = await self.client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise AnkiUnavailableError(action, e) from e
        except ValueError as e:
            raise MalformedResponseError(action, "body is not JSON") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(action, f"expected an object, got {type(data).__name__}")

        if data.get("error"):
            raise AnkiConnectError(f"AnkiConnect error: {data['error']}")

        return data.get("result")

    async def _invoke_list(self, action: str, **params) -> list:
        """Invoke an action whose result must be a list."""
        result = await self._invoke(action, **params)
        if not isinstance(result, list):
            raise MalformedResponseError(action, f"expected array, got {type(result).__name__}")
        return result

    async def _invoke_int_list(self, action: str, **params) -> list[int]:
        """Invoke an action whose result must be a list of integers, one per card."""
        result = await self._invoke_list(action, **params)
        for value in result:
            if isinstance(value, bool) or not isinstance(value, int):
                raise MalformedResponseError(action, f"expected integers, got {value!r}")
        return result

    # Health and info methods

    async def version(self) -> int:
        """Get AnkiConnect version."""
        return await self._invoke("version")

    async def deck_names(self) -> list[str]:
        """Get all deck names."""
        return await self._invoke_list("deckNames")

    # Statistics and card info methods

    async def get_deck_stats(self, deck_names: list[str]) -> list[DeckCounts]:
        """
        Get card counts for the specified decks.

        AnkiConnect keys the response by deck ID; the entries are converted to
        DeckCounts right away so callers look decks up by name.

        Args:
            deck_names: List of deck names to get stats for

        Returns:
            One DeckCounts per deck known to Anki (unknown names are absent)
        """
        result = await self._invoke("getDeckStats", decks=deck_names)
        if result is None:
            return []
        if not isinstance(result, dict):
            raise MalformedResponseError(
                "getDeckStats", f"expected object, got {type(result).__name__}"
            )
        return [DeckCounts.from_response(entry) for entry in result.values()]

    async def find_cards(self, query: str) -> list[int]:
        """
        Search for cards using Anki search syntax.

        Args:
            query: Anki search query (e.g., "deck:Spanish is:due")

        Returns:
            List of card IDs matching the query
        """
        return await self._invoke_list("findCards", query=query)

    async def get_ease_factors(self, card_ids: list[int]) -> list[int]:
        """
        Get ease factors for cards.

        Returns:
            Ease factors in permille (2500 = 250%), parallel to card_ids; 0 for new cards
        """
        return await self._invoke_int_list("getEaseFactors", cards=card_ids)

    async def get_intervals(self, card_ids: list[int]) -> list[int]:
        """
        Get current intervals for cards.

        Returns:
            Intervals parallel to card_ids: positive values are days,
            negative values are seconds (cards still in learning)
        """
        return await self._invoke_int_list("getIntervals", cards=card_ids, complete=False)

    async def card_reviews(self, deck_name: str, start_id: int) -> list[CardReview]:
        """
        Get review log entries for a deck.

        Args:
            deck_name: Deck whose reviews to return
            start_id: Only reviews with an ID (epoch ms) at or after this value

        Returns:
            Review entries in the order AnkiConnect reports them
        """
        result = await self._invoke_list("cardReviews", deck=deck_name, startID=start_id)
        return [CardReview.from_tuple(entry) for entry in result]
