"""Exceptions raised by the AnkiConnect client and the statistics layer."""


class AnkiConnectError(Exception):
    """Exception raised when AnkiConnect returns an error."""
    pass


class AnkiUnavailableError(AnkiConnectError):
    """AnkiConnect could not be reached or the HTTP request failed."""

    def __init__(self, action: str, cause: Exception):
        self.action = action
        self.cause = cause
        super().__init__(f"Could not reach AnkiConnect ({action}): {cause}")


class MalformedResponseError(AnkiConnectError):
    """AnkiConnect answered with a payload of an unexpected shape."""

    def __init__(self, action: str, detail: str):
        self.action = action
        super().__init__(f"Invalid {action} response: {detail}")


class DeckNotFoundError(LookupError):
    """The requested deck is absent from the getDeckStats response."""

    def __init__(self, deck: str):
        self.deck = deck
        super().__init__(f'Deck "{deck}" not found')


class InvalidParameterError(ValueError):
    """A caller-supplied parameter was rejected before querying Anki."""
    pass
