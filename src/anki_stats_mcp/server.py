"""MCP server exposing Anki collection statistics."""

import asyncio
import json
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from .analytics import DEFAULT_EASE_BUCKETS, DEFAULT_INTERVAL_BUCKETS, StatsService
from .anki_client import AnkiClient
from .config import get_settings
from .errors import (
    AnkiConnectError,
    DeckNotFoundError,
    InvalidParameterError,
)

logger = logging.getLogger(__name__)

ANKI_HINT = "Make sure Anki is running and AnkiConnect is installed."
DECK_HINT = "Use list_decks to see available decks."


# Initialize the MCP server
app = Server("anki-stats-mcp")

# Global AnkiClient instance
settings = get_settings()
anki = AnkiClient(
    url=settings.anki_connect_url,
    version=settings.anki_connect_version,
    timeout=settings.request_timeout,
)
stats = StatsService(anki)


def _bucket_schema(default: tuple, description: str) -> dict:
    return {
        "type": "array",
        "items": {"type": "number", "exclusiveMinimum": 0},
        "description": description,
        "default": list(default),
    }


EASE_BUCKETS_SCHEMA = _bucket_schema(
    DEFAULT_EASE_BUCKETS,
    "Bucket boundaries for ease factor distribution, strictly ascending. "
    "Default: [2.0, 2.5, 3.0] creates buckets: <2.0, 2.0-2.5, 2.5-3.0, >3.0",
)
INTERVAL_BUCKETS_SCHEMA = _bucket_schema(
    DEFAULT_INTERVAL_BUCKETS,
    "Bucket boundaries for interval distribution in days, strictly ascending. "
    "Default: [7, 21, 90] creates buckets: <7d, 7-21d, 21-90d, >90d",
)


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="anki_health_check",
            description="Check if Anki is running with AnkiConnect enabled. Returns the AnkiConnect version.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="list_decks",
            description="List all Anki deck names.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="deck_stats",
            description="Get statistics for a single deck: card counts, ease factor distribution and interval distribution. "
                        "Use this to analyze deck health or spot struggling cards (low ease).",
            inputSchema={
                "type": "object",
                "properties": {
                    "deck": {
                        "type": "string",
                        "description": "Deck name to get statistics for (e.g., 'Japanese::JLPT N5')"
                    },
                    "ease_buckets": EASE_BUCKETS_SCHEMA,
                    "interval_buckets": INTERVAL_BUCKETS_SCHEMA,
                },
                "required": ["deck"]
            }
        ),
        Tool(
            name="collection_stats",
            description="Get statistics aggregated across all decks: card counts, ease and interval distributions, "
                        "plus a per-deck breakdown of card counts.",
            inputSchema={
                "type": "object",
                "properties": {
                    "ease_buckets": EASE_BUCKETS_SCHEMA,
                    "interval_buckets": INTERVAL_BUCKETS_SCHEMA,
                },
                "required": []
            }
        ),
        Tool(
            name="review_stats",
            description="Analyze review history for a deck: reviews per day, retention by answer button and study streak. "
                        "Requires a start date; end date defaults to today.",
            inputSchema={
                "type": "object",
                "properties": {
                    "deck": {
                        "type": "string",
                        "description": "Deck name to analyze"
                    },
                    "start_date": {
                        "type": "string",
                        "description": "Start date (ISO format: YYYY-MM-DD)"
                    },
                    "end_date": {
                        "type": "string",
                        "description": "End date, inclusive (ISO format: YYYY-MM-DD). Defaults to today."
                    }
                },
                "required": ["deck", "start_date"]
            }
        ),
    ]


def _json_result(result: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(result, indent=2))]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "anki_health_check":
            version = await anki.version()
            return [TextContent(
                type="text",
                text=f"✓ Anki is running with AnkiConnect version {version}"
            )]

        elif name == "list_decks":
            decks = await anki.deck_names()
            deck_list = "\n".join(f"- {deck}" for deck in sorted(decks))
            return [TextContent(
                type="text",
                text=f"Found {len(decks)} decks:\n{deck_list}"
            )]

        elif name == "deck_stats":
            result = await stats.deck_stats(
                arguments.get("deck", ""),
                ease_buckets=arguments.get("ease_buckets", DEFAULT_EASE_BUCKETS),
                interval_buckets=arguments.get("interval_buckets", DEFAULT_INTERVAL_BUCKETS),
            )
            return _json_result(result.to_dict())

        elif name == "collection_stats":
            result = await stats.collection_stats(
                ease_buckets=arguments.get("ease_buckets", DEFAULT_EASE_BUCKETS),
                interval_buckets=arguments.get("interval_buckets", DEFAULT_INTERVAL_BUCKETS),
            )
            return _json_result(result.to_dict())

        elif name == "review_stats":
            result = await stats.review_stats(
                arguments.get("deck", ""),
                arguments.get("start_date", ""),
                arguments.get("end_date"),
            )
            return _json_result(result.to_dict())

        else:
            return [TextContent(
                type="text",
                text=f"Unknown tool: {name}"
            )]

    except InvalidParameterError as e:
        return [TextContent(
            type="text",
            text=f"Invalid parameters for {name}: {e}"
        )]
    except DeckNotFoundError as e:
        return [TextContent(
            type="text",
            text=f"{name} failed: {e}. {DECK_HINT}"
        )]
    except AnkiConnectError as e:
        logger.error("%s failed: %s", name, e)
        return [TextContent(
            type="text",
            text=f"{name} failed: {e}\n\n{ANKI_HINT}"
        )]
    except Exception as e:
        logger.exception("%s failed", name)
        return [TextContent(
            type="text",
            text=f"Error: {str(e)}"
        )]


async def async_main():
    """Run the MCP server (async)."""
    logger.info("Using AnkiConnect at %s", settings.anki_connect_url)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options()
            )
    finally:
        await anki.close()


def main():
    """Entry point for console script."""
    # stdout carries the MCP protocol
    logging.basicConfig(
        level=settings.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
