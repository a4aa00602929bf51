"""Shared helpers for Claude calls."""

import os
from datetime import UTC, datetime
from typing import Any

import anthropic

from ojas_pulse.data import APICallUsage, Usage

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
API_KEY_ENV = "CLAUDE_API_KEY"


def resolve_api_key(api_key: str | None) -> str | None:
    return api_key or os.environ.get(API_KEY_ENV)


def make_client(api_key: str | None) -> anthropic.AsyncAnthropic:
    return anthropic.AsyncAnthropic(api_key=api_key)


def web_search_tool(max_uses: int) -> dict[str, Any]:
    """Server-side web search tool used for grounding."""
    return {
        "type": "web_search_20250305",
        "name": "web_search",
        "max_uses": max_uses,
    }


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def usage_from_response(response: Any, model: str) -> Usage:
    """Build a ``Usage`` from an Anthropic messages response."""
    web_searches = 0
    server_tool_use = getattr(response.usage, "server_tool_use", None)
    if server_tool_use is not None:
        web_searches = getattr(server_tool_use, "web_search_requests", 0) or 0

    return Usage(
        api_calls=[
            APICallUsage(
                model=model,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                cache_creation_input_tokens=getattr(
                    response.usage, "cache_creation_input_tokens", 0
                )
                or 0,
                cache_read_input_tokens=getattr(response.usage, "cache_read_input_tokens", 0)
                or 0,
                web_searches=web_searches,
            ),
        ],
    )


def response_text(response: Any) -> str:
    """Concatenate the text blocks of a response.

    Grounded responses interleave text with search blocks; the JSON payload
    usually sits in the last text block, so blocks are joined in order.
    """
    parts: list[str] = []
    for block in response.content:
        if getattr(block, "type", None) == "text":
            parts.append(block.text)
    return "".join(parts)
