"""Thin wrapper around the Anthropic Messages API."""

from __future__ import annotations

import logging
import os
from typing import Any

import anthropic

from errors import UpstreamUnavailable

LOGGER = logging.getLogger(__name__)

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")


def claude_chat(messages: list[dict[str, str]], api_key: str, max_tokens: int = 2048) -> str:
    """Call the Claude API and return the assistant reply as a string.

    Args:
        messages: List of message dicts with "role" and "content" keys.
                  A "system" role message is extracted and passed via the
                  Anthropic API's dedicated system= parameter.
        api_key: Anthropic API key from the loaded config.
        max_tokens: Hard cap on output tokens.
    """
    client = anthropic.Anthropic(api_key=api_key)

    system: str | None = None
    filtered: list[dict[str, Any]] = []
    for msg in messages:
        if msg["role"] == "system":
            system = msg["content"]
        else:
            filtered.append({"role": msg["role"], "content": msg["content"]})

    kwargs: dict[str, Any] = {
        "model": CLAUDE_MODEL,
        "max_tokens": max_tokens,
        "messages": filtered,
    }
    if system:
        kwargs["system"] = system

    LOGGER.debug("Calling Claude model=%s max_tokens=%s", CLAUDE_MODEL, max_tokens)
    try:
        response = client.messages.create(**kwargs)
    except anthropic.APIError as exc:
        raise UpstreamUnavailable(f"Anthropic request failed: {exc}") from exc

    if not response.content:
        raise UpstreamUnavailable("Anthropic returned an empty response")
    return response.content[0].text
