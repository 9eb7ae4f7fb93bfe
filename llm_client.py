"""OpenAI chat-completions client used as the secondary oracle provider."""

from __future__ import annotations

import logging
import os

from openai import OpenAI, OpenAIError

from errors import UpstreamUnavailable

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.1"))

LOGGER = logging.getLogger(__name__)


def openai_chat(messages: list[dict[str, str]], api_key: str) -> str:
    """Send one chat request to OpenAI and return the reply text."""
    client = OpenAI(api_key=api_key)

    LOGGER.debug("Calling OpenAI model=%s", OPENAI_MODEL)
    try:
        response = client.chat.completions.create(
            model=OPENAI_MODEL,
            temperature=OPENAI_TEMPERATURE,
            messages=messages,
        )
    except OpenAIError as exc:
        raise UpstreamUnavailable(f"OpenAI request failed: {exc}") from exc

    content = response.choices[0].message.content
    if not content:
        raise UpstreamUnavailable("OpenAI returned an empty response")
    return content
