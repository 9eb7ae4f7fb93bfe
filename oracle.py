"""Language-model oracle: provider selection and JSON response parsing.

Providers are tried in ``PROVIDERS`` order and the first one with a configured
API key wins. Adding a provider means appending one ``Provider`` entry; call
sites only ever see ``ask(prompt) -> OracleResponse``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from json import JSONDecodeError
from typing import Any, Protocol

from config import Config
from errors import ConfigurationMissing, MalformedOracleResponse
from models import ConnectionCheck

LOGGER = logging.getLogger(__name__)

CHECK_PROMPT = "Hello, respond with just 'OK'"

ChatFn = Callable[[list[dict[str, str]], str], str]


@dataclass(frozen=True, slots=True)
class OracleResponse:
    content: str


class Oracle(Protocol):
    def ask(self, prompt: str) -> OracleResponse: ...


def _anthropic_chat(messages: list[dict[str, str]], api_key: str) -> str:
    from anthropic_client import claude_chat  # noqa: PLC0415 - lazy import

    return claude_chat(messages, api_key=api_key)


def _openai_chat(messages: list[dict[str, str]], api_key: str) -> str:
    from llm_client import openai_chat  # noqa: PLC0415 - lazy import

    return openai_chat(messages, api_key=api_key)


@dataclass(frozen=True, slots=True)
class Provider:
    name: str
    config_key: str
    chat: ChatFn


PROVIDERS: tuple[Provider, ...] = (
    Provider("anthropic", "anthropic_api_key", _anthropic_chat),
    Provider("openai", "openai_api_key", _openai_chat),
)


class LLMOracle:
    """Single-provider oracle; any SDK failure surfaces as UpstreamUnavailable."""

    def __init__(self, provider: Provider, api_key: str) -> None:
        self.provider = provider
        self._api_key = api_key

    @property
    def name(self) -> str:
        return self.provider.name

    def ask(self, prompt: str) -> OracleResponse:
        LOGGER.debug("Oracle prompt via %s (%s chars)", self.provider.name, len(prompt))
        content = self.provider.chat([{"role": "user", "content": prompt}], self._api_key)
        LOGGER.debug("Oracle reply via %s (%s chars)", self.provider.name, len(content))
        return OracleResponse(content=content)


def build_oracle(config: Config, providers: tuple[Provider, ...] = PROVIDERS) -> LLMOracle:
    """Return an oracle for the first provider with a configured key."""
    for provider in providers:
        api_key = config.get(provider.config_key)
        if api_key:
            LOGGER.info("Using %s as language-model provider", provider.name)
            return LLMOracle(provider, api_key)
    names = ", ".join(p.config_key for p in providers)
    raise ConfigurationMissing(f"No LLM API keys configured (expected one of: {names})")


def check_oracle(config: Config, providers: tuple[Provider, ...] = PROVIDERS) -> ConnectionCheck:
    """Send a trivial prompt through the configured provider."""
    try:
        oracle = build_oracle(config, providers)
    except ConfigurationMissing:
        return ConnectionCheck("LLM", "missing", "No LLM API keys configured")
    try:
        oracle.ask(CHECK_PROMPT)
    except Exception as exc:
        return ConnectionCheck("LLM", "error", f"LLM API error: {exc}")
    return ConnectionCheck("LLM", "success", f"{oracle.name} API accessible")


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into a JSON object."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise MalformedOracleResponse("Expected a JSON object from the oracle")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    """Extract the first decodable JSON object from an arbitrary string."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise MalformedOracleResponse("Could not extract a JSON object from oracle output")
