from unittest.mock import MagicMock, patch

import pytest

from config import Config
from errors import ConfigurationMissing, MalformedOracleResponse, UpstreamUnavailable
from oracle import CHECK_PROMPT, PROVIDERS, LLMOracle, Provider, build_oracle, check_oracle, parse_json_object


def test_build_oracle_prefers_anthropic_when_both_configured() -> None:
    oracle = build_oracle(Config(anthropic_api_key="a-key", openai_api_key="o-key"))
    assert oracle.name == "anthropic"


def test_build_oracle_uses_openai_when_anthropic_missing() -> None:
    oracle = build_oracle(Config(anthropic_api_key="", openai_api_key="o-key"))
    assert oracle.name == "openai"


def test_build_oracle_raises_without_keys() -> None:
    with pytest.raises(ConfigurationMissing, match="anthropic_api_key"):
        build_oracle(Config())


def test_provider_order_is_anthropic_then_openai() -> None:
    assert [p.name for p in PROVIDERS] == ["anthropic", "openai"]


def test_custom_provider_list_is_honoured() -> None:
    chat = MagicMock(return_value="pong")
    local = Provider("local", "openai_api_key", chat)

    oracle = build_oracle(Config(openai_api_key="k"), providers=(local,))
    response = oracle.ask("ping")

    assert response.content == "pong"
    chat.assert_called_once_with([{"role": "user", "content": "ping"}], "k")


def test_anthropic_provider_delegates_to_claude_chat() -> None:
    with patch("anthropic_client.claude_chat", return_value="hello") as mock_chat:
        response = LLMOracle(PROVIDERS[0], "a-key").ask("Say hello")

    assert response.content == "hello"
    mock_chat.assert_called_once_with([{"role": "user", "content": "Say hello"}], api_key="a-key")


def test_openai_provider_delegates_to_openai_chat() -> None:
    with patch("llm_client.openai_chat", return_value="hi") as mock_chat:
        response = LLMOracle(PROVIDERS[1], "o-key").ask("Say hi")

    assert response.content == "hi"
    mock_chat.assert_called_once_with([{"role": "user", "content": "Say hi"}], api_key="o-key")


def test_parse_json_object_with_wrapping_text() -> None:
    wrapped = 'Here you go:\n```json\n{"clusters": [{"name": "A"}]}\n```\nThanks!'
    assert parse_json_object(wrapped) == {"clusters": [{"name": "A"}]}


@pytest.mark.parametrize("content", ["no json here", "[1, 2, 3]", "{broken"])
def test_parse_json_object_rejects_non_objects(content: str) -> None:
    with pytest.raises(MalformedOracleResponse):
        parse_json_object(content)


def test_check_oracle_reports_missing_without_keys() -> None:
    result = check_oracle(Config())
    assert result.source == "LLM"
    assert result.status == "missing"


def test_check_oracle_reports_success() -> None:
    chat = MagicMock(return_value="OK")
    local = Provider("local", "openai_api_key", chat)

    result = check_oracle(Config(openai_api_key="k"), providers=(local,))

    assert result.status == "success"
    assert result.message == "local API accessible"
    chat.assert_called_once_with([{"role": "user", "content": CHECK_PROMPT}], "k")


def test_check_oracle_reports_error() -> None:
    chat = MagicMock(side_effect=UpstreamUnavailable("invalid x-api-key"))
    local = Provider("local", "anthropic_api_key", chat)

    result = check_oracle(Config(anthropic_api_key="bad"), providers=(local,))

    assert result.status == "error"
    assert result.message == "LLM API error: invalid x-api-key"
