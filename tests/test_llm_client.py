from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from errors import UpstreamUnavailable
from llm_client import openai_chat

_MESSAGES = [{"role": "user", "content": "Group these work items."}]


def _mock_client(content: str | None) -> MagicMock:
    mock_choice = MagicMock()
    mock_choice.message.content = content
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]

    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value = mock_response
    return mock_client


def test_openai_chat_returns_message_content() -> None:
    mock_client = _mock_client('{"clusters": []}')

    with patch("llm_client.OpenAI", return_value=mock_client) as mock_openai:
        result = openai_chat(_MESSAGES, api_key="test-key")

    assert result == '{"clusters": []}'
    mock_openai.assert_called_once_with(api_key="test-key")
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"] == _MESSAGES


def test_openai_chat_raises_on_empty_content() -> None:
    with patch("llm_client.OpenAI", return_value=_mock_client(None)):
        with pytest.raises(UpstreamUnavailable, match="empty"):
            openai_chat(_MESSAGES, api_key="test-key")


def test_openai_chat_wraps_sdk_errors() -> None:
    mock_client = MagicMock()
    mock_client.chat.completions.create.side_effect = OpenAIError("quota exceeded")

    with patch("llm_client.OpenAI", return_value=mock_client):
        with pytest.raises(UpstreamUnavailable, match="quota exceeded"):
            openai_chat(_MESSAGES, api_key="test-key")
