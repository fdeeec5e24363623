"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from mindify.ai.errors import MalformedResponseError, UpstreamError
from mindify.ai.llm_client import (
    complete,
    complete_json,
    has_api_key,
    provider_of,
    validate_api_key,
)
from mindify.config import LLMCfg


def _response(content):
    mock_response = MagicMock()
    mock_response.choices[0].message.content = content
    return mock_response


# ------------------------------------------------------------------
# validate_api_key / has_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing():
    with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
        validate_api_key("anthropic/claude-3-5-sonnet-20241022")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    validate_api_key("openai/gpt-4o")  # should not raise


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/llama3")


def test_bare_model_name_treated_as_openai():
    assert provider_of("gpt-4o") == "openai"
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("gpt-4o")


def test_has_api_key(monkeypatch):
    assert has_api_key("anthropic/claude-3-5-sonnet-20241022") is False
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    assert has_api_key("anthropic/claude-3-5-sonnet-20241022") is True


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def test_complete_returns_content():
    with patch("mindify.ai.llm_client.litellm.completion", return_value=_response("Hi!")):
        assert complete(LLMCfg(), [{"role": "user", "content": "Hi"}]) == "Hi!"


def test_complete_returns_empty_string_on_none_content():
    with patch("mindify.ai.llm_client.litellm.completion", return_value=_response(None)):
        assert complete(LLMCfg(), [{"role": "user", "content": "Hi"}]) == ""


def test_complete_passes_params_to_litellm():
    cfg = LLMCfg(model="openai/gpt-4o-mini", max_tokens=100, timeout=5.0, num_retries=1)
    with patch(
        "mindify.ai.llm_client.litellm.completion", return_value=_response("ok")
    ) as mock_completion:
        complete(cfg, [{"role": "user", "content": "Hi"}], max_tokens=2048)

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["max_tokens"] == 2048
    assert kwargs["timeout"] == 5.0
    assert kwargs["num_retries"] == 1
    assert kwargs["temperature"] == 0.0


def test_complete_wraps_failures_as_upstream_error():
    with patch(
        "mindify.ai.llm_client.litellm.completion", side_effect=TimeoutError("slow")
    ):
        with pytest.raises(UpstreamError, match="slow"):
            complete(LLMCfg(), [{"role": "user", "content": "Hi"}])


# ------------------------------------------------------------------
# complete_json()
# ------------------------------------------------------------------


def test_complete_json_parses_object():
    with patch(
        "mindify.ai.llm_client.litellm.completion",
        return_value=_response('  {"category": "task"}\n'),
    ) as mock_completion:
        data = complete_json(LLMCfg(), "system", "user")

    assert data == {"category": "task"}
    messages = mock_completion.call_args.kwargs["messages"]
    assert [m["role"] for m in messages] == ["system", "user"]


@pytest.mark.parametrize(
    "content",
    ['```json\n{"category": "task"}\n```', "Sure! Here you go", '["task"]', ""],
)
def test_complete_json_rejects_non_object(content):
    with patch("mindify.ai.llm_client.litellm.completion", return_value=_response(content)):
        with pytest.raises(MalformedResponseError):
            complete_json(LLMCfg(), "system", "user")
