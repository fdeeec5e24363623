"""LiteLLM client wrapper with retry, timeout, and API key validation.

All online classification, extraction, grouping and project calls route
through this module. LiteLLM's built-in retry is used; every call carries a
timeout so a slow provider surfaces as an UpstreamError instead of blocking
the inbox.
"""

from __future__ import annotations

import json
import os
from typing import Any

import litellm

from mindify.ai.errors import MalformedResponseError, UpstreamError
from mindify.config import LLMCfg

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "google": "GOOGLE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string (default openai)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return  # No key required (e.g. ollama)

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def has_api_key(model: str) -> bool:
    try:
        validate_api_key(model)
    except EnvironmentError:
        return False
    return True


def complete(cfg: LLMCfg, messages: list[dict], max_tokens: int | None = None) -> str:
    """Call litellm.completion() with retry/backoff and timeout. Returns content string.

    Args:
        cfg: Model, temperature, timeout and retry settings.
        messages: OpenAI-style message list.
        max_tokens: Override ``cfg.max_tokens`` for this call.

    Returns:
        The text content of the first choice.

    Raises:
        UpstreamError: On API failure after retries, timeout, or a response
            without choices.
    """
    try:
        response = litellm.completion(
            model=cfg.model,
            messages=messages,
            max_tokens=max_tokens or cfg.max_tokens,
            temperature=cfg.temperature,
            num_retries=cfg.num_retries,
            timeout=cfg.timeout,
        )
        return response.choices[0].message.content or ""
    except Exception as exc:
        raise UpstreamError(f"LLM call to '{cfg.model}' failed: {exc}") from exc


def complete_json(
    cfg: LLMCfg, system_prompt: str, user_prompt: str, max_tokens: int | None = None
) -> dict[str, Any]:
    """Run one system + user turn and parse the reply as a JSON object.

    The reply must be bare JSON; markdown fences or prose are treated as a
    malformed response.

    Raises:
        UpstreamError: The call failed.
        MalformedResponseError: The reply is not a JSON object.
    """
    content = complete(
        cfg,
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        max_tokens=max_tokens,
    )
    try:
        data = json.loads(content.strip())
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"LLM response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("LLM response is not a JSON object")
    return data
