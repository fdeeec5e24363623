"""Error kinds raised by the online AI strategies."""

from __future__ import annotations


class AIServiceError(Exception):
    """Base class for online classification / extraction failures."""


class UpstreamError(AIServiceError):
    """The LLM call itself failed: network, HTTP status, timeout, missing key."""


class MalformedResponseError(AIServiceError):
    """The LLM answered, but not with JSON matching the expected schema."""
