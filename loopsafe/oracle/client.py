"""LLM client wrapper for the moderation oracle.

Thin wrapper around the Anthropic API.  When no API key is configured the
client answers with a stub message instead of raising, and callers decide
what an unusable answer means.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

import anthropic

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

NOT_CONFIGURED_MSG = "LLM not configured. Set ANTHROPIC_API_KEY."


@dataclass
class LLMResponse:
    """Structured response from an LLM call."""

    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMClient:
    """Thin wrapper around the Anthropic Python SDK.

    Parameters
    ----------
    model : str
        Model identifier to use for completions.
    api_key : str | None
        Anthropic API key.  Falls back to the ``ANTHROPIC_API_KEY``
        environment variable when *None*.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
    ) -> None:
        self.model = model
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self._configured = bool(self.api_key)
        self._client = anthropic.Anthropic(api_key=self.api_key) if self._configured else None

    @property
    def configured(self) -> bool:
        """Return *True* if an API key is available."""
        return self._configured

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.1,
    ) -> LLMResponse:
        """Send a completion request and return an :class:`LLMResponse`.

        SDK errors (network, rate limit, auth) propagate to the caller.
        """
        if not self._configured:
            return LLMResponse(content=NOT_CONFIGURED_MSG, model=self.model)

        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        start = time.monotonic()
        response = self._client.messages.create(**kwargs)
        latency_ms = int((time.monotonic() - start) * 1000)

        return LLMResponse(
            content=response.content[0].text if response.content else "",
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            latency_ms=latency_ms,
        )
