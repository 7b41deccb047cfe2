"""Thin transport over the generative backend."""
from __future__ import annotations

import logging
from typing import Any, Optional

import openai

from taskplanner.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

MIN_OUTPUT_TOKENS = 8000


class LLMError(Exception):
    """Base class for transport failures."""


class LLMConfigurationError(LLMError):
    """Credentials are missing, so no request was attempted."""


class LLMTransportError(LLMError):
    """The request was sent and failed (HTTP 4xx/5xx or network)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


def extract_completion_text(completion: Any) -> Optional[str]:
    """Pull ``choices[0].message.content`` out of a chat completion, or None."""
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else None


class PlanLLMClient:
    """Sends one prompt and returns the model's text.

    No retries: any failure is terminal for the request and the caller is
    expected to degrade.
    """

    def __init__(self, config: Optional[Settings] = None, client: Optional[Any] = None):
        self.config = config or default_settings
        self._client = client

    @property
    def configured(self) -> bool:
        key = self.config.gemini_api_key
        return bool(key and key.strip())

    def _get_client(self):
        if self._client is None:
            if not self.configured:
                raise LLMConfigurationError("GEMINI_API_KEY is not configured")
            self._client = openai.OpenAI(
                api_key=self.config.gemini_api_key.strip(),
                base_url=self.config.gemini_base_url,
                max_retries=0,
            )
        return self._client

    def complete(self, prompt: str) -> Optional[str]:
        client = self._get_client()
        max_tokens = max(self.config.gemini_max_tokens, MIN_OUTPUT_TOKENS)
        logger.info(
            "Calling %s (prompt=%d chars, max_tokens=%d)",
            self.config.gemini_model,
            len(prompt),
            max_tokens,
        )
        try:
            completion = client.chat.completions.create(
                model=self.config.gemini_model,
                temperature=self.config.gemini_temperature,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.APIStatusError as exc:
            raise LLMTransportError(f"Model call failed with HTTP {exc.status_code}", exc.status_code) from exc
        except openai.APIConnectionError as exc:
            raise LLMTransportError(f"Model call failed: {exc}") from exc
        return extract_completion_text(completion)
