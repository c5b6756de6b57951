"""Centralised client for the hosted text generation model."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import httpx


DEFAULT_MODEL = os.getenv("ANTHROPIC_MODEL", "GLM-4.7")
DEFAULT_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", "https://open.bigmodel.cn/api/anthropic")
DEFAULT_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))
DEFAULT_THINKING_TOKENS = int(os.getenv("LLM_THINKING_TOKENS", "20000"))
ANTHROPIC_VERSION = "2023-06-01"


_LOGGER = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised on transport failures or non-2xx replies from a collaborator."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class TextResult:
    text: str


def _clean_dict(payload: MutableMapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass
class LLMClient:
    """Async wrapper around an Anthropic-compatible ``/v1/messages`` endpoint."""

    model: str = DEFAULT_MODEL
    api_key: Optional[str] = os.getenv("ANTHROPIC_AUTH_TOKEN")
    base_url: str = DEFAULT_BASE_URL
    timeout: Optional[float] = DEFAULT_TIMEOUT
    thinking_budget: int = DEFAULT_THINKING_TOKENS
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def generate_text(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 4096,
        temperature: float = 0.7,
        extended_reasoning: bool = False,
        prompt_version: str = "unversioned",
        system: Optional[str] = None,
    ) -> TextResult:
        """Send one prompt and return the concatenated text blocks of the reply.

        No retries are attempted here; a single failure raises
        :class:`ProviderError` and callers decide on a fallback.
        """

        if not self.api_key:
            raise ProviderError("ANTHROPIC_AUTH_TOKEN environment variable is not set")

        max_tokens = max_output_tokens
        thinking: Optional[Dict[str, Any]] = None
        if extended_reasoning:
            thinking = {"type": "enabled", "budget_tokens": self.thinking_budget}
            max_tokens += self.thinking_budget

        payload = _clean_dict(
            {
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": system,
                "messages": [{"role": "user", "content": prompt}],
                "thinking": thinking,
                "metadata": {"user_id": prompt_version},
            }
        )

        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }
        url = f"{self.base_url.rstrip('/')}/v1/messages"

        _LOGGER.debug(
            "Calling text generation model %s (reasoning=%s) [prompt_version=%s]",
            self.model,
            extended_reasoning,
            prompt_version,
        )

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.HTTPError as exc:
                raise ProviderError(f"Transport failure calling {url}: {exc}") from exc

        if response.is_error:
            raise ProviderError(
                f"{response.status_code} error from text generation API: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Text generation API returned a non-JSON body") from exc

        return TextResult(text=self.extract_text(data))

    @staticmethod
    def extract_text(response: Mapping[str, Any]) -> str:
        """Join every ``text`` content block of a messages response."""

        blocks = response.get("content")
        if not isinstance(blocks, list):
            raise ProviderError("Text generation response did not contain content blocks")
        parts: List[str] = []
        for block in blocks:
            if isinstance(block, Mapping) and block.get("type") == "text":
                parts.append(str(block.get("text") or ""))
        return "".join(parts)


__all__ = ["LLMClient", "ProviderError", "TextResult"]
