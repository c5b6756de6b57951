"""Shared utilities for Wanderlust's LLM-backed agents."""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel

from wanderlust.core.collaborators import TextGenerator
from wanderlust.core.llm import ProviderError
from wanderlust.core.parsing import Container, ParseResult, parse_response


class GenerationFailed(RuntimeError):
    """Raised when a required early stage cannot produce a usable result."""


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, set):
        return sorted(value)
    return value


def format_prompt_data(data: Any) -> str:
    """Render arbitrary python data for inclusion in an LLM prompt."""

    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)


_DURATION_PATTERNS = (
    re.compile(r"(\d+)\s*[天日]"),
    re.compile(r"(\d+)\s*-?\s*(?:days?|nights?)\b", re.IGNORECASE),
)


def extract_duration(text: str, default: int = 5) -> int:
    """Pull a day count such as "3 days" or "5天" out of free text."""

    for pattern in _DURATION_PATTERNS:
        match = pattern.search(text)
        if match:
            value = int(match.group(1))
            if value > 0:
                return value
    return default


async def call_llm_and_parse(
    text: Optional[TextGenerator],
    *,
    prompt: str,
    prompt_version: str,
    max_output_tokens: int,
    temperature: float,
    extended_reasoning: bool = False,
    system_prompt: Optional[str] = None,
    container: Container = "object",
) -> ParseResult:
    """Call the model and extract its JSON payload.

    Provider failures are folded into the returned result alongside parse
    failures, so each stage handles a single failure path.
    """

    if text is None:
        return ParseResult(error=ProviderError("No text generation model is configured"))
    try:
        reply = await text.generate_text(
            prompt,
            max_output_tokens=max_output_tokens,
            temperature=temperature,
            extended_reasoning=extended_reasoning,
            prompt_version=prompt_version,
            system=system_prompt,
        )
    except ProviderError as exc:
        return ParseResult(error=exc)
    return parse_response(reply.text, container=container)


from .advisor import AdvisorAgent
from .day import DayWorker, fallback_activities
from .intake import IntakeValidator
from .listener import AUTO_APPLY_CONFIDENCE, FollowUpClassifier
from .media import MediaInsight, MediaInsightAgent
from .planner import SkeletonAgent, reconcile_days
from .refiner import DayRefiner
from .scene import SceneClassifier
from .stylist import VisualIdentityAgent

__all__ = [
    "AUTO_APPLY_CONFIDENCE",
    "AdvisorAgent",
    "DayRefiner",
    "DayWorker",
    "FollowUpClassifier",
    "GenerationFailed",
    "IntakeValidator",
    "MediaInsight",
    "MediaInsightAgent",
    "SceneClassifier",
    "SkeletonAgent",
    "VisualIdentityAgent",
    "call_llm_and_parse",
    "extract_duration",
    "fallback_activities",
    "format_prompt_data",
    "reconcile_days",
]
