"""Two-tier scene classification for incoming travel requests."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional

from wanderlust.agents import call_llm_and_parse, extract_duration
from wanderlust.agents.scene_profiles import SCENE_PROFILES, profile_for
from wanderlust.core.collaborators import TextGenerator
from wanderlust.schemas import DEFAULT_SCENE, SceneAnalysis, SceneCategory, SkeletonPreview

_LOGGER = logging.getLogger(__name__)

_BASE_SECONDS = 20

_DESTINATION_PATTERNS = (
    re.compile(r"(?:去|到|在|前往)\s*([^\s,，。.]+)"),
    re.compile(r"\b(?:to|in|visit|visiting)\s+([A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*)"),
    re.compile(r"^\s*([A-Z][\w'-]*(?:\s+[A-Z][\w'-]*)*)\s*[,，]"),
)


def _string_list(value: object) -> List[str]:
    if isinstance(value, str):
        value = re.split(r"[\n,，、]+", value)
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _pad(items: List[str], defaults: Iterable[str], minimum: int, maximum: int) -> List[str]:
    result = items[:maximum]
    for extra in defaults:
        if len(result) >= minimum:
            break
        if extra not in result:
            result.append(extra)
    return result


class SceneClassifier:
    """Instant keyword match, optionally confirmed by the model."""

    system_prompt = (
        "You are a travel scene analyst. Identify what kind of trip the traveller wants "
        "and answer with a single JSON object."
    )
    prompt_version = "scene.v1"

    def __init__(
        self,
        text: Optional[TextGenerator] = None,
        *,
        cache: Optional[Dict[str, SceneAnalysis]] = None,
    ) -> None:
        self.text = text
        self._cache: Dict[str, SceneAnalysis] = cache if cache is not None else {}

    @staticmethod
    def quick_predict(text: str) -> SceneCategory:
        """Return the first category whose keyword list matches ``text``."""

        lowered = text.lower()
        for category, profile in SCENE_PROFILES.items():
            if any(keyword in lowered for keyword in profile.keywords):
                return category
        return DEFAULT_SCENE

    @staticmethod
    def fallback(category: SceneCategory) -> SceneAnalysis:
        profile = profile_for(category)
        return SceneAnalysis(
            category=category,
            confidence=0.6,
            summary=profile.summary,
            highlights=list(profile.highlights),
            detected_keywords=[],
        )

    def clear_cache(self) -> None:
        self._cache.clear()

    def _build_prompt(self, text: str, media_summary: str, guess: SceneCategory) -> str:
        categories = "/".join(category.value for category in SceneCategory)
        media_block = f"Media references:\n{media_summary}\n\n" if media_summary else ""
        return (
            f"Traveller request: {text}\n"
            "\n"
            f"{media_block}"
            f"Initial guess: {guess.value}\n"
            "\n"
            "Return JSON:\n"
            "{\n"
            f'  "category": "one of {categories}",\n'
            '  "confidence": 0.0-1.0,\n'
            '  "summary": "one sentence capturing the heart of the trip",\n'
            '  "highlights": ["3 to 5 short highlights"],\n'
            '  "detected_keywords": ["keywords you relied on"]\n'
            "}\n"
            "Output nothing but the JSON."
        )

    def _coerce(self, raw: Mapping[str, object], guess: SceneCategory) -> SceneAnalysis:
        category = SceneCategory.coerce(raw.get("category") or raw.get("sceneType")) or guess
        profile = profile_for(category)

        try:
            confidence = float(raw.get("confidence", 0.7))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            confidence = 0.7
        confidence = min(max(confidence, 0.0), 1.0)

        summary = raw.get("summary") or raw.get("quickSummary")
        highlights = _string_list(raw.get("highlights") or raw.get("keyHighlights"))
        return SceneAnalysis(
            category=category,
            confidence=confidence,
            summary=str(summary).strip() if summary else profile.summary,
            highlights=_pad(highlights, profile.highlights, 3, 5),
            detected_keywords=_string_list(
                raw.get("detected_keywords") or raw.get("detectedKeywords")
            ),
        )

    async def analyze(self, text: str, media_summary: str = "") -> SceneAnalysis:
        """Classify ``text``; never raises on model or parse failures."""

        cache_key = f"{text}-{media_summary}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            _LOGGER.debug("Scene analysis cache hit [prompt_version=%s]", self.prompt_version)
            return cached

        guess = self.quick_predict(text)
        result = await call_llm_and_parse(
            self.text,
            prompt=self._build_prompt(text, media_summary, guess),
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=500,
            temperature=0.3,
            extended_reasoning=False,
        )
        if not result.ok:
            _LOGGER.warning(
                "Scene confirmation failed, using %s fallback: %s", guess.value, result.error
            )
            return self.fallback(guess)

        analysis = self._coerce(result.value, guess)
        self._cache[cache_key] = analysis
        return analysis

    @staticmethod
    def preview(
        text: str,
        analysis: SceneAnalysis,
        duration: Optional[int] = None,
    ) -> SkeletonPreview:
        """Instant placeholder data shown before the skeleton exists."""

        destination: Optional[str] = None
        for pattern in _DESTINATION_PATTERNS:
            match = pattern.search(text)
            if match:
                destination = match.group(1).strip()
                break

        multiplier = profile_for(analysis.category).time_multiplier
        return SkeletonPreview(
            destination=destination,
            duration=duration or extract_duration(text),
            category=analysis.category,
            vibe=analysis.summary,
            estimated_seconds=round(_BASE_SECONDS * multiplier),
        )


__all__ = ["SceneClassifier"]
