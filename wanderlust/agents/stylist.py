"""Agent that decides the look and feel of a trip."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from wanderlust.agents import GenerationFailed, call_llm_and_parse, extract_duration
from wanderlust.agents.scene_profiles import font_library_text, profile_for, resolve_font
from wanderlust.core.collaborators import Collaborators
from wanderlust.schemas import (
    HERO_STYLES,
    MAX_TRIP_DAYS,
    PALETTES,
    SceneAnalysis,
    VisualIdentity,
)

_LOGGER = logging.getLogger(__name__)


def _coerce_duration(value: object, request_text: str) -> int:
    duration: Optional[int] = None
    if isinstance(value, bool):
        duration = None
    elif isinstance(value, (int, float)):
        duration = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        duration = int(value.strip())
    if duration is None or duration < 1:
        duration = extract_duration(request_text)
    return min(duration, MAX_TRIP_DAYS)


class VisualIdentityAgent:
    """Produces destination, duration, vibe, palette and fonts for a request."""

    system_prompt = (
        "You are a travel visual designer with impeccable taste. Read the traveller's request "
        "and define a visual identity for their trip. Only respond with a JSON object."
    )
    prompt_version = "stylist.v1"

    def __init__(self, collaborators: Collaborators) -> None:
        self.collaborators = collaborators

    def _build_prompt(self, request_text: str, analysis: SceneAnalysis) -> str:
        profile = profile_for(analysis.category)
        return (
            f'Traveller request: "{request_text}"\n'
            f"Scene: {analysis.category.value} ({analysis.summary})\n"
            "\n"
            "Return JSON:\n"
            "{\n"
            '  "destination": "destination name",\n'
            '  "duration": number of days (integer),\n'
            '  "vibe": "two or three words capturing the mood",\n'
            f'  "palette": "one of {"/".join(PALETTES)}",\n'
            f'  "heroStyle": "one of {"/".join(HERO_STYLES)}",\n'
            '  "fontConfig": {"headingFont": "...", "bodyFont": "...", "googleFontUrl": "..."}\n'
            "}\n"
            "\n"
            "Available fonts:\n"
            f"{font_library_text()}\n"
            "\n"
            f"The {profile.label.lower()} style usually suits the {profile.palette} palette."
        )

    async def run(self, request_text: str, analysis: SceneAnalysis) -> VisualIdentity:
        """Return the :class:`VisualIdentity`, raising :class:`GenerationFailed` when unusable."""

        result = await call_llm_and_parse(
            self.collaborators.text,
            prompt=self._build_prompt(request_text, analysis),
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=2000,
            temperature=0.7,
            extended_reasoning=True,
        )
        if not result.ok:
            raise GenerationFailed(
                f"Could not determine the trip's visual identity: {result.error}"
            ) from result.error

        identity = self.coerce(result.value, request_text, analysis)

        hero_images = await self.collaborators.images.fetch_images(
            f"{identity.destination} landscape", 1, "landscape"
        )
        if hero_images:
            identity = identity.model_copy(update={"hero_image": hero_images[0]})
        else:
            _LOGGER.info("No hero image found for %s", identity.destination)
        return identity

    @staticmethod
    def coerce(raw: Mapping[str, object], request_text: str, analysis: SceneAnalysis) -> VisualIdentity:
        destination = str(raw.get("destination") or "").strip()
        if not destination:
            raise GenerationFailed("The model did not name a destination for this trip")

        profile = profile_for(analysis.category)
        palette = str(raw.get("palette") or "").strip().lower()
        if palette not in PALETTES:
            palette = profile.palette
        hero_style = str(raw.get("heroStyle") or raw.get("hero_style") or "").strip().lower()
        if hero_style not in HERO_STYLES:
            hero_style = "centered"
        vibe = str(raw.get("vibe") or "").strip() or analysis.summary

        return VisualIdentity(
            destination=destination,
            duration=_coerce_duration(raw.get("duration"), request_text),
            vibe=vibe,
            palette=palette,
            hero_style=hero_style,
            font_config=resolve_font(
                raw.get("fontConfig") or raw.get("font_config"), analysis.category
            ),
            scene_category=analysis.category,
        )


__all__ = ["VisualIdentityAgent"]
