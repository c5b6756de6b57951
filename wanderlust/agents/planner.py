"""Agent that drafts the day-by-day outline of a trip."""

from __future__ import annotations

import logging
import math
from typing import Any, List, Mapping, Sequence, Tuple

from wanderlust.agents import GenerationFailed, call_llm_and_parse, format_prompt_data
from wanderlust.agents.scene_profiles import profile_for
from wanderlust.core.collaborators import TextGenerator
from wanderlust.schemas import (
    DaySkeleton,
    Highlight,
    SceneAnalysis,
    SceneCategory,
    TripSkeleton,
    VisualIdentity,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_HIGHLIGHTS: Tuple[Highlight, ...] = (
    Highlight(icon="🌟", title="Memorable experiences", description="Rich cultural activities"),
    Highlight(icon="🍜", title="Local food", description="Taste regional specialities"),
    Highlight(icon="🏛️", title="Historic sites", description="Feel the depth of local history"),
    Highlight(icon="🌸", title="Natural scenery", description="Enjoy beautiful landscapes"),
)

_FOOD_HIGHLIGHT = Highlight(icon="🍜", title="Food discovery", description="Taste authentic local dishes")


def _text(value: object, default: str) -> str:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        cleaned = str(value).strip()
        if cleaned:
            return cleaned
    return default


def placeholder_day(number: int, identity: VisualIdentity) -> DaySkeleton:
    return DaySkeleton(
        day=number,
        title=f"Day {number}: Exploring {identity.destination}",
        theme=identity.vibe,
        city=identity.destination,
        visual_keyword=f"{identity.destination} travel",
    )


def _ordering_key(indexed: Tuple[int, Mapping[str, Any]]) -> Tuple[float, int]:
    position, entry = indexed
    day = entry.get("day")
    if isinstance(day, int) and not isinstance(day, bool):
        return (float(day), position)
    return (math.inf, position)


def reconcile_days(raw_days: object, identity: VisualIdentity) -> List[DaySkeleton]:
    """Force the model's day list to exactly ``identity.duration`` dense entries.

    Extra entries are dropped, missing ones become placeholder days, and
    every entry is renumbered 1..duration in its original order.
    """

    entries: List[Mapping[str, Any]] = []
    if isinstance(raw_days, list):
        indexed = [(i, item) for i, item in enumerate(raw_days) if isinstance(item, Mapping)]
        entries = [entry for _, entry in sorted(indexed, key=_ordering_key)]

    if len(entries) != identity.duration:
        _LOGGER.warning(
            "Skeleton returned %d days for a %d-day trip; reconciling",
            len(entries),
            identity.duration,
        )

    days: List[DaySkeleton] = []
    for index in range(identity.duration):
        number = index + 1
        fallback = placeholder_day(number, identity)
        if index >= len(entries):
            days.append(fallback)
            continue
        entry = entries[index]
        days.append(
            DaySkeleton(
                day=number,
                title=_text(entry.get("title"), fallback.title),
                theme=_text(entry.get("theme"), fallback.theme),
                city=_text(entry.get("city"), fallback.city),
                visual_keyword=_text(
                    entry.get("visual_keyword") or entry.get("visualKeyword"),
                    fallback.visual_keyword,
                ),
            )
        )
    return days


def reconcile_highlights(raw: object) -> List[Highlight]:
    highlights: List[Highlight] = []
    if isinstance(raw, list):
        for item in raw:
            if not isinstance(item, Mapping) or not _text(item.get("title"), ""):
                continue
            highlights.append(
                Highlight(
                    icon=_text(item.get("icon"), "✦"),
                    title=_text(item.get("title"), ""),
                    description=_text(item.get("description") or item.get("desc"), ""),
                )
            )
    highlights = highlights[:5]
    for default in DEFAULT_HIGHLIGHTS:
        if len(highlights) >= 3:
            break
        if all(existing.title != default.title for existing in highlights):
            highlights.append(default)
    return highlights


def apply_scene_adjustments(
    summary: str,
    highlights: List[Highlight],
    days: List[DaySkeleton],
    category: SceneCategory,
) -> Tuple[str, List[Highlight], List[DaySkeleton]]:
    """Small scene-specific touches applied after reconciliation."""

    if category is SceneCategory.ROMANTIC:
        days = [
            day if "romantic" in day.theme.lower()
            else day.model_copy(update={"theme": f"Romantic {day.theme}"})
            for day in days
        ]
    elif category is SceneCategory.FAMILY:
        summary = f"{summary} (easy pace, fun for all ages)"
    elif category is SceneCategory.FOODIE:
        if len(highlights) < 5 and all(item.title != _FOOD_HIGHLIGHT.title for item in highlights):
            highlights = [*highlights, _FOOD_HIGHLIGHT]
    elif category is SceneCategory.RELAXATION:
        summary = f"{summary} (slow days to unwind)"
    return summary, highlights, days


class SkeletonAgent:
    """Produces a :class:`TripSkeleton` for a visual identity."""

    system_prompt = (
        "You are a travel planner who designs balanced itineraries. Draft a day-by-day "
        "outline for the trip and answer with a single JSON object."
    )
    prompt_version = "planner.v1"

    def __init__(self, text: TextGenerator | None) -> None:
        self.text = text

    def _build_prompt(
        self,
        request_text: str,
        identity: VisualIdentity,
        analysis: SceneAnalysis,
        links: Sequence[str],
    ) -> str:
        profile = profile_for(analysis.category)
        hints = "\n".join(f"- {hint}" for hint in profile.prompt_hints)
        link_block = "\n".join(f"- {link}" for link in links) or "none"
        context = {
            "destination": identity.destination,
            "duration": identity.duration,
            "vibe": identity.vibe,
            "palette": identity.palette,
            "scene": analysis.category.value,
            "scene_summary": analysis.summary,
            "scene_highlights": analysis.highlights,
        }
        return (
            f"Traveller request: {request_text}\n"
            "\n"
            "# Trip Context\n"
            f"{format_prompt_data(context)}\n"
            "\n"
            f"Reference links:\n{link_block}\n"
            "\n"
            f"Scene guidance:\n{hints}\n"
            "\n"
            "Return JSON:\n"
            "{\n"
            '  "summary": "one catchy sentence for the whole trip",\n'
            '  "highlights": [{"icon": "emoji", "title": "...", "desc": "..."}],\n'
            '  "days": [{"day": 1, "title": "...", "theme": "...", "city": "...", '
            '"visualKeyword": "English image search keyword"}]\n'
            "}\n"
            f"Give exactly {identity.duration} days and 4 highlights. Keep each day unhurried."
        )

    async def run(
        self,
        request_text: str,
        identity: VisualIdentity,
        analysis: SceneAnalysis,
        links: Sequence[str] = (),
    ) -> TripSkeleton:
        result = await call_llm_and_parse(
            self.text,
            prompt=self._build_prompt(request_text, identity, analysis, links),
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=2000,
            temperature=0.7,
            extended_reasoning=True,
        )
        if not result.ok:
            raise GenerationFailed(f"Could not outline the itinerary: {result.error}") from result.error
        return self.build(result.value, identity)

    @staticmethod
    def build(raw: Mapping[str, Any], identity: VisualIdentity) -> TripSkeleton:
        """Turn a parsed reply into a valid skeleton, repairing what it can."""

        summary = _text(
            raw.get("summary"),
            f"Explore the best of {identity.destination} in {identity.duration} days",
        )
        summary, highlights, days = apply_scene_adjustments(
            summary,
            reconcile_highlights(raw.get("highlights")),
            reconcile_days(raw.get("days"), identity),
            identity.scene_category,
        )
        return TripSkeleton.from_parts(identity, summary=summary, highlights=highlights, days=days)


__all__ = [
    "DEFAULT_HIGHLIGHTS",
    "SkeletonAgent",
    "apply_scene_adjustments",
    "placeholder_day",
    "reconcile_days",
    "reconcile_highlights",
]
