"""Agent that revises a single day's outline in response to traveller feedback."""

from __future__ import annotations

import logging
from typing import Optional

from wanderlust.agents import call_llm_and_parse
from wanderlust.core.collaborators import TextGenerator
from wanderlust.schemas import DaySkeleton, TripSkeleton

_LOGGER = logging.getLogger(__name__)


class DayRefiner:
    """Adjusts one :class:`DaySkeleton`; the day number never changes."""

    system_prompt = (
        "You refine travel plans. Update the outline of the specified day to address the "
        "traveller's feedback while keeping the overall trip coherent. Only return JSON."
    )
    prompt_version = "refiner.v1"

    def __init__(self, text: Optional[TextGenerator] = None) -> None:
        self.text = text

    async def revise(self, skeleton: TripSkeleton, day: int, feedback: str) -> DaySkeleton:
        """Return the revised outline, or the current one if the model gives nothing usable."""

        current = skeleton.day(day)
        prompt = (
            f"The traveller gave feedback on day {day}: {feedback}\n"
            "\n"
            "Current outline of the day:\n"
            f"Title: {current.title}\nTheme: {current.theme}\nCity: {current.city}\n"
            f"Overall vibe of the trip: {skeleton.vibe}\n"
            "\n"
            "Return the new outline as JSON:\n"
            '{"title": "...", "theme": "...", "city": "...", "visualKeyword": "English image keyword"}'
        )
        result = await call_llm_and_parse(
            self.text,
            prompt=prompt,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=500,
            temperature=0.8,
            extended_reasoning=True,
        )
        if not result.ok:
            _LOGGER.warning("Day %d outline unchanged, refinement failed: %s", day, result.error)
            return current

        raw = result.value
        updates = {}
        for field_name, keys in (
            ("title", ("title",)),
            ("theme", ("theme",)),
            ("city", ("city",)),
            ("visual_keyword", ("visual_keyword", "visualKeyword")),
        ):
            for key in keys:
                value = raw.get(key)
                if isinstance(value, str) and value.strip():
                    updates[field_name] = value.strip()
                    break
        return current.model_copy(update=updates)


__all__ = ["DayRefiner"]
