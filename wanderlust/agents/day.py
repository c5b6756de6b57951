"""Day Worker: expands one skeleton day into detailed, enriched activities."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Mapping, Optional, Sequence

from pydantic import ValidationError

from wanderlust.agents import call_llm_and_parse
from wanderlust.core.collaborators import Collaborators
from wanderlust.core.rendering import render_day
from wanderlust.schemas import (
    Activity,
    DayResult,
    DaySkeleton,
    LocationData,
    PlaceMatch,
    TripSkeleton,
)

_LOGGER = logging.getLogger(__name__)

MAX_ACTIVITIES = 5
DAY_IMAGE_COUNT = 3

_FALLBACK_SLOTS = (
    ("09:00", "Explore {city}", "Ease into the day with a walk to get a feel for {city}.", "{city}"),
    ("12:00", "Lunch time", "Sit down for a meal at a well-loved local restaurant.", "Local restaurant"),
    ("14:00", "Cultural experience", "Spend the afternoon at a museum, temple or old quarter.", "Cultural site"),
    ("18:00", "Dinner & leisure", "Wander a food street and enjoy the evening atmosphere.", "Food street"),
)


def fallback_activities(day: DaySkeleton) -> List[Activity]:
    """The fixed four-slot day used when activity generation fails."""

    return [
        Activity(
            time=slot_time,
            title=title.format(city=day.city),
            description=description.format(city=day.city),
            location=LocationData(name=location.format(city=day.city)),
        )
        for slot_time, title, description, location in _FALLBACK_SLOTS
    ]


def _parse_activities(raw: Sequence[object]) -> List[Activity]:
    activities: List[Activity] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        try:
            activities.append(Activity.model_validate(entry))
        except ValidationError as exc:
            _LOGGER.debug("Skipping malformed activity %r: %s", entry, exc)
    return activities[:MAX_ACTIVITIES]


def _apply_match(activity: Activity, match: PlaceMatch) -> Activity:
    location = LocationData(
        name=activity.location.name or match.name,
        lat=match.lat,
        lng=match.lng,
        address=match.address or activity.location.address,
    )
    return activity.model_copy(update={"location": location})


class DayWorker:
    """Turns one :class:`DaySkeleton` into one :class:`DayResult`.

    Activity generation falls back to a fixed four-slot day on provider or
    parse failures; place enrichment and images are best-effort. Any other
    exception escapes to the orchestrator.
    """

    system_prompt = (
        "You are a local travel expert. Plan one day of a trip in detail with real, "
        "navigable places. Only respond with JSON."
    )
    prompt_version = "day.v1"

    def __init__(self, collaborators: Collaborators, *, image_count: int = DAY_IMAGE_COUNT) -> None:
        self.collaborators = collaborators
        self.image_count = image_count

    def _build_prompt(
        self, day: DaySkeleton, skeleton: TripSkeleton, instruction: Optional[str]
    ) -> str:
        change_block = ""
        if instruction:
            change_block = f"\nTraveller's change request for this day: {instruction}\n"
        return (
            f"Plan day {day.day} of a {skeleton.duration}-day trip to {skeleton.destination}.\n"
            f"Title: {day.title}\n"
            f"Theme: {day.theme}\n"
            f"City: {day.city}\n"
            f"Overall vibe: {skeleton.vibe}\n"
            f"{change_block}"
            "\n"
            "Return a JSON array of 3 to 5 activities:\n"
            '[{"time": "09:00", "title": "...", "description": "two lively sentences", '
            '"location": {"name": "a real place findable on a map"}, "tip": "practical advice"}]\n'
            "Leave sensible gaps between activities. Output only the JSON array."
        )

    async def _generate_activities(
        self, day: DaySkeleton, skeleton: TripSkeleton, instruction: Optional[str]
    ) -> List[Activity]:
        result = await call_llm_and_parse(
            self.collaborators.text,
            prompt=self._build_prompt(day, skeleton, instruction),
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=1500,
            temperature=0.7,
            extended_reasoning=True,
            container="array",
        )
        if result.ok:
            activities = _parse_activities(result.value)
            if activities:
                return activities
            _LOGGER.warning("Day %d reply held no usable activities; using fallback day", day.day)
        else:
            _LOGGER.warning("Day %d activity generation failed (%s); using fallback day", day.day, result.error)
        return fallback_activities(day)

    async def _enrich(self, activities: List[Activity], city: str) -> List[Activity]:
        lookups = await asyncio.gather(
            *(
                self.collaborators.places.lookup_place(
                    activity.location.name or activity.title, city
                )
                for activity in activities
            ),
            return_exceptions=True,
        )
        enriched: List[Activity] = []
        for activity, match in zip(activities, lookups):
            if isinstance(match, Exception):
                _LOGGER.warning("Place lookup for %s raised: %s", activity.location.name, match)
                enriched.append(activity)
            elif isinstance(match, PlaceMatch):
                enriched.append(_apply_match(activity, match))
            else:
                enriched.append(activity)
        return enriched

    async def _fetch_images(self, day: DaySkeleton) -> List[str]:
        try:
            return await self.collaborators.images.fetch_images(
                day.visual_keyword, self.image_count, "landscape"
            )
        except Exception as exc:  # image lookups must never fail a day
            _LOGGER.warning("Image lookup for day %d failed: %s", day.day, exc)
            return []

    async def run(
        self,
        day: DaySkeleton,
        skeleton: TripSkeleton,
        *,
        instruction: Optional[str] = None,
    ) -> DayResult:
        start = time.perf_counter()
        activities = await self._generate_activities(day, skeleton, instruction)
        activities, images = await asyncio.gather(
            self._enrich(activities, day.city or skeleton.destination),
            self._fetch_images(day),
        )
        markup = render_day(day, activities, images, skeleton.palette)
        latency_ms = int((time.perf_counter() - start) * 1000)
        _LOGGER.info(
            "Day %d generated in %dms [prompt_version=%s]", day.day, latency_ms, self.prompt_version
        )
        return DayResult(
            day=day.day,
            skeleton=day,
            activities=activities,
            images=images,
            markup=markup,
            latency_ms=latency_ms,
        )


__all__ = ["DAY_IMAGE_COUNT", "DayWorker", "MAX_ACTIVITIES", "fallback_activities"]
