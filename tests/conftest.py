"""Shared fakes for Wanderlust tests.

Model replies are scripted per stage, keyed by the prefix of the agent's
``prompt_version`` (``"scene"``, ``"stylist"``, ``"day"`` ...). A scripted
value may be a string, a JSON-able object, an exception to raise, or a
callable receiving the prompt.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, List, Optional

import pytest

from wanderlust.core.collaborators import Collaborators
from wanderlust.core.llm import ProviderError, TextResult
from wanderlust.schemas import (
    DaySkeleton,
    FontConfig,
    Highlight,
    PlaceMatch,
    SceneCategory,
    TripSkeleton,
)


class FakeText:
    def __init__(self, replies: Optional[Dict[str, Any]] = None) -> None:
        self.replies: Dict[str, Any] = dict(replies or {})
        self.calls: List[Dict[str, Any]] = []

    def stages(self) -> List[str]:
        return [call["prompt_version"].split(".")[0] for call in self.calls]

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
        self.calls.append(
            {
                "prompt": prompt,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
                "extended_reasoning": extended_reasoning,
                "prompt_version": prompt_version,
                "system": system,
            }
        )
        stage = prompt_version.split(".")[0]
        if stage not in self.replies:
            raise ProviderError(f"No reply scripted for {prompt_version}")
        reply = self.replies[stage]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(prompt)
            if isinstance(reply, BaseException):
                raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return TextResult(text=reply)


class FakePlaces:
    def __init__(
        self,
        matches: Optional[Dict[str, PlaceMatch]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.matches = matches or {}
        self.error = error
        self.calls: List[tuple] = []

    async def lookup_place(self, name: str, city_hint: str = "") -> Optional[PlaceMatch]:
        self.calls.append((name, city_hint))
        if self.error is not None:
            raise self.error
        return self.matches.get(name)


class FakeImages:
    def __init__(self, error: Optional[Exception] = None, empty: bool = False) -> None:
        self.error = error
        self.empty = empty
        self.calls: List[tuple] = []

    async def fetch_images(self, keyword: str, count: int = 1, orientation: str = "landscape") -> List[str]:
        self.calls.append((keyword, count, orientation))
        if self.error is not None:
            raise self.error
        if self.empty:
            return []
        slug = keyword.replace(" ", "-").lower()
        return [f"https://img.test/{slug}/{index}.jpg" for index in range(count)]


def make_collaborators(
    replies: Optional[Dict[str, Any]] = None,
    *,
    places: Optional[FakePlaces] = None,
    images: Optional[FakeImages] = None,
) -> Collaborators:
    return Collaborators(
        text=FakeText(replies),
        places=places or FakePlaces(),
        images=images or FakeImages(),
    )


def day_reply(prompt: str) -> List[Dict[str, Any]]:
    """Three activities for whichever day the prompt asks about."""

    match = re.search(r"Plan day (\d+)", prompt)
    number = match.group(1) if match else "0"
    return [
        {
            "time": "09:00",
            "title": f"Morning market {number}",
            "description": "Graze the stalls.",
            "location": {"name": f"Market {number}"},
            "tip": "Arrive early.",
        },
        {
            "time": "13:00",
            "title": f"Ramen lunch {number}",
            "description": "Slurp a bowl.",
            "location": {"name": f"Ramen shop {number}"},
        },
        {
            "time": "19:00",
            "title": f"Izakaya evening {number}",
            "description": "Small plates and sake.",
            "location": f"Izakaya {number}",
        },
    ]


def tokyo_replies(duration: int = 3) -> Dict[str, Any]:
    return {
        "scene": {
            "category": "foodie",
            "confidence": 0.92,
            "summary": "A food lover's sprint through Tokyo",
            "highlights": ["Sushi", "Ramen", "Izakaya"],
            "detected_keywords": ["food"],
        },
        "stylist": {
            "destination": "Tokyo",
            "duration": duration,
            "vibe": "Neon flavours",
            "palette": "orange",
            "heroStyle": "magazine",
            "fontConfig": "MODERN",
        },
        "planner": {
            "summary": "Eat your way across Tokyo",
            "highlights": [
                {"icon": "🍣", "title": "Tsukiji breakfast", "desc": "Fresh sushi at dawn"},
                {"icon": "🍜", "title": "Ramen alley", "desc": "Late-night bowls"},
                {"icon": "🏮", "title": "Izakaya crawl", "desc": "Small plates"},
            ],
            "days": [
                {
                    "day": number,
                    "title": f"Food day {number}",
                    "theme": "Street food",
                    "city": "Tokyo",
                    "visualKeyword": f"tokyo food {number}",
                }
                for number in range(1, duration + 1)
            ],
        },
        "day": day_reply,
    }


def make_skeleton(
    duration: int = 3,
    *,
    destination: str = "Kyoto",
    palette: str = "emerald",
    category: SceneCategory = SceneCategory.CULTURE,
) -> TripSkeleton:
    return TripSkeleton(
        destination=destination,
        duration=duration,
        vibe="Quiet temples",
        palette=palette,
        hero_style="centered",
        font_config=FontConfig(
            heading_font="Playfair Display",
            body_font="Lato",
            google_font_url="https://fonts.googleapis.com/css2?family=Playfair+Display",
        ),
        scene_category=category,
        summary=f"{duration} days in {destination}",
        highlights=[
            Highlight(title="Temples", description="Old wood"),
            Highlight(title="Gardens", description="Moss"),
            Highlight(title="Tea", description="Matcha"),
        ],
        days=[
            DaySkeleton(
                day=number,
                title=f"Day {number} in {destination}",
                theme="Heritage",
                city=destination,
                visual_keyword=f"{destination.lower()} temple {number}",
            )
            for number in range(1, duration + 1)
        ],
    )


@pytest.fixture
def skeleton() -> TripSkeleton:
    return make_skeleton()


@pytest.fixture
def collaborators_factory() -> Callable[..., Collaborators]:
    return make_collaborators
