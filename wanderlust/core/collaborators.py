"""Explicit bundle of the external services every pipeline stage talks to."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from wanderlust.core.images import ImageService, Orientation
from wanderlust.core.llm import LLMClient, TextResult
from wanderlust.core.places import AmapPlaceClient
from wanderlust.schemas import PlaceMatch


class TextGenerator(Protocol):
    async def generate_text(
        self,
        prompt: str,
        *,
        max_output_tokens: int = ...,
        temperature: float = ...,
        extended_reasoning: bool = ...,
        prompt_version: str = ...,
        system: Optional[str] = ...,
    ) -> TextResult:
        ...


class PlaceLookup(Protocol):
    async def lookup_place(self, name: str, city_hint: str = ...) -> Optional[PlaceMatch]:
        ...


class ImageLookup(Protocol):
    async def fetch_images(
        self, keyword: str, count: int = ..., orientation: Orientation = ...
    ) -> List[str]:
        ...


@dataclass
class Collaborators:
    """Constructed once per process or session and passed to each stage.

    ``text`` may be ``None`` when no model is configured; stages that can
    fall back do so, the rest raise.
    """

    text: Optional[TextGenerator]
    places: PlaceLookup = field(default_factory=AmapPlaceClient)
    images: ImageLookup = field(default_factory=ImageService)


def default_collaborators() -> Collaborators:
    """Build the collaborator bundle from environment configuration."""

    client = LLMClient()
    return Collaborators(
        text=client if client.api_key else None,
        places=AmapPlaceClient(),
        images=ImageService(),
    )


__all__ = [
    "Collaborators",
    "ImageLookup",
    "PlaceLookup",
    "TextGenerator",
    "default_collaborators",
]
