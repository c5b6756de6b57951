"""Optional analysis of media the traveller attached to a request."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from wanderlust.core.collaborators import TextGenerator
from wanderlust.core.llm import ProviderError
from wanderlust.schemas import MediaReference

_LOGGER = logging.getLogger(__name__)


@dataclass
class MediaInsight:
    """Text handed to later stages describing the attached media."""

    summary: str = ""
    insights: List[str] = field(default_factory=list)


class MediaInsightAgent:
    """Describes each uploaded item with one short model call."""

    prompt_version = "media.v1"

    def __init__(self, text: Optional[TextGenerator] = None) -> None:
        self.text = text

    async def _describe(self, item: MediaReference) -> str:
        if self.text is None:
            return f"- {item.name}: not analysed"
        prompt = (
            "A traveller attached this file as inspiration for a trip.\n"
            f"Name: {item.name}\n"
            f"Type: {item.mime_type or item.kind}\n"
            "In one or two sentences, describe the travel style, scenery or mood it suggests."
        )
        try:
            reply = await self.text.generate_text(
                prompt,
                max_output_tokens=500,
                temperature=0.7,
                extended_reasoning=False,
                prompt_version=self.prompt_version,
            )
        except ProviderError as exc:
            _LOGGER.warning("Media analysis failed for %s: %s", item.name, exc)
            return f"- {item.name}: analysis failed"
        return f"- {item.name}: {reply.text.strip()}"

    async def analyze(self, media: Sequence[MediaReference]) -> MediaInsight:
        uploads = [item for item in media if item.kind != "link"]

        insights: List[str] = []
        if uploads:
            insights = list(await asyncio.gather(*(self._describe(item) for item in uploads)))

        summary = ""
        if insights:
            summary = f"User uploaded {len(insights)} media files as reference:\n" + "\n".join(insights)
        return MediaInsight(summary=summary, insights=insights)


__all__ = ["MediaInsight", "MediaInsightAgent"]
