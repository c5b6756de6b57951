"""Answers questions and small talk about an existing trip without changing it."""

from __future__ import annotations

import logging
import zlib
from typing import Optional

from wanderlust.agents import call_llm_and_parse
from wanderlust.core.collaborators import TextGenerator
from wanderlust.schemas import QAReply, TripSkeleton

_LOGGER = logging.getLogger(__name__)

_CHAT_REPLIES = (
    "You're welcome! Tell me any time if you want to adjust the trip.",
    "Sure thing! Let me know whenever you need a hand.",
    "Got it! Anything else you'd like to know?",
    "Noted. If you have ideas for the itinerary, just say the word!",
)


class AdvisorAgent:
    """Travel-advisor replies grounded in the current itinerary."""

    system_prompt = (
        "You are a friendly, concise travel advisor answering questions about an itinerary "
        "the traveller already has. Only respond with a JSON object."
    )
    prompt_version = "advisor.v1"

    def __init__(self, text: Optional[TextGenerator] = None) -> None:
        self.text = text

    @staticmethod
    def fallback() -> QAReply:
        return QAReply(
            reply=(
                "Sorry, I can't answer that right now. You can adjust the itinerary or give me "
                "a few more details."
            ),
            suggestions=["Adjust one day of the trip", "Swap out a sight"],
        )

    @staticmethod
    def chat_reply(message: str) -> str:
        """Canned small-talk reply, stable for a given message."""

        index = zlib.crc32(message.strip().lower().encode("utf-8")) % len(_CHAT_REPLIES)
        return _CHAT_REPLIES[index]

    async def answer(
        self,
        original_prompt: str,
        skeleton: Optional[TripSkeleton],
        question: str,
    ) -> QAReply:
        trip_info = skeleton.outline() if skeleton else "No itinerary yet."
        if skeleton:
            trip_info = f"{trip_info}\nSummary: {skeleton.summary}"
        prompt = (
            "# Current itinerary\n"
            f"{trip_info}\n"
            "\n"
            f"# Original request\n{original_prompt}\n"
            "\n"
            f"# Question\n{question}\n"
            "\n"
            "Answer from the itinerary where you can. For weather, prices or budgets give general "
            "advice and where to check. If the question is vague, ask a pointed clarifying "
            "question instead.\n"
            'Return JSON: {"reply": "...", "suggestions": ["...", "..."]}'
        )
        result = await call_llm_and_parse(
            self.text,
            prompt=prompt,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=800,
            temperature=0.5,
            extended_reasoning=False,
        )
        if not result.ok:
            _LOGGER.warning("Question answering failed: %s", result.error)
            return self.fallback()

        reply = result.value.get("reply")
        if not isinstance(reply, str) or not reply.strip():
            return self.fallback()
        suggestions = result.value.get("suggestions")
        if not isinstance(suggestions, list):
            suggestions = []
        return QAReply(
            reply=reply.strip(),
            suggestions=[str(item) for item in suggestions if str(item).strip()],
        )


__all__ = ["AdvisorAgent"]
