"""Pre-submission check that a request is specific enough to plan."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from wanderlust.agents import call_llm_and_parse
from wanderlust.core.collaborators import TextGenerator

_LOGGER = logging.getLogger(__name__)

_TOO_SHORT_MESSAGE = "Tell us where you would like to go."


class IntakeValidator:
    """Asks the model whether a request names a destination.

    The check never blocks a submission on its own failure: if the model is
    unavailable or replies with garbage, the request is treated as valid.
    """

    prompt_version = "intake.v1"

    def __init__(self, text: Optional[TextGenerator] = None) -> None:
        self.text = text

    async def validate(self, prompt: str) -> Tuple[bool, Optional[str]]:
        cleaned = (prompt or "").strip()
        if len(cleaned) < 2:
            return False, _TOO_SHORT_MESSAGE

        result = await call_llm_and_parse(
            self.text,
            prompt=(
                "Decide whether this travel request is clear enough to plan.\n"
                f'Request: "{cleaned}"\n'
                "\n"
                'Reply with JSON: {"has_destination": true/false, "message": "short, upbeat '
                'feedback for the traveller"}\n'
                "If the request is too vague (for example 'want to travel'), set "
                "has_destination to false and ask for the missing details."
            ),
            prompt_version=self.prompt_version,
            max_output_tokens=300,
            temperature=0.5,
            extended_reasoning=False,
        )
        if not result.ok:
            _LOGGER.debug("Intake validation skipped: %s", result.error)
            return True, None

        payload = result.value
        has_destination = payload.get("has_destination", payload.get("hasDestination", True))
        message = payload.get("message")
        return bool(has_destination), str(message) if message else None


__all__ = ["IntakeValidator"]
