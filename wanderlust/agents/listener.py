"""Listener agent that classifies follow-up messages about an existing trip."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from wanderlust.agents import call_llm_and_parse
from wanderlust.core.collaborators import TextGenerator
from wanderlust.schemas import FollowUpClassification, FollowUpIntent, TripSkeleton, UIAction

_LOGGER = logging.getLogger(__name__)

AUTO_APPLY_CONFIDENCE = 0.7

_SEARCH_CATEGORIES = {"restaurant", "attraction", "transport", "accommodation"}


def _coerce_probability(value: object, default: Optional[float]) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return min(max(number, 0.0), 1.0)


def _coerce_positive_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer():
        return int(value) if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def _string_list(value: object) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def ui_action_for(intent: FollowUpIntent, day_confidence: Optional[float]) -> UIAction:
    """The UI hint implied by an intent; model-supplied hints are not trusted."""

    if intent is FollowUpIntent.FULL_REGENERATION:
        return UIAction.STREAM_LOADING
    if intent is FollowUpIntent.SINGLE_DAY_EDIT:
        if day_confidence is not None and day_confidence >= AUTO_APPLY_CONFIDENCE:
            return UIAction.SILENT_UPDATE
        return UIAction.DAY_CONFIRMATION
    if intent is FollowUpIntent.SEARCH:
        return UIAction.SEARCH_CONFIRMATION
    return UIAction.CHAT_REPLY


class FollowUpClassifier:
    """Routes a follow-up to regeneration, a single-day edit, an answer, chat or search."""

    system_prompt = (
        "You analyse follow-up messages about an existing travel itinerary. Decide what the "
        "traveller wants and only respond with a JSON object."
    )
    prompt_version = "listener.v1"

    def __init__(self, text: Optional[TextGenerator] = None) -> None:
        self.text = text

    @staticmethod
    def fallback(reason: str = "Intent analysis failed") -> FollowUpClassification:
        """Non-destructive default: treat the message as a question."""

        return FollowUpClassification(
            intent=FollowUpIntent.QUESTION,
            ui_action=UIAction.CHAT_REPLY,
            confidence=0.0,
            reasoning=reason,
            suggested_action="Ask the traveller to rephrase",
        )

    def _build_prompt(self, original_prompt: str, skeleton: TripSkeleton, follow_up: str) -> str:
        return (
            f"Original request: {original_prompt}\n"
            "\n"
            "Current itinerary:\n"
            f"{skeleton.outline()}\n"
            "\n"
            f"Follow-up message: {follow_up}\n"
            "\n"
            "Classify the follow-up as one of:\n"
            "- full_regeneration: new destination, different length or a completely new style\n"
            "- single_day_edit: change one specific day; give target_day and day_confidence\n"
            "- question: asks about the current plan without changing it\n"
            "- chat: thanks, greetings and other small talk\n"
            "- search: asks for specific places such as restaurants, sights, transport or hotels\n"
            "\n"
            "Return JSON:\n"
            "{\n"
            '  "intent": "...",\n'
            '  "target_day": number or null,\n'
            '  "day_confidence": 0-1,\n'
            '  "confidence": 0-1,\n'
            '  "reasoning": "...",\n'
            '  "suggested_action": "...",\n'
            '  "chat_type": "casual|clarification|feedback",\n'
            '  "search_query": "...",\n'
            '  "search_category": "restaurant|attraction|transport|accommodation",\n'
            '  "extracted_params": {"new_destination": "...", "new_duration": number, '
            '"modified_activities": ["..."]}\n'
            "}"
        )

    def coerce(self, raw: Mapping[str, Any], skeleton: TripSkeleton) -> FollowUpClassification:
        intent = FollowUpIntent.coerce(raw.get("intent"))
        if intent is None:
            return self.fallback(f"Unrecognised intent: {raw.get('intent')!r}")

        target_day = _coerce_positive_int(
            _first(raw, "target_day", "targetDay", "suggested_day", "suggestedDay")
        )
        day_confidence = _coerce_probability(_first(raw, "day_confidence", "dayConfidence"), None)
        if target_day is not None and target_day > skeleton.duration:
            _LOGGER.info("Ignoring target day %d outside a %d-day trip", target_day, skeleton.duration)
            target_day = None
        if intent is FollowUpIntent.SINGLE_DAY_EDIT and target_day is None:
            day_confidence = 0.0
        elif intent is not FollowUpIntent.SINGLE_DAY_EDIT:
            target_day = None
            day_confidence = None

        params = _first(raw, "extracted_params", "extractedParams")
        params = params if isinstance(params, Mapping) else {}
        search_category = _first(raw, "search_category", "searchCategory")
        if search_category not in _SEARCH_CATEGORIES:
            search_category = None

        ui_action = ui_action_for(intent, day_confidence)
        confirmation_prompt = _first(raw, "confirmation_prompt", "confirmationPrompt")
        if ui_action is UIAction.DAY_CONFIRMATION and not confirmation_prompt:
            confirmation_prompt = "Which day would you like to change?"

        return FollowUpClassification(
            intent=intent,
            ui_action=ui_action,
            target_day=target_day,
            day_confidence=day_confidence,
            confidence=_coerce_probability(raw.get("confidence"), 0.5) or 0.0,
            reasoning=str(raw.get("reasoning") or ""),
            suggested_action=str(_first(raw, "suggested_action", "suggestedAction") or ""),
            requires_confirmation=bool(_first(raw, "requires_confirmation", "requiresConfirmation"))
            or ui_action is UIAction.DAY_CONFIRMATION,
            confirmation_prompt=str(confirmation_prompt) if confirmation_prompt else None,
            chat_type=_optional_text(_first(raw, "chat_type", "chatType")),
            search_query=_optional_text(_first(raw, "search_query", "searchQuery")),
            search_category=search_category,
            new_destination=_optional_text(_first(params, "new_destination", "newDestination")),
            new_duration=_coerce_positive_int(_first(params, "new_duration", "newDuration")),
            modified_activities=_string_list(
                _first(params, "modified_activities", "modifiedActivities")
            ),
        )

    async def classify(
        self,
        original_prompt: str,
        skeleton: TripSkeleton,
        follow_up: str,
    ) -> FollowUpClassification:
        result = await call_llm_and_parse(
            self.text,
            prompt=self._build_prompt(original_prompt, skeleton, follow_up),
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            max_output_tokens=1500,
            temperature=0.3,
            extended_reasoning=True,
        )
        if not result.ok:
            _LOGGER.warning("Follow-up classification failed: %s", result.error)
            return self.fallback()
        return self.coerce(result.value, skeleton)


__all__ = ["AUTO_APPLY_CONFIDENCE", "FollowUpClassifier", "ui_action_for"]
