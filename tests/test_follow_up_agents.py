from __future__ import annotations

import pytest

from conftest import FakeText, make_skeleton
from wanderlust.agents import (
    AUTO_APPLY_CONFIDENCE,
    AdvisorAgent,
    DayRefiner,
    FollowUpClassifier,
    IntakeValidator,
    MediaInsightAgent,
)
from wanderlust.agents.listener import ui_action_for
from wanderlust.core.llm import ProviderError
from wanderlust.schemas import FollowUpIntent, MediaReference, UIAction


@pytest.mark.asyncio
async def test_single_day_edit_with_confident_day_is_silent() -> None:
    text = FakeText(
        {
            "listener": {
                "intent": "update_local",
                "target_day": 2,
                "day_confidence": 0.9,
                "confidence": 0.8,
                "ui_action": "stream_loading",
                "reasoning": "Mentions day two",
            }
        }
    )

    result = await FollowUpClassifier(text).classify("Kyoto 3 days", make_skeleton(3), "Day 2 more museums")

    assert result.intent is FollowUpIntent.SINGLE_DAY_EDIT
    assert result.ui_action is UIAction.SILENT_UPDATE
    assert result.target_day == 2
    assert result.day_confidence == 0.9
    assert not result.requires_confirmation
    assert text.calls[0]["prompt_version"] == FollowUpClassifier.prompt_version
    assert "Day 2: Day 2 in Kyoto" in text.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_uncertain_day_asks_for_confirmation() -> None:
    text = FakeText({"listener": {"intent": "single_day_edit", "target_day": 2, "day_confidence": 0.4}})

    result = await FollowUpClassifier(text).classify("Kyoto", make_skeleton(3), "swap the museum")

    assert result.ui_action is UIAction.DAY_CONFIRMATION
    assert result.requires_confirmation
    assert result.confirmation_prompt


@pytest.mark.asyncio
async def test_target_day_outside_trip_is_dropped() -> None:
    text = FakeText({"listener": {"intent": "single_day_edit", "target_day": 9, "day_confidence": 0.95}})

    result = await FollowUpClassifier(text).classify("Kyoto", make_skeleton(3), "change day 9")

    assert result.target_day is None
    assert result.day_confidence == 0.0
    assert result.ui_action is UIAction.DAY_CONFIRMATION


@pytest.mark.asyncio
async def test_full_regeneration_and_search_fields() -> None:
    regen = FakeText(
        {
            "listener": {
                "intent": "regenerate_global",
                "confidence": 0.95,
                "target_day": 1,
                "extracted_params": {"new_destination": "Osaka", "new_duration": "4"},
            }
        }
    )
    search = FakeText(
        {
            "listener": {
                "intent": "search",
                "search_query": "best ramen",
                "search_category": "restaurant",
            }
        }
    )

    regen_result = await FollowUpClassifier(regen).classify("Kyoto", make_skeleton(3), "make it Osaka")
    search_result = await FollowUpClassifier(search).classify("Kyoto", make_skeleton(3), "ramen?")

    assert regen_result.intent is FollowUpIntent.FULL_REGENERATION
    assert regen_result.ui_action is UIAction.STREAM_LOADING
    assert regen_result.target_day is None
    assert regen_result.new_destination == "Osaka"
    assert regen_result.new_duration == 4
    assert search_result.ui_action is UIAction.SEARCH_CONFIRMATION
    assert search_result.search_query == "best ramen"
    assert search_result.search_category == "restaurant"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [ProviderError("down"), "what?", {"intent": "teleport"}],
)
async def test_classifier_falls_back_to_question(reply) -> None:
    result = await FollowUpClassifier(FakeText({"listener": reply})).classify(
        "Kyoto", make_skeleton(3), "hmm"
    )

    assert result.intent is FollowUpIntent.QUESTION
    assert result.ui_action is UIAction.CHAT_REPLY
    assert result.confidence == 0.0


def test_ui_action_threshold() -> None:
    assert ui_action_for(FollowUpIntent.SINGLE_DAY_EDIT, AUTO_APPLY_CONFIDENCE) is UIAction.SILENT_UPDATE
    assert ui_action_for(FollowUpIntent.SINGLE_DAY_EDIT, 0.69) is UIAction.DAY_CONFIRMATION
    assert ui_action_for(FollowUpIntent.SINGLE_DAY_EDIT, None) is UIAction.DAY_CONFIRMATION
    assert ui_action_for(FollowUpIntent.CHAT, None) is UIAction.CHAT_REPLY
    assert ui_action_for(FollowUpIntent.QUESTION, None) is UIAction.CHAT_REPLY


@pytest.mark.asyncio
async def test_refiner_updates_outline_but_not_day_number() -> None:
    text = FakeText(
        {"refiner": {"day": 7, "title": "Museum day", "theme": "Art", "visualKeyword": "kyoto museum"}}
    )
    skeleton = make_skeleton(3)

    revised = await DayRefiner(text).revise(skeleton, 2, "more museums")

    assert revised.day == 2
    assert revised.title == "Museum day"
    assert revised.theme == "Art"
    assert revised.city == "Kyoto"
    assert revised.visual_keyword == "kyoto museum"
    assert text.calls[0]["temperature"] == 0.8


@pytest.mark.asyncio
async def test_refiner_keeps_outline_on_failure() -> None:
    skeleton = make_skeleton(3)

    revised = await DayRefiner(FakeText({"refiner": ProviderError("down")})).revise(skeleton, 1, "x")

    assert revised == skeleton.day(1)


@pytest.mark.asyncio
async def test_refiner_rejects_unknown_day() -> None:
    with pytest.raises(KeyError):
        await DayRefiner(FakeText()).revise(make_skeleton(2), 5, "x")


@pytest.mark.asyncio
async def test_advisor_answers_and_falls_back() -> None:
    skeleton = make_skeleton(3)
    good = FakeText({"advisor": {"reply": "Bring an umbrella.", "suggestions": ["Check the forecast"]}})

    answer = await AdvisorAgent(good).answer("Kyoto", skeleton, "Will it rain?")
    fallback = await AdvisorAgent(FakeText({"advisor": "???"})).answer("Kyoto", skeleton, "Rain?")

    assert answer.reply == "Bring an umbrella."
    assert answer.suggestions == ["Check the forecast"]
    assert fallback == AdvisorAgent.fallback()
    assert good.calls[0]["extended_reasoning"] is False


def test_chat_reply_is_deterministic() -> None:
    assert AdvisorAgent.chat_reply("Thanks!") == AdvisorAgent.chat_reply("  thanks!  ")
    assert AdvisorAgent.chat_reply("hello")


@pytest.mark.asyncio
async def test_intake_validation() -> None:
    assert await IntakeValidator(FakeText()).validate(" a ") == (False, "Tell us where you would like to go.")
    assert await IntakeValidator(FakeText({"intake": ProviderError("down")})).validate("Tokyo") == (True, None)

    vague = FakeText({"intake": {"has_destination": False, "message": "Where to?"}})
    assert await IntakeValidator(vague).validate("want to travel") == (False, "Where to?")


@pytest.mark.asyncio
async def test_media_insight_records_failures_per_item() -> None:
    calls = {"count": 0}

    def describe(prompt: str):
        calls["count"] += 1
        if "beach.jpg" in prompt:
            return ProviderError("vision down")
        return "Moody alleys at dusk."

    media = (
        MediaReference(kind="image", name="alley.jpg", mime_type="image/jpeg"),
        MediaReference(kind="image", name="beach.jpg"),
        MediaReference(kind="link", name="blog", url="https://blog.test/kyoto"),
    )

    insight = await MediaInsightAgent(FakeText({"media": describe})).analyze(media)

    assert calls["count"] == 2
    assert insight.insights == ["- alley.jpg: Moody alleys at dusk.", "- beach.jpg: analysis failed"]
    assert insight.summary.startswith("User uploaded 2 media files as reference:")


@pytest.mark.asyncio
async def test_media_insight_without_uploads_is_empty() -> None:
    insight = await MediaInsightAgent(FakeText()).analyze(())

    assert insight.summary == ""
    assert insight.insights == []
