"""Tests for surfacing plan tab pipeline failures."""

from __future__ import annotations

import pytest

from wanderlust.core.llm import ProviderError
from wanderlust.ui import plan


@pytest.mark.parametrize(
    "exception, expected",
    [
        (
            ProviderError("ANTHROPIC_AUTH_TOKEN environment variable is not set"),
            "Unable to generate the itinerary. Provide a model API key via the ANTHROPIC_AUTH_TOKEN environment variable.",
        ),
        (
            ProviderError("No text generation model is configured"),
            "Unable to generate the itinerary. Provide a model API key via the ANTHROPIC_AUTH_TOKEN environment variable.",
        ),
        (
            ProviderError("401 error from text generation API: Unauthorized", status_code=401),
            "Unable to generate the itinerary. Provide a model API key via the ANTHROPIC_AUTH_TOKEN environment variable.",
        ),
        (
            ProviderError("429 error from text generation API: Too Many Requests", status_code=429),
            "Unable to generate the itinerary. The model API rate limit was hit. Wait a moment and try again.",
        ),
        (
            ValueError("Planner returned 2 days for a 3 day trip"),
            "Unable to generate the itinerary. Planner returned 2 days for a 3 day trip",
        ),
        (
            Exception(""),
            "Unable to generate the itinerary. Check your configuration and try again.",
        ),
    ],
)
def test_format_pipeline_error(exception: Exception, expected: str) -> None:
    assert plan._format_pipeline_error(exception) == expected


def test_format_pipeline_error_handles_non_str_messages() -> None:
    class CustomError(Exception):
        def __str__(self) -> str:
            return "Unexpected failure"

    error = CustomError()
    assert (
        plan._format_pipeline_error(error)
        == "Unable to generate the itinerary. Unexpected failure"
    )


def test_parse_links_skips_blank_lines() -> None:
    links = plan._parse_links("https://a.test/x\n\n  https://b.test/y  \n")

    assert [item.url for item in links] == ["https://a.test/x", "https://b.test/y"]
    assert all(item.kind == "link" for item in links)


class _FailingSession:
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def handle_follow_up(self, text: str):
        raise self.error


@pytest.mark.parametrize(
    "error, expected",
    [
        (RuntimeError("day worker crashed"), "Sorry, that change could not be applied: day worker crashed"),
        (plan.SessionBusy("Another trip operation is still running"), "Another trip operation is still running"),
    ],
)
def test_follow_up_failures_become_chat_replies(
    monkeypatch: pytest.MonkeyPatch, error: Exception, expected: str
) -> None:
    messages: list = []
    monkeypatch.setattr(plan, "trip_session", lambda: _FailingSession(error))
    monkeypatch.setattr(plan, "_chat_log", lambda: messages)

    plan._handle_follow_up("make day 2 more relaxed")

    assert messages == [
        {"role": "user", "content": "make day 2 more relaxed"},
        {"role": "assistant", "content": expected},
    ]
