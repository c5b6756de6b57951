"""UI helpers for requesting, streaming and refining a trip."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional, TypeVar

import streamlit as st
import streamlit.components.v1 as components

from wanderlust.agents import IntakeValidator, SceneClassifier
from wanderlust.core.collaborators import default_collaborators
from wanderlust.schemas import (
    ErrorChunk,
    FragmentChunk,
    MediaReference,
    ProgressChunk,
    StreamChunk,
    TripRequest,
)
from wanderlust.workflows import SessionBusy, TripSession

_LOGGER = logging.getLogger(__name__)

_SESSION_KEY = "_trip_session"
_CHAT_KEY = "_trip_chat"
_PIPELINE_ERROR_KEY = "pipeline_error"
_PENDING_DAY_EDIT_KEY = "_pending_day_edit"

_DOCUMENT_HEIGHT = 900

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def ensure_plan_state() -> None:
    """Initialise the session-state entries the plan tab relies on."""

    if not isinstance(st.session_state.get(_SESSION_KEY), TripSession):
        st.session_state[_SESSION_KEY] = TripSession(default_collaborators())
    st.session_state.setdefault(_CHAT_KEY, [])
    st.session_state.setdefault(_PIPELINE_ERROR_KEY, None)
    st.session_state.setdefault(_PENDING_DAY_EDIT_KEY, None)


def trip_session() -> TripSession:
    ensure_plan_state()
    return st.session_state[_SESSION_KEY]


def _chat_log() -> List[Dict[str, str]]:
    return st.session_state[_CHAT_KEY]


def _format_pipeline_error(exc: Exception) -> str:
    base_message = "Unable to generate the itinerary."
    details = str(exc).strip()
    if details:
        lowered = details.lower()
        if any(
            token in lowered
            for token in ("anthropic_auth_token", "no text generation model", "401", "unauthorized")
        ):
            return (
                f"{base_message} Provide a model API key via the "
                "ANTHROPIC_AUTH_TOKEN environment variable."
            )
        if "429" in lowered or "too many requests" in lowered:
            return f"{base_message} The model API rate limit was hit. Wait a moment and try again."
        return f"{base_message} {details}"
    return f"{base_message} Check your configuration and try again."


def _parse_links(raw: str) -> List[MediaReference]:
    links: List[MediaReference] = []
    for line in raw.splitlines():
        url = line.strip()
        if url:
            links.append(MediaReference(kind="link", name=url, url=url))
    return links


def _render_instant_preview(container, prompt: str) -> None:
    category = SceneClassifier.quick_predict(prompt)
    preview = SceneClassifier.preview(prompt, SceneClassifier.fallback(category))
    with container:
        destination = preview.destination or "your destination"
        st.caption(
            f"{destination} · {preview.duration} days · {preview.category.value} · "
            f"about {preview.estimated_seconds}s to plan"
        )


async def _consume(stream, progress_bar, status, preview) -> None:
    markup: List[str] = []
    chunk: StreamChunk
    async for chunk in stream:
        if isinstance(chunk, ProgressChunk):
            progress_bar.progress(chunk.progress, text=chunk.message or chunk.phase.value)
        elif isinstance(chunk, FragmentChunk):
            markup.append(chunk.markup)
            with preview.container():
                components.html("".join(markup), height=_DOCUMENT_HEIGHT, scrolling=True)
        elif isinstance(chunk, ErrorChunk):
            status.error(chunk.message)


def _stream(session: TripSession, request: TripRequest, *, description: Optional[str] = None) -> bool:
    progress_bar = st.progress(0, text="Starting…")
    status = st.empty()
    preview = st.empty()
    try:
        _run(_consume(session.generate(request, description=description), progress_bar, status, preview))
    except Exception as exc:  # noqa: BLE001 - surfaced to the user
        friendly_message = _format_pipeline_error(exc)
        _LOGGER.exception("Trip pipeline failed")
        st.session_state[_PIPELINE_ERROR_KEY] = friendly_message
        st.error(friendly_message)
        return False

    st.session_state[_PIPELINE_ERROR_KEY] = None
    st.session_state["_focus_itinerary"] = True
    st.success("Itinerary ready! Check the Itinerary tab for the full page.")
    return True


def _handle_submit(prompt: str, links_text: str) -> bool:
    session = trip_session()
    is_valid, message = _run(IntakeValidator(session.collaborators.text).validate(prompt))
    if not is_valid:
        st.warning(message or "Tell me a little more about the trip.")
        return False
    request = TripRequest(prompt=prompt, media=tuple(_parse_links(links_text)))
    _chat_log().clear()
    return _stream(session, request)


def _apply_pending_day_edit(day: int) -> None:
    session = trip_session()
    instruction = st.session_state.get(_PENDING_DAY_EDIT_KEY)
    if not instruction:
        return
    try:
        with st.spinner(f"Updating day {day}…"):
            _run(session.edit_day(day, instruction))
    except Exception as exc:  # noqa: BLE001 - surfaced to the user
        _LOGGER.exception("Day edit failed")
        st.error(f"Could not update day {day}: {exc}")
        return
    st.session_state[_PENDING_DAY_EDIT_KEY] = None
    _chat_log().append({"role": "assistant", "content": f"Day {day} has been updated."})


def _handle_follow_up(text: str) -> None:
    session = trip_session()
    messages = _chat_log()
    messages.append({"role": "user", "content": text})
    try:
        outcome = _run(session.handle_follow_up(text))
    except SessionBusy as exc:
        messages.append({"role": "assistant", "content": str(exc)})
        return
    except Exception as exc:  # noqa: BLE001 - surfaced to the user
        _LOGGER.exception("Follow-up failed")
        messages.append({"role": "assistant", "content": f"Sorry, that change could not be applied: {exc}"})
        return

    if outcome.regenerate_request is not None:
        messages.append({"role": "assistant", "content": "Replanning the whole trip…"})
        _stream(session, outcome.regenerate_request, description=text)
        return
    if outcome.needs_day:
        st.session_state[_PENDING_DAY_EDIT_KEY] = text
    content = outcome.reply or ""
    if outcome.suggestions:
        content += "\n\n" + "\n".join(f"- {item}" for item in outcome.suggestions)
    messages.append({"role": "assistant", "content": content})


def _render_follow_ups(container) -> None:
    session = trip_session()
    with container:
        for message in _chat_log():
            with st.chat_message(message.get("role", "assistant")):
                st.markdown(message.get("content", ""))

        if st.session_state.get(_PENDING_DAY_EDIT_KEY) and session.skeleton is not None:
            options = [day.day for day in session.skeleton.days]
            day = st.selectbox(
                "Which day should change?",
                options,
                format_func=lambda number: f"Day {number}: {session.skeleton.day(number).title}",
                key="plan_pending_day",
            )
            if st.button("Apply change", key="plan_apply_day"):
                _apply_pending_day_edit(int(day))

        follow_up = st.chat_input("Ask a question or tell me what to change…")
        if follow_up:
            _handle_follow_up(follow_up)


def render_plan_tab(container) -> None:
    """Render the request form and, once a trip exists, the follow-up chat."""

    session = trip_session()
    with container:
        st.subheader("Where to next?")
        prompt = st.text_area(
            "Describe your trip",
            placeholder="Tokyo, 3 days, food focus",
            key="plan_prompt",
        )
        links_text = st.text_area(
            "Reference links (one per line)",
            key="plan_links",
            height=80,
        )
        if prompt.strip():
            _render_instant_preview(st.container(), prompt)

        if st.button("Plan my trip", type="primary", key="plan_submit"):
            _handle_submit(prompt, links_text)

        error_message = st.session_state.get(_PIPELINE_ERROR_KEY)
        if error_message:
            st.caption(error_message)

        if session.skeleton is not None:
            st.divider()
            _render_follow_ups(st.container())


def render_itinerary_tab(container) -> None:
    """Render the full itinerary page and its version history."""

    session = trip_session()
    with container:
        if session.skeleton is None:
            st.info("Plan a trip to see the itinerary here.")
            return

        missing = [day.day for day in session.skeleton.days if day.day not in session.day_results]
        if missing and st.button("Regenerate day details", key="itinerary_regenerate"):
            _run(_consume(session.regenerate_days(), st.progress(0), st.empty(), st.empty()))

        components.html(session.render_document(), height=_DOCUMENT_HEIGHT, scrolling=True)

        history = session.ledger.history()
        with st.expander(f"Version history ({len(history)})"):
            for snapshot in reversed(history):
                changes = "; ".join(change.description for change in snapshot.changes)
                columns = st.columns([4, 1])
                columns[0].markdown(
                    f"**v{snapshot.version}** · {snapshot.summary} · {changes}"
                )
                if snapshot is not session.ledger.head and columns[1].button(
                    "Restore", key=f"restore_{snapshot.version}"
                ):
                    session.restore(snapshot.version)
                    st.rerun()


__all__ = ["ensure_plan_state", "render_itinerary_tab", "render_plan_tab", "trip_session"]
