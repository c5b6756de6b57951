"""Sanity checks for the wanderlust.ui package exports."""

from __future__ import annotations

def _is_callable(value: object) -> bool:
    return callable(value)


def test_tab_renderers_are_exposed() -> None:
    from wanderlust import ui

    assert _is_callable(ui.render_plan_tab)
    assert _is_callable(ui.render_itinerary_tab)
    assert _is_callable(ui.render_map_tab)


def test_session_accessors_are_available() -> None:
    from wanderlust import ui

    assert _is_callable(ui.ensure_plan_state)
    assert _is_callable(ui.trip_session)
