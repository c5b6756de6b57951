"""Streamlit entry point for the Wanderlust application."""
from __future__ import annotations

import logging
import os
from typing import Sequence, Tuple

import streamlit as st
from dotenv import load_dotenv

from wanderlust.ui import ensure_plan_state, render_itinerary_tab, render_map_tab, render_plan_tab


_TAB_ORDER: Sequence[str] = ("Plan", "Itinerary", "Map")

_SERVICES: Sequence[Tuple[str, Tuple[str, ...], str]] = (
    ("Text model", ("ANTHROPIC_AUTH_TOKEN",), "required to plan trips"),
    ("AMap places", ("AMAP_API_KEY",), "activities stay unlocated without it"),
    (
        "Stock photos",
        ("UNSPLASH_ACCESS_KEY", "PEXELS_API_KEY", "PIXABAY_API_KEY"),
        "generated images are used without one",
    ),
)


def configure() -> None:
    """Load environment variables, set up logging and the page."""

    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    st.set_page_config(page_title="Wanderlust", page_icon="🧭", layout="wide")


def _resolve_tab_order() -> Sequence[str]:
    """Put the tab that should have focus first; Streamlit opens the first tab."""

    focused = st.session_state.get("app_active_tab", "Plan")
    if st.session_state.pop("_focus_itinerary", False):
        focused = "Itinerary"
    if focused not in _TAB_ORDER:
        focused = "Plan"
    st.session_state["app_active_tab"] = focused
    return [focused, *[label for label in _TAB_ORDER if label != focused]]


def _render_service_status() -> None:
    with st.sidebar:
        st.markdown("**Services**")
        for label, variables, consequence in _SERVICES:
            if any(os.getenv(name) for name in variables):
                st.markdown(f"✅ {label}")
            else:
                st.markdown(f"⚠️ {label}: set `{' / '.join(variables)}` ({consequence})")


def render() -> None:
    """Render the Wanderlust multi-tab shell."""

    ensure_plan_state()
    _render_service_status()

    st.title("🧭 Wanderlust")
    st.caption("Describe a trip and get a styled, day-by-day itinerary.")

    ordered_tabs = _resolve_tab_order()
    tabs = dict(zip(ordered_tabs, st.tabs(list(ordered_tabs))))

    render_plan_tab(tabs["Plan"])
    render_itinerary_tab(tabs["Itinerary"])
    render_map_tab(tabs["Map"])


if __name__ == "__main__":
    configure()
    render()
