"""Wanderlust Streamlit UI helpers."""

from __future__ import annotations

from .map import render_map_tab
from .plan import ensure_plan_state, render_itinerary_tab, render_plan_tab, trip_session

__all__ = [
    "ensure_plan_state",
    "render_itinerary_tab",
    "render_map_tab",
    "render_plan_tab",
    "trip_session",
]
