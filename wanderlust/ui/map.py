"""Map of the located activities, one coloured route per day."""

from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

import pydeck as pdk
import streamlit as st

from wanderlust.schemas import DayResult
from wanderlust.ui.plan import trip_session

_DAYS_SELECTED_KEY = "map_days_selected"

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class ActivityPin:
    lng: float
    lat: float
    day: int
    order: int
    time: str
    label: str
    address: str = ""

    def as_record(self, color: RGBA) -> Dict[str, object]:
        return {
            "coordinates": [self.lng, self.lat],
            "color": list(color),
            "order": str(self.order),
            "label": self.label,
            "time": self.time,
            "day": self.day,
            "address": self.address,
        }


def day_color(day: int, total_days: int) -> RGBA:
    """Evenly spaced hues so neighbouring days stay distinguishable."""

    hue = ((day - 1) / max(total_days, 1)) % 1.0
    red, green, blue = colorsys.hsv_to_rgb(hue, 0.7, 0.9)
    return (round(red * 255), round(green * 255), round(blue * 255), 210)


def collect_pins(results: Iterable[DayResult]) -> List[ActivityPin]:
    """Pins for activities with coordinates, ordered by day then slot."""

    pins: List[ActivityPin] = []
    for result in sorted(results, key=lambda item: item.day):
        order = 0
        for activity in result.activities:
            location = activity.location
            if location.lat is None or location.lng is None:
                continue
            order += 1
            pins.append(
                ActivityPin(
                    lng=location.lng,
                    lat=location.lat,
                    day=result.day,
                    order=order,
                    time=activity.time,
                    label=location.name or activity.title,
                    address=location.address or "",
                )
            )
    return pins


def day_routes(pins: Sequence[ActivityPin], total_days: int) -> List[Dict[str, object]]:
    """One polyline per day that has at least two located stops."""

    stops: Dict[int, List[List[float]]] = {}
    for pin in pins:
        stops.setdefault(pin.day, []).append([pin.lng, pin.lat])
    return [
        {"path": path, "color": list(day_color(day, total_days)), "day": day}
        for day, path in sorted(stops.items())
        if len(path) > 1
    ]


def _zoom_for_span(span_degrees: float) -> float:
    if span_degrees <= 0:
        return 13.0
    return max(3.0, min(13.0, math.log2(360.0 / span_degrees) - 1.0))


def view_for(pins: Sequence[ActivityPin]) -> pdk.ViewState:
    """Centre on the pins' bounding box and zoom to fit its larger side."""

    if not pins:
        return pdk.ViewState(latitude=20.0, longitude=0.0, zoom=1.5)
    lngs = [pin.lng for pin in pins]
    lats = [pin.lat for pin in pins]
    span = max(max(lngs) - min(lngs), max(lats) - min(lats))
    return pdk.ViewState(
        latitude=(min(lats) + max(lats)) / 2,
        longitude=(min(lngs) + max(lngs)) / 2,
        zoom=_zoom_for_span(span),
    )


def build_deck(pins: Sequence[ActivityPin], total_days: int) -> pdk.Deck:
    records = [pin.as_record(day_color(pin.day, total_days)) for pin in pins]
    routes = day_routes(pins, total_days)
    layers: List[pdk.Layer] = []
    if routes:
        layers.append(
            pdk.Layer(
                "PathLayer",
                data=routes,
                id="day-routes",
                get_path="path",
                get_color="color",
                width_min_pixels=3,
            )
        )
    if records:
        layers.append(
            pdk.Layer(
                "ScatterplotLayer",
                data=records,
                id="activity-pins",
                get_position="coordinates",
                get_fill_color="color",
                get_radius=60,
                radius_min_pixels=7,
                pickable=True,
            )
        )
        layers.append(
            pdk.Layer(
                "TextLayer",
                data=records,
                id="activity-order",
                get_position="coordinates",
                get_text="order",
                get_size=12,
                get_color=[255, 255, 255, 255],
            )
        )
    return pdk.Deck(
        map_style="light",
        layers=layers,
        initial_view_state=view_for(pins),
        tooltip={"html": "<b>{label}</b><br/>Day {day} · {time}<br/>{address}"},
    )


def _selected_days(days: Sequence[int]) -> List[int]:
    chosen = st.multiselect(
        "Days",
        list(days),
        default=list(days),
        format_func=lambda number: f"Day {number}",
        key=_DAYS_SELECTED_KEY,
    )
    return [int(day) for day in chosen]


def render_map_tab(container) -> None:
    """Render the itinerary map tab."""

    session = trip_session()

    with container:
        st.subheader("Map")

        skeleton = session.skeleton
        if skeleton is None or not session.day_results:
            st.info("Generate an itinerary to see its stops on the map.")
            return

        pins = collect_pins(session.day_results.values())
        if not pins:
            st.warning("None of the activities could be placed on the map yet.")
            return

        chosen = _selected_days(sorted({pin.day for pin in pins}))
        visible = [pin for pin in pins if pin.day in chosen]
        st.pydeck_chart(build_deck(visible, skeleton.duration))
        st.caption(f"{len(visible)} located stops across {len({pin.day for pin in visible})} day(s)")


__all__ = ["ActivityPin", "build_deck", "collect_pins", "day_color", "day_routes", "render_map_tab", "view_for"]
