"""HTML rendering for generated trips.

Every renderer works from structured data only. The full document can be
rebuilt at any time from a :class:`TripSkeleton` plus its day results, so
single-day edits never patch previously rendered markup.
"""

from __future__ import annotations

from html import escape
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

from wanderlust.schemas import Activity, DayResult, DaySkeleton, TripSkeleton, VisualIdentity

_AMAP_SEARCH_URL = "https://www.amap.com/search?query={query}"
_AMAP_MARKER_URL = "https://uri.amap.com/marker?position={lng},{lat}&name={name}"


def map_url(activity: Activity, city: str = "") -> str:
    """Link to the activity on AMap, by coordinates when known."""

    location = activity.location
    if location.has_coordinates:
        return _AMAP_MARKER_URL.format(
            lng=location.lng, lat=location.lat, name=quote(location.name or activity.title)
        )
    query = " ".join(part for part in (city, location.name or activity.title) if part)
    return _AMAP_SEARCH_URL.format(query=quote(query))


def render_header(identity: VisualIdentity) -> str:
    palette = identity.palette
    fonts = identity.font_config
    hero = ""
    if identity.hero_image:
        hero = (
            f'<img src="{escape(identity.hero_image)}" alt="{escape(identity.destination)}" '
            'class="absolute inset-0 w-full h-full object-cover opacity-90" loading="eager"/>'
        )
    font_link = ""
    if fonts.google_font_url:
        font_link = f'<link href="{escape(fonts.google_font_url)}" rel="stylesheet">'
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en" class="scroll-smooth">\n'
        "<head>\n"
        '<meta charset="UTF-8"><meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        '<script src="https://cdn.tailwindcss.com"></script>\n'
        f"{font_link}\n"
        "<style>\n"
        f":root {{ --font-heading: '{escape(fonts.heading_font)}', serif; "
        f"--font-body: '{escape(fonts.body_font)}', sans-serif; }}\n"
        "body { font-family: var(--font-body); }\n"
        "h1, h2, h3, .font-heading { font-family: var(--font-heading); }\n"
        "</style>\n"
        "</head>\n"
        f'<body class="bg-{palette}-50 text-{palette}-900 antialiased">\n'
        f'<header class="hero-{identity.hero_style} relative w-full aspect-video flex flex-col '
        f'overflow-hidden bg-{palette}-900">\n'
        f'<div class="absolute inset-0 bg-{palette}-800">{hero}</div>\n'
        '<div class="relative z-20 w-full h-full max-w-7xl mx-auto flex flex-col items-center '
        'justify-center text-center px-6">\n'
        f'<h1 class="text-5xl md:text-8xl font-heading text-white">{escape(identity.destination)}</h1>\n'
        '<div class="bg-white/10 text-white px-6 py-3 rounded-full flex items-center gap-4">'
        f'<span class="font-bold uppercase text-sm">{identity.duration} days</span>'
        f'<span class="italic text-lg">{escape(identity.vibe)}</span></div>\n'
        "</div>\n"
        "</header>\n"
    )


def render_overview(skeleton: TripSkeleton) -> str:
    palette = skeleton.palette
    cards = "".join(
        f'<div class="bg-{palette}-50/60 p-6 rounded-2xl text-center border border-{palette}-100">'
        f'<div class="text-{palette}-500 mb-4 text-3xl">{escape(item.icon or "✦")}</div>'
        f'<span class="block font-bold text-lg font-heading">{escape(item.title)}</span>'
        f'<span class="text-sm text-{palette}-600">{escape(item.description)}</span>'
        "</div>"
        for item in skeleton.highlights
    )
    return (
        '<div class="relative z-30 -mt-24 px-4 md:px-8 mb-24">\n'
        '<div class="max-w-6xl mx-auto bg-white/95 p-8 md:p-12 rounded-[2rem] shadow-xl">\n'
        '<div class="max-w-3xl mx-auto text-center mb-16">'
        f'<h2 class="text-3xl md:text-5xl font-bold text-{palette}-900 mb-6 font-heading">Trip overview</h2>'
        f'<p class="text-xl text-{palette}-600 font-serif">"{escape(skeleton.summary)}"</p>'
        "</div>\n"
        f'<div class="grid grid-cols-1 md:grid-cols-2 lg:grid-cols-4 gap-6">{cards}</div>\n'
        "</div>\n"
        "</div>\n"
        '<main class="max-w-6xl mx-auto px-6 pb-20">\n'
    )


def _render_images(images: Sequence[str], day: DaySkeleton) -> str:
    if not images:
        return ""
    tiles = "".join(
        f'<img src="{escape(url)}" alt="{escape(day.visual_keyword)}" '
        'class="w-full h-56 object-cover rounded-2xl" loading="lazy"/>'
        for url in images
        if url
    )
    return f'<div class="grid grid-cols-1 md:grid-cols-3 gap-4 mb-10">{tiles}</div>' if tiles else ""


def _render_activity(activity: Activity, city: str, palette: str) -> str:
    location = activity.location
    address = ""
    if location.address:
        address = f'<p class="text-xs text-{palette}-400">{escape(location.address)}</p>'
    tip = ""
    if activity.tip:
        tip = f'<p class="mt-2 text-sm italic text-{palette}-500">Tip: {escape(activity.tip)}</p>'
    place = ""
    if location.name:
        place = (
            f'<a href="{escape(map_url(activity, city))}" target="_blank" rel="noopener" '
            f'class="text-sm text-{palette}-600 underline">{escape(location.name)}</a>'
        )
    return (
        f'<li class="relative pl-8 pb-8 border-l-2 border-{palette}-200">'
        f'<span class="text-sm font-mono text-{palette}-500">{escape(activity.time)}</span>'
        f'<h3 class="text-xl font-bold font-heading">{escape(activity.title)}</h3>'
        f'<p class="text-{palette}-700">{escape(activity.description)}</p>'
        f"{place}{address}{tip}"
        "</li>"
    )


def render_day(
    day: DaySkeleton,
    activities: Iterable[Activity],
    images: Sequence[str],
    palette: str,
) -> str:
    """Render one day section; optional parts are left out when data is missing."""

    items = "".join(_render_activity(activity, day.city, palette) for activity in activities)
    timeline = f'<ol class="mt-6">{items}</ol>' if items else ""
    return (
        f'<section id="day-{day.day}" data-day="{day.day}" class="mb-32 break-inside-avoid">\n'
        '<div class="flex items-end gap-6 mb-10 relative px-2">'
        f'<div class="text-9xl font-black text-{palette}-100 opacity-40 font-heading">{day.day:02d}</div>'
        f'<div class="pl-6 border-l-4 border-{palette}-400">'
        f'<h2 class="text-4xl font-bold text-{palette}-900 font-heading">{escape(day.title)}</h2>'
        f'<p class="text-{palette}-600 italic mt-3">{escape(day.theme)} · {escape(day.city)}</p>'
        "</div></div>\n"
        f"{_render_images(images, day)}\n"
        f"{timeline}\n"
        "</section>\n"
    )


def render_placeholder_day(day: DaySkeleton, palette: str, reason: Optional[str] = None) -> str:
    """Visible stand-in for a day whose generation failed outright."""

    detail = escape(reason) if reason else "Details for this day could not be generated. Try refreshing it."
    return (
        f'<section id="day-{day.day}" data-day="{day.day}" data-failed="true" class="mb-32">\n'
        f'<h2 class="text-4xl font-bold text-{palette}-900 font-heading">Day {day.day}: {escape(day.title)}</h2>\n'
        f'<p class="text-{palette}-500 italic">{detail}</p>\n'
        "</section>\n"
    )


def render_footer(palette: str) -> str:
    return (
        "</main>\n"
        f'<footer class="bg-{palette}-900 text-{palette}-100 py-24 mt-12 text-center">\n'
        '<p class="font-heading italic text-5xl mb-8 text-white/90">Wanderlust AI</p>\n'
        "</footer>\n"
        "</body>\n"
        "</html>\n"
    )


def render_document(skeleton: TripSkeleton, day_results: Iterable[DayResult]) -> str:
    """Assemble the whole page from data, one section per skeleton day."""

    by_day = {result.day: result for result in day_results}
    parts: List[str] = [render_header(skeleton), render_overview(skeleton)]
    for day in skeleton.days:
        result = by_day.get(day.day)
        if result is None or result.skeleton != day:
            # Missing or generated against a superseded outline.
            parts.append(render_placeholder_day(day, skeleton.palette, "This day is being refreshed."))
        else:
            parts.append(result.markup)
    parts.append(render_footer(skeleton.palette))
    return "".join(parts)


__all__ = [
    "map_url",
    "render_day",
    "render_document",
    "render_footer",
    "render_header",
    "render_overview",
    "render_placeholder_day",
]
