"""Tests for the HTML renderers."""

from __future__ import annotations

from conftest import make_skeleton

from wanderlust.core.rendering import (
    map_url,
    render_day,
    render_document,
    render_header,
    render_placeholder_day,
)
from wanderlust.schemas import Activity, DayResult


def _activity(**overrides) -> Activity:
    payload = {"time": "09:00", "title": "Temple walk", "location": {"name": "Kiyomizu-dera"}}
    payload.update(overrides)
    return Activity.model_validate(payload)


def test_map_url_prefers_coordinates() -> None:
    located = _activity(location={"name": "Kiyomizu dera", "lat": 34.99, "lng": 135.78})
    unlocated = _activity()

    assert map_url(located) == "https://uri.amap.com/marker?position=135.78,34.99&name=Kiyomizu%20dera"
    assert map_url(unlocated, "Kyoto") == "https://www.amap.com/search?query=Kyoto%20Kiyomizu-dera"


def test_render_day_leaves_out_missing_parts() -> None:
    day = make_skeleton(2).day(1)

    bare = render_day(day, [], [], "emerald")
    full = render_day(
        day,
        [_activity(tip="Go at dawn", location={"name": "Kiyomizu-dera", "address": "1-294 Kiyomizu"})],
        ["https://img.test/kyoto/0.jpg"],
        "emerald",
    )

    assert 'data-day="1"' in bare
    assert "<ol" not in bare
    assert "<img" not in bare
    assert "Tip: Go at dawn" in full
    assert "1-294 Kiyomizu" in full
    assert 'src="https://img.test/kyoto/0.jpg"' in full


def test_renderers_escape_model_text() -> None:
    skeleton = make_skeleton(1, destination="<script>alert(1)</script>")
    day = skeleton.day(1)

    header = render_header(skeleton)
    section = render_day(day, [_activity(title="Fish & chips <b>")], [], skeleton.palette)

    assert "<script>alert" not in header
    assert "&lt;script&gt;" in header
    assert "Fish &amp; chips &lt;b&gt;" in section


def test_render_document_replaces_stale_days_with_placeholders() -> None:
    skeleton = make_skeleton(3)
    fresh = DayResult(day=1, skeleton=skeleton.day(1), markup="<section>fresh day 1</section>")
    stale_outline = skeleton.day(2).model_copy(update={"title": "Old title"})
    stale = DayResult(day=2, skeleton=stale_outline, markup="<section>stale day 2</section>")

    document = render_document(skeleton, [fresh, stale])

    assert "fresh day 1" in document
    assert "stale day 2" not in document
    assert document.count('data-failed="true"') == 2
    assert document.count("This day is being refreshed.") == 2
    assert document.index("fresh day 1") < document.index('id="day-2"') < document.index('id="day-3"')
    assert document.rstrip().endswith("</html>")


def test_placeholder_day_has_default_reason() -> None:
    markup = render_placeholder_day(make_skeleton(1).day(1), "emerald")

    assert 'data-failed="true"' in markup
    assert "could not be generated" in markup
