"""Thin async wrapper around the AMap place text-search API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import httpx

from wanderlust.core.cache import TTLCache, ttl_from_env
from wanderlust.schemas import PlaceMatch

_AMAP_BASE_URL = "https://restapi.amap.com/v3"
_DEFAULT_TIMEOUT = float(os.getenv("AMAP_TIMEOUT", "10"))

_LOGGER = logging.getLogger(__name__)


def _place_cache() -> TTLCache[PlaceMatch]:
    return TTLCache(ttl_from_env(os.getenv("PLACE_TTL_HOURS"), 24.0))


def _text_field(value: object) -> str:
    # AMap returns [] instead of "" for blank fields.
    return value.strip() if isinstance(value, str) else ""


def _normalise_poi(data: Dict[str, object]) -> Optional[PlaceMatch]:
    if str(data.get("status")) != "1":
        return None
    pois = data.get("pois")
    if not isinstance(pois, list) or not pois or not isinstance(pois[0], dict):
        return None

    poi = pois[0]
    location = _text_field(poi.get("location"))
    try:
        lng_text, lat_text = location.split(",", 1)
        lng, lat = float(lng_text), float(lat_text)
    except ValueError:
        return None

    return PlaceMatch(
        name=_text_field(poi.get("name")),
        lat=lat,
        lng=lng,
        address=_text_field(poi.get("address")),
        city=_text_field(poi.get("cityname")),
    )


@dataclass
class AmapPlaceClient:
    """Resolve place names to coordinates; misses and failures return ``None``."""

    api_key: Optional[str] = os.getenv("AMAP_API_KEY")
    timeout: float = _DEFAULT_TIMEOUT
    base_url: str = _AMAP_BASE_URL
    transport: Optional[httpx.AsyncBaseTransport] = None
    cache: TTLCache[PlaceMatch] = field(default_factory=_place_cache)

    async def lookup_place(self, name: str, city_hint: str = "") -> Optional[PlaceMatch]:
        query = name.strip()
        if not query:
            return None

        key: Tuple[str, str] = (query, city_hint.strip())
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if not self.api_key:
            _LOGGER.debug("AMAP_API_KEY not set; skipping place lookup for %s", query)
            return None

        params = {
            "keywords": query,
            "city": city_hint.strip(),
            "offset": 1,
            "page": 1,
            "extensions": "all",
            "key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url.rstrip('/')}/place/text", params=params
                )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            _LOGGER.warning("Place lookup failed for %s: %s", query, exc)
            return None

        if not isinstance(data, dict):
            return None
        match = _normalise_poi(data)
        if match is None:
            _LOGGER.debug("No place match for %s in %s", query, city_hint or "any city")
            return None
        self.cache.set(key, match)
        return match


__all__ = ["AmapPlaceClient"]
