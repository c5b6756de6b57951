"""Stock image lookup over a priority-ordered chain of providers."""

from __future__ import annotations

import asyncio
import logging
import os
import zlib
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Literal, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from wanderlust.core.cache import TTLCache, ttl_from_env

Orientation = Literal["landscape", "portrait", "square"]

IMAGE_MAX_RETRIES = 2
_DEFAULT_TIMEOUT = float(os.getenv("IMAGE_TIMEOUT", "10"))

_POLLINATIONS_SIZES: Dict[str, Tuple[int, int]] = {
    "landscape": (1600, 900),
    "square": (1200, 1200),
    "portrait": (800, 1200),
}

_LOGGER = logging.getLogger(__name__)

FetchFn = Callable[[httpx.AsyncClient, str, int, Orientation], Awaitable[List[str]]]


@dataclass
class ImageProvider:
    """One stock-photo API. Skipped entirely when no key is configured."""

    name: str
    api_key: Optional[str]
    fetch: FetchFn

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and len(self.api_key) >= 10)


def _unsplash(api_key: Optional[str]) -> ImageProvider:
    orientation_map = {"landscape": "landscape", "portrait": "portrait", "square": "squarish"}

    async def fetch(
        client: httpx.AsyncClient, keyword: str, count: int, orientation: Orientation
    ) -> List[str]:
        response = await client.get(
            "https://api.unsplash.com/search/photos",
            params={
                "query": keyword,
                "per_page": min(count, 30),
                "orientation": orientation_map[orientation],
                "client_id": api_key,
            },
        )
        response.raise_for_status()
        results = response.json().get("results")
        if not isinstance(results, list):
            return []
        urls = [(photo.get("urls") or {}) for photo in results if isinstance(photo, dict)]
        return [item.get("regular") or item.get("large") for item in urls if item.get("regular") or item.get("large")]

    return ImageProvider("Unsplash", api_key, fetch)


def _pexels(api_key: Optional[str]) -> ImageProvider:
    async def fetch(
        client: httpx.AsyncClient, keyword: str, count: int, orientation: Orientation
    ) -> List[str]:
        response = await client.get(
            "https://api.pexels.com/v1/search",
            params={"query": keyword, "per_page": min(count, 30), "orientation": orientation},
            headers={"Authorization": api_key or ""},
        )
        response.raise_for_status()
        photos = response.json().get("photos")
        if not isinstance(photos, list):
            return []
        sources = [(photo.get("src") or {}) for photo in photos if isinstance(photo, dict)]
        return [src.get("large2x") or src.get("large") for src in sources if src.get("large2x") or src.get("large")]

    return ImageProvider("Pexels", api_key, fetch)


def _pixabay(api_key: Optional[str]) -> ImageProvider:
    async def fetch(
        client: httpx.AsyncClient, keyword: str, count: int, orientation: Orientation
    ) -> List[str]:
        params: Dict[str, object] = {
            "key": api_key,
            "q": keyword,
            "image_type": "photo",
            "per_page": max(3, min(count, 50)),
            "safesearch": "true",
        }
        if orientation == "landscape":
            params["min_width"] = 1600
        elif orientation == "portrait":
            params["min_height"] = 1200
        response = await client.get("https://pixabay.com/api/", params=params)
        response.raise_for_status()
        hits = response.json().get("hits")
        if not isinstance(hits, list):
            return []
        return [
            hit.get("largeImageURL") or hit.get("webformatURL")
            for hit in hits
            if isinstance(hit, dict) and (hit.get("largeImageURL") or hit.get("webformatURL"))
        ]

    return ImageProvider("Pixabay", api_key, fetch)


def default_providers() -> List[ImageProvider]:
    """Providers in priority order, keyed from the environment."""

    return [
        _unsplash(os.getenv("UNSPLASH_ACCESS_KEY")),
        _pexels(os.getenv("PEXELS_API_KEY")),
        _pixabay(os.getenv("PIXABAY_API_KEY")),
    ]


def generated_image_urls(keyword: str, count: int, orientation: Orientation) -> List[str]:
    """Key-less fallback: prompt URLs for an image generation service."""

    width, height = _POLLINATIONS_SIZES[orientation]
    seed = zlib.crc32(keyword.encode("utf-8"))
    encoded = quote(keyword, safe="")
    return [
        f"https://image.pollinations.ai/prompt/{encoded}+{index + 1}"
        f"?width={width}&height={height}&nologo=true&seed={seed + index}"
        for index in range(count)
    ]


def _image_cache() -> TTLCache[List[str]]:
    return TTLCache(ttl_from_env(os.getenv("IMAGE_CACHE_TTL_HOURS"), 24.0 * 7))


@dataclass
class ImageService:
    """Resolve a keyword into image URLs; never raises provider errors."""

    providers: Sequence[ImageProvider] = field(default_factory=default_providers)
    max_retries: int = IMAGE_MAX_RETRIES
    retry_delay: float = 1.0
    timeout: float = _DEFAULT_TIMEOUT
    transport: Optional[httpx.AsyncBaseTransport] = None
    cache: TTLCache[List[str]] = field(default_factory=_image_cache)

    async def fetch_images(
        self,
        keyword: str,
        count: int = 1,
        orientation: Orientation = "landscape",
    ) -> List[str]:
        if count < 1 or not keyword.strip():
            return []

        cache_key = (keyword, orientation)
        cached = self.cache.get(cache_key)
        if cached is not None and len(cached) >= count:
            _LOGGER.debug("Image cache hit for %r (%d urls)", keyword, len(cached))
            return cached[:count]

        result: List[str] = []
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for provider in self.providers:
                if not provider.enabled:
                    continue
                await self._collect(client, provider, keyword, count, orientation, result)
                if len(result) >= count:
                    break

        if len(result) < count:
            _LOGGER.info("Image providers short for %r; using generated fallback", keyword)
            result.extend(generated_image_urls(keyword, count - len(result), orientation))

        urls = list(dict.fromkeys(result))[:count]
        if urls:
            self.cache.set(cache_key, urls)
        return urls

    async def _collect(
        self,
        client: httpx.AsyncClient,
        provider: ImageProvider,
        keyword: str,
        count: int,
        orientation: Orientation,
        result: List[str],
    ) -> None:
        for attempt in range(self.max_retries + 1):
            try:
                images = await provider.fetch(client, keyword, count - len(result), orientation)
            except (httpx.HTTPError, ValueError) as exc:
                _LOGGER.warning(
                    "%s attempt %d/%d failed: %s",
                    provider.name,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                continue

            result.extend(url for url in images if url not in result)
            return


__all__ = [
    "IMAGE_MAX_RETRIES",
    "ImageProvider",
    "ImageService",
    "Orientation",
    "default_providers",
    "generated_image_urls",
]
