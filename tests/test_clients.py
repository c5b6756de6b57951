"""Tests for the HTTP collaborators, driven through ``httpx.MockTransport``."""

from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from wanderlust.core.images import ImageProvider, ImageService, default_providers, generated_image_urls
from wanderlust.core.llm import LLMClient, ProviderError
from wanderlust.core.places import AmapPlaceClient


def _recording_transport(requests: List[httpx.Request], response: httpx.Response) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return response

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_llm_client_sends_messages_payload_and_joins_text_blocks() -> None:
    requests: List[httpx.Request] = []
    reply = httpx.Response(
        200,
        json={
            "content": [
                {"type": "thinking", "thinking": "hmm"},
                {"type": "text", "text": '{"ok": '},
                {"type": "text", "text": "true}"},
            ]
        },
    )
    client = LLMClient(
        model="test-model",
        api_key="secret",
        base_url="https://llm.test/api/",
        thinking_budget=1000,
        transport=_recording_transport(requests, reply),
    )

    result = await client.generate_text(
        "Plan it",
        max_output_tokens=500,
        temperature=0.2,
        extended_reasoning=True,
        prompt_version="planner.v1",
    )

    assert result.text == '{"ok": true}'
    request = requests[0]
    assert str(request.url) == "https://llm.test/api/v1/messages"
    assert request.headers["x-api-key"] == "secret"
    assert request.headers["anthropic-version"] == "2023-06-01"
    payload = json.loads(request.content)
    assert payload["model"] == "test-model"
    assert payload["max_tokens"] == 1500
    assert payload["thinking"] == {"type": "enabled", "budget_tokens": 1000}
    assert payload["metadata"] == {"user_id": "planner.v1"}
    assert payload["messages"] == [{"role": "user", "content": "Plan it"}]
    assert "system" not in payload


@pytest.mark.asyncio
async def test_llm_client_error_status_raises_provider_error() -> None:
    requests: List[httpx.Request] = []
    client = LLMClient(
        api_key="secret",
        transport=_recording_transport(requests, httpx.Response(429, text="Too Many Requests")),
    )

    with pytest.raises(ProviderError) as excinfo:
        await client.generate_text("hi", system="Be brief")

    assert excinfo.value.status_code == 429
    assert "429" in str(excinfo.value)
    assert json.loads(requests[0].content)["system"] == "Be brief"


@pytest.mark.asyncio
async def test_llm_client_wraps_transport_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = LLMClient(api_key="secret", transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderError, match="Transport failure"):
        await client.generate_text("hi")


@pytest.mark.asyncio
async def test_llm_client_requires_an_api_key() -> None:
    with pytest.raises(ProviderError, match="ANTHROPIC_AUTH_TOKEN"):
        await LLMClient(api_key=None).generate_text("hi")


def test_extract_text_rejects_replies_without_content() -> None:
    with pytest.raises(ProviderError):
        LLMClient.extract_text({"error": "nope"})


_AMAP_HIT = {
    "status": "1",
    "pois": [
        {
            "name": "Ichiran Shibuya",
            "location": "139.7016,35.6619",
            "address": [],
            "cityname": "Tokyo",
        }
    ],
}


@pytest.mark.asyncio
async def test_place_lookup_parses_first_poi_and_caches_it() -> None:
    requests: List[httpx.Request] = []
    client = AmapPlaceClient(
        api_key="amap-key",
        transport=_recording_transport(requests, httpx.Response(200, json=_AMAP_HIT)),
    )

    match = await client.lookup_place(" Ichiran ", "Tokyo")
    again = await client.lookup_place("Ichiran", "Tokyo")

    assert match is not None
    assert (match.name, match.lat, match.lng) == ("Ichiran Shibuya", 35.6619, 139.7016)
    assert match.address == ""
    assert again == match
    assert len(requests) == 1
    params = requests[0].url.params
    assert params["keywords"] == "Ichiran"
    assert params["city"] == "Tokyo"
    assert params["key"] == "amap-key"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "0", "info": "INVALID_USER_KEY"}),
        httpx.Response(200, json={"status": "1", "pois": []}),
        httpx.Response(200, json={"status": "1", "pois": [{"name": "Nowhere", "location": []}]}),
        httpx.Response(500, text="upstream down"),
    ],
)
async def test_place_lookup_misses_return_none_and_are_not_cached(response: httpx.Response) -> None:
    requests: List[httpx.Request] = []
    client = AmapPlaceClient(api_key="amap-key", transport=_recording_transport(requests, response))

    assert await client.lookup_place("Nowhere", "Tokyo") is None
    assert len(client.cache) == 0


@pytest.mark.asyncio
async def test_place_lookup_without_key_makes_no_request() -> None:
    requests: List[httpx.Request] = []
    client = AmapPlaceClient(
        api_key=None,
        transport=_recording_transport(requests, httpx.Response(200, json=_AMAP_HIT)),
    )

    assert await client.lookup_place("Ichiran", "Tokyo") is None
    assert await client.lookup_place("   ") is None
    assert requests == []


def _provider(name: str, batches, calls: List[str], api_key: str = "a-valid-api-key") -> ImageProvider:
    async def fetch(client, keyword, count, orientation):
        calls.append(name)
        outcome = batches.pop(0) if batches else []
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return ImageProvider(name, api_key, fetch)


@pytest.mark.asyncio
async def test_image_chain_retries_then_falls_through_to_generated_urls() -> None:
    calls: List[str] = []
    broken = _provider("Broken", [httpx.ConnectError("down")] * 3, calls)
    disabled = _provider("Disabled", [["https://never.test/1.jpg"]], calls, api_key="short")
    partial = _provider("Partial", [["https://p.test/1.jpg", "https://p.test/1.jpg", "https://p.test/2.jpg"]], calls)
    service = ImageService(providers=[broken, disabled, partial], retry_delay=0)

    urls = await service.fetch_images("kyoto temple", count=3)

    assert calls == ["Broken", "Broken", "Broken", "Partial"]
    assert urls[:2] == ["https://p.test/1.jpg", "https://p.test/2.jpg"]
    assert urls[2].startswith("https://image.pollinations.ai/prompt/kyoto%20temple+1")
    assert len(urls) == 3


@pytest.mark.asyncio
async def test_short_provider_is_queried_once_before_moving_on() -> None:
    requested: List[tuple] = []

    def counting(name: str, urls: List[str]) -> ImageProvider:
        async def fetch(client, keyword, count, orientation):
            requested.append((name, count))
            return list(urls)

        return ImageProvider(name, "a-valid-api-key", fetch)

    service = ImageService(
        providers=[
            counting("Short", ["https://s.test/1.jpg", "https://s.test/2.jpg"]),
            counting("Next", ["https://n.test/1.jpg"]),
        ],
        retry_delay=0,
    )

    urls = await service.fetch_images("kyoto temple", count=3)

    assert requested == [("Short", 3), ("Next", 1)]
    assert urls == ["https://s.test/1.jpg", "https://s.test/2.jpg", "https://n.test/1.jpg"]


@pytest.mark.asyncio
async def test_image_results_are_cached_per_keyword_and_orientation() -> None:
    calls: List[str] = []
    provider = _provider("Stock", [["https://s.test/1.jpg", "https://s.test/2.jpg"]] * 3, calls)
    service = ImageService(providers=[provider], retry_delay=0)

    first = await service.fetch_images("lisbon tram", count=2)
    smaller = await service.fetch_images("lisbon tram", count=1)
    portrait = await service.fetch_images("lisbon tram", count=1, orientation="portrait")

    assert first == ["https://s.test/1.jpg", "https://s.test/2.jpg"]
    assert smaller == ["https://s.test/1.jpg"]
    assert portrait == ["https://s.test/1.jpg"]
    assert calls == ["Stock", "Stock"]


@pytest.mark.asyncio
async def test_image_service_ignores_empty_requests() -> None:
    service = ImageService(providers=[])

    assert await service.fetch_images("", count=2) == []
    assert await service.fetch_images("rome", count=0) == []


@pytest.mark.asyncio
async def test_unsplash_provider_reads_regular_urls(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNSPLASH_ACCESS_KEY", "unsplash-access-key")
    monkeypatch.delenv("PEXELS_API_KEY", raising=False)
    monkeypatch.delenv("PIXABAY_API_KEY", raising=False)
    requests: List[httpx.Request] = []
    reply = httpx.Response(
        200,
        json={"results": [{"urls": {"regular": "https://u.test/1.jpg"}}, {"urls": {"large": "https://u.test/2.jpg"}}]},
    )
    service = ImageService(providers=default_providers(), transport=_recording_transport(requests, reply))

    urls = await service.fetch_images("santorini sunset", count=2, orientation="square")

    assert urls == ["https://u.test/1.jpg", "https://u.test/2.jpg"]
    assert requests[0].url.host == "api.unsplash.com"
    assert requests[0].url.params["orientation"] == "squarish"
    assert requests[0].url.params["client_id"] == "unsplash-access-key"


def test_generated_urls_are_deterministic_per_keyword() -> None:
    first = generated_image_urls("kyoto temple", 2, "portrait")

    assert first == generated_image_urls("kyoto temple", 2, "portrait")
    assert first != generated_image_urls("osaka castle", 2, "portrait")
    assert all("width=800&height=1200" in url for url in first)
