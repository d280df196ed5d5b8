"""Tests for chart point selection and image preloading."""

from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from models.dataset import ChannelPoint
from services.errors import ImageLoadError
from services.selector import (
    IMAGE_LOAD_FAILED_MESSAGE,
    Cleared,
    DataPointSelector,
    Displayed,
    Failed,
    HttpImageLoader,
    Superseded,
)


class RecordingLoader:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: List[str] = []

    async def __call__(self, url: str) -> None:
        self.calls.append(url)
        if url in self.failing:
            raise ImageLoadError("status 404")


def _point(image_ref: str | None) -> ChannelPoint:
    return ChannelPoint(time=0, value=1.0, image_ref=image_ref)


def test_point_without_image_clears_without_suspending() -> None:
    loader = RecordingLoader()
    selector = DataPointSelector(loader)
    selector.displayed = "https://img/old.jpg"

    coroutine = selector.select(_point(None))
    with pytest.raises(StopIteration) as info:
        coroutine.send(None)

    assert info.value.value == Cleared()
    assert selector.displayed is None
    assert loader.calls == []


def test_successful_load_displays_image() -> None:
    loader = RecordingLoader()
    selector = DataPointSelector(loader)

    outcome = asyncio.run(selector.select(_point("https://img/a.jpg")))

    assert outcome == Displayed("https://img/a.jpg")
    assert selector.displayed == "https://img/a.jpg"
    assert loader.calls == ["https://img/a.jpg"]


def test_failed_load_reports_error_and_leaves_display_cleared() -> None:
    errors: List[str] = []
    selector = DataPointSelector(RecordingLoader(failing={"https://img/bad.jpg"}), on_error=errors.append)
    selector.displayed = "https://img/old.jpg"

    outcome = asyncio.run(selector.select(_point("https://img/bad.jpg")))

    assert isinstance(outcome, Failed)
    assert outcome.reason == "status 404"
    assert selector.displayed is None
    assert errors == [IMAGE_LOAD_FAILED_MESSAGE]


def test_latest_selection_wins() -> None:
    async def scenario():
        gate = asyncio.Event()

        async def loader(url: str) -> None:
            if url == "https://img/slow.jpg":
                await gate.wait()

        selector = DataPointSelector(loader)
        first = asyncio.create_task(selector.select(_point("https://img/slow.jpg")))
        await asyncio.sleep(0)
        second = await selector.select(_point("https://img/fast.jpg"))
        gate.set()
        return await first, second, selector.displayed

    first, second, displayed = asyncio.run(scenario())

    assert first == Superseded("https://img/slow.jpg")
    assert second == Displayed("https://img/fast.jpg")
    assert displayed == "https://img/fast.jpg"


def test_stale_failure_does_not_surface_error() -> None:
    errors: List[str] = []

    async def scenario():
        gate = asyncio.Event()

        async def loader(url: str) -> None:
            if url == "https://img/slow.jpg":
                await gate.wait()
                raise ImageLoadError("timeout")

        selector = DataPointSelector(loader, on_error=errors.append)
        first = asyncio.create_task(selector.select(_point("https://img/slow.jpg")))
        await asyncio.sleep(0)
        await selector.select(_point("https://img/fast.jpg"))
        gate.set()
        return await first, selector.displayed

    outcome, displayed = asyncio.run(scenario())

    assert outcome == Superseded("https://img/slow.jpg")
    assert displayed == "https://img/fast.jpg"
    assert errors == []


def test_clear_discards_in_flight_load() -> None:
    async def scenario():
        gate = asyncio.Event()

        async def loader(url: str) -> None:
            await gate.wait()

        selector = DataPointSelector(loader)
        pending = asyncio.create_task(selector.select(_point("https://img/a.jpg")))
        await asyncio.sleep(0)
        selector.clear()
        gate.set()
        return await pending, selector.displayed

    outcome, displayed = asyncio.run(scenario())

    assert outcome == Superseded("https://img/a.jpg")
    assert displayed is None


def _load_with(handler) -> None:
    async def run() -> None:
        loader = HttpImageLoader(transport=httpx.MockTransport(handler))
        try:
            await loader("https://img.example/frame.jpg")
        finally:
            await loader.aclose()

    asyncio.run(run())


def test_http_loader_accepts_images() -> None:
    _load_with(lambda request: httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"\xff\xd8"))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, text="missing"),
        httpx.Response(200, headers={"content-type": "text/html"}, text="<html></html>"),
        httpx.Response(200, headers={"content-type": "image/png"}, content=b""),
    ],
)
def test_http_loader_rejects_unusable_responses(response: httpx.Response) -> None:
    with pytest.raises(ImageLoadError):
        _load_with(lambda request: response)


def test_http_loader_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ImageLoadError):
        _load_with(handler)
