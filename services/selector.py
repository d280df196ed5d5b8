"""Chart point selection with preload-before-display image handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

import httpx

from models.dataset import ChannelPoint
from services.errors import ImageLoadError

logger = logging.getLogger(__name__)

IMAGE_LOAD_FAILED_MESSAGE = "Failed to load the selected image."

ImageLoader = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class Displayed:
    image_ref: str


@dataclass(frozen=True)
class Cleared:
    pass


@dataclass(frozen=True)
class Failed:
    image_ref: str
    reason: str


@dataclass(frozen=True)
class Superseded:
    """A newer selection started before this load resolved; nothing was applied."""

    image_ref: str


SelectionOutcome = Union[Displayed, Cleared, Failed, Superseded]


class HttpImageLoader:
    """Preloads an image URL and fails unless an image actually came back."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __call__(self, url: str) -> None:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ImageLoadError(f"status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ImageLoadError(str(exc) or exc.__class__.__name__) from exc

        content_type = response.headers.get("content-type", "")
        if content_type and not content_type.startswith("image/"):
            raise ImageLoadError(f"unexpected content type {content_type!r}")
        if not response.content:
            raise ImageLoadError("empty image body")


class DataPointSelector:
    """Resolves a chart point into the image shown to the user.

    The displayed image only changes once a load has succeeded. Each call
    bumps a generation counter; a load that resolves after a newer call began
    is reported as :class:`Superseded` and leaves the state alone.
    """

    def __init__(
        self,
        loader: ImageLoader,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._loader = loader
        self._on_error = on_error
        self._generation = 0
        self.displayed: Optional[str] = None

    async def select(self, point: ChannelPoint) -> SelectionOutcome:
        self._generation += 1
        generation = self._generation

        image_ref = point.image_ref
        if not image_ref:
            self.displayed = None
            return Cleared()

        try:
            await self._loader(image_ref)
        except ImageLoadError as exc:
            if generation != self._generation:
                return Superseded(image_ref)
            logger.warning(
                "Failed to preload selected image",
                extra={"image_ref": image_ref, "reason": str(exc)},
            )
            self.displayed = None
            if self._on_error is not None:
                self._on_error(IMAGE_LOAD_FAILED_MESSAGE)
            return Failed(image_ref, str(exc))

        if generation != self._generation:
            return Superseded(image_ref)
        self.displayed = image_ref
        return Displayed(image_ref)

    def clear(self) -> None:
        """Close the displayed image and ignore any load still in flight."""
        self._generation += 1
        self.displayed = None
