from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    base_url: str
    path: str
    fetch_timeout: float
    image_timeout: float


def _positive(value: Optional[float], default: float) -> float:
    if value is None or value <= 0:
        return default
    return value


def load_config(
    base_url: Optional[str] = None,
    fetch_timeout: Optional[float] = None,
    image_timeout: Optional[float] = None,
) -> CLIConfig:
    settings = get_settings()
    url = (base_url or "").strip() or settings.history_base_url
    return CLIConfig(
        base_url=url.rstrip("/"),
        path=settings.history_path,
        fetch_timeout=_positive(fetch_timeout, settings.fetch_timeout),
        image_timeout=_positive(image_timeout, settings.image_timeout),
    )
