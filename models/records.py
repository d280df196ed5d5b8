"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional


@dataclass(frozen=True, slots=True)
class Metric:
    """One physical quantity reported by the station."""

    name: str
    source_key: str
    label: str


TEMPERATURE = Metric("temperature", "temperature_c", "Temperature (°C)")
HUMIDITY = Metric("humidity", "humidity", "Humidity (%)")
PRESSURE = Metric("pressure", "pressure", "Pressure (hPa)")
WIND_MAX_SPEED = Metric("wind_max_speed", "ambientweatherwindmaxspeed", "Wind Max Speed (km/h)")
WIND_SPEED = Metric("wind_speed", "wind_speed", "Wind Speed (km/h)")
WIND_DIRECTION = Metric("wind_direction", "wind_direction", "Wind Direction (°)")
AMBIENT_TEMPERATURE = Metric("ambient_temperature", "ambientweathertemp", "Ambient Temperature (°C)")
AMBIENT_HUMIDITY = Metric("ambient_humidity", "ambientweatherhumidity", "Ambient Humidity (%)")
RAIN = Metric("rain", "ambientweatherrain", "Rain (mm)")
UV = Metric("uv", "ambientweatheruv", "UV Index")
UVI = Metric("uvi", "ambientweatheruvi", "UVI")
LIGHT_LUX = Metric("light_lux", "ambientweatherlightlux", "Light Lux (lx)")

# Raw metrics in export column order.
METRICS: tuple[Metric, ...] = (
    TEMPERATURE,
    HUMIDITY,
    PRESSURE,
    WIND_MAX_SPEED,
    WIND_SPEED,
    WIND_DIRECTION,
    AMBIENT_TEMPERATURE,
    AMBIENT_HUMIDITY,
    RAIN,
    UV,
    UVI,
    LIGHT_LUX,
)

# Derived from light_lux, display only.
SOLAR_IRRADIANCE = Metric("solar_irradiance", "", "Solar Irradiance (W/m²)")

DISPLAY_METRICS: tuple[Metric, ...] = (SOLAR_IRRADIANCE, *METRICS)

IMAGE_KEY = "image_url"


@dataclass(frozen=True, slots=True)
class RawReading:
    """A single multi-metric sample exactly as delivered by the history source.

    Scalars are kept verbatim; coercion happens in the transformer so that a
    malformed value still yields an aligned point.
    """

    timestamp: str
    temperature: Any = None
    humidity: Any = None
    pressure: Any = None
    wind_max_speed: Any = None
    wind_speed: Any = None
    wind_direction: Any = None
    ambient_temperature: Any = None
    ambient_humidity: Any = None
    rain: Any = None
    uv: Any = None
    uvi: Any = None
    light_lux: Any = None
    image_url: Optional[str] = None

    def scalar(self, metric: Metric) -> Any:
        return getattr(self, metric.name)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RawReading":
        if not isinstance(payload, Mapping):
            raise TypeError(f"Reading must be an object, got {type(payload).__name__}.")
        timestamp = payload.get("timestamp")
        if not isinstance(timestamp, str):
            raise TypeError("Reading is missing a timestamp string.")
        image_url = payload.get(IMAGE_KEY)
        return cls(
            timestamp=timestamp,
            image_url=image_url if isinstance(image_url, str) else None,
            **{metric.name: payload.get(metric.source_key) for metric in METRICS},
        )


@dataclass(frozen=True, slots=True)
class DateRange:
    """Validated, inclusive calendar-date query range."""

    start: date
    end: date
    same_day: bool

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()

    @property
    def tick_format(self) -> str:
        return "hourly" if self.same_day else "daily"

    def query_params(self) -> dict[str, str]:
        return {"startDate": self.start_iso, "endDate": self.end_iso}
