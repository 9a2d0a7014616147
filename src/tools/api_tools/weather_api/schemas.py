"""Schemas for the OpenWeatherMap payload and the normalized weather record."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra='ignore')


class WeatherCondition(_Payload):
    description: str
    icon: str


class MainReadings(_Payload):
    temp: float
    feels_like: float
    humidity: int
    pressure: int


class WindReadings(_Payload):
    speed: float
    deg: int = 0


class SunInfo(_Payload):
    country: str = ''
    sunrise: int
    sunset: int


class OpenWeatherPayload(_Payload):
    """Subset of the /data/2.5/weather response the app relies on."""

    name: str
    weather: list[WeatherCondition] = Field(min_length=1)
    main: MainReadings
    wind: WindReadings
    sys: SunInfo
    visibility: int = 0


class NormalizedWeatherRecord(BaseModel):
    """Canonical, unit-consistent weather reading.

    Sunrise and sunset are epoch milliseconds; wind speed is km/h;
    visibility is metres.
    """

    model_config = ConfigDict(frozen=True)

    location: str
    country: str
    temperature: int
    feels_like: int
    description: str
    icon: str = Field(min_length=1)
    humidity: int
    pressure: int
    wind_speed: int
    wind_direction: int
    visibility: int
    sunrise: int
    sunset: int
    timestamp: datetime


class Position(BaseModel):
    """A resolved device position."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    accuracy: float | None = None
