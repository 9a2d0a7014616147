"""Weather API Tool - OpenWeatherMap integration."""

import logging
import math
import random
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError as SchemaValidationError

from observability import trace_tool
from src.config import (
    API_BASE_URL,
    DEFAULT_WEATHER_ICON,
    DEMO_API_KEY,
    ERRORS,
    WEATHER_ICONS,
)
from src.tools.shared_libraries.errors import NetworkError

from .schemas import NormalizedWeatherRecord, OpenWeatherPayload


logger = logging.getLogger(__name__)

DEMO_LOCATION_NAME = 'Your location'

# Provider wind speed unit to km/h, per unit system
WIND_TO_KMH = {
    'metric': 3.6,  # m/s
    'standard': 3.6,  # m/s
    'imperial': 1.609344,  # mph
}

# (icon code, description, base temperature, base humidity)
DEMO_WEATHER_TYPES = (
    ('01d', 'clear sky', 25, 45),
    ('02d', 'partly cloudy', 22, 55),
    ('03d', 'cloudy', 18, 65),
    ('10d', 'rain', 15, 85),
    ('11d', 'thunderstorm', 16, 90),
    ('13d', 'snow', -2, 75),
    ('50d', 'fog', 12, 95),
)


def get_weather_icon(icon_code: str) -> str:
    """Map a provider icon code to a glyph, falling back to a generic one."""
    return WEATHER_ICONS.get(icon_code, DEFAULT_WEATHER_ICON)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up: 2.5 -> 3, -2.5 -> -2."""
    return math.floor(value + 0.5)


def normalize(raw_payload: dict, units: str = 'metric') -> NormalizedWeatherRecord:
    """Map a raw OpenWeatherMap payload to a NormalizedWeatherRecord.

    Args:
        raw_payload: Decoded JSON body of a /data/2.5/weather response.
        units: Unit system the payload was requested with; wind speed is
            converted to km/h from m/s or mph accordingly.

    Returns:
        The normalized record.

    Raises:
        NetworkError: If the payload does not match the expected schema.
    """
    try:
        payload = OpenWeatherPayload.model_validate(raw_payload)
    except SchemaValidationError as e:
        logger.warning(f'Weather payload failed schema validation: {e.error_count()} error(s)')
        raise NetworkError(ERRORS['API_ERROR']) from e

    condition = payload.weather[0]
    return NormalizedWeatherRecord(
        location=payload.name,
        country=payload.sys.country,
        temperature=round_half_up(payload.main.temp),
        feels_like=round_half_up(payload.main.feels_like),
        description=condition.description,
        icon=get_weather_icon(condition.icon),
        humidity=payload.main.humidity,
        pressure=payload.main.pressure,
        wind_speed=round_half_up(payload.wind.speed * WIND_TO_KMH.get(units, 3.6)),
        wind_direction=payload.wind.deg,
        visibility=payload.visibility,
        sunrise=payload.sys.sunrise * 1000,
        sunset=payload.sys.sunset * 1000,
        timestamp=datetime.now(timezone.utc),
    )


class WeatherService:
    """Fetches current weather from OpenWeatherMap.

    Without an API key (or with the literal ``demo_key``) the service runs in
    demo mode and produces synthetic readings instead of calling the network.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = API_BASE_URL,
        units: str = 'metric',
        lang: str = 'en',
        client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.units = units
        self.lang = lang
        self._client = client
        self._rng = rng or random.Random()

    @property
    def demo_mode(self) -> bool:
        return not self.api_key or self.api_key == DEMO_API_KEY

    def build_params(self, **location) -> dict:
        """Query parameters for a lookup keyed by ``q`` or ``lat``/``lon``."""
        return {
            **location,
            'appid': self.api_key,
            'units': self.units,
            'lang': self.lang,
        }

    def build_url(self, params: dict) -> str:
        """Fully encoded request URL for the given query parameters."""
        return str(httpx.URL(self.base_url, params=params))

    @trace_tool(name='weather_api.fetch_by_city')
    async def fetch_by_city(self, name: str) -> NormalizedWeatherRecord:
        """Get current weather for a city.

        Args:
            name: The city name (e.g., "Oradea", "Tokyo", "New York").

        Returns:
            The normalized weather record.

        Raises:
            NetworkError: If the request fails or the response is unusable.
        """
        if self.demo_mode:
            logger.info(f'Demo mode: generating weather for {name}')
            return self.simulated_weather(name)
        return await self._fetch(self.build_params(q=name))

    @trace_tool(name='weather_api.fetch_by_coordinates')
    async def fetch_by_coordinates(self, lat: float, lon: float) -> NormalizedWeatherRecord:
        """Get current weather for a latitude/longitude pair."""
        if self.demo_mode:
            logger.info('Demo mode: generating weather for coordinates')
            return self.simulated_weather(DEMO_LOCATION_NAME)
        return await self._fetch(self.build_params(lat=lat, lon=lon))

    async def _fetch(self, params: dict) -> NormalizedWeatherRecord:
        logger.debug(f"Requesting weather for {params.get('q') or (params.get('lat'), params.get('lon'))}")
        try:
            if self._client is not None:
                response = await self._client.get(self.base_url, params=params)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f'Weather API returned HTTP {status}')
            if status == 404:
                raise NetworkError(ERRORS['LOCATION_NOT_FOUND'], status_code=status) from e
            raise NetworkError(ERRORS['API_ERROR'], status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning(f'Weather API request failed: {type(e).__name__}')
            raise NetworkError(ERRORS['NETWORK']) from e
        except ValueError as e:
            logger.warning('Invalid JSON response from weather API')
            raise NetworkError(ERRORS['API_ERROR']) from e

        if not isinstance(data, dict):
            raise NetworkError(ERRORS['API_ERROR'])
        return normalize(data, self.units)

    def normalize(self, raw_payload: dict) -> NormalizedWeatherRecord:
        return normalize(raw_payload, self.units)

    def simulated_weather(self, city: str) -> NormalizedWeatherRecord:
        """Generate a plausible synthetic reading for demo mode."""
        rng = self._rng
        icon_code, description, base_temp, base_humidity = rng.choice(DEMO_WEATHER_TYPES)
        temp = base_temp + rng.randint(-4, 3)

        now = datetime.now()
        sunrise = now.replace(hour=6, minute=30, second=0, microsecond=0)
        sunset = now.replace(hour=18, minute=30, second=0, microsecond=0)
        sunrise_ms = int(sunrise.timestamp() * 1000) + rng.randint(0, 59) * 60_000
        sunset_ms = int(sunset.timestamp() * 1000) + rng.randint(0, 119) * 60_000

        return NormalizedWeatherRecord(
            location=city,
            country='RO',
            temperature=temp,
            feels_like=temp + rng.randint(-3, 2),
            description=description,
            icon=get_weather_icon(icon_code),
            humidity=min(100, max(0, base_humidity + rng.randint(-10, 9))),
            pressure=1013 + rng.randint(-20, 19),
            wind_speed=rng.randint(5, 29),
            wind_direction=rng.randint(0, 359),
            visibility=rng.randint(5000, 9999),
            sunrise=sunrise_ms,
            sunset=sunset_ms,
            timestamp=datetime.now(timezone.utc),
        )
