"""Weather App configuration - constants and environment settings."""

import os

from pydantic import BaseModel, Field


API_BASE_URL = 'https://api.openweathermap.org/data/2.5/weather'
DEMO_API_KEY = 'demo_key'

MAX_RECENT_SEARCHES = 5
CITY_MIN_LENGTH = 2
CITY_MAX_LENGTH = 50

ERROR_DISPLAY_SECONDS = 5.0
SUCCESS_DISPLAY_SECONDS = 3.0

# Position request options, in milliseconds
GEOLOCATION_TIMEOUT_MS = 10_000
GEOLOCATION_MAXIMUM_AGE_MS = 300_000

STORAGE_RECENT_SEARCHES = 'weatherAppRecentSearches'
STORAGE_USER_PREFERENCES = 'weatherAppPreferences'
STORAGE_LAST_SEARCH = 'weatherAppLastSearch'

DEFAULT_LOCATIONS = (
    'Oradea',
    'București',
    'Cluj-Napoca',
    'Timișoara',
    'Iași',
    'Constanța',
)

THEMES = ('light', 'dark')

APP_NAME = 'Weather App'

WEATHER_ICONS = {
    '01d': '☀️',  # clear sky day
    '01n': '🌙',  # clear sky night
    '02d': '⛅',  # few clouds day
    '02n': '☁️',
    '03d': '☁️',  # scattered clouds
    '03n': '☁️',
    '04d': '☁️',  # broken clouds
    '04n': '☁️',
    '09d': '🌧️',  # shower rain
    '09n': '🌧️',
    '10d': '🌦️',  # rain day
    '10n': '🌧️',
    '11d': '⛈️',  # thunderstorm
    '11n': '⛈️',
    '13d': '❄️',  # snow
    '13n': '❄️',
    '50d': '🌫️',  # mist
    '50n': '🌫️',
}
DEFAULT_WEATHER_ICON = '🌤️'

ERRORS = {
    'NETWORK': 'Network error. Check your internet connection.',
    'LOCATION_NOT_FOUND': 'City not found. Please try again.',
    'API_ERROR': 'Could not retrieve weather data.',
    'GEOLOCATION_DENIED': 'Access to your location was denied.',
    'GEOLOCATION_UNAVAILABLE': 'Your location is not available.',
    'GEOLOCATION_TIMEOUT': 'The location request timed out. Please try again.',
    'GEOLOCATION_NOT_SUPPORTED': 'Geolocation is not supported.',
    'STORAGE': 'Could not access local storage.',
    'EMPTY_CITY': 'Please enter a city name.',
    'CITY_TOO_SHORT': f'The city name must have at least {CITY_MIN_LENGTH} characters.',
    'CITY_TOO_LONG': 'The city name is too long.',
    'CITY_INVALID_CHARS': 'The city name contains invalid characters.',
    'DISPLAY': 'Could not display the weather data.',
    'REFRESH': 'Could not refresh the weather data.',
    'UNEXPECTED': 'An unexpected error occurred.',
}

MESSAGES = {
    'LOADING': 'Loading weather data...',
    'SEARCHING': 'Looking up the weather for {city}...',
    'LOCATING': 'Finding your location...',
    'LOCATION_WEATHER': 'Looking up the weather for your location...',
    'REFRESHING': 'Refreshing the weather data...',
    'LOCATION_FOUND': 'Your location was found!',
    'WEATHER_REFRESHED': 'The weather data was refreshed.',
    'HISTORY_CLEARED': 'Recent searches were cleared.',
    'CONFIRM_CLEAR_HISTORY': 'Are you sure you want to clear all recent searches?',
}


class Settings(BaseModel):
    """Runtime settings read from the environment."""

    api_key: str | None = Field(default=None, description='OpenWeatherMap API key')
    units: str = Field(default='metric', description='metric, imperial or standard')
    lang: str = Field(default='en', description='Language for weather descriptions')
    db_dir: str = Field(default='./data', description='Local storage directory')
    geolocation_enabled: bool = Field(default=True)
    log_level: str = Field(default='INFO')

    @property
    def demo_mode(self) -> bool:
        return not self.api_key or self.api_key == DEMO_API_KEY

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables."""
        return cls(
            api_key=os.getenv('OPENWEATHER_API_KEY') or None,
            units=os.getenv('WEATHER_UNITS', 'metric'),
            lang=os.getenv('WEATHER_LANG', 'en'),
            db_dir=os.getenv('WEATHER_DB_DIR', './data'),
            geolocation_enabled=os.getenv('WEATHER_GEOLOCATION', 'on').lower() not in ('off', '0', 'false', 'no'),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )
