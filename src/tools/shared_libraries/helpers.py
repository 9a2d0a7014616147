"""Shared helper functions for formatting weather data."""

from datetime import datetime, timezone

from src.config import APP_NAME


def format_temperature(temp: int, units: str = 'metric') -> str:
    """Format temperature with unit symbol.

    Args:
        temp: Temperature value, already rounded.
        units: "metric" for Celsius, "imperial" for Fahrenheit, "standard" for Kelvin.

    Returns:
        Formatted temperature string.
    """
    if units == 'standard':
        return f'{temp}K'
    unit_symbol = 'C' if units == 'metric' else 'F'
    return f'{temp}°{unit_symbol}'


def format_visibility(meters: int) -> str:
    """Format visibility in kilometres with one decimal."""
    return f'{meters / 1000:.1f} km'


def format_clock(epoch_ms: int) -> str:
    """Format an epoch-milliseconds instant as local HH:MM."""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime('%H:%M')


def get_timestamp() -> str:
    """Get current UTC timestamp in ISO format.

    Returns:
        ISO formatted timestamp string.
    """
    return datetime.now(timezone.utc).isoformat()


def format_page_title(temperature: int, location: str, units: str = 'metric') -> str:
    """Build the page title shown after a successful lookup."""
    return f'{format_temperature(temperature, units)} in {location} - {APP_NAME}'


def format_weather_summary(weather_data: dict, units: str = 'metric') -> str:
    """Format weather data into a human-readable summary.

    Args:
        weather_data: Normalized weather record as a dictionary.
        units: Unit system the record was fetched with.

    Returns:
        Formatted weather summary string.
    """
    city = weather_data.get('location', 'Unknown')
    country = weather_data.get('country', '')
    temp = weather_data.get('temperature', 'N/A')
    desc = weather_data.get('description', 'N/A')
    humidity = weather_data.get('humidity', 'N/A')

    location = f'{city}, {country}' if country else city
    temp_str = format_temperature(temp, units) if isinstance(temp, int) else temp

    return (
        f'{location}: {temp_str}, {desc}, '
        f'Humidity: {humidity}%'
    )
