"""Error taxonomy for the weather app.

Every error carries a user-facing ``message`` that the coordinator can put
straight into the error banner.
"""

from enum import Enum

from src.config import ERRORS


class WeatherAppError(Exception):
    """Base class for errors surfaced to the user."""

    default_message = ERRORS['UNEXPECTED']

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WeatherAppError):
    """Exception for invalid city input."""


class NetworkError(WeatherAppError):
    """Exception for failed or unusable weather API responses."""

    default_message = ERRORS['API_ERROR']

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeolocationErrorKind(str, Enum):
    PERMISSION_DENIED = 'PermissionDenied'
    POSITION_UNAVAILABLE = 'PositionUnavailable'
    TIMEOUT = 'Timeout'
    UNSUPPORTED = 'Unsupported'


GEOLOCATION_MESSAGES = {
    GeolocationErrorKind.PERMISSION_DENIED: ERRORS['GEOLOCATION_DENIED'],
    GeolocationErrorKind.POSITION_UNAVAILABLE: ERRORS['GEOLOCATION_UNAVAILABLE'],
    GeolocationErrorKind.TIMEOUT: ERRORS['GEOLOCATION_TIMEOUT'],
    GeolocationErrorKind.UNSUPPORTED: ERRORS['GEOLOCATION_NOT_SUPPORTED'],
}


class GeolocationError(WeatherAppError):
    """Exception for a failed position request."""

    def __init__(self, kind: GeolocationErrorKind):
        super().__init__(GEOLOCATION_MESSAGES[kind])
        self.kind = kind


class StorageError(WeatherAppError):
    """Exception for local storage read/write failures."""

    default_message = ERRORS['STORAGE']
