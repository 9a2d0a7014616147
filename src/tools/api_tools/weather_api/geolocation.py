"""Device position lookup.

Position providers follow the callback shape of the browser geolocation API:
``get_current_position(on_success, on_error, options)``. The coordinator never
talks to a provider directly; it awaits :func:`resolve_current_position`, which
turns the callbacks into a single-resolution future.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

import httpx
from pydantic import ValidationError as SchemaValidationError

from src.config import GEOLOCATION_MAXIMUM_AGE_MS, GEOLOCATION_TIMEOUT_MS
from src.tools.shared_libraries.errors import GeolocationError, GeolocationErrorKind

from .schemas import Position


logger = logging.getLogger(__name__)

IP_GEOLOCATION_URL = 'http://ip-api.com/json/'


class PositionErrorCode(IntEnum):
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class PositionError(Exception):
    """Error object handed to a provider's error callback."""

    def __init__(self, code: PositionErrorCode, message: str = ''):
        super().__init__(message or code.name)
        self.code = code


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_ms: int = GEOLOCATION_TIMEOUT_MS
    maximum_age_ms: int = GEOLOCATION_MAXIMUM_AGE_MS


SuccessCallback = Callable[[Position], None]
ErrorCallback = Callable[[PositionError], None]

_ERROR_KINDS = {
    PositionErrorCode.PERMISSION_DENIED: GeolocationErrorKind.PERMISSION_DENIED,
    PositionErrorCode.POSITION_UNAVAILABLE: GeolocationErrorKind.POSITION_UNAVAILABLE,
    PositionErrorCode.TIMEOUT: GeolocationErrorKind.TIMEOUT,
}


class GeolocationProvider:
    """Base class for callback-style position providers."""

    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        raise NotImplementedError


class IPGeolocationProvider(GeolocationProvider):
    """Approximates the device position from its public IP address.

    The lookup runs on a worker thread and reports through the callbacks.
    The last position is reused while it is younger than
    ``options.maximum_age_ms``.
    """

    def __init__(
        self,
        permission_granted: bool = True,
        url: str = IP_GEOLOCATION_URL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.permission_granted = permission_granted
        self.url = url
        self._clock = clock
        self._cached: tuple[Position, float] | None = None

    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None:
        if not self.permission_granted:
            on_error(PositionError(PositionErrorCode.PERMISSION_DENIED))
            return

        if self._cached is not None:
            position, fetched_at = self._cached
            if (self._clock() - fetched_at) * 1000 <= options.maximum_age_ms:
                logger.debug('Using cached position')
                on_success(position)
                return

        worker = threading.Thread(
            target=self._lookup,
            args=(on_success, on_error, options),
            daemon=True,
        )
        worker.start()

    def _lookup(self, on_success: SuccessCallback, on_error: ErrorCallback, options: PositionOptions) -> None:
        try:
            response = httpx.get(self.url, timeout=options.timeout_ms / 1000)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            on_error(PositionError(PositionErrorCode.TIMEOUT))
            return
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f'IP geolocation lookup failed: {e}')
            on_error(PositionError(PositionErrorCode.POSITION_UNAVAILABLE))
            return

        if not isinstance(data, dict) or data.get('status') == 'fail':
            message = data.get('message') if isinstance(data, dict) else type(data).__name__
            logger.warning(f'IP geolocation returned no position: {message}')
            on_error(PositionError(PositionErrorCode.POSITION_UNAVAILABLE))
            return

        try:
            position = Position(latitude=data.get('lat'), longitude=data.get('lon'))
        except SchemaValidationError as e:
            logger.warning(f'IP geolocation returned unusable coordinates: {e.error_count()} error(s)')
            on_error(PositionError(PositionErrorCode.POSITION_UNAVAILABLE))
            return

        self._cached = (position, self._clock())
        on_success(position)


async def resolve_current_position(
    provider: GeolocationProvider | None,
    options: PositionOptions | None = None,
) -> Position:
    """Await a single position from a callback-style provider.

    Only the first callback invocation settles the result; later calls are
    ignored. A provider that never answers is cut off after
    ``options.timeout_ms``.

    Raises:
        GeolocationError: With the kind matching the provider's error code,
            ``TIMEOUT`` when no answer arrives in time, or ``UNSUPPORTED``
            when no provider is available.
    """
    if provider is None:
        raise GeolocationError(GeolocationErrorKind.UNSUPPORTED)

    options = options or PositionOptions()
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Position] = loop.create_future()

    def settle(setter: Callable, value) -> None:
        if not future.done():
            setter(value)

    def dispatch(setter: Callable, value) -> None:
        try:
            loop.call_soon_threadsafe(settle, setter, value)
        except RuntimeError:
            logger.debug('Position answer arrived after the request was abandoned')

    def on_success(position: Position) -> None:
        dispatch(future.set_result, position)

    def on_error(error: PositionError) -> None:
        kind = _ERROR_KINDS.get(error.code, GeolocationErrorKind.POSITION_UNAVAILABLE)
        dispatch(future.set_exception, GeolocationError(kind))

    provider.get_current_position(on_success, on_error, options)

    try:
        return await asyncio.wait_for(future, timeout=options.timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        raise GeolocationError(GeolocationErrorKind.TIMEOUT) from e
