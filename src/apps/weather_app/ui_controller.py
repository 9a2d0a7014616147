"""UI Controller - owns the display surfaces and the loading/error/toast state.

Front ends (Streamlit page, command line) only read the surfaces and forward
user events; all display decisions are made here.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from src.config import (
    APP_NAME,
    CITY_MAX_LENGTH,
    CITY_MIN_LENGTH,
    DEFAULT_WEATHER_ICON,
    ERROR_DISPLAY_SECONDS,
    ERRORS,
    MESSAGES,
    SUCCESS_DISPLAY_SECONDS,
    THEMES,
)
from src.tools.api_tools.weather_api.schemas import NormalizedWeatherRecord
from src.tools.shared_libraries.errors import ValidationError
from src.tools.shared_libraries.helpers import (
    format_clock,
    format_temperature,
    format_visibility,
)


logger = logging.getLogger(__name__)

INVALID_CITY_CHARS = re.compile(r'[<>]')

SURFACES = (
    # form
    'search_input',
    'location_button',
    # state panels
    'loading',
    'error',
    'weather_card',
    'recent_searches',
    # weather card
    'location',
    'weather_icon',
    'temperature',
    'description',
    'feels_like',
    'humidity',
    'pressure',
    'wind_speed',
    'visibility',
    'sunrise',
    'sunset',
)
HIDDEN_AT_START = ('loading', 'error', 'weather_card', 'recent_searches')

ACTIVATION_KEYS = ('Enter', ' ')
DISMISS_KEY = 'Escape'

SearchCallback = Callable[[str], Awaitable[object]]


@dataclass
class Surface:
    """One display element: its text, visibility and input state."""

    text: str = ''
    hidden: bool = False
    disabled: bool = False
    value: str = ''
    validity: str | None = None  # 'valid' | 'invalid' for live input feedback


@dataclass
class Notice:
    message: str
    expires_at: float


@dataclass
class RecentItem:
    """A keyboard-accessible entry of the recent search list."""

    city: str
    label: str
    on_activate: SearchCallback | None = field(default=None, repr=False)
    role: str = 'button'

    async def click(self) -> None:
        if self.on_activate is not None:
            await self.on_activate(self.city)

    async def key_down(self, key: str) -> bool:
        """Handle a key press; Enter and Space activate the item."""
        if key not in ACTIVATION_KEYS:
            return False
        await self.click()
        return True


class UIController:
    """Presentation state for the weather app."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        confirm: Callable[[str], bool] | None = None,
        units: str = 'metric',
    ):
        self._clock = clock
        self._confirm = confirm
        self.units = units
        self.elements: dict[str, Surface] = {name: Surface() for name in SURFACES}
        for name in HIDDEN_AT_START:
            self.elements[name].hidden = True
        self.is_loading = False
        self.theme = 'light'
        self.favicon = DEFAULT_WEATHER_ICON
        self.title = APP_NAME
        self.recent_items: list[RecentItem] = []
        self._error: Notice | None = None
        self._toasts: list[Notice] = []
        self._on_search: SearchCallback | None = None
        self._on_location_request: Callable[[], Awaitable[object]] | None = None

    # -- event wiring -----------------------------------------------------

    def setup_event_listeners(
        self,
        on_search: SearchCallback | None = None,
        on_location_request: Callable[[], Awaitable[object]] | None = None,
    ) -> None:
        self._on_search = on_search
        self._on_location_request = on_location_request

    async def submit_search(self, value: str | None = None) -> None:
        """Search form submission; blank input is ignored."""
        raw = self.elements['search_input'].value if value is None else value
        city = raw.strip()
        if city and self._on_search is not None:
            await self._on_search(city)

    async def request_location(self) -> None:
        if self._on_location_request is not None:
            await self._on_location_request()

    def on_input(self, value: str) -> None:
        """Live input feedback, as the user types."""
        search_input = self.elements['search_input']
        search_input.value = value
        if not value:
            search_input.validity = None
        else:
            valid = CITY_MIN_LENGTH <= len(value) <= CITY_MAX_LENGTH
            search_input.validity = 'valid' if valid else 'invalid'

    # -- loading / error / success ----------------------------------------

    def show_loading(self, message: str = MESSAGES['LOADING']) -> None:
        self.is_loading = True
        self.elements['loading'].text = f'🔄 {message}'
        self.elements['loading'].hidden = False
        self.elements['weather_card'].hidden = True
        self.hide_error()
        self.elements['search_input'].disabled = True
        self.elements['location_button'].disabled = True

    def hide_loading(self) -> None:
        self.is_loading = False
        self.elements['loading'].hidden = True
        self.elements['search_input'].disabled = False
        self.elements['location_button'].disabled = False

    def is_loading_active(self) -> bool:
        return self.is_loading

    def show_error(self, message: str) -> None:
        """Show the error banner; it dismisses itself after a few seconds."""
        self.elements['error'].text = message
        self.elements['error'].hidden = False
        self._error = Notice(message, self._clock() + ERROR_DISPLAY_SECONDS)
        self.hide_loading()

    def hide_error(self) -> None:
        self._error = None
        self.elements['error'].hidden = True

    def handle_key(self, key: str) -> bool:
        """Page-level key press; Escape dismisses the error banner."""
        if key != DISMISS_KEY or self._error is None:
            return False
        self.hide_error()
        return True

    def active_error(self) -> str | None:
        """The current error message, or None once it has expired."""
        if self._error is not None and self._clock() >= self._error.expires_at:
            self.hide_error()
        return self._error.message if self._error else None

    def show_success(self, message: str) -> None:
        self._toasts.append(Notice(message, self._clock() + SUCCESS_DISPLAY_SECONDS))

    def active_toasts(self) -> list[str]:
        now = self._clock()
        self._toasts = [toast for toast in self._toasts if now < toast.expires_at]
        return [toast.message for toast in self._toasts]

    # -- rendering --------------------------------------------------------

    def display_weather(self, weather_data: NormalizedWeatherRecord) -> None:
        try:
            temperature = format_temperature(weather_data.temperature, self.units)
            feels_like = format_temperature(weather_data.feels_like, self.units)
            texts = {
                'location': weather_data.location,
                'weather_icon': weather_data.icon,
                'temperature': temperature,
                'description': weather_data.description,
                'feels_like': f'Feels like {feels_like}',
                'humidity': f'{weather_data.humidity}%',
                'pressure': f'{weather_data.pressure} hPa',
                'wind_speed': f'{weather_data.wind_speed} km/h',
                'visibility': format_visibility(weather_data.visibility),
                'sunrise': format_clock(weather_data.sunrise),
                'sunset': format_clock(weather_data.sunset),
            }
        except (OverflowError, OSError, ValueError) as e:
            logger.error(f'Error displaying weather data: {e}')
            self.show_error(ERRORS['DISPLAY'])
            return

        for name, text in texts.items():
            self.elements[name].text = text

        self.hide_loading()
        self.elements['weather_card'].hidden = False
        self.hide_error()
        self.reset_form()

    def hide_weather_card(self) -> None:
        self.elements['weather_card'].hidden = True

    def display_recent_searches(
        self,
        searches,
        on_item_click: SearchCallback | None,
    ) -> None:
        self.recent_items = [
            RecentItem(city=city, label=f'Search the weather for {city}', on_activate=on_item_click)
            for city in searches
        ]
        self.elements['recent_searches'].hidden = not self.recent_items

    def reset_form(self) -> None:
        self.elements['search_input'].value = ''
        self.elements['search_input'].validity = None

    def update_favicon(self, weather_icon: str) -> None:
        self.favicon = weather_icon

    def set_title(self, title: str) -> None:
        self.title = title

    def update_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f'Unknown theme: {theme}')
        self.theme = theme

    @property
    def theme_class(self) -> str:
        return f'{self.theme}-theme'

    def confirm(self, message: str) -> bool:
        """Ask the user to confirm; without a confirm hook the answer is no."""
        if self._confirm is None:
            return False
        return bool(self._confirm(message))

    # -- input ------------------------------------------------------------

    def validate_input(self, text: str | None) -> str:
        """Validate free-text city input.

        Returns:
            The trimmed city name.

        Raises:
            ValidationError: If the input is empty, too short, too long or
                contains disallowed characters.
        """
        trimmed = (text or '').strip()
        if not trimmed:
            raise ValidationError(ERRORS['EMPTY_CITY'])
        if len(trimmed) < CITY_MIN_LENGTH:
            raise ValidationError(ERRORS['CITY_TOO_SHORT'])
        if len(trimmed) > CITY_MAX_LENGTH:
            raise ValidationError(ERRORS['CITY_TOO_LONG'])
        if INVALID_CITY_CHARS.search(trimmed):
            raise ValidationError(ERRORS['CITY_INVALID_CHARS'])
        return trimmed

    @staticmethod
    def format_city_name(city: str) -> str:
        """Title-case each space-separated word: '  lon dra  ' -> 'Lon Dra'."""
        return ' '.join(
            word[:1].upper() + word[1:].lower()
            for word in city.strip().split(' ')
        )
