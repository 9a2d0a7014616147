"""Weather App - coordinates the service, the UI controller and local storage."""

import logging

from observability import trace_span
from src.config import DEFAULT_LOCATIONS, ERRORS, MESSAGES
from src.tools.api_tools.weather_api.geolocation import (
    GeolocationProvider,
    IPGeolocationProvider,
    PositionOptions,
    resolve_current_position,
)
from src.tools.api_tools.weather_api.schemas import NormalizedWeatherRecord
from src.tools.api_tools.weather_api.weather_api import WeatherService
from src.tools.data_tools.weather_db.history import RecentSearchList, UserPreferences
from src.tools.data_tools.weather_db.weather_db import (
    LocalStorage,
    get_db_path,
    get_last_search,
    load_preferences,
    load_recent_searches,
    save_preferences,
    save_recent_searches,
    set_last_search,
)
from src.tools.shared_libraries.errors import StorageError, WeatherAppError
from src.tools.shared_libraries.helpers import format_page_title, get_timestamp

from .ui_controller import UIController


logger = logging.getLogger(__name__)


class WeatherApp:
    """Application state: recent searches, preferences and the current reading.

    One instance is built at startup and handed to the front end.
    Expected failures (``WeatherAppError``) are turned into error banners
    here; anything else propagates to the front end's top-level handler.
    """

    def __init__(
        self,
        weather_service: WeatherService,
        ui_controller: UIController,
        storage: LocalStorage,
        geolocation: GeolocationProvider | None = None,
        position_options: PositionOptions | None = None,
    ):
        self.weather_service = weather_service
        self.ui_controller = ui_controller
        self.storage = storage
        self.geolocation = geolocation
        self.position_options = position_options or PositionOptions()
        self.recent_searches = RecentSearchList()
        self.preferences = UserPreferences()
        self.current_weather_data: NormalizedWeatherRecord | None = None
        self.is_initialized = False

    async def init(self) -> None:
        """Load saved state, wire the UI and fetch the initial weather."""
        self.load_state()
        await self.load_initial_weather()
        logger.info('Weather App initialized successfully')

    def load_state(self) -> None:
        """Load persisted searches and preferences and wire the UI events."""
        self.load_recent_searches()
        self.load_user_preferences()

        self.ui_controller.setup_event_listeners(
            on_search=self.search_weather,
            on_location_request=self.request_current_location,
        )
        self._display_recent_searches()
        self.is_initialized = True

    # -- lookups ----------------------------------------------------------

    @trace_span('weather_app.search_weather')
    async def search_weather(self, city: str) -> NormalizedWeatherRecord | None:
        """Look up the weather for a city typed by the user.

        Returns:
            The new record, or None if the search was refused or failed.
        """
        if not city or not city.strip() or self.ui_controller.is_loading_active():
            return None

        try:
            valid_city = self.ui_controller.validate_input(city)
        except WeatherAppError as e:
            self.ui_controller.show_error(e.message)
            return None

        formatted_city = self.ui_controller.format_city_name(valid_city)

        self.ui_controller.show_loading(MESSAGES['SEARCHING'].format(city=formatted_city))
        try:
            weather_data = await self.weather_service.fetch_by_city(formatted_city)
        except WeatherAppError as e:
            logger.warning(f'Error searching weather for {formatted_city}: {e.message}')
            self.ui_controller.show_error(e.message)
            return None

        self._show_weather(weather_data)
        self.add_to_recent_searches(formatted_city)
        self._update_title(weather_data)

        logger.info(f'Weather data loaded successfully for: {formatted_city}')
        return weather_data

    @trace_span('weather_app.request_current_location')
    async def request_current_location(self) -> NormalizedWeatherRecord | None:
        """Look up the weather for the device position."""
        if self.ui_controller.is_loading_active():
            return None

        try:
            self.ui_controller.show_loading(MESSAGES['LOCATING'])
            position = await resolve_current_position(self.geolocation, self.position_options)

            self.ui_controller.show_loading(MESSAGES['LOCATION_WEATHER'])
            weather_data = await self.weather_service.fetch_by_coordinates(
                position.latitude,
                position.longitude,
            )
        except WeatherAppError as e:
            logger.warning(f'Error getting current location weather: {e.message}')
            self.ui_controller.show_error(e.message)
            return None

        self._show_weather(weather_data)
        self._update_title(weather_data)
        self.ui_controller.show_success(MESSAGES['LOCATION_FOUND'])

        logger.info('Current location weather loaded successfully')
        return weather_data

    async def load_initial_weather(self) -> None:
        """Fetch the last searched city, or the first default location."""
        last_search = None
        try:
            last_search = get_last_search(self.storage)
        except StorageError:
            logger.warning('Could not read the last search, using the default city')
        await self.search_weather(last_search or DEFAULT_LOCATIONS[0])

    async def refresh_weather(self) -> NormalizedWeatherRecord | None:
        """Re-fetch the location currently displayed."""
        if self.current_weather_data is None or self.ui_controller.is_loading_active():
            return None

        try:
            self.ui_controller.show_loading(MESSAGES['REFRESHING'])
            weather_data = await self.weather_service.fetch_by_city(
                self.current_weather_data.location
            )
        except WeatherAppError as e:
            logger.warning(f'Error refreshing weather: {e.message}')
            self.ui_controller.show_error(ERRORS['REFRESH'])
            return None

        self._show_weather(weather_data)
        self.ui_controller.show_success(MESSAGES['WEATHER_REFRESHED'])
        return weather_data

    def _show_weather(self, weather_data: NormalizedWeatherRecord) -> None:
        self.ui_controller.display_weather(weather_data)
        self.ui_controller.update_favicon(weather_data.icon)
        self.current_weather_data = weather_data

    def _update_title(self, weather_data: NormalizedWeatherRecord) -> None:
        self.ui_controller.set_title(
            format_page_title(weather_data.temperature, weather_data.location, self.ui_controller.units)
        )

    # -- recent searches --------------------------------------------------

    def add_to_recent_searches(self, city: str) -> None:
        self.recent_searches.add(city)
        self._display_recent_searches()
        try:
            self.save_recent_searches()
            set_last_search(self.storage, city)
        except StorageError:
            logger.error(f'Error saving recent searches after adding {city}')

    def load_recent_searches(self) -> None:
        try:
            self.recent_searches = load_recent_searches(self.storage)
        except StorageError:
            logger.error('Error loading recent searches, starting empty')
            self.recent_searches = RecentSearchList()

    def save_recent_searches(self) -> None:
        save_recent_searches(self.storage, self.recent_searches)

    def clear_recent_searches(self, confirmed: bool = False) -> bool:
        """Clear the history after the user confirms.

        Args:
            confirmed: Skip the confirmation prompt; the caller already asked.

        Returns:
            True if the history was cleared.
        """
        if not confirmed and not self.ui_controller.confirm(MESSAGES['CONFIRM_CLEAR_HISTORY']):
            return False

        self.recent_searches.clear()
        try:
            self.save_recent_searches()
        except StorageError:
            logger.error('Error saving cleared recent searches')
        self.ui_controller.display_recent_searches([], None)
        self.ui_controller.show_success(MESSAGES['HISTORY_CLEARED'])
        return True

    def _display_recent_searches(self) -> None:
        self.ui_controller.display_recent_searches(self.recent_searches, self.search_weather)

    # -- preferences ------------------------------------------------------

    def load_user_preferences(self) -> None:
        try:
            self.preferences = load_preferences(self.storage)
        except StorageError:
            logger.error('Error loading user preferences, using defaults')
            self.preferences = UserPreferences()
        self.ui_controller.update_theme(self.preferences.theme)

    def save_user_preferences(self, **preferences) -> None:
        try:
            self.preferences = save_preferences(self.storage, **preferences)
        except StorageError:
            logger.error('Error saving user preferences')
            self.preferences = self.preferences.model_copy(update=preferences)

    def set_theme(self, theme: str) -> None:
        self.ui_controller.update_theme(theme)
        self.save_user_preferences(theme=theme)

    # -- reporting --------------------------------------------------------

    def export_weather_data(self) -> dict | None:
        if self.current_weather_data is None:
            return None

        return {
            'location': self.current_weather_data.location,
            'temperature': self.current_weather_data.temperature,
            'description': self.current_weather_data.description,
            'timestamp': self.current_weather_data.timestamp.isoformat(),
            'exported_at': get_timestamp(),
        }

    def get_app_status(self) -> dict:
        return {
            'initialized': self.is_initialized,
            'has_weather_data': self.current_weather_data is not None,
            'recent_searches_count': len(self.recent_searches),
            'is_loading': self.ui_controller.is_loading_active(),
        }

    def handle_unexpected_error(self, error: BaseException) -> None:
        """Top-level handler for failures outside the error taxonomy."""
        logger.error('Unexpected error', exc_info=error)
        self.ui_controller.show_error(ERRORS['UNEXPECTED'])


def build_app(settings, ui_controller: UIController | None = None, client=None) -> WeatherApp:
    """Construct a WeatherApp from Settings."""
    service = WeatherService(
        api_key=settings.api_key,
        units=settings.units,
        lang=settings.lang,
        client=client,
    )
    return WeatherApp(
        weather_service=service,
        ui_controller=ui_controller or UIController(units=settings.units),
        storage=LocalStorage(get_db_path(settings.db_dir)),
        geolocation=IPGeolocationProvider(permission_granted=settings.geolocation_enabled),
    )
