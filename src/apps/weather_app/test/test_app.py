"""Unit tests for the WeatherApp coordinator."""

import asyncio
from datetime import datetime, timezone

import pytest

from src.apps.weather_app.app import WeatherApp
from src.apps.weather_app.ui_controller import UIController
from src.config import DEFAULT_LOCATIONS, ERRORS, MESSAGES, STORAGE_RECENT_SEARCHES
from src.tools.api_tools.weather_api.geolocation import (
    GeolocationProvider,
    PositionError,
    PositionErrorCode,
)
from src.tools.api_tools.weather_api.schemas import NormalizedWeatherRecord, Position
from src.tools.data_tools.weather_db.weather_db import (
    LocalStorage,
    get_last_search,
    load_preferences,
    load_recent_searches,
    set_last_search,
)
from src.tools.shared_libraries.errors import NetworkError


def make_record(location: str = 'Oradea', temperature: int = 20) -> NormalizedWeatherRecord:
    return NormalizedWeatherRecord(
        location=location,
        country='RO',
        temperature=temperature,
        feels_like=temperature - 1,
        description='clear sky',
        icon='☀️',
        humidity=40,
        pressure=1013,
        wind_speed=10,
        wind_direction=180,
        visibility=10000,
        sunrise=1751769848000,
        sunset=1751826572000,
        timestamp=datetime.now(timezone.utc),
    )


class FakeWeatherService:
    """Records lookups; can fail or block until released."""

    units = 'metric'

    def __init__(self, error: Exception | None = None, block: bool = False):
        self.error = error
        self.block = block
        self.started = asyncio.Event() if block else None
        self.release = asyncio.Event() if block else None
        self.city_calls: list[str] = []
        self.coordinate_calls: list[tuple[float, float]] = []

    async def fetch_by_city(self, name: str) -> NormalizedWeatherRecord:
        self.city_calls.append(name)
        if self.block:
            self.started.set()
            await self.release.wait()
        if self.error:
            raise self.error
        return make_record(name)

    async def fetch_by_coordinates(self, lat: float, lon: float) -> NormalizedWeatherRecord:
        self.coordinate_calls.append((lat, lon))
        if self.error:
            raise self.error
        return make_record('Your location')


class FakeProvider(GeolocationProvider):
    def __init__(self, result):
        self.result = result

    def get_current_position(self, on_success, on_error, options):
        if isinstance(self.result, PositionError):
            on_error(self.result)
        else:
            on_success(self.result)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / 'weather.db'))


def make_app(storage, service=None, provider=None, confirm=None) -> WeatherApp:
    app = WeatherApp(
        weather_service=service or FakeWeatherService(),
        ui_controller=UIController(confirm=confirm),
        storage=storage,
        geolocation=provider,
    )
    app.load_state()
    return app


class TestSearchWeather:
    """Tests for the city search sequence."""

    def test_successful_search(self, storage):
        """Test render, favicon, history, last search and title updates."""
        service = FakeWeatherService()
        app = make_app(storage, service)

        record = asyncio.run(app.search_weather('  lon dra  '))

        assert service.city_calls == ['Lon Dra']
        assert record.location == 'Lon Dra'
        assert app.current_weather_data == record
        ui = app.ui_controller
        assert ui.elements['location'].text == 'Lon Dra'
        assert ui.favicon == '☀️'
        assert ui.title == '20°C in Lon Dra - Weather App'
        assert not ui.is_loading_active()
        assert list(app.recent_searches) == ['Lon Dra']
        assert list(load_recent_searches(storage)) == ['Lon Dra']
        assert get_last_search(storage) == 'Lon Dra'
        assert [item.city for item in ui.recent_items] == ['Lon Dra']

    def test_second_search_while_in_flight_is_ignored(self, storage):
        """Test only one request is in flight at a time."""
        async def scenario():
            service = FakeWeatherService(block=True)
            app = make_app(storage, service)

            first = asyncio.create_task(app.search_weather('Oradea'))
            await service.started.wait()
            second = await app.search_weather('Tokyo')
            service.release.set()
            await first
            return service, second

        service, second = asyncio.run(scenario())

        assert second is None
        assert service.city_calls == ['Oradea']

    def test_fetch_failure_keeps_persisted_state(self, storage):
        """Test a failed fetch shows the error and leaves storage alone."""
        set_last_search(storage, 'Iași')
        service = FakeWeatherService(error=NetworkError(ERRORS['LOCATION_NOT_FOUND'], status_code=404))
        app = make_app(storage, service)

        result = asyncio.run(app.search_weather('Atlantis'))

        assert result is None
        assert app.ui_controller.active_error() == ERRORS['LOCATION_NOT_FOUND']
        assert not app.ui_controller.is_loading_active()
        assert list(app.recent_searches) == []
        assert get_last_search(storage) == 'Iași'
        assert storage.get_item(STORAGE_RECENT_SEARCHES) is None

    def test_invalid_input_not_fetched(self, storage):
        """Test validation failures never reach the service."""
        service = FakeWeatherService()
        app = make_app(storage, service)

        asyncio.run(app.search_weather('<b>'))

        assert service.city_calls == []
        assert app.ui_controller.active_error() == ERRORS['CITY_INVALID_CHARS']

    def test_blank_input_ignored(self, storage):
        """Test blank input is a silent no-op."""
        service = FakeWeatherService()
        app = make_app(storage, service)

        assert asyncio.run(app.search_weather('   ')) is None
        assert service.city_calls == []
        assert app.ui_controller.active_error() is None

    def test_history_bound_and_order(self, storage):
        """Test repeated searches keep five unique entries."""
        app = make_app(storage)
        cities = ['Oradea', 'Iași', 'Arad', 'Sibiu', 'Brașov', 'Deva', 'Iași']

        async def scenario():
            for city in cities:
                await app.search_weather(city)

        asyncio.run(scenario())

        assert list(app.recent_searches) == ['Iași', 'Deva', 'Brașov', 'Sibiu', 'Arad']
        assert list(load_recent_searches(storage)) == list(app.recent_searches)

    def test_recent_item_triggers_search(self, storage):
        """Test activating a recent item searches that city."""
        service = FakeWeatherService()
        app = make_app(storage, service)
        asyncio.run(app.search_weather('Oradea'))

        asyncio.run(app.ui_controller.recent_items[0].key_down('Enter'))

        assert service.city_calls == ['Oradea', 'Oradea']


class TestInit:
    """Tests for startup."""

    def test_initial_fetch_uses_default_city(self, storage):
        """Test the first default location is loaded on a fresh start."""
        service = FakeWeatherService()
        app = WeatherApp(service, UIController(), storage)

        asyncio.run(app.init())

        assert service.city_calls == [DEFAULT_LOCATIONS[0]]
        assert app.is_initialized

    def test_initialized_once_state_loaded(self, storage):
        """Test the flag is set by loading state, without a fetch."""
        service = FakeWeatherService()
        app = WeatherApp(service, UIController(), storage)
        assert app.get_app_status()['initialized'] is False

        app.load_state()

        assert app.get_app_status()['initialized'] is True
        assert service.city_calls == []

    def test_initial_fetch_uses_last_search(self, storage):
        """Test the last searched city is restored."""
        set_last_search(storage, 'Timișoara')
        service = FakeWeatherService()
        app = WeatherApp(service, UIController(), storage)

        asyncio.run(app.init())

        assert service.city_calls == ['Timișoara']

    def test_corrupt_storage_falls_back(self, storage):
        """Test unreadable history and preferences start from defaults."""
        storage.set_item(STORAGE_RECENT_SEARCHES, 'not json')
        storage.set_item('weatherAppPreferences', '{"theme": 42}')
        app = WeatherApp(FakeWeatherService(), UIController(), storage)

        asyncio.run(app.init())

        assert list(app.recent_searches) == [DEFAULT_LOCATIONS[0]]
        assert app.ui_controller.theme == 'light'

    def test_saved_theme_applied(self, storage):
        """Test the stored theme is applied at startup."""
        make_app(storage).set_theme('dark')

        app = make_app(storage)

        assert app.ui_controller.theme == 'dark'
        assert load_preferences(storage).theme == 'dark'


class TestCurrentLocation:
    """Tests for the geolocation sequence."""

    def test_successful_location_lookup(self, storage):
        """Test position resolution, coordinate fetch and success toast."""
        service = FakeWeatherService()
        app = make_app(storage, service, FakeProvider(Position(latitude=47.0, longitude=21.9)))

        record = asyncio.run(app.request_current_location())

        assert service.coordinate_calls == [(47.0, 21.9)]
        assert record.location == 'Your location'
        assert app.ui_controller.active_toasts() == [MESSAGES['LOCATION_FOUND']]
        assert app.ui_controller.title == '20°C in Your location - Weather App'
        assert list(app.recent_searches) == []

    def test_permission_denied(self, storage):
        """Test permission denial shows its fixed message."""
        service = FakeWeatherService()
        provider = FakeProvider(PositionError(PositionErrorCode.PERMISSION_DENIED))
        app = make_app(storage, service, provider)

        assert asyncio.run(app.request_current_location()) is None

        assert app.ui_controller.active_error() == ERRORS['GEOLOCATION_DENIED']
        assert service.coordinate_calls == []
        assert not app.ui_controller.is_loading_active()

    def test_unsupported(self, storage):
        """Test a missing provider reports unsupported."""
        app = make_app(storage)

        asyncio.run(app.request_current_location())

        assert app.ui_controller.active_error() == ERRORS['GEOLOCATION_NOT_SUPPORTED']

    def test_fetch_failure_after_position(self, storage):
        """Test a fetch failure after a resolved position."""
        service = FakeWeatherService(error=NetworkError(ERRORS['NETWORK']))
        app = make_app(storage, service, FakeProvider(Position(latitude=1, longitude=2)))

        asyncio.run(app.request_current_location())

        assert app.ui_controller.active_error() == ERRORS['NETWORK']


class TestHistoryAndPreferences:
    """Tests for clear history, refresh, export and status."""

    def test_clear_requires_confirmation(self, storage):
        """Test declining keeps the history."""
        app = make_app(storage, confirm=lambda message: False)
        asyncio.run(app.search_weather('Oradea'))

        assert app.clear_recent_searches() is False
        assert list(app.recent_searches) == ['Oradea']

    def test_clear_after_confirmation(self, storage):
        """Test confirming clears and persists the empty list."""
        prompts = []

        def confirm(message):
            prompts.append(message)
            return True

        app = make_app(storage, confirm=confirm)
        asyncio.run(app.search_weather('Oradea'))

        assert app.clear_recent_searches() is True
        assert prompts == [MESSAGES['CONFIRM_CLEAR_HISTORY']]
        assert list(app.recent_searches) == []
        assert list(load_recent_searches(storage)) == []
        assert app.ui_controller.elements['recent_searches'].hidden
        assert MESSAGES['HISTORY_CLEARED'] in app.ui_controller.active_toasts()

    def test_refresh(self, storage):
        """Test refreshing re-fetches the displayed location."""
        service = FakeWeatherService()
        app = make_app(storage, service)

        assert asyncio.run(app.refresh_weather()) is None
        asyncio.run(app.search_weather('Oradea'))
        asyncio.run(app.refresh_weather())

        assert service.city_calls == ['Oradea', 'Oradea']
        assert MESSAGES['WEATHER_REFRESHED'] in app.ui_controller.active_toasts()

    def test_export_and_status(self, storage):
        """Test export data and status flags."""
        app = make_app(storage)
        assert app.export_weather_data() is None

        asyncio.run(app.search_weather('Oradea'))
        exported = app.export_weather_data()

        assert exported['location'] == 'Oradea'
        assert exported['temperature'] == 20
        assert 'exported_at' in exported
        assert app.get_app_status() == {
            'initialized': True,
            'has_weather_data': True,
            'recent_searches_count': 1,
            'is_loading': False,
        }

    def test_unexpected_error_shows_generic_message(self, storage):
        """Test the top-level handler."""
        app = make_app(storage)
        app.ui_controller.show_loading()

        app.handle_unexpected_error(RuntimeError('bug'))

        assert app.ui_controller.active_error() == ERRORS['UNEXPECTED']
        assert not app.ui_controller.is_loading_active()
