"""Unit tests for the UI controller."""

import asyncio
from datetime import datetime, timezone

import pytest

from src.apps.weather_app.ui_controller import UIController
from src.config import ERRORS
from src.tools.api_tools.weather_api.schemas import NormalizedWeatherRecord
from src.tools.shared_libraries.errors import ValidationError


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def make_record(**overrides) -> NormalizedWeatherRecord:
    fields = dict(
        location='Oradea',
        country='RO',
        temperature=33,
        feels_like=31,
        description='clear sky',
        icon='☀️',
        humidity=23,
        pressure=1007,
        wind_speed=6,
        wind_direction=50,
        visibility=10000,
        sunrise=1751769848000,
        sunset=1751826572000,
        timestamp=datetime.now(timezone.utc),
    )
    fields.update(overrides)
    return NormalizedWeatherRecord(**fields)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ui(clock):
    return UIController(clock=clock)


class TestValidateInput:
    """Tests for city input validation."""

    @pytest.mark.parametrize('text, message_key', [
        ('', 'EMPTY_CITY'),
        ('   ', 'EMPTY_CITY'),
        (None, 'EMPTY_CITY'),
        ('a', 'CITY_TOO_SHORT'),
        (' b ', 'CITY_TOO_SHORT'),
        ('x' * 51, 'CITY_TOO_LONG'),
        ('<script>', 'CITY_INVALID_CHARS'),
        ('Oradea>', 'CITY_INVALID_CHARS'),
        ('a<b', 'CITY_INVALID_CHARS'),
    ])
    def test_rejects(self, ui, text, message_key):
        """Test invalid inputs raise ValidationError with the right message."""
        with pytest.raises(ValidationError) as exc_info:
            ui.validate_input(text)
        assert exc_info.value.message == ERRORS[message_key]

    @pytest.mark.parametrize('text', ['Ia', 'x' * 50, 'Cluj-Napoca', 'São Paulo'])
    def test_accepts(self, ui, text):
        """Test boundary lengths and ordinary names pass."""
        assert ui.validate_input(text) == text

    def test_returns_trimmed(self, ui):
        """Test surrounding whitespace is removed."""
        assert ui.validate_input('  Oradea  ') == 'Oradea'


class TestFormatCityName:
    """Tests for title-casing city names."""

    @pytest.mark.parametrize('raw, formatted', [
        ('  lon dra  ', 'Lon Dra'),
        ('NEW YORK', 'New York'),
        ('cluj-napoca', 'Cluj-napoca'),
        ('iași', 'Iași'),
    ])
    def test_format(self, raw, formatted):
        """Test each word is capitalized."""
        assert UIController.format_city_name(raw) == formatted


class TestLoadingState:
    """Tests for the loading indicator and input locking."""

    def test_show_loading(self, ui):
        """Test loading shows the message and disables the controls."""
        ui.show_loading('Looking up Oradea...')

        assert ui.is_loading_active()
        assert ui.elements['loading'].hidden is False
        assert ui.elements['loading'].text == '🔄 Looking up Oradea...'
        assert ui.elements['search_input'].disabled
        assert ui.elements['location_button'].disabled
        assert ui.elements['weather_card'].hidden

    def test_hide_loading(self, ui):
        """Test hiding loading re-enables the controls."""
        ui.show_loading()
        ui.hide_loading()

        assert not ui.is_loading_active()
        assert ui.elements['loading'].hidden
        assert not ui.elements['search_input'].disabled
        assert not ui.elements['location_button'].disabled


class TestNotifications:
    """Tests for the error banner and success toasts."""

    def test_error_stops_loading(self, ui):
        """Test an error ends the loading state."""
        ui.show_loading()
        ui.show_error('boom')

        assert not ui.is_loading_active()
        assert ui.active_error() == 'boom'
        assert ui.elements['error'].hidden is False

    def test_error_auto_dismisses(self, ui, clock):
        """Test the banner disappears after five seconds."""
        ui.show_error('boom')
        clock.now += 4.9
        assert ui.active_error() == 'boom'
        clock.now += 0.2
        assert ui.active_error() is None
        assert ui.elements['error'].hidden

    def test_toast_auto_dismisses(self, ui, clock):
        """Test toasts disappear after three seconds."""
        ui.show_success('done')
        assert ui.active_toasts() == ['done']
        clock.now += 3.0
        assert ui.active_toasts() == []


class TestDisplayWeather:
    """Tests for rendering a record."""

    def test_surfaces_filled(self, ui):
        """Test every weather surface gets its text."""
        ui.show_loading()
        ui.on_input('oradea')
        record = make_record()
        ui.display_weather(record)

        elements = ui.elements
        assert elements['location'].text == 'Oradea'
        assert elements['weather_icon'].text == '☀️'
        assert elements['temperature'].text == '33°C'
        assert elements['feels_like'].text == 'Feels like 31°C'
        assert elements['humidity'].text == '23%'
        assert elements['pressure'].text == '1007 hPa'
        assert elements['wind_speed'].text == '6 km/h'
        assert elements['visibility'].text == '10.0 km'
        assert elements['sunrise'].text == datetime.fromtimestamp(record.sunrise / 1000).strftime('%H:%M')
        assert elements['weather_card'].hidden is False
        assert elements['search_input'].value == ''
        assert not ui.is_loading_active()

    def test_imperial_units(self, clock):
        """Test the temperature symbol follows the unit system."""
        ui = UIController(clock=clock, units='imperial')
        ui.display_weather(make_record(temperature=90))
        assert ui.elements['temperature'].text == '90°F'


class TestRecentSearches:
    """Tests for the recent search collection."""

    def test_hidden_when_empty(self, ui):
        """Test an empty list hides the section."""
        ui.display_recent_searches([], None)
        assert ui.elements['recent_searches'].hidden
        assert ui.recent_items == []

    def test_items_are_accessible(self, ui):
        """Test items carry a role and label."""
        ui.display_recent_searches(['Oradea', 'Iași'], None)

        assert [item.city for item in ui.recent_items] == ['Oradea', 'Iași']
        assert ui.recent_items[0].role == 'button'
        assert 'Oradea' in ui.recent_items[0].label
        assert ui.elements['recent_searches'].hidden is False

    def test_click_and_keyboard_activate(self, ui):
        """Test click, Enter and Space call the callback; other keys do not."""
        activated = []

        async def on_click(city):
            activated.append(city)

        ui.display_recent_searches(['Oradea'], on_click)
        item = ui.recent_items[0]

        async def scenario():
            await item.click()
            assert await item.key_down('Enter') is True
            assert await item.key_down(' ') is True
            assert await item.key_down('a') is False

        asyncio.run(scenario())
        assert activated == ['Oradea', 'Oradea', 'Oradea']


class TestEvents:
    """Tests for form events and other controls."""

    def test_submit_ignores_blank(self, ui):
        """Test a blank submission does not call the search callback."""
        searched = []

        async def on_search(city):
            searched.append(city)

        ui.setup_event_listeners(on_search=on_search)
        asyncio.run(ui.submit_search('   '))
        asyncio.run(ui.submit_search('  Oradea '))

        assert searched == ['Oradea']

    def test_submit_uses_input_value(self, ui):
        """Test submitting the typed value."""
        searched = []

        async def on_search(city):
            searched.append(city)

        ui.setup_event_listeners(on_search=on_search)
        ui.on_input('Iași')
        asyncio.run(ui.submit_search())

        assert searched == ['Iași']

    def test_input_feedback(self, ui):
        """Test live validity feedback while typing."""
        ui.on_input('a')
        assert ui.elements['search_input'].validity == 'invalid'
        ui.on_input('ab')
        assert ui.elements['search_input'].validity == 'valid'
        ui.on_input('')
        assert ui.elements['search_input'].validity is None

    def test_theme(self, ui):
        """Test switching theme and rejecting unknown ones."""
        ui.update_theme('dark')
        assert ui.theme_class == 'dark-theme'
        with pytest.raises(ValueError):
            ui.update_theme('purple')

    def test_confirm(self, clock):
        """Test confirmation defaults to no without a hook."""
        assert UIController(clock=clock).confirm('sure?') is False
        assert UIController(clock=clock, confirm=lambda message: True).confirm('sure?') is True

    def test_escape_dismisses_error(self, ui):
        """Test Escape hides the banner and other keys do not."""
        ui.show_error('boom')

        assert ui.handle_key('Enter') is False
        assert ui.active_error() == 'boom'
        assert ui.handle_key('Escape') is True
        assert ui.active_error() is None
        assert ui.elements['error'].hidden
        assert ui.handle_key('Escape') is False
