"""Tests for weather controller."""
import threading

import pytest
from unittest.mock import Mock, patch
from location import LocationPermissionError, LocationUnavailableError, StaticLocationProvider
from openweather_provider import OpenWeatherProvider
from view_state import (
    CITY_ERROR_MESSAGE,
    ERROR,
    IDLE,
    LOADING,
    LOCATION_DENIED_MESSAGE,
    LOCATION_FETCH_ERROR_MESSAGE,
    LOCATION_UNSUPPORTED_MESSAGE,
    READY,
)
from weather_controller import DEFAULT_CITY, WeatherController
from weather_provider import MalformedResponseError, ProviderError, WeatherProviderBase
from weather_snapshot import WeatherSnapshot


def make_snapshot(city, temperature_c=20):
    return WeatherSnapshot(
        city=city,
        temperature_c=temperature_c,
        description="Clear",
        humidity_pct=60,
        wind_speed_mph=5,
        pressure_hpa=1015,
        feels_like_c=temperature_c - 1,
        icon_code="01d",
    )


class MockProvider(WeatherProviderBase):
    """Mock weather provider for testing."""

    def __init__(self, raise_error=None):
        self.raise_error = raise_error
        self.city_calls = []
        self.coordinate_calls = []
        self.on_fetch = None

    def fetch_by_city(self, name):
        self.city_calls.append(name)
        if self.on_fetch:
            self.on_fetch(name)
        if self.raise_error:
            raise self.raise_error
        return make_snapshot(name)

    def fetch_by_coordinates(self, lat, lon):
        self.coordinate_calls.append((lat, lon))
        if self.raise_error:
            raise self.raise_error
        return make_snapshot("Here")


class FailingLocation(StaticLocationProvider):
    def __init__(self, error):
        super().__init__(0.0, 0.0)
        self.error = error

    def get_position(self):
        raise self.error


@pytest.fixture
def provider():
    return MockProvider()


@pytest.fixture
def states():
    return []


@pytest.fixture
def controller(provider, states):
    return WeatherController(provider, location=StaticLocationProvider(51.5, -0.12), listener=states.append)


def test_search_success(controller, provider, states):
    """Search goes idle -> loading -> ready and records the city."""
    assert controller.state.status == IDLE

    state = controller.search("London")

    assert provider.city_calls == ["London"]
    assert [s.status for s in states] == [LOADING, READY]
    assert state.status == READY
    assert state.snapshot.city == "London"
    assert state.recent_searches == ("London",)


def test_search_trims_input(controller, provider):
    controller.search("  Paris  ")

    assert provider.city_calls == ["Paris"]
    assert controller.state.recent_searches == ("Paris",)


def test_blank_search_is_ignored(controller, provider, states):
    controller.search("   ")

    assert provider.city_calls == []
    assert states == []
    assert controller.state.status == IDLE


def test_search_same_city_twice(controller):
    """Searching Paris twice keeps it once, at the front."""
    controller.search("Paris")
    controller.search("London")
    controller.search("Paris")

    assert controller.state.recent_searches == ("Paris", "London")


def test_recent_list_is_capped(controller):
    for city in ["Oslo", "Rome", "Lima", "Doha", "Kyiv", "Baku"]:
        controller.search(city)

    assert controller.state.recent_searches == ("Baku", "Kyiv", "Doha", "Lima", "Rome")


def test_http_error_keeps_prior_snapshot(controller, provider, caplog):
    """A 404 shows the fixed message and never replaces the snapshot."""
    controller.search("London")
    provider.raise_error = ProviderError(404, "city not found")

    state = controller.search("Atlantis")

    assert state.status == ERROR
    assert state.error == CITY_ERROR_MESSAGE
    assert state.snapshot.city == "London"
    assert state.recent_searches == ("London",)
    assert "city not found" in caplog.text


def test_malformed_response_shows_generic_message(controller, provider):
    provider.raise_error = MalformedResponseError("Response missing 'main'")

    state = controller.search("London")

    assert state.status == ERROR
    assert state.error == CITY_ERROR_MESSAGE
    assert state.snapshot is None


def test_unexpected_errors_propagate(controller, provider):
    provider.raise_error = RuntimeError("bug")

    with pytest.raises(RuntimeError):
        controller.search("London")


def test_recovers_after_error(controller, provider):
    provider.raise_error = ProviderError(500)
    controller.search("London")

    provider.raise_error = None
    state = controller.search("London")

    assert state.status == READY
    assert state.error is None


def test_select_recent(controller, provider):
    controller.search("Paris")
    controller.search("London")

    controller.select_recent("Paris")

    assert provider.city_calls[-1] == "Paris"
    assert controller.state.recent_searches == ("Paris", "London")


def test_load_default(controller, provider):
    controller.load_default()

    assert provider.city_calls == [DEFAULT_CITY]
    assert controller.state.snapshot.city == DEFAULT_CITY


def test_use_my_location(controller, provider, states):
    state = controller.use_my_location()

    assert provider.coordinate_calls == [(51.5, -0.12)]
    assert [s.status for s in states] == [LOADING, READY]
    assert state.snapshot.city == "Here"
    assert state.recent_searches == ()


def test_use_my_location_fetch_error(controller, provider):
    provider.raise_error = ProviderError(401, "Invalid API key")

    state = controller.use_my_location()

    assert state.status == ERROR
    assert state.error == LOCATION_FETCH_ERROR_MESSAGE


def test_location_unsupported(provider):
    """No location source: error without any network call."""
    controller = WeatherController(provider)

    state = controller.use_my_location()

    assert state.status == ERROR
    assert state.error == LOCATION_UNSUPPORTED_MESSAGE
    assert provider.coordinate_calls == []


def test_location_unavailable(provider):
    controller = WeatherController(provider, location=FailingLocation(LocationUnavailableError("unset")))

    state = controller.use_my_location()

    assert state.error == LOCATION_UNSUPPORTED_MESSAGE
    assert provider.coordinate_calls == []


def test_location_denied(provider):
    controller = WeatherController(provider, location=FailingLocation(LocationPermissionError("denied")))

    state = controller.use_my_location()

    assert state.status == ERROR
    assert state.error == LOCATION_DENIED_MESSAGE
    assert provider.coordinate_calls == []


def test_toggles_do_not_fetch(controller, provider, states):
    controller.search("London")
    calls = list(provider.city_calls)

    controller.toggle_units()
    controller.toggle_theme()

    assert provider.city_calls == calls
    assert controller.state.use_celsius is False
    assert controller.state.dark_mode is False
    assert controller.state.status == READY
    assert len(states) == 4


def test_superseded_search_is_discarded(controller, provider):
    """A newer search started mid-flight wins over the older one."""
    def start_second_search(name):
        if name == "Paris":
            provider.on_fetch = None
            controller.search("Rome")

    provider.on_fetch = start_second_search

    controller.search("Paris")

    assert provider.city_calls == ["Paris", "Rome"]
    assert controller.state.status == READY
    assert controller.state.snapshot.city == "Rome"
    assert controller.state.recent_searches == ("Rome",)


def test_listener_runs_before_other_updates(provider):
    """No other thread can change the state while the listener renders it."""
    seen = []
    controller = None

    def listener(state):
        if seen:
            return
        seen.append(state)
        other = threading.Thread(target=controller.toggle_units)
        other.start()
        other.join(timeout=0.2)
        seen.append(other.is_alive())
        seen.append(controller.state is state)
        seen.append(other)

    controller = WeatherController(provider, listener=listener)
    controller.toggle_theme()
    seen[3].join(timeout=5)

    assert seen[1] is True
    assert seen[2] is True
    assert controller.state.use_celsius is False


class TestWithOpenWeatherProvider:
    """Controller driven by the real provider with mocked HTTP responses."""

    @pytest.fixture
    def london_body(self):
        return {
            "name": "London",
            "main": {"temp": 15.4, "humidity": 80, "pressure": 1012, "feels_like": 14.1},
            "weather": [{"main": "Clouds", "icon": "04d"}],
            "wind": {"speed": 3.1},
        }

    @pytest.fixture
    def controller(self):
        return WeatherController(OpenWeatherProvider("k"))

    @staticmethod
    def response(status_code, body):
        mock_response = Mock()
        mock_response.ok = status_code < 400
        mock_response.status_code = status_code
        mock_response.json.return_value = body
        return mock_response

    def test_not_found_keeps_prior_snapshot(self, controller, london_body):
        with patch('openweather_provider.requests.get') as mock_get:
            mock_get.return_value = self.response(200, london_body)
            controller.search("London")

            mock_get.return_value = self.response(404, {"cod": "404", "message": "city not found"})
            state = controller.search("Atlantis")

        assert state.status == ERROR
        assert state.error == CITY_ERROR_MESSAGE
        assert state.snapshot.city == "London"
        assert state.snapshot.wind_speed_mph == 7
        assert state.recent_searches == ("London",)

    def test_redirect_status_becomes_error(self, controller, london_body):
        with patch('openweather_provider.requests.get') as mock_get:
            mock_get.return_value = self.response(300, london_body)
            state = controller.search("London")

        assert state.status == ERROR
        assert state.error == CITY_ERROR_MESSAGE
        assert state.snapshot is None

    def test_oversized_number_becomes_error(self, controller, london_body):
        london_body["main"]["humidity"] = 10 ** 400
        with patch('openweather_provider.requests.get') as mock_get:
            mock_get.return_value = self.response(200, london_body)
            state = controller.search("London")

        assert state.status == ERROR
        assert state.error == CITY_ERROR_MESSAGE
        assert state.snapshot is None
