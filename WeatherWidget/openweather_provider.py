"""OpenWeather Current Weather API provider implementation."""
import logging
import math
from typing import Any, Dict, Optional

import requests
from weather_provider import (
    MalformedResponseError,
    NetworkError,
    ProviderError,
    WeatherProviderBase,
)
from weather_snapshot import MPS_TO_MPH, WeatherSnapshot, round_half_up


def _require(block: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(block, dict):
        raise MalformedResponseError(f"Response field '{path}' is not an object")
    if key not in block:
        raise MalformedResponseError(f"Response missing '{path}.{key}'" if path else f"Response missing '{key}'")
    return block[key]


def _number(value: Any, name: str) -> float:
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"Field '{name}' is not a number: {value!r}")
    try:
        number = float(value)
    except OverflowError as e:
        raise MalformedResponseError(f"Field '{name}' is too large: {e}") from e
    if not math.isfinite(number):
        raise MalformedResponseError(f"Field '{name}' is not finite: {value!r}")
    return number


def _string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise MalformedResponseError(f"Field '{name}' is not a string: {value!r}")
    return value


def parse_snapshot(data: Any) -> WeatherSnapshot:
    """
    Project a Current Weather API body into a WeatherSnapshot.

    Args:
        data: Decoded JSON body (units=metric)

    Returns:
        WeatherSnapshot: Normalized weather record

    Raises:
        MalformedResponseError: If any required field is missing or mistyped
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Response body is not an object: {type(data).__name__}")

    main_data = _require(data, "main", "")
    wind_data = _require(data, "wind", "")
    weather_array = _require(data, "weather", "")
    if not isinstance(weather_array, list) or not weather_array:
        raise MalformedResponseError("Response missing 'weather' array")
    weather = weather_array[0]

    try:
        return _build_snapshot(data, main_data, wind_data, weather)
    except ValueError as e:
        raise MalformedResponseError(f"Response values out of range: {e}") from e


def _build_snapshot(data, main_data, wind_data, weather) -> WeatherSnapshot:
    return WeatherSnapshot(
        city=_string(_require(data, "name", ""), "name"),
        temperature_c=round_half_up(_number(_require(main_data, "temp", "main"), "main.temp")),
        description=_string(_require(weather, "main", "weather[0]"), "weather[0].main"),
        humidity_pct=round_half_up(_number(_require(main_data, "humidity", "main"), "main.humidity")),
        wind_speed_mph=round_half_up(_number(_require(wind_data, "speed", "wind"), "wind.speed") * MPS_TO_MPH),
        pressure_hpa=round_half_up(_number(_require(main_data, "pressure", "main"), "main.pressure")),
        feels_like_c=round_half_up(_number(_require(main_data, "feels_like", "main"), "main.feels_like")),
        icon_code=_string(_require(weather, "icon", "weather[0]"), "weather[0].icon"),
    )


class OpenWeatherProvider(WeatherProviderBase):
    """
    Weather provider using OpenWeather Current Weather API.

    Uses the free Current Weather API: https://openweathermap.org/current
    Every call is a fresh round trip: no retries and no caching.
    """

    BASE_URL = "https://api.openweathermap.org/data/2.5/weather"
    UNITS = "metric"

    def __init__(
        self,
        api_key: str,
        timeout: Optional[float] = None,
        base_url: str = BASE_URL
    ):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            timeout: HTTP request timeout in seconds (None waits indefinitely)
            base_url: Endpoint override, mostly for tests
        """
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url

    def fetch_by_city(self, name: str) -> WeatherSnapshot:
        """Fetch current weather by city name (e.g., "London", "New York")."""
        logging.debug(f"Fetching weather by city: {name!r}")
        return self._fetch({"q": name})

    def fetch_by_coordinates(self, lat: float, lon: float) -> WeatherSnapshot:
        """Fetch current weather by latitude and longitude."""
        logging.debug(f"Fetching weather by coordinates: lat={lat}, lon={lon}")
        return self._fetch({"lat": lat, "lon": lon})

    def _fetch(self, query: Dict[str, Any]) -> WeatherSnapshot:
        # requests URL-encodes every param value
        params = dict(query)
        params["appid"] = self.api_key
        params["units"] = self.UNITS

        try:
            logging.info(f"Making OpenWeather API request: {self.base_url}")
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            logging.info(f"API response status: {response.status_code}")

            # requests treats 3xx as ok; only 2xx carries weather data
            if not 200 <= response.status_code < 300:
                self._handle_error_response(response)

            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponseError(f"Response body is not JSON: {e}") from e

            snapshot = parse_snapshot(data)
            logging.info(f"Successfully parsed weather data: {snapshot.city} {snapshot.temperature_c}°C, {snapshot.description}")
            return snapshot

        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise NetworkError(f"Network error: {e}") from e
        except ProviderError as e:
            logging.error(f"Error fetching weather: {e}")
            raise
        except MalformedResponseError as e:
            logging.error(f"Failed to parse API response: {e}")
            raise

    def _handle_error_response(self, response: requests.Response) -> None:
        """Raise ProviderError for a non-2xx response, with the API message if any."""
        message = None
        try:
            error_data = response.json()
            if isinstance(error_data, dict):
                message = error_data.get("message")
            logging.debug(f"OpenWeather API error response: {error_data}")
        except ValueError:
            logging.debug(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")

        raise ProviderError(response.status_code, message)
