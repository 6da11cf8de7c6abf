"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import Optional
from weather_snapshot import WeatherSnapshot


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def fetch_by_city(self, name: str) -> WeatherSnapshot:
        """
        Fetch current weather for a city name.

        Args:
            name: City name exactly as the user typed it

        Returns:
            WeatherSnapshot: Current weather for the city

        Raises:
            WeatherClientError: If the provider fails to fetch data
        """
        pass

    @abstractmethod
    def fetch_by_coordinates(self, lat: float, lon: float) -> WeatherSnapshot:
        """
        Fetch current weather for a position in degrees.

        Raises:
            WeatherClientError: If the provider fails to fetch data
        """
        pass


class WeatherClientError(Exception):
    """Base exception for weather lookups that failed."""
    pass


class ProviderError(WeatherClientError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        text = f"Weather API error: {status_code}"
        if message:
            text += f" ({message})"
        super().__init__(text)


class MalformedResponseError(WeatherClientError):
    """Provider response body does not have the expected shape."""
    pass


class NetworkError(WeatherClientError):
    """Request never got an HTTP response (DNS, connection, timeout)."""
    pass
