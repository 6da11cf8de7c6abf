"""Location sources - the terminal stand-in for browser geolocation."""
import logging
import os
from abc import ABC, abstractmethod
from typing import Tuple


class LocationError(Exception):
    """Base exception for failed position lookups."""
    pass


class LocationUnavailableError(LocationError):
    """No position source is configured on this device."""
    pass


class LocationPermissionError(LocationError):
    """The user has not allowed position lookups."""
    pass


class LocationProviderBase(ABC):
    """Abstract base class for position sources."""

    @abstractmethod
    def get_position(self) -> Tuple[float, float]:
        """
        Get the current position.

        Returns:
            Tuple of (latitude, longitude) in signed degrees

        Raises:
            LocationError: If no position can be obtained
        """
        pass


class StaticLocationProvider(LocationProviderBase):
    """Fixed position, e.g. from --lat/--lon on the command line."""

    def __init__(self, lat: float, lon: float):
        self.lat = lat
        self.lon = lon

    def get_position(self) -> Tuple[float, float]:
        return self.lat, self.lon


class EnvLocationProvider(LocationProviderBase):
    """
    Position read from the environment on every lookup.

    WEATHER_LAT / WEATHER_LON hold the coordinates. Setting
    WEATHER_LOCATION_ALLOWED to 0, false or no denies lookups outright.
    """

    DENY_VALUES = ("0", "false", "no", "off")

    def get_position(self) -> Tuple[float, float]:
        allowed = os.getenv("WEATHER_LOCATION_ALLOWED", "1").strip().lower()
        if allowed in self.DENY_VALUES:
            logging.warning("Location lookup denied by WEATHER_LOCATION_ALLOWED")
            raise LocationPermissionError("Location permission denied")

        lat = os.getenv("WEATHER_LAT")
        lon = os.getenv("WEATHER_LON")
        if not lat or not lon:
            raise LocationUnavailableError("WEATHER_LAT/WEATHER_LON not set")

        try:
            return float(lat), float(lon)
        except ValueError as exc:
            raise LocationUnavailableError(f"Invalid coordinates: {exc}") from exc
