"""Controller that runs weather lookups and feeds results into the view state."""
import itertools
import logging
import threading
from typing import Callable, Optional

from location import LocationError, LocationPermissionError, LocationProviderBase
from view_state import (
    CITY_ERROR_MESSAGE,
    LOCATION_DENIED_MESSAGE,
    LOCATION_FETCH_ERROR_MESSAGE,
    LOCATION_UNSUPPORTED_MESSAGE,
    Action,
    FetchFailed,
    FetchStarted,
    FetchSucceeded,
    LocationFailed,
    ToggleTheme,
    ToggleUnits,
    ViewState,
    reduce,
)
from weather_provider import WeatherClientError, WeatherProviderBase


DEFAULT_CITY = "New York"

Listener = Callable[[ViewState], None]


class WeatherController:
    """
    Owns the view state and turns user actions into weather lookups.

    Each lookup is tagged with a new request token before the network call.
    The state lock is never held during the call, so a second search can
    start while the first is still running; whichever was issued last wins.
    """

    def __init__(
        self,
        provider: WeatherProviderBase,
        location: Optional[LocationProviderBase] = None,
        listener: Optional[Listener] = None,
        initial_state: Optional[ViewState] = None
    ):
        """
        Initialize controller.

        Args:
            provider: Weather provider used for every lookup
            location: Position source for "use my location" (None = unsupported)
            listener: Called with the new state after every change
            initial_state: Starting state, defaults to an idle widget
        """
        self.provider = provider
        self.location = location
        self.listener = listener

        self._state = initial_state or ViewState()
        self._lock = threading.RLock()
        self._tokens = itertools.count(self._state.request_token + 1)

    @property
    def state(self) -> ViewState:
        return self._state

    def dispatch(self, action: Action) -> ViewState:
        """Apply an action and notify the listener if the state changed."""
        with self._lock:
            previous = self._state
            self._state = reduce(previous, action)
            current = self._state

            # Notify under the lock so renders happen in state order
            if current is previous:
                logging.debug(f"Ignored action {action!r}")
            elif self.listener is not None:
                self.listener(current)
        return current

    def _start(self) -> int:
        with self._lock:
            token = next(self._tokens)
        self.dispatch(FetchStarted(token))
        return token

    def search(self, city: str) -> ViewState:
        """Look up weather for a typed city name. Blank input is ignored."""
        city = city.strip()
        if not city:
            return self._state
        return self._load_city(city)

    def select_recent(self, city: str) -> ViewState:
        """Re-run a search from the recent-searches list."""
        return self._load_city(city)

    def load_default(self, city: str = DEFAULT_CITY) -> ViewState:
        """Initial lookup shown when the widget starts."""
        return self._load_city(city)

    def _load_city(self, city: str) -> ViewState:
        token = self._start()
        try:
            snapshot = self.provider.fetch_by_city(city)
        except WeatherClientError as err:
            logging.error(f"Weather fetch for {city!r} failed: {err}")
            return self.dispatch(FetchFailed(token, CITY_ERROR_MESSAGE))
        return self.dispatch(FetchSucceeded(token, snapshot, city))

    def use_my_location(self) -> ViewState:
        """Look up weather for the current position."""
        token = self._start()

        if self.location is None:
            logging.warning("No location source configured")
            return self.dispatch(LocationFailed(token, LOCATION_UNSUPPORTED_MESSAGE))

        try:
            lat, lon = self.location.get_position()
        except LocationPermissionError as err:
            logging.error(f"Location lookup denied: {err}")
            return self.dispatch(LocationFailed(token, LOCATION_DENIED_MESSAGE))
        except LocationError as err:
            logging.error(f"Location lookup failed: {err}")
            return self.dispatch(LocationFailed(token, LOCATION_UNSUPPORTED_MESSAGE))

        try:
            snapshot = self.provider.fetch_by_coordinates(lat, lon)
        except WeatherClientError as err:
            logging.error(f"Weather fetch for lat={lat}, lon={lon} failed: {err}")
            return self.dispatch(FetchFailed(token, LOCATION_FETCH_ERROR_MESSAGE))
        return self.dispatch(FetchSucceeded(token, snapshot))

    def toggle_units(self) -> ViewState:
        return self.dispatch(ToggleUnits())

    def toggle_theme(self) -> ViewState:
        return self.dispatch(ToggleTheme())
