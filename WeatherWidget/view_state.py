"""
View state for the weather widget, updated only through reduce().

Every state change is an action applied to the previous state, so the
widget never depends on the order in which callbacks touch shared fields.
Results carry the token of the request that produced them; results from a
request that has since been superseded are dropped.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from weather_snapshot import WeatherSnapshot


IDLE = "idle"
LOADING = "loading"
READY = "ready"
ERROR = "error"

MAX_RECENT_SEARCHES = 5

CITY_ERROR_MESSAGE = "Failed to fetch weather. Try another city."
LOCATION_FETCH_ERROR_MESSAGE = "Failed to fetch weather for your location."
LOCATION_UNSUPPORTED_MESSAGE = "Location lookup is not supported on this device."
LOCATION_DENIED_MESSAGE = "Unable to get your location. Please enable location permissions."


@dataclass(frozen=True)
class ViewState:
    """Everything the widget renders. The last good snapshot survives errors."""
    status: str = IDLE
    snapshot: Optional[WeatherSnapshot] = None
    error: Optional[str] = None
    use_celsius: bool = True
    dark_mode: bool = True
    recent_searches: Tuple[str, ...] = ()
    request_token: int = 0

    @property
    def loading(self) -> bool:
        return self.status == LOADING


@dataclass(frozen=True)
class FetchStarted:
    token: int


@dataclass(frozen=True)
class FetchSucceeded:
    token: int
    snapshot: WeatherSnapshot
    query: Optional[str] = None  # None for coordinate lookups


@dataclass(frozen=True)
class FetchFailed:
    token: int
    message: str


@dataclass(frozen=True)
class LocationFailed:
    token: int
    message: str


@dataclass(frozen=True)
class ToggleUnits:
    pass


@dataclass(frozen=True)
class ToggleTheme:
    pass


Action = Union[FetchStarted, FetchSucceeded, FetchFailed, LocationFailed, ToggleUnits, ToggleTheme]


def push_recent(recent: Tuple[str, ...], city: str, limit: int = MAX_RECENT_SEARCHES) -> Tuple[str, ...]:
    """
    Put city at the front of the recent list.

    Duplicates are matched by exact string, so "paris" and "Paris" are
    separate entries.
    """
    return ((city,) + tuple(c for c in recent if c != city))[:limit]


def reduce(state: ViewState, action: Action) -> ViewState:
    """
    Apply an action to the view state.

    Args:
        state: Current view state
        action: What happened

    Returns:
        ViewState: The new state (the same object when the action is stale)
    """
    if isinstance(action, ToggleUnits):
        return replace(state, use_celsius=not state.use_celsius)

    if isinstance(action, ToggleTheme):
        return replace(state, dark_mode=not state.dark_mode)

    if isinstance(action, FetchStarted):
        if action.token <= state.request_token:
            return state
        return replace(state, status=LOADING, error=None, request_token=action.token)

    if not isinstance(action, (FetchSucceeded, FetchFailed, LocationFailed)):
        raise TypeError(f"Unknown action: {action!r}")

    # Results of superseded requests are discarded
    if action.token != state.request_token or state.status != LOADING:
        return state

    if isinstance(action, FetchSucceeded):
        recent = state.recent_searches
        if action.query is not None:
            recent = push_recent(recent, action.query)
        return replace(state, status=READY, snapshot=action.snapshot, error=None, recent_searches=recent)

    return replace(state, status=ERROR, error=action.message)
