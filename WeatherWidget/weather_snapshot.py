"""Weather snapshot - the normalized record shown to the user."""
import math
from dataclasses import dataclass, fields


MPS_TO_MPH = 2.237


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, with .5 always rounding up.

    Unlike round(), 2.5 -> 3 and -2.5 -> -2.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value: {value}")
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class WeatherSnapshot:
    """Immutable weather reading, built fresh from each successful fetch."""
    city: str
    temperature_c: int
    description: str  # e.g., "Clouds", "Rain", "Clear"
    humidity_pct: int
    wind_speed_mph: int
    pressure_hpa: int
    feels_like_c: int
    icon_code: str  # provider icon id, e.g. "04d"

    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if field.type is int and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValueError(f"{field.name} must be an int, got {value!r}")
