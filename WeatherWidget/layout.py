"""Layout logic for the weather widget - pure functions for testability."""
from dataclasses import dataclass
from typing import Dict, List, Tuple

from view_state import ViewState
from weather_snapshot import round_half_up

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class TextLine:
    """One line of widget output (for testing/layout calculation)."""
    text: str
    color: RGB
    role: str = "text"


DARK_PALETTE: Dict[str, RGB] = {
    "text": (255, 255, 255),
    "muted": (203, 213, 225),
    "error": (254, 202, 202),
    "accent": (59, 130, 246),
}

LIGHT_PALETTE: Dict[str, RGB] = {
    "text": (15, 23, 42),
    "muted": (51, 65, 85),
    "error": (127, 29, 29),
    "accent": (29, 78, 216),
}


def get_theme_palette(dark_mode: bool) -> Dict[str, RGB]:
    return DARK_PALETTE if dark_mode else LIGHT_PALETTE


def convert_temperature(celsius: int, use_celsius: bool) -> int:
    """Convert a Celsius reading to the display unit."""
    if use_celsius:
        return celsius
    return round_half_up(celsius * 9 / 5 + 32)


def temperature_unit(use_celsius: bool) -> str:
    return "°C" if use_celsius else "°F"


def get_temperature_color(temp_c: float) -> RGB:
    """
    Get RGB color for temperature using a simple gradient.

    Freezing (< 0°C) = blue
    Cool (0-15°C) = blue to cyan
    Mild (15-25°C) = cyan to yellow
    Hot (>= 25°C) = yellow to red, saturating at 40°C

    Args:
        temp_c: Temperature in Celsius

    Returns:
        Tuple of (r, g, b) values (0-255)
    """
    if temp_c < 0:
        return (0, 0, 255)
    elif temp_c < 15:
        ratio = temp_c / 15.0
        return (0, int(255 * ratio), 255)
    elif temp_c < 25:
        ratio = (temp_c - 15) / 10.0
        return (int(255 * ratio), 255, int(255 * (1 - ratio)))
    else:
        ratio = min((temp_c - 25) / 15.0, 1.0)
        return (255, int(255 * (1 - ratio)), 0)


def calculate_layout(state: ViewState) -> List[TextLine]:
    """
    Calculate the lines shown for a view state.

    The weather card is hidden while a lookup is in flight; errors are shown
    above the last good card.

    Args:
        state: View state to display

    Returns:
        List of TextLine objects, top to bottom
    """
    palette = get_theme_palette(state.dark_mode)
    unit = temperature_unit(state.use_celsius)
    theme = "Dark" if state.dark_mode else "Light"
    lines = [TextLine(f"My Weather App  [{unit} | {theme}]", palette["text"], "header")]

    if state.error:
        lines.append(TextLine(state.error, palette["error"], "error"))

    if state.recent_searches:
        chips = "  ".join(f"[{i}] {city}" for i, city in enumerate(state.recent_searches, 1))
        lines.append(TextLine(f"Recent: {chips}", palette["muted"], "recent"))

    if state.loading:
        lines.append(TextLine("Loading weather data...", palette["accent"], "loading"))
        return lines

    snapshot = state.snapshot
    if snapshot is None:
        return lines

    temp = convert_temperature(snapshot.temperature_c, state.use_celsius)
    feels = convert_temperature(snapshot.feels_like_c, state.use_celsius)
    lines.extend([
        TextLine(snapshot.city, palette["text"], "city"),
        TextLine(f"{temp}{unit}", get_temperature_color(snapshot.temperature_c), "temperature"),
        TextLine(snapshot.description, palette["muted"], "description"),
        TextLine(
            f"Humidity {snapshot.humidity_pct}%  Wind {snapshot.wind_speed_mph} mph  "
            f"Pressure {snapshot.pressure_hpa} mb  Feels like {feels}{unit}",
            palette["muted"],
            "details",
        ),
    ])
    return lines
