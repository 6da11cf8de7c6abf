"""Terminal weather widget: search by city or by location."""
import argparse
import logging
import os
import signal
import sys
from typing import Iterable, List, Optional, TextIO, Tuple

from dotenv import load_dotenv

from layout import TextLine, calculate_layout
from location import EnvLocationProvider, LocationProviderBase, StaticLocationProvider
from openweather_provider import OpenWeatherProvider
from view_state import ViewState
from weather_controller import DEFAULT_CITY, WeatherController

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "weather-widget.log")

HELP_TEXT = """Commands:
  <city>       search weather for a city
  :loc         use my location
  :recent N    repeat recent search number N
  :units       switch °C / °F
  :theme       switch dark / light theme
  :help        show this help
  :quit        exit"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Terminal weather widget")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--default-city", default=None, help="City loaded on start-up")
    parser.add_argument("--lat", type=float, default=None, help="Latitude used by :loc")
    parser.add_argument("--lon", type=float, default=None, help="Longitude used by :loc")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--no-color", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")
    return args


def setup_logging(log_file: str, verbose: bool) -> None:
    # Errors go to the log file only; the prompt shows the fixed messages
    log_level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.FileHandler(log_file)]
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def load_config(args: argparse.Namespace) -> Tuple[str, Optional[float], str]:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    if not api_key:
        raise SystemExit("Missing WEATHER_API_KEY in environment")

    timeout = args.timeout
    if timeout is None and os.getenv("WEATHER_TIMEOUT"):
        try:
            timeout = float(os.getenv("WEATHER_TIMEOUT"))
        except ValueError as exc:
            raise SystemExit(f"Invalid WEATHER_TIMEOUT: {exc}") from exc

    default_city = args.default_city or os.getenv("WEATHER_DEFAULT_CITY", DEFAULT_CITY)

    logging.info("Configuration loaded: timeout=%s default_city=%s", timeout, default_city)
    return api_key, timeout, default_city


def build_location(args: argparse.Namespace) -> LocationProviderBase:
    if args.lat is not None:
        return StaticLocationProvider(args.lat, args.lon)
    return EnvLocationProvider()


def style_line(line: TextLine, color: bool) -> str:
    if not color:
        return line.text
    r, g, b = line.color
    return f"\033[38;2;{r};{g};{b}m{line.text}\033[0m"


def render(state: ViewState, out: TextIO = sys.stdout, color: bool = True) -> None:
    out.write("\n")
    for line in calculate_layout(state):
        out.write(style_line(line, color) + "\n")
    out.flush()


def handle_command(controller: WeatherController, command: str, out: TextIO = sys.stdout) -> bool:
    """
    Run one line of user input.

    Returns:
        False when the user asked to quit, True otherwise
    """
    command = command.strip()
    if not command:
        return True

    if command in (":quit", ":q", ":exit"):
        return False
    if command == ":help":
        out.write(HELP_TEXT + "\n")
    elif command == ":loc":
        controller.use_my_location()
    elif command == ":units":
        controller.toggle_units()
    elif command == ":theme":
        controller.toggle_theme()
    elif command.startswith(":recent"):
        _select_recent(controller, command[len(":recent"):].strip(), out)
    elif command.startswith(":"):
        out.write(f"Unknown command {command}. Type :help for commands.\n")
    else:
        controller.search(command)
    return True


def _select_recent(controller: WeatherController, index_text: str, out: TextIO) -> None:
    recent = controller.state.recent_searches
    try:
        index = int(index_text)
    except ValueError:
        out.write("Usage: :recent N\n")
        return
    if not 1 <= index <= len(recent):
        out.write(f"No recent search number {index}\n")
        return
    controller.select_recent(recent[index - 1])


def command_loop(controller: WeatherController, lines: Iterable[str], out: TextIO = sys.stdout) -> None:
    for line in lines:
        if not handle_command(controller, line, out):
            break


def _prompt_lines() -> Iterable[str]:
    while True:
        try:
            yield input("city> ")
        except EOFError:
            return


def signal_handler(signum, frame):
    logging.info("Received signal %s, shutting down", signum)
    raise KeyboardInterrupt()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    api_key, timeout, default_city = load_config(args)

    color = not args.no_color and sys.stdout.isatty()
    provider = OpenWeatherProvider(api_key=api_key, timeout=timeout)
    controller = WeatherController(
        provider,
        location=build_location(args),
        listener=lambda state: render(state, color=color),
    )

    signal.signal(signal.SIGTERM, signal_handler)

    print(HELP_TEXT)
    try:
        controller.load_default(default_city)
        command_loop(controller, _prompt_lines())
    except KeyboardInterrupt:
        logging.info("Stopping widget")
    print()


if __name__ == "__main__":
    main()
