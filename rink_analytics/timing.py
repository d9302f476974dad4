"""
Game Clock Utilities

Canonical conversion of "MM:SS within a period" clock strings into absolute
game-elapsed seconds. Every ordering and windowing computation downstream
depends on these values, so malformed input fails loudly instead of
defaulting to zero.
"""

import re

PERIOD_LENGTH_SECONDS = 1200

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,3}):(\d{2})\s*$")


class ParseError(ValueError):
    """Raised when a clock string or period number cannot be parsed."""


def parse_clock(clock: str) -> int:
    """
    Parse a clock string into seconds elapsed within the period.

    Args:
        clock: Time string in "MM:SS" format (e.g. "05:30")

    Returns:
        Seconds elapsed in the period (e.g. "05:30" -> 330)

    Raises:
        ParseError: If the string is not a valid MM:SS clock
    """
    if not isinstance(clock, str):
        raise ParseError(f"Clock must be a string, got {type(clock).__name__}")

    match = _CLOCK_PATTERN.match(clock)
    if match is None:
        raise ParseError(f"Malformed clock string: {clock!r}")

    minutes = int(match.group(1))
    seconds = int(match.group(2))
    if seconds >= 60:
        raise ParseError(f"Seconds out of range in clock string: {clock!r}")

    return minutes * 60 + seconds


def to_elapsed_seconds(
    period: int,
    clock: str,
    period_length: int = PERIOD_LENGTH_SECONDS,
) -> int:
    """
    Convert a period number and in-period clock into total game seconds.

    Overtime periods extend the same linear scale, so period 4 starts at
    3 * period_length.

    Args:
        period: 1-based period number
        clock: Time elapsed in the period, "MM:SS"
        period_length: Length of each period in seconds

    Returns:
        Non-negative elapsed seconds from the opening faceoff

    Raises:
        ParseError: If the period is not a positive integer or the clock is malformed
    """
    if isinstance(period, bool) or not isinstance(period, int) or period < 1:
        raise ParseError(f"Period must be a positive integer, got {period!r}")

    return (period - 1) * period_length + parse_clock(clock)


def format_clock(total_seconds: int) -> str:
    """Format seconds as an "MM:SS" clock string."""
    minutes, seconds = divmod(int(total_seconds), 60)
    return f"{minutes:02d}:{seconds:02d}"


def period_of(elapsed_seconds: int, period_length: int = PERIOD_LENGTH_SECONDS) -> int:
    """Return the 1-based period containing an elapsed game time."""
    return int(elapsed_seconds) // period_length + 1
