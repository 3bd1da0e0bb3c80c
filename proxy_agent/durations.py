"""Duration flags in the `1h30m` / `250ms` notation used by the proxy tooling."""

import re
from datetime import timedelta
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_COMPONENT_RE = re.compile(_COMPONENT)
_DURATION_RE = re.compile(rf"(?:{_COMPONENT})+")


def parse_duration(text: str) -> timedelta:
    """Parse a duration string such as `1s`, `1.5h` or `1h30m`.

    Args:
        text: Optionally signed sequence of decimal numbers, each with a unit
            suffix. A bare `0` is accepted without a unit.

    Returns:
        timedelta: The parsed duration, at microsecond resolution.

    Raises:
        ValueError: If the string is not a valid duration, does not fit a
            timedelta, or is non-zero but shorter than one microsecond.
    """
    value = text.strip()
    sign = 1
    if value[:1] in ("-", "+"):
        sign = -1 if value[0] == "-" else 1
        value = value[1:]

    if value == "0":
        return timedelta(0)
    if not value or not _DURATION_RE.fullmatch(value):
        raise ValueError(f"invalid duration {text!r}")

    seconds = sum(
        float(number) * _UNIT_SECONDS[unit]
        for number, unit in _COMPONENT_RE.findall(value)
    )
    try:
        duration = timedelta(seconds=sign * seconds)
    except OverflowError:
        raise ValueError(f"invalid duration {text!r}: out of range") from None
    if seconds and not duration:
        raise ValueError(f"invalid duration {text!r}: below microsecond resolution")
    return duration


def _trim_fraction(value: int, unit: int) -> str:
    whole, fraction = divmod(value, unit)
    if not fraction:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """Render a timedelta as `1h0m0s`, `1m30s`, `1.5s` or `250ms`."""
    total_us = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if total_us == 0:
        return "0s"

    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)

    if total_us < 1_000:
        return f"{sign}{total_us}µs"
    if total_us < 1_000_000:
        return f"{sign}{_trim_fraction(total_us, 1_000)}ms"

    hours, rest = divmod(total_us, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    prefix = ""
    if hours:
        prefix = f"{hours}h{minutes}m"
    elif minutes:
        prefix = f"{minutes}m"
    return f"{sign}{prefix}{_trim_fraction(rest, 1_000_000)}s"


def _coerce_duration(value: Any) -> Any:
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return timedelta(seconds=value)
        except OverflowError:
            raise ValueError(f"invalid duration {value!r}: out of range") from None
    return value


Duration = Annotated[
    timedelta,
    BeforeValidator(_coerce_duration),
    PlainSerializer(format_duration, return_type=str, when_used="json"),
]
