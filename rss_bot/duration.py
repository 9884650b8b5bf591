"""
Duration string parsing.

Accepts compact duration strings such as ``10m``, ``1h30m``, ``1.5h`` or
``300ms`` and converts them to :class:`datetime.timedelta`.
"""

import re
from datetime import timedelta

# Seconds per unit
UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|ms|s|m|h)")

# Largest duration representable as signed 64-bit nanoseconds (about 2562047h)
MAX_SECONDS = (2**63 - 1) / 1e9


class InvalidDurationError(ValueError):
    """Raised when a string cannot be parsed as a duration."""

    pass


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration string into a timedelta.

    A duration is an optionally signed sequence of decimal numbers, each
    with an optional fraction and a unit suffix, e.g. ``300ms``,
    ``-1.5h`` or ``2h45m``. A bare ``0`` is also accepted.

    Parameters
    ----------
    value : str
        The duration string.

    Returns
    -------
    timedelta
        The parsed duration.

    Raises
    ------
    InvalidDurationError
        If the string is not a valid duration or is longer than
        ``MAX_SECONDS``.
    """
    if not isinstance(value, str):
        raise InvalidDurationError(f"invalid duration {value!r}")

    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise InvalidDurationError(f"invalid duration {value!r}")

    total = 0.0
    pos = 0
    for match in _COMPONENT_RE.finditer(text):
        if match.start() != pos:
            break
        number, unit = match.groups()
        total += float(number) * UNITS[unit]
        pos = match.end()

    if pos != len(text):
        raise InvalidDurationError(f"invalid duration {value!r}")
    if total > MAX_SECONDS:
        raise InvalidDurationError(f"duration {value!r} out of range")

    try:
        return timedelta(seconds=sign * total)
    except (OverflowError, ValueError) as e:
        raise InvalidDurationError(f"duration {value!r} out of range") from e


def format_duration(delta: timedelta) -> str:
    """
    Format a timedelta as a compact duration string.

    >>> format_duration(timedelta(hours=1, minutes=30))
    '1h30m0s'
    """
    total = delta.total_seconds()
    if total == 0:
        return "0s"

    sign = "-" if total < 0 else ""
    total = abs(total)

    if total < 1:
        return f"{sign}{total * 1000:g}ms"

    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{seconds:g}s")
    return sign + "".join(parts)
