"""
Time expressions accepted by ``--since`` / ``--until``.

Three forms are recognized:

* exactly ten ASCII digits -- an absolute unix timestamp in seconds;
* ``now`` (any case) -- the current time;
* ``<positive integer><unit>`` -- that long before now, where the unit is
  one of ``s m h d w mo y``.

Months and years are fixed 30- and 365-day lengths, not calendar-aware.
Anything else parses to ``None``.
"""

from __future__ import annotations

import re
import time


UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3_600,
    "d": 86_400,
    "w": 604_800,
    "mo": 2_592_000,
    "y": 31_536_000,
}

_ABSOLUTE_RE = re.compile(r"^[0-9]{10}$")
_RELATIVE_RE = re.compile(r"^([0-9]+)(mo|[smhdwy])$")


def parse_timestamp(value: str, now: int | None = None) -> int | None:
    """Parse a time expression into unix seconds.

    Args:
        value: The raw token (``"1700000000"``, ``"now"``, ``"7d"``, ...).
        now: Reference time in unix seconds. Defaults to the wall clock.

    Returns:
        The resolved unix timestamp, or ``None`` if *value* is not a valid
        expression (negative numbers, unknown units and bare units included).
    """
    if _ABSOLUTE_RE.match(value):
        return int(value)

    if now is None:
        now = int(time.time())

    if value.lower() == "now":
        return now

    match = _RELATIVE_RE.match(value)
    if match is None:
        return None
    amount = int(match.group(1))
    if amount <= 0:
        return None
    timestamp = now - amount * UNIT_SECONDS[match.group(2)]
    return timestamp if timestamp >= 0 else None
