"""
Duration Helpers
================

ISO-8601 duration conversions used by the interpretation layer (seconds →
"PT2M30S") and by actor reports (summing result.duration values).

Only day/hour/minute/second (and week) designators are understood when
parsing; year/month durations have no fixed length and are skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?\d+")

_NUM = r"(-?\d+(?:[.,]\d+)?)"
_ISO_DURATION_RE = re.compile(
    rf"(?P<sign>-)?P"
    rf"(?:{_NUM}W)?"
    rf"(?:{_NUM}D)?"
    rf"(?:T(?:{_NUM}H)?(?:{_NUM}M)?(?:{_NUM}S)?)?"
)

_UNIT_SECONDS = (7 * 86400, 86400, 3600, 60, 1)


def seconds_to_iso(seconds: Union[int, float]) -> str:
    """
    Seconds → ISO-8601 duration, hours being the largest unit.

        150   → "PT2M30S"
        3600  → "PT1H"
        0     → "PT0S"
        -150  → "PT-2M-30S"
    """
    # Millisecond precision; rounding happens before carrying into minutes/hours
    millis = round(abs(seconds) * 1000)
    negative = seconds < 0 and millis > 0

    whole, frac_ms = divmod(millis, 1000)
    hours, rem = divmod(whole, 3600)
    minutes, secs = divmod(rem, 60)

    sign = "-" if negative else ""
    parts = ["PT"]
    if hours:
        parts.append(f"{sign}{hours}H")
    if minutes:
        parts.append(f"{sign}{minutes}M")
    if secs or frac_ms or (not hours and not minutes):
        text = f"{secs}.{frac_ms:03d}".rstrip("0") if frac_ms else str(secs)
        parts.append(f"{sign}{text}S")
    return "".join(parts)


def iso_to_seconds(value: Optional[str]) -> Optional[float]:
    """ISO-8601 duration → seconds, None when the value is not understood."""
    if not value or not isinstance(value, str):
        return None

    match = _ISO_DURATION_RE.fullmatch(value.strip())
    if not match:
        return None

    groups = match.groups()[1:]
    if all(g is None for g in groups):
        return None

    total = 0.0
    for raw, unit in zip(groups, _UNIT_SECONDS):
        if raw is not None:
            total += float(raw.replace(",", ".")) * unit

    return -total if match.group("sign") else total


def normalize_duration(duration: Optional[str]) -> Optional[str]:
    """
    Best-effort duration normalisation.

    - "P..."          → unchanged (already ISO-8601)
    - integer seconds → ISO-8601
    - anything else   → unchanged, with a warning
    """
    if duration is None:
        return None

    if duration.startswith("P"):
        return duration

    if _INTEGER_RE.fullmatch(duration):
        return seconds_to_iso(int(duration))

    logger.warning(f"Could not parse duration: {duration!r}, returning as-is")
    return duration


def sum_durations(durations: Iterable[Optional[str]]) -> Optional[str]:
    """Sum of the parsable ISO-8601 durations, None when none parse."""
    total: Optional[float] = None
    for value in durations:
        seconds = iso_to_seconds(value)
        if seconds is None:
            continue
        total = seconds if total is None else total + seconds

    if total is None:
        return None
    if float(total).is_integer():
        return seconds_to_iso(int(total))
    return seconds_to_iso(total)


__all__ = [
    "seconds_to_iso",
    "iso_to_seconds",
    "normalize_duration",
    "sum_durations",
]
