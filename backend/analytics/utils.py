"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the analytics modules: logging configuration,
record validation, rounding, and the deterministic location hash that
drives both synthetic history and fallback geocoding.
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal

from . import config


def setup_logging(level: str = None) -> None:
    """
    Configure structured logging for the analytics engine.

    Sets up a console handler with timestamp, logger name, level,
    and message. All analytics.* loggers inherit this configuration.

    Args:
        level: Log level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
               Defaults to config.LOG_LEVEL.
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    analytics_logger = logging.getLogger("analytics")
    analytics_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not analytics_logger.handlers:
        analytics_logger.addHandler(handler)


def validate_record(record: dict) -> bool:
    """
    Validate that an observation record can be ingested.

    Args:
        record: Observation dict.

    Returns:
        True if it names a location, has an integer-like year, and every
        numeric field present is convertible to float.
    """
    location = record.get("location")
    if not isinstance(location, str) or not location.strip():
        return False
    try:
        int(record.get("year"))
    except (TypeError, ValueError):
        return False
    for key in config.NUMERIC_FIELDS + ["ph"]:
        if key not in record or record[key] is None:
            continue
        try:
            float(record[key])
        except (TypeError, ValueError):
            return False
    return True


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to ``digits`` decimals with halves rounded away from zero.

    Python's round() uses banker's rounding; the dashboard publishes
    numbers rounded the conventional way (69.5 → 70, -12.25 → -12.3).
    The value is rounded from its shortest decimal repr, so binary
    artefacts such as 1.0049999... for 1.005 do not shift the result.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


# ── Deterministic location hash ──────────────────────────────────

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    """Reinterpret the low 32 bits of ``value`` as a signed integer."""
    value &= _INT32_MASK
    return value - (1 << 32) if value & _INT32_SIGN else value


def _utf16_code_units(text: str) -> list[int]:
    data = text.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def location_hash(name: str) -> int:
    """
    Polynomial string hash of a location name with 32-bit signed wraparound.

    For each UTF-16 code unit ``c``:  h = int32(h * 31 + c), starting from 0.
    The arithmetic is exact modulo 2**32, so the result matches the
    ``(h << 5) - h + c; h |= 0`` hash published by the web dashboard for the
    same name, bit for bit.

    Args:
        name: Location name.

    Returns:
        Signed 32-bit integer in [-2**31, 2**31 - 1].
    """
    h = 0
    for unit in _utf16_code_units(name):
        h = _to_int32(h * 31 + unit)
    return h


def _truncated_remainder(value: int, divisor: int) -> int:
    """Remainder with the sign of the dividend (C / JavaScript semantics)."""
    return int(math.fmod(value, divisor))


def fallback_coordinates(name: str) -> tuple[float, float]:
    """
    Derive stable pseudo-coordinates for a station that has no lat/lng.

    Offsets from the district centre are taken from the location hash
    (truncated remainder, so negative hashes shift further south-west),
    and every consumer of the same name places it at the same point.

    Returns:
        (latitude, longitude) rounded to 6 decimals.
    """
    h = location_hash(name)
    span = config.FALLBACK_JITTER_DEGREES * 2
    lat_offset = (_truncated_remainder(h, 500) / 500) * span - config.FALLBACK_JITTER_DEGREES
    lng_offset = (_truncated_remainder(h >> 8, 500) / 500) * span - config.FALLBACK_JITTER_DEGREES
    center_lat, center_lng = config.DISTRICT_CENTER
    return (
        round_half_up(center_lat + lat_offset, 6),
        round_half_up(center_lng + lng_offset, 6),
    )
