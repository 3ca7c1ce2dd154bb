"""
generator.py — Deterministic Synthetic Series Generator
========================================================

The Nashik survey provides a single observed year per station. To support
trend analysis and forecasting, each observed row is expanded into a
multi-year series (config.TARGET_YEARS) with realistic, reproducible
year-to-year drift.

How a synthetic year is built:
    seed      = location_hash(location)               (32-bit signed)
    offset    = year − base_year
    variation = ((|seed| + year) mod 100 − 50) / 200  ∈ [−0.25, 0.25]
    metric    = clamp(base + offset·k_year + variation·k_noise)

The per-metric coefficients and clamps live in
config.GENERATOR_COEFFICIENTS. No real randomness is involved: the same
base row always yields the same series.
"""

import logging

from . import config
from .utils import location_hash, round_half_up

logger = logging.getLogger("analytics.generator")

_SYNTHETIC_KEYS = ["location", "year"] + list(config.GENERATOR_COEFFICIENTS) + ["scarcity_level"]


def classify_scarcity(depletion_rate: float, rainfall: float) -> str:
    """
    Scarcity level of a synthesized year.

    depletion ≥ 6 → Severe; ≥ 5 → High; ≥ 3 → High if rainfall < 750
    else Moderate; otherwise Low.
    """
    if depletion_rate >= config.SCARCITY_SEVERE_DEPLETION:
        return "Severe"
    if depletion_rate >= config.SCARCITY_HIGH_DEPLETION:
        return "High"
    if depletion_rate >= config.SCARCITY_MODERATE_DEPLETION:
        return "High" if rainfall < config.SCARCITY_DRY_RAINFALL else "Moderate"
    return "Low"


def variation_factor(seed: int, year: int) -> float:
    """Pseudo-random factor in [−0.25, 0.25] for one (station, year)."""
    raw = ((abs(seed) + year) % 100 - 50) / 200
    lo, hi = config.VARIATION_BOUNDS
    return max(lo, min(hi, raw))


def _synthesize_metric(metric: str, base_value: float, offset: int, variation: float) -> float:
    per_year, noise, floor, ceiling, decimals = config.GENERATOR_COEFFICIENTS[metric]
    value = round_half_up(base_value + offset * per_year + variation * noise, decimals)
    value = max(floor, value)
    if ceiling is not None:
        value = min(ceiling, value)
    return value


def synthesize_year(base: dict, year: int, seed: int = None) -> dict:
    """
    Build one synthetic observation for ``year`` from the observed ``base``.

    Args:
        base: Observed record (must contain location, year and the metrics
              listed in config.GENERATOR_COEFFICIENTS).
        year: Target year.
        seed: Pre-computed location hash; derived from the name if omitted.

    Returns:
        New observation dict for ``year``.
    """
    if seed is None:
        seed = location_hash(base["location"])
    offset = year - int(base["year"])
    variation = variation_factor(seed, year)

    record = {"location": base["location"], "year": year}
    for metric in config.GENERATOR_COEFFICIENTS:
        base_value = base.get(metric)
        if base_value is None:
            base_value = config.DEFAULT_PH if metric == "ph" else 0.0
        record[metric] = _synthesize_metric(metric, float(base_value), offset, variation)

    record["scarcity_level"] = classify_scarcity(record["depletion_rate"], record["rainfall"])
    return {key: record[key] for key in _SYNTHETIC_KEYS}


def generate_series(base: dict, years: list[int] = None) -> list[dict]:
    """
    Expand one observed record into a full multi-year series.

    The base year is emitted unmodified (as a copy), even when it falls
    outside ``years``. All other years are synthesized.

    Args:
        base: Observed record.
        years: Target years. Defaults to config.TARGET_YEARS.

    Returns:
        Observations ordered ascending by year, one per distinct year.
    """
    years = years if years is not None else config.TARGET_YEARS
    base_year = int(base["year"])
    seed = location_hash(base["location"])

    series = []
    for year in sorted(set(years) | {base_year}):
        if year == base_year:
            series.append(dict(base))
        else:
            series.append(synthesize_year(base, year, seed))
    return series


def expand_dataset(rows: list[dict], years: list[int] = None) -> list[dict]:
    """
    Expand every observed row into its synthetic series.

    Args:
        rows: Observed records, one per station.
        years: Target years. Defaults to config.TARGET_YEARS.

    Returns:
        Flat list of observations for all stations.
    """
    observations = []
    for row in rows:
        observations.extend(generate_series(row, years))
    logger.info(f"Generated {len(observations)} observations from "
                f"{len(rows)} observed rows")
    return observations
