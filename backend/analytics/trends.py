"""
trends.py — Year-over-Year Change and Trend Detection
======================================================

Analyses one station's ascending series of observations:

    pct_change        — safe percentage change between two values
    yearly_changes    — per-metric change for each consecutive pair of years
    trend_direction   — improving / stable / declining from two scores
    trailing_run      — length of the latest run of strict moves
    half_mean_scores  — mean Water Score of first vs second half of a series
    detect_outliers   — IQR-based anomaly detection on a metric

Series passed to these functions are sorted by year first; callers may
hand in records in any order.
"""

import logging
import operator

import numpy as np

from . import config
from .scoring import water_score
from .utils import round_half_up

logger = logging.getLogger("analytics.trends")

IMPROVING = "improving"
STABLE = "stable"
DECLINING = "declining"

# Published change key -> record key
CHANGE_METRICS = {
    "water_level": "groundwater_level",
    "rainfall": "rainfall",
    "depletion": "depletion_rate",
    "consumption": "consumption",
    "ph": "ph",
}


def sort_series(series: list[dict]) -> list[dict]:
    """Return the series ordered ascending by year."""
    return sorted(series, key=lambda r: r["year"])


def pct_change(curr: float, prev: float) -> float:
    """
    Percentage change from ``prev`` to ``curr``, rounded to 1 decimal.

    Returns 0.0 when ``prev`` is 0, so the result is always finite.
    """
    curr = float(curr or 0)
    prev = float(prev or 0)
    if prev == 0:
        return 0.0
    return round_half_up((curr - prev) / abs(prev) * 100, 1)


def yearly_changes(series: list[dict]) -> list[dict]:
    """
    Year-over-year changes for every consecutive pair in a station's series.

    Args:
        series: Observations of one station.

    Returns:
        List of dicts, one per pair:
            {"from": year, "to": year,
             "water_level": {"prev", "curr", "change_pct"}, "rainfall": {...},
             "depletion": {...}, "consumption": {...}, "ph": {...}}
        Empty when fewer than two years are available.
    """
    ordered = sort_series(series)
    changes = []
    for prev, curr in zip(ordered, ordered[1:]):
        entry = {"from": prev["year"], "to": curr["year"]}
        for name, key in CHANGE_METRICS.items():
            entry[name] = {
                "prev": prev.get(key),
                "curr": curr.get(key),
                "change_pct": pct_change(curr.get(key), prev.get(key)),
            }
        changes.append(entry)
    return changes


def trend_direction(current_score: float, previous_score: float) -> str:
    """improving if the score rose by more than 3, declining if it fell by more than 3."""
    diff = current_score - previous_score
    if diff > config.TREND_SCORE_DELTA:
        return IMPROVING
    if diff < -config.TREND_SCORE_DELTA:
        return DECLINING
    return STABLE


def series_trend(series: list[dict]) -> str:
    """Trend between the two most recent years; stable with fewer than two."""
    if len(series) < 2:
        return STABLE
    ordered = sort_series(series)
    return trend_direction(water_score(ordered[-1]), water_score(ordered[-2]))


def trailing_run(values: list[float], compare=operator.gt) -> int:
    """
    Count the consecutive strict moves that end at the latest value.

    A move is a pair (previous, current) with compare(current, previous)
    true; any other pair resets the counter. Four strictly rising values
    therefore give a run of 3.

    Args:
        values: Chronologically ordered values.
        compare: operator.gt for rises, operator.lt for falls.

    Returns:
        Run length (0 when the latest pair is not a move).
    """
    run = 0
    for prev, curr in zip(values, values[1:]):
        if compare(curr, prev):
            run += 1
        else:
            run = 0
    return run


def half_mean_scores(series: list[dict]) -> tuple[float, float]:
    """
    Mean Water Score of the first and second half of a series.

    The split point is floor(n / 2), so an odd-length series puts the
    extra year in the second half.

    Returns:
        (first_half_mean, second_half_mean).

    Raises:
        ValueError: If fewer than two observations are supplied.
    """
    if len(series) < 2:
        raise ValueError("At least two observations are needed to compare halves")
    scores = [water_score(r) for r in sort_series(series)]
    mid = len(scores) // 2
    return float(np.mean(scores[:mid])), float(np.mean(scores[mid:]))


# ── Anomaly detection ────────────────────────────────────────────

def detect_outliers(values: list[float], multiplier: float = None) -> list[int]:
    """
    Indices of values outside the Tukey fences [Q1 − k·IQR, Q3 + k·IQR].

    Quartiles are read directly from the sorted sample at positions
    floor(0.25·n) and floor(0.75·n), matching the dashboard's anomaly chart.

    Args:
        values: Metric values in chronological order.
        multiplier: Fence multiplier k. Defaults to config.IQR_MULTIPLIER.

    Returns:
        Indices (into ``values``) of anomalous points. Empty when n < 3.
    """
    multiplier = config.IQR_MULTIPLIER if multiplier is None else multiplier
    if len(values) < 3:
        return []
    arr = np.asarray(values, dtype=np.float64)
    ordered = np.sort(arr)
    q1 = ordered[int(len(ordered) * 0.25)]
    q3 = ordered[int(len(ordered) * 0.75)]
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr
    return [int(i) for i in np.flatnonzero((arr < lower) | (arr > upper))]


def series_anomalies(series: list[dict], metric: str = "groundwater_level") -> list[dict]:
    """
    Anomalous years of one metric in a station's series.

    Returns:
        List of {"year", "value", "metric"} for each outlying observation.
    """
    ordered = sort_series(series)
    values = [float(r.get(metric) or 0) for r in ordered]
    anomalies = [
        {"year": ordered[i]["year"], "value": values[i], "metric": metric}
        for i in detect_outliers(values)
    ]
    if anomalies:
        logger.debug(f"{len(anomalies)} anomalies in {metric} for "
                     f"{ordered[0].get('location')}")
    return anomalies
