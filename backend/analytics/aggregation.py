"""
aggregation.py — Cross-Station Aggregation and Ranking
=======================================================

Builds district-level views over the whole observation set:

    latest_per_location      — newest observation of every station
    overview                 — latest + score/status + coordinates
    rankings                 — stations ordered by Water Score, ranked 1..N
    district_stats           — means and safe/warning/critical counts
    enhanced_district_stats  — + best/worst five, trend histogram, verdict
    heatmap                  — {lat, lng, intensity} points for the map
    search_suggestions       — name matches enriched with score and trend
    location_summary         — one-station digest with narrative sentence
    compare_locations        — two scored series side by side

All functions take the observation and location collections explicitly;
they never read shared state.
"""

import logging
from collections import defaultdict

import pandas as pd

from . import config
from .scoring import enrich, score_grade, status, status_color, water_score
from .trends import (
    DECLINING, IMPROVING, STABLE, series_trend, sort_series, yearly_changes,
)
from .utils import round_half_up

logger = logging.getLogger("analytics.aggregation")


def group_by_location(observations: list[dict]) -> dict[str, list[dict]]:
    """Map each station name to its series, ascending by year."""
    groups = defaultdict(list)
    for obs in observations:
        groups[obs["location"]].append(obs)
    return {name: sort_series(series) for name, series in groups.items()}


def latest_per_location(observations: list[dict]) -> list[dict]:
    """
    Reduce the observation set to the max-year record of each station.

    Stations appear in order of first sighting.
    """
    latest = {}
    for obs in observations:
        current = latest.get(obs["location"])
        if current is None or obs["year"] > current["year"]:
            latest[obs["location"]] = obs
    return list(latest.values())


def _coordinates(locations: list[dict]) -> dict[str, dict]:
    return {
        loc["name"]: {"latitude": loc.get("latitude"), "longitude": loc.get("longitude")}
        for loc in locations
    }


def overview(observations: list[dict], locations: list[dict]) -> list[dict]:
    """
    Latest observation of every station with score, status and coordinates.

    Stations without a Location record are placed at the district centre.
    """
    coords = _coordinates(locations)
    center = {"latitude": config.DISTRICT_CENTER[0], "longitude": config.DISTRICT_CENTER[1]}
    rows = []
    for obs in latest_per_location(observations):
        score = water_score(obs)
        rows.append({
            "location": obs["location"],
            "year": obs["year"],
            "water_score": score,
            "status": status(score),
            "status_color": status_color(score),
            "scarcity_level": obs.get("scarcity_level"),
            "groundwater_level": obs.get("groundwater_level"),
            "rainfall": obs.get("rainfall"),
            "depletion_rate": obs.get("depletion_rate"),
            "ph": obs.get("ph"),
            "consumption": obs.get("consumption"),
            "per_capita_usage": obs.get("per_capita_usage"),
            "coordinates": coords.get(obs["location"], center),
        })
    return rows


def rankings(observations: list[dict]) -> list[dict]:
    """
    Rank every station by the Water Score of its latest observation.

    Sorting is stable and descending by score; ties keep first-sighting
    order. Ranks run 1..N with no gaps.

    Returns:
        List of {"location", "water_score", "status", "status_color",
        "scarcity_level", "groundwater_level", "rainfall",
        "depletion_rate", "trend", "rank"}.
    """
    series_by_location = group_by_location(observations)
    ranked = []
    for obs in latest_per_location(observations):
        enriched = enrich(obs)
        ranked.append({
            "location": obs["location"],
            "water_score": enriched["water_score"],
            "status": enriched["status"],
            "status_color": enriched["status_color"],
            "scarcity_level": obs.get("scarcity_level"),
            "groundwater_level": obs.get("groundwater_level"),
            "rainfall": obs.get("rainfall"),
            "depletion_rate": obs.get("depletion_rate"),
            "trend": series_trend(series_by_location[obs["location"]]),
        })

    ranked.sort(key=lambda r: r["water_score"], reverse=True)
    for i, row in enumerate(ranked, start=1):
        row["rank"] = i
    return ranked


def _scarcity_bucket(scarcity: str) -> str:
    if scarcity in config.SEVERE_SCARCITY:
        return config.CRITICAL
    if scarcity == "High":
        return config.WARNING
    return config.SAFE


def district_stats(observations: list[dict]) -> dict:
    """
    District means and status counts over the latest record of each station.

    Stations are bucketed by scarcity level: Severe/Extreme count as
    critical, High as warning, everything else as safe, so
    safe + warning + critical == total_locations.

    Returns:
        {"total_locations", "avg_water_level", "avg_rainfall",
         "avg_depletion", "critical_count", "warning_count", "safe_count"},
        or an empty dict when there is no data.
    """
    latest = latest_per_location(observations)
    if not latest:
        return {}

    df = pd.DataFrame(latest)
    for col in ("groundwater_level", "rainfall", "depletion_rate"):
        if col not in df.columns:
            df[col] = 0.0
    means = df[["groundwater_level", "rainfall", "depletion_rate"]].apply(
        pd.to_numeric, errors="coerce"
    ).fillna(0.0).mean()

    buckets = [_scarcity_bucket(r.get("scarcity_level")) for r in latest]
    return {
        "total_locations": len(latest),
        "avg_water_level": round_half_up(float(means["groundwater_level"]), 2),
        "avg_rainfall": round_half_up(float(means["rainfall"]), 1),
        "avg_depletion": round_half_up(float(means["depletion_rate"]), 2),
        "critical_count": buckets.count(config.CRITICAL),
        "warning_count": buckets.count(config.WARNING),
        "safe_count": buckets.count(config.SAFE),
    }


def district_trend(improving: int, declining: int) -> str:
    """
    District verdict from station trend counts.

    declining if declining > 1.5 × improving, improving if
    improving > 1.5 × declining, otherwise stable.
    """
    if declining > improving * config.DISTRICT_TREND_RATIO:
        return DECLINING
    if improving > declining * config.DISTRICT_TREND_RATIO:
        return IMPROVING
    return STABLE


def average_change_rates(observations: list[dict]) -> dict | None:
    """
    Mean first-to-last change of level, rainfall and depletion across
    stations with at least two years. None when no station qualifies.
    """
    deltas = []
    for series in group_by_location(observations).values():
        if len(series) < 2:
            continue
        first, last = series[0], series[-1]
        deltas.append({
            "water_level": (last.get("groundwater_level") or 0) - (first.get("groundwater_level") or 0),
            "rainfall": (last.get("rainfall") or 0) - (first.get("rainfall") or 0),
            "depletion": (last.get("depletion_rate") or 0) - (first.get("depletion_rate") or 0),
        })
    if not deltas:
        return None
    means = pd.DataFrame(deltas).mean()
    return {
        "water_level": round_half_up(float(means["water_level"]), 2),
        "rainfall": round_half_up(float(means["rainfall"]), 1),
        "depletion": round_half_up(float(means["depletion"]), 2),
    }


def enhanced_district_stats(observations: list[dict]) -> dict:
    """
    district_stats() plus best five and worst five stations (worst first),
    the trend distribution, the district trend verdict and average change
    rates. Empty dict when there is no data.
    """
    base = district_stats(observations)
    if not base:
        return {}

    ranked = rankings(observations)
    top_n = config.TOP_N_STATIONS

    def _brief(r):
        return {"location": r["location"], "score": r["water_score"], "status": r["status"]}

    distribution = {IMPROVING: 0, STABLE: 0, DECLINING: 0}
    for r in ranked:
        distribution[r["trend"]] += 1

    return {
        **base,
        "best5": [_brief(r) for r in ranked[:top_n]],
        "worst5": [_brief(r) for r in reversed(ranked[-top_n:])],
        "district_trend": district_trend(distribution[IMPROVING], distribution[DECLINING]),
        "trend_distribution": distribution,
        "avg_change_rates": average_change_rates(observations),
    }


def heatmap(observations: list[dict], locations: list[dict]) -> list[dict]:
    """
    Heatmap points for the map view.

    Intensity inverts the score so stressed stations glow hotter:
    max(0.1, (100 − score) / 100), rounded to 2 decimals. Stations
    without a Location record or without coordinates are skipped.
    """
    coords = _coordinates(locations)
    points = []
    for obs in latest_per_location(observations):
        loc = coords.get(obs["location"])
        if loc is None or loc["latitude"] is None or loc["longitude"] is None:
            continue
        score = water_score(obs)
        points.append({
            "lat": loc["latitude"],
            "lng": loc["longitude"],
            "intensity": round_half_up(max(0.1, (100 - score) / 100), 2),
            "location": obs["location"],
            "water_score": score,
            "status": status(score),
        })
    return points


def search_suggestions(query: str, observations: list[dict],
                       locations: list[dict]) -> list[dict]:
    """
    Case-insensitive substring search over station names.

    Returns at most config.MAX_SUGGESTIONS matches, each enriched with the
    latest score, status, trend, scarcity level and water level. Stations
    without observations carry only name and district.
    """
    if not query:
        return []
    needle = query.lower()
    matches = [loc for loc in locations if needle in loc["name"].lower()]
    matches = matches[:config.MAX_SUGGESTIONS]

    series_by_location = group_by_location(observations)
    suggestions = []
    for loc in matches:
        series = series_by_location.get(loc["name"])
        if not series:
            suggestions.append({"name": loc["name"], "district": loc.get("district")})
            continue
        latest = series[-1]
        score = water_score(latest)
        suggestions.append({
            "name": loc["name"],
            "district": loc.get("district"),
            "water_score": score,
            "status": status(score),
            "trend": series_trend(series),
            "scarcity_level": latest.get("scarcity_level"),
            "groundwater_level": latest.get("groundwater_level"),
        })
    return suggestions


def quick_alert_count(latest: dict) -> int:
    """Number of headline threshold conditions met by the latest observation."""
    thresholds = config.ALERT_THRESHOLDS
    ph = latest.get("ph")
    ph = config.DEFAULT_PH if ph is None else ph
    checks = [
        (latest.get("groundwater_level") or 0) >= thresholds["warning_water_level"],
        (latest.get("depletion_rate") or 0) >= thresholds["high_depletion"],
        (latest.get("rainfall") or 0) <= thresholds["low_rainfall"],
        ph < thresholds["low_ph"] or ph > thresholds["high_ph"],
        latest.get("scarcity_level") in config.SEVERE_SCARCITY,
    ]
    return sum(checks)


def location_summary(name: str, observations: list[dict]) -> dict | None:
    """
    Digest of one station: latest enriched indicators, report-card grade,
    trend, quick alert count, year-over-year changes and a one-paragraph
    narrative.

    Returns None when the station has no observations.
    """
    series = sort_series([o for o in observations if o["location"] == name])
    if not series:
        return None

    latest = enrich(series[-1])
    trend = series_trend(series)
    alert_count = quick_alert_count(latest)
    plural = "" if alert_count == 1 else "s"
    narrative = (
        f"{name} has a water score of {latest['water_score']}/100 ({latest['status']}). "
        f"The groundwater level is {latest.get('groundwater_level')}m with "
        f"{latest.get('rainfall')}mm rainfall. "
        f"Trend is {trend} with {alert_count} active alert{plural}."
    )

    return {
        "location": name,
        "year": latest["year"],
        "water_score": latest["water_score"],
        "status": latest["status"],
        "status_color": latest["status_color"],
        "groundwater_level": latest.get("groundwater_level"),
        "rainfall": latest.get("rainfall"),
        "depletion_rate": latest.get("depletion_rate"),
        "ph": latest.get("ph"),
        "scarcity_level": latest.get("scarcity_level"),
        "wqi": latest["wqi"],
        "depletion_index": latest["depletion_index"],
        "sustainability_score": latest["sustainability_score"],
        "grade": score_grade(latest["water_score"]),
        "trend": trend,
        "alert_count": alert_count,
        "yoy_changes": yearly_changes(series),
        "narrative": narrative,
        "years_available": [r["year"] for r in series],
    }


def compare_locations(first: str, second: str, observations: list[dict]) -> dict:
    """Scored series of two stations side by side."""
    series_by_location = group_by_location(observations)

    def _scored(name):
        rows = []
        for obs in series_by_location.get(name, []):
            score = water_score(obs)
            rows.append({**obs, "water_score": score, "status": status(score)})
        return {"name": name, "data": rows}

    return {"location1": _scored(first), "location2": _scored(second)}
