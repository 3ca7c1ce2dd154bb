"""
alerts.py — Threshold, Trend and District Alert Engine
=======================================================

Generates context-aware alerts for the dashboard:

    threshold_alerts  — stateless checks on a station's latest observation
    trend_alerts      — sustained multi-year runs in a station's history
    district_alerts   — roll-up over the latest observation of every station
    *_bulletins       — advisory updates in the style of agency notices

Every alert is a dict:
    type            critical | warning | info
    category        Water Level, Depletion, Rainfall, Water Quality, ...
    title, message  human-readable text
    value           the observed number (or category)
    threshold       the limit that was crossed (None when not numeric)
    recommendation  suggested action
    timestamp       ISO-8601 UTC time of generation
"""

import logging
import operator
from datetime import datetime, timezone

from . import config
from .scoring import status
from .trends import half_mean_scores, sort_series, trailing_run

logger = logging.getLogger("analytics.alerts")

CRITICAL = "critical"
WARNING = "warning"
INFO = "info"

T = config.ALERT_THRESHOLDS


def _timestamp(now: datetime = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _alert(type_, category, title, message, value, recommendation,
           timestamp, threshold=None) -> dict:
    return {
        "type": type_,
        "category": category,
        "title": title,
        "message": message,
        "value": value,
        "threshold": threshold,
        "recommendation": recommendation,
        "timestamp": timestamp,
    }


def _mean(records: list[dict], key: str, default: float = 0.0) -> float:
    values = [r.get(key) for r in records]
    return sum(default if v is None else v for v in values) / len(records)


# ── Station alerts ───────────────────────────────────────────────

def threshold_alerts(latest: dict, now: datetime = None) -> list[dict]:
    """
    Stateless alerts on a station's latest observation.

    Checks water level (warn ≥12 m, critical ≥15 m), depletion (warn ≥5 %,
    critical ≥7 %), rainfall (warn ≤700 mm, critical ≤600 mm), pH outside
    (6.5, 8.0), consumption ≥500 Ml and Severe/Extreme scarcity.

    Args:
        latest: Latest observation of the station.
        now: Generation time; defaults to the current UTC time.

    Returns:
        List of alert dicts (possibly empty).
    """
    ts = _timestamp(now)
    alerts = []
    name = latest.get("location")
    level = latest.get("groundwater_level") or 0
    depletion = latest.get("depletion_rate") or 0
    rainfall = latest.get("rainfall") or 0
    ph = latest.get("ph")
    ph = config.DEFAULT_PH if ph is None else ph
    consumption = latest.get("consumption") or 0
    scarcity = latest.get("scarcity_level")

    if level >= T["critical_water_level"]:
        alerts.append(_alert(
            CRITICAL, "Water Level", "Critical Water Level",
            f"Groundwater level at {level}m depth in {name}. Immediate action required.",
            level, "Implement water rationing and emergency recharge measures.",
            ts, T["critical_water_level"],
        ))
    elif level >= T["warning_water_level"]:
        alerts.append(_alert(
            WARNING, "Water Level", "Low Water Table",
            f"Water table at {level}m in {name}. Monitor closely.",
            level, "Increase monitoring frequency. Consider water conservation measures.",
            ts, T["warning_water_level"],
        ))

    if depletion >= T["critical_depletion"]:
        alerts.append(_alert(
            CRITICAL, "Depletion", "Over-extraction Detected",
            f"Groundwater depletion rate at {depletion}% in {name}. Aquifer stress is severe.",
            depletion, "Restrict bore-well usage. Implement mandatory rainwater harvesting.",
            ts, T["critical_depletion"],
        ))
    elif depletion >= T["high_depletion"]:
        alerts.append(_alert(
            WARNING, "Depletion", "High Depletion Rate",
            f"Depletion rate {depletion}% in {name}. Extraction exceeds recharge.",
            depletion, "Promote water-efficient irrigation. Review extraction permits.",
            ts, T["high_depletion"],
        ))

    if rainfall <= T["critical_rainfall"]:
        alerts.append(_alert(
            CRITICAL, "Rainfall", "Drought Risk",
            f"Rainfall only {rainfall}mm in {name}. Severe drought conditions likely.",
            rainfall, "Activate drought contingency plans. Arrange water tanker supply.",
            ts, T["critical_rainfall"],
        ))
    elif rainfall <= T["low_rainfall"]:
        alerts.append(_alert(
            WARNING, "Rainfall", "Below Normal Rainfall",
            f"Rainfall {rainfall}mm in {name}, below expected levels.",
            rainfall, "Monitor reservoir levels. Advise farmers on drought-resistant crops.",
            ts, T["low_rainfall"],
        ))

    if ph >= T["high_ph"] or ph <= T["low_ph"]:
        alerts.append(_alert(
            WARNING, "Water Quality", "pH Imbalance",
            f"pH level {ph} in {name}. Water quality may be affected.",
            ph, "Test for contaminants. Advise water treatment before consumption.",
            ts, f"{T['low_ph']}-{T['high_ph']}",
        ))

    if consumption >= T["high_consumption"]:
        alerts.append(_alert(
            INFO, "Consumption", "High Water Consumption",
            f"Total consumption {consumption} Ml in {name}. Above district average.",
            consumption, "Review industrial and agricultural water permits. Promote efficiency.",
            ts, T["high_consumption"],
        ))

    if scarcity in config.SEVERE_SCARCITY:
        alerts.append(_alert(
            CRITICAL, "Scarcity", f"{scarcity} Water Scarcity",
            f"{name} classified as {scarcity} water scarcity zone.",
            scarcity, "Prioritize for government water supply augmentation schemes.",
            ts,
        ))

    return alerts


def trend_alerts(latest: dict, history: list[dict], now: datetime = None) -> list[dict]:
    """
    Alerts on sustained multi-year movements in a station's history.

    Requires at least config.MIN_TREND_HISTORY observations. Emits:
        - rising water-table depth for ≥3 consecutive years (warning)
        - rising depletion rate for ≥3 consecutive years (critical)
        - falling rainfall for ≥3 consecutive years (warning)
        - second-half mean score more than 10 below the first half (warning)

    Args:
        latest: Latest observation (used for names and current values).
        history: Full series of the station, any order.
        now: Generation time; defaults to the current UTC time.

    Returns:
        List of alert dicts (empty when history is too short).
    """
    if not history or len(history) < config.MIN_TREND_HISTORY:
        return []

    ts = _timestamp(now)
    alerts = []
    name = latest.get("location")
    ordered = sort_series(history)

    levels = [r.get("groundwater_level") or 0 for r in ordered]
    level_run = trailing_run(levels, operator.gt)
    if level_run >= config.MIN_TREND_RUN:
        total_rise = levels[-1] - levels[-1 - level_run]
        alerts.append(_alert(
            WARNING, "Trend", "Sustained Water Level Decline",
            f"Water level in {name} has been dropping for {level_run} consecutive "
            f"years ({total_rise:.1f}m increase in depth).",
            level_run, "Long-term recharge intervention needed. "
                       "Consider artificial recharge structures.",
            ts,
        ))

    depletion_run = trailing_run([r.get("depletion_rate") or 0 for r in ordered], operator.gt)
    if depletion_run >= config.MIN_TREND_RUN:
        alerts.append(_alert(
            CRITICAL, "Trend", "Accelerating Depletion Trend",
            f"Depletion rate in {name} has increased for {depletion_run} consecutive "
            f"years. Current: {latest.get('depletion_rate')}%.",
            depletion_run, "Urgent policy intervention needed. Restrict new extraction permits.",
            ts,
        ))

    rainfall_run = trailing_run([r.get("rainfall") or 0 for r in ordered], operator.lt)
    if rainfall_run >= config.MIN_TREND_RUN:
        alerts.append(_alert(
            WARNING, "Trend", "Declining Rainfall Pattern",
            f"Rainfall in {name} has decreased for {rainfall_run} consecutive years. "
            f"Long-term drought risk elevated.",
            rainfall_run, "Plan for drought resilience. Increase water storage capacity.",
            ts,
        ))

    first_mean, second_mean = half_mean_scores(ordered)
    if second_mean < first_mean - config.HEALTH_DECLINE_DROP:
        alerts.append(_alert(
            WARNING, "Trend", "Overall Water Health Declining",
            f"Water health score in {name} has declined significantly "
            f"(avg {round(first_mean)} → {round(second_mean)}) over the monitoring period.",
            round(second_mean - first_mean),
            "Comprehensive water management review recommended for this location.",
            ts,
        ))

    return alerts


def generate_alerts(latest: dict, history: list[dict] = None, now: datetime = None) -> list[dict]:
    """
    All alerts for one station: threshold alerts on ``latest`` plus trend
    alerts when a history of at least three years is supplied.
    """
    alerts = threshold_alerts(latest, now)
    if history:
        alerts.extend(trend_alerts(latest, history, now))
    logger.debug(f"{len(alerts)} alerts generated for {latest.get('location')}")
    return alerts


# ── District alerts ──────────────────────────────────────────────

def district_alerts(overview: list[dict], now: datetime = None) -> list[dict]:
    """
    District-wide alerts over the latest observation of every station.

    Args:
        overview: One record per station carrying ``status`` and
                  ``water_score`` (see aggregation.overview()).
        now: Generation time; defaults to the current UTC time.

    Returns:
        List of alert dicts. Always ends with an info-level district health
        alert when ``overview`` is non-empty; empty otherwise.
    """
    if not overview:
        return []

    ts = _timestamp(now)
    alerts = []
    n = len(overview)
    statuses = [r.get("status") or status(r.get("water_score", 50)) for r in overview]
    critical = [r for r, s in zip(overview, statuses) if s == config.CRITICAL]
    warning = [r for r, s in zip(overview, statuses) if s == config.WARNING]
    safe_count = n - len(critical) - len(warning)

    avg_depletion = _mean(overview, "depletion_rate")
    avg_rainfall = _mean(overview, "rainfall")
    avg_level = _mean(overview, "groundwater_level")
    low_rainfall = [r for r in overview if (r.get("rainfall") or 0) < T["low_rainfall"]]
    high_depletion = [r for r in overview if (r.get("depletion_rate") or 0) >= T["high_depletion"]]
    district = config.DEFAULT_DISTRICT

    if critical:
        # Lowest score first.
        worst = sorted(critical, key=lambda r: r.get("water_score", 0))
        named = ", ".join(r["location"] for r in worst[:config.DISTRICT_ALERT_NAMED])
        remainder = len(critical) - config.DISTRICT_ALERT_NAMED
        if remainder > 0:
            named += f" and {remainder} more"
        alerts.append(_alert(
            CRITICAL, "District Overview", "Critical Zones Detected",
            f"{len(critical)} out of {n} monitoring stations are in Critical status "
            f"across {district} District.",
            len(critical), f"Priority locations: {named}.", ts, 0,
        ))

    if len(warning) > config.WIDESPREAD_WARNING_COUNT:
        alerts.append(_alert(
            WARNING, "District Overview", "Widespread Warning Status",
            f"{len(warning)} stations are under Warning status. District-wide water "
            f"conservation advisory in effect.",
            len(warning), "Increase monitoring frequency at warning-level stations.",
            ts, config.WIDESPREAD_WARNING_COUNT,
        ))

    if avg_depletion >= T["high_depletion"]:
        alerts.append(_alert(
            CRITICAL if avg_depletion >= T["critical_depletion"] else WARNING,
            "Depletion", "High District Depletion Rate",
            f"Average groundwater depletion across {district} District is "
            f"{avg_depletion:.1f}%. {len(high_depletion)} stations exceed "
            f"{T['high_depletion']:g}% depletion.",
            avg_depletion, "District-level water recharge programs need acceleration.",
            ts, T["high_depletion"],
        ))

    if avg_rainfall < T["low_rainfall"]:
        alerts.append(_alert(
            CRITICAL if avg_rainfall < T["critical_rainfall"] else WARNING,
            "Rainfall", "District Rainfall Deficit",
            f"Average rainfall is {avg_rainfall:.0f}mm. {len(low_rainfall)} stations "
            f"report below-normal rainfall.",
            avg_rainfall, "Activate drought mitigation protocols for affected talukas.",
            ts, T["low_rainfall"],
        ))

    if avg_level >= T["warning_water_level"]:
        alerts.append(_alert(
            CRITICAL if avg_level >= T["critical_water_level"] else WARNING,
            "Water Level", "Deep Water Table Alert",
            f"Average groundwater depth across the district is {avg_level:.1f}m. "
            f"Multiple areas require intervention.",
            avg_level, "Prioritize artificial recharge projects in deep water-table zones.",
            ts, T["warning_water_level"],
        ))

    avg_score = _mean(overview, "water_score", default=50)
    alerts.append(_alert(
        INFO, "District Health", "District Water Health Index",
        f"Average water health score across {n} stations: {avg_score:.0f}/100. "
        f"Safe: {safe_count} | Warning: {len(warning)} | Critical: {len(critical)}.",
        avg_score, "Continue monitoring. Review individual station reports for detailed insights.",
        ts,
    ))

    logger.info(f"District alerts: {len(alerts)} generated over {n} stations")
    return alerts


# ── Advisory bulletins ───────────────────────────────────────────

def _bulletin(id_, title, body, source, priority, date) -> dict:
    return {"id": id_, "title": title, "body": body, "date": date,
            "source": source, "priority": "high" if priority else "normal"}


def location_bulletins(series: list[dict], now: datetime = None) -> list[dict]:
    """
    Five advisory bulletins describing a station's latest observation.

    Returns an empty list for an empty series.
    """
    if not series:
        return []
    latest = sort_series(series)[-1]
    date = (now or datetime.now(timezone.utc)).date().isoformat()
    name = latest.get("location")
    scarcity = latest.get("scarcity_level")
    rainfall = latest.get("rainfall") or 0
    ph = latest.get("ph")
    ph = config.DEFAULT_PH if ph is None else ph
    dry = rainfall < T["low_rainfall"]
    priority_zone = scarcity in ("High", "Severe")
    ph_ok = T["low_ph"] <= ph <= T["high_ph"]

    return [
        _bulletin(
            1, "Groundwater Status Report",
            f"Current groundwater level in {name} stands at {latest.get('groundwater_level')}m. "
            f"Depletion rate: {latest.get('depletion_rate')}%. Classification: {scarcity}.",
            "Central Ground Water Board", scarcity in config.SEVERE_SCARCITY, date,
        ),
        _bulletin(
            2, "Rainfall Monitoring Update",
            f"Annual rainfall recorded: {rainfall}mm. "
            + ("Below normal levels. Drought alert issued." if dry else "Within normal range."),
            "India Meteorological Department", dry, date,
        ),
        _bulletin(
            3, "Water Quality Assessment",
            f"pH level: {ph}. "
            + ("Water quality is within acceptable BIS standards." if ph_ok
               else "Water quality needs attention."),
            "State Pollution Control Board", False, date,
        ),
        _bulletin(
            4, "Usage Distribution Report",
            f"Agricultural: {latest.get('agricultural_usage')} Ml | "
            f"Industrial: {latest.get('industrial_usage')} Ml | "
            f"Household: {latest.get('household_usage')} Ml. "
            f"Total consumption: {latest.get('consumption')} Ml.",
            f"{config.DEFAULT_DISTRICT} District Water Authority", False, date,
        ),
        _bulletin(
            5, "Jal Shakti Abhiyan Advisory",
            f"Under the National Jal Jeevan Mission, {name} is "
            + ("marked for priority intervention. Community rainwater harvesting "
               "programs recommended." if priority_zone
               else "under regular monitoring. Continue existing conservation measures."),
            "Ministry of Jal Shakti", priority_zone, date,
        ),
    ]


def district_bulletins(overview: list[dict], now: datetime = None) -> list[dict]:
    """Five district-wide advisory bulletins; empty when there are no stations."""
    if not overview:
        return []
    n = len(overview)
    date = (now or datetime.now(timezone.utc)).date().isoformat()
    district = config.DEFAULT_DISTRICT
    statuses = [r.get("status") for r in overview]
    critical = statuses.count(config.CRITICAL)
    warning = statuses.count(config.WARNING)
    safe = statuses.count(config.SAFE)
    avg_depletion = _mean(overview, "depletion_rate")
    avg_rainfall = _mean(overview, "rainfall")
    avg_level = _mean(overview, "groundwater_level")
    avg_ph = _mean(overview, "ph", default=config.DEFAULT_PH)
    dry = avg_rainfall < T["low_rainfall"]
    ph_ok = T["low_ph"] <= avg_ph <= T["high_ph"]

    return [
        _bulletin(
            1, f"{district} District Groundwater Status",
            f"Across {n} monitoring stations: {safe} Safe, {warning} Warning, "
            f"{critical} Critical. Average water table depth: {avg_level:.1f}m. "
            f"District depletion rate: {avg_depletion:.1f}%.",
            "Central Ground Water Board", critical > 10, date,
        ),
        _bulletin(
            2, "District Rainfall Summary",
            f"Average annual rainfall across {district} District: {avg_rainfall:.0f}mm. "
            + ("Below normal, drought advisory active for affected talukas." if dry
               else "Within normal range for the region."),
            "India Meteorological Department", dry, date,
        ),
        _bulletin(
            3, "Water Quality Report (District Average)",
            f"Average pH across all stations: {avg_ph:.1f}. "
            + ("District water quality is within BIS acceptable limits." if ph_ok
               else "Some areas show pH outside acceptable range, monitoring advised."),
            "State Pollution Control Board", False, date,
        ),
        _bulletin(
            4, f"Jal Jeevan Mission: {district} Progress",
            f"{critical + warning} stations require priority intervention under the "
            f"National Jal Jeevan Mission. Community rainwater harvesting and recharge "
            f"programs are being expanded across the district.",
            "Ministry of Jal Shakti", critical > 5, date,
        ),
        _bulletin(
            5, "Conservation Advisory",
            f"{district} District water conservation drive ongoing. Citizens advised to "
            f"reduce non-essential water usage. Report water wastage to local gram "
            f"panchayat offices.",
            f"{district} District Collector Office", False, date,
        ),
    ]
