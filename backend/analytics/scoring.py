"""
scoring.py — Water Score and Sub-Index Engine
==============================================

Turns one groundwater observation into the composite indicators shown on
the dashboard:

    water_score          — weighted 0–100 sustainability score
    status               — Safe / Warning / Critical band of the score
    status_color         — display color of the band
    wqi                  — pH-deviation water quality tier
    depletion_index      — tier of the groundwater depletion rate
    sustainability_score — recharge / extraction / quality blend

Every function here is pure: no logging, no shared state, safe to call
from any number of threads.
"""

from . import config
from .utils import round_half_up


def normalize(value: float, lo: float, hi: float, invert: bool = False) -> float:
    """
    Clamp ``value`` to [lo, hi] and rescale it linearly to [0, 100].

    A collapsed domain (lo == hi) has no meaningful scale; it yields
    config.DEGENERATE_NORMALIZE_VALUE (the midpoint, 50.0) in both
    orientations.

    Args:
        value: Raw metric value.
        lo: Lower bound of the domain (maps to 0).
        hi: Upper bound of the domain (maps to 100).
        invert: If True, return 100 − x so that lower raw values score higher.

    Returns:
        Float in [0, 100].
    """
    if hi == lo:
        return config.DEGENERATE_NORMALIZE_VALUE
    clamped = max(lo, min(hi, value))
    scaled = (clamped - lo) / (hi - lo) * 100.0
    return 100.0 - scaled if invert else scaled


def _ph(obs: dict) -> float:
    ph = obs.get("ph")
    return config.DEFAULT_PH if ph is None else float(ph)


def _ph_deviation(obs: dict) -> float:
    return abs(_ph(obs) - config.IDEAL_PH)


def water_score(obs: dict) -> int:
    """
    Composite Water Score (0–100, higher is healthier).

    Components:
        groundwater_level  inverted over [4, 20] m      weight 0.35
        rainfall           over [500, 1500] mm          weight 0.25
        depletion_rate     inverted over [0, 10] %      weight 0.30
        |ph − 7.0|         inverted over [0, 1.5]       weight 0.10

    Args:
        obs: Observation dict.

    Returns:
        Integer score, rounded half-up and clamped to [0, 100].
    """
    weights = config.WATER_SCORE_WEIGHTS
    level = normalize(float(obs.get("groundwater_level") or 0), *config.WATER_LEVEL_RANGE, invert=True)
    rain = normalize(float(obs.get("rainfall") or 0), *config.RAINFALL_RANGE)
    depletion = normalize(float(obs.get("depletion_rate") or 0), *config.DEPLETION_RANGE, invert=True)
    ph = normalize(_ph_deviation(obs), *config.PH_DEVIATION_RANGE, invert=True)

    score = (
        level * weights["groundwater_level"]
        + rain * weights["rainfall"]
        + depletion * weights["depletion_rate"]
        + ph * weights["ph"]
    )
    return int(round_half_up(max(0.0, min(100.0, score))))


def status(score: float) -> str:
    """Safe (≥70), Warning (40–69) or Critical (<40)."""
    if score >= config.SAFE_SCORE:
        return config.SAFE
    if score >= config.WARNING_SCORE:
        return config.WARNING
    return config.CRITICAL


def status_color(score: float) -> str:
    return config.STATUS_COLORS[status(score)]


def wqi(ph: float) -> dict:
    """
    Water Quality Index tier from the deviation of pH from neutral.

    Returns:
        {"index": tier name, "value": tier score}.
    """
    deviation = abs((config.DEFAULT_PH if ph is None else ph) - config.IDEAL_PH)
    for limit, index, value in config.WQI_TIERS:
        if deviation <= limit:
            return {"index": index, "value": value}
    index, value = config.WQI_FLOOR
    return {"index": index, "value": value}


def depletion_index(rate: float) -> dict:
    """
    Depletion Index tier of a groundwater depletion rate (%).

    Returns:
        {"index": tier name, "value": tier score}.
    """
    for limit, index, value in config.DEPLETION_TIERS:
        if rate <= limit:
            return {"index": index, "value": value}
    index, value = config.DEPLETION_FLOOR
    return {"index": index, "value": value}


def sustainability_score(obs: dict) -> int:
    """
    Sustainability score: 40 % recharge capacity (rainfall), 35 % extraction
    impact (inverted depletion), 25 % quality (inverted pH deviation).
    """
    weights = config.SUSTAINABILITY_WEIGHTS
    recharge = normalize(float(obs.get("rainfall") or 0), *config.RAINFALL_RANGE) * weights["rainfall"]
    extraction = normalize(
        float(obs.get("depletion_rate") or 0), *config.DEPLETION_RANGE, invert=True
    ) * weights["depletion_rate"]
    quality = normalize(_ph_deviation(obs), *config.PH_DEVIATION_RANGE, invert=True) * weights["ph"]
    return int(round_half_up(recharge + extraction + quality))


def score_grade(score: float) -> dict:
    """Letter grade for report cards: A ≥80, B ≥70, C ≥50, D ≥30, else F."""
    for minimum, grade, label in config.SCORE_GRADES:
        if score >= minimum:
            return {"grade": grade, "label": label}
    grade, label = config.SCORE_GRADE_FLOOR
    return {"grade": grade, "label": label}


def enrich(obs: dict) -> dict:
    """
    Return a copy of ``obs`` with every computed indicator attached.

    The input record is not modified.
    """
    score = water_score(obs)
    enriched = dict(obs)
    enriched.update({
        "water_score": score,
        "status": status(score),
        "status_color": status_color(score),
        "wqi": wqi(_ph(obs)),
        "depletion_index": depletion_index(float(obs.get("depletion_rate") or 0)),
        "sustainability_score": sustainability_score(obs),
    })
    return enriched
