"""
config.py — Analytics Engine Configuration Constants
=====================================================

Centralizes every threshold, weight, coefficient and deployment knob used
by the groundwater analytics engine. Tuning these values changes how
observations are scored, when alerts fire and how synthetic history is
generated.

The monitoring network covers Nashik district (Maharashtra) stations:
- Groundwater level (m below ground)
- Annual rainfall (mm)
- Groundwater depletion rate (%)
- pH of sampled groundwater
- Consumption split into agricultural / industrial / household (Ml)
"""

import os

# ═══════════════════════════════════════════════════════════════════
# WATER SCORE NORMALIZATION DOMAINS
# ═══════════════════════════════════════════════════════════════════

# Depth to water table in metres. Shallower is better, so this component
# is inverted: 4 m scores 100, 20 m or deeper scores 0.
WATER_LEVEL_RANGE = (4.0, 20.0)

# Annual rainfall in mm. 500 mm scores 0, 1500 mm or more scores 100.
RAINFALL_RANGE = (500.0, 1500.0)

# Depletion rate in %. Inverted: 0 % scores 100, 10 % or more scores 0.
DEPLETION_RANGE = (0.0, 10.0)

# pH is scored on its absolute deviation from neutral, inverted.
IDEAL_PH = 7.0
PH_DEVIATION_RANGE = (0.0, 1.5)

# Component weights of the composite Water Score (sum to 1.0).
WATER_SCORE_WEIGHTS = {
    "groundwater_level": 0.35,
    "rainfall": 0.25,
    "depletion_rate": 0.30,
    "ph": 0.10,
}

# Sustainability score weights: recharge capacity, extraction impact, quality.
SUSTAINABILITY_WEIGHTS = {
    "rainfall": 0.40,
    "depletion_rate": 0.35,
    "ph": 0.25,
}

# Value returned by normalize() when the domain collapses (min == max).
DEGENERATE_NORMALIZE_VALUE = 50.0

# ═══════════════════════════════════════════════════════════════════
# STATUS CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════

SAFE = "Safe"
WARNING = "Warning"
CRITICAL = "Critical"

SAFE_SCORE = 70
WARNING_SCORE = 40

STATUS_COLORS = {
    SAFE: "#22c55e",
    WARNING: "#eab308",
    CRITICAL: "#ef4444",
}

# (max pH deviation, tier, value) — first matching row wins.
WQI_TIERS = [
    (0.5, "Excellent", 95),
    (1.0, "Good", 75),
    (1.5, "Fair", 55),
]
WQI_FLOOR = ("Poor", 30)

# (max depletion %, tier, value) — first matching row wins.
DEPLETION_TIERS = [
    (2.0, "Sustainable", 90),
    (4.0, "Moderate", 65),
    (6.0, "Concerning", 40),
]
DEPLETION_FLOOR = ("Critical", 15)

# (min score, grade, label) for report cards.
SCORE_GRADES = [
    (80, "A", "Excellent"),
    (70, "B", "Good"),
    (50, "C", "Fair"),
    (30, "D", "Poor"),
]
SCORE_GRADE_FLOOR = ("F", "Critical")

SCARCITY_LEVELS = ["Low", "Moderate", "High", "Severe", "Extreme"]
SEVERE_SCARCITY = ("Severe", "Extreme")

# ═══════════════════════════════════════════════════════════════════
# ALERT THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

ALERT_THRESHOLDS = {
    "warning_water_level": 12.0,   # m
    "critical_water_level": 15.0,  # m
    "high_depletion": 5.0,         # %
    "critical_depletion": 7.0,     # %
    "low_rainfall": 700.0,         # mm
    "critical_rainfall": 600.0,    # mm
    "low_ph": 6.5,
    "high_ph": 8.0,
    "high_consumption": 500.0,     # Ml
}

# District-wide warning alert fires when more than this many stations warn.
WIDESPREAD_WARNING_COUNT = 5

# Number of critical stations named in the district alert recommendation.
DISTRICT_ALERT_NAMED = 3

# ═══════════════════════════════════════════════════════════════════
# TREND DETECTION
# ═══════════════════════════════════════════════════════════════════

# Score difference between the two most recent years that counts as a move.
TREND_SCORE_DELTA = 3

# Consecutive year-over-year moves needed before a trend alert fires.
MIN_TREND_RUN = 3

# Minimum observations before run detection is attempted.
MIN_TREND_HISTORY = 3

# Drop in mean score (first half → second half) that flags declining health.
HEALTH_DECLINE_DROP = 10

# Ratio between declining and improving stations for a district verdict.
DISTRICT_TREND_RATIO = 1.5

# IQR fence multiplier used for anomaly (outlier) detection.
IQR_MULTIPLIER = 1.5

# ═══════════════════════════════════════════════════════════════════
# SYNTHETIC SERIES GENERATOR
# ═══════════════════════════════════════════════════════════════════

# Each station is observed for one year; history is expanded to these years.
TARGET_YEARS = [2016, 2017, 2018, 2019, 2020, 2021]

# Variation factor bounds: ((|seed| + year) mod 100 - 50) / 200.
VARIATION_BOUNDS = (-0.25, 0.25)

# metric -> (per-year coefficient, variation coefficient, floor, ceiling, decimals)
GENERATOR_COEFFICIENTS = {
    "depletion_rate": (0.25, 0.4, 0.5, None, 1),
    "rainfall": (-8.0, 35.0, 400.0, None, 0),
    "groundwater_level": (0.15, 0.35, 3.0, None, 1),
    "consumption": (8.0, 15.0, 100.0, None, 0),
    "ph": (0.0, 0.25, 6.0, 9.0, 1),
    "agricultural_usage": (4.0, 12.0, 50.0, None, 0),
    "industrial_usage": (2.0, 8.0, 10.0, None, 0),
    "household_usage": (2.0, 6.0, 20.0, None, 0),
    "per_capita_usage": (1.5, 4.0, 50.0, None, 0),
}

# Scarcity classification of synthesized years.
SCARCITY_SEVERE_DEPLETION = 6.0
SCARCITY_HIGH_DEPLETION = 5.0
SCARCITY_MODERATE_DEPLETION = 3.0
SCARCITY_DRY_RAINFALL = 750.0

# ═══════════════════════════════════════════════════════════════════
# FORECASTING
# ═══════════════════════════════════════════════════════════════════

DEFAULT_YEARS_AHEAD = 3
MIN_FORECAST_HISTORY = 2

# Two-sided 95 % normal quantile used for the confidence band.
CONFIDENCE_Z = 1.96

# metric -> decimals of the published point estimate and interval.
FORECAST_METRICS = {
    "groundwater_level": 2,
    "rainfall": 1,
    "depletion_rate": 2,
}

# ═══════════════════════════════════════════════════════════════════
# GEOGRAPHY DEFAULTS
# ═══════════════════════════════════════════════════════════════════

DEFAULT_DISTRICT = "Nashik"
DEFAULT_STATE = "Maharashtra"

# Nashik city centre, used when a station has no coordinates.
DISTRICT_CENTER = (19.9975, 73.7898)

# Fallback offset J: ((h rem 500) / 500) * 2J - J. A negative hash yields
# offsets down to -3J, so stations can land up to 1.2 degrees from the centre.
FALLBACK_JITTER_DEGREES = 0.4

# ═══════════════════════════════════════════════════════════════════
# RECORD DEFAULTS
# ═══════════════════════════════════════════════════════════════════

NUMERIC_FIELDS = [
    "consumption",
    "per_capita_usage",
    "agricultural_usage",
    "industrial_usage",
    "household_usage",
    "rainfall",
    "depletion_rate",
    "groundwater_level",
]

DEFAULT_PH = 7.0
DEFAULT_SCARCITY = "Moderate"

# Upload CSV header -> record key.
CSV_COLUMNS = {
    "Location": "location",
    "Year": "year",
    "Consumption (Ml)": "consumption",
    "Per Capita Water Usage (l/d)": "per_capita_usage",
    "Agricultural Water Usage (Ml)": "agricultural_usage",
    "Industrial Water Usage (Ml)": "industrial_usage",
    "Household Water Usage (Ml)": "household_usage",
    "Rainfall (mm)": "rainfall",
    "Groundwater Depletion Rate (%)": "depletion_rate",
    "Water Scarcity Level": "scarcity_level",
    "pH": "ph",
    "Groundwater Level (m)": "groundwater_level",
    "Latitude": "latitude",
    "Longitude": "longitude",
}

# ═══════════════════════════════════════════════════════════════════
# SERVICE / CACHE / DATA SOURCE
# ═══════════════════════════════════════════════════════════════════

_ANALYTICS_DIR = os.path.dirname(os.path.abspath(__file__))

# Seed CSV loaded at service start-up (one row per station).
DATA_CSV_PATH = os.environ.get(
    "ANALYTICS_DATA_CSV",
    os.path.join(_ANALYTICS_DIR, "data", "nashik_groundwater.csv"),
)

# Response cache time-to-live in seconds.
CACHE_TTL_SECONDS = int(os.environ.get("ANALYTICS_CACHE_TTL", "300"))

SERVICE_PORT = int(os.environ.get("ANALYTICS_SERVICE_PORT", "5000"))

# Maximum accepted CSV upload size in bytes (10 MB).
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Search suggestions returned per query.
MAX_SUGGESTIONS = 10

# Best / worst stations listed in district statistics.
TOP_N_STATIONS = 5

# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

# Log level for the analytics engine (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("ANALYTICS_LOG_LEVEL", "INFO")
