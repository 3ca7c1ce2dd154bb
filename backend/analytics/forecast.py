"""
forecast.py — Linear Trend Forecasting with Confidence Intervals
=================================================================

Projects a station's groundwater level, rainfall and depletion rate a few
years ahead. Each metric gets its own ordinary-least-squares line over
(year, value) pairs, wrapped in LinearTrendModel:

    y = slope · year + intercept

Confidence band for horizon step i (1-based) with n historical points:

    multiplier = 1.96 · sqrt(1 + 1/n + i² / (3n))
    interval   = point ± residual_std_error · multiplier   (floored at 0)

    residual_std_error = sqrt(SSE / (n − 2))  for n ≥ 3, else 0

The band widens with the horizon. The ``confidence_level`` label (high /
medium / low by step) is a coarse convenience tag and does not depend on
the actual interval width.
"""

import logging
import math

import numpy as np
from sklearn.linear_model import LinearRegression

from . import config
from .trends import sort_series
from .utils import round_half_up

logger = logging.getLogger("analytics.forecast")


class InsufficientHistoryError(ValueError):
    """Raised when a station has too few historical years to forecast."""

    def __init__(self, available: int, required: int = config.MIN_FORECAST_HISTORY):
        self.available = available
        self.required = required
        super().__init__(
            f"Need at least {required} years of data for predictions "
            f"(got {available})"
        )


class LinearTrendModel:
    """
    Ordinary least-squares trend line for one metric.

    Wraps scikit-learn's LinearRegression and adds the residual standard
    error used for confidence intervals. With fewer than two points the
    line is flat (slope 0) through the mean of the observed values.

    Attributes:
        slope (float): Change per year.
        intercept (float): Value at year 0.
        residual_std_error (float): sqrt(SSE / (n − 2)), 0 for n < 3.
        n (int): Number of points the model was fitted on.
    """

    def __init__(self):
        self.model = LinearRegression()
        self.slope = 0.0
        self.intercept = 0.0
        self.residual_std_error = 0.0
        self.n = 0
        self.is_trained = False

    def fit(self, x, y) -> "LinearTrendModel":
        """
        Fit the trend line.

        Args:
            x: 1-D sequence of years.
            y: 1-D sequence of metric values, same length as ``x``.

        Returns:
            self (for method chaining).
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        self.n = len(x)

        if self.n < 2:
            self.slope = 0.0
            self.intercept = float(y.mean()) if self.n else 0.0
        else:
            self.model.fit(x.reshape(-1, 1), y)
            self.slope = float(self.model.coef_[0])
            self.intercept = float(self.model.intercept_)

        if self.n >= 3:
            residuals = y - (self.slope * x + self.intercept)
            sse = float(np.sum(residuals ** 2))
            self.residual_std_error = math.sqrt(sse / (self.n - 2))
        else:
            self.residual_std_error = 0.0

        self.is_trained = True
        return self

    def predict(self, x) -> np.ndarray:
        """
        Evaluate the trend line at the given years.

        Raises:
            RuntimeError: If the model has not been fitted.
        """
        if not self.is_trained:
            raise RuntimeError("Model has not been fitted yet. Call fit() first.")
        x = np.asarray(x, dtype=np.float64)
        return self.slope * x + self.intercept


def confidence_multiplier(step: int, n: int) -> float:
    """1.96 · sqrt(1 + 1/n + step² / (3n))."""
    return config.CONFIDENCE_Z * math.sqrt(1 + 1 / n + (step * step) / (n * 3))


def confidence_label(step: int) -> str:
    if step <= 1:
        return "high"
    if step <= 2:
        return "medium"
    return "low"


def predict_future(history: list[dict], years_ahead: int = None) -> list[dict]:
    """
    Forecast groundwater level, rainfall and depletion rate.

    Args:
        history: Observations of one station (any order).
        years_ahead: Horizon in years (≥ 1). Defaults to
            config.DEFAULT_YEARS_AHEAD (3).

    Returns:
        One dict per future year:
            {"year": int,
             "groundwater_level": float, "groundwater_level_ci": {"lower", "upper"},
             "rainfall": float,          "rainfall_ci": {...},
             "depletion_rate": float,    "depletion_rate_ci": {...},
             "confidence_level": "high" | "medium" | "low"}
        Groundwater level and depletion rate are rounded to 2 decimals,
        rainfall to 1 decimal. Point estimates and lower bounds are
        floored at 0.

    Raises:
        InsufficientHistoryError: If fewer than two historical years exist.
        ValueError: If years_ahead < 1.
    """
    years_ahead = config.DEFAULT_YEARS_AHEAD if years_ahead is None else int(years_ahead)
    if years_ahead < 1:
        raise ValueError(f"years_ahead must be at least 1 (got {years_ahead})")

    ordered = sort_series(history or [])
    n = len(ordered)
    if n < config.MIN_FORECAST_HISTORY:
        raise InsufficientHistoryError(n)

    years = [r["year"] for r in ordered]
    models = {}
    for metric in config.FORECAST_METRICS:
        values = [float(r.get(metric) or 0) for r in ordered]
        models[metric] = LinearTrendModel().fit(years, values)

    last_year = max(years)
    predictions = []
    for step in range(1, years_ahead + 1):
        year = last_year + step
        multiplier = confidence_multiplier(step, n)
        entry = {"year": year}
        for metric, decimals in config.FORECAST_METRICS.items():
            model = models[metric]
            point = round_half_up(float(model.predict([year])[0]), decimals)
            margin = model.residual_std_error * multiplier
            entry[metric] = max(0.0, point)
            entry[f"{metric}_ci"] = {
                "lower": max(0.0, round_half_up(point - margin, decimals)),
                "upper": max(0.0, round_half_up(point + margin, decimals)),
            }
        entry["confidence_level"] = confidence_label(step)
        predictions.append(entry)

    logger.debug(
        f"Forecast for {ordered[-1].get('location')}: {years_ahead} years from "
        f"{n} observations (level slope={models['groundwater_level'].slope:.3f})"
    )
    return predictions
