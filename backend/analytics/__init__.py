"""
backend.analytics — Groundwater Monitoring Analytics Engine
============================================================

This package implements the analytics core of the Nashik district
groundwater decision-support dashboard.

Architecture:
    Survey CSV / upload ──► preprocessing ──► DataStore ◄── generator
                                                 │        (synthetic history)
                                                 ▼
                                         Analytics Engine:
                                           1. Score & Index Engine
                                           2. Trend & Change Analyzer
                                           3. Alert Engine
                                           4. Forecast Engine
                                           5. Aggregation & Ranking
                                                 │
                                                 ▼
                                  ResponseCache ──► Flask JSON API

Modules:
    config        — Thresholds, weights, coefficients and service knobs
    utils         — Logging, validation, rounding and the location hash
    generator     — Deterministic multi-year series synthesis
    scoring       — Water Score, status, WQI, depletion and sustainability indices
    trends        — Year-over-year changes, trend direction, runs, outliers
    alerts        — Threshold, trend and district alerts; advisory bulletins
    forecast      — Per-metric linear regression with confidence intervals
    aggregation   — Latest-per-station views, rankings, district statistics
    preprocessing — Survey CSV parsing and record cleaning
    store         — In-memory observation / location store with upsert
    cache         — TTL response cache invalidated on store mutation
    service       — Flask HTTP service
"""

__version__ = "1.0.0"
__author__ = "Groundwater Monitoring Team"
