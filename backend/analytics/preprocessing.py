"""
preprocessing.py — CSV Ingestion and Record Cleaning
=====================================================

Responsibilities in the analytics pipeline:
1. Read the groundwater survey CSV (file path or uploaded stream).
2. Map the survey's column headers to observation keys.
3. Coerce numeric fields, applying documented defaults for gaps.
4. Drop rows that cannot identify a (location, year) pair.

Defaults for missing values:
- Numeric metrics (consumption, usage, rainfall, depletion, level): 0
- pH: 7.0 (a missing or zero pH reading is treated as neutral)
- Water Scarcity Level: "Moderate"
- Latitude / Longitude: None (the store assigns fallback coordinates)

When the same (location, year) appears more than once in a file, the
last row wins, mirroring upsert semantics of the store.
"""

import logging
import os

import numpy as np
import pandas as pd

from . import config

logger = logging.getLogger("analytics.preprocessing")

REQUIRED_COLUMNS = ("Location", "Year")


def parse_csv(source) -> list[dict]:
    """
    Parse a groundwater survey CSV into observation records.

    Args:
        source: File path, or a file-like object (e.g. an uploaded stream).

    Returns:
        List of observation dicts with snake_case keys.

    Raises:
        FileNotFoundError: If ``source`` is a path that does not exist.
        ValueError: If the CSV lacks the Location or Year column.
    """
    if isinstance(source, (str, os.PathLike)):
        if not os.path.exists(source):
            raise FileNotFoundError(f"CSV file not found: {os.path.abspath(source)}")
        logger.info(f"Reading survey CSV from {source}")

    df = pd.read_csv(source)
    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing required column(s): {', '.join(missing)}")

    df = df.rename(columns=config.CSV_COLUMNS)
    return frame_to_records(df)


def frame_to_records(df: pd.DataFrame) -> list[dict]:
    """
    Clean a DataFrame with observation columns into record dicts.

    Args:
        df: DataFrame whose columns already use observation keys.

    Returns:
        List of cleaned observation dicts.
    """
    df = df.copy()
    before = len(df)

    df["location"] = df["location"].fillna("").astype(str).str.strip()
    df["year"] = pd.to_numeric(df["year"], errors="coerce")
    df = df[(df["location"] != "") & df["year"].notna()]

    dropped = before - len(df)
    if dropped > 0:
        logger.warning(f"Dropped {dropped} rows without a location or year "
                       f"({dropped / before * 100:.1f}% of data)")
    if df.empty:
        return []

    df["year"] = df["year"].astype(int)

    for col in config.NUMERIC_FIELDS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
        else:
            df[col] = 0.0

    if "ph" in df.columns:
        ph = pd.to_numeric(df["ph"], errors="coerce")
        df["ph"] = ph.where(ph.notna() & (ph != 0), config.DEFAULT_PH)
    else:
        df["ph"] = config.DEFAULT_PH

    if "scarcity_level" in df.columns:
        scarcity = df["scarcity_level"].fillna("").astype(str).str.strip()
        df["scarcity_level"] = scarcity.where(scarcity != "", config.DEFAULT_SCARCITY)
    else:
        df["scarcity_level"] = config.DEFAULT_SCARCITY

    for col in ("latitude", "longitude"):
        if col in df.columns:
            coord = pd.to_numeric(df[col], errors="coerce")
            df[col] = coord.where(coord.notna() & (coord != 0))
        else:
            df[col] = np.nan

    duplicates = int(df.duplicated(subset=["location", "year"], keep="last").sum())
    if duplicates:
        logger.info(f"Collapsed {duplicates} duplicate (location, year) rows")
        df = df.drop_duplicates(subset=["location", "year"], keep="last")

    columns = ["location", "year"] + config.NUMERIC_FIELDS + [
        "scarcity_level", "ph", "latitude", "longitude",
    ]
    records = []
    for row in df[columns].to_dict("records"):
        record = {
            "location": row["location"],
            "year": int(row["year"]),
            "scarcity_level": row["scarcity_level"],
            "ph": float(row["ph"]),
        }
        for col in config.NUMERIC_FIELDS:
            record[col] = float(row[col])
        for col in ("latitude", "longitude"):
            record[col] = None if pd.isna(row[col]) else float(row[col])
        records.append(record)

    logger.info(f"Parsed {len(records)} observation rows")
    return records
