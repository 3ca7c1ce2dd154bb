"""
store.py — In-Memory Observation and Location Store
====================================================

Owns the dataset the analytics engine works on. Engine functions never
read global state; they receive collections from a DataStore instance.

Responsibilities:
- Seed observations from the survey CSV, expanding each observed row into
  a synthetic multi-year series (generator.generate_series).
- Upsert observations by (location, year) on re-ingestion.
- Create a Location the first time a station name is seen, using the
  row's coordinates or hash-derived fallback coordinates.
- Serialize mutations against reads with a lock and notify subscribers
  (e.g. the response cache) synchronously after every mutation.
"""

import logging
import threading

from . import config
from .generator import expand_dataset
from .preprocessing import parse_csv
from .trends import sort_series
from .utils import fallback_coordinates, validate_record

logger = logging.getLogger("analytics.store")

_LOCATION_ONLY_KEYS = ("latitude", "longitude")


def make_location(row: dict) -> dict:
    """Location record for a station, from the row's coordinates or the fallback."""
    lat, lng = row.get("latitude"), row.get("longitude")
    if not lat or not lng:
        lat, lng = fallback_coordinates(row["location"])
    return {
        "name": row["location"],
        "latitude": lat,
        "longitude": lng,
        "district": row.get("district") or config.DEFAULT_DISTRICT,
        "state": row.get("state") or config.DEFAULT_STATE,
    }


def _observation(row: dict) -> dict:
    """Observation part of a validated row, with numeric fields coerced to float."""
    obs = {k: v for k, v in row.items() if k not in _LOCATION_ONLY_KEYS}
    obs["year"] = int(obs["year"])
    for key in config.NUMERIC_FIELDS:
        value = obs.get(key)
        obs[key] = 0.0 if value is None else float(value)
    ph = obs.get("ph")
    obs["ph"] = config.DEFAULT_PH if ph is None else float(ph)
    if not obs.get("scarcity_level"):
        obs["scarcity_level"] = config.DEFAULT_SCARCITY
    return obs


class DataStore:
    """
    Single-writer store of observations and locations.

    Attributes:
        _observations (dict): (location, year) -> observation dict.
        _locations (dict): name -> location dict.
        _listeners (list): Callables invoked after every mutation.
    """

    def __init__(self):
        self._observations: dict[tuple[str, int], dict] = {}
        self._locations: dict[str, dict] = {}
        self._listeners = []
        self._lock = threading.RLock()

    # ── Mutation ─────────────────────────────────────────────────

    def subscribe(self, listener) -> None:
        """
        Register a zero-argument callable run after each mutation.

        Listeners run synchronously inside the write lock, so no reader
        can observe the new data before every listener has finished.
        """
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    def _add_location(self, row: dict) -> None:
        if row["location"] not in self._locations:
            self._locations[row["location"]] = make_location(row)

    def load_rows(self, rows: list[dict], expand: bool = True,
                  years: list[int] = None) -> int:
        """
        Replace the dataset with ``rows``.

        Args:
            rows: Observed records (one per station when expanding).
            expand: Expand each row into a synthetic multi-year series.
            years: Target years for expansion. Defaults to config.TARGET_YEARS.

        Returns:
            Number of observations held after loading.
        """
        valid = [r for r in rows if validate_record(r)]
        if len(valid) < len(rows):
            logger.warning(f"Skipped {len(rows) - len(valid)} invalid rows")

        observations = expand_dataset(valid, years) if expand else valid
        with self._lock:
            self._observations = {}
            self._locations = {}
            for row in valid:
                self._add_location(row)
            for obs in observations:
                obs = _observation(obs)
                self._observations[(obs["location"], obs["year"])] = obs
            self._notify()
            count = len(self._observations)

        logger.info(f"Loaded {count} observations for {len(self._locations)} locations")
        return count

    def load_csv(self, path: str = None, expand: bool = True) -> int:
        """Seed the store from a survey CSV (defaults to config.DATA_CSV_PATH)."""
        path = path or config.DATA_CSV_PATH
        return self.load_rows(parse_csv(path), expand=expand)

    def upsert(self, rows: list[dict]) -> int:
        """
        Insert or replace observations by (location, year).

        Rows that fail validation are skipped. New station names create a
        Location record.

        Returns:
            Number of rows ingested.
        """
        ingested = 0
        with self._lock:
            for row in rows:
                if not validate_record(row):
                    logger.warning(f"Rejected invalid row: {row!r}")
                    continue
                obs = _observation(row)
                key = (obs["location"], obs["year"])
                # Replaced rows move to the end, like a fresh insert.
                self._observations.pop(key, None)
                self._observations[key] = obs
                self._add_location(row)
                ingested += 1
            self._notify()

        logger.info(f"Upserted {ingested}/{len(rows)} rows")
        return ingested

    # ── Queries ──────────────────────────────────────────────────

    def observations(self) -> list[dict]:
        """Snapshot of every observation."""
        with self._lock:
            return list(self._observations.values())

    def series(self, name: str) -> list[dict]:
        """Observations of one station, ascending by year."""
        with self._lock:
            return sort_series([o for (loc, _), o in self._observations.items() if loc == name])

    def latest(self, name: str) -> dict | None:
        series = self.series(name)
        return series[-1] if series else None

    def locations(self, search: str = None) -> list[dict]:
        """Locations sorted by name, optionally filtered by a substring."""
        with self._lock:
            result = sorted(self._locations.values(), key=lambda l: l["name"])
        if search:
            needle = search.lower()
            result = [l for l in result if needle in l["name"].lower()]
        return result

    def location(self, name: str) -> dict | None:
        with self._lock:
            return self._locations.get(name)

    def __len__(self) -> int:
        return len(self._observations)
