import io

import pytest

from backend.analytics import config
from backend.analytics.preprocessing import parse_csv

HEADER = (
    "Location,Year,Consumption (Ml),Per Capita Water Usage (l/d),"
    "Agricultural Water Usage (Ml),Industrial Water Usage (Ml),"
    "Household Water Usage (Ml),Rainfall (mm),Groundwater Depletion Rate (%),"
    "Water Scarcity Level,pH,Groundwater Level (m),Latitude,Longitude\n"
)


def _csv(*lines):
    return io.StringIO(HEADER + "\n".join(lines) + "\n")


def test_parse_csv_maps_columns():
    records = parse_csv(_csv("Sinnar,2019,356,118,221,71,64,690,5.6,High,7.6,13.8,19.846,74.0"))
    assert records == [{
        "location": "Sinnar",
        "year": 2019,
        "consumption": 356.0,
        "per_capita_usage": 118.0,
        "agricultural_usage": 221.0,
        "industrial_usage": 71.0,
        "household_usage": 64.0,
        "rainfall": 690.0,
        "depletion_rate": 5.6,
        "scarcity_level": "High",
        "ph": 7.6,
        "groundwater_level": 13.8,
        "latitude": 19.846,
        "longitude": 74.0,
    }]


def test_parse_csv_applies_defaults():
    records = parse_csv(_csv(
        "Deola,2019,289,114,196,40,53,630,,,,13.3,,",
        "Kalwan,2019,250,100,150,50,50,900,2.0,Low,0,9.0,0,0",
    ))
    deola, kalwan = records

    assert deola["depletion_rate"] == 0.0
    assert deola["ph"] == 7.0
    assert deola["scarcity_level"] == "Moderate"
    assert deola["latitude"] is None
    assert deola["longitude"] is None
    assert kalwan["ph"] == 7.0
    assert kalwan["latitude"] is None


def test_parse_csv_drops_rows_without_location_or_year():
    records = parse_csv(_csv(
        ",2019,1,1,1,1,1,1,1,Low,7,1,,",
        "Yeola,,1,1,1,1,1,1,1,Low,7,1,,",
        "Yeola,2019,1,1,1,1,1,1,1,Low,7,1,,",
    ))
    assert [(r["location"], r["year"]) for r in records] == [("Yeola", 2019)]


def test_parse_csv_keeps_last_duplicate():
    records = parse_csv(_csv(
        "Yeola,2019,1,1,1,1,1,700,1,Low,7,1,,",
        "Yeola,2019,1,1,1,1,1,800,1,Low,7,1,,",
    ))
    assert len(records) == 1
    assert records[0]["rainfall"] == 800.0


def test_parse_csv_tolerates_missing_optional_columns():
    records = parse_csv(io.StringIO("Location,Year\nChandwad,2020\n"))
    assert records[0]["rainfall"] == 0.0
    assert records[0]["ph"] == 7.0
    assert records[0]["scarcity_level"] == "Moderate"


def test_parse_csv_requires_location_and_year():
    with pytest.raises(ValueError, match="Year"):
        parse_csv(io.StringIO("Location,Rainfall (mm)\nSinnar,690\n"))


def test_parse_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_csv(str(tmp_path / "missing.csv"))


def test_parse_csv_header_only():
    assert parse_csv(io.StringIO(HEADER)) == []


def test_seed_dataset():
    records = parse_csv(config.DATA_CSV_PATH)
    assert len(records) == 12
    assert all(r["year"] == 2019 for r in records)
    deola = next(r for r in records if r["location"] == "Deola")
    assert deola["ph"] == 7.0
    assert deola["latitude"] is None
