import pytest

from backend.analytics import aggregation
from backend.analytics.store import make_location


@pytest.fixture
def locations(sample_rows):
    return [make_location(r) for r in sample_rows]


def test_latest_per_location(make_obs):
    observations = [
        make_obs(location="A", year=2019),
        make_obs(location="B", year=2018),
        make_obs(location="A", year=2021),
        make_obs(location="A", year=2020),
    ]
    latest = aggregation.latest_per_location(observations)
    assert [(r["location"], r["year"]) for r in latest] == [("A", 2021), ("B", 2018)]


def test_overview_falls_back_to_district_centre(make_obs):
    rows = aggregation.overview([make_obs(location="Unmapped")], [])
    assert rows[0]["coordinates"] == {"latitude": 19.9975, "longitude": 73.7898}
    assert rows[0]["water_score"] == 70
    assert rows[0]["status"] == "Safe"


def test_rankings_orders_by_score(sample_rows):
    ranked = aggregation.rankings(sample_rows)
    assert [r["location"] for r in ranked] == ["Igatpuri", "Niphad", "Malegaon"]
    assert [r["rank"] for r in ranked] == [1, 2, 3]
    assert [r["water_score"] for r in ranked] == [94, 53, 21]
    assert all(r["trend"] == "stable" for r in ranked)


def test_rankings_ties_keep_first_sighting_order(make_obs):
    ranked = aggregation.rankings([make_obs(location="Z"), make_obs(location="M")])
    assert [r["location"] for r in ranked] == ["Z", "M"]
    assert [r["rank"] for r in ranked] == [1, 2]


def test_district_stats(sample_rows):
    stats = aggregation.district_stats(sample_rows)
    assert stats == {
        "total_locations": 3,
        "avg_water_level": 10.83,
        "avg_rainfall": 1026.7,
        "avg_depletion": 4.03,
        "critical_count": 1,
        "warning_count": 1,
        "safe_count": 1,
    }


def test_district_stats_empty():
    assert aggregation.district_stats([]) == {}
    assert aggregation.enhanced_district_stats([]) == {}


@pytest.mark.parametrize("improving, declining, expected", [
    (3, 1, "improving"),
    (1, 2, "declining"),
    (2, 3, "stable"),
    (0, 0, "stable"),
])
def test_district_trend(improving, declining, expected):
    assert aggregation.district_trend(improving, declining) == expected


def test_average_change_rates(make_obs):
    observations = [
        make_obs(location="A", year=2018, groundwater_level=8.0, rainfall=1000.0, depletion_rate=3.0),
        make_obs(location="A", year=2020, groundwater_level=9.0, rainfall=900.0, depletion_rate=3.5),
        make_obs(location="B", year=2018, groundwater_level=10.0, rainfall=800.0, depletion_rate=4.0),
        make_obs(location="B", year=2020, groundwater_level=12.0, rainfall=760.0, depletion_rate=5.5),
        make_obs(location="C", year=2020),
    ]
    assert aggregation.average_change_rates(observations) == {
        "water_level": 1.5, "rainfall": -70.0, "depletion": 1.0,
    }
    assert aggregation.average_change_rates([make_obs()]) is None


def test_enhanced_district_stats(sample_rows):
    stats = aggregation.enhanced_district_stats(sample_rows)

    assert stats["total_locations"] == 3
    assert [s["location"] for s in stats["best5"]] == ["Igatpuri", "Niphad", "Malegaon"]
    assert [s["location"] for s in stats["worst5"]] == ["Malegaon", "Niphad", "Igatpuri"]
    assert stats["worst5"][0] == {"location": "Malegaon", "score": 21, "status": "Critical"}
    assert stats["trend_distribution"] == {"improving": 0, "stable": 3, "declining": 0}
    assert stats["district_trend"] == "stable"
    assert stats["avg_change_rates"] is None


def test_heatmap(sample_rows, locations):
    points = aggregation.heatmap(sample_rows, locations[:2])
    by_name = {p["location"]: p for p in points}

    assert set(by_name) == {"Igatpuri", "Malegaon"}
    assert by_name["Igatpuri"]["intensity"] == 0.1
    assert by_name["Malegaon"]["intensity"] == 0.79
    assert by_name["Igatpuri"]["lat"] == 19.696


def test_search_suggestions(sample_rows, locations):
    suggestions = aggregation.search_suggestions("IG", sample_rows, locations)
    assert [s["name"] for s in suggestions] == ["Igatpuri"]
    assert suggestions[0]["water_score"] == 94
    assert suggestions[0]["district"] == "Nashik"
    assert aggregation.search_suggestions("", sample_rows, locations) == []


def test_search_suggestions_without_observations(locations):
    suggestions = aggregation.search_suggestions("gaon", [], locations)
    assert suggestions == [{"name": "Malegaon", "district": "Nashik"}]


def test_quick_alert_count(make_obs):
    assert aggregation.quick_alert_count(make_obs()) == 0
    stressed = make_obs(groundwater_level=13, depletion_rate=6, rainfall=650, ph=8.5,
                        scarcity_level="Extreme")
    assert aggregation.quick_alert_count(stressed) == 5


def test_location_summary(make_obs):
    observations = [make_obs(year=2020), make_obs(year=2019), make_obs(location="Other")]
    summary = aggregation.location_summary("Alpha", observations)

    assert summary["year"] == 2020
    assert summary["water_score"] == 70
    assert summary["grade"] == {"grade": "B", "label": "Good"}
    assert summary["trend"] == "stable"
    assert summary["alert_count"] == 0
    assert summary["years_available"] == [2019, 2020]
    assert len(summary["yoy_changes"]) == 1
    assert summary["narrative"] == (
        "Alpha has a water score of 70/100 (Safe). The groundwater level is 8.0m "
        "with 1000.0mm rainfall. Trend is stable with 0 active alerts."
    )
    assert aggregation.location_summary("Nowhere", observations) is None


def test_compare_locations(sample_rows):
    comparison = aggregation.compare_locations("Igatpuri", "Unknown", sample_rows)
    assert comparison["location1"]["name"] == "Igatpuri"
    assert comparison["location1"]["data"][0]["water_score"] == 94
    assert comparison["location2"] == {"name": "Unknown", "data": []}
