import pytest

from backend.analytics import generator


@pytest.mark.parametrize("depletion, rainfall, expected", [
    (6.5, 1200, "Severe"),
    (5.2, 1200, "High"),
    (3.5, 700, "High"),
    (3.5, 900, "Moderate"),
    (2.0, 500, "Low"),
])
def test_classify_scarcity(depletion, rainfall, expected):
    assert generator.classify_scarcity(depletion, rainfall) == expected


def test_variation_factor_range():
    for year in range(2000, 2100):
        assert -0.25 <= generator.variation_factor(-2147483648, year) <= 0.25
    assert generator.variation_factor(97, 2020) == pytest.approx(-0.165)


def test_synthesize_year_known_values(make_obs):
    base = make_obs(location="a")
    record = generator.synthesize_year(base, 2020)

    assert record["year"] == 2020
    assert record["location"] == "a"
    assert record["depletion_rate"] == pytest.approx(3.2)
    assert record["rainfall"] == 986
    assert record["groundwater_level"] == pytest.approx(8.1)
    assert record["ph"] == pytest.approx(7.0)
    assert record["scarcity_level"] == "Moderate"


def test_synthesize_year_respects_floors(make_obs):
    low_depletion = generator.synthesize_year(make_obs(location="a", depletion_rate=0.5), 2016)
    assert low_depletion["depletion_rate"] == 0.5

    dry = generator.synthesize_year(make_obs(location="a", rainfall=400.0), 2021)
    assert dry["rainfall"] == 400


def test_synthesize_year_clamps_ph(make_obs):
    acidic = generator.synthesize_year(make_obs(ph=6.0), 2017)
    alkaline = generator.synthesize_year(make_obs(ph=9.0), 2017)
    assert 6.0 <= acidic["ph"] <= 9.0
    assert 6.0 <= alkaline["ph"] <= 9.0


def test_generate_series_keeps_base_year_unmodified(make_obs):
    base = make_obs(location="Niphad")
    series = generator.generate_series(base)

    assert [r["year"] for r in series] == [2016, 2017, 2018, 2019, 2020, 2021]
    observed = series[3]
    assert observed == base
    assert observed is not base


def test_generate_series_includes_base_year_outside_targets(make_obs):
    series = generator.generate_series(make_obs(year=2023), years=[2020, 2021, 2021])
    assert [r["year"] for r in series] == [2020, 2021, 2023]


def test_generate_series_is_deterministic(make_obs):
    base = make_obs(location="Sinnar")
    assert generator.generate_series(base) == generator.generate_series(base)


def test_expand_dataset(sample_rows):
    observations = generator.expand_dataset(sample_rows, years=[2018, 2019, 2020])
    assert len(observations) == 9
    assert {o["location"] for o in observations} == {"Igatpuri", "Malegaon", "Niphad"}
