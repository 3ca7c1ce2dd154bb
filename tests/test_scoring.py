import pytest

from backend.analytics import scoring


def test_normalize_clamps_and_scales():
    assert scoring.normalize(1000, 500, 1500) == 50.0
    assert scoring.normalize(200, 500, 1500) == 0.0
    assert scoring.normalize(2000, 500, 1500) == 100.0
    assert scoring.normalize(8, 4, 20, invert=True) == 75.0


def test_normalize_degenerate_domain_returns_midpoint():
    assert scoring.normalize(5, 3, 3) == 50.0
    assert scoring.normalize(5, 3, 3, invert=True) == 50.0


def test_water_score_of_reference_observation(make_obs):
    # 26.25 + 12.5 + 21 + 10 = 69.75
    assert scoring.water_score(make_obs()) == 70


def test_water_score_extremes(make_obs):
    best = make_obs(groundwater_level=4, rainfall=1500, depletion_rate=0, ph=7.0)
    worst = make_obs(groundwater_level=25, rainfall=300, depletion_rate=12, ph=9.0)
    assert scoring.water_score(best) == 100
    assert scoring.water_score(worst) == 0


def test_water_score_treats_missing_ph_as_neutral(make_obs):
    assert scoring.water_score(make_obs(ph=None)) == scoring.water_score(make_obs(ph=7.0))


def test_water_score_mixed_observation(make_obs):
    obs = make_obs(groundwater_level=11, rainfall=720, depletion_rate=4.1, ph=7.0)
    assert scoring.water_score(obs) == 53


@pytest.mark.parametrize("score, expected", [
    (100, "Safe"), (70, "Safe"), (69, "Warning"), (40, "Warning"), (39, "Critical"), (0, "Critical"),
])
def test_status_boundaries(score, expected):
    assert scoring.status(score) == expected


def test_status_color():
    assert scoring.status_color(85) == "#22c55e"
    assert scoring.status_color(50) == "#eab308"
    assert scoring.status_color(10) == "#ef4444"


@pytest.mark.parametrize("ph, index, value", [
    (7.0, "Excellent", 95),
    (7.5, "Excellent", 95),
    (8.0, "Good", 75),
    (5.6, "Fair", 55),
    (9.0, "Poor", 30),
    (None, "Excellent", 95),
])
def test_wqi_tiers(ph, index, value):
    assert scoring.wqi(ph) == {"index": index, "value": value}


@pytest.mark.parametrize("rate, index, value", [
    (1.0, "Sustainable", 90),
    (2.0, "Sustainable", 90),
    (3.5, "Moderate", 65),
    (6.0, "Concerning", 40),
    (8.2, "Critical", 15),
])
def test_depletion_index_tiers(rate, index, value):
    assert scoring.depletion_index(rate) == {"index": index, "value": value}


def test_sustainability_score(make_obs):
    # 20 + 24.5 + 25 = 69.5
    assert scoring.sustainability_score(make_obs()) == 70


@pytest.mark.parametrize("score, grade", [(92, "A"), (80, "A"), (75, "B"), (55, "C"), (30, "D"), (12, "F")])
def test_score_grade(score, grade):
    assert scoring.score_grade(score)["grade"] == grade


def test_enrich_returns_copy_with_indicators(make_obs):
    obs = make_obs()
    enriched = scoring.enrich(obs)

    assert "water_score" not in obs
    assert enriched["water_score"] == 70
    assert enriched["status"] == "Safe"
    assert enriched["status_color"] == "#22c55e"
    assert enriched["wqi"]["index"] == "Excellent"
    assert enriched["depletion_index"]["index"] == "Moderate"
    assert enriched["sustainability_score"] == 70
    assert enriched["location"] == "Alpha"


def test_water_score_never_drops_as_rainfall_rises(make_obs):
    scores = [scoring.water_score(make_obs(rainfall=float(r))) for r in range(300, 1801, 25)]
    assert scores == sorted(scores)
    assert scores[0] < scores[-1]


def test_water_score_never_rises_as_depletion_grows(make_obs):
    rates = [d / 4 for d in range(0, 49)]
    scores = [scoring.water_score(make_obs(depletion_rate=rate)) for rate in rates]
    assert scores == sorted(scores, reverse=True)
    assert scores[0] > scores[-1]
