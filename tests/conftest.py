import pytest

from backend.analytics.store import DataStore


BASE_OBSERVATION = {
    "location": "Alpha",
    "year": 2019,
    "consumption": 300.0,
    "per_capita_usage": 110.0,
    "agricultural_usage": 200.0,
    "industrial_usage": 50.0,
    "household_usage": 50.0,
    "rainfall": 1000.0,
    "depletion_rate": 3.0,
    "scarcity_level": "Moderate",
    "ph": 7.0,
    "groundwater_level": 8.0,
}


@pytest.fixture
def make_obs():
    """Factory for observation dicts; keyword arguments override the defaults."""
    def _make(**overrides):
        obs = dict(BASE_OBSERVATION)
        obs.update(overrides)
        return obs
    return _make


@pytest.fixture
def sample_rows(make_obs):
    """One observed row for each of three stations with distinct health."""
    return [
        make_obs(location="Igatpuri", groundwater_level=5.0, rainfall=1800.0,
                 depletion_rate=1.2, scarcity_level="Low", latitude=19.696, longitude=73.563),
        make_obs(location="Malegaon", groundwater_level=16.5, rainfall=560.0,
                 depletion_rate=6.8, scarcity_level="Severe", ph=8.2, consumption=540.0),
        make_obs(location="Niphad", groundwater_level=11.0, rainfall=720.0,
                 depletion_rate=4.1, scarcity_level="High"),
    ]


@pytest.fixture
def store(sample_rows):
    s = DataStore()
    s.load_rows(sample_rows)
    return s
