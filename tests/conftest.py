"""Shared fixtures: location payloads and seeded repositories."""

import pytest

from relocation_insights.data.memory_repository import MemoryLocationRepository
from relocation_insights.data.seed import load_seed_locations, seed_default_user, seed_locations


def make_location(name="Testville", state="TX", region="Southwest", **overrides):
    """Minimal valid camelCase location payload."""
    payload = {
        "name": name,
        "state": state,
        "region": region,
        "population": 100000,
        "medianAge": 35.0,
        "medianIncome": 55000,
        "costOfLiving": 95,
        "averageCommute": 22,
        "climate": "Sunny",
        "cbpFacilities": 1,
        "rating": 4.0,
        "lat": 31.0,
        "lng": -106.0,
        "housingData": {"medianHomePrice": 250000},
        "safetyData": {"crimeIndex": 40},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def location_factory():
    return make_location


@pytest.fixture
def seeded_memory_repo():
    """Memory repository holding the bundled cities and the demo user."""
    repo = MemoryLocationRepository()
    seed_locations(repo)
    seed_default_user(repo)
    return repo


@pytest.fixture(scope="session")
def seed_data():
    return load_seed_locations()
