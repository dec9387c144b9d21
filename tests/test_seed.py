"""
Tests for seed loading, profile expansion and idempotent city insertion.
"""

from relocation_insights.data.memory_repository import MemoryLocationRepository
from relocation_insights.data.seed import (
    add_cities,
    add_city_profiles,
    expand_city_profile,
    load_city_profiles,
    seed_default_user,
    seed_locations,
)
from relocation_insights.utils import pct, round_half_up, safe_float, safe_int

from conftest import make_location

NOGALES = {
    "name": "Nogales", "state": "AZ", "region": "Southwest", "lat": 31.3404, "lng": -110.9343,
    "population": 19770, "medianAge": 33.2, "medianIncome": 36000, "medianHomePrice": 165000,
    "costOfLivingIndex": 84, "averageCommute": 17, "crimeRate": "Low", "transitScore": 15,
    "climate": "Semi-arid", "cbpFacilities": 3, "rating": 3.5,
}


class TestSeedData:
    """Bundled seed file."""

    def test_thirty_one_cities(self, seed_data):
        assert len(seed_data) == 31
        assert [c["id"] for c in seed_data] == list(range(1, 32))

    def test_first_city(self, seed_data):
        assert seed_data[0]["name"] == "El Paso"
        assert seed_data[0]["housingData"]["medianHomePrice"] == 225000

    def test_regions(self, seed_data):
        regions = {c["region"] for c in seed_data}
        assert regions == {"Southwest", "Coastal", "Northern"}

    def test_profiles_bundled(self):
        profiles = load_city_profiles()
        assert len(profiles) == 5
        assert {p["name"] for p in profiles} >= {"Nogales", "Blaine"}


class TestSeedLocations:
    def test_seeds_empty_store(self):
        repo = MemoryLocationRepository()
        assert seed_locations(repo) == 31
        assert repo.get_location_by_id(31).name == "Key West"

    def test_skips_non_empty_store(self):
        repo = MemoryLocationRepository()
        repo.add_location(make_location())
        assert seed_locations(repo) == 0
        assert repo.count_locations() == 1

    def test_default_user_idempotent(self):
        repo = MemoryLocationRepository()
        first = seed_default_user(repo)
        second = seed_default_user(repo)
        assert first.id == second.id == 1
        assert first.username == "demo"


class TestAddCities:
    def test_skips_known_cities(self, seeded_memory_repo):
        added = add_cities(seeded_memory_repo, [make_location(name="El Paso"), make_location(name="Newtown")])
        assert [c.name for c in added] == ["Newtown"]
        assert added[0].id == 32

    def test_rerun_adds_nothing(self, seeded_memory_repo):
        profiles = load_city_profiles()
        assert len(add_city_profiles(seeded_memory_repo, profiles)) == 5
        assert add_city_profiles(seeded_memory_repo, profiles) == []
        assert seeded_memory_repo.count_locations() == 36

    def test_duplicates_within_batch(self):
        repo = MemoryLocationRepository()
        added = add_cities(repo, [make_location(), make_location()])
        assert len(added) == 1


class TestExpandCityProfile:
    def test_housing_derivations(self):
        housing = expand_city_profile(NOGALES)["housingData"]
        assert housing["medianHomePrice"] == 165000
        assert housing["medianRent"] == 825
        assert housing["priceToIncomeRatio"] == 4.6
        assert housing["estimatedMortgage"] == 660

    def test_neighborhood_prices(self):
        neighborhoods = {n["name"]: n["medianPrice"] for n in expand_city_profile(NOGALES)["housingData"]["neighborhoods"]}
        assert neighborhoods["Downtown"] == 140250
        assert neighborhoods["Northside"] == 217800
        assert neighborhoods["Westside"] == 148500

    def test_safety_and_transport(self):
        expanded = expand_city_profile(NOGALES)
        assert expanded["safetyData"]["crimeIndex"] == 45
        assert expanded["safetyData"]["crimeIndexDiff"] == -55
        assert expanded["transportationData"]["transitScore"] == 15
        assert expanded["lifestyleData"]["walkScore"] == 30
        assert expanded["costOfLiving"] == 84

    def test_defaults_for_sparse_profile(self):
        expanded = expand_city_profile({"name": "Somewhere", "state": "NM"})
        assert expanded["region"] == "Unknown"
        assert expanded["housingData"]["medianHomePrice"] == 250000
        assert expanded["safetyData"]["crimeIndex"] == 65
        assert expanded["transportationData"]["transitScore"] == 30
        assert expanded["lifestyleData"]["walkScore"] == 60

    def test_template_not_shared(self):
        first = expand_city_profile(NOGALES)
        first["housingData"]["neighborhoods"][0]["name"] = "Changed"
        assert expand_city_profile(NOGALES)["housingData"]["neighborhoods"][0]["name"] == "Downtown"


class TestNumericHelpers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(4.25, 1) == 4.3

    def test_pct(self):
        assert pct(1, 3) == 33
        assert pct(5, 0) == 0

    def test_safe_parsers(self):
        assert safe_int("1,234") == 1234
        assert safe_int("-666666666") == 0
        assert safe_int(None, default=7) == 7
        assert safe_float("12.5") == 12.5
        assert safe_float("abc") == 0.0
