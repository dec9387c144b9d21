"""
Seed data loading and idempotent city insertion.

The 31 base cities ship as resources/locations.json. Additional cities can
be described as compact profiles (resources/more_cities.json) and expanded
into full records with derived housing, safety and transport figures.
"""

import copy
from typing import Any, Iterable, Optional

from relocation_insights.data.records import LocationRecord, UserRecord, city_key
from relocation_insights.data.repository import LocationRepository
from relocation_insights.logging_config import get_logger
from relocation_insights.utils import load_resource, round_half_up

logger = get_logger(__name__)

DEFAULT_USERNAME = "demo"

# crime label -> (crimeIndex, crimeIndexDiff)
CRIME_INDEX = {
    "Very Low": (30, -70),
    "Low": (45, -55),
    "Moderate": (65, -35),
    "High": (85, 15),
}

PROFILE_TEMPLATE: dict[str, Any] = {
    "housingData": {
        "homeownershipRate": 60,
        "rentalVacancyRate": 5.8,
        "propertyTaxRate": 1.2,
        "priceGrowthLastYear": 7.5,
        "priceGrowth5Years": 42.3,
        "neighborhoods": [
            {"name": "Downtown", "homeTypes": "Condos/Apartments", "rating": 4.2},
            {"name": "Northside", "homeTypes": "Single Family", "rating": 4.5},
            {"name": "Westside", "homeTypes": "Mixed", "rating": 3.8},
            {"name": "Eastside", "homeTypes": "Single Family", "rating": 4.0},
        ],
    },
    "schoolData": {
        "rating": 4.0,
        "publicSchools": 42,
        "privateSchools": 12,
        "studentTeacherRatio": 16,
        "collegeGradRate": 88,
        "topSchools": [
            {"name": "Central High School", "type": "Public", "grades": "9-12", "rating": 4.5},
            {"name": "Washington Elementary", "type": "Public", "grades": "K-5", "rating": 4.3},
            {"name": "Prep Academy", "type": "Private", "grades": "6-12", "rating": 4.8},
        ],
    },
    "safetyData": {
        "violentCrime": 325,
        "propertyCrime": 1825,
        "safetyRating": "Moderate",
        "crimeTrend": "Decreasing",
    },
    "lifestyleData": {
        "restaurants": 385,
        "parks": 24,
        "shopping": 18,
        "entertainment": 32,
        "nightlife": "Moderate",
        "artsAndCulture": "Rich",
        "outdoorActivities": "Abundant",
    },
    "transportationData": {
        "bikeScore": 62,
        "hasPublicTransit": True,
        "majorAirports": 1,
        "interstateAccess": True,
    },
}


def load_seed_locations() -> list[dict[str, Any]]:
    """The bundled base cities, with their stable ids."""
    return load_resource("locations.json")


def load_city_profiles(name: str = "more_cities.json") -> list[dict[str, Any]]:
    return load_resource(name)["cities"]


def seed_locations(repo: LocationRepository, locations: Optional[list[dict[str, Any]]] = None) -> int:
    """
    Insert the seed locations into an empty store.

    Returns:
        Number of locations inserted (0 when the store already has data).
    """
    existing = repo.count_locations()
    if existing > 0:
        logger.info("Store already contains %d locations. Skipping seed.", existing)
        return 0

    locations = load_seed_locations() if locations is None else locations
    for location in locations:
        repo.add_location(location)
    logger.info("Seeded %d locations", len(locations))
    return len(locations)


def add_cities(repo: LocationRepository, cities: Iterable[dict[str, Any]]) -> list[LocationRecord]:
    """
    Add cities that are not already stored, matched by ``"name, state"``.

    Safe to re-run: existing cities (and repeats within ``cities``) are skipped.
    """
    known = repo.location_keys()
    added = []
    for city in cities:
        key = city_key(city["name"], city["state"])
        if key in known:
            logger.debug("Skipping %s — already present", key)
            continue
        added.append(repo.add_location(city))
        known.add(key)
        logger.info("Added %s", key)
    logger.info("Added %d new cities", len(added))
    return added


def expand_city_profile(profile: dict[str, Any]) -> dict[str, Any]:
    """
    Build a full location payload from a compact profile.

    Derived figures: rent at 0.5% of price per month, mortgage at 0.5% of
    the price after a 20% down payment, price-to-income ratio, neighbourhood
    prices scaled by rating and home type, and crime index from the label.
    """
    template = copy.deepcopy(PROFILE_TEMPLATE)
    price = profile.get("medianHomePrice") or 250000
    income = profile.get("medianIncome") or 50000
    transit_score = profile.get("transitScore")
    walk_score = transit_score + 15 if transit_score else 60
    crime_index, crime_diff = CRIME_INDEX.get(profile.get("crimeRate", ""), CRIME_INDEX["Moderate"])

    housing = template["housingData"]
    housing.update(
        medianHomePrice=price,
        medianRent=round_half_up(price * 0.005),
        priceToIncomeRatio=round_half_up(price / income, 1),
        estimatedMortgage=round_half_up((price - price * 0.2) * 0.005),
    )
    for neighborhood in housing["neighborhoods"]:
        neighborhood["medianPrice"] = round_half_up(price * _neighborhood_multiplier(neighborhood))

    template["safetyData"].update(crimeIndex=crime_index, crimeIndexDiff=crime_diff)
    template["lifestyleData"]["walkScore"] = walk_score
    template["transportationData"].update(transitScore=transit_score or 30, walkScore=walk_score)

    return {
        "name": profile["name"],
        "state": profile["state"],
        "region": profile.get("region") or "Unknown",
        "lat": profile.get("lat") or 0,
        "lng": profile.get("lng") or 0,
        "population": profile.get("population") or 0,
        "medianAge": profile.get("medianAge") or 38,
        "medianIncome": profile.get("medianIncome") or 0,
        "costOfLiving": profile.get("costOfLivingIndex") or 100,
        "averageCommute": profile.get("averageCommute") or 25,
        "climate": profile.get("climate") or "Temperate",
        "cbpFacilities": profile.get("cbpFacilities") or 1,
        "rating": profile.get("rating") or template["schoolData"]["rating"],
        **template,
    }


def add_city_profiles(repo: LocationRepository, profiles: Iterable[dict[str, Any]]) -> list[LocationRecord]:
    return add_cities(repo, (expand_city_profile(p) for p in profiles))


def seed_default_user(repo: LocationRepository, username: str = DEFAULT_USERNAME) -> UserRecord:
    """Create the shared demo account the frontend saves locations under."""
    user = repo.get_user_by_username(username)
    if user is not None:
        return user
    user = repo.create_user(username=username, password="", first_name="Demo", last_name="User")
    logger.info("Created default user %s (id=%d)", username, user.id)
    return user


def _neighborhood_multiplier(neighborhood: dict[str, Any]) -> float:
    multiplier = 1.0
    if neighborhood["rating"] > 4.3:
        multiplier = 1.2
    elif neighborhood["rating"] < 4.0:
        multiplier = 0.9
    if neighborhood["homeTypes"] == "Condos/Apartments":
        multiplier *= 0.85
    elif neighborhood["homeTypes"] == "Single Family":
        multiplier *= 1.1
    return multiplier
