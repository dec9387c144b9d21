"""
Census Bureau ACS 5-year adapter.

Two-step lookup per request:
    1. Resolve (state, city) to state + place FIPS codes via the
       place list for that state.
    2. Pull the domain's variables for that place.

Rows are parsed by header name. Counts are turned into integer
percentages (half-up) of each domain's own denominator.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
Tables used (https://api.census.gov/data/2021/acs/acs5/variables.html):
    B01001  Sex by age             B01002  Median age
    B02001  Race                   B03003  Hispanic or Latino origin
    B11001  Household type         B25010  Average household size
    B19013  Median household income
    B19301  Per capita income      B17001  Poverty status
    B23025  Employment status      C24050  Industry by occupation
    B25001..B25003, B25034, B25064, B25077  Housing
    B15003  Educational attainment B14001  School enrollment
    B08303  Travel time to work    B08301  Means of transportation
    B08302  Time leaving home
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar

from relocation_insights.config import settings
from relocation_insights.exceptions import (
    GeographyNotFoundError,
    ProviderError,
    ProviderParsingError,
)
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.base import BaseProvider
from relocation_insights.providers.types import (
    AgeDistribution,
    CommuteData,
    CommuteType,
    DepartureTime,
    EducationData,
    ExpandedCensusData,
    ExpandedDemographics,
    ExpandedHousingData,
    HouseholdTypes,
    HousingAge,
    IncomeEmploymentData,
    Industries,
    Occupations,
    RaceEthnicity,
    SchoolEnrollment,
)
from relocation_insights.utils import pct, round_half_up, safe_float, safe_int

logger = get_logger(__name__)

ACS_BASE = "https://api.census.gov/data/2021/acs/acs5"
MAX_VARIABLES_PER_CALL = 45  # API limit is 50 including NAME/geography

STATE_FIPS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08", "CT": "09",
    "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15", "ID": "16", "IL": "17",
    "IN": "18", "IA": "19", "KS": "20", "KY": "21", "LA": "22", "ME": "23", "MD": "24",
    "MA": "25", "MI": "26", "MN": "27", "MS": "28", "MO": "29", "MT": "30", "NE": "31",
    "NV": "32", "NH": "33", "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38",
    "OH": "39", "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53", "WV": "54",
    "WI": "55", "WY": "56", "PR": "72",
}

# "El Paso city, Texas" -> "el paso"
_PLACE_SUFFIX = re.compile(
    r"\s+(city and borough|city|town|village|borough|cdp|municipality|"
    r"(consolidated|metropolitan|metro|unified) government)(\s*\(balance\))?$"
)

COMMUTE_MIDPOINTS = [2.5, 7, 12, 17, 22, 27, 32, 37, 42, 52, 75, 100]


def _var(table: str, number: int) -> str:
    return f"{table}_{number:03d}E"


def _vars(table: str, numbers: Iterable[int]) -> list[str]:
    return [_var(table, n) for n in numbers]


# ─── Variable sets ──────────────────────────────────────

DEMOGRAPHIC_VARS = (
    ["B01001_001E", "B01002_001E"]
    + _vars("B01001", range(3, 26))
    + _vars("B01001", range(27, 50))
    + ["B02001_002E", "B02001_003E", "B02001_005E", "B03003_003E",
       "B11001_001E", "B11001_002E", "B11001_007E", "B25010_001E"]
)

INCOME_VARS = (
    ["B19013_001E", "B19301_001E", "B17001_001E", "B17001_002E"]
    + _vars("B23025", range(1, 6))
    + _vars("C24050", [15, 29, 43, 57, 71])
    + _vars("C24050", range(2, 15))
)

HOUSING_VARS = (
    ["B25001_001E", "B25002_002E", "B25002_003E", "B25003_002E", "B25003_003E",
     "B25077_001E", "B25064_001E"]
    + _vars("B25034", range(1, 12))
)

EDUCATION_VARS = _vars("B15003", [1] + list(range(17, 26))) + _vars("B14001", range(2, 10))

COMMUTE_VARS = (
    _vars("B08303", range(1, 14))
    + _vars("B08301", [1, 3, 4, 10, 19, 20, 21])
    + _vars("B08302", range(1, 16))
)


@dataclass(frozen=True)
class Geography:
    """Resolved Census place."""
    state_fips: str
    place_fips: str
    name: str


# ─── Row parsing ────────────────────────────────────────


def rows_to_dicts(payload: Any) -> list[dict[str, str]]:
    """Turn the Census ``[[header...], [values...], ...]`` payload into dicts."""
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise ProviderParsingError(
            message="Census response is not a header+rows array",
            details={"type": type(payload).__name__},
        )
    header = payload[0]
    return [dict(zip(header, row)) for row in payload[1:] if isinstance(row, list)]


def _n(row: dict[str, str], variable: str) -> int:
    return safe_int(row.get(variable))


def _total(row: dict[str, str], table: str, numbers: Iterable[int]) -> int:
    return sum(_n(row, _var(table, n)) for n in numbers)


def _age_bucket(row: dict[str, str], male_numbers: range) -> int:
    # Female brackets mirror the male ones 24 columns later
    return _total(row, "B01001", male_numbers) + _total(row, "B01001", (n + 24 for n in male_numbers))


def parse_demographics(row: dict[str, str]) -> ExpandedDemographics:
    total = _n(row, "B01001_001E")
    white = _n(row, "B02001_002E")
    black = _n(row, "B02001_003E")
    asian = _n(row, "B02001_005E")
    hispanic = _n(row, "B03003_003E")
    other = max(total - white - black - asian - hispanic, 0)
    households = _n(row, "B11001_001E")

    return ExpandedDemographics(
        total_population=total,
        median_age=safe_float(row.get("B01002_001E")),
        age_distribution=AgeDistribution(
            under18=pct(_age_bucket(row, range(3, 7)), total),
            age18to24=pct(_age_bucket(row, range(7, 11)), total),
            age25to44=pct(_age_bucket(row, range(11, 15)), total),
            age45to64=pct(_age_bucket(row, range(15, 20)), total),
            age65_plus=pct(_age_bucket(row, range(20, 26)), total),
        ),
        race_ethnicity=RaceEthnicity(
            white=pct(white, total),
            black=pct(black, total),
            asian=pct(asian, total),
            hispanic=pct(hispanic, total),
            other=pct(other, total),
        ),
        household_types=HouseholdTypes(
            family_households=pct(_n(row, "B11001_002E"), households),
            non_family_households=pct(_n(row, "B11001_007E"), households),
            average_household_size=safe_float(row.get("B25010_001E")),
        ),
    )


def parse_income_employment(row: dict[str, str]) -> IncomeEmploymentData:
    population_16_plus = _n(row, "B23025_001E")
    labor_force = _n(row, "B23025_002E")
    civilian_labor_force = _n(row, "B23025_003E")

    occupation_counts = dict(zip(
        ["management", "service", "sales", "construction", "production"],
        (_n(row, v) for v in _vars("C24050", [15, 29, 43, 57, 71])),
    ))
    occupation_total = sum(occupation_counts.values())

    industry_counts = dict(zip(
        ["agriculture", "construction", "manufacturing", "wholesale", "retail",
         "transportation", "information", "finance", "professional", "education",
         "arts", "other", "public_admin"],
        (_n(row, v) for v in _vars("C24050", range(2, 15))),
    ))
    industry_total = sum(industry_counts.values())

    return IncomeEmploymentData(
        median_household_income=_n(row, "B19013_001E"),
        per_capita_income=_n(row, "B19301_001E"),
        poverty_rate=pct(_n(row, "B17001_002E"), _n(row, "B17001_001E")),
        employment_rate=pct(_n(row, "B23025_004E"), civilian_labor_force),
        unemployment_rate=pct(_n(row, "B23025_005E"), civilian_labor_force),
        labor_force_participation=pct(labor_force, population_16_plus),
        occupations=Occupations(**{k: pct(v, occupation_total) for k, v in occupation_counts.items()}),
        industries=Industries(**{k: pct(v, industry_total) for k, v in industry_counts.items()}),
    )


def parse_housing(row: dict[str, str]) -> ExpandedHousingData:
    total_units = _n(row, "B25001_001E")
    occupied = _n(row, "B25002_002E")
    owner = _n(row, "B25003_002E")
    built_total = _n(row, "B25034_001E")

    return ExpandedHousingData(
        total_housing_units=total_units,
        occupied_housing_units=occupied,
        owner_occupied=owner,
        renter_occupied=_n(row, "B25003_003E"),
        vacancy_rate=pct(_n(row, "B25002_003E"), total_units),
        homeownership_rate=pct(owner, occupied),
        median_home_value=_n(row, "B25077_001E"),
        median_rent=_n(row, "B25064_001E"),
        housing_age=HousingAge(
            built_before1970=pct(_total(row, "B25034", range(8, 12)), built_total),
            built1970to1999=pct(_total(row, "B25034", range(5, 8)), built_total),
            built_after2000=pct(_total(row, "B25034", range(2, 5)), built_total),
        ),
    )


def parse_education(row: dict[str, str]) -> EducationData:
    adults = _n(row, "B15003_001E")
    high_school = _total(row, "B15003", [17, 18])
    some_college = _total(row, "B15003", [19, 20, 21])
    bachelors = _n(row, "B15003_022E")
    graduate = _total(row, "B15003", [23, 24, 25])
    enrolled = _n(row, "B14001_002E")

    return EducationData(
        high_school_or_higher=pct(high_school + some_college + bachelors + graduate, adults),
        bachelors_or_higher=pct(bachelors + graduate, adults),
        graduate_or_professional=pct(graduate, adults),
        school_enrollment=SchoolEnrollment(
            preschool=pct(_n(row, "B14001_003E"), enrolled),
            kindergarten=pct(_n(row, "B14001_004E"), enrolled),
            elementary=pct(_total(row, "B14001", [5, 6]), enrolled),
            high_school=pct(_n(row, "B14001_007E"), enrolled),
            college=pct(_total(row, "B14001", [8, 9]), enrolled),
        ),
    )


def parse_commute(row: dict[str, str]) -> CommuteData:
    workers = _n(row, "B08303_001E")
    weighted = sum(
        _n(row, _var("B08303", n)) * midpoint
        for n, midpoint in zip(range(2, 14), COMMUTE_MIDPOINTS)
    )
    commuters = _n(row, "B08301_001E")
    departures = _n(row, "B08302_001E")

    return CommuteData(
        mean_travel_time_to_work=round_half_up(weighted / workers) if workers else 0,
        commute_type=CommuteType(
            drive_alone=pct(_n(row, "B08301_003E"), commuters),
            carpool=pct(_n(row, "B08301_004E"), commuters),
            public_transit=pct(_n(row, "B08301_010E"), commuters),
            walk=pct(_n(row, "B08301_019E"), commuters),
            other=pct(_n(row, "B08301_020E"), commuters),
            work_from_home=pct(_n(row, "B08301_021E"), commuters),
        ),
        departure_time=DepartureTime(
            before7am=pct(_total(row, "B08302", range(2, 7)), departures),
            from7to8am=pct(_total(row, "B08302", [7, 8]), departures),
            from8to9am=pct(_total(row, "B08302", [9, 10]), departures),
            after9am=pct(_total(row, "B08302", range(11, 16)), departures),
        ),
    )


def base_place_name(census_name: str) -> str:
    """``"El Paso city, Texas"`` -> ``"el paso"``."""
    place = census_name.split(",")[0].strip().lower()
    return _PLACE_SUFFIX.sub("", place)


T = TypeVar("T")


class CensusProvider(BaseProvider):
    """
    ACS 5-year client.

    Every public domain method returns None instead of raising when the
    key is missing, the place cannot be resolved, or the upstream call fails.
    """

    NAME = "Census"
    BASE_URL = ACS_BASE

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(
            api_key=api_key if api_key is not None else settings.providers.census_api_key,
            **kwargs,
        )

    # ─── Geography ──────────────────────────────────────────

    def resolve_geography(self, state: str, city: str) -> Geography:
        """
        Resolve a city to its Census place.

        Exact base-name matches ("el paso" for "El Paso city") win over
        substring matches.

        Raises:
            GeographyNotFoundError: Unknown state or no matching place.
        """
        key = self.require_key()
        state_fips = STATE_FIPS.get(state.strip().upper())
        if state_fips is None:
            raise GeographyNotFoundError(city, state)

        places = rows_to_dicts(self.request_json(
            "", params={"get": "NAME", "for": "place:*", "in": f"state:{state_fips}", "key": key},
        ))
        target = city.strip().lower()

        exact = [p for p in places if base_place_name(p.get("NAME", "")) == target]
        partial = [p for p in places if target in p.get("NAME", "").split(",")[0].lower()]
        match = (exact or partial or [None])[0]
        if match is None:
            raise GeographyNotFoundError(city, state)

        geography = Geography(state_fips=match["state"], place_fips=match["place"], name=match["NAME"])
        logger.info(
            "Resolved %s, %s to Census place %s (state=%s, place=%s)",
            city, state, geography.name, geography.state_fips, geography.place_fips,
        )
        return geography

    def fetch_variables(self, geography: Geography, variables: list[str]) -> dict[str, str]:
        """Fetch ACS variables for one place, splitting into API-sized chunks."""
        key = self.require_key()
        merged: dict[str, str] = {}
        for start in range(0, len(variables), MAX_VARIABLES_PER_CALL):
            chunk = variables[start:start + MAX_VARIABLES_PER_CALL]
            rows = rows_to_dicts(self.request_json(
                "",
                params={
                    "get": ",".join(chunk),
                    "for": f"place:{geography.place_fips}",
                    "in": f"state:{geography.state_fips}",
                    "key": key,
                },
            ))
            if not rows:
                raise ProviderParsingError(
                    message="Census returned no data row",
                    details={"place": geography.name},
                )
            merged.update(rows[0])
        return merged

    # ─── Domains ────────────────────────────────────────────

    def _domain(
        self,
        label: str,
        state: str,
        city: str,
        variables: list[str],
        parser: Callable[[dict[str, str]], T],
        geography: Optional[Geography],
    ) -> Optional[T]:
        try:
            geography = geography or self.resolve_geography(state, city)
            return parser(self.fetch_variables(geography, variables))
        except ProviderError as e:
            logger.warning("Census %s unavailable for %s, %s: %s", label, city, state, e.message)
            return None

    def get_expanded_demographics(
        self, state: str, city: str, geography: Optional[Geography] = None,
    ) -> Optional[ExpandedDemographics]:
        return self._domain("demographics", state, city, DEMOGRAPHIC_VARS, parse_demographics, geography)

    def get_income_employment_data(
        self, state: str, city: str, geography: Optional[Geography] = None,
    ) -> Optional[IncomeEmploymentData]:
        return self._domain("income/employment", state, city, INCOME_VARS, parse_income_employment, geography)

    def get_expanded_housing_data(
        self, state: str, city: str, geography: Optional[Geography] = None,
    ) -> Optional[ExpandedHousingData]:
        return self._domain("housing", state, city, HOUSING_VARS, parse_housing, geography)

    def get_education_data(
        self, state: str, city: str, geography: Optional[Geography] = None,
    ) -> Optional[EducationData]:
        return self._domain("education", state, city, EDUCATION_VARS, parse_education, geography)

    def get_commute_data(
        self, state: str, city: str, geography: Optional[Geography] = None,
    ) -> Optional[CommuteData]:
        return self._domain("commute", state, city, COMMUTE_VARS, parse_commute, geography)

    def get_all_expanded_census_data(self, state: str, city: str) -> ExpandedCensusData:
        """
        All five domains, resolving the place once and fetching in parallel.

        Missing domains are replaced by zero-filled placeholders, so this
        never fails for an unknown or misspelled city.
        """
        logger.info("Fetching all Census data for %s, %s", city, state)
        try:
            geography = self.resolve_geography(state, city)
        except ProviderError as e:
            logger.warning("Census geography unavailable for %s, %s: %s", city, state, e.message)
            geography = None

        results: dict[str, Any] = {}
        if geography is not None:
            fetchers = {
                "demographics": self.get_expanded_demographics,
                "income_employment": self.get_income_employment_data,
                "housing": self.get_expanded_housing_data,
                "education": self.get_education_data,
                "commute": self.get_commute_data,
            }
            with ThreadPoolExecutor(max_workers=len(fetchers)) as pool:
                futures = {name: pool.submit(fn, state, city, geography) for name, fn in fetchers.items()}
                results = {name: future.result() for name, future in futures.items()}

        missing = [name for name in ("demographics", "income_employment", "housing", "education", "commute")
                   if results.get(name) is None]
        if missing:
            logger.warning("Census domains missing for %s, %s: %s", city, state, ", ".join(missing))

        return ExpandedCensusData(
            **{name: value for name, value in results.items() if value is not None},
            data_date=datetime.now(timezone.utc),
        )
