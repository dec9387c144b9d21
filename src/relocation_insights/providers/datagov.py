"""
data.gov adapters: ACS city housing and the College Scorecard.

Static per-city and regional figures live in resources/enrichment.json.
"""

from functools import lru_cache
from statistics import mean
from typing import Any, Optional

from relocation_insights.config import settings
from relocation_insights.exceptions import ProviderError
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.base import BaseProvider
from relocation_insights.providers.types import (
    EXACT,
    REGIONAL_APPROXIMATION,
    ExpandedHousingData,
    HousingAge,
)
from relocation_insights.utils import load_resource, round_half_up, safe_float, safe_int

logger = get_logger(__name__)

DATA_GOV_BASE_URL = "https://api.data.gov"
HOUSING_PATH = "/housing/dataset/acs/city"
SCORECARD_PATH = "/ed/collegescorecard/v1/schools"
SCORECARD_FIELDS = "id,school.name,latest.completion.completion_rate_4yr_150nt"


@lru_cache(maxsize=1)
def enrichment_tables() -> dict[str, Any]:
    return load_resource("enrichment.json")


def static_city_figures(city: str) -> tuple[dict[str, Any], bool]:
    """
    Per-city static figures.

    Returns:
        (figures, exact) where ``exact`` is False when the defaults were used.
    """
    tables = enrichment_tables()
    figures = tables["cities"].get(city.strip().lower())
    if figures is None:
        return tables["default"], False
    return figures, True


def housing_region(state: str) -> str:
    return enrichment_tables()["housingRegions"]["states"].get(state.strip().upper(), "national")


def get_fallback_housing_data(state: str, city: str) -> ExpandedHousingData:
    """Representative ACS values for the state's census region."""
    regions = enrichment_tables()["housingRegions"]
    region = housing_region(state)
    values = regions["values"][region]
    logger.info("Using %s regional housing figures for %s, %s", region, city, state)
    return ExpandedHousingData(
        vacancy_rate=regions["vacancyRate"],
        homeownership_rate=values["homeownership"],
        median_home_value=values["homeValue"],
        median_rent=values["rent"],
        housing_age=HousingAge.model_validate(regions["housingAge"]),
    )


def parse_housing_payload(data: dict[str, Any]) -> ExpandedHousingData:
    return ExpandedHousingData(
        total_housing_units=safe_int(data.get("housing_units")),
        occupied_housing_units=safe_int(data.get("occupied_housing_units")),
        owner_occupied=safe_int(data.get("owner_occupied")),
        renter_occupied=safe_int(data.get("renter_occupied")),
        vacancy_rate=safe_float(data.get("vacancy_rate")),
        homeownership_rate=safe_float(data.get("homeownership_rate")),
        median_home_value=safe_int(data.get("median_home_value")),
        median_rent=safe_int(data.get("median_rent")),
        housing_age=HousingAge(
            built_before1970=safe_int(data.get("built_before_1970")),
            built1970to1999=safe_int(data.get("built_1970_to_1999")),
            built_after2000=safe_int(data.get("built_after_2000")),
        ),
    )


class DataGovProvider(BaseProvider):
    """api.data.gov client. The housing dataset works without a key; the Scorecard needs one."""

    NAME = "data.gov"
    BASE_URL = DATA_GOV_BASE_URL

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(
            api_key=api_key if api_key is not None else settings.providers.data_gov_api_key,
            **kwargs,
        )

    def get_housing_data(self, state: str, city: str) -> Optional[ExpandedHousingData]:
        params = {"city": city.strip().lower(), "state": state.strip().lower()}
        if self.api_key:
            params["api_key"] = self.api_key
        try:
            payload = self.request_json(HOUSING_PATH, params=params)
        except ProviderError as e:
            logger.warning("data.gov housing unavailable for %s, %s: %s", city, state, e.message)
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data:
            logger.warning("data.gov returned no housing data for %s, %s", city, state)
            return None
        return parse_housing_payload(data)

    def get_housing_with_fallback(self, state: str, city: str) -> tuple[ExpandedHousingData, str]:
        """Live housing data, else the regional fallback. Returns (data, dataQuality)."""
        housing = self.get_housing_data(state, city)
        if housing is not None:
            return housing, EXACT
        return get_fallback_housing_data(state, city), REGIONAL_APPROXIMATION

    def get_education_data(self, state: str, city: str) -> Optional[dict[str, Any]]:
        """
        College Scorecard summary for institutions in the city.

        Returns:
            ``{schoolCount, graduationRate, studentTeacherRatio, source}`` or
            None when unconfigured, failing, or no institution matched.
            The Scorecard has no student-teacher ratio, so that figure
            comes from the static table.
        """
        if not self.is_configured:
            return None
        try:
            payload = self.request_json(
                SCORECARD_PATH,
                params={
                    "api_key": self.api_key,
                    "school.city": city,
                    "school.state": state.strip().upper(),
                    "fields": SCORECARD_FIELDS,
                    "per_page": 100,
                },
            )
        except ProviderError as e:
            logger.warning("College Scorecard unavailable for %s, %s: %s", city, state, e.message)
            return None

        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            logger.info("No College Scorecard institutions for %s, %s", city, state)
            return None

        rates = [
            r["latest.completion.completion_rate_4yr_150nt"]
            for r in results
            if isinstance(r.get("latest.completion.completion_rate_4yr_150nt"), (int, float))
        ]
        total = payload.get("metadata", {}).get("total", len(results))
        figures, _ = static_city_figures(city)
        return {
            "schoolCount": total,
            "graduationRate": round_half_up(mean(rates) * 100) if rates else figures["graduationRate"],
            "studentTeacherRatio": figures["studentTeacherRatio"],
            "source": "Department of Education (College Scorecard)",
        }
