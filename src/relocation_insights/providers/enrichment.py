"""
Request-time enrichment of a location with housing, education and safety data.

The three fetches run in parallel. Each yields an ExternalDataEntry or
None; a failing fetch never fails the location request.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional

from relocation_insights.data.records import LocationRecord
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.census import CensusProvider
from relocation_insights.providers.datagov import DataGovProvider, enrichment_tables, static_city_figures
from relocation_insights.providers.types import (
    EXACT,
    REGIONAL_APPROXIMATION,
    EnrichedLocation,
    ExternalData,
    ExternalDataEntry,
)

logger = get_logger(__name__)

HOUSING_SOURCE = "Census Bureau - American Community Survey"
EDUCATION_SOURCE = "Department of Education - College Scorecard"
SAFETY_SOURCE = "FBI Uniform Crime Report"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _static_quality(exact: bool) -> str:
    return EXACT if exact else REGIONAL_APPROXIMATION


def fetch_housing(location: LocationRecord, census: Optional[CensusProvider] = None) -> ExternalDataEntry:
    if census is not None and census.is_configured:
        housing = census.get_expanded_housing_data(location.state, location.name)
        if housing is not None:
            return ExternalDataEntry(
                source=HOUSING_SOURCE,
                fetched=_now(),
                data={
                    "medianHomeValue": housing.median_home_value,
                    "rentMedian": housing.median_rent,
                    "homeOwnershipRate": housing.homeownership_rate,
                    "source": "Census Bureau - American Community Survey (2021 5-year)",
                },
                data_quality=EXACT,
            )

    figures, exact = static_city_figures(location.name)
    return ExternalDataEntry(
        source=HOUSING_SOURCE,
        fetched=_now(),
        data={
            "medianHomeValue": figures["medianHomeValue"],
            "rentMedian": figures["rentMedian"],
            "homeOwnershipRate": figures["homeOwnershipRate"],
            "source": "Census Bureau - American Community Survey (2020)",
        },
        data_quality=_static_quality(exact),
    )


def fetch_education(location: LocationRecord, datagov: Optional[DataGovProvider] = None) -> ExternalDataEntry:
    if datagov is not None and datagov.is_configured:
        education = datagov.get_education_data(location.state, location.name)
        if education is not None:
            return ExternalDataEntry(source=EDUCATION_SOURCE, fetched=_now(), data=education, data_quality=EXACT)

    figures, exact = static_city_figures(location.name)
    return ExternalDataEntry(
        source=EDUCATION_SOURCE,
        fetched=_now(),
        data={
            "schoolCount": figures["schoolCount"],
            "graduationRate": figures["graduationRate"],
            "studentTeacherRatio": figures["studentTeacherRatio"],
            "source": "Department of Education (College Scorecard)",
        },
        data_quality=_static_quality(exact),
    )


def fetch_safety(location: LocationRecord) -> ExternalDataEntry:
    figures, exact = static_city_figures(location.name)
    return ExternalDataEntry(
        source=SAFETY_SOURCE,
        fetched=_now(),
        data={
            "crimeRate": figures["crimeRate"],
            "violentCrime": figures["violentCrime"],
            "propertyCrime": figures["propertyCrime"],
            "year": enrichment_tables()["crimeYear"],
            "source": "FBI Crime Data API (UCR)",
        },
        data_quality=_static_quality(exact),
    )


def _guarded(label: str, location: LocationRecord, fetch: Callable[[], ExternalDataEntry]) -> Optional[ExternalDataEntry]:
    try:
        return fetch()
    except Exception:
        logger.exception("Error preparing %s data for %s, %s", label, location.name, location.state)
        return None


def enrich_location_data(
    location: LocationRecord,
    census: Optional[CensusProvider] = None,
    datagov: Optional[DataGovProvider] = None,
) -> EnrichedLocation:
    """
    Attach ``externalData`` to a copy of ``location``.

    Args:
        location: Base record from the repository.
        census: Used for live housing figures when configured.
        datagov: Used for live education figures when configured.
    """
    fetchers = {
        "housing": lambda: fetch_housing(location, census),
        "education": lambda: fetch_education(location, datagov),
        "safety": lambda: fetch_safety(location),
    }
    with ThreadPoolExecutor(max_workers=len(fetchers)) as pool:
        futures = {name: pool.submit(_guarded, name, location, fn) for name, fn in fetchers.items()}
        entries = {name: future.result() for name, future in futures.items()}

    return EnrichedLocation(
        **location.model_dump(),
        external_data=ExternalData(**entries, last_updated=_now()),
    )
