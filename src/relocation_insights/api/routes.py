"""
HTTP routes.

Handlers are plain ``def`` so FastAPI runs them in its threadpool; the
repositories and providers are blocking. Every error body is
``{"error": message}`` (see the HTTPException handler in main.py).
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from relocation_insights.api.dependencies import Providers, get_providers, get_repository
from relocation_insights.api.schemas import (
    ChatRequest,
    ChatResponse,
    SaveLocationRequest,
    SummaryRequest,
    SummaryResponse,
)
from relocation_insights.data.records import LocationRecord, SavedLocationRecord
from relocation_insights.data.repository import LocationRepository
from relocation_insights.exceptions import LocationNotFoundError, UserNotFoundError
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.enrichment import enrich_location_data
from relocation_insights.providers.types import (
    ClimateData,
    CommuteData,
    EducationData,
    EnrichedLocation,
    ExpandedCensusData,
    ExpandedDemographics,
    ExpandedHousingData,
    IncomeEmploymentData,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

CITY_STATE_REQUIRED = "City and state are required"


def _require_city_state(city: Optional[str], state: Optional[str]) -> tuple[str, str]:
    if not city or not city.strip() or not state or not state.strip():
        raise HTTPException(status_code=400, detail=CITY_STATE_REQUIRED)
    return city.strip(), state.strip()


def _parse_ids(raw: Optional[str]) -> list[int]:
    """``"1, 2,3"`` -> ``[1, 2, 3]``; empty or non-numeric input is a 400."""
    parts = [p.strip() for p in (raw or "").split(",") if p.strip()]
    if not parts or not all(p.isdecimal() for p in parts):
        raise HTTPException(status_code=400, detail="Location IDs are required")
    return [int(p) for p in parts]


# ─── Locations ──────────────────────────────────────────────


@router.get("/locations", response_model=list[LocationRecord])
def list_locations(
    search: str = "",
    region: str = "",
    repo: LocationRepository = Depends(get_repository),
):
    try:
        return repo.get_locations(search=search.strip(), region=region.strip())
    except Exception:
        logger.exception("Error fetching locations (search=%r, region=%r)", search, region)
        raise HTTPException(status_code=500, detail="Failed to fetch locations")


@router.get("/locations/{location_id}", response_model=EnrichedLocation)
def get_location(
    location_id: int,
    repo: LocationRepository = Depends(get_repository),
    providers: Providers = Depends(get_providers),
):
    try:
        location = repo.get_location_by_id(location_id)
        if location is None:
            raise HTTPException(status_code=404, detail="Location not found")
        return enrich_location_data(location, census=providers.census, datagov=providers.datagov)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching location %d", location_id)
        raise HTTPException(status_code=500, detail="Failed to fetch location")


@router.get("/compare", response_model=list[EnrichedLocation])
def compare_locations(
    ids: Optional[str] = None,
    repo: LocationRepository = Depends(get_repository),
    providers: Providers = Depends(get_providers),
):
    location_ids = _parse_ids(ids)
    try:
        locations = repo.get_locations_by_ids(location_ids)
        return [
            enrich_location_data(location, census=providers.census, datagov=providers.datagov)
            for location in locations
        ]
    except Exception:
        logger.exception("Error comparing locations %s", location_ids)
        raise HTTPException(status_code=500, detail="Failed to fetch locations for comparison")


# ─── Saved Locations ────────────────────────────────────────


@router.get("/saved-locations", response_model=list[SavedLocationRecord])
def list_saved_locations(
    user_id: Optional[str] = Query(None, alias="userId"),
    repo: LocationRepository = Depends(get_repository),
):
    if not user_id or not user_id.strip().isdecimal():
        raise HTTPException(status_code=400, detail="User ID is required")
    try:
        return repo.get_saved_locations(int(user_id))
    except Exception:
        logger.exception("Error fetching saved locations for user %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch saved locations")


@router.post("/saved-locations", response_model=SavedLocationRecord, status_code=status.HTTP_201_CREATED)
def save_location(
    body: SaveLocationRequest,
    response: Response,
    repo: LocationRepository = Depends(get_repository),
):
    if body.user_id is None or body.location_id is None:
        raise HTTPException(status_code=400, detail="User ID and Location ID are required")

    try:
        if repo.get_location_by_id(body.location_id) is None:
            raise HTTPException(status_code=404, detail="Location not found")
        saved, created = repo.save_location(body.user_id, body.location_id)
    except HTTPException:
        raise
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except LocationNotFoundError:
        raise HTTPException(status_code=404, detail="Location not found")
    except Exception:
        logger.exception("Error saving location %d for user %d", body.location_id, body.user_id)
        raise HTTPException(status_code=500, detail="Failed to save location")

    if not created:
        response.status_code = status.HTTP_200_OK
    return saved


@router.delete("/saved-locations/{saved_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_saved_location(saved_id: int, repo: LocationRepository = Depends(get_repository)):
    try:
        removed = repo.remove_saved_location(saved_id)
    except Exception:
        logger.exception("Error removing saved location %d", saved_id)
        raise HTTPException(status_code=500, detail="Failed to remove saved location")
    if not removed:
        logger.info("Saved location %d did not exist", saved_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Rentcast ───────────────────────────────────────────────


@router.get("/rentcast/property-listings")
def property_listings(
    city: Optional[str] = None,
    state: Optional[str] = None,
    limit: int = Query(10, ge=1, le=500),
    providers: Providers = Depends(get_providers),
) -> list[dict[str, Any]]:
    city, state = _require_city_state(city, state)
    return providers.rentcast.get_property_listings(city, state, limit)


@router.get("/rentcast/market-trends")
def market_trends(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> Optional[dict[str, Any]]:
    city, state = _require_city_state(city, state)
    return providers.rentcast.get_market_trends(city, state)


@router.get("/rentcast/rental-history")
def rental_history(
    city: Optional[str] = None,
    state: Optional[str] = None,
    months: int = Query(12, ge=1, le=120),
    providers: Providers = Depends(get_providers),
) -> Optional[dict[str, Any]]:
    city, state = _require_city_state(city, state)
    return providers.rentcast.get_rental_price_history(city, state, months)


@router.get("/rentcast/property")
def property_details(
    address: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> Optional[dict[str, Any]]:
    if not address or not address.strip():
        raise HTTPException(status_code=400, detail="Address is required")
    return providers.rentcast.get_property_by_address(address.strip())


# ─── Census ─────────────────────────────────────────────────


@router.get("/census/expanded", response_model=ExpandedCensusData)
def census_expanded(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return providers.census.get_all_expanded_census_data(state, city)


def _census_domain(result):
    if result is None:
        raise HTTPException(status_code=404, detail="Census data not available")
    return result


@router.get("/census/demographics", response_model=ExpandedDemographics)
def census_demographics(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return _census_domain(providers.census.get_expanded_demographics(state, city))


@router.get("/census/income-employment", response_model=IncomeEmploymentData)
def census_income_employment(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return _census_domain(providers.census.get_income_employment_data(state, city))


@router.get("/census/housing", response_model=ExpandedHousingData)
def census_housing(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return _census_domain(providers.census.get_expanded_housing_data(state, city))


@router.get("/census/education", response_model=EducationData)
def census_education(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return _census_domain(providers.census.get_education_data(state, city))


@router.get("/census/commute", response_model=CommuteData)
def census_commute(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return _census_domain(providers.census.get_commute_data(state, city))


# ─── data.gov / Climate ─────────────────────────────────────


@router.get("/datagov/housing")
def datagov_housing(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
) -> dict[str, Any]:
    city, state = _require_city_state(city, state)
    housing, quality = providers.datagov.get_housing_with_fallback(state, city)
    return {**housing.to_json_dict(), "dataQuality": quality}


@router.get("/climate", response_model=ClimateData)
def climate(
    city: Optional[str] = None,
    state: Optional[str] = None,
    providers: Providers = Depends(get_providers),
):
    city, state = _require_city_state(city, state)
    return providers.climate.get_climate_data(city, state)


# ─── AI ─────────────────────────────────────────────────────


@router.get("/ai/community-summary/{location_id}", response_model=SummaryResponse)
def community_summary(
    location_id: int,
    repo: LocationRepository = Depends(get_repository),
    providers: Providers = Depends(get_providers),
):
    location = repo.get_location_by_id(location_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return SummaryResponse(summary=providers.ai.generate_community_summary(location))


@router.post("/ai/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    repo: LocationRepository = Depends(get_repository),
    providers: Providers = Depends(get_providers),
):
    if not body.query or not body.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")
    locations = repo.get_locations()
    compare = repo.get_locations_by_ids(body.location_ids) if body.location_ids else None
    return ChatResponse(response=providers.ai.process_location_query(body.query.strip(), locations, compare))


@router.post("/ai/summary", response_model=SummaryResponse)
def city_summary(
    body: SummaryRequest,
    repo: LocationRepository = Depends(get_repository),
    providers: Providers = Depends(get_providers),
):
    if body.location_id is None:
        raise HTTPException(status_code=400, detail="Location ID is required")
    location = repo.get_location_by_id(body.location_id)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")
    return SummaryResponse(summary=providers.ai.generate_city_summary(location))
