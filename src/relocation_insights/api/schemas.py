"""Request and response bodies for the JSON API (camelCase on the wire)."""

from typing import Optional

from pydantic import ConfigDict

from relocation_insights.data.records import CamelModel


class SaveLocationRequest(CamelModel):
    """Body for POST /api/saved-locations. Missing ids are reported as 400 by the route."""

    user_id: Optional[int] = None
    location_id: Optional[int] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"userId": 1, "locationId": 2}}
    )


class ChatRequest(CamelModel):
    query: Optional[str] = None
    location_ids: Optional[list[int]] = None

    model_config = ConfigDict(
        json_schema_extra={"example": {"query": "Compare El Paso and San Diego for families", "locationIds": [1, 2]}}
    )


class SummaryRequest(CamelModel):
    location_id: Optional[int] = None


class ChatResponse(CamelModel):
    response: str


class SummaryResponse(CamelModel):
    summary: str


class HealthResponse(CamelModel):
    status: str
    storage_backend: str
