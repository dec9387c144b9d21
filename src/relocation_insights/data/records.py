"""
Storage-agnostic record types returned by every repository backend.

Attributes are snake_case in Python and serialize to the camelCase keys
the frontend consumes.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: camelCase aliases, populate by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LocationRecord(CamelModel):
    """A city record with its denormalized data blocks."""

    id: int
    name: str
    state: str
    region: str
    population: int
    median_age: float
    median_income: int
    cost_of_living: float
    average_commute: int
    climate: str
    cbp_facilities: int
    rating: float
    lat: float
    lng: float
    housing_data: dict[str, Any] = Field(default_factory=dict)
    school_data: dict[str, Any] = Field(default_factory=dict)
    safety_data: dict[str, Any] = Field(default_factory=dict)
    lifestyle_data: dict[str, Any] = Field(default_factory=dict)
    transportation_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def city_key(self) -> str:
        return f"{self.name}, {self.state}"


class UserRecord(CamelModel):
    id: int
    username: str
    password: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class SavedLocationRecord(CamelModel):
    id: int
    user_id: int
    location_id: int
    created_at: Optional[datetime] = None


def city_key(name: str, state: str) -> str:
    """Identity used for idempotent seeding: ``"El Paso, TX"``."""
    return f"{name}, {state}"


class NewLocation(LocationRecord):
    """Location payload for inserts; the store assigns the id when omitted."""

    id: Optional[int] = None
