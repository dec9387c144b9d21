"""Data layer — database engine, ORM models, repositories and seeding."""

from relocation_insights.data.database import Base, create_db_engine, create_session_factory, init_db
from relocation_insights.data.models import Location, User, SavedLocation
from relocation_insights.data.records import LocationRecord, NewLocation, SavedLocationRecord, UserRecord
from relocation_insights.data.repository import LocationRepository, SqlLocationRepository
from relocation_insights.data.memory_repository import MemoryLocationRepository
from relocation_insights.data.dynamo_repository import DynamoLocationRepository

__all__ = [
    "Base", "create_db_engine", "create_session_factory", "init_db",
    "Location", "User", "SavedLocation",
    "LocationRecord", "NewLocation", "SavedLocationRecord", "UserRecord",
    "LocationRepository", "SqlLocationRepository",
    "MemoryLocationRepository", "DynamoLocationRepository",
]
