"""
Process-wide wiring: the storage backend and the provider clients.

Both are built once in the app lifespan and read from ``app.state``
by the route dependencies.
"""

from dataclasses import dataclass, field

from fastapi import Request

from relocation_insights.config import settings
from relocation_insights.data.database import create_db_engine, create_session_factory, init_db
from relocation_insights.data.dynamo_repository import DynamoLocationRepository
from relocation_insights.data.dynamodb import create_dynamodb_resource, create_tables
from relocation_insights.data.memory_repository import MemoryLocationRepository
from relocation_insights.data.repository import LocationRepository, SqlLocationRepository
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.ai import AIProvider
from relocation_insights.providers.census import CensusProvider
from relocation_insights.providers.climate import ClimateProvider
from relocation_insights.providers.datagov import DataGovProvider
from relocation_insights.providers.rentcast import RentcastProvider

logger = get_logger(__name__)


@dataclass
class Providers:
    census: CensusProvider = field(default_factory=CensusProvider)
    climate: ClimateProvider = field(default_factory=ClimateProvider)
    rentcast: RentcastProvider = field(default_factory=RentcastProvider)
    datagov: DataGovProvider = field(default_factory=DataGovProvider)
    ai: AIProvider = field(default_factory=AIProvider)

    def close(self) -> None:
        for provider in (self.census, self.climate, self.rentcast, self.datagov):
            provider.close()


def build_repository(backend: str | None = None) -> LocationRepository:
    """
    Create the repository for the configured storage backend.

    Args:
        backend: "memory", "sql" or "dynamodb". Defaults to settings.storage_backend.
    """
    backend = backend or settings.storage_backend
    logger.info("Using %s storage backend", backend)

    if backend == "sql":
        engine = create_db_engine()
        init_db(engine)
        return SqlLocationRepository(create_session_factory(engine))
    if backend == "dynamodb":
        resource = create_dynamodb_resource()
        create_tables(resource)
        return DynamoLocationRepository(resource=resource)
    return MemoryLocationRepository()


def get_repository(request: Request) -> LocationRepository:
    return request.app.state.repository


def get_providers(request: Request) -> Providers:
    return request.app.state.providers
