"""External data adapters: Census, NOAA, Rentcast, data.gov and OpenAI."""

from relocation_insights.providers.base import BaseProvider
from relocation_insights.providers.census import CensusProvider
from relocation_insights.providers.climate import ClimateProvider
from relocation_insights.providers.rentcast import RentcastProvider
from relocation_insights.providers.datagov import DataGovProvider
from relocation_insights.providers.ai import AIProvider
from relocation_insights.providers.enrichment import enrich_location_data

__all__ = [
    "BaseProvider", "CensusProvider", "ClimateProvider", "RentcastProvider",
    "DataGovProvider", "AIProvider", "enrich_location_data",
]
