"""
Climate adapter: NOAA observations with static normals as the fallback.

Static tables (stations, normals, regional stand-ins, risk tables) ship
as resources/climate.json. Cities without their own normals borrow a
regional stand-in and the response says so through ``dataQuality`` and
``approximatedFrom``.
"""

from collections import defaultdict
from datetime import datetime, timezone
from functools import lru_cache
from statistics import mean
from typing import Any, Optional

from relocation_insights.config import settings
from relocation_insights.exceptions import ProviderError, ProviderParsingError
from relocation_insights.logging_config import get_logger
from relocation_insights.providers.base import BaseProvider
from relocation_insights.providers.types import (
    EXACT,
    OBSERVED,
    REGIONAL_APPROXIMATION,
    ClimateData,
    ClimateExtremes,
    ClimateSummary,
    ExtremeWeatherEvents,
    MonthlyPrecipitation,
    MonthlyTemperature,
    RiskLevel,
    SeasonalData,
)
from relocation_insights.utils import load_resource, round_half_up

logger = get_logger(__name__)

NOAA_BASE_URL = "https://www.ncdc.noaa.gov/cdo-web/api/v2"
OBSERVATION_YEARS = 5
GSOM_DATATYPES = ("TAVG", "TMAX", "TMIN", "PRCP", "SNOW")
REQUIRED_DATATYPES = ("TAVG", "TMAX", "TMIN", "PRCP")

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# Month indexes, 0 = January
SEASONS = [
    ("Winter", (11, 0, 1)),
    ("Spring", (2, 3, 4)),
    ("Summer", (5, 6, 7)),
    ("Fall", (8, 9, 10)),
]

RISK_FIELDS = {
    "tornado": "tornado",
    "hurricane": "hurricane",
    "flood": "flood",
    "winterStorm": "winter_storm",
    "drought": "drought",
    "heatWave": "heat_wave",
}


@lru_cache(maxsize=1)
def climate_tables() -> dict[str, Any]:
    return load_resource("climate.json")


def location_key(city: str, state: str) -> str:
    """``("El Paso", "TX")`` -> ``"el paso_tx"``."""
    return f"{city.strip().lower()}_{state.strip().lower()}"


def climate_type(annual_avg_temp: float, annual_precipitation: float) -> str:
    if annual_avg_temp > 70:
        if annual_precipitation > 40:
            return "Tropical"
        if annual_precipitation > 20:
            return "Humid subtropical"
        return "Desert"
    if annual_avg_temp > 50:
        if annual_precipitation > 30:
            return "Humid continental"
        if annual_precipitation > 15:
            return "Mediterranean"
        return "Semi-arid"
    if annual_precipitation > 25:
        return "Marine west coast"
    if annual_precipitation > 15:
        return "Humid continental"
    return "Alpine"


def seasonal_data(monthly_temp: list[float], monthly_precip: list[float]) -> list[SeasonalData]:
    return [
        SeasonalData(
            season=season,
            avg_temp_f=round_half_up(mean(monthly_temp[m] for m in months), 1),
            total_precipitation=round_half_up(sum(monthly_precip[m] for m in months), 2),
        )
        for season, months in SEASONS
    ]


def extreme_weather_risk(city: str, state: str) -> ExtremeWeatherEvents:
    """State-membership risk levels, then per-city overrides."""
    tables = climate_tables()
    state_key = state.strip().lower()
    overrides = tables["cityRiskOverrides"].get(location_key(city, state), {})

    levels: dict[str, int] = {}
    counts: dict[str, int] = {}
    for risk, table in tables["risks"].items():
        level, annual = table["elevated"] if state_key in table["states"] else table["default"]
        level, annual = overrides.get(risk, (level, annual))
        levels[RISK_FIELDS[risk]] = level
        counts[table["counter"]] = annual

    return ExtremeWeatherEvents(
        annual_tornadoes=counts["annualTornadoes"],
        annual_hurricanes=counts["annualHurricanes"],
        annual_floods=counts["annualFloods"],
        annual_blizzards=counts["annualBlizzards"],
        annual_droughts=counts["annualDroughts"],
        annual_heat_waves=counts["annualHeatWaves"],
        risk_level=RiskLevel(**levels),
    )


def normals_for(city: str, state: str) -> tuple[dict[str, Any], Optional[str]]:
    """
    Static normals for a city.

    Returns:
        (normals, approximated_from) where approximated_from is the
        stand-in's key, or None when the city has its own record.
    """
    tables = climate_tables()
    key = location_key(city, state)
    if key in tables["normals"]:
        return tables["normals"][key], None

    fallback = tables["regionalFallback"]
    source = fallback["states"].get(state.strip().upper(), fallback["default"])
    logger.warning("No climate normals for %s, %s. Using regional approximation from %s", city, state, source)
    return tables["normals"][source], source


def build_climate_data(
    city: str,
    state: str,
    normals: dict[str, Any],
    data_quality: str,
    approximated_from: Optional[str] = None,
) -> ClimateData:
    """Assemble the response from a normals-shaped record."""
    monthly_temp = normals["monthlyTemp"]
    monthly_precip = normals["monthlyPrecip"]

    return ClimateData(
        location_name=city,
        state=state,
        latitude=normals["lat"],
        longitude=normals["lng"],
        elevation=normals["elevation"],
        summary=ClimateSummary(
            annual_avg_temp_f=normals["annualAvgTemp"],
            annual_avg_max_temp_f=normals["annualMaxTemp"],
            annual_avg_min_temp_f=normals["annualMinTemp"],
            annual_precipitation=normals["annualPrecip"],
            annual_snowfall=normals["annualSnow"],
            avg_sunny_days=normals["sunnyDays"],
            avg_rainy_days=normals["rainyDays"],
            avg_snowy_days=normals["snowyDays"],
            comfort_index=normals["comfortIndex"],
            climate_type=climate_type(normals["annualAvgTemp"], normals["annualPrecip"]),
        ),
        monthly_temperature=[
            MonthlyTemperature(
                month=month,
                avg_temp_f=monthly_temp[i],
                avg_max_temp_f=normals["monthlyMaxTemp"][i],
                avg_min_temp_f=normals["monthlyMinTemp"][i],
            )
            for i, month in enumerate(MONTHS)
        ],
        monthly_precipitation=[
            MonthlyPrecipitation(
                month=month,
                avg_precipitation=monthly_precip[i],
                avg_snowfall=normals["monthlySnow"][i],
            )
            for i, month in enumerate(MONTHS)
        ],
        seasonal_data=seasonal_data(monthly_temp, monthly_precip),
        extremes=ClimateExtremes(
            record_high_temp_f=normals["recordHigh"],
            record_high_temp_date=normals["recordHighDate"],
            record_low_temp_f=normals["recordLow"],
            record_low_temp_date=normals["recordLowDate"],
            record_precipitation=normals["recordPrecip"],
            record_precipitation_date=normals["recordPrecipDate"],
            record_snowfall=normals["recordSnow"],
            record_snowfall_date=normals["recordSnowDate"],
        ),
        extreme_weather_events=extreme_weather_risk(city, state),
        data_date=datetime.now(timezone.utc),
        data_quality=data_quality,
        approximated_from=approximated_from,
    )


def monthly_means(results: list[dict[str, Any]]) -> dict[str, list[Optional[float]]]:
    """
    Average GSOM monthly values per calendar month.

    Returns:
        datatype -> 12 monthly means (None where no observation exists).
    """
    buckets: dict[str, dict[int, list[float]]] = defaultdict(lambda: defaultdict(list))
    for row in results:
        try:
            month = int(str(row["date"])[5:7]) - 1
            value = float(row["value"])
        except (KeyError, TypeError, ValueError):
            continue
        if 0 <= month < 12:
            buckets[row.get("datatype", "")][month].append(value)

    return {
        datatype: [
            round_half_up(mean(buckets[datatype][m]), 2) if buckets[datatype].get(m) else None
            for m in range(12)
        ]
        for datatype in GSOM_DATATYPES
    }


def merge_observations(normals: dict[str, Any], means: dict[str, list[Optional[float]]]) -> dict[str, Any]:
    """Overlay observed monthly series (and the annual figures derived from them) on a normals record."""
    merged = dict(normals)
    temp, max_temp, min_temp, precip = (means[t] for t in REQUIRED_DATATYPES)
    snow = [
        observed if observed is not None else normals["monthlySnow"][m]
        for m, observed in enumerate(means["SNOW"])
    ]
    merged.update(
        monthlyTemp=[round_half_up(v, 1) for v in temp],
        monthlyMaxTemp=[round_half_up(v, 1) for v in max_temp],
        monthlyMinTemp=[round_half_up(v, 1) for v in min_temp],
        monthlyPrecip=precip,
        monthlySnow=snow,
        annualAvgTemp=round_half_up(mean(temp), 1),
        annualMaxTemp=round_half_up(mean(max_temp), 1),
        annualMinTemp=round_half_up(mean(min_temp), 1),
        annualPrecip=round_half_up(sum(precip), 1),
        annualSnow=round_half_up(sum(snow), 1),
    )
    return merged


class ClimateProvider(BaseProvider):
    """NOAA Climate Data Online client with a static-normals fallback."""

    NAME = "NOAA"
    BASE_URL = NOAA_BASE_URL

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(
            api_key=api_key if api_key is not None else settings.providers.noaa_api_key,
            **kwargs,
        )

    def station_for(self, city: str, state: str) -> Optional[str]:
        return climate_tables()["stations"].get(location_key(city, state))

    def fetch_monthly_observations(self, station_id: str, today: Optional[datetime] = None) -> dict[str, list[Optional[float]]]:
        """
        GSOM monthly summaries for the last OBSERVATION_YEARS full years.

        Raises:
            ProviderError: Missing key, HTTP failure, or no results.
        """
        token = self.require_key()
        year = (today or datetime.now(timezone.utc)).year
        payload = self.request_json(
            "/data",
            params={
                "datasetid": "GSOM",
                "stationid": station_id,
                "startdate": f"{year - OBSERVATION_YEARS}-01-01",
                "enddate": f"{year - 1}-12-31",
                "datatypeid": ",".join(GSOM_DATATYPES),
                "units": "standard",
                "limit": 1000,
            },
            headers={"token": token},
        )
        results = payload.get("results") if isinstance(payload, dict) else None
        if not results:
            raise ProviderParsingError(
                message="NOAA returned no GSOM results",
                details={"station": station_id},
            )
        return monthly_means(results)

    def get_climate_data(self, city: str, state: str) -> ClimateData:
        """
        Climate profile for a city. Never raises for an unknown city.

        Order of preference:
            1. NOAA observations (key configured, station mapped, all
               twelve months present) -> ``observed``
            2. The city's own normals -> ``exact``
            3. A regional stand-in's normals -> ``regional-approximation``
        """
        normals, approximated_from = normals_for(city, state)
        quality = EXACT if approximated_from is None else REGIONAL_APPROXIMATION

        station = self.station_for(city, state)
        if station is None or not self.is_configured:
            return build_climate_data(city, state, normals, quality, approximated_from)

        try:
            means = self.fetch_monthly_observations(station)
        except ProviderError as e:
            logger.warning("NOAA observations unavailable for %s, %s: %s", city, state, e.message)
            return build_climate_data(city, state, normals, quality, approximated_from)

        if any(v is None for t in REQUIRED_DATATYPES for v in means[t]):
            logger.warning("Incomplete NOAA observations for %s, %s; using normals", city, state)
            return build_climate_data(city, state, normals, quality, approximated_from)

        logger.info("Using NOAA observations from %s for %s, %s", station, city, state)
        return build_climate_data(city, state, merge_observations(normals, means), OBSERVED, approximated_from)
