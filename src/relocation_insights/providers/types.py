"""
Result types for the external data providers.

Every model defaults to zeros, so ``Model()`` doubles as the placeholder
returned when an upstream domain is unavailable.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from relocation_insights.data.records import CamelModel, LocationRecord

EXACT = "exact"
REGIONAL_APPROXIMATION = "regional-approximation"
OBSERVED = "observed"


# --- Census: demographics ---


class AgeDistribution(CamelModel):
    under18: int = Field(0, alias="under18")
    age18to24: int = Field(0, alias="age18to24")
    age25to44: int = Field(0, alias="age25to44")
    age45to64: int = Field(0, alias="age45to64")
    age65_plus: int = Field(0, alias="age65Plus")


class RaceEthnicity(CamelModel):
    white: int = 0
    black: int = 0
    asian: int = 0
    hispanic: int = 0
    other: int = 0


class HouseholdTypes(CamelModel):
    family_households: int = 0
    non_family_households: int = 0
    average_household_size: float = 0


class ExpandedDemographics(CamelModel):
    total_population: int = 0
    median_age: float = 0
    age_distribution: AgeDistribution = Field(default_factory=AgeDistribution)
    race_ethnicity: RaceEthnicity = Field(default_factory=RaceEthnicity)
    household_types: HouseholdTypes = Field(default_factory=HouseholdTypes)


# --- Census: income and employment ---


class Occupations(CamelModel):
    management: int = 0
    service: int = 0
    sales: int = 0
    construction: int = 0
    production: int = 0


class Industries(CamelModel):
    agriculture: int = 0
    construction: int = 0
    manufacturing: int = 0
    wholesale: int = 0
    retail: int = 0
    transportation: int = 0
    information: int = 0
    finance: int = 0
    professional: int = 0
    education: int = 0
    arts: int = 0
    other: int = 0
    public_admin: int = 0


class IncomeEmploymentData(CamelModel):
    median_household_income: int = 0
    per_capita_income: int = 0
    poverty_rate: int = 0
    employment_rate: int = 0
    unemployment_rate: int = 0
    labor_force_participation: int = 0
    occupations: Occupations = Field(default_factory=Occupations)
    industries: Industries = Field(default_factory=Industries)


# --- Census: housing ---


class HousingAge(CamelModel):
    built_before1970: int = Field(0, alias="builtBefore1970")
    built1970to1999: int = Field(0, alias="built1970to1999")
    built_after2000: int = Field(0, alias="builtAfter2000")


class ExpandedHousingData(CamelModel):
    total_housing_units: int = 0
    occupied_housing_units: int = 0
    owner_occupied: int = 0
    renter_occupied: int = 0
    vacancy_rate: float = 0
    homeownership_rate: float = 0
    median_home_value: int = 0
    median_rent: int = 0
    housing_age: HousingAge = Field(default_factory=HousingAge)


# --- Census: education ---


class SchoolEnrollment(CamelModel):
    preschool: int = 0
    kindergarten: int = 0
    elementary: int = 0
    high_school: int = 0
    college: int = 0


class EducationData(CamelModel):
    high_school_or_higher: int = 0
    bachelors_or_higher: int = 0
    graduate_or_professional: int = 0
    school_enrollment: SchoolEnrollment = Field(default_factory=SchoolEnrollment)


# --- Census: commute ---


class CommuteType(CamelModel):
    drive_alone: int = 0
    carpool: int = 0
    public_transit: int = 0
    walk: int = 0
    other: int = 0
    work_from_home: int = 0


class DepartureTime(CamelModel):
    before7am: int = Field(0, alias="before7am")
    from7to8am: int = Field(0, alias="from7to8am")
    from8to9am: int = Field(0, alias="from8to9am")
    after9am: int = Field(0, alias="after9am")


class CommuteData(CamelModel):
    mean_travel_time_to_work: int = 0
    commute_type: CommuteType = Field(default_factory=CommuteType)
    departure_time: DepartureTime = Field(default_factory=DepartureTime)


class ExpandedCensusData(CamelModel):
    demographics: ExpandedDemographics = Field(default_factory=ExpandedDemographics)
    income_employment: IncomeEmploymentData = Field(default_factory=IncomeEmploymentData)
    housing: ExpandedHousingData = Field(default_factory=ExpandedHousingData)
    education: EducationData = Field(default_factory=EducationData)
    commute: CommuteData = Field(default_factory=CommuteData)
    data_date: datetime


# --- Climate ---


class MonthlyTemperature(CamelModel):
    month: str
    avg_temp_f: float
    avg_max_temp_f: float
    avg_min_temp_f: float


class MonthlyPrecipitation(CamelModel):
    month: str
    avg_precipitation: float
    avg_snowfall: float


class SeasonalData(CamelModel):
    season: str
    avg_temp_f: float
    total_precipitation: float


class ClimateExtremes(CamelModel):
    record_high_temp_f: float
    record_high_temp_date: str
    record_low_temp_f: float
    record_low_temp_date: str
    record_precipitation: float
    record_precipitation_date: str
    record_snowfall: float
    record_snowfall_date: str


class ClimateSummary(CamelModel):
    annual_avg_temp_f: float
    annual_avg_max_temp_f: float
    annual_avg_min_temp_f: float
    annual_precipitation: float
    annual_snowfall: float
    avg_sunny_days: int
    avg_rainy_days: int
    avg_snowy_days: int
    comfort_index: int
    climate_type: str


class RiskLevel(CamelModel):
    tornado: int
    hurricane: int
    flood: int
    winter_storm: int
    drought: int
    heat_wave: int


class ExtremeWeatherEvents(CamelModel):
    annual_tornadoes: int
    annual_hurricanes: int
    annual_floods: int
    annual_blizzards: int
    annual_droughts: int
    annual_heat_waves: int
    risk_level: RiskLevel


class ClimateData(CamelModel):
    location_name: str
    state: str
    latitude: float
    longitude: float
    elevation: float
    summary: ClimateSummary
    monthly_temperature: list[MonthlyTemperature]
    monthly_precipitation: list[MonthlyPrecipitation]
    seasonal_data: list[SeasonalData]
    extremes: ClimateExtremes
    extreme_weather_events: ExtremeWeatherEvents
    data_date: datetime
    data_quality: str = EXACT
    approximated_from: Optional[str] = None


# --- Enrichment ---


class ExternalDataEntry(CamelModel):
    source: str
    fetched: datetime
    data: Optional[dict[str, Any]] = None
    data_quality: str = EXACT


class ExternalData(CamelModel):
    housing: Optional[ExternalDataEntry] = None
    education: Optional[ExternalDataEntry] = None
    safety: Optional[ExternalDataEntry] = None
    last_updated: datetime


class EnrichedLocation(LocationRecord):
    """A location with request-time enrichment attached; never persisted."""

    external_data: ExternalData
