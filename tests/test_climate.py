"""
Tests for the climate adapter: static normals, regional stand-ins,
risk tables and the NOAA observation path.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from relocation_insights.providers.climate import (
    ClimateProvider,
    climate_type,
    extreme_weather_risk,
    location_key,
    monthly_means,
    normals_for,
    seasonal_data,
)
from relocation_insights.providers.types import EXACT, OBSERVED, REGIONAL_APPROXIMATION


def gsom_results(tavg=60.0, precip=1.0, months=range(1, 13)):
    results = []
    for month in months:
        date = f"2020-{month:02d}-01T00:00:00"
        results += [
            {"date": date, "datatype": "TAVG", "value": tavg},
            {"date": date, "datatype": "TMAX", "value": tavg + 10},
            {"date": date, "datatype": "TMIN", "value": tavg - 10},
            {"date": date, "datatype": "PRCP", "value": precip},
        ]
    return results


def noaa_session(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    session = MagicMock()
    session.get.return_value = response
    return session


@pytest.fixture
def offline():
    return ClimateProvider(api_key="", session=MagicMock())


class TestHelpers:
    def test_location_key(self):
        assert location_key(" El Paso ", "tx") == "el paso_tx"

    @pytest.mark.parametrize("temp, precip, expected", [
        (75, 50, "Tropical"),
        (75, 30, "Humid subtropical"),
        (75, 10, "Desert"),
        (60, 35, "Humid continental"),
        (60, 20, "Mediterranean"),
        (64.7, 9.7, "Semi-arid"),
        (45, 40, "Marine west coast"),
        (45, 20, "Humid continental"),
        (45, 10, "Alpine"),
    ])
    def test_climate_type(self, temp, precip, expected):
        assert climate_type(temp, precip) == expected

    def test_seasons(self):
        temps = [float(m) for m in range(12)]
        precip = [1.0] * 12
        seasons = {s.season: s for s in seasonal_data(temps, precip)}
        assert seasons["Winter"].avg_temp_f == 4.0
        assert seasons["Summer"].avg_temp_f == 6.0
        assert seasons["Fall"].total_precipitation == 3.0

    def test_monthly_means_skips_bad_rows(self):
        means = monthly_means([
            {"date": "2020-01-01", "datatype": "TAVG", "value": 40},
            {"date": "2021-01-01", "datatype": "TAVG", "value": 45},
            {"date": "bad", "datatype": "TAVG", "value": 99},
            {"datatype": "TAVG", "value": 99},
        ])
        assert means["TAVG"][0] == 42.5
        assert means["TAVG"][1] is None
        assert means["SNOW"] == [None] * 12


class TestStaticNormals:
    def test_exact_city(self):
        normals, source = normals_for("El Paso", "TX")
        assert source is None
        assert normals["annualAvgTemp"] == 64.7

    @pytest.mark.parametrize("city, state, stand_in", [
        ("Tucson", "AZ", "el paso_tx"),
        ("Calexico", "CA", "san diego_ca"),
        ("Albany", "NY", "buffalo_ny"),
        ("Key West", "FL", "buffalo_ny"),
    ])
    def test_regional_stand_in(self, city, state, stand_in):
        assert normals_for(city, state)[1] == stand_in

    def test_exact_response(self, offline):
        data = offline.get_climate_data("El Paso", "TX")
        assert data.data_quality == EXACT
        assert data.approximated_from is None
        assert data.summary.climate_type == "Semi-arid"
        assert len(data.monthly_temperature) == 12
        assert data.monthly_temperature[0].month == "January"
        assert [s.season for s in data.seasonal_data] == ["Winter", "Spring", "Summer", "Fall"]

    def test_approximation_keeps_requested_name(self, offline):
        body = offline.get_climate_data("Tucson", "AZ").to_json_dict()
        assert body["locationName"] == "Tucson"
        assert body["state"] == "AZ"
        assert body["dataQuality"] == REGIONAL_APPROXIMATION
        assert body["approximatedFrom"] == "el paso_tx"
        assert body["latitude"] == 31.7619


class TestExtremeWeatherRisk:
    def test_state_membership_and_overrides(self):
        events = extreme_weather_risk("El Paso", "TX")
        assert events.risk_level.tornado == 2
        assert events.annual_tornadoes == 1
        assert events.risk_level.hurricane == 4
        assert events.risk_level.winter_storm == 2
        assert events.risk_level.heat_wave == 4
        assert events.annual_heat_waves == 5

    def test_defaults(self):
        events = extreme_weather_risk("Honolulu", "HI")
        assert events.risk_level.tornado == 1
        assert events.risk_level.flood == 2
        assert events.annual_blizzards == 0

    def test_buffalo_winter(self):
        events = extreme_weather_risk("Buffalo", "NY")
        assert events.risk_level.winter_storm == 5
        assert events.annual_blizzards == 5


class TestNoaaObservations:
    def test_observed(self):
        session = noaa_session({"results": gsom_results()})
        provider = ClimateProvider(api_key="tok", session=session, max_retries=1)
        data = provider.get_climate_data("El Paso", "TX")
        assert data.data_quality == OBSERVED
        assert data.summary.annual_avg_temp_f == 60.0
        assert data.summary.annual_avg_max_temp_f == 70.0
        assert data.summary.annual_precipitation == 12.0
        assert data.monthly_precipitation[0].avg_precipitation == 1.0
        kwargs = session.get.call_args.kwargs
        assert kwargs["headers"] == {"token": "tok"}
        assert kwargs["params"]["stationid"] == "GHCND:USW00023044"
        assert kwargs["params"]["datasetid"] == "GSOM"

    def test_observation_window(self):
        session = noaa_session({"results": gsom_results()})
        provider = ClimateProvider(api_key="tok", session=session, max_retries=1)
        provider.fetch_monthly_observations("GHCND:X", today=datetime(2024, 6, 1, tzinfo=timezone.utc))
        params = session.get.call_args.kwargs["params"]
        assert (params["startdate"], params["enddate"]) == ("2019-01-01", "2023-12-31")

    def test_incomplete_months_use_normals(self):
        session = noaa_session({"results": gsom_results(months=range(1, 12))})
        provider = ClimateProvider(api_key="tok", session=session, max_retries=1)
        data = provider.get_climate_data("El Paso", "TX")
        assert data.data_quality == EXACT
        assert data.summary.annual_avg_temp_f == 64.7

    def test_upstream_failure_uses_normals(self):
        provider = ClimateProvider(api_key="tok", session=noaa_session({}, status=503), max_retries=1)
        assert provider.get_climate_data("El Paso", "TX").data_quality == EXACT

    def test_empty_results_use_normals(self):
        provider = ClimateProvider(api_key="tok", session=noaa_session({"results": []}), max_retries=1)
        assert provider.get_climate_data("Buffalo", "NY").data_quality == EXACT

    def test_no_station_skips_request(self):
        session = noaa_session({"results": gsom_results()})
        provider = ClimateProvider(api_key="tok", session=session, max_retries=1)
        data = provider.get_climate_data("Laredo", "TX")
        assert data.data_quality == REGIONAL_APPROXIMATION
        session.get.assert_not_called()

    def test_unconfigured_skips_request(self, offline):
        offline.get_climate_data("El Paso", "TX")
        offline.session.get.assert_not_called()
