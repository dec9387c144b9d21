"""
Tests for the Census ACS adapter: row parsing, geography resolution and
the five-domain aggregate. HTTP is mocked at the requests.Session level.
"""

from unittest.mock import MagicMock

import pytest

from relocation_insights.exceptions import GeographyNotFoundError, ProviderParsingError
from relocation_insights.providers.census import (
    MAX_VARIABLES_PER_CALL,
    CensusProvider,
    Geography,
    base_place_name,
    parse_commute,
    parse_demographics,
    parse_education,
    parse_housing,
    parse_income_employment,
    rows_to_dicts,
)

TEXAS_PLACES = [
    ["NAME", "state", "place"],
    ["North El Paso CDP, Texas", "48", "52000"],
    ["El Paso city, Texas", "48", "24000"],
    ["Socorro city, Texas", "48", "68636"],
]

EL_PASO = Geography(state_fips="48", place_fips="24000", name="El Paso city, Texas")


def fake_response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    return response


def census_session(value="10"):
    """Session answering place lookups with TEXAS_PLACES and every variable with ``value``."""
    session = MagicMock()

    def get(url, params=None, headers=None, timeout=None):
        if params["get"] == "NAME":
            return fake_response(TEXAS_PLACES)
        variables = params["get"].split(",")
        return fake_response([variables + ["state", "place"], [value] * len(variables) + ["48", "24000"]])

    session.get.side_effect = get
    return session


@pytest.fixture
def provider():
    return CensusProvider(api_key="test-key", session=census_session(), max_retries=1)


# ─── Parsing ────────────────────────────────────────────────


class TestRowsToDicts:
    def test_header_rows(self):
        rows = rows_to_dicts([["NAME", "B01001_001E"], ["El Paso city, Texas", "678815"]])
        assert rows == [{"NAME": "El Paso city, Texas", "B01001_001E": "678815"}]

    @pytest.mark.parametrize("payload", [{}, [], ["NAME"], None])
    def test_rejects_other_shapes(self, payload):
        with pytest.raises(ProviderParsingError):
            rows_to_dicts(payload)


class TestBasePlaceName:
    @pytest.mark.parametrize("census_name, expected", [
        ("El Paso city, Texas", "el paso"),
        ("Honolulu CDP, Hawaii", "honolulu"),
        ("Nashville-Davidson metropolitan government (balance), Tennessee", "nashville-davidson"),
        ("Juneau city and borough, Alaska", "juneau"),
    ])
    def test_suffix_stripped(self, census_name, expected):
        assert base_place_name(census_name) == expected


class TestParsers:
    """Counts become integer percentages of each domain's denominator."""

    def test_demographics(self):
        row = {
            "B01001_001E": "1000", "B01002_001E": "32.4",
            "B01001_003E": "100", "B01001_027E": "100",
            "B02001_002E": "500", "B02001_003E": "100", "B02001_005E": "50", "B03003_003E": "200",
            "B11001_001E": "400", "B11001_002E": "300", "B11001_007E": "100", "B25010_001E": "2.9",
        }
        result = parse_demographics(row)
        assert result.total_population == 1000
        assert result.median_age == 32.4
        assert result.age_distribution.under18 == 20
        assert result.race_ethnicity.other == 15
        assert result.household_types.family_households == 75
        assert result.household_types.average_household_size == 2.9

    def test_income_employment(self):
        row = {
            "B19013_001E": "51325", "B19301_001E": "25000",
            "B17001_001E": "2000", "B17001_002E": "300",
            "B23025_001E": "1000", "B23025_002E": "600", "B23025_003E": "500",
            "B23025_004E": "450", "B23025_005E": "50",
            "C24050_015E": "50", "C24050_029E": "50",
        }
        result = parse_income_employment(row)
        assert result.median_household_income == 51325
        assert result.poverty_rate == 15
        assert result.employment_rate == 90
        assert result.unemployment_rate == 10
        assert result.labor_force_participation == 60
        assert result.occupations.management == 50
        assert result.industries.retail == 0

    def test_housing(self):
        row = {
            "B25001_001E": "1000", "B25002_002E": "900", "B25002_003E": "100",
            "B25003_002E": "540", "B25003_003E": "360",
            "B25077_001E": "150000", "B25064_001E": "900", "B25034_001E": "1000",
        }
        row.update({f"B25034_{n:03d}E": "100" for n in range(2, 12)})
        result = parse_housing(row)
        assert result.vacancy_rate == 10
        assert result.homeownership_rate == 60
        assert result.housing_age.built_after2000 == 30
        assert result.housing_age.built1970to1999 == 30
        assert result.housing_age.built_before1970 == 40

    def test_education(self):
        row = {
            "B15003_001E": "100", "B15003_017E": "20", "B15003_018E": "10",
            "B15003_019E": "10", "B15003_020E": "10", "B15003_021E": "10",
            "B15003_022E": "20", "B15003_023E": "5", "B15003_024E": "3", "B15003_025E": "2",
            "B14001_002E": "50", "B14001_005E": "10", "B14001_006E": "15",
        }
        result = parse_education(row)
        assert result.high_school_or_higher == 90
        assert result.bachelors_or_higher == 30
        assert result.graduate_or_professional == 10
        assert result.school_enrollment.elementary == 50

    def test_commute(self):
        row = {
            "B08303_001E": "100", "B08303_002E": "50", "B08303_007E": "50",
            "B08301_001E": "200", "B08301_003E": "150", "B08301_021E": "20",
            "B08302_001E": "100", "B08302_007E": "40", "B08302_008E": "20",
        }
        result = parse_commute(row)
        assert result.mean_travel_time_to_work == 15
        assert result.commute_type.drive_alone == 75
        assert result.commute_type.work_from_home == 10
        assert result.departure_time.from7to8am == 60

    def test_sentinels_and_blanks_are_zero(self):
        result = parse_housing({"B25001_001E": "-666666666", "B25077_001E": None})
        assert result.total_housing_units == 0
        assert result.median_home_value == 0
        assert result.vacancy_rate == 0


# ─── Provider ───────────────────────────────────────────────


class TestResolveGeography:
    def test_exact_match_beats_partial(self, provider):
        assert provider.resolve_geography("TX", "El Paso") == EL_PASO

    def test_partial_match(self, provider):
        assert provider.resolve_geography("tx", "Socorro").place_fips == "68636"

    def test_unknown_state(self, provider):
        with pytest.raises(GeographyNotFoundError):
            provider.resolve_geography("ZZ", "Nowhere")
        provider.session.get.assert_not_called()

    def test_unknown_city(self, provider):
        with pytest.raises(GeographyNotFoundError):
            provider.resolve_geography("TX", "Atlantis")

    def test_lookup_params(self, provider):
        provider.resolve_geography("TX", "El Paso")
        params = provider.session.get.call_args.kwargs["params"]
        assert params == {"get": "NAME", "for": "place:*", "in": "state:48", "key": "test-key"}


class TestFetchVariables:
    def test_chunks_requests(self, provider):
        variables = [f"B99999_{n:03d}E" for n in range(1, 101)]
        merged = provider.fetch_variables(EL_PASO, variables)
        assert provider.session.get.call_count == 3
        sizes = [len(c.kwargs["params"]["get"].split(",")) for c in provider.session.get.call_args_list]
        assert sizes == [MAX_VARIABLES_PER_CALL, MAX_VARIABLES_PER_CALL, 10]
        assert all(merged[v] == "10" for v in variables)

    def test_empty_result_raises(self):
        session = MagicMock()
        session.get.return_value = fake_response([["B01001_001E", "state", "place"]])
        provider = CensusProvider(api_key="k", session=session, max_retries=1)
        with pytest.raises(ProviderParsingError):
            provider.fetch_variables(EL_PASO, ["B01001_001E"])


class TestDomains:
    def test_domain_with_resolved_geography(self, provider):
        housing = provider.get_expanded_housing_data("TX", "El Paso", geography=EL_PASO)
        assert housing.median_home_value == 10
        params = [c.kwargs["params"]["get"] for c in provider.session.get.call_args_list]
        assert "NAME" not in params

    def test_unconfigured_returns_none(self):
        session = MagicMock()
        provider = CensusProvider(api_key="", session=session)
        assert provider.get_expanded_demographics("TX", "El Paso") is None
        session.get.assert_not_called()

    def test_upstream_error_returns_none(self):
        session = MagicMock()
        session.get.return_value = fake_response({"error": "bad"}, status=500)
        provider = CensusProvider(api_key="k", session=session, max_retries=1)
        assert provider.get_commute_data("TX", "El Paso") is None


class TestExpandedAggregate:
    def test_all_domains(self, provider):
        data = provider.get_all_expanded_census_data("TX", "El Paso")
        assert data.housing.total_housing_units == 10
        assert data.demographics.total_population == 10
        assert data.income_employment.median_household_income == 10
        lookups = [c for c in provider.session.get.call_args_list if c.kwargs["params"]["get"] == "NAME"]
        assert len(lookups) == 1

    def test_placeholders_for_unknown_city(self, provider):
        data = provider.get_all_expanded_census_data("TX", "Atlantis")
        assert data.demographics.total_population == 0
        assert data.commute.mean_travel_time_to_work == 0
        assert data.data_date is not None

    def test_placeholders_when_unconfigured(self):
        data = CensusProvider(api_key="").get_all_expanded_census_data("TX", "El Paso")
        body = data.to_json_dict()
        assert body["housing"]["housingAge"]["builtBefore1970"] == 0
        assert body["incomeEmployment"]["industries"]["publicAdmin"] == 0
        assert "dataDate" in body
