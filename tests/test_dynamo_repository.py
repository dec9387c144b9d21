"""
Tests for the DynamoDB repository and helpers.

The boto3 resource and tables are MagicMocks; no DynamoDB Local needed.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from relocation_insights.config import DynamoDBSettings
from relocation_insights.data.dynamo_repository import DynamoLocationRepository
from relocation_insights.data.dynamodb import (
    create_dynamodb_resource,
    create_tables,
    from_dynamo,
    next_id,
    raise_counter_to,
    table_definitions,
    table_names,
    to_dynamo,
)
from relocation_insights.data.records import SavedLocationRecord, UserRecord
from relocation_insights.exceptions import DuplicateUserError

from conftest import make_location


def location_item(location_id, **overrides):
    item = to_dynamo({**make_location(**overrides), "id": location_id})
    item["createdAt"] = "2024-01-01T00:00:00+00:00"
    return item


@pytest.fixture
def resource():
    tables = {}

    def table(name):
        return tables.setdefault(name, MagicMock(name=name))

    res = MagicMock()
    res.Table.side_effect = table
    res.tables_by_name = tables
    return res


@pytest.fixture
def repo(resource):
    return DynamoLocationRepository(resource=resource, names=table_names("cbp_"))


# ─── Helpers ────────────────────────────────────────────────


class TestConversions:
    """Decimal round-trips."""

    def test_to_dynamo_converts_floats_and_drops_none(self):
        converted = to_dynamo({"rating": 4.5, "nested": [1.25, {"x": None, "ok": True}], "email": None})
        assert converted == {"rating": Decimal("4.5"), "nested": [Decimal("1.25"), {"ok": True}]}

    def test_from_dynamo_restores_int_and_float(self):
        restored = from_dynamo({"id": Decimal("3"), "lat": Decimal("31.7619"), "tags": [Decimal("2")]})
        assert restored == {"id": 3, "lat": 31.7619, "tags": [2]}
        assert isinstance(restored["id"], int)


class TestTableLayout:
    def test_prefix_applied(self):
        names = table_names("test_")
        assert names.locations == "test_locations"
        assert names.counters == "test_counters"

    def test_indexes(self):
        definitions = {d["TableName"]: d for d in table_definitions(table_names("cbp_"))}
        assert definitions["cbp_locations"]["GlobalSecondaryIndexes"][0]["IndexName"] == "RegionIndex"
        assert definitions["cbp_users"]["GlobalSecondaryIndexes"][0]["IndexName"] == "UsernameIndex"
        assert definitions["cbp_saved_locations"]["GlobalSecondaryIndexes"][0]["IndexName"] == "UserIdIndex"
        assert "GlobalSecondaryIndexes" not in definitions["cbp_counters"]

    def test_create_tables_skips_existing(self):
        res = MagicMock()
        existing = MagicMock()
        existing.name = "cbp_locations"
        res.tables.all.return_value = [existing]
        created = create_tables(res, table_names("cbp_"))
        assert created == ["cbp_users", "cbp_saved_locations", "cbp_counters"]
        assert res.create_table.call_count == 3


class TestResource:
    @patch("relocation_insights.data.dynamodb.boto3")
    def test_local_endpoint_without_credentials(self, mock_boto3):
        create_dynamodb_resource(DynamoDBSettings(
            aws_access_key_id=None, aws_secret_access_key=None, dynamodb_endpoint="http://localhost:8000",
        ))
        kwargs = mock_boto3.resource.call_args.kwargs
        assert kwargs["endpoint_url"] == "http://localhost:8000"
        assert kwargs["aws_access_key_id"] == "local"

    @patch("relocation_insights.data.dynamodb.boto3")
    def test_aws_with_credentials(self, mock_boto3):
        create_dynamodb_resource(DynamoDBSettings(
            aws_access_key_id="AKIA", aws_secret_access_key="secret", aws_region="us-west-2",
        ))
        kwargs = mock_boto3.resource.call_args.kwargs
        assert "endpoint_url" not in kwargs
        assert kwargs["region_name"] == "us-west-2"


class TestCounters:
    def test_next_id(self):
        table = MagicMock()
        table.update_item.return_value = {"Attributes": {"value": Decimal("7")}}
        assert next_id(table, "cbp_locations") == 7
        assert table.update_item.call_args.kwargs["UpdateExpression"] == "ADD #v :one"

    def test_raise_counter_ignores_lower_target(self):
        table = MagicMock()
        table.update_item.side_effect = ClientError(
            {"Error": {"Code": "ConditionalCheckFailedException", "Message": "no"}}, "UpdateItem",
        )
        raise_counter_to(table, "cbp_locations", 3)

    def test_raise_counter_propagates_other_errors(self):
        table = MagicMock()
        table.update_item.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "gone"}}, "UpdateItem",
        )
        with pytest.raises(ClientError):
            raise_counter_to(table, "cbp_locations", 3)


# ─── Repository ─────────────────────────────────────────────


class TestDynamoLocations:
    def test_scan_paginates_and_sorts(self, repo):
        repo.locations.scan.side_effect = [
            {"Items": [location_item(2, name="B")], "LastEvaluatedKey": {"id": 2}},
            {"Items": [location_item(1, name="A")]},
        ]
        results = repo.get_locations()
        assert [loc.id for loc in results] == [1, 2]
        assert repo.locations.scan.call_args_list[1].kwargs["ExclusiveStartKey"] == {"id": 2}

    def test_region_uses_index(self, repo):
        repo.locations.query.return_value = {"Items": [location_item(1, region="Coastal")]}
        results = repo.get_locations(region="Coastal")
        assert [loc.region for loc in results] == ["Coastal"]
        assert repo.locations.query.call_args.kwargs["IndexName"] == "RegionIndex"
        repo.locations.scan.assert_not_called()

    def test_search_filters_after_scan(self, repo):
        repo.locations.scan.return_value = {"Items": [location_item(1, name="El Paso"), location_item(2, name="Miami", state="FL")]}
        assert [loc.name for loc in repo.get_locations(search="paso")] == ["El Paso"]

    def test_get_by_id(self, repo):
        repo.locations.get_item.return_value = {"Item": location_item(4, lat=Decimal("31.5"))}
        loc = repo.get_location_by_id(4)
        assert loc.id == 4
        assert loc.lat == 31.5

    def test_get_by_id_missing(self, repo):
        repo.locations.get_item.return_value = {}
        assert repo.get_location_by_id(4) is None

    def test_get_by_ids_preserves_order(self, repo):
        items = {1: location_item(1, name="A"), 3: location_item(3, name="C")}
        repo.locations.get_item.side_effect = lambda Key: {"Item": items[Key["id"]]} if Key["id"] in items else {}
        results = repo.get_locations_by_ids([3, 2, 1, 3])
        assert [loc.id for loc in results] == [3, 1]

    def test_add_location_generates_id(self, repo):
        repo.counters.update_item.return_value = {"Attributes": {"value": Decimal("32")}}
        loc = repo.add_location(make_location(rating=4.5))
        assert loc.id == 32
        item = repo.locations.put_item.call_args.kwargs["Item"]
        assert item["rating"] == Decimal("4.5")
        assert "createdAt" in item

    def test_add_location_explicit_id_raises_counter(self, repo):
        loc = repo.add_location(make_location(id=5))
        assert loc.id == 5
        assert repo.counters.update_item.call_args.kwargs["ExpressionAttributeValues"] == {":v": 5}

    def test_count_paginates(self, repo):
        repo.locations.scan.side_effect = [{"Count": 20, "LastEvaluatedKey": {"id": 20}}, {"Count": 11}]
        assert repo.count_locations() == 31

    def test_location_keys(self, repo):
        repo.locations.scan.return_value = {"Items": [{"name": "El Paso", "state": "TX"}]}
        assert repo.location_keys() == {"El Paso, TX"}


class TestDynamoUsersAndSaved:
    def test_create_user(self, repo):
        repo.users.query.return_value = {"Items": []}
        repo.counters.update_item.return_value = {"Attributes": {"value": Decimal("1")}}
        user = repo.create_user("demo", "")
        assert user.id == 1
        assert repo.users.put_item.call_args.kwargs["Item"]["username"] == "demo"

    def test_duplicate_user(self, repo):
        repo.users.query.return_value = {"Items": [{"id": Decimal("1"), "username": "demo", "password": ""}]}
        with pytest.raises(DuplicateUserError):
            repo.create_user("demo", "")

    def test_save_returns_existing_pair(self, repo):
        repo.saved.query.return_value = {"Items": [{"id": Decimal("9"), "userId": Decimal("1"), "locationId": Decimal("2")}]}
        saved, created = repo.save_location(1, 2)
        assert (saved.id, created) == (9, False)
        repo.saved.put_item.assert_not_called()

    def test_save_new_pair(self, repo):
        repo.saved.query.return_value = {"Items": []}
        repo.counters.update_item.return_value = {"Attributes": {"value": Decimal("10")}}
        saved, created = repo.save_location(1, 2)
        assert (saved.id, created) == (10, True)
        item = repo.saved.put_item.call_args.kwargs["Item"]
        assert item["userId"] == 1 and item["locationId"] == 2

    def test_get_saved_sorted(self, repo):
        repo.saved.query.return_value = {"Items": [
            {"id": Decimal("5"), "userId": Decimal("1"), "locationId": Decimal("3")},
            {"id": Decimal("2"), "userId": Decimal("1"), "locationId": Decimal("4")},
        ]}
        assert [s.id for s in repo.get_saved_locations(1)] == [2, 5]

    def test_remove(self, repo):
        repo.saved.delete_item.return_value = {"Attributes": {"id": Decimal("5")}}
        assert repo.remove_saved_location(5) is True
        repo.saved.delete_item.return_value = {}
        assert repo.remove_saved_location(6) is False

    def test_put_helpers_raise_counters(self, repo):
        repo.put_user(UserRecord(id=4, username="a", password=""))
        repo.put_saved_location(SavedLocationRecord(id=8, user_id=4, location_id=1))
        assert repo.users.put_item.called and repo.saved.put_item.called
        raised = [c.kwargs["ExpressionAttributeValues"][":v"] for c in repo.counters.update_item.call_args_list]
        assert raised == [4, 8]
