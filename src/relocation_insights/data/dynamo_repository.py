"""
DynamoDB-backed repository.

Items are stored with the same camelCase keys the API emits. Ids are
handed out by an atomic counter item per table instead of a startup scan,
so several server instances can share the tables.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from boto3.dynamodb.conditions import Attr, Key

from relocation_insights.data.dynamodb import (
    TableNames,
    create_dynamodb_resource,
    from_dynamo,
    next_id,
    raise_counter_to,
    table_names,
    to_dynamo,
)
from relocation_insights.data.records import (
    LocationRecord,
    NewLocation,
    SavedLocationRecord,
    UserRecord,
    city_key,
)
from relocation_insights.data.repository import LocationRepository
from relocation_insights.exceptions import DuplicateUserError
from relocation_insights.logging_config import get_logger

logger = get_logger(__name__)

MAX_PARALLEL_GETS = 8


class DynamoLocationRepository(LocationRepository):
    """Repository over the cbp_* DynamoDB tables."""

    def __init__(self, resource=None, names: TableNames | None = None):
        self.resource = resource or create_dynamodb_resource()
        self.names = names or table_names()
        self.locations = self.resource.Table(self.names.locations)
        self.users = self.resource.Table(self.names.users)
        self.saved = self.resource.Table(self.names.saved_locations)
        self.counters = self.resource.Table(self.names.counters)

    # --- Users ---

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        item = self.users.get_item(Key={"id": user_id}).get("Item")
        return self._to_record(item, UserRecord)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        items = self._query_all(
            self.users, IndexName="UsernameIndex", KeyConditionExpression=Key("username").eq(username),
        )
        return self._to_record(items[0], UserRecord) if items else None

    def create_user(
        self,
        username: str,
        password: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserRecord:
        if self.get_user_by_username(username) is not None:
            raise DuplicateUserError(username)
        user = UserRecord(
            id=next_id(self.counters, self.names.users),
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        self.users.put_item(
            Item=to_dynamo(user.to_json_dict()),
            ConditionExpression="attribute_not_exists(id)",
        )
        return user

    # --- Locations ---

    def get_locations(self, search: str = "", region: str = "") -> list[LocationRecord]:
        if region:
            items = self._query_all(
                self.locations, IndexName="RegionIndex", KeyConditionExpression=Key("region").eq(region),
            )
        else:
            items = self._scan_all(self.locations)
        locations = sorted((self._to_record(i, LocationRecord) for i in items), key=lambda loc: loc.id)
        return [loc for loc in locations if self._matches(loc, search, region)]

    def get_location_by_id(self, location_id: int) -> Optional[LocationRecord]:
        item = self.locations.get_item(Key={"id": location_id}).get("Item")
        return self._to_record(item, LocationRecord)

    def get_locations_by_ids(self, ids: Iterable[int]) -> list[LocationRecord]:
        wanted = self._unique_ids(ids)
        if not wanted:
            return []
        with ThreadPoolExecutor(max_workers=min(MAX_PARALLEL_GETS, len(wanted))) as pool:
            found = list(pool.map(self.get_location_by_id, wanted))
        return [loc for loc in found if loc is not None]

    def add_location(self, data: dict[str, Any] | NewLocation) -> LocationRecord:
        new = self._new_location(data)
        if new.id is None:
            location_id = next_id(self.counters, self.names.locations)
        else:
            location_id = new.id
            raise_counter_to(self.counters, self.names.locations, location_id)
        record = LocationRecord(**{**new.model_dump(), "id": location_id})
        item = record.to_json_dict()
        item["createdAt"] = datetime.now(timezone.utc).isoformat()
        self.locations.put_item(Item=to_dynamo(item))
        return record

    def count_locations(self) -> int:
        total = 0
        kwargs: dict[str, Any] = {"Select": "COUNT"}
        while True:
            response = self.locations.scan(**kwargs)
            total += response.get("Count", 0)
            if "LastEvaluatedKey" not in response:
                return total
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    def location_keys(self) -> set[str]:
        items = self._scan_all(
            self.locations,
            ProjectionExpression="#n, #s",
            ExpressionAttributeNames={"#n": "name", "#s": "state"},
        )
        return {city_key(i["name"], i["state"]) for i in items}

    # --- Saved locations ---

    def get_saved_locations(self, user_id: int) -> list[SavedLocationRecord]:
        items = self._query_all(
            self.saved, IndexName="UserIdIndex", KeyConditionExpression=Key("userId").eq(user_id),
        )
        return sorted((self._to_record(i, SavedLocationRecord) for i in items), key=lambda s: s.id)

    def save_location(self, user_id: int, location_id: int) -> tuple[SavedLocationRecord, bool]:
        existing = self._query_all(
            self.saved,
            IndexName="UserIdIndex",
            KeyConditionExpression=Key("userId").eq(user_id),
            FilterExpression=Attr("locationId").eq(location_id),
        )
        if existing:
            return self._to_record(existing[0], SavedLocationRecord), False

        saved = SavedLocationRecord(
            id=next_id(self.counters, self.names.saved_locations),
            user_id=user_id,
            location_id=location_id,
            created_at=datetime.now(timezone.utc),
        )
        self.saved.put_item(Item=to_dynamo(saved.to_json_dict()))
        return saved, True

    def remove_saved_location(self, saved_id: int) -> bool:
        response = self.saved.delete_item(Key={"id": saved_id}, ReturnValues="ALL_OLD")
        return bool(response.get("Attributes"))

    # --- Import helpers (migration) ---

    def put_user(self, user: UserRecord) -> None:
        """Write a user with its existing id."""
        self.users.put_item(Item=to_dynamo(user.to_json_dict()))
        raise_counter_to(self.counters, self.names.users, user.id)

    def put_saved_location(self, saved: SavedLocationRecord) -> None:
        """Write a saved location with its existing id."""
        self.saved.put_item(Item=to_dynamo(saved.to_json_dict()))
        raise_counter_to(self.counters, self.names.saved_locations, saved.id)

    # --- Helpers ---

    @staticmethod
    def _scan_all(table, **kwargs) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        while True:
            response = table.scan(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                return items
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    @staticmethod
    def _query_all(table, **kwargs) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        while True:
            response = table.query(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                return items
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    @staticmethod
    def _to_record(item, record_class):
        if not item:
            return None
        return record_class.model_validate(from_dynamo(item))
