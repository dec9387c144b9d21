"""
DynamoDB connection, table layout and id counters.

Without AWS credentials the resource points at DYNAMODB_ENDPOINT
(DynamoDB Local) with placeholder credentials.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from relocation_insights.config import DynamoDBSettings, settings
from relocation_insights.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TableNames:
    locations: str
    users: str
    saved_locations: str
    counters: str


def table_names(prefix: str | None = None) -> TableNames:
    prefix = settings.dynamodb.dynamodb_table_prefix if prefix is None else prefix
    return TableNames(
        locations=f"{prefix}locations",
        users=f"{prefix}users",
        saved_locations=f"{prefix}saved_locations",
        counters=f"{prefix}counters",
    )


def create_dynamodb_resource(config: DynamoDBSettings | None = None):
    """
    Create a boto3 DynamoDB service resource.

    Args:
        config: Override the DynamoDB settings. Useful for scripts and tests.
    """
    cfg = config or settings.dynamodb
    kwargs: dict[str, Any] = {
        "region_name": cfg.aws_region,
        "config": Config(retries={"max_attempts": 3, "mode": "standard"}),
    }
    if cfg.has_credentials:
        kwargs["aws_access_key_id"] = cfg.aws_access_key_id
        kwargs["aws_secret_access_key"] = cfg.aws_secret_access_key
        logger.info("Using AWS DynamoDB in %s", cfg.aws_region)
    else:
        kwargs["endpoint_url"] = cfg.dynamodb_endpoint
        kwargs["aws_access_key_id"] = "local"
        kwargs["aws_secret_access_key"] = "local"
        logger.info("No AWS credentials set — using local DynamoDB at %s", cfg.dynamodb_endpoint)
    return boto3.resource("dynamodb", **kwargs)


def table_definitions(names: TableNames) -> list[dict[str, Any]]:
    """create_table() arguments for every table the repository uses."""
    on_demand = {"BillingMode": "PAY_PER_REQUEST"}
    return [
        {
            "TableName": names.locations,
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "id", "AttributeType": "N"},
                {"AttributeName": "region", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "RegionIndex",
                    "KeySchema": [{"AttributeName": "region", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            **on_demand,
        },
        {
            "TableName": names.users,
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "id", "AttributeType": "N"},
                {"AttributeName": "username", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "UsernameIndex",
                    "KeySchema": [{"AttributeName": "username", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            **on_demand,
        },
        {
            "TableName": names.saved_locations,
            "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "id", "AttributeType": "N"},
                {"AttributeName": "userId", "AttributeType": "N"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "UserIdIndex",
                    "KeySchema": [{"AttributeName": "userId", "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            **on_demand,
        },
        {
            "TableName": names.counters,
            "KeySchema": [{"AttributeName": "name", "KeyType": "HASH"}],
            "AttributeDefinitions": [{"AttributeName": "name", "AttributeType": "S"}],
            **on_demand,
        },
    ]


def create_tables(resource, names: TableNames | None = None) -> list[str]:
    """
    Create any missing tables and wait for them to become active.

    Returns:
        Names of the tables that were created.
    """
    names = names or table_names()
    existing = {table.name for table in resource.tables.all()}
    created = []
    for definition in table_definitions(names):
        name = definition["TableName"]
        if name in existing:
            logger.debug("Table %s already exists", name)
            continue
        table = resource.create_table(**definition)
        table.wait_until_exists()
        created.append(name)
        logger.info("Created DynamoDB table %s", name)
    return created


# --- Id counters ---


def next_id(counters_table, counter: str) -> int:
    """Atomically increment a named counter and return the new value."""
    response = counters_table.update_item(
        Key={"name": counter},
        UpdateExpression="ADD #v :one",
        ExpressionAttributeNames={"#v": "value"},
        ExpressionAttributeValues={":one": 1},
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["value"])


def raise_counter_to(counters_table, counter: str, value: int) -> None:
    """Make sure the counter never hands out ``value`` or anything below it."""
    try:
        counters_table.update_item(
            Key={"name": counter},
            UpdateExpression="SET #v = :v",
            ConditionExpression="attribute_not_exists(#v) OR #v < :v",
            ExpressionAttributeNames={"#v": "value"},
            ExpressionAttributeValues={":v": value},
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") != "ConditionalCheckFailedException":
            raise


# --- Type conversion ---


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal recursively; boto3 rejects Python floats."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimal back to int or float recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value
