"""
SQL to DynamoDB migration.

Ids are preserved and the DynamoDB id counters are raised past them, so
items created after the move never collide with migrated ones.
Re-running overwrites items with the same ids.
"""

from relocation_insights.data.dynamo_repository import DynamoLocationRepository
from relocation_insights.data.records import NewLocation
from relocation_insights.data.repository import SqlLocationRepository
from relocation_insights.logging_config import get_logger

logger = get_logger(__name__)


def migrate(source: SqlLocationRepository, target: DynamoLocationRepository) -> dict[str, int]:
    """
    Copy every user, location and saved location from ``source`` to ``target``.

    Returns:
        Count of migrated items per entity.
    """
    users = source.export_users()
    for user in users:
        target.put_user(user)
    logger.info("Migrated %d users", len(users))

    locations = source.get_locations()
    for location in locations:
        target.add_location(NewLocation(**location.model_dump()))
    logger.info("Migrated %d locations", len(locations))

    saved = source.export_saved_locations()
    for item in saved:
        target.put_saved_location(item)
    logger.info("Migrated %d saved locations", len(saved))

    return {"users": len(users), "locations": len(locations), "saved_locations": len(saved)}
