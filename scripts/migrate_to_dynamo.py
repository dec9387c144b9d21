"""
Copy users, locations and saved locations from the SQL database into DynamoDB.

Ids are preserved and the DynamoDB id counters are raised past them.
Re-running overwrites items with the same ids.

Usage:
    DATABASE_URL=postgresql://... AWS_REGION=us-east-1 python scripts/migrate_to_dynamo.py
"""

import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))

from relocation_insights.config import settings
from relocation_insights.data.database import create_db_engine, create_session_factory
from relocation_insights.data.dynamo_repository import DynamoLocationRepository
from relocation_insights.data.dynamodb import create_dynamodb_resource, create_tables
from relocation_insights.data.migration import migrate
from relocation_insights.data.repository import SqlLocationRepository
from relocation_insights.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    settings.setup()
    setup_logging(settings.logging.level, settings.logging.file)

    resource = create_dynamodb_resource()
    created = create_tables(resource)
    if created:
        logger.info("Created tables: %s", ", ".join(created))

    source = SqlLocationRepository(create_session_factory(create_db_engine()))
    try:
        counts = migrate(source, DynamoLocationRepository(resource=resource))
    finally:
        source.close()
    logger.info("Migration complete: %s", counts)


if __name__ == "__main__":
    main()
