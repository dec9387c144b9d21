"""
Seed the configured store with the base cities and the demo user, then
optionally add cities from a compact-profile JSON file.

Usage:
    python scripts/seed_locations.py
    python scripts/seed_locations.py --profiles path/to/cities.json
    python scripts/seed_locations.py --backend sql --bundled-profiles
"""

import argparse
import json
import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))

from relocation_insights.api.dependencies import build_repository
from relocation_insights.config import STORAGE_BACKENDS, settings
from relocation_insights.data.seed import (
    add_city_profiles,
    load_city_profiles,
    seed_default_user,
    seed_locations,
)
from relocation_insights.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed relocation locations")
    parser.add_argument("--backend", choices=sorted(STORAGE_BACKENDS), default=None,
                        help="Storage backend (defaults to configuration)")
    parser.add_argument("--profiles", type=Path, default=None,
                        help="JSON file with a 'cities' list of compact city profiles")
    parser.add_argument("--bundled-profiles", action="store_true",
                        help="Also add the additional border cities shipped with the package")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings.setup()
    setup_logging(settings.logging.level, settings.logging.file)

    repo = build_repository(args.backend)
    try:
        inserted = seed_locations(repo)
        seed_default_user(repo)

        profiles = []
        if args.bundled_profiles:
            profiles.extend(load_city_profiles())
        if args.profiles:
            with open(args.profiles, encoding="utf-8") as f:
                profiles.extend(json.load(f)["cities"])

        added = add_city_profiles(repo, profiles) if profiles else []
        logger.info(
            "Seeding complete: %d base cities inserted, %d profile cities added, %d total",
            inserted, len(added), repo.count_locations(),
        )
    finally:
        repo.close()


if __name__ == "__main__":
    main()
