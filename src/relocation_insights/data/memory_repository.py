"""In-process repository used when no external database is configured."""

import itertools
import threading
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from relocation_insights.data.records import (
    LocationRecord,
    NewLocation,
    SavedLocationRecord,
    UserRecord,
)
from relocation_insights.data.repository import LocationRepository
from relocation_insights.exceptions import DuplicateUserError
from relocation_insights.logging_config import get_logger

logger = get_logger(__name__)


class MemoryLocationRepository(LocationRepository):
    """
    Dict-backed repository guarded by a single lock.

    Ids come from monotonic counters. Saved locations are not cascaded
    when a user or location disappears.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[int, UserRecord] = {}
        self._locations: dict[int, LocationRecord] = {}
        self._saved: dict[int, SavedLocationRecord] = {}
        self._user_ids = itertools.count(1)
        self._location_ids = itertools.count(1)
        self._saved_ids = itertools.count(1)

    # --- Users ---

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return next((u for u in self._users.values() if u.username == username), None)

    def create_user(
        self,
        username: str,
        password: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserRecord:
        with self._lock:
            if any(u.username == username for u in self._users.values()):
                raise DuplicateUserError(username)
            user = UserRecord(
                id=next(self._user_ids),
                username=username,
                password=password,
                email=email,
                first_name=first_name,
                last_name=last_name,
            )
            self._users[user.id] = user
        return user

    # --- Locations ---

    def get_locations(self, search: str = "", region: str = "") -> list[LocationRecord]:
        with self._lock:
            locations = sorted(self._locations.values(), key=lambda loc: loc.id)
        return [loc for loc in locations if self._matches(loc, search, region)]

    def get_location_by_id(self, location_id: int) -> Optional[LocationRecord]:
        return self._locations.get(location_id)

    def get_locations_by_ids(self, ids: Iterable[int]) -> list[LocationRecord]:
        wanted = self._unique_ids(ids)
        return [self._locations[i] for i in wanted if i in self._locations]

    def add_location(self, data: dict[str, Any] | NewLocation) -> LocationRecord:
        new = self._new_location(data)
        with self._lock:
            if new.id is None:
                location_id = next(self._location_ids)
                while location_id in self._locations:
                    location_id = next(self._location_ids)
            else:
                location_id = new.id
                self._advance_past(location_id)
            record = LocationRecord(**{**new.model_dump(), "id": location_id})
            self._locations[location_id] = record
        return record

    def count_locations(self) -> int:
        return len(self._locations)

    # --- Saved locations ---

    def get_saved_locations(self, user_id: int) -> list[SavedLocationRecord]:
        with self._lock:
            saved = sorted(self._saved.values(), key=lambda s: s.id)
        return [s for s in saved if s.user_id == user_id]

    def save_location(self, user_id: int, location_id: int) -> tuple[SavedLocationRecord, bool]:
        with self._lock:
            for saved in self._saved.values():
                if saved.user_id == user_id and saved.location_id == location_id:
                    return saved, False
            saved = SavedLocationRecord(
                id=next(self._saved_ids),
                user_id=user_id,
                location_id=location_id,
                created_at=datetime.now(timezone.utc),
            )
            self._saved[saved.id] = saved
        logger.debug("User %d saved location %d", user_id, location_id)
        return saved, True

    def remove_saved_location(self, saved_id: int) -> bool:
        with self._lock:
            return self._saved.pop(saved_id, None) is not None

    def _advance_past(self, location_id: int) -> None:
        # Explicit seed ids must not be handed out again by the counter
        current = next(self._location_ids)
        if current <= location_id:
            current = location_id + 1
        self._location_ids = itertools.count(current)
