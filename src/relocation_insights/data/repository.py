"""
Repository layer: one interface, three interchangeable storage backends.

LocationRepository defines the contract shared by the memory, SQL and
DynamoDB implementations. SqlLocationRepository is the SQLAlchemy ORM
backend used for PostgreSQL in production and SQLite in development.
"""

import abc
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from sqlalchemy import select, func, or_, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from relocation_insights.data.models import Location, User, SavedLocation
from relocation_insights.data.records import (
    LocationRecord,
    NewLocation,
    SavedLocationRecord,
    UserRecord,
    city_key,
)
from relocation_insights.logging_config import get_logger
from relocation_insights.exceptions import (
    DuplicateUserError,
    LocationNotFoundError,
    UserNotFoundError,
)

logger = get_logger(__name__)


class LocationRepository(abc.ABC):
    """
    Storage contract for locations, users and saved locations.

    Implementations are selected once at process start and never mixed.
    """

    # --- Users ---

    @abc.abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abc.abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abc.abstractmethod
    def create_user(
        self,
        username: str,
        password: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserRecord:
        """Create a user. Raises DuplicateUserError if the username is taken."""
        ...

    # --- Locations ---

    @abc.abstractmethod
    def get_locations(self, search: str = "", region: str = "") -> list[LocationRecord]:
        """
        List locations ordered by id.

        Args:
            search: Case-insensitive substring matched against name or state.
            region: Exact region name; empty means any region.
        """
        ...

    @abc.abstractmethod
    def get_location_by_id(self, location_id: int) -> Optional[LocationRecord]:
        ...

    @abc.abstractmethod
    def get_locations_by_ids(self, ids: Iterable[int]) -> list[LocationRecord]:
        """Fetch several locations in the requested order, skipping unknown and repeated ids."""
        ...

    @abc.abstractmethod
    def add_location(self, data: dict[str, Any] | NewLocation) -> LocationRecord:
        ...

    @abc.abstractmethod
    def count_locations(self) -> int:
        ...

    def location_keys(self) -> set[str]:
        """Return ``"name, state"`` for every stored location."""
        return {loc.city_key for loc in self.get_locations()}

    # --- Saved locations ---

    @abc.abstractmethod
    def get_saved_locations(self, user_id: int) -> list[SavedLocationRecord]:
        ...

    @abc.abstractmethod
    def save_location(self, user_id: int, location_id: int) -> tuple[SavedLocationRecord, bool]:
        """
        Bookmark a location for a user.

        Returns:
            (saved row, created). created is False when the pair already existed.
        """
        ...

    @abc.abstractmethod
    def remove_saved_location(self, saved_id: int) -> bool:
        ...

    def close(self) -> None:
        """Release backend resources. No-op by default."""

    # --- Shared helpers ---

    @staticmethod
    def _matches(location: LocationRecord, search: str, region: str) -> bool:
        if search:
            needle = search.lower()
            if needle not in location.name.lower() and needle not in location.state.lower():
                return False
        if region and location.region != region:
            return False
        return True

    @staticmethod
    def _unique_ids(ids: Iterable[int]) -> list[int]:
        seen: set[int] = set()
        ordered = []
        for location_id in ids:
            if location_id not in seen:
                seen.add(location_id)
                ordered.append(location_id)
        return ordered

    @staticmethod
    def _in_request_order(ids: list[int], found: Iterable[LocationRecord]) -> list[LocationRecord]:
        by_id = {loc.id: loc for loc in found}
        return [by_id[location_id] for location_id in ids if location_id in by_id]

    @staticmethod
    def _new_location(data: dict[str, Any] | NewLocation) -> NewLocation:
        if isinstance(data, NewLocation):
            return data
        return NewLocation.model_validate(data)


class SqlLocationRepository(LocationRepository):
    """
    SQLAlchemy-backed repository.

    Each call runs in its own session and commits on success.

    Usage:
        session_factory = create_session_factory()
        repo = SqlLocationRepository(session_factory)
        repo.get_locations(search="paso")
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # --- Users ---

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._session() as session:
            return self._to_record(session.get(User, user_id), UserRecord)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session() as session:
            user = session.scalar(select(User).where(User.username == username))
            return self._to_record(user, UserRecord)

    def create_user(
        self,
        username: str,
        password: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserRecord:
        with self._session() as session:
            if session.scalar(select(User.id).where(User.username == username)) is not None:
                raise DuplicateUserError(username)
            user = User(
                username=username,
                password=password,
                email=email,
                first_name=first_name,
                last_name=last_name,
            )
            session.add(user)
            session.flush()
            logger.info("Created user %s (id=%d)", username, user.id)
            return self._to_record(user, UserRecord)

    # --- Locations ---

    def get_locations(self, search: str = "", region: str = "") -> list[LocationRecord]:
        stmt = select(Location).order_by(Location.id)
        if search:
            needle = search.lower()
            stmt = stmt.where(
                or_(
                    func.lower(Location.name).contains(needle, autoescape=True),
                    func.lower(Location.state).contains(needle, autoescape=True),
                )
            )
        if region:
            stmt = stmt.where(Location.region == region)
        with self._session() as session:
            return [self._to_record(loc, LocationRecord) for loc in session.scalars(stmt)]

    def get_location_by_id(self, location_id: int) -> Optional[LocationRecord]:
        with self._session() as session:
            return self._to_record(session.get(Location, location_id), LocationRecord)

    def get_locations_by_ids(self, ids: Iterable[int]) -> list[LocationRecord]:
        wanted = self._unique_ids(ids)
        if not wanted:
            return []
        stmt = select(Location).where(Location.id.in_(wanted))
        with self._session() as session:
            found = [self._to_record(loc, LocationRecord) for loc in session.scalars(stmt)]
        return self._in_request_order(wanted, found)

    def add_location(self, data: dict[str, Any] | NewLocation) -> LocationRecord:
        payload = self._new_location(data).model_dump(exclude_none=True)
        with self._session() as session:
            location = Location(**payload)
            session.add(location)
            session.flush()
            if "id" in payload:
                self._sync_sequence(session)
            return self._to_record(location, LocationRecord)

    def count_locations(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(Location)) or 0

    def location_keys(self) -> set[str]:
        with self._session() as session:
            rows = session.execute(select(Location.name, Location.state))
            return {city_key(name, state) for name, state in rows}

    # --- Saved locations ---

    def get_saved_locations(self, user_id: int) -> list[SavedLocationRecord]:
        stmt = (
            select(SavedLocation)
            .where(SavedLocation.user_id == user_id)
            .order_by(SavedLocation.id)
        )
        with self._session() as session:
            return [self._to_record(s, SavedLocationRecord) for s in session.scalars(stmt)]

    def save_location(self, user_id: int, location_id: int) -> tuple[SavedLocationRecord, bool]:
        try:
            with self._session() as session:
                existing = self._find_saved(session, user_id, location_id)
                if existing is not None:
                    return self._to_record(existing, SavedLocationRecord), False

                if session.get(Location, location_id) is None:
                    raise LocationNotFoundError(location_id)
                if session.get(User, user_id) is None:
                    raise UserNotFoundError(user_id)

                saved = SavedLocation(user_id=user_id, location_id=location_id)
                session.add(saved)
                session.flush()
                session.refresh(saved)
                return self._to_record(saved, SavedLocationRecord), True
        except IntegrityError:
            # A concurrent request inserted the same pair first
            with self._session() as session:
                existing = self._find_saved(session, user_id, location_id)
                if existing is None:
                    raise
                logger.info("Saved location (%d, %d) created concurrently", user_id, location_id)
                return self._to_record(existing, SavedLocationRecord), False

    @staticmethod
    def _find_saved(session: Session, user_id: int, location_id: int) -> Optional[SavedLocation]:
        return session.scalar(
            select(SavedLocation).where(
                SavedLocation.user_id == user_id,
                SavedLocation.location_id == location_id,
            )
        )

    def remove_saved_location(self, saved_id: int) -> bool:
        with self._session() as session:
            saved = session.get(SavedLocation, saved_id)
            if saved is None:
                return False
            session.delete(saved)
            return True

    # --- Export helpers (migration) ---

    def export_users(self) -> list[UserRecord]:
        with self._session() as session:
            return [self._to_record(u, UserRecord) for u in session.scalars(select(User).order_by(User.id))]

    def export_saved_locations(self) -> list[SavedLocationRecord]:
        stmt = select(SavedLocation).order_by(SavedLocation.id)
        with self._session() as session:
            return [self._to_record(s, SavedLocationRecord) for s in session.scalars(stmt)]

    def close(self) -> None:
        bind = self.session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()

    # --- Helpers ---

    @staticmethod
    def _sync_sequence(session: Session) -> None:
        """Move the PostgreSQL serial past explicitly inserted ids."""
        if session.get_bind().dialect.name != "postgresql":
            return
        session.execute(
            text(
                "SELECT setval(pg_get_serial_sequence('locations', 'id'), "
                "(SELECT MAX(id) FROM locations))"
            )
        )

    @staticmethod
    def _to_record(obj, record_class):
        """Convert an ORM instance to its storage-agnostic record."""
        if obj is None:
            return None
        return record_class(**{name: getattr(obj, name) for name in record_class.model_fields})
