"""
SQLAlchemy ORM models for Relocation Insights.

Three tables: locations, users and the saved_locations join table.
Nested location blocks are JSON columns (JSONB on PostgreSQL).
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    String, Integer, Float, Text, DateTime, JSON,
    ForeignKey, Index, UniqueConstraint, func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relocation_insights.data.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Location(Base):
    """A city available for relocation."""
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text)
    state: Mapped[str] = mapped_column(String(2), index=True)
    region: Mapped[str] = mapped_column(String(50), index=True)
    population: Mapped[int] = mapped_column(Integer)
    median_age: Mapped[float] = mapped_column(Float)
    median_income: Mapped[int] = mapped_column(Integer)
    cost_of_living: Mapped[float] = mapped_column(Float)
    average_commute: Mapped[int] = mapped_column(Integer)
    climate: Mapped[str] = mapped_column(Text)
    cbp_facilities: Mapped[int] = mapped_column(Integer)
    rating: Mapped[float] = mapped_column(Float)
    lat: Mapped[float] = mapped_column(Float)
    lng: Mapped[float] = mapped_column(Float)
    housing_data: Mapped[dict[str, Any]] = mapped_column(JSONType)
    school_data: Mapped[dict[str, Any]] = mapped_column(JSONType)
    safety_data: Mapped[dict[str, Any]] = mapped_column(JSONType)
    lifestyle_data: Mapped[dict[str, Any]] = mapped_column(JSONType)
    transportation_data: Mapped[dict[str, Any]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    saved_by: Mapped[list["SavedLocation"]] = relationship(
        back_populates="location", cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (Index("ix_locations_name_state", "name", "state"),)

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name='{self.name}', state='{self.state}')>"


class User(Base):
    """Agency employee account."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True)
    password: Mapped[str] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    saved_locations: Mapped[list["SavedLocation"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class SavedLocation(Base):
    """A location bookmarked by a user."""
    __tablename__ = "saved_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    location_id: Mapped[int] = mapped_column(Integer, ForeignKey("locations.id", ondelete="CASCADE"))
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="saved_locations")
    location: Mapped["Location"] = relationship(back_populates="saved_by")

    __table_args__ = (UniqueConstraint("user_id", "location_id", name="uq_saved_user_location"),)

    def __repr__(self) -> str:
        return f"<SavedLocation(id={self.id}, user_id={self.user_id}, location_id={self.location_id})>"
