"""
Database models -- SQLAlchemy ORM definitions.
Reference tables (cities, tags, locations), the tours aggregate and its
day -> block -> item itinerary tree. Compatible with PostgreSQL and SQLite.

No ORM cascades are declared: the reconciler deletes child rows explicitly,
items before blocks before days.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

SOURCE_GUIDE = "guide"
DURATION_HOURS = "hours"
DURATION_DAYS = "days"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class City(Base):
    """Lookup entity. Identity is the case-insensitive name."""
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    country = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Tag(Base):
    """Lookup entity. Identity is the case-insensitive name."""
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Location(Base):
    """
    Point of interest. Unique per (case-insensitive name, city); the same
    name may exist once in each city.
    """
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    city_id = Column(Integer, ForeignKey("cities.id"), index=True)
    name = Column(String(255), nullable=False, index=True)
    address = Column(Text)
    category = Column(String(100))
    description = Column(Text)
    recommendations = Column(Text)
    source = Column(String(50), default="admin")
    verified = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Tour(Base):
    __tablename__ = "tours"

    id = Column(Integer, primary_key=True, index=True)
    city_id = Column(Integer, ForeignKey("cities.id"), index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    duration_type = Column(String(20), default=DURATION_HOURS)
    duration_value = Column(Integer, nullable=False, default=1)
    is_published = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class TourTag(Base):
    __tablename__ = "tour_tags"

    tour_id = Column(Integer, ForeignKey("tours.id"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), primary_key=True)


class TourDay(Base):
    __tablename__ = "tour_days"

    id = Column(Integer, primary_key=True, index=True)
    tour_id = Column(Integer, ForeignKey("tours.id"), nullable=False, index=True)
    day_number = Column(Integer, nullable=False)
    title = Column(String(255))
    date_hint = Column(String(100))


class TourBlock(Base):
    __tablename__ = "tour_blocks"

    id = Column(Integer, primary_key=True, index=True)
    tour_day_id = Column(Integer, ForeignKey("tour_days.id"), nullable=False, index=True)
    start_time = Column(String(8))
    end_time = Column(String(8))
    title = Column(String(255))


class TourItem(Base):
    __tablename__ = "tour_items"

    id = Column(Integer, primary_key=True, index=True)
    tour_block_id = Column(Integer, ForeignKey("tour_blocks.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    custom_title = Column(String(255))
    custom_description = Column(Text)
    custom_recommendations = Column(Text)
    order_index = Column(Integer, nullable=False, default=0)
    approx_cost = Column(Numeric(10, 2))
