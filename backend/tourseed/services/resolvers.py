"""
Get-or-create for reference entities.

Cities and tags are keyed by case-insensitive name; locations by
case-insensitive name within one city. A match is returned as-is and never
updated, even when the catalog's attributes differ from the stored row.
"""

from typing import Any, Dict, Mapping, Optional, Type
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from tourseed.db.models import City, Location, SOURCE_GUIDE, Tag
from tourseed.services.outcomes import RowResult, insert_row, lookup_id

logger = logging.getLogger(__name__)

REFERENCE_MODELS: Dict[str, Type] = {
    "city": City,
    "tag": Tag,
}

LOCATION_FIELDS = ("address", "category", "description", "recommendations")


def resolve_or_create(db: Session, kind: str, name: str,
                      extra_attrs: Optional[Mapping[str, Any]] = None) -> RowResult:
    """
    Return the id of the first row of `kind` whose name matches
    case-insensitively, creating one with `extra_attrs` if none exists.
    """
    model = REFERENCE_MODELS[kind]
    table = model.__tablename__

    def first_match() -> Optional[int]:
        row = (
            db.query(model.id)
            .filter(func.lower(model.name) == func.lower(name))
            .order_by(model.id)
            .first()
        )
        return row[0] if row else None

    existing_id = lookup_id(db, first_match, table, name)
    if existing_id is not None:
        return RowResult(table=table, key=name, row_id=existing_id)

    result = insert_row(db, model(name=name, **dict(extra_attrs or {})), table, name)
    if result.ok:
        logger.info(f"Created {kind} {name!r} (id={result.row_id})")
    return result


def resolve_city(db: Session, name: str, country: Optional[str] = None) -> RowResult:
    return resolve_or_create(db, "city", name, {"country": country})


def resolve_tag(db: Session, name: str) -> RowResult:
    return resolve_or_create(db, "tag", name)


def resolve_or_create_location(db: Session, name: str, city_id: int,
                               attrs: Optional[Mapping[str, Any]] = None) -> RowResult:
    """
    Get-or-create a location scoped to one city.
    New rows are stamped as curated guide data (source="guide", verified).
    """
    key = f"{name} (city {city_id})"

    def first_match() -> Optional[int]:
        row = (
            db.query(Location.id)
            .filter(func.lower(Location.name) == func.lower(name))
            .filter(Location.city_id == city_id)
            .order_by(Location.id)
            .first()
        )
        return row[0] if row else None

    existing_id = lookup_id(db, first_match, Location.__tablename__, key)
    if existing_id is not None:
        return RowResult(table=Location.__tablename__, key=key, row_id=existing_id)

    values = {field: (attrs or {}).get(field) or None for field in LOCATION_FIELDS}
    location = Location(
        name=name,
        city_id=city_id,
        source=SOURCE_GUIDE,
        verified=True,
        **values,
    )
    return insert_row(db, location, Location.__tablename__, key)
