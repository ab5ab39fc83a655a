"""
Shared fixtures: an in-memory SQLite store with foreign keys enforced,
tour/catalog builders and a helper that makes chosen row writes fail.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, List

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from tourseed.catalog import TourCatalog
from tourseed.db.database import build_engine
from tourseed.db.models import (
    Base,
    City,
    Location,
    Tour,
    TourBlock,
    TourDay,
    TourItem,
)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


def tour_entry(city: str = "Rome", country: str = "Italy", days: List[Dict[str, Any]] = None,
               tags: List[str] = None, description: str = "A walk through history") -> Dict[str, Any]:
    """Catalog entry in document form; one day/block/item by default."""
    if days is None:
        days = [{
            "day": 1,
            "blocks": [{
                "time": "10:00 - 12:00",
                "items": [{
                    "title": "Colosseum",
                    "address": "Piazza del Colosseo, 1, 00184 Roma RM, Italy",
                    "category": "landmark",
                    "description": "The largest amphitheatre ever built.",
                    "recommendations": "Book skip-the-line tickets.",
                }],
            }],
        }]
    return {
        "city": city,
        "country": country,
        "description": description,
        "tags": tags if tags is not None else ["history"],
        "daily_plan": days,
    }


def item(title: str, **extra) -> Dict[str, Any]:
    return {"title": title, "address": f"{title} street", "category": "landmark",
            "description": f"About {title}", "recommendations": f"Visit {title} early", **extra}


@pytest.fixture
def make_catalog() -> Callable[..., TourCatalog]:
    def _make(entries: Dict[str, Dict[str, Any]]) -> TourCatalog:
        return TourCatalog.from_dict(entries)
    return _make


@pytest.fixture
def add_tour(db) -> Callable[..., Tour]:
    def _add(title: str, published: bool = True, city_name: str = None,
             description: str = "old description") -> Tour:
        city_id = None
        if city_name:
            city = City(name=city_name)
            db.add(city)
            db.flush()
            city_id = city.id
        tour = Tour(title=title, description=description, city_id=city_id,
                    duration_value=3, duration_type="hours", is_published=published)
        db.add(tour)
        db.commit()
        return tour
    return _add


@pytest.fixture
def add_tree(db) -> Callable[..., None]:
    """Attach an existing day/block/item tree (n items) to a tour."""
    def _add(tour_id: int, city_id: int, items: int = 2) -> None:
        day = TourDay(tour_id=tour_id, day_number=1)
        db.add(day)
        db.flush()
        block = TourBlock(tour_day_id=day.id, start_time="08:00", end_time="09:00")
        db.add(block)
        db.flush()
        for i in range(items):
            location = Location(name=f"Old place {tour_id}-{i}", city_id=city_id)
            db.add(location)
            db.flush()
            db.add(TourItem(tour_block_id=block.id, location_id=location.id, order_index=i))
        db.commit()
    return _add


@contextmanager
def failing(model, event_name: str, when: Callable[[Any], bool] = lambda target: True):
    """Make INSERT/UPDATE of `model` rows matching `when` fail like a store error."""
    def _listener(mapper, connection, target):
        if when(target):
            raise IntegrityError(f"{event_name} {model.__tablename__}", {}, Exception("forced failure"))

    event.listen(model, event_name, _listener)
    try:
        yield
    finally:
        event.remove(model, event_name, _listener)


def tree_snapshot(db, tour_id: int) -> List[tuple]:
    """Flattened (day, start, end, order, location name, custom description) rows."""
    rows = (
        db.query(TourDay.day_number, TourBlock.start_time, TourBlock.end_time,
                 TourItem.order_index, Location.name, TourItem.custom_description)
        .join(TourBlock, TourBlock.tour_day_id == TourDay.id)
        .join(TourItem, TourItem.tour_block_id == TourBlock.id)
        .join(Location, Location.id == TourItem.location_id)
        .filter(TourDay.tour_id == tour_id)
        .order_by(TourDay.day_number, TourBlock.id, TourItem.order_index)
        .all()
    )
    return [tuple(r) for r in rows]


def tree_counts(db, tour_id: int) -> tuple:
    day_ids = [d.id for d in db.query(TourDay).filter(TourDay.tour_id == tour_id)]
    block_ids = [b.id for b in db.query(TourBlock).filter(TourBlock.tour_day_id.in_(day_ids))] if day_ids else []
    items = db.query(TourItem).filter(TourItem.tour_block_id.in_(block_ids)).count() if block_ids else 0
    return len(day_ids), len(block_ids), items
