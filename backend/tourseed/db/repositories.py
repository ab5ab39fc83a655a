"""
Repository pattern for data access.
Tour listing, itinerary-tree lookups by parent id sets, and the bulk deletes
the reconciler uses to clear a tour's tree children-first.

Store errors propagate to the caller; the services decide how far a failure
reaches.
"""

from typing import Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import func
import logging

from tourseed.db.models import (
    City,
    Location,
    Tour,
    TourBlock,
    TourDay,
    TourItem,
    TourTag,
)

logger = logging.getLogger(__name__)


class TourRepository:
    """Repository for tours and their day/block/item tree."""

    def __init__(self, db: Session):
        self.db = db

    def list_published(self) -> List[Tour]:
        """Published tours in store order (by id)."""
        return (
            self.db.query(Tour)
            .filter(Tour.is_published.is_(True))
            .order_by(Tour.id)
            .all()
        )

    def get_by_id(self, tour_id: int) -> Optional[Tour]:
        return self.db.query(Tour).filter(Tour.id == tour_id).first()

    def city_name(self, city_id: Optional[int]) -> Optional[str]:
        if city_id is None:
            return None
        row = self.db.query(City.name).filter(City.id == city_id).first()
        return row[0] if row else None

    # ------------------------------------------------------------------
    # Tree reads
    # ------------------------------------------------------------------

    def days_for_tour(self, tour_id: int) -> List[TourDay]:
        return (
            self.db.query(TourDay)
            .filter(TourDay.tour_id == tour_id)
            .order_by(TourDay.day_number, TourDay.id)
            .all()
        )

    def day_ids(self, tour_id: int) -> List[int]:
        rows = self.db.query(TourDay.id).filter(TourDay.tour_id == tour_id).all()
        return [r[0] for r in rows]

    def blocks_for_days(self, day_ids: Sequence[int]) -> List[TourBlock]:
        if not day_ids:
            return []
        return (
            self.db.query(TourBlock)
            .filter(TourBlock.tour_day_id.in_(list(day_ids)))
            .order_by(TourBlock.id)
            .all()
        )

    def block_ids(self, day_ids: Sequence[int]) -> List[int]:
        if not day_ids:
            return []
        rows = (
            self.db.query(TourBlock.id)
            .filter(TourBlock.tour_day_id.in_(list(day_ids)))
            .all()
        )
        return [r[0] for r in rows]

    def item_counts_by_block(self, block_ids: Sequence[int]) -> Dict[int, int]:
        """Map block id -> number of items (blocks without items are absent)."""
        if not block_ids:
            return {}
        rows = (
            self.db.query(TourItem.tour_block_id, func.count(TourItem.id))
            .filter(TourItem.tour_block_id.in_(list(block_ids)))
            .group_by(TourItem.tour_block_id)
            .all()
        )
        return {block_id: count for block_id, count in rows}

    def items_for_blocks(self, block_ids: Sequence[int]) -> List[TourItem]:
        if not block_ids:
            return []
        return (
            self.db.query(TourItem)
            .filter(TourItem.tour_block_id.in_(list(block_ids)))
            .order_by(TourItem.tour_block_id, TourItem.order_index)
            .all()
        )

    def tag_ids(self, tour_id: int) -> List[int]:
        rows = (
            self.db.query(TourTag.tag_id)
            .filter(TourTag.tour_id == tour_id)
            .order_by(TourTag.tag_id)
            .all()
        )
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Tree deletes (callers must go items -> blocks -> days)
    # ------------------------------------------------------------------

    def delete_items(self, block_ids: Sequence[int]) -> int:
        if not block_ids:
            return 0
        return (
            self.db.query(TourItem)
            .filter(TourItem.tour_block_id.in_(list(block_ids)))
            .delete(synchronize_session=False)
        )

    def delete_blocks(self, day_ids: Sequence[int]) -> int:
        if not day_ids:
            return 0
        return (
            self.db.query(TourBlock)
            .filter(TourBlock.tour_day_id.in_(list(day_ids)))
            .delete(synchronize_session=False)
        )

    def delete_days(self, tour_id: int) -> int:
        return (
            self.db.query(TourDay)
            .filter(TourDay.tour_id == tour_id)
            .delete(synchronize_session=False)
        )

    def delete_tour_tags(self, tour_id: int) -> int:
        return (
            self.db.query(TourTag)
            .filter(TourTag.tour_id == tour_id)
            .delete(synchronize_session=False)
        )

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def count_tours(self, published: Optional[bool] = None) -> int:
        query = self.db.query(Tour)
        if published is True:
            query = query.filter(Tour.is_published.is_(True))
        elif published is False:
            query = query.filter(Tour.is_published.isnot(True))
        return query.count()

    def count_locations(self) -> int:
        return self.db.query(Location).count()
