"""
Itinerary tree rebuild for a single tour.

clear_tour_tree() removes the existing day/block/item rows children-first.
build_tour_tree() inserts the catalog's days, blocks and items best-effort:
a failed row is recorded in the TourOutcome and its siblings carry on.
"""

from typing import Dict, Iterable, List
import logging

from sqlalchemy.orm import Session

from tourseed.catalog import TourPlan
from tourseed.db.models import TourBlock, TourDay, TourItem, TourTag
from tourseed.db.repositories import TourRepository
from tourseed.services.outcomes import RowResult, TourOutcome, insert_row
from tourseed.services.resolvers import resolve_or_create_location

logger = logging.getLogger(__name__)


def clear_tour_tree(repo: TourRepository, tour_id: int) -> Dict[str, int]:
    """
    Delete items, then blocks, then days of one tour, then its tag links.
    Store errors propagate: a half-cleared tree must not be rebuilt on.
    """
    day_ids = repo.day_ids(tour_id)
    block_ids = repo.block_ids(day_ids)
    deleted = {
        "items": repo.delete_items(block_ids),
        "blocks": repo.delete_blocks(day_ids),
        "days": repo.delete_days(tour_id),
        "tags": repo.delete_tour_tags(tour_id),
    }
    logger.debug(f"Cleared tree of tour {tour_id}: {deleted}")
    return deleted


def attach_tags(db: Session, tour_id: int, tag_ids: Iterable[int]) -> List[RowResult]:
    results = []
    for tag_id in tag_ids:
        link = TourTag(tour_id=tour_id, tag_id=tag_id)
        result = insert_row(db, link, TourTag.__tablename__, f"{tour_id}:{tag_id}")
        result.row_id = tag_id if result.ok else None
        results.append(result)
    return results


def build_tour_tree(db: Session, outcome: TourOutcome, plan: TourPlan) -> TourOutcome:
    """Insert the plan's days/blocks/items under outcome.tour_id."""
    tour_id = outcome.tour_id
    outcome.items_planned = plan.item_count

    for day in plan.daily_plan:
        day_result = outcome.record(insert_row(
            db,
            TourDay(tour_id=tour_id, day_number=day.day, title=None, date_hint=None),
            TourDay.__tablename__,
            f"day {day.day}",
        ))
        if not day_result.ok:
            continue
        outcome.days_created += 1

        for block in day.blocks:
            block_result = outcome.record(insert_row(
                db,
                TourBlock(
                    tour_day_id=day_result.row_id,
                    start_time=block.start_time,
                    end_time=block.end_time,
                    title=None,
                ),
                TourBlock.__tablename__,
                f"day {day.day} / {block.time}",
            ))
            if not block_result.ok:
                continue
            outcome.blocks_created += 1

            for order_index, item in enumerate(block.items):
                location = outcome.record(resolve_or_create_location(
                    db,
                    item.title,
                    outcome.city_id,
                    item.model_dump(include={"address", "category", "description", "recommendations"}),
                ))
                if not location.ok:
                    continue
                item_result = outcome.record(insert_row(
                    db,
                    TourItem(
                        tour_block_id=block_result.row_id,
                        location_id=location.row_id,
                        custom_title=None,
                        custom_description=item.description or None,
                        custom_recommendations=item.recommendations or None,
                        order_index=order_index,
                        approx_cost=None,
                    ),
                    TourItem.__tablename__,
                    f"day {day.day} / {block.time} / {item.title}",
                ))
                if item_result.ok:
                    outcome.items_created += 1

    return outcome
