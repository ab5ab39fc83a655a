"""
Structure auditor -- read-only.

For every published tour counts days, blocks and items, breaks blocks down
per day and flags tours with no or very few locations. Warnings are advisory:
nothing is mutated and a tour that cannot be read is reported, not raised.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourseed.core.monitoring import track_performance
from tourseed.db.models import Tour
from tourseed.db.repositories import TourRepository

logger = logging.getLogger(__name__)

WARNING_NO_LOCATIONS = "no locations"
WARNING_FEW_LOCATIONS = "very few locations"
DEFAULT_MIN_ITEMS = 4


@dataclass
class TourAudit:
    tour_id: int
    title: str
    city: Optional[str]
    duration_value: Optional[int]
    day_count: int = 0
    block_count: int = 0
    item_count: int = 0
    blocks_per_day: Dict[int, int] = field(default_factory=dict)
    warning: Optional[str] = None


@dataclass
class Inventory:
    total_tours: int
    published: int
    unpublished: int
    locations: int


@dataclass
class AuditReport:
    tours: List[TourAudit] = field(default_factory=list)
    inventory: Optional[Inventory] = None
    errors: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> List[TourAudit]:
        return [t for t in self.tours if t.warning]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def classify_item_count(item_count: int, min_items: int = DEFAULT_MIN_ITEMS) -> Optional[str]:
    if item_count == 0:
        return WARNING_NO_LOCATIONS
    if item_count < min_items:
        return WARNING_FEW_LOCATIONS
    return None


class TourAuditor:

    def __init__(self, db: Session, min_items: int = DEFAULT_MIN_ITEMS):
        self.db = db
        self.min_items = min_items
        self.repo = TourRepository(db)

    @track_performance("Tour structure audit")
    def audit(self) -> AuditReport:
        report = AuditReport()
        try:
            tours = self.repo.list_published()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching published tours: {e}")
            report.errors.append(f"tour listing: {e}")
            return report

        logger.info(f"Auditing {len(tours)} published tours")
        for tour in tours:
            title = tour.title
            try:
                report.tours.append(self.audit_tour(tour))
            except SQLAlchemyError as e:
                # A failed statement aborts the transaction on PostgreSQL
                self.db.rollback()
                logger.error(f"Could not audit {title!r}: {e}")
                report.errors.append(f"{title}: {e}")

        report.inventory = self.inventory()
        for entry in report.warnings:
            logger.warning(f"{entry.title!r}: {entry.warning} ({entry.item_count} items)")
        return report

    def audit_tour(self, tour: Tour) -> TourAudit:
        days = self.repo.days_for_tour(tour.id)
        blocks = self.repo.blocks_for_days([d.id for d in days])
        item_counts = self.repo.item_counts_by_block([b.id for b in blocks])

        day_number_by_id = {d.id: d.day_number for d in days}
        per_day = Counter(day_number_by_id[b.tour_day_id] for b in blocks)
        item_count = sum(item_counts.values())

        return TourAudit(
            tour_id=tour.id,
            title=tour.title,
            city=self.repo.city_name(tour.city_id),
            duration_value=tour.duration_value,
            day_count=len(days),
            block_count=len(blocks),
            item_count=item_count,
            blocks_per_day={day: per_day[day] for day in sorted(per_day)},
            warning=classify_item_count(item_count, self.min_items),
        )

    def inventory(self) -> Optional[Inventory]:
        """Totals across all tours (published or not) and locations."""
        try:
            return Inventory(
                total_tours=self.repo.count_tours(),
                published=self.repo.count_tours(published=True),
                unpublished=self.repo.count_tours(published=False),
                locations=self.repo.count_locations(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Inventory query failed: {e}")
            return None
