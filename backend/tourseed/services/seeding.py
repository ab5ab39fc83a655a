"""
Placeholder tours for local stores.

The reconciler only enriches tours that already exist. On an empty store,
seed_tour_shells() creates one published tour per catalog title so a
reconciliation run has something to match.
"""

from typing import List
import logging

from sqlalchemy.orm import Session

from tourseed.catalog import TourCatalog
from tourseed.db.models import DURATION_HOURS, Tour

logger = logging.getLogger(__name__)


def seed_tour_shells(db: Session, catalog: TourCatalog) -> List[str]:
    """Insert a published, empty tour for each missing catalog title."""
    existing = {row[0] for row in db.query(Tour.title).all()}
    created = []
    for title in catalog:
        if title in existing:
            continue
        db.add(Tour(title=title, duration_value=1, duration_type=DURATION_HOURS, is_published=True))
        created.append(title)
    db.commit()
    logger.info(f"Seeded {len(created)} tour shells ({len(existing)} already present)")
    return created
