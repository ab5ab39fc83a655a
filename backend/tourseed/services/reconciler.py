"""
Tour reconciler.

For every published tour whose exact title appears in the catalog, replace
its description, city, duration, tags and full day/block/item tree with the
catalog's version. Tours without a catalog entry are skipped untouched.

Each tour is reconciled inside one transaction and committed at the end of
that tour. Individual rows run in SAVEPOINTs, so a failed row is dropped
without undoing its siblings, while an unexpected error rolls the whole tour
back and leaves its previous tree in place. Re-running always converges
because the old tree is cleared before the new one is built.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tourseed.catalog import TourCatalog, TourPlan
from tourseed.core.monitoring import track_performance
from tourseed.db.models import DURATION_DAYS, Tour
from tourseed.db.repositories import TourRepository
from tourseed.services.outcomes import RowResult, TourOutcome
from tourseed.services.resolvers import resolve_city, resolve_tag
from tourseed.services.tree_builder import attach_tags, build_tour_tree, clear_tour_tree

logger = logging.getLogger(__name__)

LISTING_ERROR_KEY = "<tour listing>"


class TourReconcileError(Exception):
    """A tour could not be reconciled and was left unchanged."""


@dataclass
class TourError:
    title: str
    error: str


@dataclass
class ReconcileSummary:
    updated: int = 0
    skipped: int = 0
    errors: List[TourError] = field(default_factory=list)
    outcomes: List[TourOutcome] = field(default_factory=list)
    skipped_titles: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def outcome_for(self, title: str) -> Optional[TourOutcome]:
        for outcome in self.outcomes:
            if outcome.title == title:
                return outcome
        return None


class TourReconciler:
    """Brings published tours in line with a TourCatalog."""

    def __init__(self, db: Session, catalog: TourCatalog):
        self.db = db
        self.catalog = catalog
        self.repo = TourRepository(db)

    @track_performance("Tour reconciliation")
    def reconcile(self) -> ReconcileSummary:
        summary = ReconcileSummary()

        try:
            tours = self.repo.list_published()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching published tours: {e}")
            self.db.rollback()
            summary.errors.append(TourError(title=LISTING_ERROR_KEY, error=str(e)))
            return summary

        # Titles/ids are captured up front: commits and rollbacks expire the ORM objects
        pending = [(tour.id, tour.title) for tour in tours]
        logger.info(f"Found {len(pending)} published tours to process")

        for tour_id, title in pending:
            plan = self.catalog.get(title)
            if plan is None:
                logger.info(f"Skipping {title!r} - no catalog entry", extra={"tour": title})
                summary.skipped += 1
                summary.skipped_titles.append(title)
                continue

            try:
                outcome = self.reconcile_tour(tour_id, title, plan)
                self.db.commit()
            except TourReconcileError as e:
                self.db.rollback()
                logger.error(f"Tour {title!r} not reconciled: {e}", extra={"tour": title})
                summary.errors.append(TourError(title=title, error=str(e)))
                continue
            except Exception as e:
                self.db.rollback()
                logger.exception(f"Error processing {title!r}: {e}", extra={"tour": title})
                summary.errors.append(TourError(title=title, error=str(e)))
                continue

            summary.updated += 1
            summary.outcomes.append(outcome)
            logger.info(
                f"Updated {title!r} with {outcome.duration_value} day(s) and "
                f"{outcome.items_created}/{outcome.items_planned} locations",
                extra={"tour": title},
            )

        logger.info(
            f"Reconciliation finished: {summary.updated} updated, "
            f"{summary.skipped} skipped, {len(summary.errors)} errors"
        )
        return summary

    def reconcile_tour(self, tour_id: int, title: str, plan: TourPlan) -> TourOutcome:
        """Apply one catalog entry to one tour. Does not commit."""
        tour = self.repo.get_by_id(tour_id)
        if tour is None:
            raise TourReconcileError("tour no longer exists")

        city = resolve_city(self.db, plan.city, plan.country)
        if not city.ok or city.row_id is None:
            raise TourReconcileError(f"Failed to get/create city {plan.city!r}")

        tag_ids = self._resolve_tags(plan.tags)
        outcome = TourOutcome(
            title=title,
            tour_id=tour_id,
            city_id=city.row_id,
            duration_value=plan.duration_days,
        )

        # The old tree is only removed once the tour row itself is updated
        self._update_tour(tour, plan, city.row_id)

        clear_tour_tree(self.repo, tour_id)
        for result in attach_tags(self.db, tour_id, tag_ids):
            if outcome.record(result).ok:
                outcome.tags_attached += 1

        return build_tour_tree(self.db, outcome, plan)

    def _resolve_tags(self, names) -> List[int]:
        tag_ids: List[int] = []
        for name in names:
            result: RowResult = resolve_tag(self.db, name)
            if not result.ok or result.row_id is None:
                logger.warning(f"Tag {name!r} could not be resolved, omitting it")
                continue
            if result.row_id not in tag_ids:
                tag_ids.append(result.row_id)
        return tag_ids

    def _update_tour(self, tour: Tour, plan: TourPlan, city_id: int) -> None:
        try:
            with self.db.begin_nested():
                tour.description = plan.description
                tour.city_id = city_id
                tour.duration_value = plan.duration_days
                tour.duration_type = DURATION_DAYS
                self.db.flush()
        except SQLAlchemyError as e:
            raise TourReconcileError(f"Failed to update tour row: {e}") from e


def reconcile_catalog(db: Session, catalog: TourCatalog) -> ReconcileSummary:
    return TourReconciler(db, catalog).reconcile()
