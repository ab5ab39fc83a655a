"""
Per-row and per-tour results of a reconciliation.

Every row write returns a RowResult instead of raising, so a tour's outcome
lists exactly which rows were dropped and why.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class RowResult:
    """Outcome of resolving or inserting one row."""
    table: str
    key: str
    row_id: Optional[int] = None
    created: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TourOutcome:
    """What one tour's tree rebuild actually produced."""
    title: str
    tour_id: int
    city_id: int
    duration_value: int
    tags_attached: int = 0
    days_created: int = 0
    blocks_created: int = 0
    items_created: int = 0
    items_planned: int = 0
    dropped: List[RowResult] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.dropped

    def record(self, result: RowResult) -> RowResult:
        if not result.ok:
            self.dropped.append(result)
        return result


def insert_row(db: Session, obj: Any, table: str, key: str) -> RowResult:
    """
    Insert one ORM object inside a SAVEPOINT.
    A failing insert rolls back alone and is reported, not raised.
    """
    try:
        with db.begin_nested():
            db.add(obj)
            db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Failed to insert {table} row {key!r}: {e}")
        return RowResult(table=table, key=key, error=str(e))
    return RowResult(table=table, key=key, row_id=getattr(obj, "id", None), created=True)


def lookup_id(db: Session, run_query: Callable[[], Optional[int]], table: str, key: str) -> Optional[int]:
    """
    Run a lookup inside a SAVEPOINT. A failed lookup is logged and
    reported as "not found".
    """
    try:
        with db.begin_nested():
            return run_query()
    except SQLAlchemyError as e:
        logger.warning(f"Lookup on {table} for {key!r} failed, treating as not found: {e}")
        return None
