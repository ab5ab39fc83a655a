"""
Tour maintenance routes.

Reconciling is admin-only and rate-limited harder than the read-only audit
and inventory views. The outcome of the latest reconcile run is kept on
app.state for the health report.
"""

from dataclasses import asdict
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from tourseed.catalog import TourCatalog, load_catalog
from tourseed.core.config import settings
from tourseed.core.rate_limiting import limiter, AUDIT_LIMIT, RECONCILE_LIMIT
from tourseed.db.database import get_db
from tourseed.services.auditor import TourAuditor
from tourseed.services.reconciler import ReconcileSummary, TourReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tours", tags=["tours"])


@lru_cache(maxsize=1)
def _load_configured_catalog(path: str) -> TourCatalog:
    return load_catalog(path)


def configured_catalog() -> TourCatalog:
    """The catalog at settings.catalog_path, loaded once per path. Raises on a bad file."""
    return _load_configured_catalog(settings.catalog_path)


def get_catalog() -> TourCatalog:
    """Dependency: the configured catalog, loaded once per path."""
    try:
        return configured_catalog()
    except (OSError, ValueError) as e:
        logger.error(f"Catalog could not be loaded from {settings.catalog_path}: {e}")
        raise HTTPException(status_code=500, detail="Tour catalog unavailable")


def require_admin_key(x_api_key: Optional[str] = Header(None)) -> None:
    if not x_api_key or x_api_key != settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Invalid or missing API key")


def _require_db(db: Optional[Session]) -> Session:
    if db is None:
        raise HTTPException(status_code=503, detail="Service unavailable: database not connected")
    return db


def _summary_to_dict(summary: ReconcileSummary) -> Dict[str, Any]:
    return {
        "success": summary.ok,
        "updated": summary.updated,
        "skipped": summary.skipped,
        "skipped_titles": summary.skipped_titles,
        "errors": [asdict(e) for e in summary.errors],
        "tours": [
            {**asdict(outcome), "complete": outcome.complete}
            for outcome in summary.outcomes
        ],
    }


# ============================================================================
# MAINTENANCE ENDPOINTS
# ============================================================================

@router.post("/reconcile", dependencies=[Depends(require_admin_key)])
@limiter.limit(RECONCILE_LIMIT)
def reconcile_tours(
    request: Request,
    db: Session = Depends(get_db),
    catalog: TourCatalog = Depends(get_catalog),
):
    """
    Bring every published tour with a catalog entry in line with the catalog.
    Per-tour failures are reported in the body, never as an HTTP error.
    """
    summary = TourReconciler(_require_db(db), catalog).reconcile()
    request.app.state.last_reconcile = {
        "finished_at": datetime.now(timezone.utc).isoformat(),
        "updated": summary.updated,
        "skipped": summary.skipped,
        "errors": len(summary.errors),
        "incomplete": [o.title for o in summary.outcomes if not o.complete],
    }
    return _summary_to_dict(summary)


@router.get("/audit")
@limiter.limit(AUDIT_LIMIT)
def audit_tours(request: Request, db: Session = Depends(get_db)):
    """Day/block/item counts and location warnings per published tour."""
    report = TourAuditor(_require_db(db), min_items=settings.audit_min_items).audit()
    return report.to_dict()


@router.get("/inventory")
@limiter.limit(AUDIT_LIMIT)
def tour_inventory(request: Request, db: Session = Depends(get_db)):
    """Total, published and unpublished tour counts plus location count."""
    inventory = TourAuditor(_require_db(db)).inventory()
    if inventory is None:
        raise HTTPException(status_code=503, detail="Inventory query failed")
    return asdict(inventory)
