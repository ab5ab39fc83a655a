"""
Service status for the tour maintenance API.

The report covers the three things a reconcile run depends on: the store
(with its tour inventory), the configured catalog, and the outcome of the
last reconcile run served by this process.
"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from tourseed.api.routes_tours import configured_catalog
from tourseed.core.config import settings
from tourseed.core.rate_limiting import limiter, HEALTH_LIMIT
from tourseed.db.database import get_db
from tourseed.services.auditor import TourAuditor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def catalog_status() -> Dict[str, Any]:
    try:
        catalog = configured_catalog()
    except (OSError, ValueError) as e:
        logger.error(f"Catalog check failed for {settings.catalog_path}: {e}")
        return {"status": "unavailable", "path": settings.catalog_path, "error": str(e)}
    return {"status": "loaded", "path": settings.catalog_path, "tours": len(catalog)}


def store_status(db: Optional[Session]) -> Dict[str, Any]:
    if db is None:
        return {"status": "unavailable"}
    inventory = TourAuditor(db).inventory()
    if inventory is None:
        return {"status": "error"}
    return {"status": "available", "tours": inventory.published, "locations": inventory.locations}


@router.get("/")
@limiter.limit(HEALTH_LIMIT)
def health_check(request: Request, db: Session = Depends(get_db)):
    """Store, catalog and last-reconcile status; degraded unless store and catalog are usable."""
    store = store_status(db)
    catalog = catalog_status()
    healthy = store["status"] == "available" and catalog["status"] == "loaded"
    return {
        "status": "healthy" if healthy else "degraded",
        "database": store,
        "catalog": catalog,
        "last_reconcile": getattr(request.app.state, "last_reconcile", None),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
@limiter.limit(HEALTH_LIMIT)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Ready once a reconcile run could start: store reachable and catalog loadable."""
    store = store_status(db)
    catalog = catalog_status()
    ready = store["status"] == "available" and catalog["status"] == "loaded"
    body = {"ready": ready}
    if not ready:
        body["database"] = store["status"]
        body["catalog"] = catalog["status"]
    return body


@router.get("/live")
async def liveness_check():
    return {"alive": True}
