"""
Command-line entry points.

    tourseed-reconcile [--catalog PATH] [--init-schema]
    tourseed-audit [--json]
    tourseed-init-schema
    tourseed-seed [--catalog PATH]

Exit codes: 2 when the store is not configured (nothing is touched),
1 when the reconciler recorded tour errors, 0 otherwise.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from tourseed.catalog import load_catalog
from tourseed.core.config import ConfigurationError, require_database_url, settings
from tourseed.core.monitoring import configure_logging
from tourseed.db.database import init_db, new_session
from tourseed.services.auditor import AuditReport, TourAuditor
from tourseed.services.reconciler import ReconcileSummary, TourReconciler
from tourseed.services.seeding import seed_tour_shells

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TOUR_ERRORS = 1
EXIT_CONFIG = 2

# Reports go to stdout, logs to stderr
LOG_STREAM = "ext://sys.stderr"


def format_summary(summary: ReconcileSummary) -> List[str]:
    lines = ["", "Summary:", f"   Updated: {summary.updated}", f"   Skipped: {summary.skipped}"]
    for outcome in summary.outcomes:
        line = (f"   - {outcome.title}: {outcome.duration_value} day(s), "
                f"{outcome.items_created}/{outcome.items_planned} locations")
        if outcome.dropped:
            line += f", {len(outcome.dropped)} row(s) dropped"
        lines.append(line)
    if summary.errors:
        lines.append(f"   Errors: {len(summary.errors)}")
        for err in summary.errors:
            lines.append(f"   - {err.title}: {err.error}")
    return lines


def format_audit(report: AuditReport) -> List[str]:
    lines = [f"Found {len(report.tours)} published tours", ""]
    for tour in report.tours:
        lines.append(tour.title)
        lines.append(f"   City: {tour.city or 'Unknown'}")
        lines.append(f"   Duration: {tour.duration_value or 0} days")
        lines.append(f"   Days: {tour.day_count}")
        lines.append(f"   Blocks: {tour.block_count}")
        lines.append(f"   Items (locations): {tour.item_count}")
        if tour.blocks_per_day:
            lines.append("   Blocks per day:")
            for day, count in tour.blocks_per_day.items():
                lines.append(f"     Day {day}: {count} blocks")
        if tour.warning:
            lines.append(f"   WARNING: {tour.warning} ({tour.item_count})")
        lines.append("")
    if report.inventory:
        inv = report.inventory
        lines.append("Inventory:")
        lines.append(f"   Total tours: {inv.total_tours}")
        lines.append(f"   Published: {inv.published}")
        lines.append(f"   Unpublished: {inv.unpublished}")
        lines.append(f"   Locations: {inv.locations}")
    for err in report.errors:
        lines.append(f"ERROR: {err}")
    return lines


def _check_config() -> bool:
    try:
        require_database_url(settings)
    except ConfigurationError as e:
        logger.critical(str(e))
        print(f"Missing configuration: {e}", file=sys.stderr)
        return False
    return True


def reconcile_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile published tours with the tour catalog")
    parser.add_argument("--catalog", default=settings.catalog_path, help="Path to the catalog JSON document")
    parser.add_argument("--init-schema", action="store_true", help="Create missing tables first")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format, LOG_STREAM)
    if not _check_config():
        return EXIT_CONFIG

    catalog = load_catalog(args.catalog)
    if args.init_schema:
        init_db()

    db = new_session()
    try:
        summary = TourReconciler(db, catalog).reconcile()
    finally:
        db.close()

    print("\n".join(format_summary(summary)))
    return EXIT_TOUR_ERRORS if summary.errors else EXIT_OK


def audit_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Audit the itinerary structure of published tours")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format, LOG_STREAM)
    if not _check_config():
        return EXIT_CONFIG

    db = new_session()
    try:
        report = TourAuditor(db, min_items=settings.audit_min_items).audit()
    finally:
        db.close()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print("\n".join(format_audit(report)))
    return EXIT_OK


def init_schema_main(argv: Optional[List[str]] = None) -> int:
    argparse.ArgumentParser(description="Create the tour store tables").parse_args(argv)
    configure_logging(settings.log_level, settings.log_format, LOG_STREAM)
    if not _check_config():
        return EXIT_CONFIG
    init_db()
    return EXIT_OK


def seed_main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create placeholder published tours for catalog titles")
    parser.add_argument("--catalog", default=settings.catalog_path, help="Path to the catalog JSON document")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format, LOG_STREAM)
    if not _check_config():
        return EXIT_CONFIG

    catalog = load_catalog(args.catalog)
    init_db()
    db = new_session()
    try:
        created = seed_tour_shells(db, catalog)
    finally:
        db.close()

    for title in created:
        print(f"   + {title}")
    print(f"Seeded {len(created)} tours")
    return EXIT_OK
