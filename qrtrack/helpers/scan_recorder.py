"""
Scan Recorder
Appends a Scan row and bumps its hourly ScanAggregate bucket in the same transaction.
"""
import logging
from datetime import datetime, timezone

from dateutil import parser as date_parser
from sqlalchemy.dialects import postgresql, sqlite

from ..extensions import db
from ..models import Scan, ScanAggregate
from .geo import confidence_level

logger = logging.getLogger(__name__)

AGGREGATE_KEY = ("campaign_id", "date", "hour", "locality_name", "postcode", "state")
SCAN_COLUMNS = frozenset(c.name for c in Scan.__table__.columns) - {"id"}


def _as_naive_utc(value):
    """Columns store naive UTC datetimes."""
    if value is None:
        return None
    if isinstance(value, str):
        value = date_parser.isoparse(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _dialect_insert():
    dialect = db.engine.dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Atomic aggregate upsert is not supported on {dialect}")


def aggregate_bucket(scan):
    """Bucket key + the row inserted when the bucket does not exist yet. NULL keys become ''."""
    device = scan.device_type
    return {
        "campaign_id": scan.campaign_id,
        "date": scan.scanned_at.date(),
        "hour": scan.scanned_at.hour,
        "locality_name": scan.locality_name or "",
        "postcode": scan.postcode or "",
        "state": scan.state_code or scan.state or "",
        "suburb": scan.locality_name or scan.suburb or "",
        "confidence_level": confidence_level(scan.confidence_radius_km),
        "total_scans": 1,
        "unique_visitors": 1 if scan.is_first_scan else 0,
        "mobile_scans": 1 if device == "mobile" else 0,
        "desktop_scans": 1 if device == "desktop" else 0,
        "tablet_scans": 1 if device == "tablet" else 0,
    }


def upsert_aggregate(scan):
    """INSERT ... ON CONFLICT DO UPDATE with in-database increments."""
    values = aggregate_bucket(scan)
    now = datetime.utcnow()
    values["created_at"] = now
    values["updated_at"] = now

    table = ScanAggregate.__table__
    stmt = _dialect_insert()(table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c[name] for name in AGGREGATE_KEY],
        set_={
            "total_scans": table.c.total_scans + 1,
            "unique_visitors": table.c.unique_visitors + values["unique_visitors"],
            "mobile_scans": table.c.mobile_scans + values["mobile_scans"],
            "desktop_scans": table.c.desktop_scans + values["desktop_scans"],
            "tablet_scans": table.c.tablet_scans + values["tablet_scans"],
            "updated_at": now,
        },
    )
    db.session.execute(stmt)


def record_scan(scan_data) -> Scan:
    """
    Insert one scan and its aggregate increment, then commit.
    Errors roll back and propagate to the caller.
    """
    data = {k: v for k, v in scan_data.items() if k in SCAN_COLUMNS}
    data["scanned_at"] = _as_naive_utc(data.get("scanned_at")) or datetime.utcnow()
    data["cookie_expires_at"] = _as_naive_utc(data.get("cookie_expires_at"))
    if not data.get("geo_source"):
        data["geo_source"] = "fallback"

    scan = Scan(**data)
    try:
        db.session.add(scan)
        db.session.flush()
        upsert_aggregate(scan)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.debug("Scan %s recorded for campaign %s", scan.id, scan.campaign_id)
    return scan
