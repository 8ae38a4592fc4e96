"""
Scan Models
Append-only scan events plus the hourly location rollup
"""
from datetime import datetime
from qrtrack.extensions import db


DEVICE_TYPES = ("mobile", "tablet", "desktop")
GEO_SOURCES = ("bigdatacloud", "vercel", "fallback")


class Scan(db.Model):
    """
    One recorded QR scan.
    Inserted by the scan recorder; never updated afterwards.
    """
    __tablename__ = "scans"

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey("campaigns.id"), nullable=False, index=True)
    visitor_id = db.Column(db.String(64), nullable=False, index=True)
    ip_address_hash = db.Column(db.String(64), nullable=True)

    # Location
    locality_name = db.Column(db.String(255), nullable=True, index=True)  # suburb-level
    suburb = db.Column(db.String(255), nullable=True)  # legacy alias of locality_name
    city = db.Column(db.String(255), nullable=True)
    postcode = db.Column(db.String(10), nullable=True, index=True)
    state = db.Column(db.String(100), nullable=True)
    state_code = db.Column(db.String(10), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    country_code = db.Column(db.String(2), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Precision
    confidence_radius_km = db.Column(db.Float, nullable=True)
    geo_source = db.Column(db.String(20), nullable=False, default="fallback", index=True)  # bigdatacloud, vercel, fallback

    # Network
    isp_name = db.Column(db.String(255), nullable=True)
    network_type = db.Column(db.String(50), nullable=True)
    connection_type = db.Column(db.String(50), nullable=True)
    is_vpn = db.Column(db.Boolean, nullable=False, default=False)
    is_proxy = db.Column(db.Boolean, nullable=False, default=False)
    is_tor = db.Column(db.Boolean, nullable=False, default=False)

    # Device
    user_agent = db.Column(db.Text, nullable=True)
    device_type = db.Column(db.String(20), nullable=True)  # mobile, tablet, desktop
    browser = db.Column(db.String(100), nullable=True)
    os = db.Column(db.String(100), nullable=True)
    screen_width = db.Column(db.Integer, nullable=True)
    screen_height = db.Column(db.Integer, nullable=True)

    # Context
    referrer = db.Column(db.Text, nullable=True)
    cookie_expires_at = db.Column(db.DateTime, nullable=True)
    is_first_scan = db.Column(db.Boolean, nullable=False, default=True)
    meta_event_id = db.Column(db.String(32), nullable=True, index=True)  # shared with the browser pixel
    scanned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        db.CheckConstraint(
            "device_type IN ('mobile', 'tablet', 'desktop') OR device_type IS NULL",
            name="valid_device_type",
        ),
    )

    def __repr__(self):
        return f"<Scan {self.id}: campaign {self.campaign_id} visitor {self.visitor_id}>"


class ScanAggregate(db.Model):
    """
    Hourly rollup per (campaign, date, hour, locality, postcode, state).

    Key columns hold '' instead of NULL so the unique constraint (and the
    ON CONFLICT upsert that relies on it) treats unknown locations as one bucket.
    """
    __tablename__ = "scan_aggregates"

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey("campaigns.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    hour = db.Column(db.Integer, nullable=False)

    locality_name = db.Column(db.String(255), nullable=False, default="")
    postcode = db.Column(db.String(10), nullable=False, default="")
    state = db.Column(db.String(100), nullable=False, default="")
    suburb = db.Column(db.String(255), nullable=True)
    confidence_level = db.Column(db.String(20), nullable=True)  # high, medium, low, unreliable

    total_scans = db.Column(db.Integer, nullable=False, default=0)
    unique_visitors = db.Column(db.Integer, nullable=False, default=0)
    mobile_scans = db.Column(db.Integer, nullable=False, default=0)
    desktop_scans = db.Column(db.Integer, nullable=False, default=0)
    tablet_scans = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            "campaign_id", "date", "hour", "locality_name", "postcode", "state",
            name="scan_aggregates_unique_key",
        ),
        db.Index("ix_scan_aggregates_campaign_date", "campaign_id", "date"),
    )

    def __repr__(self):
        return f"<ScanAggregate {self.campaign_id} {self.date} {self.hour}h {self.locality_name}: {self.total_scans}>"
