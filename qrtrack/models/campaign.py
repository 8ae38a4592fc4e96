from datetime import datetime
from ..extensions import db


COOKIE_DURATION_CHOICES = (30, 60, 90)
CAMPAIGN_STATUSES = ("active", "paused", "archived")


class Campaign(db.Model):
    """
    A trackable QR redirect target.
    Created and edited by campaign management; read-only for the redirect path.
    """
    __tablename__ = "campaigns"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    destination_url = db.Column(db.Text, nullable=False)

    # Codes embedded in the scanned URL (/go/<code>)
    tracking_code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    slug = db.Column(db.String(64), unique=True, nullable=True, index=True)

    cookie_duration_days = db.Column(db.Integer, nullable=False, default=30)  # 30, 60 or 90

    # Bridge page (interstitial that fires the client pixel before navigating on)
    bridge_enabled = db.Column(db.Boolean, nullable=False, default=True)
    bridge_duration_ms = db.Column(db.Integer, nullable=False, default=800)

    status = db.Column(db.String(20), nullable=False, default="active", index=True)  # active, paused, archived

    # Campaign-level Meta integration (takes priority over the account-level pixel)
    meta_pixel_id = db.Column(db.String(32), nullable=True)
    meta_access_token = db.Column(db.Text, nullable=True)  # legacy plaintext token
    meta_encrypted_access_token = db.Column(db.Text, nullable=True)
    meta_encryption_iv = db.Column(db.String(32), nullable=True)
    meta_encryption_version = db.Column(db.Integer, nullable=True, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    scans = db.relationship("Scan", backref="campaign", lazy="dynamic", cascade="all, delete-orphan")

    __table_args__ = (
        db.CheckConstraint("cookie_duration_days IN (30, 60, 90)", name="valid_cookie_duration"),
        db.CheckConstraint("status IN ('active', 'paused', 'archived')", name="valid_campaign_status"),
    )

    def __repr__(self):
        return f"<Campaign {self.id}: {self.tracking_code} ({self.status})>"

    @property
    def is_active(self):
        return self.status == "active"
