from datetime import datetime
from ..extensions import db


class User(db.Model):
    """
    Account that owns campaigns.
    Managed by the dashboard; the tracking core only reads the Meta fallback fields.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=True)

    # Account-level Meta pixel (Settings page), used when a campaign has no integration of its own
    meta_pixel_id = db.Column(db.String(32), nullable=True)
    meta_encrypted_access_token = db.Column(db.Text, nullable=True)  # AES-256-GCM, base64
    meta_encryption_iv = db.Column(db.String(32), nullable=True)
    meta_encryption_version = db.Column(db.Integer, nullable=True, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    campaigns = db.relationship("Campaign", backref="owner", lazy="dynamic", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
