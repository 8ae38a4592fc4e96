from datetime import datetime
from ..extensions import db


class Locality(db.Model):
    """Reference suburbs/localities, seeded by operators. Used to name a postcode."""
    __tablename__ = "localities"

    id = db.Column(db.Integer, primary_key=True)
    locality_name = db.Column(db.String(255), nullable=False, index=True)
    postcode = db.Column(db.String(10), nullable=True, index=True)
    state = db.Column(db.String(100), nullable=True)
    state_code = db.Column(db.String(10), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    population = db.Column(db.Integer, nullable=True)  # larger localities win a postcode lookup
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("locality_name", "postcode", "state_code", name="localities_unique"),
    )

    @classmethod
    def most_populous_for_postcode(cls, postcode):
        if not postcode:
            return None
        return (
            cls.query.filter_by(postcode=postcode)
            .order_by(cls.population.desc().nullslast(), cls.locality_name.asc())
            .first()
        )
