"""
Campaign Resolver
Maps the code in a scanned URL to the active campaign that owns it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_

from ..models import Campaign, User
from .meta_capi import PixelCredentials, resolve_pixel_credentials

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CampaignProjection:
    """Read-only view of a campaign plus its resolved Meta credentials."""
    id: int
    user_id: int
    name: str
    destination_url: str
    tracking_code: str
    slug: Optional[str]
    cookie_duration_days: int
    bridge_enabled: bool
    bridge_duration_ms: int
    status: str
    pixel: Optional[PixelCredentials] = None

    @property
    def pixel_id(self):
        return self.pixel.pixel_id if self.pixel else None

    def public_dict(self):
        """Bridge page payload. Never includes access tokens."""
        return {
            "id": self.id,
            "name": self.name,
            "destination_url": self.destination_url,
            "pixel_id": self.pixel_id,
            "bridge_duration_ms": self.bridge_duration_ms,
        }


def _project(campaign: Campaign) -> CampaignProjection:
    owner = User.query.get(campaign.user_id) if campaign.user_id else None
    return CampaignProjection(
        id=campaign.id,
        user_id=campaign.user_id,
        name=campaign.name,
        destination_url=campaign.destination_url,
        tracking_code=campaign.tracking_code,
        slug=campaign.slug,
        cookie_duration_days=campaign.cookie_duration_days or 30,
        bridge_enabled=True if campaign.bridge_enabled is None else bool(campaign.bridge_enabled),
        bridge_duration_ms=campaign.bridge_duration_ms or 800,
        status=campaign.status,
        pixel=resolve_pixel_credentials(campaign, owner),
    )


def _find_active(code):
    return (
        Campaign.query
        .filter(Campaign.status == "active")
        .filter(or_(Campaign.slug == code, Campaign.tracking_code == code))
        .order_by(Campaign.id.asc())
        .first()
    )


def lookup_campaign(code) -> Optional[CampaignProjection]:
    """
    Exact match on slug or tracking code first (legacy codes keep their case),
    then a lowercased retry. Paused, archived and unknown codes all return None.
    """
    if not code:
        return None

    campaign = _find_active(code)
    normalized = code.lower()
    if campaign is None and normalized != code:
        campaign = _find_active(normalized)

    if campaign is None:
        logger.info("Campaign not found for code %r", code)
        return None

    return _project(campaign)


def get_campaign_projection(campaign_id) -> Optional[CampaignProjection]:
    """Reload by id for background jobs; no status filter."""
    campaign = Campaign.query.get(campaign_id)
    return _project(campaign) if campaign else None
