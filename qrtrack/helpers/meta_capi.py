"""
Meta Conversions API (CAPI) client
Server-side QRCodeScan events, deduplicated against the browser pixel by event_id.

https://developers.facebook.com/docs/marketing-api/conversions-api
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Optional

import requests

from .crypto import EncryptedToken, EncryptionError, sha256_hex

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_API_BASE = "https://graph.facebook.com"
DEFAULT_GRAPH_API_VERSION = "v18.0"
SCAN_EVENT_NAME = "QRCodeScan"
ACTION_SOURCE = "website"

_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class PixelCredentials:
    pixel_id: str
    access_token: Optional[str] = None
    encrypted_token: Optional[EncryptedToken] = None
    source: str = "campaign"  # campaign or account

    @property
    def has_token(self):
        return bool(self.access_token) or self.encrypted_token is not None


@dataclass
class DispatchResult:
    sent: bool
    skipped_reason: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    payload: dict = field(default_factory=dict)  # event payload without the access token


def _encrypted_token(row):
    if getattr(row, "meta_encrypted_access_token", None) and getattr(row, "meta_encryption_iv", None):
        return EncryptedToken(
            ciphertext=row.meta_encrypted_access_token,
            iv=row.meta_encryption_iv,
            version=row.meta_encryption_version or 1,
        )
    return None


def resolve_pixel_credentials(campaign, owner=None) -> Optional[PixelCredentials]:
    """
    Campaign-level integration first, then the owner's account-level pixel.
    A plaintext token is preferred over an encrypted one.
    """
    if campaign is not None and campaign.meta_pixel_id:
        return PixelCredentials(
            pixel_id=campaign.meta_pixel_id,
            access_token=campaign.meta_access_token or None,
            encrypted_token=None if campaign.meta_access_token else _encrypted_token(campaign),
            source="campaign",
        )

    if owner is not None and owner.meta_pixel_id:
        return PixelCredentials(
            pixel_id=owner.meta_pixel_id,
            encrypted_token=_encrypted_token(owner),
            source="account",
        )

    return None


def _normalise(value):
    return _WHITESPACE.sub("", value.lower())


def build_user_data(ip, user_agent, visitor_id, postcode=None, state=None,
                    country=None, fbc=None, fbp=None) -> dict:
    """
    Customer information parameters. IP and user agent are sent raw (Meta
    hashes them); everything identifying the visitor is SHA-256 hashed.
    """
    user_data = {
        "client_ip_address": ip,
        "client_user_agent": user_agent,
    }

    if visitor_id:
        user_data["external_id"] = [sha256_hex(visitor_id.lower())]
    if postcode:
        user_data["zp"] = sha256_hex(_normalise(postcode))
    if state:
        user_data["st"] = sha256_hex(_normalise(state))
    if country:
        user_data["country"] = sha256_hex(country.lower())
    if fbc:
        user_data["fbc"] = fbc
    if fbp:
        user_data["fbp"] = fbp

    return user_data


class MetaConversionsClient:
    """Best effort: failures are logged and dropped, never retried."""

    def __init__(self, cipher=None, api_base=DEFAULT_GRAPH_API_BASE,
                 api_version=DEFAULT_GRAPH_API_VERSION, timeout=5,
                 default_country="au", test_event_code=None, session=None):
        self.cipher = cipher
        self.api_base = (api_base or DEFAULT_GRAPH_API_BASE).rstrip("/")
        self.api_version = api_version or DEFAULT_GRAPH_API_VERSION
        self.timeout = timeout
        self.default_country = default_country
        self.test_event_code = test_event_code
        self.session = session or requests.Session()

    def events_url(self, pixel_id):
        return f"{self.api_base}/{self.api_version}/{pixel_id}/events"

    def _access_token(self, credentials):
        if credentials.access_token:
            return credentials.access_token
        if credentials.encrypted_token is None:
            return None
        if self.cipher is None:
            raise EncryptionError("No token cipher configured")
        return self.cipher.decrypt(credentials.encrypted_token)

    def build_scan_event(self, context, geo) -> dict:
        user_data = build_user_data(
            ip=context.client_ip,
            user_agent=context.user_agent,
            visitor_id=context.visitor_id,
            postcode=geo.postcode if geo else None,
            state=geo.state if geo else None,
            country=self.default_country,
            fbc=context.fbc,
            fbp=context.fbp,
        )
        return {
            "event_name": SCAN_EVENT_NAME,
            "event_time": int(time.time()),
            "event_id": context.event_id,
            "event_source_url": context.source_url,
            "action_source": ACTION_SOURCE,
            "user_data": user_data,
            "custom_data": {
                "campaign_id": context.campaign_id,
                "campaign_name": context.campaign_name,
                "content_type": "qr_code",
            },
        }

    def fire_scan_event(self, credentials, context, geo) -> DispatchResult:
        if credentials is None or not credentials.pixel_id:
            return DispatchResult(sent=False, skipped_reason="no_pixel")

        try:
            access_token = self._access_token(credentials)
        except EncryptionError as e:
            logger.error("Failed to decrypt Meta access token for campaign %s: %s", context.campaign_id, e)
            return DispatchResult(sent=False, skipped_reason="decrypt_failed", error=str(e))

        if not access_token:
            logger.debug("No Meta access token for pixel %s, skipping server event", credentials.pixel_id)
            return DispatchResult(sent=False, skipped_reason="no_token")

        event = self.build_scan_event(context, geo)
        payload = {"data": [event]}
        if self.test_event_code:
            payload["test_event_code"] = self.test_event_code

        try:
            response = self.session.post(
                self.events_url(credentials.pixel_id),
                json=dict(payload, access_token=access_token),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Meta CAPI request failed for campaign %s: %s", context.campaign_id, e)
            return DispatchResult(sent=False, error=str(e), payload=payload)

        if not response.ok:
            logger.error("Meta CAPI error response %s: %s", response.status_code, response.text[:500])
            return DispatchResult(
                sent=False, status_code=response.status_code, error=response.text[:500], payload=payload,
            )

        logger.info("Meta CAPI %s sent for campaign %s (event %s)",
                    SCAN_EVENT_NAME, context.campaign_id, context.event_id)
        return DispatchResult(sent=True, status_code=response.status_code, payload=payload)
