"""
Redirect Orchestrator

    START -> CAMPAIGN_LOOKUP -> NOT_FOUND | BOT_SHORT_CIRCUIT | BRIDGE_REDIRECT | DIRECT_REDIRECT

Only the campaign lookup runs before the response is produced. Geolocation,
the Meta server event and scan recording all run as background jobs.

Background jobs take JSON-serializable kwargs (ScanContext.to_dict()) so the
same job runs on the thread pool or through Celery.
"""
import enum
import logging
import re
import time
from dataclasses import dataclass, asdict, field, fields
from datetime import datetime, timezone
from typing import Optional

from flask import current_app, url_for

from ..extensions import background
from ..services import get_services
from .campaigns import get_campaign_projection, lookup_campaign
from .cookies import (
    build_tracking_cookies,
    cookie_expiry,
    extract_click_ids,
    has_visited_campaign,
    resolve_visitor,
)
from .crypto import generate_event_id, hash_ip
from .geo import GeoResult, extract_client_ip
from .scan_recorder import record_scan
from .user_agent import parse_user_agent

logger = logging.getLogger(__name__)

EDGE_HEADER_PREFIX = "x-vercel-ip-"

JOB_PROCESS = "scan.process"
JOB_DISPATCH = "scan.dispatch_event"
JOB_RECORD = "scan.record"

EVENT_ID_PATTERN = re.compile(r"[0-9a-f]{32}")


class ScanOutcome(enum.Enum):
    NOT_FOUND = "not_found"
    BOT_SHORT_CIRCUIT = "bot"
    BRIDGE_REDIRECT = "bridge"
    DIRECT_REDIRECT = "direct"


@dataclass
class ScanContext:
    """Everything the background jobs need about one scan."""
    campaign_id: int
    campaign_name: str
    visitor_id: str
    is_first_scan: bool
    event_id: str
    client_ip: str
    ip_address_hash: str
    user_agent: str
    device_type: str
    browser: str
    os: str
    source_url: str
    cookie_expires_at: str  # ISO 8601, UTC
    referrer: Optional[str] = None
    fbc: Optional[str] = None
    fbp: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    edge_headers: dict = field(default_factory=dict)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ScanDecision:
    outcome: ScanOutcome
    location: str
    status_code: int
    cookies: list = field(default_factory=list)
    context: Optional[ScanContext] = None


def _edge_headers(headers):
    return {k.lower(): v for k, v in headers.items() if k.lower().startswith(EDGE_HEADER_PREFIX)}


def _str_or_none(value):
    return value if isinstance(value, str) and value else None


def _client_event_id(value):
    """Event id echoed back by the bridge page, if it is one we could have issued."""
    if isinstance(value, str) and EVENT_ID_PATTERN.fullmatch(value):
        return value
    return None


def _int_or_none(value):
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def build_scan_context(campaign, request, event_id, visitor_id, is_new_visitor, expires_at, body=None):
    body = body or {}
    headers = request.headers
    cookies = request.cookies
    user_agent = headers.get("User-Agent", "")
    device = parse_user_agent(user_agent)
    client_ip = extract_client_ip(headers, request.remote_addr)
    fbc, fbp = extract_click_ids(cookies)
    services = get_services()

    return ScanContext(
        campaign_id=campaign.id,
        campaign_name=campaign.name,
        visitor_id=visitor_id,
        is_first_scan=is_new_visitor or not has_visited_campaign(cookies, campaign.id),
        event_id=event_id,
        client_ip=client_ip,
        ip_address_hash=hash_ip(client_ip, services.ip_salt or ""),
        user_agent=user_agent,
        device_type=device.device_type,
        browser=device.browser,
        os=device.os,
        source_url=request.url,
        cookie_expires_at=expires_at.isoformat(),
        referrer=_str_or_none(body.get("referrer")) or headers.get("Referer"),
        fbc=fbc,
        fbp=fbp,
        screen_width=_int_or_none(body.get("screen_width")),
        screen_height=_int_or_none(body.get("screen_height")),
        edge_headers=_edge_headers(headers),
    )


def handle_scan(code, request) -> ScanDecision:
    """Decide the response for GET /go/<code>. Never waits on enrichment."""
    started = time.monotonic()

    campaign = lookup_campaign(code)
    if campaign is None:
        return ScanDecision(
            outcome=ScanOutcome.NOT_FOUND,
            location=current_app.config.get("DEFAULT_REDIRECT_URL", "/"),
            status_code=302,
        )

    user_agent = request.headers.get("User-Agent", "")
    if parse_user_agent(user_agent).is_bot:
        logger.info("Bot detected, skipping tracking for %s: %s", code, user_agent)
        return ScanDecision(
            outcome=ScanOutcome.BOT_SHORT_CIRCUIT,
            location=campaign.destination_url,
            status_code=302,
        )

    visitor_id, is_new_visitor = resolve_visitor(request.cookies)
    expires_at = cookie_expiry(campaign.cookie_duration_days)
    event_id = generate_event_id()
    cookies = build_tracking_cookies(visitor_id, campaign.id, event_id, expires_at)

    if campaign.bridge_enabled:
        # The bridge page runs enrichment through the track endpoint
        decision = ScanDecision(
            outcome=ScanOutcome.BRIDGE_REDIRECT,
            location=url_for("redirect.bridge", code=code, eid=event_id),
            status_code=307,
            cookies=cookies,
        )
    else:
        context = build_scan_context(campaign, request, event_id, visitor_id, is_new_visitor, expires_at)
        background.submit(JOB_PROCESS, context=context.to_dict())
        decision = ScanDecision(
            outcome=ScanOutcome.DIRECT_REDIRECT,
            location=campaign.destination_url,
            status_code=302,
            cookies=cookies,
            context=context,
        )

    logger.info("Scan %s -> %s (%.1fms)", code, decision.outcome.value, (time.monotonic() - started) * 1000)
    return decision


def track_scan(code, request, body):
    """
    POST /api/go/<code>/track from the bridge page.
    Waits for geolocation only; dispatch and recording run in the background.

    Returns (payload, status_code).
    """
    campaign = lookup_campaign(code)
    if campaign is None:
        return {"error": "Campaign not found"}, 404

    user_agent = request.headers.get("User-Agent", "")
    if parse_user_agent(user_agent).is_bot:
        logger.info("Bot detected on track endpoint, skipping: %s", user_agent)
        return {"success": True, "skipped": True, "reason": "bot"}, 200

    visitor_id, is_new_visitor = resolve_visitor(request.cookies)
    expires_at = cookie_expiry(campaign.cookie_duration_days)
    event_id = _client_event_id(body.get("event_id")) or generate_event_id()
    context = build_scan_context(campaign, request, event_id, visitor_id, is_new_visitor, expires_at, body=body)

    geo = get_services().geo_resolver.resolve(context.client_ip, context.edge_headers)
    if geo.is_anonymized:
        logger.info("VPN/proxy detected for campaign %s: vpn=%s proxy=%s tor=%s",
                    campaign.id, geo.is_vpn, geo.is_proxy, geo.is_tor)

    _fan_out(context, geo)

    return {
        "success": True,
        "geo": {
            "locality": geo.locality_name,
            "postcode": geo.postcode,
            "confidence_km": geo.confidence_radius_km,
            "confidence_level": geo.confidence_level,
            "source": geo.geo_source,
        },
    }, 200


def _fan_out(context, geo):
    kwargs = {"context": context.to_dict(), "geo": geo.to_dict()}
    background.submit(JOB_DISPATCH, **kwargs)
    background.submit(JOB_RECORD, **kwargs)


def build_scan_data(context: ScanContext, geo: GeoResult, default_country="au") -> dict:
    return {
        "campaign_id": context.campaign_id,
        "visitor_id": context.visitor_id,
        "ip_address_hash": context.ip_address_hash,
        "locality_name": geo.locality_name,
        "suburb": geo.locality_name or geo.city,
        "city": geo.city,
        "postcode": geo.postcode,
        "state": geo.state,
        "state_code": geo.state_code,
        "country": geo.country,
        "country_code": geo.country_code or default_country.upper(),
        "latitude": geo.latitude,
        "longitude": geo.longitude,
        "confidence_radius_km": geo.confidence_radius_km,
        "geo_source": geo.geo_source,
        "isp_name": geo.isp_name,
        "network_type": geo.network_type,
        "connection_type": geo.connection_type,
        "is_vpn": geo.is_vpn,
        "is_proxy": geo.is_proxy,
        "is_tor": geo.is_tor,
        "user_agent": context.user_agent,
        "device_type": context.device_type,
        "browser": context.browser,
        "os": context.os,
        "screen_width": context.screen_width,
        "screen_height": context.screen_height,
        "referrer": context.referrer,
        "cookie_expires_at": context.cookie_expires_at,
        "is_first_scan": context.is_first_scan,
        "meta_event_id": context.event_id,
        "scanned_at": datetime.now(timezone.utc),
    }


# Background jobs (registered in qrtrack.tasks)

def process_scan_job(context):
    """Direct-redirect path: resolve geo, then hand off dispatch and recording."""
    ctx = ScanContext.from_dict(context)
    geo = get_services().geo_resolver.resolve(ctx.client_ip, ctx.edge_headers)
    _fan_out(ctx, geo)
    return geo.geo_source


def dispatch_event_job(context, geo):
    ctx = ScanContext.from_dict(context)
    campaign = get_campaign_projection(ctx.campaign_id)
    if campaign is None or campaign.pixel is None:
        return None
    return get_services().meta_client.fire_scan_event(campaign.pixel, ctx, GeoResult.from_dict(geo))


def record_scan_job(context, geo):
    ctx = ScanContext.from_dict(context)
    services = get_services()
    scan = record_scan(build_scan_data(ctx, GeoResult.from_dict(geo), services.default_country))
    return scan.id
