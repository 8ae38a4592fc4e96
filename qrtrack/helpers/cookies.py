"""
Visitor identity and tracking cookies

Three cookies are issued per tracked scan:
    _qrt_visitor        pseudonymous visitor id (campaign cookie lifetime)
    _qrt_c_<campaign>   per-campaign visit marker (campaign cookie lifetime)
    _qrt_event          dedup event id shared with the browser pixel (7 days)
"""
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from werkzeug.http import dump_cookie, parse_cookie

VISITOR_COOKIE = "_qrt_visitor"
CAMPAIGN_COOKIE_PREFIX = "_qrt_c_"
EVENT_COOKIE = "_qrt_event"

# Facebook click / browser ids, forwarded verbatim to the Conversions API
FBC_COOKIE = "_fbc"
FBP_COOKIE = "_fbp"

MIN_VISITOR_ID_LENGTH = 10
EVENT_COOKIE_MAX_AGE = 60 * 60 * 24 * 7


@dataclass(frozen=True)
class TrackingCookie:
    name: str
    value: str
    expires: Optional[datetime] = None
    max_age: Optional[int] = None
    domain: Optional[str] = None

    def to_header(self) -> str:
        """Render as a Set-Cookie directive."""
        return dump_cookie(
            self.name,
            self.value,
            max_age=self.max_age,
            expires=self.expires,
            path="/",
            domain=self.domain,
            secure=True,
            samesite="Lax",
        )

    def apply(self, response):
        response.set_cookie(
            self.name,
            self.value,
            max_age=self.max_age,
            expires=self.expires,
            path="/",
            domain=self.domain,
            secure=True,
            samesite="Lax",
        )


def parse_cookie_header(cookie_header: Optional[str]) -> dict:
    if not cookie_header:
        return {}
    return dict(parse_cookie(cookie_header))


def _base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def generate_visitor_id() -> str:
    """Millisecond timestamp (base 36) followed by 12 random hex characters."""
    return f"{_base36(int(time.time() * 1000))}{secrets.token_hex(6)}"


def resolve_visitor(cookies) -> tuple:
    """
    Return (visitor_id, is_new_visitor) from a cookie mapping.

    A missing or too-short visitor cookie mints a fresh id; nothing here raises.
    """
    existing = (cookies or {}).get(VISITOR_COOKIE)
    if existing and len(existing) >= MIN_VISITOR_ID_LENGTH:
        return existing, False
    return generate_visitor_id(), True


def campaign_cookie_name(campaign_id) -> str:
    return f"{CAMPAIGN_COOKIE_PREFIX}{campaign_id}"


def has_visited_campaign(cookies, campaign_id) -> bool:
    return bool((cookies or {}).get(campaign_cookie_name(campaign_id)))


def extract_click_ids(cookies) -> tuple:
    cookies = cookies or {}
    return cookies.get(FBC_COOKIE) or None, cookies.get(FBP_COOKIE) or None


def cookie_expiry(duration_days: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=duration_days)


def build_tracking_cookies(visitor_id, campaign_id, event_id, expires_at, domain=None) -> list:
    """
    The visitor and campaign cookies follow the campaign cookie lifetime;
    the event cookie only lives for the dedup window.
    """
    return [
        TrackingCookie(VISITOR_COOKIE, visitor_id, expires=expires_at, domain=domain),
        TrackingCookie(campaign_cookie_name(campaign_id), "1", expires=expires_at, domain=domain),
        TrackingCookie(EVENT_COOKIE, event_id, expires=expires_at, max_age=EVENT_COOKIE_MAX_AGE, domain=domain),
    ]


def apply_tracking_cookies(response, cookies):
    for cookie in cookies:
        cookie.apply(response)
    return response
