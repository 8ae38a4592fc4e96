"""
BigDataCloud IP Geolocation client
Network-topology geolocation: suburb-level precision with a confidence radius.
"""
import logging
import math

import requests

from .geo import GeoResult, SOURCE_PRIMARY, is_private_ip

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.bigdatacloud.net"
ENDPOINT = "/data/ip-geolocation-full"


def _or_none(value):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    return value if isinstance(value, str) and value else None


def _float_or_none(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _section(data, key):
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def parse_geolocation(data) -> GeoResult:
    """Map an ip-geolocation-full response to a GeoResult."""
    location = _section(data, "location")
    country = _section(data, "country")
    network = _section(data, "network")
    confidence = _section(data, "confidenceArea")
    hazard = _section(data, "hazardReport")

    return GeoResult(
        locality_name=_or_none(location.get("localityName")),
        city=_or_none(location.get("city")),
        postcode=_or_none(location.get("postcode")),
        state=_or_none(location.get("isoPrincipalSubdivision")),
        state_code=_or_none(location.get("isoPrincipalSubdivisionCode")),
        country=_or_none(country.get("name")),
        country_code=_or_none(country.get("isoAlpha2")),
        latitude=_float_or_none(location.get("latitude")),
        longitude=_float_or_none(location.get("longitude")),
        confidence_radius_km=_float_or_none(confidence.get("radius")),
        geo_source=SOURCE_PRIMARY,
        isp_name=_or_none(network.get("organisation")),
        network_type=_or_none(network.get("networkType")),
        connection_type=_or_none(network.get("connectionType")),
        is_vpn=bool(hazard.get("isKnownAsVpn")),
        is_proxy=bool(hazard.get("isKnownAsProxy")),
        is_tor=bool(hazard.get("isKnownAsTorServer")),
    )


class BigDataCloudClient:
    """Never raises: every failure degrades to GeoResult.fallback()."""

    def __init__(self, api_key, timeout=0.4, api_base=DEFAULT_API_BASE, session=None):
        self.api_key = api_key
        self.timeout = timeout
        self.api_base = (api_base or DEFAULT_API_BASE).rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def fetch(self, ip) -> GeoResult:
        if not self.api_key:
            logger.warning("BigDataCloud API key not configured, using fallback")
            return GeoResult.fallback()

        if is_private_ip(ip):
            logger.debug("Private IP %s, skipping BigDataCloud lookup", ip)
            return GeoResult.fallback()

        try:
            response = self.session.get(
                f"{self.api_base}{ENDPOINT}",
                params={"ip": ip, "key": self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("BigDataCloud request failed: %s", e)
            return GeoResult.fallback()

        if not response.ok:
            logger.error("BigDataCloud API error: %s", response.status_code)
            return GeoResult.fallback()

        try:
            data = response.json()
        except ValueError:
            logger.error("BigDataCloud returned malformed JSON")
            return GeoResult.fallback()

        if not isinstance(data, dict):
            logger.error("BigDataCloud returned unexpected payload type %s", type(data).__name__)
            return GeoResult.fallback()

        try:
            return parse_geolocation(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("BigDataCloud returned an unexpected payload shape: %s", e)
            return GeoResult.fallback()
