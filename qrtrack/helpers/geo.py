"""
Geolocation resolution

Combines two sources:
    primary  - BigDataCloud network-topology lookup (suburb precision, confidence radius)
    edge     - x-vercel-ip-* headers injected by the edge network (postcode precision)

The primary result is used verbatim when its confidence is high or medium;
otherwise missing fields are filled from the edge headers.
"""
import ipaddress
import logging
import re
from dataclasses import dataclass, asdict, fields, replace
from typing import Optional
from urllib.parse import unquote

logger = logging.getLogger(__name__)

SOURCE_PRIMARY = "bigdatacloud"
SOURCE_EDGE = "vercel"
SOURCE_FALLBACK = "fallback"

# Confidence radius thresholds in km (upper bounds, exclusive)
CONFIDENCE_HIGH_KM = 1
CONFIDENCE_MEDIUM_KM = 5
CONFIDENCE_LOW_KM = 20

AUSTRALIAN_STATES = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "WA": "Western Australia",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "ACT": "Australian Capital Territory",
    "NT": "Northern Territory",
}

AU_POSTCODE = re.compile(r"^[0-9]{4}$")


@dataclass
class GeoResult:
    locality_name: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    confidence_radius_km: Optional[float] = None
    geo_source: str = SOURCE_FALLBACK
    isp_name: Optional[str] = None
    network_type: Optional[str] = None
    connection_type: Optional[str] = None
    is_vpn: bool = False
    is_proxy: bool = False
    is_tor: bool = False

    @classmethod
    def fallback(cls):
        return cls()

    @classmethod
    def from_dict(cls, data):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    def to_dict(self):
        return asdict(self)

    @property
    def confidence_level(self):
        return confidence_level(self.confidence_radius_km)

    @property
    def is_anonymized(self):
        """VPN / proxy / Tor traffic - still tracked, but flagged."""
        return self.is_vpn or self.is_proxy or self.is_tor


@dataclass(frozen=True)
class EdgeGeo:
    country: Optional[str] = None
    country_region: Optional[str] = None  # state code, e.g. NSW
    city: Optional[str] = None
    postal_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


def _header(headers, name):
    value = headers.get(name) if headers is not None else None
    if value is None or value == "":
        return None
    return unquote(value)


def _float_header(headers, name):
    value = _header(headers, name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def edge_geo_from_headers(headers) -> EdgeGeo:
    return EdgeGeo(
        country=_header(headers, "x-vercel-ip-country"),
        country_region=_header(headers, "x-vercel-ip-country-region"),
        city=_header(headers, "x-vercel-ip-city"),
        postal_code=_header(headers, "x-vercel-ip-postal-code"),
        latitude=_float_header(headers, "x-vercel-ip-latitude"),
        longitude=_float_header(headers, "x-vercel-ip-longitude"),
    )


def extract_client_ip(headers, remote_addr=None) -> str:
    real_ip = headers.get("x-real-ip") if headers is not None else None
    if real_ip:
        return real_ip.strip()

    forwarded_for = headers.get("x-forwarded-for") if headers is not None else None
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    return remote_addr or "0.0.0.0"


def is_private_ip(ip) -> bool:
    """Private, loopback, link-local, reserved or unparsable addresses are never looked up."""
    try:
        address = ipaddress.ip_address((ip or "").strip())
    except ValueError:
        return True
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


def state_name(region_code) -> Optional[str]:
    if not region_code:
        return None
    return AUSTRALIAN_STATES.get(region_code.upper(), region_code)


def is_valid_au_postcode(postcode) -> bool:
    return bool(postcode) and bool(AU_POSTCODE.match(postcode))


def confidence_level(radius_km) -> str:
    if radius_km is None:
        return "unreliable"
    if radius_km < CONFIDENCE_HIGH_KM:
        return "high"
    if radius_km < CONFIDENCE_MEDIUM_KM:
        return "medium"
    if radius_km < CONFIDENCE_LOW_KM:
        return "low"
    return "unreliable"


def _missing(value):
    return value is None or value == ""


def merge_geo(primary: GeoResult, edge: EdgeGeo) -> GeoResult:
    """
    Fill the gaps of a low-confidence primary result from edge headers.

    Primary values always win where present. The merged geo_source names the
    source that supplied the location (locality, else postcode).
    """
    if primary.confidence_level in ("high", "medium"):
        return primary

    filled = {}
    candidates = {
        "locality_name": edge.city,
        "city": edge.city,
        "postcode": edge.postal_code,
        "state": state_name(edge.country_region),
        "state_code": edge.country_region,
        "country_code": edge.country,
        "latitude": edge.latitude,
        "longitude": edge.longitude,
    }
    for name, edge_value in candidates.items():
        if _missing(getattr(primary, name)) and not _missing(edge_value):
            filled[name] = edge_value

    if not _missing(primary.locality_name):
        source = primary.geo_source
    elif "locality_name" in filled:
        source = SOURCE_EDGE
    elif not _missing(primary.postcode):
        source = primary.geo_source
    elif "postcode" in filled:
        source = SOURCE_EDGE
    else:
        source = primary.geo_source

    return replace(primary, geo_source=source, **filled)


class GeoResolver:
    """
    Primary lookup + edge merge + locality naming.

    locality_lookup(postcode) -> (locality_name, state) | None is used to name
    the most populous locality when the postcode only came from edge headers.
    """

    def __init__(self, client, locality_lookup=None):
        self.client = client
        self.locality_lookup = locality_lookup

    def resolve(self, ip, headers) -> GeoResult:
        primary = self.client.fetch(ip)
        edge = edge_geo_from_headers(headers)
        merged = merge_geo(primary, edge)

        if (
            self.locality_lookup is not None
            and merged.geo_source == SOURCE_EDGE
            and _missing(primary.postcode)
            and is_valid_au_postcode(merged.postcode)
        ):
            merged = self._refine_locality(merged)

        logger.debug(
            "Geo resolved: locality=%s postcode=%s radius=%s (%s) source=%s",
            merged.locality_name, merged.postcode, merged.confidence_radius_km,
            merged.confidence_level, merged.geo_source,
        )
        return merged

    def _refine_locality(self, geo):
        try:
            match = self.locality_lookup(geo.postcode)
        except Exception:
            logger.exception("Locality lookup failed for postcode %s", geo.postcode)
            return geo
        if not match:
            return geo
        name, state = match
        return replace(geo, locality_name=name or geo.locality_name, state=state or geo.state)
