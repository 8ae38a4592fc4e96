"""
Outbound clients and secrets shared by the tracking pipeline.
Built once per app in create_app() and stored on app.extensions.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from .helpers.bigdatacloud import BigDataCloudClient
from .helpers.crypto import TokenCipher
from .helpers.geo import GeoResolver
from .helpers.meta_capi import MetaConversionsClient

logger = logging.getLogger(__name__)

EXTENSION_KEY = "qrtrack.services"


def lookup_locality(postcode):
    """(locality_name, state) of the most populous locality for a postcode."""
    from .models import Locality

    locality = Locality.most_populous_for_postcode(postcode)
    if locality is None:
        return None
    return locality.locality_name, locality.state


@dataclass
class TrackingServices:
    geo_resolver: GeoResolver
    meta_client: MetaConversionsClient
    cipher: TokenCipher
    ip_salt: Optional[str]
    default_country: str = "au"

    @classmethod
    def from_config(cls, config):
        cipher = TokenCipher(config.get("ENCRYPTION_KEY"))
        geo_client = BigDataCloudClient(
            api_key=config.get("BIGDATACLOUD_API_KEY"),
            timeout=config.get("GEO_TIMEOUT_SECONDS", 0.4),
            api_base=config.get("BIGDATACLOUD_API_BASE"),
        )
        meta_client = MetaConversionsClient(
            cipher=cipher,
            api_base=config.get("META_GRAPH_API_BASE"),
            api_version=config.get("META_GRAPH_API_VERSION"),
            timeout=config.get("META_CAPI_TIMEOUT_SECONDS", 5),
            default_country=config.get("DEFAULT_COUNTRY_CODE", "au"),
            test_event_code=config.get("META_TEST_EVENT_CODE"),
        )
        return cls(
            geo_resolver=GeoResolver(geo_client, locality_lookup=lookup_locality),
            meta_client=meta_client,
            cipher=cipher,
            ip_salt=config.get("IP_HASH_SALT"),
            default_country=config.get("DEFAULT_COUNTRY_CODE", "au"),
        )


def init_services(app, services=None):
    config = app.config
    if not config.get("BIGDATACLOUD_API_KEY"):
        logger.warning("BIGDATACLOUD_API_KEY not set - geolocation falls back to edge headers")
    if not config.get("ENCRYPTION_KEY"):
        logger.warning("ENCRYPTION_KEY not set - encrypted Meta tokens cannot be used")
    if not config.get("IP_HASH_SALT"):
        logger.warning("IP_HASH_SALT not set - IP hashes use an empty salt")

    services = services or TrackingServices.from_config(config)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> TrackingServices:
    return current_app.extensions[EXTENSION_KEY]
