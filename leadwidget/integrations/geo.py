"""
IP geolocation lookup for new conversations.

Best-effort only: private, loopback, and malformed addresses are skipped
without a request, and every network or payload problem degrades to an
unknown location. ``lookup`` never raises.
"""

import ipaddress
import logging
from typing import Optional, Protocol

import httpx

from leadwidget.config import settings
from leadwidget.schemas.widget_schema import GeoLocation

logger = logging.getLogger(__name__)

LOOKUP_FIELDS = "status,message,countryCode,city"


class GeoLookupService(Protocol):
    async def lookup(self, ip: Optional[str]) -> GeoLocation:
        ...


def is_public_ip(ip: Optional[str]) -> bool:
    """True only for a well-formed, globally routable address."""
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    )


class IpApiGeoLookup:
    """ip-api.com client returning country code and city."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        lookup_url: str = settings.geo.lookup_url,
        timeout: float = settings.geo.timeout_sec,
    ) -> None:
        self._client = client
        self._lookup_url = lookup_url
        self._timeout = timeout

    async def _get(self, url: str) -> httpx.Response:
        params = {"fields": LOOKUP_FIELDS}
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)

    async def lookup(self, ip: Optional[str]) -> GeoLocation:
        if not is_public_ip(ip):
            logger.debug("Skipping geo lookup for non-public address %r", ip)
            return GeoLocation.unknown()

        url = self._lookup_url.format(ip=ip.strip())
        try:
            response = await self._get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("Geo lookup failed for %s: %s", ip, e)
            return GeoLocation.unknown()
        except ValueError as e:
            logger.warning("Geo lookup returned invalid JSON for %s: %s", ip, e)
            return GeoLocation.unknown()

        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            logger.info("Geo lookup unsuccessful for %s: %s", ip, message)
            return GeoLocation.unknown()

        return GeoLocation(country_code=data.get("countryCode"), city=data.get("city"))
