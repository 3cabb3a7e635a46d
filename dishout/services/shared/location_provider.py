import ipaddress
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Optional

import requests

from ...errors import LocationUnavailable
from ...models.analysis import LocationData

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0

LocationLookup = Callable[[], LocationData]

# Lookups may outlive their caller after a timeout; they finish on this pool.
_LOOKUP_POOL = ThreadPoolExecutor(max_workers=4, thread_name_prefix="dishout-location")


class LocationProvider:
    """Single-attempt position lookup with a timeout.

    ``lookup`` is whatever source of position the deployment has (coordinates
    the browser posted, an IP geolocation service, ...). ``None`` means the
    platform has no location capability.
    """

    def __init__(self, lookup: Optional[LocationLookup] = None, timeout: float = DEFAULT_TIMEOUT_S):
        self._lookup = lookup
        self.timeout = timeout

    @property
    def supported(self) -> bool:
        return self._lookup is not None

    def get_location(self) -> LocationData:
        if self._lookup is None:
            raise LocationUnavailable("Geolocation not supported")

        future = _LOOKUP_POOL.submit(self._lookup)
        try:
            loc = future.result(timeout=self.timeout)
        except FutureTimeout as e:
            future.cancel()
            raise LocationUnavailable(f"Location lookup timed out after {self.timeout:g}s") from e
        except LocationUnavailable:
            raise
        except Exception as e:
            raise LocationUnavailable(f"Location lookup failed: {e}") from e

        if loc is None:
            raise LocationUnavailable("Location permission denied")
        return loc


def _coerce(latitude, longitude) -> Optional[LocationData]:
    try:
        lat, lng = float(latitude), float(longitude)
    except (TypeError, ValueError):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return LocationData(latitude=lat, longitude=lng)


def client_coordinates(latitude, longitude) -> LocationLookup:
    """Lookup returning coordinates the browser already resolved and posted with the upload."""

    def lookup() -> LocationData:
        loc = _coerce(latitude, longitude)
        if loc is None:
            raise LocationUnavailable("Client did not share a usable position")
        return loc

    return lookup


IP_PLACEHOLDER = "{ip}"


def public_ip(address: Optional[str]) -> Optional[str]:
    """``address`` if it is a globally routable IP, else None (private, loopback, malformed)."""
    try:
        ip = ipaddress.ip_address((address or "").strip())
    except ValueError:
        return None
    return str(ip) if ip.is_global else None


def ip_geolocation_lookup(url_template: str, client_ip: str, timeout: float = DEFAULT_TIMEOUT_S) -> LocationLookup:
    """Lookup of ``client_ip`` against a JSON geolocation endpoint exposing ``latitude``/``longitude``.

    ``url_template`` carries an ``{ip}`` placeholder, e.g. ``https://ipapi.co/{ip}/json/``,
    so the position is the caller's rather than the server's.
    """
    url = url_template.replace(IP_PLACEHOLDER, client_ip)

    def lookup() -> LocationData:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        data = resp.json() or {}
        loc = _coerce(data.get("latitude", data.get("lat")), data.get("longitude", data.get("lon")))
        if loc is None:
            raise LocationUnavailable(f"No coordinates in geolocation response for {client_ip}")
        return loc

    return lookup
