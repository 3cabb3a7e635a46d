import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional

from .dish_analysis.ai_service import DishAnalysisClient
from .ordering.order_relay import OrderRelay
from .scan_session import ScanSession, ScanSessionRegistry
from .shared.background import BackgroundRunner
from .shared.dynamodb_store import LeadStore
from .shared.gemini.gemini_client import make_client
from .shared.location_provider import (
    IP_PLACEHOLDER, LocationProvider, client_coordinates, ip_geolocation_lookup, public_ip
)
from .shared.s3_image_store import DishImageStore

logger = logging.getLogger(__name__)


@dataclass
class DishOutServices:
    """Process-wide collaborators, built once at startup and injected everywhere."""
    analysis_client: DishAnalysisClient
    runner: BackgroundRunner
    relay: OrderRelay
    registry: Optional[ScanSessionRegistry]
    image_store: Optional[DishImageStore]
    lead_store: Optional[LeadStore]
    location_lookup_url: Optional[str]
    location_timeout: float
    jpeg_quality: float
    delivery_providers: List[str]

    def new_session(self) -> ScanSession:
        return ScanSession(
            analysis_client=self.analysis_client,
            location_provider=self.location_provider(),
            relay=self.relay,
            runner=self.runner,
            image_store=self.image_store,
            jpeg_quality=self.jpeg_quality,
        )

    def location_provider(self, latitude=None, longitude=None, client_ip: Optional[str] = None) -> LocationProvider:
        """Provider for one scan.

        Coordinates the client posted win; otherwise the client's public IP is
        geolocated when a lookup URL is configured. Without either the scan runs
        without a location.
        """
        if latitude not in (None, "") and longitude not in (None, ""):
            return LocationProvider(client_coordinates(latitude, longitude), timeout=self.location_timeout)
        lookup = None
        ip = public_ip(client_ip)
        if self.location_lookup_url and ip:
            lookup = ip_geolocation_lookup(self.location_lookup_url, ip, self.location_timeout)
        return LocationProvider(lookup, timeout=self.location_timeout)

    def shutdown(self, wait: bool = True) -> None:
        self.runner.shutdown(wait=wait)


def build_services(cfg: Mapping[str, Any], genai_client=None,
                   image_store: Optional[DishImageStore] = None,
                   lead_store: Optional[LeadStore] = None,
                   opener: Optional[Callable[[str], object]] = None) -> DishOutServices:
    """Wire the services from a config mapping (``app.config`` or a Config class' attributes)."""
    if genai_client is None:
        try:
            genai_client = make_client(cfg.get("GEMINI_API_KEY") or "")
        except RuntimeError as e:
            logger.warning("Gemini client not configured: %s", e)

    region = cfg.get("AWS_REGION")
    if image_store is None and cfg.get("DISH_IMAGE_BUCKET"):
        image_store = DishImageStore(cfg["DISH_IMAGE_BUCKET"], region, cfg.get("DISH_IMAGE_PUBLIC_BASE_URL"))
    if lead_store is None and cfg.get("LEADS_TABLE"):
        lead_store = LeadStore(cfg["LEADS_TABLE"], region)

    timeout = float(cfg.get("LOCATION_TIMEOUT_S") or 10.0)
    lookup_url = cfg.get("LOCATION_LOOKUP_URL")
    if lookup_url and IP_PLACEHOLDER not in lookup_url:
        logger.warning("LOCATION_LOOKUP_URL has no %s placeholder; IP geolocation disabled", IP_PLACEHOLDER)
        lookup_url = None
    runner = BackgroundRunner(max_workers=int(cfg.get("BACKGROUND_WORKERS") or 4))

    services = DishOutServices(
        analysis_client=DishAnalysisClient(genai_client, model=cfg.get("DEFAULT_MODEL") or "gemini-2.5-flash"),
        runner=runner,
        relay=OrderRelay(runner, lead_store, opener=opener,
                         base_url=cfg.get("WHATSAPP_BASE_URL") or "https://wa.me"),
        registry=None,
        image_store=image_store,
        lead_store=lead_store,
        location_lookup_url=lookup_url,
        location_timeout=timeout,
        jpeg_quality=float(cfg.get("JPEG_QUALITY") or 0.85),
        delivery_providers=list(cfg.get("DELIVERY_PROVIDERS") or []),
    )
    services.registry = ScanSessionRegistry(
        services.new_session,
        ttl_seconds=float(cfg.get("SCAN_SESSION_TTL_S") or 1800.0),
        max_sessions=int(cfg.get("MAX_SCAN_SESSIONS") or 1000),
    )
    return services


def config_mapping(config_class) -> dict:
    """Upper-case attributes of a Config class as a plain dict."""
    return {k: getattr(config_class, k) for k in dir(config_class) if k.isupper()}
