import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import quote

from ...models.scan import Lead, PendingOrder
from ..shared.background import BackgroundRunner
from ..shared.dynamodb_store import LeadStore

logger = logging.getLogger(__name__)

WHATSAPP_BASE_URL = "https://wa.me"
APP_NAME = "DishOut"

# characters encodeURIComponent leaves alone besides [A-Za-z0-9_.-~]
_URI_COMPONENT_SAFE = "!*'()"


def digits_only(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def compose_order_message(restaurant: str, dish_name: str, provider: str,
                          image_url: Optional[str] = None) -> str:
    message = f"Hello, I found {restaurant} on {APP_NAME}. I'd like to order {dish_name} via {provider}."
    if image_url:
        message += f" Dish Reference: {image_url}"
    return message


def build_whatsapp_link(phone: str, message: str, base_url: str = WHATSAPP_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{digits_only(phone)}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class OrderRelay:
    """Turns a pending order into a messaging deep link and reports the lead.

    The lead report runs on the background runner and is never awaited; the
    link is handed to ``opener`` (``webbrowser.open_new_tab`` in the CLI, none
    for the HTTP API where the client opens it).
    """

    def __init__(self, runner: BackgroundRunner, lead_store: Optional[LeadStore] = None,
                 opener: Optional[Callable[[str], object]] = None,
                 base_url: str = WHATSAPP_BASE_URL):
        self._runner = runner
        self._lead_store = lead_store
        self._opener = opener
        self._base_url = base_url

    def place_order(self, order: PendingOrder, dish_name: str, provider: str,
                    image_url: Optional[str] = None, user_email: Optional[str] = None) -> str:
        clean_phone = digits_only(order.phone)
        message = compose_order_message(order.title, dish_name, provider, image_url)
        url = build_whatsapp_link(clean_phone, message, self._base_url)

        self.report_lead(Lead(
            dish_name=dish_name,
            restaurant_name=order.title,
            restaurant_phone=clean_phone,
            user_email=user_email,
            timestamp=utc_timestamp(),
            dish_image_url=image_url,
        ))

        if self._opener is not None:
            self._opener(url)
        return url

    def report_lead(self, lead: Lead) -> None:
        if self._lead_store is None:
            logger.info("Lead tracking disabled; dropping lead for %s", lead.restaurant_name)
            return
        self._runner.submit("track_lead", self._lead_store.track_lead, lead)
