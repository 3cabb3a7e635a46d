from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict


class AppState(str, Enum):
    """Which screen the client shows; exactly one is active at a time."""
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"
    ANALYZING = "ANALYZING"
    RESULTS = "RESULTS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class PendingOrder:
    """Order the user asked for but has not yet routed to a delivery provider"""
    phone: str
    title: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Lead:
    """Analytics record of a user's intent to order a dish from a restaurant"""
    dish_name: str
    restaurant_name: str
    restaurant_phone: str
    timestamp: str
    user_email: Optional[str] = None
    dish_image_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
