from dataclasses import dataclass
from typing import TypedDict, Optional, Dict, Any, Callable

from ....models.analysis import DishAnalysisResult, LocationData
from ....services.dish_analysis.ai_service import DishAnalysisClient
from ....services.shared.location_provider import LocationProvider


@dataclass
class ScanDependencies:
    """Collaborators the scan nodes call out to."""
    analysis_client: DishAnalysisClient
    location_provider: LocationProvider
    start_upload: Optional[Callable[[str], None]] = None
    jpeg_quality: float = 0.85


class ScanState(TypedDict):
    """State for the scan graph workflow."""

    # Input parameters
    image_bytes: bytes
    deps: ScanDependencies

    # Normalization results
    image_data_uri: Optional[str]

    # Location results (best-effort)
    location: Optional[LocationData]

    # Analysis results
    result: Optional[DishAnalysisResult]

    # Performance tracking
    timings: Dict[str, float]   # per-node ms
    total_ms: Optional[float]

    # Debug and error handling
    debug: Dict[str, Any]
    error: Optional[str]
    error_stage: Optional[str]  # "normalize" | "identify"
