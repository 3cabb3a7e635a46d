import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from ..errors import InvalidTransition, OrderRefused
from ..graphs.scan import ScanDependencies, run_scan_pipeline
from ..models.analysis import DishAnalysisResult, LocationData
from ..models.scan import AppState, PendingOrder
from .dish_analysis.ai_service import DishAnalysisClient
from .ordering.order_relay import OrderRelay
from .shared.background import BackgroundRunner, ResultSlot
from .shared.location_provider import LocationProvider
from .shared.s3_image_store import DishImageStore

logger = logging.getLogger(__name__)

NO_CONTACT_NOTICE = "No official contact number found for this restaurant."
UNKNOWN_RESTAURANT = "Unknown Restaurant"
UNKNOWN_DISH = "Unknown Dish"
UNEXPECTED_ERROR = "Something went wrong."


class ScanSession:
    """Per-user controller for the scan flow.

    IDLE -> (CAPTURING) -> ANALYZING -> RESULTS | ERROR -> IDLE (reset)

    ``analysis_result`` is only set in RESULTS and ``error_msg`` only in ERROR.
    A selection while a scan is ANALYZING is ignored. Every scan gets a
    generation token; a pipeline or upload that finishes after its scan was
    reset or superseded is discarded.
    """

    def __init__(self, analysis_client: DishAnalysisClient, location_provider: LocationProvider,
                 relay: OrderRelay, runner: BackgroundRunner,
                 image_store: Optional[DishImageStore] = None, jpeg_quality: float = 0.85):
        self.session_id = uuid.uuid4().hex
        self._analysis_client = analysis_client
        self._location_provider = location_provider
        self._relay = relay
        self._runner = runner
        self._image_store = image_store
        self._jpeg_quality = jpeg_quality

        self._lock = threading.RLock()
        self._generation = 0
        self._uploaded_image_url: ResultSlot[str] = ResultSlot()
        self._upload_generation = 0

        self.state = AppState.IDLE
        self.analysis_result: Optional[DishAnalysisResult] = None
        self.error_msg: Optional[str] = None
        self.image_preview: Optional[str] = None
        self.location: Optional[LocationData] = None
        self.pending_order: Optional[PendingOrder] = None

    @property
    def uploaded_image_url(self) -> Optional[str]:
        return self._uploaded_image_url.get()

    # ---------- capture ----------

    def capture(self, user_email: Optional[str]) -> bool:
        """Open the file picker. Returns False when the user must sign in first."""
        with self._lock:
            if not user_email:
                return False
            if self.state in (AppState.RESULTS, AppState.ERROR):
                raise InvalidTransition(f"Reset required before a new capture (state is {self.state.value})")
            if self.state == AppState.IDLE:
                self.state = AppState.CAPTURING
            return True

    def cancel_capture(self) -> None:
        with self._lock:
            if self.state == AppState.CAPTURING:
                self.state = AppState.IDLE

    # ---------- scan ----------

    def begin_scan(self) -> Optional[int]:
        """Enter ANALYZING. Returns the scan token, or None if a scan is already running."""
        with self._lock:
            if self.state == AppState.ANALYZING:
                logger.info("Session %s: scan already in progress, ignoring new selection", self.session_id)
                return None
            if self.state not in (AppState.IDLE, AppState.CAPTURING):
                raise InvalidTransition(f"Reset required before a new scan (state is {self.state.value})")
            self._generation += 1
            self.state = AppState.ANALYZING
            self.analysis_result = None
            self.error_msg = None
            self.image_preview = None
            self.location = None
            self.pending_order = None
            self._upload_generation = self._uploaded_image_url.arm()
            return self._generation

    def run_scan(self, token: int, image_bytes: bytes,
                 location_provider: Optional[LocationProvider] = None) -> AppState:
        """Run the pipeline for ``token`` and apply its outcome if the scan is still current."""
        deps = ScanDependencies(
            analysis_client=self._analysis_client,
            location_provider=location_provider or self._location_provider,
            start_upload=lambda data_uri: self._start_upload(token, data_uri),
            jpeg_quality=self._jpeg_quality,
        )
        try:
            final = run_scan_pipeline(image_bytes, deps)
        except Exception as e:
            logger.exception("Session %s: scan %s crashed", self.session_id, token)
            final = {"error": f"{UNEXPECTED_ERROR} ({type(e).__name__})"}

        with self._lock:
            if token != self._generation or self.state != AppState.ANALYZING:
                logger.info("Session %s: discarding stale scan %s", self.session_id, token)
                return self.state

            self.image_preview = final.get("image_data_uri")
            self.location = final.get("location")
            if final.get("error") or final.get("result") is None:
                self.error_msg = final.get("error") or UNEXPECTED_ERROR
                self.state = AppState.ERROR
            else:
                self.analysis_result = final["result"]
                self.state = AppState.RESULTS
            return self.state

    def select_file(self, image_bytes: bytes, location_provider: Optional[LocationProvider] = None) -> Optional[AppState]:
        """Begin and run a scan in one call. Returns None when the selection was ignored."""
        token = self.begin_scan()
        if token is None:
            return None
        return self.run_scan(token, image_bytes, location_provider)

    def _start_upload(self, token: int, data_uri: str) -> None:
        with self._lock:
            if token != self._generation:
                return
            self.image_preview = data_uri
            upload_generation = self._upload_generation
        if self._image_store is None:
            return
        self._runner.submit(
            "upload_dish_image",
            self._image_store.upload_data_uri,
            data_uri,
            on_success=lambda url: self._uploaded_image_url.offer(upload_generation, url),
        )

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self.state = AppState.IDLE
            self.analysis_result = None
            self.error_msg = None
            self.image_preview = None
            self.location = None
            self.pending_order = None
            self._uploaded_image_url.clear()

    # ---------- ordering ----------

    def request_order(self, index: int) -> PendingOrder:
        """Start an order for the grounding chunk at ``index``."""
        with self._lock:
            if self.state != AppState.RESULTS or self.analysis_result is None:
                raise InvalidTransition("No results to order from")
            chunks = self.analysis_result.grounding_chunks
            if not 0 <= index < len(chunks):
                raise InvalidTransition(f"No result at position {index}")

            chunk = chunks[index]
            if not chunk.phone_number:
                raise OrderRefused(NO_CONTACT_NOTICE)
            self.pending_order = PendingOrder(phone=chunk.phone_number, title=chunk.title or UNKNOWN_RESTAURANT)
            return self.pending_order

    def choose_provider(self, provider: str, user_email: Optional[str] = None) -> str:
        """Consume the pending order: report the lead and return the opened deep link."""
        with self._lock:
            order = self.pending_order
            if order is None:
                raise InvalidTransition("No pending order")
            dish_name = self.analysis_result.dish_name if self.analysis_result else UNKNOWN_DISH
            self.pending_order = None

        return self._relay.place_order(
            order, dish_name, provider,
            image_url=self.uploaded_image_url,
            user_email=user_email,
        )

    def dismiss_order(self) -> None:
        with self._lock:
            self.pending_order = None

    # ---------- views ----------

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.session_id,
                "state": self.state.value,
                "analysis_result": self.analysis_result.to_dict() if self.analysis_result else None,
                "error_msg": self.error_msg,
                "image_preview": self.image_preview,
                "uploaded_image_url": self.uploaded_image_url,
                "location": self.location.to_dict() if self.location else None,
                "pending_order": self.pending_order.to_dict() if self.pending_order else None,
            }


class ScanSessionRegistry:
    """In-memory map of session id -> ScanSession, built from shared services.

    Entries are kept in least-recently-used order. Sessions idle for longer
    than ``ttl_seconds`` are evicted, and at ``max_sessions`` the least
    recently used one makes room for the new one.
    """

    def __init__(self, factory, ttl_seconds: float = 1800.0, max_sessions: int = 1000,
                 clock=time.monotonic):
        self._factory = factory
        self.ttl = ttl_seconds
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        self._sessions: "OrderedDict[str, Tuple[ScanSession, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict(self, now: float) -> None:
        while self._sessions:
            session_id, (_, last_seen) = next(iter(self._sessions.items()))
            if now - last_seen <= self.ttl and len(self._sessions) < self.max_sessions:
                break
            del self._sessions[session_id]
            logger.debug("Evicted scan session %s", session_id)

    def get_or_create(self, session_id: Optional[str]) -> ScanSession:
        with self._lock:
            now = self._clock()
            entry = self._sessions.get(session_id) if session_id else None
            if entry is not None and now - entry[1] <= self.ttl:
                self._sessions[session_id] = (entry[0], now)
                self._sessions.move_to_end(session_id)
                return entry[0]

            self._evict(now)
            session = self._factory()
            self._sessions[session.session_id] = (session, now)
            return session

    def drop(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
