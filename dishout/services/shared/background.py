import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackgroundRunner:
    """Fire-and-forget executor for detached tasks (image upload, lead tracking).

    Failures are logged and never propagate to the caller. ``submit`` returns
    the future so tests and shutdown hooks can wait on it; request code never does.
    """

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dishout-bg")

    def submit(self, name: str, fn: Callable[..., T], *args,
               on_success: Optional[Callable[[T], Any]] = None, **kwargs) -> Future:
        def task():
            try:
                result = fn(*args, **kwargs)
                if on_success is not None:
                    on_success(result)
                return result
            except Exception:
                logger.exception("Background task %s failed", name)
                return None

        return self._executor.submit(task)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class ResultSlot(Generic[T]):
    """Best-effort, overwrite-on-arrival slot for a background result.

    ``arm`` starts a new generation and empties the slot; ``offer`` only lands
    if its generation is still current, so results of superseded work are dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._value: Optional[T] = None

    def arm(self) -> int:
        with self._lock:
            self._generation += 1
            self._value = None
            return self._generation

    def offer(self, generation: int, value: T) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self._value = value
            return True

    def clear(self) -> None:
        self.arm()

    def get(self) -> Optional[T]:
        with self._lock:
            return self._value
