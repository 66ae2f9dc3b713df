import threading
import time
from typing import Callable, Optional, Union


class UniqueClock:
    """Millisecond clock that never returns the same value twice.

    Items finishing within the same millisecond would otherwise get the same
    key and overwrite each other's object. When the wall clock has not moved
    past the last value handed out, the last value plus one millisecond is
    returned instead.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last_ms = 0
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            now_ms = round(self._clock() * 1000)
            if now_ms <= self._last_ms:
                now_ms = self._last_ms + 1
            self._last_ms = now_ms
        return now_ms / 1000


def make_key(
    owner_id: Union[int, str],
    extension: str,
    namespace: str = "protected",
    clock: Callable[[], float] = time.time,
) -> str:
    """Build an object key: ``<namespace>/<owner>/<millisecond timestamp>.<ext>``.

    Args:
        owner_id: Identity of the show owner the object belongs to.
        extension: File extension without the leading dot.
        namespace: Top-level key prefix.
        clock: Returns the current time in seconds (injectable for tests).

    Returns:
        str: The storage key.
    """
    timestamp_ms = round(clock() * 1000)
    return f"{namespace}/{owner_id}/{timestamp_ms}.{extension.lstrip('.')}"
