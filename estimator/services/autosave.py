"""
Debounced autosave.

Each row id owns at most one PendingWrite. Scheduling a new write for the
same row cancels the previous token first, so rapid edits collapse into a
single store call. A write that has already started is never interrupted.
"""
import logging
import threading
from typing import Any, Callable, Dict, Hashable, List, Optional

logger = logging.getLogger(__name__)


class PendingWrite:
    """A cancellable delayed call."""

    def __init__(self, key: Hashable, delay: float, callback: Callable[[], Any],
                 on_done: Optional[Callable[['PendingWrite', Optional[BaseException]], None]] = None):
        self.key = key
        self.delay = delay
        self._callback = callback
        self._on_done = on_done
        self._lock = threading.Lock()
        self._state = 'pending'
        self._timer: Optional[threading.Timer] = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state == 'pending'

    def start(self) -> None:
        self._timer = threading.Timer(self.delay, self.run)
        self._timer.daemon = True
        self._timer.start()

    def cancel(self) -> bool:
        """Cancel if not yet fired. Returns True when the write was dropped."""
        with self._lock:
            if self._state != 'pending':
                return False
            self._state = 'cancelled'
        if self._timer is not None:
            self._timer.cancel()
        return True

    def run(self) -> bool:
        """Fire now (timer thread or flush). Returns False if already settled."""
        with self._lock:
            if self._state != 'pending':
                return False
            self._state = 'running'
        if self._timer is not None:
            self._timer.cancel()

        error = None
        try:
            self._callback()
        except Exception as e:  # reported through on_done
            error = e
        finally:
            self._state = 'failed' if error else 'done'
            if self._on_done:
                self._on_done(self, error)
        return True


class DebouncedWriter:
    """
    Per-key debounce for store writes.

    delay <= 0 runs the write inline, which keeps tests deterministic.
    """

    def __init__(self, delay_seconds: float = 0.5,
                 on_error: Optional[Callable[[Hashable, BaseException], None]] = None):
        self.delay = delay_seconds
        self._on_error = on_error
        self._lock = threading.Lock()
        self._pending: Dict[Hashable, PendingWrite] = {}

    def schedule(self, key: Hashable, callback: Callable[[], Any]) -> PendingWrite:
        token = PendingWrite(key, self.delay, callback, on_done=self._settled)
        with self._lock:
            previous = self._pending.get(key)
            if previous is not None and previous.cancel():
                logger.debug(f"[AUTOSAVE] Superseded pending write for {key}")
            self._pending[key] = token

        if self.delay <= 0:
            token.run()
        else:
            token.start()
        return token

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            token = self._pending.pop(key, None)
        return bool(token and token.cancel())

    def cancel_all(self) -> int:
        with self._lock:
            tokens = list(self._pending.values())
            self._pending.clear()
        return sum(1 for token in tokens if token.cancel())

    def flush(self) -> int:
        """Run every pending write now, in the calling thread."""
        with self._lock:
            tokens = [t for t in self._pending.values() if t.is_pending]
        return sum(1 for token in tokens if token.run())

    def pending_keys(self) -> List[Hashable]:
        with self._lock:
            return [key for key, token in self._pending.items() if token.is_pending]

    def shutdown(self, flush: bool = True) -> None:
        if flush:
            self.flush()
        self.cancel_all()

    def _settled(self, token: PendingWrite, error: Optional[BaseException]) -> None:
        with self._lock:
            if self._pending.get(token.key) is token:
                del self._pending[token.key]
        if error is not None:
            logger.error(f"[AUTOSAVE] Write for {token.key} failed: {error}")
            if self._on_error:
                self._on_error(token.key, error)
