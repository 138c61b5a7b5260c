"""Dispatchers that run SDK callbacks on the host's main execution context."""

import asyncio
import threading
from collections import deque
from typing import Any, Callable, Deque, Optional

from ..core.interfaces import CallbackDispatcher
from ..observability import get_logger

logger = get_logger(__name__)


def _run_callback(callback: Callable[[], Any]) -> None:
    try:
        callback()
    except Exception as e:
        logger.error("Main-context callback failed", callback=getattr(callback, "__name__", repr(callback)), error=str(e), exc_info=True)


class QueuedDispatcher(CallbackDispatcher):
    """Queues callbacks until the host drains them from its main loop.

    Hosts without an asyncio loop call ``run_pending()`` periodically from the
    thread that owns their UI or main control flow.
    """

    def __init__(self):
        self._pending: Deque[Callable[[], Any]] = deque()
        self._lock = threading.Lock()

    def post(self, callback: Callable[[], Any]) -> None:
        with self._lock:
            self._pending.append(callback)

    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        with self._lock:
            return len(self._pending)

    def run_pending(self) -> int:
        """Run the callbacks queued so far.

        Callbacks posted while draining wait for the next call.

        Returns:
            Number of callbacks run.
        """
        with self._lock:
            batch = list(self._pending)
            self._pending.clear()

        for callback in batch:
            _run_callback(callback)
        return len(batch)


class LoopDispatcher(CallbackDispatcher):
    """Schedules callbacks on an asyncio event loop owned by the host.

    Once that loop is closed (e.g. the client was created inside a
    short-lived ``asyncio.run``), callbacks are queued instead and run on
    the next ``run_pending()``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.fallback = QueuedDispatcher()
        self._warned = False

    def post(self, callback: Callable[[], Any]) -> None:
        if not self.loop.is_closed():
            try:
                self.loop.call_soon_threadsafe(_run_callback, callback)
                return
            except RuntimeError:
                # Closed between the check and the call
                pass

        if not self._warned:
            self._warned = True
            logger.warning("Host event loop is closed, queueing callbacks for run_pending()")
        self.fallback.post(callback)

    def run_pending(self) -> int:
        return self.fallback.run_pending()


class ImmediateDispatcher(CallbackDispatcher):
    """Runs callbacks inline on whichever thread posts them."""

    def post(self, callback: Callable[[], Any]) -> None:
        _run_callback(callback)


def default_dispatcher() -> CallbackDispatcher:
    """Pick a dispatcher for the calling context.

    Inside a running asyncio loop callbacks go to that loop; otherwise they
    are queued for ``run_pending``. Hosts whose loop outlives the client
    creation call should pass a dispatcher explicitly.
    """
    loop: Optional[asyncio.AbstractEventLoop]
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        return LoopDispatcher(loop)
    return QueuedDispatcher()
