"""Background delivery queue for backend requests."""

import asyncio
import concurrent.futures
import threading
from collections import defaultdict
from typing import Awaitable, Callable, Dict, Optional, Tuple

from ..core.interfaces import BackendTransport
from ..observability import get_logger

logger = get_logger(__name__)

DeliveryJob = Callable[[BackendTransport], Awaitable[None]]


class DeliveryQueue:
    """Executes backend jobs off the caller's thread, one at a time, in order.

    A daemon thread owns an asyncio loop and a bounded queue. Callers hand
    jobs over with ``submit`` and return immediately; failures are logged and
    counted, never raised back to the caller.
    """

    def __init__(
        self,
        transport: BackendTransport,
        max_queue_size: int = 1000,
        thread_name: str = "abbi-delivery",
    ):
        """Initialize the delivery queue.

        Args:
            transport: Transport the jobs run against.
            max_queue_size: Jobs beyond this many pending ones are dropped.
            thread_name: Name of the worker thread.
        """
        self.transport = transport
        self.max_queue_size = max_queue_size
        self.thread_name = thread_name

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

        self._counters: Dict[str, int] = defaultdict(int)

        # Thread safety
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """True while the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_closed(self) -> bool:
        """True once the queue has been shut down."""
        return self._closed

    def _ensure_running(self) -> None:
        """Start the worker thread on first use. Caller holds ``_lock``."""
        if self.is_running:
            return

        ready = threading.Event()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run,
            args=(ready,),
            name=self.thread_name,
            daemon=True,
        )
        self._thread.start()
        ready.wait()
        logger.debug("Delivery worker started", thread=self.thread_name)

    def _run(self, ready: threading.Event) -> None:
        asyncio.set_event_loop(self._loop)
        self._queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._worker = self._loop.create_task(self._worker_loop())
        ready.set()
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()

    def submit(self, job: DeliveryJob, label: str = "job") -> bool:
        """Queue a job for asynchronous delivery.

        Args:
            job: Coroutine function called with the transport.
            label: Short name used in logs.

        Returns:
            True if the job was handed to the worker, False after shutdown.
        """
        with self._lock:
            if self._closed:
                logger.warning("Delivery queue is shut down, dropping job", job=label)
                return False

            self._ensure_running()
            self._count("submitted")
            self._loop.call_soon_threadsafe(self._enqueue, job, label)
        return True

    def _enqueue(self, job: DeliveryJob, label: str) -> None:
        try:
            self._queue.put_nowait((job, label))
        except asyncio.QueueFull:
            self._count("dropped")
            logger.warning("Delivery queue full, dropping job", job=label, max_queue_size=self.max_queue_size)

    async def _worker_loop(self) -> None:
        while True:
            item: Tuple[DeliveryJob, str] = await self._queue.get()
            job, label = item
            try:
                await job(self.transport)
                self._count("delivered")
            except Exception as e:
                self._count("failed")
                logger.warning("Delivery failed", job=label, error=str(e))
            finally:
                self._queue.task_done()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every job submitted so far has been attempted.

        Returns:
            True if the queue drained within the timeout.
        """
        with self._lock:
            if not self.is_running:
                return True
            loop = self._loop

        if threading.current_thread() is self._thread:
            # A job cannot wait on the queue it runs in.
            return False

        future = asyncio.run_coroutine_threadsafe(self._queue.join(), loop)
        try:
            future.result(timeout)
            return True
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning("Timed out flushing delivery queue", timeout=timeout)
            return False

    async def _stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        await self.transport.close()

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Drain pending jobs, stop the worker and close the transport."""
        self.flush(timeout)

        with self._lock:
            if self._closed:
                return
            self._closed = True
            loop, thread = self._loop, self._thread

        if thread is None or not thread.is_alive():
            return

        future = asyncio.run_coroutine_threadsafe(self._stop(), loop)
        try:
            future.result(timeout)
        except Exception as e:
            logger.warning("Error while stopping delivery worker", error=str(e))

        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        logger.debug("Delivery worker stopped", thread=self.thread_name)

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            self._counters[counter] += 1

    def stats(self) -> Dict[str, int]:
        """Return delivery counters."""
        with self._stats_lock:
            stats = {
                "submitted": self._counters["submitted"],
                "delivered": self._counters["delivered"],
                "failed": self._counters["failed"],
                "dropped": self._counters["dropped"],
            }
        stats["pending"] = self._queue.qsize() if self._queue is not None else 0
        return stats
