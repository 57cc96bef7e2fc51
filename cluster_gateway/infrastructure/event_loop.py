"""
EventLoop component that owns the dispatcher's event loop.
The loop always runs in its own daemon thread, isolated from any loop the
caller may be running.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

import uvloop

from cluster_gateway.exceptions import WorkerNotRunningError

logger = logging.getLogger(__name__)
T = TypeVar("T")


class EventLoop:
    """
    Dedicated event loop running in a daemon thread.
    """

    def __init__(
        self,
        thread_name: str = "GatewayWorkerThread",
        use_uvloop: bool = True,
        shutdown_timeout: float = 5.0,
    ) -> None:
        """Initialize the EventLoop."""
        self._thread_name = thread_name
        self._use_uvloop = use_uvloop
        self._shutdown_timeout = shutdown_timeout
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._is_running = False
        self._lock = threading.Lock()
        logger.debug("EventLoop initialized")

    def start(self) -> None:
        """Start the event loop if not already running."""
        with self._lock:
            if self._is_running:
                logger.debug("EventLoop is already running")
                return

            try:
                self._loop = uvloop.new_event_loop() if self._use_uvloop else asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_forever, name=self._thread_name, daemon=True
                )
                self._thread.start()
                self._is_running = True
                logger.info(f"Started event loop in thread {self._thread_name}")
            except Exception as e:
                logger.error(f"Failed to start event loop: {e}")
                self._loop = None
                self._thread = None
                raise WorkerNotRunningError(f"Failed to start event loop: {e}") from e

    def _run_forever(self) -> None:
        loop = self._loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        except Exception as e:
            logger.error(f"Error in event loop: {e}")

    def run_coroutine(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        """
        Run a coroutine in the event loop from any thread.

        Raises:
            WorkerNotRunningError: If the loop is not running
        """
        if not self._is_running:
            try:
                self.start()
            except WorkerNotRunningError:
                coro.close()
                raise

        loop = self._loop
        if loop is None or loop.is_closed():
            coro.close()
            raise WorkerNotRunningError("No event loop available")

        return asyncio.run_coroutine_threadsafe(coro, loop)

    def get_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """Get the current event loop."""
        if not self._is_running:
            self.start()
        return self._loop

    def shutdown(self) -> None:
        """Cancel outstanding tasks, stop the loop and join its thread."""
        with self._lock:
            if not self._is_running:
                return

            loop, thread = self._loop, self._thread
            # Waiting on the loop from its own thread would deadlock.
            in_loop_thread = thread is threading.current_thread()
            try:
                logger.info("Shutting down event loop")
                if not loop.is_closed():
                    drained = asyncio.run_coroutine_threadsafe(_cancel_outstanding_tasks(), loop)
                    if not in_loop_thread:
                        try:
                            drained.result(timeout=self._shutdown_timeout)
                        except concurrent.futures.TimeoutError:
                            logger.warning("Timed out cancelling outstanding tasks")
                    loop.call_soon_threadsafe(loop.stop)

                if thread and thread.is_alive() and not in_loop_thread:
                    thread.join(timeout=self._shutdown_timeout)
                    if thread.is_alive():
                        logger.warning("Event loop thread did not terminate gracefully")

                if not loop.is_running() and not loop.is_closed():
                    loop.close()
            except Exception as e:
                logger.error(f"Error during shutdown: {e}")
            finally:
                self._loop = None
                self._thread = None
                self._is_running = False

    def is_running(self) -> bool:
        """Check if the event loop is running."""
        return self._is_running and self._loop is not None and not self._loop.is_closed()

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread


async def _cancel_outstanding_tasks() -> None:
    current = asyncio.current_task()
    tasks = [task for task in asyncio.all_tasks() if task is not current]
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
