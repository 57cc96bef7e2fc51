"""
Worker component that manages the execution of operations in a separate thread.
"""

import concurrent.futures
import logging
from typing import Any, Coroutine, Optional, TypeVar

from cluster_gateway.config import GatewayConfig
from cluster_gateway.domain.worker import WorkerInterface
from cluster_gateway.infrastructure.event_loop import EventLoop

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Worker(WorkerInterface):
    """
    Worker that runs operation coroutines on a dedicated event loop thread.
    """

    def __init__(self, config: Optional[GatewayConfig] = None) -> None:
        """Initialize the Worker component."""
        config = config or GatewayConfig()
        self._event_loop = EventLoop(
            thread_name=config.worker_thread_name,
            use_uvloop=config.use_uvloop,
            shutdown_timeout=config.shutdown_timeout,
        )
        logger.debug("Worker initialized")

    def start(self) -> None:
        """Start the worker in a separate thread."""
        self._event_loop.start()
        logger.debug("Worker started")

    def run_coroutine(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        """
        Run a coroutine in the worker's event loop.

        Args:
            coro: The coroutine to run

        Returns:
            A future representing the result of the coroutine
        """
        return self._event_loop.run_coroutine(coro)

    def shutdown(self) -> None:
        """Shutdown the worker."""
        self._event_loop.shutdown()
        logger.debug("Worker shutdown completed")

    def is_running(self) -> bool:
        """Check if the worker is running."""
        return self._event_loop.is_running()
