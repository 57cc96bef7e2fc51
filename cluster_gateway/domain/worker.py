"""
Domain interface for the Worker component.
"""

import concurrent.futures
from typing import Any, Coroutine, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class WorkerInterface(Protocol):
    """
    Interface for the Worker component.
    Defines the contract that all Worker implementations must follow.
    """

    def start(self) -> None:
        """
        Start the worker.
        """
        ...

    def run_coroutine(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        """
        Run a coroutine in the worker's event loop.

        Args:
            coro: The coroutine to run

        Returns:
            A future representing the result of the coroutine
        """
        ...

    def shutdown(self) -> None:
        """
        Shutdown the worker.
        """
        ...

    def is_running(self) -> bool:
        """
        Check if the worker is running.
        """
        ...
