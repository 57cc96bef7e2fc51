"""
ActionFuture: the single-assignment completion handle returned for every
submitted operation.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from cluster_gateway.domain.listener import ActionListener
from cluster_gateway.exceptions import (
    ContractViolationError,
    OperationCancelledError,
    OperationTimeoutError,
)

logger = logging.getLogger(__name__)
T = TypeVar("T")

ListenerNotifier = Callable[[ActionListener, "ActionFuture[Any]"], None]


class FutureState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class ActionFuture(Generic[T]):
    """
    Holds exactly one of a response or an error once the operation completes.

    Any number of threads may block in ``get`` concurrently; all of them
    observe the same terminal value. Listeners added through ``add_listener``
    are handed to ``notifier``, which runs them on another thread, so a
    listener never runs inside the call that registered it.

    Only the dispatcher resolves a future. Resolving twice raises
    ``ContractViolationError``.
    """

    def __init__(self, notifier: ListenerNotifier) -> None:
        self._condition = threading.Condition()
        self._state = FutureState.PENDING
        self._response: Optional[T] = None
        self._error: Optional[BaseException] = None
        self._listeners: List[ActionListener] = []
        self._notifier = notifier
        self._canceller: Optional[Callable[[], bool]] = None

    def get(self, timeout: Optional[float] = None) -> T:
        """
        Wait for the operation and return its response.

        Args:
            timeout: Maximum time to wait in seconds, None waits forever

        Returns:
            The operation response

        Raises:
            OperationTimeoutError: If the deadline elapsed first; the operation
                keeps running and the future still resolves later
            GatewayError: The classified failure of the operation
        """
        with self._condition:
            if not self._condition.wait_for(self._is_terminal, timeout=timeout):
                raise OperationTimeoutError(
                    f"Operation did not complete within {timeout} seconds",
                    details={"timeout": timeout},
                )
            if self._state is FutureState.FAILED:
                raise self._error
            return self._response

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Wait like ``get`` but return the error instead of raising it (None on success)."""
        with self._condition:
            if not self._condition.wait_for(self._is_terminal, timeout=timeout):
                raise OperationTimeoutError(
                    f"Operation did not complete within {timeout} seconds",
                    details={"timeout": timeout},
                )
            return self._error

    def is_done(self) -> bool:
        with self._condition:
            return self._is_terminal()

    def is_cancelled(self) -> bool:
        with self._condition:
            return self._state is FutureState.FAILED and isinstance(
                self._error, OperationCancelledError
            )

    @property
    def state(self) -> FutureState:
        with self._condition:
            return self._state

    def cancel(self) -> bool:
        """
        Ask the dispatcher to cancel the operation.

        Returns:
            True if the cancellation decided the outcome, False if the
            operation had already completed
        """
        if self._canceller is None:
            return False
        return self._canceller()

    def add_listener(self, listener: ActionListener) -> None:
        """Notify ``listener`` once the future completes, or soon if it already has."""
        with self._condition:
            if not self._is_terminal():
                self._listeners.append(listener)
                return
        self._notifier(listener, self)

    def outcome(self) -> Tuple[Optional[T], Optional[BaseException]]:
        """Return ``(response, error)`` of a completed future without blocking."""
        with self._condition:
            if not self._is_terminal():
                raise ContractViolationError("outcome() read before completion")
            return self._response, self._error

    # Dispatcher-side API

    def bind_canceller(self, canceller: Callable[[], bool]) -> None:
        self._canceller = canceller

    def set_response(self, response: T) -> None:
        self._resolve(FutureState.RESOLVED, response, None)

    def set_error(self, error: BaseException) -> None:
        self._resolve(FutureState.FAILED, None, error)

    def _resolve(
        self, state: FutureState, response: Optional[T], error: Optional[BaseException]
    ) -> None:
        with self._condition:
            if self._is_terminal():
                logger.critical(
                    f"Future resolved twice: already {self._state.value}, attempted {state.value}"
                )
                raise ContractViolationError(
                    f"Future already {self._state.value}, cannot become {state.value}"
                )
            self._state = state
            self._response = response
            self._error = error
            listeners, self._listeners = self._listeners, []
            self._condition.notify_all()

        for listener in listeners:
            self._notifier(listener, self)

    def _is_terminal(self) -> bool:
        return self._state is not FutureState.PENDING

    def __repr__(self) -> str:
        return f"<ActionFuture state={self._state.value}>"
