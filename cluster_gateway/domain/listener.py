"""
Listener abstractions for the push-style flavor of every operation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ActionListener(Protocol):
    """Callback pair notified exactly once when an operation completes."""

    def on_response(self, response: Any) -> None:
        """Called with the response of a successful operation."""
        ...

    def on_failure(self, error: BaseException) -> None:
        """Called with the classified error of a failed or cancelled operation."""
        ...


@dataclass(frozen=True)
class FunctionListener:
    """An ``ActionListener`` built from plain functions."""

    response_fn: Callable[[Any], None]
    failure_fn: Optional[Callable[[BaseException], None]] = None

    def on_response(self, response: Any) -> None:
        self.response_fn(response)

    def on_failure(self, error: BaseException) -> None:
        if self.failure_fn is None:
            logger.error(f"Unhandled operation failure: {error!r}")
            return
        self.failure_fn(error)
