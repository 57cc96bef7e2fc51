"""
Exception module for cluster_gateway.

This module defines specific exceptions that may be raised by the component.
Every post-submission fault reaches the caller through the same channel as a
successful response: raised from ``ActionFuture.get()`` or passed to
``ActionListener.on_failure``.
"""

from typing import Any, Dict, Mapping, Optional


class GatewayError(Exception):
    """
    Base exception for errors in the gateway.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (UPPER_SNAKE_CASE)
        details: Additional context-specific error details
    """

    default_code = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = dict(details or {})

    def asdict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "message": self.message,
            "code": self.code,
            "details": {k: self.details[k] for k in sorted(self.details)},
        }


class ValidationError(GatewayError, ValueError):
    """Raised when a request is malformed. Never reaches the dispatcher."""

    default_code = "VALIDATION"


class TransportError(GatewayError):
    """Raised when the cluster could not be reached or the engine failed."""

    default_code = "TRANSPORT"


class AllNodesFailedError(TransportError):
    """Raised when a multi-node operation failed on every targeted node."""

    default_code = "ALL_NODES_FAILED"

    def __init__(self, message: str = "", *, response: Any = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.response = response


class OperationCancelledError(GatewayError):
    """Raised when an operation was cancelled before it completed."""

    default_code = "CANCELLED"


class OperationTimeoutError(GatewayError, TimeoutError):
    """Raised by a timed ``get`` whose deadline elapsed. The operation keeps running."""

    default_code = "TIMEOUT"


class GatewayClosedError(GatewayError):
    """Raised for operations submitted to, or still pending in, a closed gateway."""

    default_code = "CLOSED"


class WorkerNotRunningError(GatewayError):
    """Raised when trying to use the worker when it's not running."""

    default_code = "WORKER_NOT_RUNNING"


class ContractViolationError(AssertionError):
    """
    Raised when an internal exactly-once invariant is broken.

    This is not a ``GatewayError``: it signals a bug in the gateway itself
    and is never delivered as an ordinary operation failure.
    """
