"""
Observability collaborator: receives suppressed listener faults,
dispatcher-internal faults and per-operation timings.
"""

import logging
from typing import Any, Mapping, Optional, Protocol

from cluster_gateway.exceptions import GatewayError

logger = logging.getLogger(__name__)


class ObservabilitySink(Protocol):
    """
    Protocol for fault and timing reporting.

    Implementations must return quickly; they are called from the worker
    thread and from listener threads.
    """

    def report(
        self,
        event: str,
        error: BaseException,
        *,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Record a fault that was suppressed instead of propagated."""
        ...

    def observe(self, *, op: str, ms: float, ok: bool, code: str = "OK") -> None:
        """Record operation timing and status."""
        ...


class LoggingSink:
    """Default sink writing through the standard logging module."""

    def __init__(self, name: str = "cluster_gateway.observability") -> None:
        self._logger = logging.getLogger(name)

    def report(
        self,
        event: str,
        error: BaseException,
        *,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        context = dict(extra or {})
        if isinstance(error, GatewayError):
            context["error"] = error.asdict()
        self._logger.error(
            f"{event}: {error!r} {context}",
            exc_info=(type(error), error, error.__traceback__),
        )

    def observe(self, *, op: str, ms: float, ok: bool, code: str = "OK") -> None:
        self._logger.debug(f"op={op} ms={ms:.2f} ok={ok} code={code}")


class NoopSink:
    """No-operation sink for tests or when reporting is disabled."""

    def report(self, event: str, error: BaseException, **_: Any) -> None: ...

    def observe(self, **_: Any) -> None: ...


def safe_report(
    sink: ObservabilitySink,
    event: str,
    error: BaseException,
    extra: Optional[Mapping[str, Any]] = None,
) -> None:
    """Report to ``sink``; a failing sink is logged and never propagated."""
    try:
        sink.report(event, error, extra=extra)
    except Exception as e:
        logger.error(f"Observability sink failed while reporting {event}: {e}")


def safe_observe(sink: ObservabilitySink, *, op: str, ms: float, ok: bool, code: str = "OK") -> None:
    try:
        sink.observe(op=op, ms=ms, ok=ok, code=code)
    except Exception as e:
        logger.error(f"Observability sink failed while observing {op}: {e}")
