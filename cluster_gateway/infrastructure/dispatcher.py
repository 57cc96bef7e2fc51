"""
Dispatcher component that executes operations against the transport and
settles each one exactly once.
"""

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Tuple

from cluster_gateway.config import GatewayConfig
from cluster_gateway.domain.dispatcher import CancelToken, DispatcherInterface
from cluster_gateway.domain.listener import ActionListener
from cluster_gateway.domain.observability import (
    LoggingSink,
    ObservabilitySink,
    safe_observe,
    safe_report,
)
from cluster_gateway.domain.operations import OperationDescriptor
from cluster_gateway.domain.responses import ClearRealmCacheResponse
from cluster_gateway.domain.transport import Transport
from cluster_gateway.domain.worker import WorkerInterface
from cluster_gateway.exceptions import (
    AllNodesFailedError,
    GatewayClosedError,
    GatewayError,
    OperationCancelledError,
    TransportError,
    ValidationError,
)
from cluster_gateway.infrastructure.future import ActionFuture
from cluster_gateway.infrastructure.registry import PendingOperation, PendingRegistry
from cluster_gateway.infrastructure.worker import Worker

logger = logging.getLogger(__name__)


class Dispatcher(DispatcherInterface):
    """
    Runs every submitted operation on the worker loop and settles it once.

    An operation is settled by whichever of natural completion, ``cancel``
    or ``close`` first removes it from the pending registry. Settling
    resolves the future, which then hands its listeners to the listener
    pool.
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[GatewayConfig] = None,
        sink: Optional[ObservabilitySink] = None,
        worker: Optional[WorkerInterface] = None,
    ) -> None:
        """Initialize the Dispatcher component."""
        self._config = config or GatewayConfig()
        self._transport = transport
        self._sink = sink or LoggingSink()
        self._worker = worker or Worker(self._config)
        self._registry = PendingRegistry()
        self._listener_pool = ThreadPoolExecutor(
            max_workers=self._config.listener_workers,
            thread_name_prefix=self._config.listener_thread_prefix,
        )
        self._lifecycle_lock = threading.Lock()
        self._closed = False
        self._worker.start()
        logger.debug("Dispatcher initialized and worker started")

    def submit(
        self,
        descriptor: OperationDescriptor,
        listener: Optional[ActionListener] = None,
    ) -> Tuple[ActionFuture, CancelToken]:
        """
        Submit an operation without blocking.

        Args:
            descriptor: The operation to perform
            listener: Optional listener notified exactly once on completion

        Returns:
            The future for the operation and the token used to cancel it

        Raises:
            ValidationError: If no descriptor was given
        """
        if descriptor is None:
            raise ValidationError("An operation descriptor is required")

        future: ActionFuture = ActionFuture(self._notify_listener)
        pending = self._registry.register(descriptor, future)
        token = pending.token
        future.bind_canceller(lambda: self.cancel(token))
        if listener is not None:
            future.add_listener(listener)

        with self._lifecycle_lock:
            if self._closed:
                self._settle(token, error=GatewayClosedError(
                    f"Cannot submit {descriptor.kind.value}: gateway is closed"
                ))
                return future, token
            coro = self._execute(pending)
            try:
                task = self._worker.run_coroutine(coro)
            except Exception as e:
                coro.close()
                logger.error(f"Failed to dispatch {descriptor.kind.value} operation {token}: {e}")
                safe_report(self._sink, "dispatcher.dispatch_fault", e, {"kind": descriptor.kind.value})
                self._settle(token, error=self._classify_error(descriptor, e))
                return future, token

        pending.attach(task)
        logger.debug(f"Submitted {descriptor.kind.value} operation {token}")
        return future, token

    def cancel(self, token: CancelToken) -> bool:
        """
        Cancel a pending operation.

        Cancellation only decides the observed outcome. Work the transport
        already applied on the cluster is not rolled back.

        Returns:
            True if the operation ends as cancelled, False if it had already settled
        """
        pending = self._registry.pop(token)
        if pending is None:
            logger.debug(f"Cancel of operation {token} ignored: already settled")
            return False

        pending.mark_cancelled()
        kind = pending.descriptor.kind.value
        self._finish(pending, error=OperationCancelledError(
            f"{kind} operation {token} was cancelled", details={"kind": kind}
        ))
        logger.debug(f"Cancelled {kind} operation {token}")
        return True

    def close(self) -> None:
        """Fail every pending operation with ``GatewayClosedError`` and release resources."""
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True

        logger.info("Closing dispatcher")
        for pending in self._registry.drain():
            pending.mark_cancelled()
            self._finish(pending, error=GatewayClosedError(
                f"Gateway closed before {pending.descriptor.kind.value} operation "
                f"{pending.token} completed"
            ))

        self._worker.shutdown()
        # Queued listener notifications still run after this returns.
        self._listener_pool.shutdown(wait=False)
        logger.info("Dispatcher closed")

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._registry)

    async def _execute(self, pending: PendingOperation) -> None:
        """Run one operation on the worker loop and settle it."""
        if pending.cancelled:
            return

        descriptor = pending.descriptor
        try:
            response = await self._transport.execute(descriptor)
        except asyncio.CancelledError:
            self._settle(pending.token, error=OperationCancelledError(
                f"{descriptor.kind.value} operation {pending.token} was cancelled"
            ))
            raise
        except Exception as e:
            self._settle(pending.token, error=self._classify_error(descriptor, e))
            return

        error = self._check_response(descriptor, response)
        if error is not None:
            self._settle(pending.token, error=error)
        else:
            self._settle(pending.token, response=response)

    def _settle(
        self,
        token: CancelToken,
        response: Any = None,
        error: Optional[BaseException] = None,
    ) -> bool:
        pending = self._registry.pop(token)
        if pending is None:
            logger.debug(f"Operation {token} already settled")
            return False
        self._finish(pending, response=response, error=error)
        return True

    def _finish(
        self,
        pending: PendingOperation,
        response: Any = None,
        error: Optional[BaseException] = None,
    ) -> None:
        ok = error is None
        safe_observe(
            self._sink,
            op=pending.descriptor.kind.value,
            ms=pending.elapsed_ms(),
            ok=ok,
            code="OK" if ok else getattr(error, "code", type(error).__name__),
        )
        if ok:
            pending.future.set_response(response)
        else:
            pending.future.set_error(error)

    def _notify_listener(self, listener: ActionListener, future: ActionFuture) -> None:
        try:
            self._listener_pool.submit(self._invoke_listener, listener, future)
        except RuntimeError:
            # Pool already shut down: late registrations still fire once.
            threading.Thread(
                target=self._invoke_listener,
                args=(listener, future),
                name=f"{self._config.listener_thread_prefix}-late",
                daemon=True,
            ).start()

    def _invoke_listener(self, listener: ActionListener, future: ActionFuture) -> None:
        response, error = future.outcome()
        try:
            if error is not None:
                listener.on_failure(error)
            else:
                listener.on_response(response)
        except Exception as e:
            safe_report(self._sink, "listener.fault", e, {"listener": type(listener).__name__})

    @staticmethod
    def _classify_error(descriptor: OperationDescriptor, error: Exception) -> GatewayError:
        if isinstance(error, GatewayError):
            return error
        classified = TransportError(
            f"{descriptor.kind.value} failed: {error}",
            details={"kind": descriptor.kind.value, "cause": type(error).__name__},
        )
        classified.__cause__ = error
        return classified

    @staticmethod
    def _check_response(descriptor: OperationDescriptor, response: Any) -> Optional[GatewayError]:
        if isinstance(response, ClearRealmCacheResponse) and response.all_failed():
            return AllNodesFailedError(
                f"{descriptor.kind.value} was not acknowledged by any node",
                response=response,
                details={"failed_nodes": response.failed_nodes()},
            )
        return None
