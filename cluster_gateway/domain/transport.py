"""
Transport/engine collaborator boundary.

The dispatcher only ever talks to a ``Transport``: a coroutine that either
returns the response or raises, which is its single completion event.
Callback-style transports are bridged onto the worker loop by
``CallbackTransportAdapter``.
"""

import asyncio
import threading
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from cluster_gateway.domain.observability import LoggingSink, ObservabilitySink, safe_report
from cluster_gateway.domain.operations import OperationDescriptor
from cluster_gateway.exceptions import TransportError

CompletionCallback = Callable[[Any, Optional[BaseException]], None]


@runtime_checkable
class Transport(Protocol):
    """Executes descriptors against the cluster."""

    async def execute(self, descriptor: OperationDescriptor) -> Any:
        """
        Perform the operation.

        Args:
            descriptor: The operation to perform

        Returns:
            The operation-specific response

        Raises:
            Exception: Any failure reaching the cluster or executing the operation
        """
        ...


@runtime_checkable
class CallbackTransport(Protocol):
    """Transport that reports completion through a callback."""

    def send(self, descriptor: OperationDescriptor, on_complete: CompletionCallback) -> None:
        """
        Start the operation and return immediately.

        ``on_complete(response, None)`` or ``on_complete(None, error)`` must be
        called exactly once, from any thread.
        """
        ...


class CallbackTransportAdapter:
    """
    Adapts a ``CallbackTransport`` to the ``Transport`` protocol.

    The callback may fire on any thread; the result is handed to the awaiting
    coroutine through ``call_soon_threadsafe``. A repeated callback is
    reported to the sink and ignored.
    """

    def __init__(self, transport: CallbackTransport, sink: Optional[ObservabilitySink] = None) -> None:
        self._transport = transport
        self._sink = sink or LoggingSink()

    async def execute(self, descriptor: OperationDescriptor) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        lock = threading.Lock()
        fired = False

        def settle(response: Any, error: Optional[BaseException]) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(response)

        def on_complete(response: Any, error: Optional[BaseException] = None) -> None:
            nonlocal fired
            with lock:
                duplicate, fired = fired, True
            if duplicate:
                safe_report(
                    self._sink,
                    "transport.duplicate_completion",
                    TransportError("transport completed an operation more than once"),
                    extra={"kind": descriptor.kind.value},
                )
                return
            if loop.is_closed():
                return
            loop.call_soon_threadsafe(settle, response, error)

        self._transport.send(descriptor, on_complete)
        return await future
