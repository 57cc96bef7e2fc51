"""
Shared fixtures and fake collaborators for the gateway tests.
"""

import asyncio
import threading
from typing import Any, Dict, List, Optional, Tuple

import pytest

from cluster_gateway.config import GatewayConfig
from cluster_gateway.domain.operations import OperationDescriptor, OperationKind
from cluster_gateway.domain.responses import (
    ClearRealmCacheResponse,
    CountResponse,
    DeleteByQueryResponse,
    DeleteResponse,
    GetResponse,
    IndexResponse,
    NodeCacheClearResult,
    SearchHit,
    SearchResponse,
    TermFreq,
    TermsResponse,
)
from cluster_gateway.infrastructure import Dispatcher

WAIT = 2.0


class FakeClusterTransport:
    """
    In-memory stand-in for a cluster.

    Answers every operation kind with a canned response. ``nodes`` maps node
    ids to an error string, or None when the node is reachable.
    """

    def __init__(self, nodes: Optional[Dict[str, Optional[str]]] = None, delay: float = 0.0) -> None:
        self.nodes = nodes if nodes is not None else {"node-a": None, "node-b": None, "node-c": None}
        self.delay = delay
        self.calls: List[OperationDescriptor] = []
        self._lock = threading.Lock()

    async def execute(self, descriptor: OperationDescriptor) -> Any:
        with self._lock:
            self.calls.append(descriptor)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.respond(descriptor)

    def respond(self, descriptor: OperationDescriptor) -> Any:
        request = descriptor.request
        kind = descriptor.kind
        if kind is OperationKind.INDEX:
            return IndexResponse(index=request.index, type=request.type, id=request.id or "generated-1")
        if kind is OperationKind.DELETE:
            return DeleteResponse(index=request.index, type=request.type, id=request.id)
        if kind is OperationKind.DELETE_BY_QUERY:
            return DeleteByQueryResponse(deleted={name: 2 for name in request.indices})
        if kind is OperationKind.GET:
            return GetResponse(
                index=request.index, type=request.type, id=request.id, exists=True, source={"user": "kimchy"}
            )
        if kind is OperationKind.COUNT:
            return CountResponse(count=42, successful_shards=5)
        if kind in (OperationKind.SEARCH, OperationKind.SEARCH_SCROLL, OperationKind.MORE_LIKE_THIS):
            hit = SearchHit(index="twitter", type="tweet", id="1", score=1.0, source={"user": "kimchy"})
            return SearchResponse(hits=(hit,), total_hits=1, took_ms=3, scroll_id="scroll-1")
        if kind is OperationKind.TERMS:
            return TermsResponse(fields={name: (TermFreq("kimchy", 3),) for name in request.fields})
        if kind is OperationKind.ADMIN_CLEAR_REALM_CACHE:
            return ClearRealmCacheResponse(
                nodes={
                    node: NodeCacheClearResult(cleared=error is None, error=error)
                    for node, error in self.nodes.items()
                }
            )
        raise AssertionError(f"unexpected kind {kind}")


class ControlledTransport:
    """Transport whose operations complete only when the test releases them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._waiting: List[Tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []
        self.arrived = threading.Event()

    async def execute(self, descriptor: OperationDescriptor) -> Any:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        with self._lock:
            self._waiting.append((loop, future))
        self.arrived.set()
        return await future

    def release(self, response: Any = None, error: Optional[BaseException] = None) -> int:
        with self._lock:
            waiting, self._waiting = self._waiting, []
        for loop, future in waiting:
            try:
                loop.call_soon_threadsafe(_settle, future, response, error)
            except RuntimeError:
                pass  # loop already closed by the dispatcher
        return len(waiting)


def _settle(future: asyncio.Future, response: Any, error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(response)


class FailingTransport:
    """Transport that always raises ``error``."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    async def execute(self, descriptor: OperationDescriptor) -> Any:
        await asyncio.sleep(0)
        raise self.error


class RecordingListener:
    """Listener that records every notification and the thread it ran on."""

    def __init__(self, raise_on_call: Optional[BaseException] = None) -> None:
        self.responses: List[Any] = []
        self.failures: List[BaseException] = []
        self.threads: List[threading.Thread] = []
        self.called = threading.Event()
        self._raise_on_call = raise_on_call
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        with self._lock:
            return len(self.responses) + len(self.failures)

    def on_response(self, response: Any) -> None:
        self._record(self.responses, response)

    def on_failure(self, error: BaseException) -> None:
        self._record(self.failures, error)

    def _record(self, bucket: List[Any], value: Any) -> None:
        with self._lock:
            bucket.append(value)
            self.threads.append(threading.current_thread())
        self.called.set()
        if self._raise_on_call is not None:
            raise self._raise_on_call


class RecordingSink:
    """Observability sink that keeps everything it is given."""

    def __init__(self) -> None:
        self.reports: List[Tuple[str, BaseException, Dict[str, Any]]] = []
        self.observations: List[Dict[str, Any]] = []
        self.reported = threading.Event()
        self._lock = threading.Lock()

    def report(self, event: str, error: BaseException, *, extra: Any = None) -> None:
        with self._lock:
            self.reports.append((event, error, dict(extra or {})))
        self.reported.set()

    def observe(self, *, op: str, ms: float, ok: bool, code: str = "OK") -> None:
        with self._lock:
            self.observations.append({"op": op, "ms": ms, "ok": ok, "code": code})


@pytest.fixture
def config():
    return GatewayConfig(use_uvloop=True, listener_workers=4, shutdown_timeout=2.0)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def cluster_transport():
    return FakeClusterTransport()


@pytest.fixture
def controlled_transport():
    transport = ControlledTransport()
    yield transport
    transport.release(error=RuntimeError("test finished"))


@pytest.fixture
def dispatcher_factory(config, sink):
    """
    Fixture that builds Dispatchers over a given transport and closes them afterwards.
    """
    created: List[Dispatcher] = []

    def build(transport: Any) -> Dispatcher:
        dispatcher = Dispatcher(transport, config=config, sink=sink)
        created.append(dispatcher)
        return dispatcher

    yield build
    for dispatcher in created:
        dispatcher.close()
