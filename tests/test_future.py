"""
Tests for the ActionFuture completion handle.

The ActionFuture should:
1. Block in get() until resolved, without busy waiting
2. Raise a timeout error from get(timeout) without losing the later resolution
3. Let many threads observe the same terminal value
4. Refuse a second resolution as a contract violation
5. Never run a listener inside the call that registered it
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from cluster_gateway.exceptions import (
    ContractViolationError,
    OperationCancelledError,
    OperationTimeoutError,
    TransportError,
)
from cluster_gateway.infrastructure.future import ActionFuture, FutureState
from tests.conftest import WAIT, RecordingListener


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="test-listener")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def future_fixture(executor):
    """
    Fixture that provides an unresolved ActionFuture whose listeners run on a pool.
    """

    def notify(listener, future):
        def invoke():
            response, error = future.outcome()
            if error is not None:
                listener.on_failure(error)
            else:
                listener.on_response(response)

        executor.submit(invoke)

    return ActionFuture(notify)


def test_future_should_start_pending(future_fixture):
    """Test that a new future is not done."""
    assert not future_fixture.is_done()
    assert future_fixture.state is FutureState.PENDING


def test_get_should_block_until_resolved(future_fixture):
    """Test that get() returns once another thread resolves the future."""
    timer = threading.Timer(0.1, future_fixture.set_response, args=("done",))
    timer.start()

    start_time = time.time()
    assert future_fixture.get(timeout=WAIT) == "done"
    assert time.time() - start_time >= 0.09
    assert future_fixture.is_done()


def test_get_should_raise_stored_error(future_fixture):
    """Test that get() raises the error the future failed with."""
    future_fixture.set_error(TransportError("no route to cluster"))

    with pytest.raises(TransportError, match="no route to cluster"):
        future_fixture.get()
    assert isinstance(future_fixture.exception(), TransportError)


def test_get_timeout_should_not_affect_later_resolution(future_fixture):
    """Test that a timed-out get leaves the future free to resolve afterwards."""
    with pytest.raises(OperationTimeoutError):
        future_fixture.get(timeout=0.05)

    # Also a builtin TimeoutError
    with pytest.raises(TimeoutError):
        future_fixture.get(timeout=0.01)

    assert not future_fixture.is_done()
    future_fixture.set_response(7)
    assert future_fixture.get(timeout=WAIT) == 7


def test_concurrent_getters_should_observe_same_value(future_fixture):
    """Test that every blocked thread wakes up with the same response."""
    payload = object()
    results = []
    lock = threading.Lock()

    def wait_for_it():
        value = future_fixture.get(timeout=WAIT)
        with lock:
            results.append(value)

    threads = [threading.Thread(target=wait_for_it) for _ in range(8)]
    for thread in threads:
        thread.start()
    time.sleep(0.05)
    future_fixture.set_response(payload)
    for thread in threads:
        thread.join(timeout=WAIT)

    assert len(results) == 8
    assert all(value is payload for value in results)


def test_second_resolution_should_be_contract_violation(future_fixture):
    """Test that resolving twice raises instead of overwriting."""
    future_fixture.set_response("first")

    with pytest.raises(ContractViolationError):
        future_fixture.set_response("second")
    with pytest.raises(ContractViolationError):
        future_fixture.set_error(TransportError("late"))

    assert future_fixture.get() == "first"


def test_contract_violation_is_not_a_gateway_error():
    """Test that contract violations are assertion failures, not operation errors."""
    from cluster_gateway.exceptions import GatewayError

    assert issubclass(ContractViolationError, AssertionError)
    assert not issubclass(ContractViolationError, GatewayError)


def test_listener_on_pending_future_should_fire_once_on_resolution(future_fixture):
    """Test that a listener registered early is notified exactly once."""
    listener = RecordingListener()
    future_fixture.add_listener(listener)
    assert not listener.called.is_set()

    future_fixture.set_response("value")

    assert listener.called.wait(WAIT)
    time.sleep(0.05)
    assert listener.responses == ["value"]
    assert listener.calls == 1


def test_listener_on_resolved_future_should_fire_asynchronously(future_fixture):
    """Test that registering on a resolved future notifies on another thread."""
    future_fixture.set_error(OperationCancelledError("cancelled"))
    listener = RecordingListener()

    future_fixture.add_listener(listener)

    assert listener.called.wait(WAIT)
    assert listener.calls == 1
    assert isinstance(listener.failures[0], OperationCancelledError)
    assert listener.threads[0] is not threading.current_thread()


def test_is_cancelled_should_reflect_cancellation_error(future_fixture):
    """Test that is_cancelled() is only true for a cancellation failure."""
    future_fixture.set_error(OperationCancelledError("cancelled"))
    assert future_fixture.is_cancelled()
    assert future_fixture.state is FutureState.FAILED


def test_cancel_without_dispatcher_should_be_noop(future_fixture):
    """Test that cancel() on an unbound future reports that nothing happened."""
    assert future_fixture.cancel() is False
    assert not future_fixture.is_done()


def test_outcome_before_completion_should_be_contract_violation(future_fixture):
    """Test that reading the outcome of a pending future is refused."""
    with pytest.raises(ContractViolationError):
        future_fixture.outcome()
