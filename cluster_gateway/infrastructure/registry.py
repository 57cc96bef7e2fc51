"""
Bookkeeping for operations that have been submitted but not yet settled.
"""

import concurrent.futures
import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from cluster_gateway.domain.dispatcher import CancelToken
from cluster_gateway.domain.operations import OperationDescriptor
from cluster_gateway.infrastructure.future import ActionFuture


@dataclass(eq=False)
class PendingOperation:
    """A submitted operation and everything needed to settle or cancel it."""

    token: CancelToken
    descriptor: OperationDescriptor
    future: ActionFuture
    started_at: float = field(default_factory=time.monotonic)
    cancelled: bool = False
    task: Optional[concurrent.futures.Future] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def attach(self, task: concurrent.futures.Future) -> None:
        """Record the in-flight task; cancel it at once if cancellation came first."""
        with self._lock:
            self.task = task
            cancelled = self.cancelled
        if cancelled:
            task.cancel()

    def mark_cancelled(self) -> None:
        with self._lock:
            self.cancelled = True
            task = self.task
        if task is not None:
            task.cancel()

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000.0


class PendingRegistry:
    """
    Lock-protected map from cancel token to pending operation.

    ``pop`` is the only way an operation leaves the registry, and whoever
    pops it is the one that settles it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[CancelToken, PendingOperation] = {}
        self._tokens = itertools.count(1)

    def register(self, descriptor: OperationDescriptor, future: ActionFuture) -> PendingOperation:
        with self._lock:
            token = CancelToken(next(self._tokens))
            pending = PendingOperation(token=token, descriptor=descriptor, future=future)
            self._pending[token] = pending
        return pending

    def pop(self, token: CancelToken) -> Optional[PendingOperation]:
        with self._lock:
            return self._pending.pop(token, None)

    def drain(self) -> List[PendingOperation]:
        with self._lock:
            drained = list(self._pending.values())
            self._pending.clear()
        return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
