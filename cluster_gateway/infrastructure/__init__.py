"""
Infrastructure: event loop thread, worker, futures and the dispatcher.
"""

from cluster_gateway.infrastructure.dispatcher import Dispatcher
from cluster_gateway.infrastructure.event_loop import EventLoop
from cluster_gateway.infrastructure.future import ActionFuture, FutureState
from cluster_gateway.infrastructure.worker import Worker

__all__ = ["ActionFuture", "Dispatcher", "EventLoop", "FutureState", "Worker"]
