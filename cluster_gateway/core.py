"""
Core entry point for creating gateway clients.
"""

from typing import Optional

from cluster_gateway.client import Client
from cluster_gateway.config import GatewayConfig
from cluster_gateway.domain.observability import ObservabilitySink
from cluster_gateway.domain.transport import CallbackTransport, CallbackTransportAdapter, Transport


def connect(
    transport: "Transport | CallbackTransport",
    config: Optional[GatewayConfig] = None,
    sink: Optional[ObservabilitySink] = None,
) -> Client:
    """
    Create a client bound to ``transport``.

    Every call returns an independent client with its own dispatcher and
    worker thread; close it when done.

    Args:
        transport: A coroutine-based ``Transport`` or a ``CallbackTransport``
        config: Gateway settings, read from the environment when omitted
        sink: Observability sink, logging when omitted

    Returns:
        A ready-to-use client
    """
    if not isinstance(transport, Transport) and isinstance(transport, CallbackTransport):
        transport = CallbackTransportAdapter(transport, sink=sink)
    return Client(transport, config=config, sink=sink)
