"""
Client-side gateway for submitting operations to a cluster and observing
each outcome exactly once, through a future or a listener.
"""

from cluster_gateway.client import AdminClient, Client
from cluster_gateway.config import GatewayConfig
from cluster_gateway.core import connect
from cluster_gateway.domain.listener import ActionListener, FunctionListener
from cluster_gateway.domain.operations import OperationDescriptor, OperationKind
from cluster_gateway.domain.transport import CallbackTransport, CallbackTransportAdapter, Transport
from cluster_gateway.infrastructure.future import ActionFuture

__all__ = [
    "ActionFuture",
    "ActionListener",
    "AdminClient",
    "CallbackTransport",
    "CallbackTransportAdapter",
    "Client",
    "FunctionListener",
    "GatewayConfig",
    "OperationDescriptor",
    "OperationKind",
    "Transport",
    "connect",
]
