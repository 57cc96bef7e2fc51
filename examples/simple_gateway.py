"""
Example demonstrating both flavors of a gateway operation against a toy transport.
"""

import asyncio
import logging
import threading

from cluster_gateway import FunctionListener, connect
from cluster_gateway.domain import requests
from cluster_gateway.domain.operations import OperationDescriptor, OperationKind
from cluster_gateway.domain.responses import (
    ClearRealmCacheResponse,
    CountResponse,
    NodeCacheClearResult,
)
from cluster_gateway.exceptions import OperationTimeoutError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class SlowTransport:
    """
    Toy transport that simulates network latency.
    """

    def __init__(self, latency: float) -> None:
        self.latency = latency

    async def execute(self, descriptor: OperationDescriptor):
        logger.info(f"Executing {descriptor.kind.value}, will take {self.latency} seconds")
        await asyncio.sleep(self.latency)
        if descriptor.kind is OperationKind.ADMIN_CLEAR_REALM_CACHE:
            return ClearRealmCacheResponse(
                nodes={
                    "node-1": NodeCacheClearResult(cleared=True),
                    "node-2": NodeCacheClearResult(cleared=False, error="unreachable"),
                }
            )
        return CountResponse(count=42)


def main():
    client = connect(SlowTransport(latency=1.0))
    try:
        # Example 1: Future flavor
        logger.info("Submitting count and waiting on the future")
        response = client.count(requests.count_request(["twitter"])).get()
        logger.info(f"Got count: {response.count}")

        # Example 2: Listener flavor
        done = threading.Event()

        def on_response(response):
            logger.info(f"Listener got nodes: {response.acknowledged_nodes()}")
            done.set()

        def on_failure(error):
            logger.error(f"Listener got failure: {error}")
            done.set()

        logger.info("Submitting realm cache clear with a listener")
        client.admin().clear_realm_cache(
            requests.clear_realm_cache_request(["ldap1"], ["alice"]),
            FunctionListener(on_response, on_failure),
        )
        done.wait()

        # Example 3: Timed wait, then cancellation
        future = client.count(requests.count_request(["twitter"]))
        try:
            future.get(timeout=0.2)
        except OperationTimeoutError:
            logger.warning("Count still running, cancelling it")
            future.cancel()

    finally:
        # Clean shutdown
        client.close()


if __name__ == "__main__":
    main()
