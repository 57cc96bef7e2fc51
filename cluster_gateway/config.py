"""
Gateway configuration.

Values come from init kwargs first, then ``CLUSTER_GATEWAY_*`` environment
variables, then the defaults below.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseSettings):
    """Settings for the dispatcher, its worker thread and listener pool."""

    model_config = SettingsConfigDict(env_prefix="CLUSTER_GATEWAY_", frozen=True)

    listener_workers: int = Field(default=4, ge=1)
    listener_thread_prefix: str = "gateway-listener"
    worker_thread_name: str = "GatewayWorkerThread"
    use_uvloop: bool = True
    shutdown_timeout: float = Field(default=5.0, gt=0)
