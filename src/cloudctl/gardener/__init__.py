"""Client for the garden service (cluster lifecycle)."""

from cloudctl.gardener.client import (
    ClusterLifecycle,
    ClusterNotFoundError,
    GardenerClient,
    GardenerError,
)

__all__ = [
    "ClusterLifecycle",
    "ClusterNotFoundError",
    "GardenerClient",
    "GardenerError",
]
