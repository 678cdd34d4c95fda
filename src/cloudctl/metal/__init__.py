"""Client for the metal service (network allocation)."""

from cloudctl.metal.client import MetalClient, MetalError, NetworkAcquirer

__all__ = [
    "MetalClient",
    "MetalError",
    "NetworkAcquirer",
]
