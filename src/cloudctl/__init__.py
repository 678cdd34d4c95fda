"""cloudctl: provision and manage kubernetes clusters on metal."""

__version__ = "0.1.0"

from cloudctl.cluster.builder import NetworkAcquisitionError, build_specification
from cloudctl.cluster.service import ClusterService, DeletionAborted, cluster_id
from cloudctl.config import CloudctlConfig, find_config, load_config
from cloudctl.defaults import UnknownPartitionError, machine_type
from cloudctl.errors import (
    CloudctlError,
    ConfigurationError,
    RemoteError,
    UsageError,
)
from cloudctl.gardener.client import (
    ClusterLifecycle,
    ClusterNotFoundError,
    GardenerClient,
    GardenerError,
)
from cloudctl.identity import resolve_identity
from cloudctl.metal.client import MetalClient, MetalError, NetworkAcquirer
from cloudctl.models import (
    ClusterConstraints,
    ClusterRequestParams,
    ClusterSpecification,
    Identity,
    Network,
    NetworkAcquireRequest,
    NetworkAcquireResult,
    Purpose,
)

__all__ = [
    "CloudctlConfig",
    "CloudctlError",
    "ClusterConstraints",
    "ClusterLifecycle",
    "ClusterNotFoundError",
    "ClusterRequestParams",
    "ClusterService",
    "ClusterSpecification",
    "ConfigurationError",
    "DeletionAborted",
    "GardenerClient",
    "GardenerError",
    "Identity",
    "MetalClient",
    "MetalError",
    "Network",
    "NetworkAcquireRequest",
    "NetworkAcquireResult",
    "NetworkAcquirer",
    "NetworkAcquisitionError",
    "Purpose",
    "RemoteError",
    "UnknownPartitionError",
    "UsageError",
    "build_specification",
    "cluster_id",
    "find_config",
    "load_config",
    "machine_type",
    "resolve_identity",
    "__version__",
]
