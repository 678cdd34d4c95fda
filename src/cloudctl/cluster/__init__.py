"""Cluster request translation and lifecycle orchestration."""

from cloudctl.cluster.builder import (
    NetworkAcquisitionError,
    build_specification,
    network_request,
)
from cloudctl.cluster.service import ClusterService, DeletionAborted, cluster_id

__all__ = [
    "ClusterService",
    "DeletionAborted",
    "NetworkAcquisitionError",
    "build_specification",
    "cluster_id",
    "network_request",
]
