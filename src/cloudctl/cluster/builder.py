"""Translate a cluster request into a cluster specification.

``build_specification`` is a pure function: it merges the user's
parameters with the partition defaults, the resolved identity and the
acquired node network. It never talks to a remote service.
"""

from __future__ import annotations

from cloudctl import defaults
from cloudctl.errors import CloudctlError
from cloudctl.identity import resolve_identity
from cloudctl.models import (
    ClusterRequestParams,
    ClusterSpecification,
    Identity,
    Kubernetes,
    Maintenance,
    MaintenanceAutoUpdate,
    MaintenanceTimeWindow,
    Network,
    NetworkAcquireRequest,
    NetworkAcquireResult,
    Worker,
)

PREFIX_COUNT_ERROR = (
    "node network creation failed, no or more than one entry for prefixes "
    "was/were acquired"
)


class NetworkAcquisitionError(CloudctlError):
    """Raised when an acquired network does not carry exactly one prefix."""

    def __init__(self, network: Network) -> None:
        super().__init__(PREFIX_COUNT_ERROR)
        self.network = network


def network_request(params: ClusterRequestParams) -> NetworkAcquireRequest:
    """Build the metal service request for the cluster's node network."""
    return NetworkAcquireRequest(
        name=params.name,
        description=params.description,
        partition_id=params.partition,
        project_id=params.project,
    )


def node_network(network: Network) -> str:
    """Return the sole prefix of *network*.

    Raises:
        NetworkAcquisitionError: If there are zero or several prefixes.
    """
    if len(network.prefixes) != 1:
        raise NetworkAcquisitionError(network)
    return network.prefixes[0]


def build_specification(
    params: ClusterRequestParams,
    acquired: NetworkAcquireResult,
    identity: Identity | None = None,
) -> ClusterSpecification:
    """Build the cluster specification for *params* on the acquired network.

    Args:
        params: Validated user input.
        acquired: The metal service's answer to ``network_request(params)``.
        identity: Owner/tenant/creator; resolved from ``params.owner``
            when omitted.

    Raises:
        NetworkAcquisitionError: If the network has not exactly one prefix.
        UnknownPartitionError: If the partition has no machine type defaults.
    """
    nodes = node_network(acquired.network)
    identity = identity or resolve_identity(params.owner)

    worker = Worker(
        name=defaults.DEFAULT_WORKER_NAME,
        machine_type=defaults.machine_type(params.partition, defaults.ROLE_WORKER),
        autoscaler_min=params.min_size,
        autoscaler_max=params.max_size,
        max_surge=params.max_surge,
        max_unavailable=params.max_unavailable,
        volume_type=defaults.DEFAULT_VOLUME_TYPE,
        volume_size=defaults.DEFAULT_VOLUME_SIZE,
    )

    return ClusterSpecification(
        name=params.name,
        description=params.description,
        purpose=params.purpose,
        owner=identity.owner,
        tenant=identity.tenant,
        created_by=identity.created_by,
        project_id=params.project,
        labels=list(params.labels),
        load_balancer_provider=defaults.DEFAULT_LOAD_BALANCER_PROVIDER,
        machine_image=defaults.DEFAULT_MACHINE_IMAGE,
        firewall_image=defaults.DEFAULT_FIREWALL_IMAGE,
        firewall_size=defaults.machine_type(params.partition, defaults.ROLE_FIREWALL),
        workers=[worker],
        kubernetes=Kubernetes(
            version=params.version,
            allow_privileged_containers=params.allow_privileged,
        ),
        maintenance=Maintenance(
            auto_update=MaintenanceAutoUpdate(
                kubernetes_version=False,
                machine_image=False,
            ),
            time_window=MaintenanceTimeWindow(
                begin=defaults.MAINTENANCE_WINDOW_BEGIN,
                end=defaults.MAINTENANCE_WINDOW_END,
            ),
        ),
        node_network=nodes,
        additional_networks=list(params.external_networks),
        zones=[params.partition],
    )
