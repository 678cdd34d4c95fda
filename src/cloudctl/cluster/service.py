"""ClusterService — orchestrates cluster lifecycle commands.

Create acquires a node network from the metal service, builds the
cluster specification and submits it to the garden service. Delete
fetches the cluster, asks for confirmation and only then deletes it.
Everything else is a single round trip to the garden service.

Both clients are passed in by the caller; the service keeps no other
state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from cloudctl import defaults
from cloudctl.cluster.builder import build_specification, network_request
from cloudctl.errors import CloudctlError, UsageError
from cloudctl.gardener.client import ClusterLifecycle
from cloudctl.identity import resolve_identity
from cloudctl.metal.client import NetworkAcquirer
from cloudctl.models import ClusterConstraints, ClusterRequestParams

logger = logging.getLogger(__name__)


class DeletionAborted(CloudctlError):
    """Raised when the user declines to delete a cluster."""

    def __init__(self, cluster_id: str) -> None:
        super().__init__(f"deletion of cluster {cluster_id!r} aborted")
        self.cluster_id = cluster_id


def cluster_id(verb: str, args: Sequence[str]) -> str:
    """Return the single cluster identifier in *args*.

    Raises:
        UsageError: If *args* holds no identifier or more than one.
    """
    if len(args) == 0:
        raise UsageError(f"cluster {verb} requires clusterID as argument")
    if len(args) == 1:
        return args[0]
    raise UsageError(f"cluster {verb} requires exactly one clusterID as argument")


class ClusterService:
    """Runs cluster commands against the metal and garden services."""

    def __init__(self, metal: NetworkAcquirer, gardener: ClusterLifecycle) -> None:
        self._metal = metal
        self._gardener = gardener

    def create(self, params: ClusterRequestParams) -> dict[str, Any]:
        """Create a cluster.

        Steps:
          1. Check the partition has machine type defaults
          2. Acquire the node network
          3. Build the cluster specification (needs exactly one prefix)
          4. Submit it to the garden service

        If building or submission fails, the acquired network is released
        before the original error is re-raised.
        """
        defaults.check_partition(params.partition)

        acquired = self._metal.acquire_network(network_request(params))
        network = acquired.network

        try:
            spec = build_specification(params, acquired, resolve_identity(params.owner))
            return self._gardener.create(spec)
        except Exception:
            logger.error(
                "Creating cluster %s failed, releasing node network %s",
                params.name, network.id,
            )
            self._release(network.id)
            raise

    def list(self) -> list[dict[str, Any]]:
        return self._gardener.list()

    def describe(self, cluster_id: str) -> dict[str, Any]:
        return self._gardener.get(cluster_id)

    def delete(
        self,
        cluster_id: str,
        confirm: Callable[[dict[str, Any]], bool],
    ) -> dict[str, Any]:
        """Delete a cluster after *confirm* approved its current record.

        Raises:
            DeletionAborted: If *confirm* returns false. Nothing is deleted.
        """
        shoot = self._gardener.get(cluster_id)
        if not confirm(shoot):
            raise DeletionAborted(cluster_id)
        return self._gardener.delete(cluster_id, shoot)

    def credentials(self, cluster_id: str) -> str:
        return self._gardener.credentials(cluster_id)

    def inputs(self) -> ClusterConstraints:
        return self._gardener.constraints()

    def _release(self, network_id: str) -> None:
        if not network_id:
            logger.warning("Acquired node network has no id, cannot release it")
            return
        try:
            self._metal.release_network(network_id)
        except Exception:
            logger.exception("Releasing node network %s failed, it is orphaned", network_id)
