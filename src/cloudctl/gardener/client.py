"""Cluster lifecycle client for the garden service.

Clusters are Gardener ``Shoot`` custom resources. The client talks to
the garden cluster through the official ``kubernetes`` Python client,
loading credentials from a kubeconfig file or the in-cluster config.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Protocol, runtime_checkable

from cloudctl.errors import RemoteError
from cloudctl.gardener.shoot import (
    CLOUD_PROFILE_PLURAL,
    DELETION_CONFIRMATION_ANNOTATION,
    SHOOT_GROUP,
    SHOOT_PLURAL,
    SHOOT_VERSION,
    build_shoot,
    constraints_from_cloud_profile,
    shoot_namespace,
)
from cloudctl.models import ClusterConstraints, ClusterSpecification

logger = logging.getLogger(__name__)


class GardenerError(RemoteError):
    """Raised when a garden service request fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ClusterNotFoundError(GardenerError):
    """Raised when no cluster matches an identifier."""

    def __init__(self, cluster_id: str) -> None:
        super().__init__(f"cluster {cluster_id!r} not found", status=404)
        self.cluster_id = cluster_id


@runtime_checkable
class ClusterLifecycle(Protocol):
    """Protocol for the cluster control plane.

    Every method is a single request/response round trip.
    """

    def create(self, spec: ClusterSpecification) -> dict[str, Any]:
        """Submit a cluster specification and return the created record."""
        ...

    def list(self) -> list[dict[str, Any]]:
        """Return every cluster record visible to the caller."""
        ...

    def get(self, cluster_id: str) -> dict[str, Any]:
        """Return the record of one cluster."""
        ...

    def delete(self, cluster_id: str, shoot: dict[str, Any] | None = None) -> dict[str, Any]:
        """Delete one cluster and return its record.

        *shoot* is the record the caller already fetched for *cluster_id*.
        """
        ...

    def credentials(self, cluster_id: str) -> str:
        """Return the kubeconfig of one cluster."""
        ...

    def constraints(self) -> ClusterConstraints:
        """Return the kubernetes versions and partitions on offer."""
        ...


class GardenerClient:
    """``ClusterLifecycle`` implementation backed by Gardener Shoots.

    Args:
        kubeconfig: Path to the garden cluster's kubeconfig (default
            kubeconfig resolution when omitted).
        context: Kubeconfig context to use.
        namespace: Restrict all operations to one garden namespace.
            When omitted, shoots are created in ``garden-<project>`` and
            listed across all namespaces.
        cloud_profile: CloudProfile new shoots reference and constraints
            are read from.
        in_cluster: Use the in-cluster service account instead of a
            kubeconfig.
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        namespace: str | None = None,
        cloud_profile: str = "metal",
        in_cluster: bool = False,
    ) -> None:
        self._kubeconfig = kubeconfig
        self._context = context
        self._namespace = namespace
        self._cloud_profile = cloud_profile
        self._in_cluster = in_cluster
        self._api_client: Any = None

    # --- ClusterLifecycle ---

    def create(self, spec: ClusterSpecification) -> dict[str, Any]:
        namespace = self._namespace or shoot_namespace(spec.project_id)
        body = build_shoot(spec, namespace, cloud_profile=self._cloud_profile)
        logger.info("Creating shoot %s in namespace %s", spec.name, namespace)
        return self._call(
            f"create cluster {spec.name!r}",
            "create_namespaced_custom_object",
            group=SHOOT_GROUP,
            version=SHOOT_VERSION,
            namespace=namespace,
            plural=SHOOT_PLURAL,
            body=body,
        )

    def list(self) -> list[dict[str, Any]]:
        if self._namespace:
            result = self._call(
                "list clusters",
                "list_namespaced_custom_object",
                group=SHOOT_GROUP,
                version=SHOOT_VERSION,
                namespace=self._namespace,
                plural=SHOOT_PLURAL,
            )
        else:
            result = self._call(
                "list clusters",
                "list_cluster_custom_object",
                group=SHOOT_GROUP,
                version=SHOOT_VERSION,
                plural=SHOOT_PLURAL,
            )
        return list(result.get("items") or [])

    def get(self, cluster_id: str) -> dict[str, Any]:
        """Find a shoot by uid, falling back to its name."""
        shoots = self.list()
        for shoot in shoots:
            if shoot.get("metadata", {}).get("uid") == cluster_id:
                return shoot

        by_name = [s for s in shoots if s.get("metadata", {}).get("name") == cluster_id]
        if not by_name:
            raise ClusterNotFoundError(cluster_id)
        if len(by_name) > 1:
            namespaces = ", ".join(s["metadata"].get("namespace", "") for s in by_name)
            msg = (
                f"cluster name {cluster_id!r} is ambiguous (namespaces: {namespaces}), "
                "use the cluster uid instead"
            )
            raise GardenerError(msg)
        return by_name[0]

    def delete(self, cluster_id: str, shoot: dict[str, Any] | None = None) -> dict[str, Any]:
        if shoot is None:
            shoot = self.get(cluster_id)
        name, namespace = _name_and_namespace(shoot)

        # Gardener refuses to delete shoots without this annotation.
        self._call(
            f"confirm deletion of cluster {name!r}",
            "patch_namespaced_custom_object",
            group=SHOOT_GROUP,
            version=SHOOT_VERSION,
            namespace=namespace,
            plural=SHOOT_PLURAL,
            name=name,
            body={"metadata": {"annotations": {DELETION_CONFIRMATION_ANNOTATION: "true"}}},
        )
        logger.info("Deleting shoot %s in namespace %s", name, namespace)
        result = self._call(
            f"delete cluster {name!r}",
            "delete_namespaced_custom_object",
            group=SHOOT_GROUP,
            version=SHOOT_VERSION,
            namespace=namespace,
            plural=SHOOT_PLURAL,
            name=name,
        )
        if isinstance(result, dict) and result.get("kind") == "Shoot":
            return result
        return shoot

    def credentials(self, cluster_id: str) -> str:
        shoot = self.get(cluster_id)
        name, namespace = _name_and_namespace(shoot)
        secret_name = f"{name}.kubeconfig"

        secret = self._call(
            f"read credentials of cluster {name!r}",
            "read_namespaced_secret",
            core=True,
            name=secret_name,
            namespace=namespace,
        )
        encoded = (secret.data or {}).get("kubeconfig")
        if not encoded:
            msg = f"secret {namespace}/{secret_name} holds no kubeconfig"
            raise GardenerError(msg)
        try:
            return base64.b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            msg = f"secret {namespace}/{secret_name} holds an undecodable kubeconfig"
            raise GardenerError(msg) from exc

    def constraints(self) -> ClusterConstraints:
        profile = self._call(
            f"read cloud profile {self._cloud_profile!r}",
            "get_cluster_custom_object",
            group=SHOOT_GROUP,
            version=SHOOT_VERSION,
            plural=CLOUD_PROFILE_PLURAL,
            name=self._cloud_profile,
        )
        versions, partitions = constraints_from_cloud_profile(profile)
        return ClusterConstraints(kubernetes_versions=versions, partitions=partitions)

    # --- Private: client setup ---

    def _get_api_client(self) -> Any:
        """Build (once) a kubernetes ApiClient for the garden cluster."""
        if self._api_client is not None:
            return self._api_client

        from kubernetes import client, config

        if self._in_cluster:
            config.load_incluster_config()
        else:
            kwargs: dict[str, Any] = {}
            if self._kubeconfig:
                kwargs["config_file"] = self._kubeconfig
            if self._context:
                kwargs["context"] = self._context
            config.load_kube_config(**kwargs)
        self._api_client = client.ApiClient()
        return self._api_client

    def _call(self, what: str, method: str, *, core: bool = False, **kwargs: Any) -> Any:
        """Call *method* on the CustomObjectsApi, or the CoreV1Api with *core*.

        Every failure, loading the kubeconfig included, becomes a GardenerError.
        """
        try:
            from kubernetes import client

            api_client = self._get_api_client()
            api = client.CoreV1Api(api_client) if core else client.CustomObjectsApi(api_client)
            return getattr(api, method)(**kwargs)
        except Exception as exc:
            # Detect kubernetes ApiException by class name to avoid import
            if type(exc).__name__ == "ApiException":
                msg = f"garden service could not {what} ({exc.status}): {exc.reason}"
                raise GardenerError(msg, status=exc.status) from exc
            msg = f"garden service could not {what}: {exc}"
            raise GardenerError(msg) from exc


def _name_and_namespace(shoot: dict[str, Any]) -> tuple[str, str]:
    metadata = shoot.get("metadata") or {}
    return metadata.get("name", ""), metadata.get("namespace", "")
