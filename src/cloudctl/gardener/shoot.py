"""Shoot manifest translation.

Turns a ``ClusterSpecification`` into a Gardener ``Shoot`` custom resource
for the metal provider, and flattens Shoot documents returned by the
garden service into rows for display.
"""

from __future__ import annotations

from typing import Any

from cloudctl.models import ClusterSpecification, Purpose

SHOOT_GROUP = "core.gardener.cloud"
SHOOT_VERSION = "v1beta1"
SHOOT_PLURAL = "shoots"
CLOUD_PROFILE_PLURAL = "cloudprofiles"
PROVIDER_TYPE = "metal"
PROVIDER_API_VERSION = "metal.provider.extensions.gardener.cloud/v1alpha1"
NETWORKING_TYPE = "calico"

ANNOTATION_PREFIX = "cluster.metal-stack.io"
CREATED_BY_ANNOTATION = "gardener.cloud/created-by"
DELETION_CONFIRMATION_ANNOTATION = "confirmation.garden.sapcloud.io/deletion"

_GARDENER_PURPOSES = {
    Purpose.PRODUCTION: "production",
    Purpose.DEV: "development",
    Purpose.EVAL: "evaluation",
}


def shoot_namespace(project_id: str) -> str:
    """Return the garden namespace of a project."""
    return f"garden-{project_id}"


def parse_labels(labels: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a label mapping.

    A bare ``key`` is stored as ``key: "true"``.
    """
    parsed: dict[str, str] = {}
    for label in labels:
        key, sep, value = label.partition("=")
        key = key.strip()
        if not key:
            msg = f"invalid label {label!r}, expected key=value"
            raise ValueError(msg)
        parsed[key] = value.strip() if sep else "true"
    return parsed


def _split_image(image: str) -> dict[str, str]:
    name, _, version = image.partition("-")
    if not version:
        return {"name": name}
    return {"name": name, "version": version}


def build_shoot(
    spec: ClusterSpecification,
    namespace: str,
    cloud_profile: str = "metal",
) -> dict[str, Any]:
    """Build the Shoot manifest for *spec* in *namespace*."""
    workers = [
        {
            "name": w.name,
            "machine": {
                "type": w.machine_type,
                "image": _split_image(spec.machine_image),
            },
            "minimum": w.autoscaler_min,
            "maximum": w.autoscaler_max,
            "maxSurge": w.max_surge,
            "maxUnavailable": w.max_unavailable,
            "volume": {"type": w.volume_type, "size": w.volume_size},
            "zones": list(spec.zones),
        }
        for w in spec.workers
    ]

    return {
        "apiVersion": f"{SHOOT_GROUP}/{SHOOT_VERSION}",
        "kind": "Shoot",
        "metadata": {
            "name": spec.name,
            "namespace": namespace,
            "labels": parse_labels(spec.labels),
            "annotations": {
                CREATED_BY_ANNOTATION: spec.created_by,
                f"{ANNOTATION_PREFIX}/owner": spec.owner,
                f"{ANNOTATION_PREFIX}/tenant": spec.tenant,
                f"{ANNOTATION_PREFIX}/project": spec.project_id,
                f"{ANNOTATION_PREFIX}/description": spec.description,
            },
        },
        "spec": {
            "cloudProfileName": cloud_profile,
            "region": spec.zones[0],
            "purpose": _GARDENER_PURPOSES[spec.purpose],
            "kubernetes": {
                "version": spec.kubernetes.version,
                "allowPrivilegedContainers": spec.kubernetes.allow_privileged_containers,
            },
            "maintenance": {
                "autoUpdate": {
                    "kubernetesVersion": spec.maintenance.auto_update.kubernetes_version,
                    "machineImageVersion": spec.maintenance.auto_update.machine_image,
                },
                "timeWindow": {
                    "begin": spec.maintenance.time_window.begin,
                    "end": spec.maintenance.time_window.end,
                },
            },
            "networking": {
                "type": NETWORKING_TYPE,
                "nodes": spec.node_network,
            },
            "provider": {
                "type": PROVIDER_TYPE,
                "infrastructureConfig": {
                    "apiVersion": PROVIDER_API_VERSION,
                    "kind": "InfrastructureConfig",
                    "projectID": spec.project_id,
                    "partitionID": spec.zones[0],
                    "firewall": {
                        "size": spec.firewall_size,
                        "image": spec.firewall_image,
                        "networks": list(spec.additional_networks),
                    },
                },
                "controlPlaneConfig": {
                    "apiVersion": PROVIDER_API_VERSION,
                    "kind": "ControlPlaneConfig",
                    "loadBalancerProvider": spec.load_balancer_provider,
                },
                "workers": workers,
            },
        },
    }


def summarize(shoot: dict[str, Any]) -> dict[str, str]:
    """Flatten a Shoot document into a display row."""
    metadata = shoot.get("metadata") or {}
    spec = shoot.get("spec") or {}
    annotations = metadata.get("annotations") or {}
    last_op = (shoot.get("status") or {}).get("lastOperation") or {}

    status = ""
    if last_op:
        status = f"{last_op.get('type', '')} {last_op.get('state', '')}".strip()
        if "progress" in last_op:
            status += f" {last_op['progress']}%"

    return {
        "uid": metadata.get("uid", ""),
        "name": metadata.get("name", ""),
        "project": annotations.get(f"{ANNOTATION_PREFIX}/project", metadata.get("namespace", "")),
        "partition": spec.get("region", ""),
        "version": (spec.get("kubernetes") or {}).get("version", ""),
        "purpose": spec.get("purpose", ""),
        "status": status,
    }


def constraints_from_cloud_profile(profile: dict[str, Any]) -> tuple[list[str], list[str]]:
    """Extract (kubernetes versions, partitions) from a CloudProfile.

    Partitions are the zones of every region; a region without zones
    counts as a partition on its own.
    """
    spec = profile.get("spec") or {}
    versions = [
        v["version"]
        for v in (spec.get("kubernetes") or {}).get("versions") or []
        if v.get("version")
    ]

    partitions: list[str] = []
    for region in spec.get("regions") or []:
        zones = [z["name"] for z in region.get("zones") or [] if z.get("name")]
        partitions.extend(zones or [region.get("name", "")])

    return versions, sorted(p for p in set(partitions) if p)
