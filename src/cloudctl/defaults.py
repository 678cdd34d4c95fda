"""Static defaults for new clusters.

Machine types are catalogued per partition because every partition offers
its own set of hardware. Everything else is global.
"""

from __future__ import annotations

from cloudctl.errors import ConfigurationError

ROLE_WORKER = "worker"
ROLE_FIREWALL = "firewall"
ROLES = (ROLE_WORKER, ROLE_FIREWALL)

DEFAULT_MACHINE_TYPES_OF_PARTITION: dict[str, dict[str, str]] = {
    "nbg-w8101": {
        ROLE_WORKER: "c1-xlarge-x86",
        ROLE_FIREWALL: "c1-xlarge-x86",
    },
    "fra-equ01": {
        ROLE_WORKER: "c1-large-x86",
        ROLE_FIREWALL: "c1-large-x86",
    },
    "vagrant-lab": {
        ROLE_WORKER: "v1-small-x86",
        ROLE_FIREWALL: "v1-small-x86",
    },
}

DEFAULT_PARTITION = "nbg-w8101"
DEFAULT_KUBERNETES_VERSION = "1.14.3"
DEFAULT_EXTERNAL_NETWORKS = ("internet",)
DEFAULT_WORKER_NAME = "default-worker"

DEFAULT_VOLUME_TYPE = "storage_1"
DEFAULT_VOLUME_SIZE = "20Gi"
DEFAULT_MACHINE_IMAGE = "ubuntu-19.04"
DEFAULT_FIREWALL_IMAGE = "firewall-1"
DEFAULT_LOAD_BALANCER_PROVIDER = "metallb"

# HHMMSS+ZZZZ, fixed at UTC+1
MAINTENANCE_WINDOW_BEGIN = "220000+0100"
MAINTENANCE_WINDOW_END = "233000+0100"


class UnknownPartitionError(ConfigurationError):
    """Raised when no machine types are catalogued for a partition."""

    def __init__(self, partition: str) -> None:
        self.partition = partition
        known = ", ".join(partitions())
        super().__init__(
            f"no default machine types for partition {partition!r} "
            f"(known partitions: {known})"
        )


def partitions() -> list[str]:
    """Return the partitions the registry knows, sorted."""
    return sorted(DEFAULT_MACHINE_TYPES_OF_PARTITION)


def check_partition(partition: str) -> None:
    """Raise ``UnknownPartitionError`` unless *partition* is catalogued."""
    if partition not in DEFAULT_MACHINE_TYPES_OF_PARTITION:
        raise UnknownPartitionError(partition)


def machine_type(partition: str, role: str) -> str:
    """Look up the machine type for *role* in *partition*.

    Raises:
        UnknownPartitionError: If the partition is not catalogued.
        ValueError: If *role* is not one of ``ROLES``.
    """
    if role not in ROLES:
        msg = f"unknown machine role {role!r}, expected one of {', '.join(ROLES)}"
        raise ValueError(msg)
    check_partition(partition)
    return DEFAULT_MACHINE_TYPES_OF_PARTITION[partition][role]
