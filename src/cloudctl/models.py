"""Data models for cloudctl.

Defines the schemas for:
- Cluster requests (what the user asks for)
- Network acquisition (what the metal service hands out)
- Cluster specifications (what is submitted to the garden service)
- Cluster constraints (what the garden service accepts)
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cloudctl.defaults import (
    DEFAULT_EXTERNAL_NETWORKS,
    DEFAULT_KUBERNETES_VERSION,
    DEFAULT_PARTITION,
    MAINTENANCE_WINDOW_BEGIN,
    MAINTENANCE_WINDOW_END,
)

CLUSTER_NAME_MAX_LENGTH = 10

# --- Enums ---


class Purpose(enum.StrEnum):
    PRODUCTION = "production"
    DEV = "dev"
    EVAL = "eval"


# --- Cluster request ---


class ClusterRequestParams(BaseModel):
    """User input for a new cluster.

    Required strings must be non-blank; this is checked on construction,
    before anything talks to a remote service.
    """

    name: str = Field(..., max_length=CLUSTER_NAME_MAX_LENGTH)
    description: str
    purpose: Purpose = Purpose.PRODUCTION
    owner: str
    project: str
    partition: str = DEFAULT_PARTITION
    version: str = DEFAULT_KUBERNETES_VERSION
    min_size: int = Field(default=1, ge=0)
    max_size: int = Field(default=1, ge=0)
    max_surge: int = Field(default=1, ge=0)
    max_unavailable: int = Field(default=1, ge=0)
    labels: list[str] = Field(default_factory=list)
    external_networks: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTERNAL_NETWORKS)
    )
    allow_privileged: bool = False

    @field_validator("name", "description", "owner", "project", "partition", "version")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("labels")
    @classmethod
    def _check_labels(cls, value: list[str]) -> list[str]:
        for label in value:
            if not label.partition("=")[0].strip():
                raise ValueError(f"invalid label {label!r}, expected key=value")
        return value

    @model_validator(mode="after")
    def _check_autoscaler_bounds(self) -> ClusterRequestParams:
        if self.min_size > self.max_size:
            msg = f"min_size ({self.min_size}) must not exceed max_size ({self.max_size})"
            raise ValueError(msg)
        return self


# --- Network acquisition ---


class NetworkAcquireRequest(BaseModel):
    """Request body for acquiring a node network from the metal service."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    partition_id: str = Field(..., alias="partitionid")
    project_id: str = Field(..., alias="projectid")
    labels: dict[str, str] = Field(default_factory=dict)


class Network(BaseModel):
    """A network as returned by the metal service.

    Only the fields cloudctl reads are modelled; the rest is ignored.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    description: str = ""
    partition_id: str = Field(default="", alias="partitionid")
    project_id: str = Field(default="", alias="projectid")
    prefixes: list[str] = Field(default_factory=list)


class NetworkAcquireResult(BaseModel):
    network: Network


# --- Identity ---


class Identity(BaseModel):
    """Who a cluster belongs to and who asked for it."""

    owner: str
    tenant: str
    created_by: str


# --- Cluster specification ---


class Worker(BaseModel):
    """A worker pool of a cluster."""

    name: str
    machine_type: str
    autoscaler_min: int
    autoscaler_max: int
    max_surge: int
    max_unavailable: int
    volume_type: str
    volume_size: str


class Kubernetes(BaseModel):
    version: str
    allow_privileged_containers: bool = False


class MaintenanceAutoUpdate(BaseModel):
    kubernetes_version: bool = False
    machine_image: bool = False


class MaintenanceTimeWindow(BaseModel):
    """Daily window in ``HHMMSS+ZZZZ`` notation."""

    begin: str = MAINTENANCE_WINDOW_BEGIN
    end: str = MAINTENANCE_WINDOW_END


class Maintenance(BaseModel):
    auto_update: MaintenanceAutoUpdate = Field(default_factory=MaintenanceAutoUpdate)
    time_window: MaintenanceTimeWindow = Field(default_factory=MaintenanceTimeWindow)


class ClusterSpecification(BaseModel):
    """The document submitted to the garden service to create a cluster.

    Built by ``cloudctl.cluster.builder.build_specification`` only once a
    node network with exactly one prefix has been acquired.
    """

    name: str
    description: str
    purpose: Purpose
    owner: str
    tenant: str
    created_by: str
    project_id: str
    labels: list[str] = Field(default_factory=list)

    load_balancer_provider: str
    machine_image: str
    firewall_image: str
    firewall_size: str

    workers: list[Worker] = Field(min_length=1)
    kubernetes: Kubernetes
    maintenance: Maintenance = Field(default_factory=Maintenance)

    node_network: str
    additional_networks: list[str] = Field(default_factory=list)
    zones: list[str] = Field(min_length=1)


# --- Constraints ---


class ClusterConstraints(BaseModel):
    """Inputs the garden service accepts for new clusters."""

    kubernetes_versions: list[str] = Field(default_factory=list)
    partitions: list[str] = Field(default_factory=list)
