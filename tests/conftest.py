"""Shared fakes for the metal and garden services."""

from __future__ import annotations

from typing import Any

import pytest

from cloudctl.gardener.client import ClusterNotFoundError
from cloudctl.models import (
    ClusterConstraints,
    ClusterRequestParams,
    ClusterSpecification,
    Network,
    NetworkAcquireRequest,
    NetworkAcquireResult,
)


class FakeMetal:
    """In-memory ``NetworkAcquirer`` that records every call."""

    def __init__(self, prefixes: list[str] | None = None, error: Exception | None = None):
        self.prefixes = ["10.0.0.0/22"] if prefixes is None else prefixes
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    def acquire_network(self, request: NetworkAcquireRequest) -> NetworkAcquireResult:
        self.calls.append(("acquire", request))
        if self.error is not None:
            raise self.error
        return NetworkAcquireResult(network=Network(
            id="net-1",
            name=request.name,
            partition_id=request.partition_id,
            project_id=request.project_id,
            prefixes=list(self.prefixes),
        ))

    def release_network(self, network_id: str) -> None:
        self.calls.append(("release", network_id))


class FakeGardener:
    """In-memory ``ClusterLifecycle`` that records every call."""

    def __init__(self, create_error: Exception | None = None):
        self.create_error = create_error
        self.shoots: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.deleted: list[dict[str, Any] | None] = []

    def add(self, uid: str, name: str) -> dict[str, Any]:
        shoot = {
            "kind": "Shoot",
            "metadata": {"uid": uid, "name": name, "namespace": "garden-p1"},
            "spec": {"region": "nbg-w8101", "kubernetes": {"version": "1.14.3"}},
        }
        self.shoots[uid] = shoot
        return shoot

    def create(self, spec: ClusterSpecification) -> dict[str, Any]:
        self.calls.append(("create", spec))
        if self.create_error is not None:
            raise self.create_error
        return self.add(f"uid-{spec.name}", spec.name)

    def list(self) -> list[dict[str, Any]]:
        self.calls.append(("list", None))
        return list(self.shoots.values())

    def get(self, cluster_id: str) -> dict[str, Any]:
        self.calls.append(("get", cluster_id))
        if cluster_id not in self.shoots:
            raise ClusterNotFoundError(cluster_id)
        return self.shoots[cluster_id]

    def delete(self, cluster_id: str, shoot: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append(("delete", cluster_id))
        self.deleted.append(shoot)
        return self.shoots.pop(cluster_id)

    def credentials(self, cluster_id: str) -> str:
        self.calls.append(("credentials", cluster_id))
        return "apiVersion: v1\nkind: Config\n"

    def constraints(self) -> ClusterConstraints:
        self.calls.append(("constraints", None))
        return ClusterConstraints(
            kubernetes_versions=["1.14.3", "1.15.1"],
            partitions=["nbg-w8101"],
        )

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def metal() -> FakeMetal:
    return FakeMetal()


@pytest.fixture
def gardener() -> FakeGardener:
    return FakeGardener()


@pytest.fixture
def params() -> ClusterRequestParams:
    return ClusterRequestParams(
        name="demo",
        description="d",
        owner="alice",
        project="p1",
        partition="nbg-w8101",
    )


@pytest.fixture
def make_metal() -> type[FakeMetal]:
    return FakeMetal


@pytest.fixture
def make_gardener() -> type[FakeGardener]:
    return FakeGardener
