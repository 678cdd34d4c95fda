"""Tests for GardenerClient.

All kubernetes client calls are mocked — no garden cluster needed.
"""

from __future__ import annotations

import base64
import sys
from contextlib import contextmanager
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from cloudctl.cluster.builder import build_specification
from cloudctl.gardener.client import (
    ClusterLifecycle,
    ClusterNotFoundError,
    GardenerClient,
    GardenerError,
)
from cloudctl.models import ClusterRequestParams, Network, NetworkAcquireResult

# --- Helpers ---


class ApiException(Exception):  # noqa: N818
    """Stand-in with the same name and fields as kubernetes' ApiException."""

    def __init__(self, status: int, reason: str) -> None:
        super().__init__(reason)
        self.status = status
        self.reason = reason


class ConfigException(Exception):  # noqa: N818
    """Stand-in for kubernetes.config.ConfigException."""


class MaxRetryError(Exception):
    """Stand-in for urllib3's MaxRetryError."""


@contextmanager
def _mock_kubernetes_modules():
    """Inject a mock kubernetes package into sys.modules.

    Yields the mocked ``client`` and ``config`` modules; the
    ``CustomObjectsApi`` and ``CoreV1Api`` instances are shared mocks.
    """
    mock_k8s = MagicMock()
    mock_client = mock_k8s.client
    mock_config = mock_k8s.config
    mock_client.ApiClient.return_value = MagicMock()

    modules = {
        "kubernetes": mock_k8s,
        "kubernetes.client": mock_client,
        "kubernetes.config": mock_config,
    }
    with patch.dict(sys.modules, modules):
        yield mock_client, mock_config


def _shoot(uid: str, name: str, namespace: str = "garden-p1") -> dict[str, Any]:
    return {
        "kind": "Shoot",
        "metadata": {"uid": uid, "name": name, "namespace": namespace},
        "spec": {},
    }


def _spec():
    params = ClusterRequestParams(
        name="demo", description="d", owner="alice", project="p1", partition="nbg-w8101",
    )
    acquired = NetworkAcquireResult(network=Network(id="net-1", prefixes=["10.0.0.0/22"]))
    return build_specification(params, acquired)


# --- Client setup ---


class TestApiClient:
    def test_loads_kubeconfig_and_context(self):
        with _mock_kubernetes_modules() as (mock_client, mock_config):
            mock_client.CustomObjectsApi.return_value.list_cluster_custom_object.return_value = {
                "items": [],
            }
            GardenerClient(kubeconfig="/tmp/garden.yaml", context="garden").list()

        mock_config.load_kube_config.assert_called_once_with(
            config_file="/tmp/garden.yaml", context="garden",
        )

    def test_in_cluster(self):
        with _mock_kubernetes_modules() as (mock_client, mock_config):
            mock_client.CustomObjectsApi.return_value.list_cluster_custom_object.return_value = {
                "items": [],
            }
            GardenerClient(in_cluster=True).list()

        mock_config.load_incluster_config.assert_called_once()
        mock_config.load_kube_config.assert_not_called()

    def test_api_client_built_once(self):
        with _mock_kubernetes_modules() as (mock_client, mock_config):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": []}
            gc = GardenerClient()
            gc.list()
            gc.list()

        assert mock_config.load_kube_config.call_count == 1
        assert mock_client.ApiClient.call_count == 1

    def test_kubeconfig_failure_wrapped(self):
        with _mock_kubernetes_modules() as (mock_client, mock_config):
            mock_config.load_kube_config.side_effect = ConfigException(
                "Invalid kube-config file. No configuration found.",
            )
            with pytest.raises(GardenerError, match="could not list clusters: Invalid kube-config"):
                GardenerClient(kubeconfig="/missing/garden.yaml").list()

        mock_client.CustomObjectsApi.return_value.list_cluster_custom_object.assert_not_called()

    def test_kubeconfig_failure_retried_on_next_call(self):
        with _mock_kubernetes_modules() as (mock_client, mock_config):
            mock_config.load_kube_config.side_effect = [ConfigException("no config"), None]
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": []}
            gc = GardenerClient()
            with pytest.raises(GardenerError):
                gc.list()
            assert gc.list() == []

    def test_satisfies_protocol(self):
        with _mock_kubernetes_modules():
            assert isinstance(GardenerClient(), ClusterLifecycle)


# --- create ---


class TestCreate:
    def test_creates_shoot_in_project_namespace(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.create_namespaced_custom_object.return_value = _shoot("uid-1", "demo")
            result = GardenerClient(cloud_profile="metal-lab").create(_spec())

        assert result["metadata"]["uid"] == "uid-1"
        kwargs = api.create_namespaced_custom_object.call_args.kwargs
        assert kwargs["group"] == "core.gardener.cloud"
        assert kwargs["version"] == "v1beta1"
        assert kwargs["plural"] == "shoots"
        assert kwargs["namespace"] == "garden-p1"
        assert kwargs["body"]["metadata"]["name"] == "demo"
        assert kwargs["body"]["spec"]["cloudProfileName"] == "metal-lab"
        assert kwargs["body"]["spec"]["networking"]["nodes"] == "10.0.0.0/22"

    def test_configured_namespace_wins(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            GardenerClient(namespace="garden").create(_spec())

        assert api.create_namespaced_custom_object.call_args.kwargs["namespace"] == "garden"

    def test_api_error_wrapped(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.create_namespaced_custom_object.side_effect = ApiException(409, "Conflict")
            with pytest.raises(GardenerError, match=r"\(409\): Conflict") as exc_info:
                GardenerClient().create(_spec())

        assert exc_info.value.status == 409

    def test_connection_failure_wrapped(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.create_namespaced_custom_object.side_effect = MaxRetryError(
                "Max retries exceeded with url: /apis/core.gardener.cloud",
            )
            with pytest.raises(
                GardenerError, match="could not create cluster 'demo': Max retries",
            ) as exc_info:
                GardenerClient().create(_spec())

        assert exc_info.value.status is None
        assert isinstance(exc_info.value.__cause__, MaxRetryError)


# --- list / get ---


class TestListAndGet:
    def test_list_all_namespaces(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "a")]}
            shoots = GardenerClient().list()

        assert [s["metadata"]["name"] for s in shoots] == ["a"]
        api.list_namespaced_custom_object.assert_not_called()

    def test_list_one_namespace(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_namespaced_custom_object.return_value = {"items": []}
            assert GardenerClient(namespace="garden").list() == []

        assert api.list_namespaced_custom_object.call_args.kwargs["namespace"] == "garden"

    def test_get_by_uid(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {
                "items": [_shoot("uid-1", "a"), _shoot("uid-2", "b")],
            }
            assert GardenerClient().get("uid-2")["metadata"]["name"] == "b"

    def test_get_by_name(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "a")]}
            assert GardenerClient().get("a")["metadata"]["uid"] == "uid-1"

    def test_get_unknown(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": []}
            with pytest.raises(ClusterNotFoundError, match="'nope'"):
                GardenerClient().get("nope")

    def test_get_ambiguous_name(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {
                "items": [_shoot("uid-1", "a", "garden-p1"), _shoot("uid-2", "a", "garden-p2")],
            }
            with pytest.raises(GardenerError, match="ambiguous"):
                GardenerClient().get("a")


# --- delete ---


class TestDelete:
    def test_annotates_then_deletes(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            api.delete_namespaced_custom_object.return_value = {"kind": "Status"}
            result = GardenerClient().delete("uid-1")

        assert result["metadata"]["uid"] == "uid-1"
        patch_kwargs = api.patch_namespaced_custom_object.call_args.kwargs
        assert patch_kwargs["name"] == "demo"
        assert patch_kwargs["namespace"] == "garden-p1"
        assert patch_kwargs["body"]["metadata"]["annotations"] == {
            "confirmation.garden.sapcloud.io/deletion": "true",
        }
        delete_kwargs = api.delete_namespaced_custom_object.call_args.kwargs
        assert (delete_kwargs["name"], delete_kwargs["namespace"]) == ("demo", "garden-p1")

    def test_uses_given_record_without_lookup(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.delete_namespaced_custom_object.return_value = {"kind": "Status"}
            record = _shoot("uid-1", "demo", "garden-p2")
            result = GardenerClient().delete("uid-1", record)

        assert result is record
        api.list_cluster_custom_object.assert_not_called()
        delete_kwargs = api.delete_namespaced_custom_object.call_args.kwargs
        assert (delete_kwargs["name"], delete_kwargs["namespace"]) == ("demo", "garden-p2")

    def test_returns_deleted_shoot_when_server_sends_it(self):
        deleted = _shoot("uid-1", "demo")
        deleted["metadata"]["deletionTimestamp"] = "2019-07-01T10:00:00Z"
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            api.delete_namespaced_custom_object.return_value = deleted
            result = GardenerClient().delete("uid-1")

        assert "deletionTimestamp" in result["metadata"]

    def test_failed_annotation_stops_delete(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            api.patch_namespaced_custom_object.side_effect = ApiException(403, "Forbidden")
            with pytest.raises(GardenerError, match="403"):
                GardenerClient().delete("uid-1")

        api.delete_namespaced_custom_object.assert_not_called()


# --- credentials ---


class TestCredentials:
    def test_decodes_kubeconfig_secret(self):
        kubeconfig = "apiVersion: v1\nkind: Config\n"
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            core = mock_client.CoreV1Api.return_value
            core.read_namespaced_secret.return_value.data = {
                "kubeconfig": base64.b64encode(kubeconfig.encode()).decode(),
            }
            result = GardenerClient().credentials("uid-1")

        assert result == kubeconfig
        core.read_namespaced_secret.assert_called_once_with(
            name="demo.kubeconfig", namespace="garden-p1",
        )

    def test_missing_kubeconfig(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            mock_client.CoreV1Api.return_value.read_namespaced_secret.return_value.data = {}
            with pytest.raises(GardenerError, match="holds no kubeconfig"):
                GardenerClient().credentials("uid-1")

    def test_missing_secret(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.list_cluster_custom_object.return_value = {"items": [_shoot("uid-1", "demo")]}
            core = mock_client.CoreV1Api.return_value
            core.read_namespaced_secret.side_effect = ApiException(404, "Not Found")
            with pytest.raises(GardenerError, match="404"):
                GardenerClient().credentials("uid-1")


# --- constraints ---


class TestConstraints:
    def test_reads_cloud_profile(self):
        with _mock_kubernetes_modules() as (mock_client, _):
            api = mock_client.CustomObjectsApi.return_value
            api.get_cluster_custom_object.return_value = {
                "spec": {
                    "kubernetes": {"versions": [{"version": "1.14.3"}]},
                    "regions": [{"name": "nbg", "zones": [{"name": "nbg-w8101"}]}],
                },
            }
            constraints = GardenerClient(cloud_profile="metal-lab").constraints()

        assert constraints.kubernetes_versions == ["1.14.3"]
        assert constraints.partitions == ["nbg-w8101"]
        kwargs = api.get_cluster_custom_object.call_args.kwargs
        assert (kwargs["plural"], kwargs["name"]) == ("cloudprofiles", "metal-lab")
