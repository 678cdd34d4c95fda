"""Client for the metal service's network endpoints.

Acquires a dedicated node network for a new cluster and releases it
again if the cluster cannot be created.

Uses stdlib ``urllib.request`` — no extra dependencies required.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from cloudctl.errors import RemoteError
from cloudctl.models import Network, NetworkAcquireRequest, NetworkAcquireResult

logger = logging.getLogger(__name__)


class MetalError(RemoteError):
    """Raised when a metal service request fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@runtime_checkable
class NetworkAcquirer(Protocol):
    """Protocol for node network allocation.

    Any object with ``acquire_network()`` and ``release_network()``
    methods satisfies this protocol.
    """

    def acquire_network(self, request: NetworkAcquireRequest) -> NetworkAcquireResult:
        """Allocate a network for a new cluster.

        Raises:
            MetalError: If the metal service rejects the request.
        """
        ...

    def release_network(self, network_id: str) -> None:
        """Give an acquired network back to the metal service."""
        ...


class MetalClient:
    """HTTP client for the metal service.

    Example::

        client = MetalClient("https://metal.example.com", token="...")
        result = client.acquire_network(NetworkAcquireRequest(
            name="demo", description="demo cluster",
            partition_id="nbg-w8101", project_id="p1",
        ))
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url.rstrip("/")
        self._token = token
        self._timeout = timeout

    def acquire_network(self, request: NetworkAcquireRequest) -> NetworkAcquireResult:
        logger.info(
            "Acquiring node network %r in partition %s for project %s",
            request.name, request.partition_id, request.project_id,
        )
        body = request.model_dump(mode="json", by_alias=True)
        data = self._post("/v1/network/acquire", body)
        try:
            network = Network.model_validate(data)
        except ValidationError as exc:
            msg = f"metal service returned an unexpected network document: {exc}"
            raise MetalError(msg) from exc
        logger.info("Acquired network %s with prefixes %s", network.id, network.prefixes)
        return NetworkAcquireResult(network=network)

    def release_network(self, network_id: str) -> None:
        logger.info("Releasing network %s", network_id)
        self._post(f"/v1/network/release/{urllib.parse.quote(network_id, safe='')}", None)

    def _post(self, path: str, body: dict[str, Any] | None) -> Any:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        data = json.dumps(body, sort_keys=True).encode("utf-8") if body is not None else b""
        req = urllib.request.Request(
            self._url + path,
            data=data,
            headers=headers,
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # noqa: S310
                payload = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace").strip()
            msg = f"metal service request POST {path} failed ({e.code}): {detail or e.reason}"
            raise MetalError(msg, status=e.code) from e
        except urllib.error.URLError as e:
            msg = f"metal service at {self._url} unreachable: {e.reason}"
            raise MetalError(msg) from e
        except (OSError, http.client.HTTPException) as e:
            # Timeouts and dropped connections while reading the response
            msg = f"metal service request POST {path} failed: {e!r}"
            raise MetalError(msg) from e

        if not payload:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            msg = f"metal service returned invalid JSON for POST {path}: {e}"
            raise MetalError(msg) from e
