"""Minimal Kubernetes ConfigMap client over the API server's REST interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from external_name_backup.config import KubernetesConfig

log = getLogger(__name__)

type ConfigMapBody = dict[str, Any]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retries for idempotent reads only; writes are never repeated."""

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 5.0
    allowed_methods: frozenset[str] = field(default_factory=lambda: frozenset({"GET"}))
    status_forcelist: frozenset[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )

    def build(self) -> Retry:
        return Retry(
            total=self.total,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            allowed_methods=tuple(self.allowed_methods),
            status_forcelist=tuple(self.status_forcelist),
        )


class KubernetesAPIError(RuntimeError):
    """Raised when the API server answers with an unexpected status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigMapClient:
    def __init__(
        self,
        config: KubernetesConfig,
        *,
        retry: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        retry_transport = RetryTransport(
            transport=transport or httpx.HTTPTransport(verify=_verify(config)),
            retry=(retry or RetryPolicy()).build(),
        )
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/json",
            },
            transport=retry_transport,
        )

    def __enter__(self) -> ConfigMapClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def namespace_exists(self, namespace: str) -> bool:
        response = self._request("GET", f"/api/v1/namespaces/{namespace}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        _raise_for_status(response, f"get namespace {namespace}")
        return True

    def get(self, namespace: str, name: str) -> ConfigMapBody | None:
        response = self._request("GET", _config_map_path(namespace, name))
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        _raise_for_status(response, f"get ConfigMap {namespace}/{name}")
        return response.json()

    def create(self, namespace: str, body: ConfigMapBody) -> ConfigMapBody:
        response = self._request(
            "POST", f"/api/v1/namespaces/{namespace}/configmaps", json=body
        )
        _raise_for_status(response, f"create ConfigMap in {namespace}")
        return response.json()

    def replace(self, namespace: str, name: str, body: ConfigMapBody) -> ConfigMapBody:
        response = self._request("PUT", _config_map_path(namespace, name), json=body)
        _raise_for_status(response, f"update ConfigMap {namespace}/{name}")
        return response.json()

    def delete(self, namespace: str, name: str) -> None:
        response = self._request("DELETE", _config_map_path(namespace, name))
        if response.status_code == httpx.codes.NOT_FOUND:
            return
        _raise_for_status(response, f"delete ConfigMap {namespace}/{name}")

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise KubernetesAPIError(f"{method} {path} failed: {exc}") from exc


def _config_map_path(namespace: str, name: str) -> str:
    return f"/api/v1/namespaces/{namespace}/configmaps/{name}"


def _verify(config: KubernetesConfig) -> str | bool:
    return str(config.ca_path) if config.ca_path is not None else True


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    log.error(f"Kubernetes API error during {action}: {response.status_code} {response.text}")
    raise KubernetesAPIError(
        f"failed to {action}: HTTP {response.status_code}",
        status_code=response.status_code,
    )
