from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from external_name_backup.adapters.configmap import (
    ConfigMapClient,
    ConfigMapIdentityStore,
    RetryPolicy,
    config_map_name,
    encode_data_key,
)
from external_name_backup.config import KubernetesConfig
from external_name_backup.domain.model import IdentityRecord
from external_name_backup.domain.ports import IdentityStore, StoreError

NAMESPACE = "crossplane-system"
KEY = "default/claim1/v1/X/xr1"
CONFIG = KubernetesConfig(base_url="https://10.0.0.1:443", token="sa-token", ca_path=None)


class FakeApiServer:
    """Serves the handful of core/v1 endpoints the ConfigMap store uses."""

    def __init__(self, namespaces: set[str] | None = None) -> None:
        self.namespaces = namespaces if namespaces is not None else {NAMESPACE}
        self.config_maps: dict[tuple[str, str], dict[str, Any]] = {}
        self.requests: list[tuple[str, str]] = []
        self.fail_with: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        assert request.headers["Authorization"] == "Bearer sa-token"
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "boom"})

        parts = request.url.path.strip("/").split("/")
        # api/v1/namespaces/<ns>[/configmaps[/<name>]]
        namespace = parts[3]
        if len(parts) == 4:
            if namespace in self.namespaces:
                return httpx.Response(200, json={"metadata": {"name": namespace}})
            return httpx.Response(404, json={"reason": "NotFound"})

        if len(parts) == 5 and request.method == "POST":
            body = json.loads(request.content)
            self.config_maps[(namespace, body["metadata"]["name"])] = body
            return httpx.Response(201, json=body)

        key = (namespace, parts[5])
        if key not in self.config_maps:
            return httpx.Response(404, json={"reason": "NotFound"})
        if request.method == "GET":
            return httpx.Response(200, json=self.config_maps[key])
        if request.method == "PUT":
            self.config_maps[key] = json.loads(request.content)
            return httpx.Response(200, json=self.config_maps[key])
        if request.method == "DELETE":
            del self.config_maps[key]
            return httpx.Response(200, json={"status": "Success"})
        return httpx.Response(405)


@pytest.fixture
def server() -> FakeApiServer:
    return FakeApiServer()


@pytest.fixture
def store(server: FakeApiServer) -> ConfigMapIdentityStore:
    client = ConfigMapClient(CONFIG, transport=httpx.MockTransport(server))
    return ConfigMapIdentityStore(client, NAMESPACE)


def test_store_satisfies_port(store: ConfigMapIdentityStore) -> None:
    assert isinstance(store, IdentityStore)


def test_data_keys_are_valid_configmap_keys() -> None:
    encoded = encode_data_key(KEY)

    assert all(ch.isalnum() or ch in "-._" for ch in encoded)


def test_first_save_creates_cluster_config_map(
    store: ConfigMapIdentityStore, server: FakeApiServer
) -> None:
    store.save("c1", KEY, {"db": IdentityRecord(external_name="db-123")})

    body = server.config_maps[(NAMESPACE, config_map_name("c1"))]
    assert body["metadata"]["name"] == "external-name-backup-c1"
    assert json.loads(body["data"][encode_data_key(KEY)]) == {"db": {"externalName": "db-123"}}
    assert store.load("c1", KEY) == {"db": IdentityRecord(external_name="db-123")}


def test_second_composition_shares_the_config_map(
    store: ConfigMapIdentityStore, server: FakeApiServer
) -> None:
    store.save("c1", KEY, {"db": IdentityRecord(external_name="db-123")})
    store.save("c1", "none/none/v1/X/xr2", {"q": IdentityRecord(resource_name="xr2-q")})

    assert len(server.config_maps) == 1
    assert set(server.config_maps[(NAMESPACE, config_map_name("c1"))]["data"]) == {
        encode_data_key(KEY),
        encode_data_key("none/none/v1/X/xr2"),
    }


def test_load_without_config_map_is_empty(store: ConfigMapIdentityStore) -> None:
    assert store.load("c1", KEY) == {}


def test_delete_resource_then_purge_removes_config_map(
    store: ConfigMapIdentityStore, server: FakeApiServer
) -> None:
    store.save(
        "c1",
        KEY,
        {"db": IdentityRecord(external_name="db-1"), "q": IdentityRecord(external_name="q-1")},
    )

    store.delete_resource("c1", KEY, "db")
    assert store.load("c1", KEY) == {"q": IdentityRecord(external_name="q-1")}

    store.delete_resource("c1", KEY, "q")
    assert server.config_maps == {}
    assert ("DELETE", f"/api/v1/namespaces/{NAMESPACE}/configmaps/external-name-backup-c1") in (
        server.requests
    )


def test_purge_missing_data_is_a_no_op(
    store: ConfigMapIdentityStore, server: FakeApiServer
) -> None:
    store.purge("c1", KEY)
    store.delete_resource("c1", KEY, "db")

    assert all(method == "GET" for method, _ in server.requests)


def test_api_errors_become_store_errors(
    store: ConfigMapIdentityStore, server: FakeApiServer
) -> None:
    server.fail_with = 403

    with pytest.raises(StoreError, match="HTTP 403"):
        store.save("c1", KEY, {"db": IdentityRecord(external_name="db-1")})


def test_corrupt_entry_is_reported(store: ConfigMapIdentityStore, server: FakeApiServer) -> None:
    server.config_maps[(NAMESPACE, "external-name-backup-c1")] = {
        "metadata": {"name": "external-name-backup-c1"},
        "data": {encode_data_key(KEY): "not json"},
    }

    with pytest.raises(StoreError, match="corrupt"):
        store.load("c1", KEY)


def test_reads_are_retried_on_server_errors(server: FakeApiServer) -> None:
    attempts: list[int] = []

    def flaky(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503)
        return server(request)

    client = ConfigMapClient(
        CONFIG,
        retry=RetryPolicy(backoff_factor=0.0),
        transport=httpx.MockTransport(flaky),
    )

    assert client.get(NAMESPACE, "external-name-backup-c1") is None
    assert len(attempts) == 2


def test_connect_checks_namespace() -> None:
    server = FakeApiServer(namespaces=set())

    with pytest.raises(StoreError, match="does not exist"):
        ConfigMapIdentityStore.connect(
            CONFIG, namespace=NAMESPACE, transport=httpx.MockTransport(server)
        )


def test_connect_returns_store_for_existing_namespace(server: FakeApiServer) -> None:
    store = ConfigMapIdentityStore.connect(
        CONFIG, namespace=NAMESPACE, transport=httpx.MockTransport(server)
    )

    assert store.namespace == NAMESPACE
    store.close()
