"""Identity store backed by one Kubernetes ConfigMap per cluster.

The ConfigMap ``external-name-backup-<clusterId>`` lives in the configured
namespace. Each data entry holds the JSON record set of one composition under a
key derived from the composition key. ConfigMap data keys only allow
``[-._a-zA-Z0-9]``, so the composition key is encoded with the URL-safe base64
alphabet and its padding is dropped.
"""

from __future__ import annotations

import base64
import json
from logging import getLogger
from typing import TYPE_CHECKING, Final

from external_name_backup.domain.model import record_set_from_mapping, record_set_to_mapping
from external_name_backup.domain.ports import StoreError

from .client import ConfigMapClient, KubernetesAPIError

if TYPE_CHECKING:
    import httpx

    from external_name_backup.config import KubernetesConfig
    from external_name_backup.domain.model import CompositionRecordSet, ResourceKey

    from .client import ConfigMapBody

log = getLogger(__name__)

CONFIG_MAP_PREFIX: Final[str] = "external-name-backup-"
MANAGED_BY_LABEL: Final[str] = "app.kubernetes.io/managed-by"
MANAGED_BY: Final[str] = "external-name-backup"


def config_map_name(cluster_id: str) -> str:
    return f"{CONFIG_MAP_PREFIX}{cluster_id}"


def encode_data_key(composition_key: str) -> str:
    return base64.urlsafe_b64encode(composition_key.encode("utf-8")).decode("ascii").rstrip("=")


class ConfigMapIdentityStore:
    """Store identity record sets as entries of a per-cluster ConfigMap."""

    def __init__(self, client: ConfigMapClient, namespace: str) -> None:
        self.client = client
        self.namespace = namespace

    @classmethod
    def connect(
        cls,
        config: KubernetesConfig,
        *,
        namespace: str,
        transport: httpx.BaseTransport | None = None,
    ) -> ConfigMapIdentityStore:
        """Create a client and verify that the target namespace exists."""

        client = ConfigMapClient(config, transport=transport)
        try:
            exists = client.namespace_exists(namespace)
        except KubernetesAPIError as exc:
            client.close()
            raise StoreError(f"failed to access namespace {namespace!r}: {exc}") from exc
        if not exists:
            client.close()
            raise StoreError(f"namespace {namespace!r} does not exist")
        log.info(f"Using ConfigMap store in namespace {namespace}")
        return cls(client, namespace)

    def save(self, cluster_id: str, composition_key: str, records: CompositionRecordSet) -> None:
        name = config_map_name(cluster_id)
        payload = json.dumps(record_set_to_mapping(records), sort_keys=True)
        data_key = encode_data_key(composition_key)
        try:
            existing = self.client.get(self.namespace, name)
            if existing is None:
                self.client.create(self.namespace, self._new_body(name, {data_key: payload}))
                log.info(f"Created ConfigMap {self.namespace}/{name}")
            else:
                existing.setdefault("data", {})
                existing["data"][data_key] = payload
                self.client.replace(self.namespace, name, existing)
        except KubernetesAPIError as exc:
            raise StoreError(f"failed to save identities to ConfigMap {name}: {exc}") from exc
        log.info(f"Saved {len(records)} identities to ConfigMap for {composition_key}")

    def load(self, cluster_id: str, composition_key: str) -> CompositionRecordSet:
        name = config_map_name(cluster_id)
        try:
            existing = self.client.get(self.namespace, name)
        except KubernetesAPIError as exc:
            raise StoreError(f"failed to read ConfigMap {name}: {exc}") from exc

        if existing is None:
            log.info(f"No ConfigMap {self.namespace}/{name}, nothing stored yet")
            return {}
        raw = (existing.get("data") or {}).get(encode_data_key(composition_key))
        if raw is None:
            log.info(f"No identities found in ConfigMap for {composition_key}")
            return {}
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"corrupt identity data for {composition_key}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StoreError(f"corrupt identity data for {composition_key}: expected an object")
        records = record_set_from_mapping(payload)
        log.info(f"Loaded {len(records)} identities from ConfigMap for {composition_key}")
        return records

    def delete_resource(
        self,
        cluster_id: str,
        composition_key: str,
        resource_key: ResourceKey,
    ) -> None:
        records = self.load(cluster_id, composition_key)
        if resource_key not in records:
            log.info(f"{resource_key} already absent from {composition_key}")
            return
        del records[resource_key]
        if records:
            self.save(cluster_id, composition_key, records)
        else:
            self.purge(cluster_id, composition_key)
        log.info(f"Deleted {resource_key} from ConfigMap composition {composition_key}")

    def purge(self, cluster_id: str, composition_key: str) -> None:
        name = config_map_name(cluster_id)
        data_key = encode_data_key(composition_key)
        try:
            existing = self.client.get(self.namespace, name)
            if existing is None:
                return
            data = existing.get("data") or {}
            if data_key not in data:
                return
            del data[data_key]
            if data:
                existing["data"] = data
                self.client.replace(self.namespace, name, existing)
            else:
                self.client.delete(self.namespace, name)
                log.info(f"Deleted empty ConfigMap {self.namespace}/{name}")
        except KubernetesAPIError as exc:
            raise StoreError(f"failed to purge {composition_key} from ConfigMap: {exc}") from exc
        log.info(f"Purged {cluster_id}/{composition_key} from ConfigMap")

    def close(self) -> None:
        self.client.close()

    def _new_body(self, name: str, data: dict[str, str]) -> ConfigMapBody:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": name,
                "namespace": self.namespace,
                "labels": {MANAGED_BY_LABEL: MANAGED_BY},
            },
            "data": data,
        }


if TYPE_CHECKING:
    from external_name_backup.domain.ports import IdentityStore

    _store_check: IdentityStore = ConfigMapIdentityStore(
        ConfigMapClient(KubernetesConfig("https://localhost", "token", None)), "default"
    )
