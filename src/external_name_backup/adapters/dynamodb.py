"""Identity store backed by an AWS DynamoDB table.

Each composition is one item keyed by ``cluster_id`` (partition key) and
``composition_key`` (sort key); its records live in the ``resources`` map
attribute as ``{resourceKey: {externalName, resourceName}}``.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from external_name_backup.domain.model import record_set_from_mapping, record_set_to_mapping
from external_name_backup.domain.ports import StoreError

if TYPE_CHECKING:
    from external_name_backup.config import AwsCredentials
    from external_name_backup.domain.model import CompositionRecordSet, ResourceKey

log = getLogger(__name__)

CONDITIONAL_CHECK_FAILED: Final[str] = "ConditionalCheckFailedException"


def _key(cluster_id: str, composition_key: str) -> dict[str, dict[str, str]]:
    return {
        "cluster_id": {"S": cluster_id},
        "composition_key": {"S": composition_key},
    }


def _encode_resources(records: CompositionRecordSet) -> dict[str, Any]:
    return {
        resource_key: {"M": {field: {"S": value} for field, value in fields.items()}}
        for resource_key, fields in record_set_to_mapping(records).items()
    }


def _decode_resources(attribute: Any) -> CompositionRecordSet:
    if not isinstance(attribute, dict) or "M" not in attribute:
        return {}
    plain: dict[str, object] = {}
    for resource_key, value in attribute["M"].items():
        fields = value.get("M", {}) if isinstance(value, dict) else {}
        plain[resource_key] = {
            name: field["S"]
            for name, field in fields.items()
            if isinstance(field, dict) and "S" in field
        }
    return record_set_from_mapping(plain)


def _is_conditional_check_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED


class DynamoDbIdentityStore:
    """Store identity record sets as one DynamoDB item per composition."""

    def __init__(self, client: Any, table_name: str) -> None:
        self.client = client
        self.table_name = table_name

    @classmethod
    def connect(
        cls,
        *,
        table_name: str,
        region: str,
        credentials: AwsCredentials | None = None,
    ) -> DynamoDbIdentityStore:
        """Create a client and verify that the table is reachable."""

        if credentials is not None:
            session = boto3.Session(
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
                aws_session_token=credentials.session_token,
                region_name=region,
            )
            log.info("Using provided AWS credentials for DynamoDB")
        else:
            session = boto3.Session(region_name=region)
            log.info("Using default AWS credential chain for DynamoDB")

        try:
            client = session.client("dynamodb")
            client.describe_table(TableName=table_name)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"failed to access DynamoDB table {table_name!r}: {exc}") from exc

        log.info(f"Connected to DynamoDB table {table_name} in {region}")
        return cls(client, table_name)

    def save(self, cluster_id: str, composition_key: str, records: CompositionRecordSet) -> None:
        item = {
            **_key(cluster_id, composition_key),
            "resources": {"M": _encode_resources(records)},
        }
        try:
            self.client.put_item(TableName=self.table_name, Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"failed to save identities to DynamoDB: {exc}") from exc
        log.info(f"Saved {len(records)} identities to DynamoDB for {composition_key}")

    def load(self, cluster_id: str, composition_key: str) -> CompositionRecordSet:
        try:
            result = self.client.get_item(
                TableName=self.table_name,
                Key=_key(cluster_id, composition_key),
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"failed to get item from DynamoDB: {exc}") from exc

        item = result.get("Item")
        if item is None:
            log.info(f"No identities found in DynamoDB for {cluster_id}/{composition_key}")
            return {}
        records = _decode_resources(item.get("resources"))
        log.info(f"Loaded {len(records)} identities from DynamoDB for {composition_key}")
        return records

    def delete_resource(
        self,
        cluster_id: str,
        composition_key: str,
        resource_key: ResourceKey,
    ) -> None:
        try:
            self.client.update_item(
                TableName=self.table_name,
                Key=_key(cluster_id, composition_key),
                UpdateExpression="REMOVE #resources.#rk",
                ExpressionAttributeNames={"#resources": "resources", "#rk": resource_key},
                ConditionExpression=(
                    "attribute_exists(cluster_id) AND attribute_exists(#resources.#rk)"
                ),
            )
        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                log.info(f"{resource_key} already absent from {composition_key}")
                return
            raise StoreError(f"failed to delete resource from DynamoDB: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreError(f"failed to delete resource from DynamoDB: {exc}") from exc
        log.info(f"Deleted {resource_key} from DynamoDB composition {composition_key}")

    def purge(self, cluster_id: str, composition_key: str) -> None:
        try:
            self.client.delete_item(
                TableName=self.table_name,
                Key=_key(cluster_id, composition_key),
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"failed to purge composition from DynamoDB: {exc}") from exc
        log.info(f"Purged {cluster_id}/{composition_key} from DynamoDB")


if TYPE_CHECKING:
    from external_name_backup.domain.ports import IdentityStore

    _store_check: IdentityStore = DynamoDbIdentityStore(None, "external-name-backup")
