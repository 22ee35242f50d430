"""
DynamoDB record store, interchangeable with :class:`SQLiteStore`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from docgen.core.config import AWSSettings


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBClient:
    """CRUD operations for credential, binding, document and job records."""

    def __init__(self, settings: AWSSettings) -> None:
        if not settings.dynamodb_table_name:
            raise ValueError("DYNAMODB_TABLE_NAME must be set for the dynamodb backend.")
        self._settings = settings
        self._resource = boto3.resource("dynamodb", region_name=settings.region_name)
        self._table = self._resource.Table(settings.dynamodb_table_name)

    def put_item(self, item: Dict[str, Any]) -> None:
        """Put an item in the DynamoDB table."""
        self._table.put_item(Item=item)

    def put_item_if_absent(self, item: Dict[str, Any]) -> bool:
        """Insert only when no item with the same key exists."""
        try:
            self._table.put_item(
                Item=item, ConditionExpression=Attr("pk").not_exists()
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                return False
            raise
        return True

    def put_item_if_version(self, item: Dict[str, Any], *, expected_version: int) -> bool:
        """Replace the item only while its stored ``version`` still matches."""
        try:
            self._table.put_item(
                Item=item, ConditionExpression=Attr("version").eq(expected_version)
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                return False
            raise
        return True

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]:
        """Retrieve an item using its key."""
        response = self._table.get_item(Key={"pk": partition_key, "sk": sort_key})
        return response.get("Item")

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        self._table.delete_item(Key={"pk": partition_key, "sk": sort_key})

    def list_items_with_prefix(
        self, *, partition_key: str, sort_key_prefix: str
    ) -> list[Dict[str, Any]]:
        """Query items under a partition whose sort key starts with a prefix."""
        response = self._table.query(
            KeyConditionExpression=Key("pk").eq(partition_key)
            & Key("sk").begins_with(sort_key_prefix)
        )
        return response.get("Items", [])


__all__ = ["DynamoDBClient"]
