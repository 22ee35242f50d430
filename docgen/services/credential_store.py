"""
Persistence for the single system-wide Google OAuth credential.

Writers must go through :meth:`CredentialStore.compare_and_update` (refresh) or
:meth:`CredentialStore.replace` (re-authorization). Both bump ``version`` so a
refresh computed from a stale read can never overwrite a newer credential.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from docgen.models.oauth import StoredOAuthCredential
from docgen.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

_PARTITION_KEY = "system"
_SORT_KEY = "oauth#google"
_SORT_KEY_PREFIX = "oauth#"


class RecordStore(Protocol):
    """Subset of the record store API shared by SQLite and DynamoDB backends."""

    def put_item(self, item: Dict[str, Any]) -> None: ...

    def put_item_if_absent(self, item: Dict[str, Any]) -> bool: ...

    def put_item_if_version(
        self, item: Dict[str, Any], *, expected_version: int
    ) -> bool: ...

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> None: ...

    def list_items_with_prefix(
        self, *, partition_key: str, sort_key_prefix: str
    ) -> list[Dict[str, Any]]: ...


class CredentialStore:
    """Load and atomically update the encrypted credential record."""

    def __init__(self, store: RecordStore, token_cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = token_cipher

    def load(self) -> Optional[StoredOAuthCredential]:
        record = self._store.get_item(partition_key=_PARTITION_KEY, sort_key=_SORT_KEY)
        if not record:
            return None

        encrypted_access = record.get("access_token_encrypted")
        expires_at = record.get("expires_at")
        if not encrypted_access or not expires_at:
            logger.warning("Stored Google credential is missing required fields")
            return None

        encrypted_refresh = record.get("refresh_token_encrypted")
        return StoredOAuthCredential(
            access_token=self._cipher.decrypt(encrypted_access),
            refresh_token=self._cipher.decrypt(encrypted_refresh)
            if encrypted_refresh
            else None,
            expires_at=datetime.fromisoformat(expires_at),
            scopes=list(record.get("scopes") or []),
            version=int(record.get("version", 1)),
            created_at=datetime.fromisoformat(record["created_at"]),
            updated_at=datetime.fromisoformat(record["updated_at"]),
        )

    def replace(self, credential: StoredOAuthCredential) -> StoredOAuthCredential:
        """Drop every stored credential and persist ``credential`` as the only one."""
        existing = self._store.list_items_with_prefix(
            partition_key=_PARTITION_KEY, sort_key_prefix=_SORT_KEY_PREFIX
        )
        next_version = max((int(item.get("version", 0)) for item in existing), default=0) + 1
        for item in existing:
            self._store.delete_item(partition_key=item["pk"], sort_key=item["sk"])

        stored = credential.model_copy(update={"version": next_version})
        self._store.put_item(self._to_item(stored))
        return stored

    def compare_and_update(
        self, credential: StoredOAuthCredential, *, expected_version: int
    ) -> Optional[StoredOAuthCredential]:
        """Write ``credential`` if the stored version is still ``expected_version``.

        Returns the stored credential, or ``None`` when another writer got there
        first.
        """
        stored = credential.model_copy(
            update={
                "version": expected_version + 1,
                "updated_at": datetime.now(timezone.utc),
            }
        )
        if not self._store.put_item_if_version(
            self._to_item(stored), expected_version=expected_version
        ):
            return None
        return stored

    def _to_item(self, credential: StoredOAuthCredential) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "pk": _PARTITION_KEY,
            "sk": _SORT_KEY,
            "provider": "google",
            "access_token_encrypted": self._cipher.encrypt(credential.access_token),
            "expires_at": credential.expires_at.isoformat(),
            "scopes": list(credential.scopes),
            "version": credential.version,
            "created_at": credential.created_at.isoformat(),
            "updated_at": credential.updated_at.isoformat(),
        }
        if credential.refresh_token:
            item["refresh_token_encrypted"] = self._cipher.encrypt(
                credential.refresh_token
            )
        return item


__all__ = ["CredentialStore", "RecordStore"]
