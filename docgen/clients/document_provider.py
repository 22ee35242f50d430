"""Capability interface for the remote document provider."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from docgen.core.errors import ProviderError

# 408/429 and server-side failures are worth another attempt; other client
# errors will fail the same way again.
TRANSIENT_STATUS_CODES = frozenset({408, 429})


def is_transient_status(status_code: int | None) -> bool:
    if status_code is None:
        return True
    return status_code in TRANSIENT_STATUS_CODES or status_code >= 500


class DocumentProvider(Protocol):
    """Folder, file and permission operations the generator depends on.

    Every method raises :class:`ProviderError` on failure.
    """

    async def create_folder(self, name: str, parent_id: str) -> str: ...

    async def find_folder_by_name(self, name: str, parent_id: str) -> Optional[str]: ...

    async def delete_by_name(self, parent_id: str, name: str) -> int: ...

    async def copy_template(self, template_id: str, name: str, parent_id: str) -> str: ...

    async def substitute_placeholders(
        self, document_id: str, replacements: Mapping[str, str]
    ) -> None: ...

    async def export_artifact(self, document_id: str, parent_id: str, name: str) -> str: ...

    async def set_public_view_permission(self, file_id: str) -> None: ...

    async def download_artifact(self, file_id: str) -> bytes: ...

    def document_url(self, document_id: str) -> str: ...

    def artifact_url(self, file_id: str) -> str: ...


__all__ = [
    "DocumentProvider",
    "ProviderError",
    "TRANSIENT_STATUS_CODES",
    "is_transient_status",
]
