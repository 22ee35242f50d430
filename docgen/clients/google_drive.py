"""Google Drive and Docs implementation of the document provider."""

from __future__ import annotations

import asyncio
import io
import logging
import socket
from typing import Any, Callable, Mapping, Optional, TypeVar, TYPE_CHECKING

import httplib2
from google.auth.exceptions import GoogleAuthError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from docgen.clients.document_provider import is_transient_status
from docgen.core.errors import ProviderError

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from google.oauth2.credentials import Credentials

    from docgen.services.google_tokens import GoogleTokenService

logger = logging.getLogger(__name__)

T = TypeVar("T")

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
PDF_MIME_TYPE = "application/pdf"


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Create folders, copy templates, fill placeholders and export PDFs."""

    def __init__(self, token_service: "GoogleTokenService") -> None:
        self._token_service = token_service

    async def create_folder(self, name: str, parent_id: str) -> str:
        def _execute(credentials: "Credentials") -> str:
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            folder = (
                service.files()
                .create(
                    body={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            return folder["id"]

        folder_id = await self._call("create_folder", _execute)
        logger.info("Created Drive folder", extra={"folder_id": folder_id, "parent_id": parent_id})
        return folder_id

    async def find_folder_by_name(self, name: str, parent_id: str) -> Optional[str]:
        query = (
            f"name = '{_escape_query_value(name)}' and '{parent_id}' in parents "
            f"and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
        )
        matches = await self._call("find_folder_by_name", lambda creds: self._list_ids(creds, query))
        return matches[0] if matches else None

    async def delete_by_name(self, parent_id: str, name: str) -> int:
        """Delete every non-trashed item named ``name`` inside ``parent_id``."""
        query = (
            f"name = '{_escape_query_value(name)}' and '{parent_id}' in parents "
            "and trashed = false"
        )

        def _execute(credentials: "Credentials") -> int:
            file_ids = self._list_ids(credentials, query)
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            for file_id in file_ids:
                service.files().delete(fileId=file_id, supportsAllDrives=True).execute()
            return len(file_ids)

        deleted = await self._call("delete_by_name", _execute)
        if deleted:
            logger.info("Deleted existing Drive files", extra={"file_name": name, "count": deleted})
        return deleted

    async def copy_template(self, template_id: str, name: str, parent_id: str) -> str:
        def _execute(credentials: "Credentials") -> str:
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            copied = (
                service.files()
                .copy(
                    fileId=template_id,
                    body={"name": name, "parents": [parent_id]},
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            return copied["id"]

        return await self._call("copy_template", _execute)

    async def substitute_placeholders(
        self, document_id: str, replacements: Mapping[str, str]
    ) -> None:
        """Apply every replacement in a single Docs ``batchUpdate``."""
        requests = [
            {
                "replaceAllText": {
                    "containsText": {"text": placeholder, "matchCase": True},
                    "replaceText": value or "",
                }
            }
            for placeholder, value in replacements.items()
        ]

        def _execute(credentials: "Credentials") -> None:
            service = build("docs", "v1", credentials=credentials, cache_discovery=False)
            document = (
                service.documents()
                .get(
                    documentId=document_id,
                    includeTabsContent=True,
                    fields="tabs(tabProperties(tabId),childTabs(tabProperties(tabId)))",
                )
                .execute()
            )
            tabs = document.get("tabs", [])
            if len(tabs) > 1 or any(tab.get("childTabs") for tab in tabs):
                raise ProviderError(
                    "Document uses tabs, which are not supported for text replacement.",
                    transient=False,
                    operation="substitute_placeholders",
                )
            if requests:
                service.documents().batchUpdate(
                    documentId=document_id, body={"requests": requests}
                ).execute()

        await self._call("substitute_placeholders", _execute)

    async def export_artifact(self, document_id: str, parent_id: str, name: str) -> str:
        """Export a document to PDF and store the PDF next to it."""

        def _execute(credentials: "Credentials") -> str:
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            pdf_bytes = (
                service.files().export(fileId=document_id, mimeType=PDF_MIME_TYPE).execute()
            )
            media = MediaIoBaseUpload(io.BytesIO(pdf_bytes), mimetype=PDF_MIME_TYPE, resumable=False)
            created = (
                service.files()
                .create(
                    body={"name": name, "parents": [parent_id], "mimeType": PDF_MIME_TYPE},
                    media_body=media,
                    fields="id",
                    supportsAllDrives=True,
                )
                .execute()
            )
            return created["id"]

        return await self._call("export_artifact", _execute)

    async def set_public_view_permission(self, file_id: str) -> None:
        def _execute(credentials: "Credentials") -> None:
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            service.permissions().create(
                fileId=file_id,
                body={"type": "anyone", "role": "reader"},
                supportsAllDrives=True,
            ).execute()

        await self._call("set_public_view_permission", _execute)

    async def download_artifact(self, file_id: str) -> bytes:
        """Download a file from Drive and return its raw bytes."""

        def _execute(credentials: "Credentials") -> bytes:
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            request = service.files().get_media(fileId=file_id, supportsAllDrives=True)
            fh = io.BytesIO()
            downloader = MediaIoBaseDownload(fh, request)
            done = False
            while not done:
                _, done = downloader.next_chunk()
            return fh.getvalue()

        return await self._call("download_artifact", _execute)

    def document_url(self, document_id: str) -> str:
        return f"https://docs.google.com/document/d/{document_id}/edit"

    def artifact_url(self, file_id: str) -> str:
        return f"https://drive.google.com/file/d/{file_id}/view"

    @staticmethod
    def _list_ids(credentials: "Credentials", query: str) -> list[str]:
        service = build("drive", "v3", credentials=credentials, cache_discovery=False)
        file_ids: list[str] = []
        page_token: Optional[str] = None
        while True:
            response: dict[str, Any] = (
                service.files()
                .list(
                    q=query,
                    fields="nextPageToken, files(id)",
                    spaces="drive",
                    pageToken=page_token,
                    supportsAllDrives=True,
                    includeItemsFromAllDrives=True,
                )
                .execute()
            )
            file_ids.extend(item["id"] for item in response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return file_ids

    async def _call(self, operation: str, func: Callable[["Credentials"], T]) -> T:
        """Run a blocking Google API call off the event loop and tag its failures."""
        credentials = await self._token_service.ensure_valid()
        try:
            return await asyncio.to_thread(func, credentials)
        except ProviderError:
            raise
        except HttpError as exc:
            status_code = exc.resp.status if exc.resp is not None else None
            raise ProviderError(
                exc.reason or str(exc),
                transient=is_transient_status(status_code),
                operation=operation,
                status_code=status_code,
            ) from exc
        except (
            TransportError,
            httplib2.HttpLib2Error,
            socket.timeout,
            ConnectionError,
            TimeoutError,
        ) as exc:
            raise ProviderError(str(exc), transient=True, operation=operation) from exc
        except GoogleAuthError as exc:
            raise ProviderError(str(exc), transient=False, operation=operation) from exc


__all__ = ["GoogleDriveClient"]
