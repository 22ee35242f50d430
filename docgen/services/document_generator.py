"""
Generate Google Docs and PDF documents for offers.

Each call walks the same sequence: resolve the lead's Drive folder, remove the
previous copies by name, copy the template, fill in the placeholders, export a
PDF, share both files, keep a local PDF backup and finally record the result.
Nothing is written to the record store unless every remote step succeeded.
Remote files created before a failure are left in place.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Iterable, Mapping, Optional

from docgen.clients.document_provider import DocumentProvider
from docgen.core.config import DocumentSettings, GoogleSettings
from docgen.core.errors import (
    ConfigurationGap,
    LocalBackupError,
    SubjectDataError,
)
from docgen.models.documents import (
    FILE_NAME_PREFIXES,
    DocumentStatus,
    FolderBinding,
    GeneratedDocument,
    SubjectKind,
    SubjectRef,
    TemplateKind,
)
from docgen.schemas.offer import Lead, Offer
from docgen.services.document_repository import DocumentRepository
from docgen.services.replacements import LeadTimeTable, build_replacements

logger = logging.getLogger(__name__)

PDF_EXTENSION = ".pdf"
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\s\-]")


def clean_name(value: Optional[str], fallback: str = "Unknown") -> str:
    """Reduce a customer name to characters that are safe in file names."""
    cleaned = _UNSAFE_NAME_CHARS.sub("", value or "").strip()
    return re.sub(r"\s+", "_", cleaned) or fallback


def build_file_name(offer: Offer, template_kind: TemplateKind) -> str:
    """Stable name shared by every regeneration of the same offer document."""
    contact = offer.lead.contact if offer.lead else None
    customer = clean_name(contact.name if contact else None)
    return f"{FILE_NAME_PREFIXES[template_kind]}_{offer.offer_number or offer.id}_{customer}"


def build_folder_name(lead: Lead) -> str:
    customer = clean_name(lead.contact.name if lead.contact else None)
    return f"{lead.lead_number or lead.id}_{customer}"


def template_ids_from_settings(settings: DocumentSettings) -> dict[TemplateKind, Optional[str]]:
    return {
        TemplateKind.INSTALLATION: settings.installation_template_id,
        TemplateKind.ITEMS: settings.items_template_id,
    }


def lead_times_from_settings(settings: DocumentSettings) -> dict[TemplateKind, tuple[int, int]]:
    return {
        TemplateKind.INSTALLATION: settings.installation_lead_time_weeks,
        TemplateKind.ITEMS: settings.items_lead_time_weeks,
    }


class DocumentGeneratorService:
    """Turn an offer and a template kind into a shared Doc, a PDF and a record."""

    def __init__(
        self,
        provider: DocumentProvider,
        repository: DocumentRepository,
        *,
        template_ids: Mapping[TemplateKind, Optional[str]],
        root_folder_id: Optional[str],
        lead_times: LeadTimeTable,
        backup_dir: Path,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._template_ids = dict(template_ids)
        self._root_folder_id = root_folder_id
        self._lead_times = lead_times
        self._backup_dir = Path(backup_dir)
        self._today = today
        # One lock per lead: folder resolution and delete-then-recreate for the
        # same lead never interleave inside this process.
        self._owner_locks: dict[str, asyncio.Lock] = {}
        self._owner_lock_users: Counter[str] = Counter()

    @classmethod
    def from_settings(
        cls,
        provider: DocumentProvider,
        repository: DocumentRepository,
        *,
        google_settings: GoogleSettings,
        document_settings: DocumentSettings,
    ) -> "DocumentGeneratorService":
        return cls(
            provider,
            repository,
            template_ids=template_ids_from_settings(document_settings),
            root_folder_id=google_settings.drive_root_folder_id,
            lead_times=lead_times_from_settings(document_settings),
            backup_dir=document_settings.backup_dir,
        )

    async def generate(
        self, offer: Offer, template_kind: TemplateKind
    ) -> Optional[GeneratedDocument]:
        """Generate (or regenerate) one document; ``None`` if the kind is not configured."""
        template_id = self._template_ids.get(template_kind)
        if not template_id:
            logger.warning(
                "No template ID configured for type: %s", template_kind.value,
                extra={"offer_id": offer.id},
            )
            return None

        lead = offer.lead
        if lead is None:
            raise SubjectDataError(f"Offer {offer.id} has no associated lead.")

        async with self._owner_lock(lead.id):
            try:
                return await self._generate_locked(offer, lead, template_kind, template_id)
            except Exception:
                logger.exception(
                    "Failed to generate %s document for offer %s",
                    template_kind.value,
                    offer.id,
                )
                raise

    @asynccontextmanager
    async def _owner_lock(self, owner_id: str) -> AsyncIterator[None]:
        """Hold the lead's lock; the entry is dropped once nobody holds or awaits it."""
        lock = self._owner_locks.setdefault(owner_id, asyncio.Lock())
        self._owner_lock_users[owner_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._owner_lock_users[owner_id] -= 1
            if not self._owner_lock_users[owner_id]:
                del self._owner_lock_users[owner_id]
                del self._owner_locks[owner_id]

    async def generate_many(
        self, offer: Offer, template_kinds: Iterable[TemplateKind]
    ) -> list[GeneratedDocument]:
        """Generate kinds in order, stopping at the first failure."""
        documents: list[GeneratedDocument] = []
        for template_kind in template_kinds:
            document = await self.generate(offer, template_kind)
            if document is not None:
                documents.append(document)
        return documents

    async def resolve_folder(self, lead: Lead) -> str:
        """Return the lead's Drive folder id, creating and binding it on first use."""
        binding = self._repository.get_folder_binding(lead.id)
        if binding is not None:
            return binding.folder_id

        if not self._root_folder_id:
            raise ConfigurationGap("Google Drive root folder ID is not configured.")

        folder_name = build_folder_name(lead)
        folder_id = await self._provider.find_folder_by_name(folder_name, self._root_folder_id)
        if folder_id is None:
            folder_id = await self._provider.create_folder(folder_name, self._root_folder_id)

        bound = self._repository.bind_folder(
            FolderBinding(owner_id=lead.id, folder_id=folder_id, folder_name=folder_name)
        )
        if bound.folder_id != folder_id:
            logger.warning(
                "Lead folder was bound concurrently; leaving duplicate folder %s unused",
                folder_id,
                extra={"lead_id": lead.id},
            )
        return bound.folder_id

    async def _generate_locked(
        self,
        offer: Offer,
        lead: Lead,
        template_kind: TemplateKind,
        template_id: str,
    ) -> GeneratedDocument:
        folder_id = await self.resolve_folder(lead)
        file_name = build_file_name(offer, template_kind)
        pdf_name = f"{file_name}{PDF_EXTENSION}"

        stale_names = [file_name, pdf_name]
        previous = self._repository.get_document(
            SubjectRef(SubjectKind.OFFER, offer.id), template_kind
        )
        if previous is not None and previous.file_name != file_name:
            # Offer number or customer name changed since the last run.
            stale_names += [previous.file_name, f"{previous.file_name}{PDF_EXTENSION}"]
        for name in stale_names:
            await self._provider.delete_by_name(folder_id, name)

        document_id = await self._provider.copy_template(template_id, file_name, folder_id)

        replacements = build_replacements(
            offer, template_kind, lead_times=self._lead_times, today=self._today()
        )
        await self._provider.substitute_placeholders(document_id, replacements)

        pdf_id = await self._provider.export_artifact(document_id, folder_id, pdf_name)
        await self._provider.set_public_view_permission(document_id)
        await self._provider.set_public_view_permission(pdf_id)

        local_path: Optional[str] = None
        try:
            local_path = await self._save_pdf_locally(offer, pdf_name, pdf_id)
        except LocalBackupError:
            logger.exception(
                "Failed to save PDF locally", extra={"offer_id": offer.id, "pdf_id": pdf_id}
            )

        now = datetime.now(timezone.utc)
        document = GeneratedDocument(
            subject_kind=SubjectKind.OFFER,
            subject_id=offer.id,
            template_kind=template_kind,
            status=DocumentStatus.GENERATED
            if local_path
            else DocumentStatus.GENERATED_WITHOUT_BACKUP,
            file_name=file_name,
            document_id=document_id,
            pdf_id=pdf_id,
            document_url=self._provider.document_url(document_id),
            pdf_url=self._provider.artifact_url(pdf_id),
            local_pdf_path=local_path,
            created_at=now,
            updated_at=now,
        )
        stored = self._repository.upsert_document(document)
        logger.info(
            "Generated %s document for offer %s",
            template_kind.value,
            offer.id,
            extra={"document_id": document_id, "pdf_id": pdf_id},
        )
        return stored

    async def _save_pdf_locally(self, offer: Offer, pdf_name: str, pdf_id: str) -> str:
        relative = Path("documents") / "offers" / offer.id / pdf_name
        try:
            content = await self._provider.download_artifact(pdf_id)
            target = self._backup_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, content)
        except Exception as exc:
            # Backup failures never fail the generation.
            raise LocalBackupError(str(exc)) from exc
        return relative.as_posix()


__all__ = [
    "DocumentGeneratorService",
    "build_file_name",
    "build_folder_name",
    "clean_name",
    "lead_times_from_settings",
    "template_ids_from_settings",
]
