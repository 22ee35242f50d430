"""
Record-store access for offers, Drive folder bindings, generated documents and
document jobs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from docgen.models.documents import (
    DocumentJobRecord,
    FolderBinding,
    GeneratedDocument,
    SubjectKind,
    SubjectRef,
    TemplateKind,
)
from docgen.schemas.offer import Offer
from docgen.services.credential_store import RecordStore

_SUBJECT_SK = "subject"
_FOLDER_SK = "folder#google"
_DOCUMENT_SK_PREFIX = "document#"
_JOB_SK = "status"


def _lead_pk(lead_id: str) -> str:
    return f"lead#{lead_id}"


def _job_pk(job_id: str) -> str:
    return f"job#{job_id}"


class DocumentRepository:
    """Typed accessors over the (pk, sk) record store."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    # Offers

    def save_offer(self, offer: Offer) -> None:
        ref = SubjectRef(SubjectKind.OFFER, offer.id)
        item = offer.model_dump(mode="json")
        item.update({"pk": ref.partition_key, "sk": _SUBJECT_SK})
        self._store.put_item(item)

    def get_offer(self, offer_id: str) -> Optional[Offer]:
        ref = SubjectRef(SubjectKind.OFFER, offer_id)
        record = self._store.get_item(partition_key=ref.partition_key, sort_key=_SUBJECT_SK)
        return Offer.model_validate(_strip_keys(record)) if record else None

    # Folder bindings

    def get_folder_binding(self, owner_id: str) -> Optional[FolderBinding]:
        record = self._store.get_item(partition_key=_lead_pk(owner_id), sort_key=_FOLDER_SK)
        return FolderBinding.model_validate(_strip_keys(record)) if record else None

    def bind_folder(self, binding: FolderBinding) -> FolderBinding:
        """Persist a binding unless one already exists; return the binding in effect."""
        item = binding.model_dump(mode="json")
        item.update({"pk": _lead_pk(binding.owner_id), "sk": _FOLDER_SK})
        if self._store.put_item_if_absent(item):
            return binding
        existing = self.get_folder_binding(binding.owner_id)
        return existing or binding

    # Generated documents

    def get_document(
        self, subject: SubjectRef, template_kind: TemplateKind
    ) -> Optional[GeneratedDocument]:
        record = self._store.get_item(
            partition_key=subject.partition_key,
            sort_key=f"{_DOCUMENT_SK_PREFIX}{template_kind.value}",
        )
        return GeneratedDocument.model_validate(_strip_keys(record)) if record else None

    def list_documents(self, subject: SubjectRef) -> list[GeneratedDocument]:
        records = self._store.list_items_with_prefix(
            partition_key=subject.partition_key, sort_key_prefix=_DOCUMENT_SK_PREFIX
        )
        return [GeneratedDocument.model_validate(_strip_keys(record)) for record in records]

    def upsert_document(self, document: GeneratedDocument) -> GeneratedDocument:
        """Replace the current record for the document's key, keeping ``created_at``."""
        existing = self.get_document(document.subject, document.template_kind)
        if existing is not None:
            document = document.model_copy(update={"created_at": existing.created_at})
        item = document.model_dump(mode="json")
        item.update(
            {
                "pk": document.subject.partition_key,
                "sk": f"{_DOCUMENT_SK_PREFIX}{document.template_kind.value}",
            }
        )
        self._store.put_item(item)
        return document

    # Jobs

    def save_job(self, record: DocumentJobRecord) -> None:
        item = record.model_dump(mode="json")
        item.update({"pk": _job_pk(record.job_id), "sk": _JOB_SK})
        self._store.put_item(item)

    def get_job(self, job_id: str) -> Optional[DocumentJobRecord]:
        record = self._store.get_item(partition_key=_job_pk(job_id), sort_key=_JOB_SK)
        return DocumentJobRecord.model_validate(_strip_keys(record)) if record else None


def _strip_keys(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key not in ("pk", "sk")}


__all__ = ["DocumentRepository"]
