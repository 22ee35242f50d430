"""
Domain models for generated documents and their Drive bindings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TemplateKind(str, Enum):
    """Closed set of documents that can be generated for an offer."""

    INSTALLATION = "installation"
    ITEMS = "items"


class SubjectKind(str, Enum):
    """Kinds of business records documents are generated for."""

    OFFER = "offer"


class SubjectRef(NamedTuple):
    """Explicit (kind, id) address of a subject."""

    kind: SubjectKind
    id: str

    @property
    def partition_key(self) -> str:
        return f"{self.kind.value}#{self.id}"


DEFAULT_TEMPLATE_KINDS: tuple[TemplateKind, ...] = (
    TemplateKind.INSTALLATION,
    TemplateKind.ITEMS,
)

# File names are derived from these so regeneration can find earlier copies.
FILE_NAME_PREFIXES: dict[TemplateKind, str] = {
    TemplateKind.INSTALLATION: "install",
    TemplateKind.ITEMS: "items",
}


class DocumentStatus(str, Enum):
    GENERATED = "generated"
    GENERATED_WITHOUT_BACKUP = "generated_without_backup"


class JobStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class FolderBinding(BaseModel):
    """Association between a lead and its Drive folder."""

    owner_id: str
    folder_id: str
    folder_name: str
    created_at: datetime = Field(default_factory=_utcnow)


class GeneratedDocument(BaseModel):
    """Current generated document for a (subject, template kind) pair."""

    subject_kind: SubjectKind
    subject_id: str
    template_kind: TemplateKind
    status: DocumentStatus
    file_name: str
    document_id: str
    pdf_id: str
    document_url: str
    pdf_url: str
    local_pdf_path: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def subject(self) -> SubjectRef:
        return SubjectRef(self.subject_kind, self.subject_id)


class DocumentJobRecord(BaseModel):
    """Lifecycle record for a queued document generation job."""

    job_id: str
    subject_kind: SubjectKind
    subject_id: str
    template_kinds: list[TemplateKind]
    status: JobStatus
    attempts: int = 0
    error: Optional[str] = None
    requested_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


__all__ = [
    "DEFAULT_TEMPLATE_KINDS",
    "DocumentJobRecord",
    "DocumentStatus",
    "FILE_NAME_PREFIXES",
    "FolderBinding",
    "GeneratedDocument",
    "JobStatus",
    "SubjectKind",
    "SubjectRef",
    "TemplateKind",
]
