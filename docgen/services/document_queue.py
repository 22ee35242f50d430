"""
Service helpers for enqueuing document generation jobs.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Protocol

from docgen.models.documents import (
    DEFAULT_TEMPLATE_KINDS,
    DocumentJobRecord,
    JobStatus,
    SubjectKind,
    TemplateKind,
)
from docgen.schemas.offer import Offer
from docgen.services.document_repository import DocumentRepository

logger = logging.getLogger(__name__)


class DocumentQueueClient(Protocol):
    def enqueue_document_job(self, payload: Dict[str, Any]) -> str: ...


class DocumentQueueService:
    """React to saved offers by queueing document jobs and tracking them."""

    def __init__(self, queue_client: DocumentQueueClient, repository: DocumentRepository) -> None:
        self._queue = queue_client
        self._repository = repository

    def on_offer_saved(
        self,
        offer: Offer,
        template_kinds: Iterable[TemplateKind] = DEFAULT_TEMPLATE_KINDS,
    ) -> DocumentJobRecord:
        """Store the offer snapshot and schedule its documents."""
        self._repository.save_offer(offer)
        return self.enqueue(offer.id, template_kinds)

    def enqueue(
        self, offer_id: str, template_kinds: Iterable[TemplateKind]
    ) -> DocumentJobRecord:
        """Create a pending job record and push the job onto the queue."""
        kinds = list(dict.fromkeys(template_kinds))
        record = DocumentJobRecord(
            job_id=self._build_job_id(offer_id),
            subject_kind=SubjectKind.OFFER,
            subject_id=offer_id,
            template_kinds=kinds,
            status=JobStatus.PENDING,
        )
        self._repository.save_job(record)

        message_id = self._queue.enqueue_document_job(self._build_message_payload(record))
        logger.info(
            "Queued document job",
            extra={"job_id": record.job_id, "message_id": message_id},
        )
        return record

    @staticmethod
    def _build_job_id(offer_id: str) -> str:
        timestamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        return f"{offer_id}-{timestamp}-{uuid.uuid4().hex[:8]}"

    @staticmethod
    def _build_message_payload(record: DocumentJobRecord) -> Dict[str, Any]:
        return {
            "job_id": record.job_id,
            "subject_kind": record.subject_kind.value,
            "subject_id": record.subject_id,
            "template_kinds": [kind.value for kind in record.template_kinds],
            "requested_at": record.requested_at.isoformat(),
        }


__all__ = ["DocumentQueueClient", "DocumentQueueService"]
