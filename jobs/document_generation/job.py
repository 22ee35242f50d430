"""
Retryable job that generates every requested document for one offer.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Sequence

from docgen.core.errors import SubjectDataError
from docgen.models.documents import (
    DocumentJobRecord,
    GeneratedDocument,
    JobStatus,
    SubjectKind,
    TemplateKind,
)
from docgen.services.document_generator import DocumentGeneratorService
from docgen.services.document_repository import DocumentRepository
from docgen.utils.retry import AttemptResult, RetryPolicy, run_with_retry
from jobs.document_generation.models import DocumentJobPayload

logger = logging.getLogger(__name__)


class GenerateOfferDocumentsJob:
    """Generate the requested template kinds for an offer, in order."""

    def __init__(
        self,
        *,
        job_id: str,
        offer_id: str,
        template_kinds: Sequence[TemplateKind],
        generator: DocumentGeneratorService,
        repository: DocumentRepository,
    ) -> None:
        self.job_id = job_id
        self.offer_id = offer_id
        self.template_kinds = list(template_kinds)
        self._generator = generator
        self._repository = repository

    @classmethod
    def from_payload(
        cls,
        payload: DocumentJobPayload,
        *,
        generator: DocumentGeneratorService,
        repository: DocumentRepository,
    ) -> "GenerateOfferDocumentsJob":
        if SubjectKind(payload["subject_kind"]) is not SubjectKind.OFFER:
            raise SubjectDataError(f"Unsupported subject kind {payload['subject_kind']!r}")
        return cls(
            job_id=payload["job_id"],
            offer_id=payload["subject_id"],
            template_kinds=[TemplateKind(kind) for kind in payload["template_kinds"]],
            generator=generator,
            repository=repository,
        )

    @property
    def kind_names(self) -> list[str]:
        return [kind.value for kind in self.template_kinds]

    async def run(self) -> list[GeneratedDocument]:
        """One attempt. The first failing kind aborts the rest and propagates."""
        # Reload on every attempt so retries use the offer's current data.
        offer = self._repository.get_offer(self.offer_id)
        if offer is None:
            raise SubjectDataError(f"Offer {self.offer_id} does not exist.")

        logger.info(
            "Starting document generation for offer %s",
            self.offer_id,
            extra={"job_id": self.job_id, "template_kinds": self.kind_names},
        )
        documents: list[GeneratedDocument] = []
        for template_kind in self.template_kinds:
            try:
                document = await self._generator.generate(offer, template_kind)
            except Exception as exc:
                logger.error(
                    "Failed to generate %s document for offer %s",
                    template_kind.value,
                    self.offer_id,
                    extra={"job_id": self.job_id, "error": str(exc)},
                )
                raise
            if document is not None:
                documents.append(document)

        logger.info("Completed document generation for offer %s", self.offer_id)
        return documents

    def failed(self, exc: BaseException) -> None:
        """Terminal handler once no further attempt will be made."""
        logger.error(
            "Document generation job failed for offer %s",
            self.offer_id,
            extra={
                "job_id": self.job_id,
                "template_kinds": self.kind_names,
                "error": str(exc),
            },
        )


class DocumentJobRunner:
    """Apply the attempt/backoff policy to a job and keep its record current."""

    def __init__(
        self,
        repository: DocumentRepository,
        policy: RetryPolicy,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._repository = repository
        self._policy = policy
        self._sleep = sleep

    async def execute(self, job: GenerateOfferDocumentsJob) -> DocumentJobRecord:
        record = self._repository.get_job(job.job_id) or DocumentJobRecord(
            job_id=job.job_id,
            subject_kind=SubjectKind.OFFER,
            subject_id=job.offer_id,
            template_kinds=job.template_kinds,
            status=JobStatus.PENDING,
        )
        record = record.model_copy(
            update={
                "status": JobStatus.IN_PROGRESS,
                "started_at": datetime.now(timezone.utc),
                "attempts": 0,
                "error": None,
            }
        )
        self._repository.save_job(record)

        def _on_failure(result: AttemptResult[Any]) -> None:
            nonlocal record
            logger.warning(
                "Document job attempt %s of %s failed (%s)",
                result.attempt,
                self._policy.attempts,
                result.outcome.value,
                extra={"job_id": job.job_id, "error": str(result.error)},
            )
            record = record.model_copy(
                update={"attempts": result.attempt, "error": str(result.error)}
            )
            self._repository.save_job(record)

        attempts = 0

        async def _attempt() -> list[GeneratedDocument]:
            nonlocal attempts
            attempts += 1
            return await job.run()

        try:
            await run_with_retry(
                _attempt, policy=self._policy, on_failure=_on_failure, sleep=self._sleep
            )
        except Exception as exc:
            job.failed(exc)
            record = record.model_copy(
                update={
                    "status": JobStatus.FAILED,
                    "attempts": attempts,
                    "error": str(exc),
                    "completed_at": datetime.now(timezone.utc),
                }
            )
        else:
            record = record.model_copy(
                update={
                    "status": JobStatus.COMPLETED,
                    "attempts": attempts,
                    "completed_at": datetime.now(timezone.utc),
                }
            )
        self._repository.save_job(record)
        return record


__all__ = ["DocumentJobRunner", "GenerateOfferDocumentsJob"]
