"""
Entrypoints for processing document generation jobs.

``process_job`` is shared by the local SQLite worker and ``lambda_handler``,
which is invoked by SQS.
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Dict, List

from docgen.core.config import get_settings
from docgen.core.logging import configure_logging
from docgen.dependencies import (
    get_document_generator,
    get_document_repository,
    get_retry_policy,
)
from docgen.models.documents import DocumentJobRecord, JobStatus
from jobs.document_generation.job import DocumentJobRunner, GenerateOfferDocumentsJob
from jobs.document_generation.models import DocumentJobPayload

logger = logging.getLogger(__name__)


@lru_cache()
def _bootstrap() -> DocumentJobRunner:
    """Initialize shared singletons for the worker runtime."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return DocumentJobRunner(get_document_repository(), get_retry_policy())


async def process_job(payload: DocumentJobPayload) -> DocumentJobRecord:
    """Run a single job payload through the retry policy."""
    runner = _bootstrap()
    job = GenerateOfferDocumentsJob.from_payload(
        payload,
        generator=get_document_generator(),
        repository=get_document_repository(),
    )
    logger.info("Starting document job", extra={"job_id": payload["job_id"]})
    record = await runner.execute(job)
    logger.info(
        "Finished document job",
        extra={"job_id": payload["job_id"], "status": record.status.value},
    )
    return record


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda handler invoked by SQS.

    Records are processed sequentially; failures are recorded on the job record
    by the runner rather than surfaced to SQS, so messages are not redelivered.
    """
    records: List[Dict[str, Any]] = event.get("Records", [])
    if not records:
        logger.warning("No records found in event payload.")
        return {"statusCode": 200, "processed": 0}

    payloads: List[DocumentJobPayload] = []
    for record in records:
        body = record.get("body")
        if body is None:
            logger.error("Skipping record without body: %s", record)
            continue
        payloads.append(json.loads(body))

    if not payloads:
        return {"statusCode": 200, "processed": 0}

    async def _process_all() -> List[DocumentJobRecord]:
        return [await process_job(payload) for payload in payloads]

    results = asyncio.run(_process_all())
    failed = [result.job_id for result in results if result.status is JobStatus.FAILED]

    return {"statusCode": 200, "processed": len(results), "failed": failed}


__all__ = ["lambda_handler", "process_job"]
