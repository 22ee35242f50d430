"""Local worker that processes queued document jobs from SQLite."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from docgen.clients.local_queue import SQLiteQueueClient
from docgen.core.config import get_settings
from docgen.models.documents import DocumentJobRecord
from jobs.document_generation.handler import process_job
from jobs.document_generation.models import DocumentJobPayload

logger = logging.getLogger(__name__)


class DocumentQueueWorker:
    """Poll the SQLite queue and execute document jobs one at a time."""

    def __init__(
        self,
        queue_client: SQLiteQueueClient,
        poll_interval_seconds: float = 1.0,
        processor: Callable[[DocumentJobPayload], Awaitable[DocumentJobRecord]] = process_job,
    ) -> None:
        self._queue = queue_client
        self._poll_interval = poll_interval_seconds
        self._processor = processor

    async def run_forever(self) -> None:
        while True:
            if not await self.run_once():
                await asyncio.sleep(self._poll_interval)

    async def run_once(self) -> bool:
        """Process the next queued job; return False when the queue is empty."""
        payload = self._dequeue()
        if payload is None:
            return False

        logger.info("Dequeued document job", extra={"job_id": payload["job_id"]})
        try:
            await self._processor(payload)
        except Exception:
            # Malformed payloads and infrastructure errors must not stop the loop.
            logger.exception("Failed processing document job", extra={"job_id": payload["job_id"]})
        return True

    def _dequeue(self) -> Optional[DocumentJobPayload]:
        message = self._queue.dequeue_document_job()
        if message is None:
            return None
        return message  # type: ignore[return-value]


async def main() -> None:
    settings = get_settings()
    queue_client = SQLiteQueueClient(settings.storage.sqlite_path)
    worker = DocumentQueueWorker(
        queue_client=queue_client,
        poll_interval_seconds=settings.jobs.poll_interval_seconds,
    )
    await worker.run_forever()


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Document queue worker stopped")
