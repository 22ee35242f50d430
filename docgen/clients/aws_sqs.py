"""
Amazon SQS client wrapper for queueing document generation jobs.
"""

from __future__ import annotations

import json
from typing import Any, Dict

import boto3

from docgen.core.config import AWSSettings


class SQSClient:
    """Send document jobs to the queue consumed by the Lambda handler."""

    def __init__(self, settings: AWSSettings) -> None:
        if not settings.sqs_queue_url:
            raise ValueError("DOCUMENT_QUEUE_URL must be set for the sqs queue backend.")
        self._settings = settings
        self._client = boto3.client("sqs", region_name=settings.region_name)

    def enqueue_document_job(self, payload: Dict[str, Any]) -> str:
        """Push a message onto the SQS queue."""
        response = self._client.send_message(
            QueueUrl=self._settings.sqs_queue_url,
            MessageBody=json.dumps(payload),
        )
        return response["MessageId"]


__all__ = ["SQSClient"]
