"""
Data models shared across the document generation job package.
"""

from __future__ import annotations

from typing import List, TypedDict


class DocumentJobPayload(TypedDict):
    """Payload structure delivered via the SQLite queue or SQS."""

    job_id: str
    subject_kind: str
    subject_id: str
    template_kinds: List[str]
    requested_at: str


__all__ = ["DocumentJobPayload"]
