"""
Error taxonomy for document generation.

Only :class:`ProviderError` carries a retry hint; everything else is either
tolerated in place (configuration gaps for a single template, local backups)
or fatal for the current job.
"""

from __future__ import annotations


class DocumentGenerationError(Exception):
    """Base class for failures raised while generating documents."""

    transient = False


class ConfigurationGap(DocumentGenerationError):
    """Raised when required configuration (e.g. the Drive root folder) is absent."""


class AuthRequired(DocumentGenerationError):
    """Raised when no usable Google credential is available."""


class SubjectDataError(DocumentGenerationError):
    """Raised when a subject lacks data the document cannot be built without."""


class LocalBackupError(DocumentGenerationError):
    """Raised when the exported PDF could not be stored locally."""


class ProviderError(DocumentGenerationError):
    """A remote document provider call failed."""

    def __init__(
        self,
        message: str,
        *,
        transient: bool,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.transient = transient
        self.operation = operation
        self.status_code = status_code

    def __str__(self) -> str:
        kind = "transient" if self.transient else "permanent"
        prefix = f"{self.operation}: " if self.operation else ""
        return f"{prefix}{self.args[0]} ({kind})"


__all__ = [
    "AuthRequired",
    "ConfigurationGap",
    "DocumentGenerationError",
    "LocalBackupError",
    "ProviderError",
    "SubjectDataError",
]
