"""Service layer exports."""

from .credential_store import CredentialStore
from .document_generator import DocumentGeneratorService
from .document_queue import DocumentQueueService
from .document_repository import DocumentRepository
from .google_tokens import GoogleTokenService
from .token_cipher import TokenCipherService

__all__ = [
    "CredentialStore",
    "DocumentGeneratorService",
    "DocumentQueueService",
    "DocumentRepository",
    "GoogleTokenService",
    "TokenCipherService",
]
