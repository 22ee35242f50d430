"""
Factory functions to provide shared clients and services as FastAPI
dependencies and to the document workers.
"""

from functools import lru_cache

from docgen.clients import (
    DynamoDBClient,
    GoogleDriveClient,
    GoogleOAuthClient,
    OAuthStateEncoder,
    SQLiteQueueClient,
    SQLiteStore,
    SQSClient,
)
from docgen.core.config import get_settings
from docgen.services import (
    CredentialStore,
    DocumentGeneratorService,
    DocumentQueueService,
    DocumentRepository,
    GoogleTokenService,
    TokenCipherService,
)
from docgen.services.credential_store import RecordStore
from docgen.services.document_queue import DocumentQueueClient
from docgen.utils.retry import RetryPolicy


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.google.client_secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.oauth)


@lru_cache()
def get_record_store() -> RecordStore:
    """Provide the configured record store backend."""
    settings = _settings()
    if settings.storage.backend == "dynamodb":
        return DynamoDBClient(settings.aws)
    return SQLiteStore(settings.storage.sqlite_path)


@lru_cache()
def get_queue_client() -> DocumentQueueClient:
    """Provide the configured job queue backend."""
    settings = _settings()
    if settings.storage.queue_backend == "sqs":
        return SQSClient(settings.aws)
    return SQLiteQueueClient(settings.storage.sqlite_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.google.client_secret
    return TokenCipherService(secret=secret)


@lru_cache()
def get_credential_store() -> CredentialStore:
    return CredentialStore(get_record_store(), get_token_cipher_service())


@lru_cache()
def get_google_token_service() -> GoogleTokenService:
    """Provide the lifecycle manager for the system-wide Google credential."""
    settings = _settings()
    return GoogleTokenService(
        credential_store=get_credential_store(),
        oauth_client=get_google_oauth_client(),
        oauth_settings=settings.oauth,
    )


@lru_cache()
def get_drive_client() -> GoogleDriveClient:
    """Provide Google Drive client instance."""
    return GoogleDriveClient(token_service=get_google_token_service())


@lru_cache()
def get_document_repository() -> DocumentRepository:
    return DocumentRepository(get_record_store())


@lru_cache()
def get_document_generator() -> DocumentGeneratorService:
    """Provide the offer document generator wired to Google Drive."""
    settings = _settings()
    return DocumentGeneratorService.from_settings(
        get_drive_client(),
        get_document_repository(),
        document_settings=settings.documents,
    )


def get_document_queue_service() -> DocumentQueueService:
    """Build a document queue service."""
    return DocumentQueueService(
        queue_client=get_queue_client(),
        repository=get_document_repository(),
    )


def get_retry_policy() -> RetryPolicy:
    settings = _settings()
    return RetryPolicy(
        attempts=settings.jobs.tries,
        backoff_seconds=settings.jobs.backoff_seconds,
    )


__all__ = [
    "get_credential_store",
    "get_document_generator",
    "get_document_queue_service",
    "get_document_repository",
    "get_drive_client",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_oauth_state_encoder",
    "get_queue_client",
    "get_record_store",
    "get_retry_policy",
    "get_token_cipher_service",
]
