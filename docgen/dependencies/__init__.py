"""Expose dependency helpers for FastAPI routers and workers."""

from .clients import (
    get_credential_store,
    get_document_generator,
    get_document_queue_service,
    get_document_repository,
    get_drive_client,
    get_google_oauth_client,
    get_google_token_service,
    get_oauth_state_encoder,
    get_queue_client,
    get_record_store,
    get_retry_policy,
    get_token_cipher_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
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
