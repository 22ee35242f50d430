"""
Application configuration models and helpers.

Centralizes settings management so both the FastAPI app and the document
generation workers share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GoogleSettings(BaseSettings):
    """Configuration required for interacting with Google APIs."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(..., alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., alias="GOOGLE_REDIRECT_URI")
    drive_root_folder_id: Optional[str] = Field(
        None,
        alias="GOOGLE_DRIVE_ROOT_FOLDER_ID",
        description="Folder under which one sub-folder per lead is created.",
    )


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    state_ttl_seconds: int = Field(900, alias="OAUTH_STATE_TTL")
    refresh_buffer_seconds: int = Field(
        300,
        alias="OAUTH_REFRESH_BUFFER_SECONDS",
        description="Refresh the access token when it expires within this window.",
    )
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "https://www.googleapis.com/auth/drive",
            "https://www.googleapis.com/auth/documents",
        ),
        alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class DocumentSettings(BaseSettings):
    """Template identifiers and document content constants."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    installation_template_id: Optional[str] = Field(
        None, alias="GOOGLE_TEMPLATE_INSTALLATION_ID"
    )
    items_template_id: Optional[str] = Field(None, alias="GOOGLE_TEMPLATE_ITEMS_ID")
    installation_lead_time_weeks: Annotated[tuple[int, int], NoDecode] = Field(
        (6, 8), alias="INSTALLATION_LEAD_TIME_WEEKS"
    )
    items_lead_time_weeks: Annotated[tuple[int, int], NoDecode] = Field(
        (4, 6), alias="ITEMS_LEAD_TIME_WEEKS"
    )
    backup_dir: Path = Field(
        Path("storage/public"),
        alias="DOCUMENT_BACKUP_DIR",
        description="Root directory for local PDF backups.",
    )

    @field_validator(
        "installation_lead_time_weeks", "items_lead_time_weeks", mode="before"
    )
    @classmethod
    def _parse_weeks(cls, value: str | tuple[int, int] | list[int]) -> tuple[int, int]:
        """Accept ``"6-8"`` as well as a two-element sequence."""
        if isinstance(value, str):
            low, _, high = value.partition("-")
            value = (int(low), int(high or low))
        low, high = value
        if low > high:
            raise ValueError("Lead time minimum must not exceed the maximum.")
        return int(low), int(high)


class StorageSettings(BaseSettings):
    """Where records and queued jobs are kept."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    backend: Literal["sqlite", "dynamodb"] = Field("sqlite", alias="STORAGE_BACKEND")
    queue_backend: Literal["sqlite", "sqs"] = Field("sqlite", alias="QUEUE_BACKEND")
    sqlite_path: str = Field("data/docgen.sqlite3", alias="SQLITE_DB_PATH")


class AWSSettings(BaseSettings):
    """Settings for AWS services used when running outside a single host."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    region_name: str = Field("us-east-1", alias="AWS_REGION")
    sqs_queue_url: Optional[str] = Field(None, alias="DOCUMENT_QUEUE_URL")
    dynamodb_table_name: Optional[str] = Field(None, alias="DYNAMODB_TABLE_NAME")


class JobSettings(BaseSettings):
    """Retry policy applied to document generation jobs."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    tries: int = Field(3, alias="DOCUMENT_JOB_TRIES", ge=1)
    backoff_seconds: float = Field(30.0, alias="DOCUMENT_JOB_BACKOFF_SECONDS", ge=0)
    poll_interval_seconds: float = Field(1.0, alias="DOCUMENT_JOB_POLL_INTERVAL")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application and workers."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    documents: DocumentSettings = Field(default_factory=DocumentSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "AWSSettings",
    "DocumentSettings",
    "GoogleSettings",
    "JobSettings",
    "OAuthSettings",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
]
