"""
Domain models for OAuth credential persistence.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredOAuthCredential(BaseModel):
    """The single system-wide Google credential, with tokens decrypted."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime
    scopes: list[str] = Field(default_factory=list)
    version: int = Field(
        1, description="Incremented on every write; used for compare-and-update."
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def expires_within(self, seconds: float, *, now: datetime | None = None) -> bool:
        """Return True when fewer than ``seconds`` of lifetime remain."""
        current = now or _utcnow()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return (expires_at - current).total_seconds() < seconds


__all__ = ["StoredOAuthCredential"]
