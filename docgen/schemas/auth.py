"""Schemas related to OAuth flows."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class OAuthCallbackPayload(BaseModel):
    """Payload sent to complete the OAuth callback exchange."""

    code: str = Field(..., description="Authorization code returned by Google OAuth.")
    state: str = Field(..., description="Opaque state token issued when starting OAuth.")


class OAuthConnectionStatus(BaseModel):
    """Whether the system-wide Google account is connected."""

    connected: bool
    expires_at: Optional[datetime] = None
    has_refresh_token: bool = False
    scopes: list[str] = Field(default_factory=list)


__all__ = ["OAuthCallbackPayload", "OAuthConnectionStatus"]
