"""
Lifecycle management for the system-wide Google OAuth credential.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from google.oauth2.credentials import Credentials

from docgen.clients.google_auth import GoogleOAuthClient, OAuthTokenExchangeError
from docgen.core.config import OAuthSettings
from docgen.core.errors import AuthRequired
from docgen.models.oauth import StoredOAuthCredential
from docgen.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class GoogleTokenService:
    """Keeps the stored Google credential valid and hands out API credentials.

    Refreshes are serialized within the process. Across processes the
    credential store's compare-and-update decides the winner and the loser
    adopts the winner's token rather than writing its own.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        oauth_client: GoogleOAuthClient,
        oauth_settings: OAuthSettings,
    ) -> None:
        self._store = credential_store
        self._oauth = oauth_client
        self._oauth_settings = oauth_settings
        self._refresh_window = timedelta(seconds=oauth_settings.refresh_buffer_seconds)
        self._refresh_lock = asyncio.Lock()

    async def ensure_valid(self) -> Credentials:
        """Return usable credentials, refreshing the access token when close to expiry."""
        stored = self._load_or_fail()
        if self._needs_refresh(stored):
            async with self._refresh_lock:
                stored = self._load_or_fail()
                if self._needs_refresh(stored):
                    stored = await self._refresh(stored)
        return self._to_credentials(stored)

    async def handle_callback(self, code: str) -> StoredOAuthCredential:
        """Exchange an authorization code and make the result the only credential."""
        grant = await self._oauth.exchange_authorization_code(code)
        now = datetime.now(timezone.utc)
        credential = StoredOAuthCredential(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=now + timedelta(seconds=grant.expires_in),
            scopes=list(grant.scopes),
            created_at=now,
            updated_at=now,
        )
        stored = self._store.replace(credential)
        if not stored.refresh_token:
            logger.warning("Google did not return a refresh token; expiry will require re-authorization")
        logger.info("Stored new Google OAuth credential", extra={"version": stored.version})
        return stored

    def current(self) -> Optional[StoredOAuthCredential]:
        """Return the stored credential without refreshing it."""
        return self._store.load()

    def _load_or_fail(self) -> StoredOAuthCredential:
        stored = self._store.load()
        if stored is None:
            raise AuthRequired("Google account is not connected.")
        return stored

    def _needs_refresh(self, stored: StoredOAuthCredential) -> bool:
        return stored.expires_within(self._refresh_window.total_seconds())

    async def _refresh(self, stored: StoredOAuthCredential) -> StoredOAuthCredential:
        if not stored.refresh_token:
            logger.error("No refresh token available for Google OAuth")
            raise AuthRequired("No refresh token available; re-authorize the Google account.")

        refreshed_at = datetime.now(timezone.utc)
        try:
            access_token, expires_in = await self._oauth.refresh_token(stored.refresh_token)
        except OAuthTokenExchangeError as exc:
            logger.error("Failed to refresh Google OAuth token", extra={"error": str(exc)})
            raise AuthRequired("Failed to refresh Google OAuth token.") from exc

        refreshed = stored.model_copy(
            update={
                "access_token": access_token,
                "expires_at": refreshed_at + timedelta(seconds=expires_in),
            }
        )
        updated = self._store.compare_and_update(refreshed, expected_version=stored.version)
        if updated is None:
            logger.info("Google credential changed during refresh; using the stored one")
            return self._load_or_fail()

        logger.info("Google OAuth token refreshed successfully")
        return updated

    def _to_credentials(self, stored: StoredOAuthCredential) -> Credentials:
        """Access token only; refreshing stays with this service."""
        expires_at = stored.expires_at
        if expires_at.tzinfo is not None:
            # google-auth compares against naive UTC timestamps.
            expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
        return Credentials(
            token=stored.access_token,
            scopes=list(stored.scopes or self._oauth_settings.scopes),
            expiry=expires_at,
        )


__all__ = ["GoogleTokenService"]
