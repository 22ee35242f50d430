"""
Google OAuth utilities.

These helpers drive the consent flow for the single system-wide Google
account and talk to the token endpoint for exchanges and refreshes.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
from hashlib import sha256
from typing import Any, Dict, NamedTuple, Optional
from urllib.parse import urlencode

import httpx

from docgen.core.config import GoogleSettings, OAuthSettings


class OAuthStateError(Exception):
    """Raised when an OAuth state token is malformed or has been tampered with."""


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class TokenGrant(NamedTuple):
    """Tokens returned by the Google token endpoint."""

    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    scopes: tuple[str, ...]


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise OAuthStateError("OAuth state is not valid base64.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise OAuthStateError("Invalid OAuth state signature.")
        return json.loads(serialized)


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange or refresh tokens."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._transport = transport

    def build_authorization_url(self, state: str, access_type: str = "offline") -> str:
        """Construct the Google OAuth consent URL."""
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": str(self._google.redirect_uri),
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": access_type,
            "include_granted_scopes": "true",
            # Google only returns a refresh token when consent is re-prompted.
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for tokens."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": str(self._google.redirect_uri),
            "grant_type": "authorization_code",
        }
        token_payload = await self._post(payload)

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")

        scope = token_payload.get("scope") or ""
        return TokenGrant(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
            expires_in=int(expires_in),
            scopes=tuple(scope.split()) or tuple(self._oauth.scopes),
        )

    async def refresh_token(self, refresh_token: str) -> tuple[str, int]:
        """Refresh the access token using a stored refresh token."""
        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        token_payload = await self._post(payload)

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise OAuthTokenExchangeError("Incomplete refresh payload returned from Google.")

        return access_token, int(expires_in)

    async def _post(self, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise OAuthTokenExchangeError(response.text)
        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned a non-JSON body.") from exc
        if not isinstance(token_payload, dict):
            raise OAuthTokenExchangeError("Token endpoint returned an unexpected payload.")
        return token_payload


__all__ = [
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "OAuthStateError",
    "OAuthTokenExchangeError",
    "TokenGrant",
]
