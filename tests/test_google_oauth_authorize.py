try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy

import httpx
import pytest

from docgen.clients.google_auth import (
    OAuthStateEncoder,
    OAuthTokenExchangeError,
    TokenGrant,
)
from docgen.clients.sqlite_store import SQLiteStore
from docgen.main import app
from docgen.services.credential_store import CredentialStore
from docgen.services.google_tokens import GoogleTokenService
from docgen.services.token_cipher import TokenCipherService


class DummyOAuthClient:
    TOKEN_URL = "https://oauth.example.com/token"

    def __init__(self) -> None:
        self.states: list[str] = []
        self.codes: list[str] = []
        self.fail_exchange = False

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://oauth.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        self.codes.append(code)
        if self.fail_exchange:
            raise OAuthTokenExchangeError("invalid_grant")
        return TokenGrant(
            access_token="access-token",
            refresh_token="refresh-token",
            expires_in=3600,
            scopes=("https://www.googleapis.com/auth/drive",),
        )

    async def refresh_token(self, refresh_token: str) -> tuple[str, int]:
        return "refreshed", 3600


@pytest.fixture()
def oauth_overrides(tmp_path):
    from docgen import dependencies
    from docgen.core.config import get_settings

    dummy_client = DummyOAuthClient()
    base_settings = copy.deepcopy(get_settings())
    base_settings.frontend_base_url = None
    credential_store = CredentialStore(
        SQLiteStore(str(tmp_path / "records.sqlite3")),
        TokenCipherService(secret="test-secret"),
    )
    token_service = GoogleTokenService(
        credential_store=credential_store,
        oauth_client=dummy_client,
        oauth_settings=base_settings.oauth,
    )

    overrides = {
        dependencies.get_google_oauth_client: lambda: dummy_client,
        dependencies.get_google_token_service: lambda: token_service,
        dependencies.get_app_settings: lambda: base_settings,
    }

    app.dependency_overrides.update(overrides)

    yield dummy_client, credential_store, base_settings

    app.dependency_overrides.clear()


@pytest.mark.anyio
async def test_authorize_returns_json_by_default(oauth_overrides):
    dummy_client, _, _ = oauth_overrides
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/auth/google/authorize")

    assert response.status_code == 200
    data = response.json()
    assert "authorization_url" in data
    assert data["authorization_url"].startswith("https://")
    assert dummy_client.states


@pytest.mark.anyio
async def test_authorize_redirects_for_html_accept(oauth_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/api/auth/google/authorize",
            headers={"accept": "text/html"},
        )

    assert response.status_code == 307
    assert response.headers["location"].startswith(
        "https://oauth.example.com/auth"
    )


@pytest.mark.anyio
async def test_callback_get_returns_json_when_no_frontend(oauth_overrides):
    dummy_client, credential_store, _ = oauth_overrides

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        await client.get("/api/auth/google/authorize")

        state = dummy_client.states[-1]
        callback_resp = await client.get(
            "/api/auth/google/callback",
            params={"state": state, "code": "oauth-code"},
        )
        status_resp = await client.get("/api/auth/google/status")

    assert callback_resp.status_code == 200
    data = callback_resp.json()
    assert data["status"] == "connected"
    assert dummy_client.codes[-1] == "oauth-code"

    stored = credential_store.load()
    assert stored is not None
    assert stored.access_token == "access-token"

    status = status_resp.json()
    assert status["connected"] is True
    assert status["has_refresh_token"] is True


@pytest.mark.anyio
async def test_callback_get_redirects_when_frontend_available(oauth_overrides):
    dummy_client, _, settings = oauth_overrides
    settings.frontend_base_url = "https://app.example.com/oauth/success"

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        await client.get("/api/auth/google/authorize")

        state = dummy_client.states[-1]
        callback_resp = await client.get(
            "/api/auth/google/callback",
            params={"state": state, "code": "oauth-code"},
            headers={"accept": "text/html"},
        )

    assert callback_resp.status_code == 307
    assert (
        callback_resp.headers["location"]
        == "https://app.example.com/oauth/success"
    )


@pytest.mark.anyio
async def test_callback_rejects_tampered_state(oauth_overrides):
    dummy_client, credential_store, _ = oauth_overrides
    forged_state = OAuthStateEncoder("not-the-client-secret").encode(
        {"nonce": "abc", "issued_at": "2024-01-01T00:00:00+00:00"}
    )

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.post(
            "/api/auth/google/callback",
            json={"state": forged_state, "code": "x"},
        )

    assert response.status_code == 400
    assert dummy_client.codes == []
    assert credential_store.load() is None


@pytest.mark.anyio
async def test_callback_reports_failed_code_exchange(oauth_overrides):
    dummy_client, credential_store, _ = oauth_overrides
    dummy_client.fail_exchange = True

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        await client.get("/api/auth/google/authorize")
        response = await client.post(
            "/api/auth/google/callback",
            json={"state": dummy_client.states[-1], "code": "bad-code"},
        )

    assert response.status_code == 400
    assert credential_store.load() is None


@pytest.mark.anyio
async def test_status_reports_disconnected(oauth_overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/auth/google/status")

    assert response.status_code == 200
    assert response.json()["connected"] is False
