try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from docgen import dependencies
from docgen.clients.sqlite_store import SQLiteStore
from docgen.core.errors import AuthRequired
from docgen.main import app
from docgen.models.documents import (
    DocumentStatus,
    GeneratedDocument,
    SubjectKind,
    TemplateKind,
)
from docgen.services.document_queue import DocumentQueueService
from docgen.services.document_repository import DocumentRepository


class DummyQueueClient:
    def __init__(self) -> None:
        self.payloads: list[dict] = []

    def enqueue_document_job(self, payload: dict) -> str:
        self.payloads.append(payload)
        return "message-1"


class DummyTokenService:
    def __init__(self, connected: bool = True) -> None:
        self.connected = connected

    async def ensure_valid(self):
        if not self.connected:
            raise AuthRequired("Google account is not connected.")
        return object()


OFFER_PAYLOAD = {
    "id": "offer-42",
    "offer_number": "OF-042",
    "created_at": "2024-03-05T10:00:00",
    "lead": {
        "id": "lead-7",
        "lead_number": "L-007",
        "contact": {"name": "Anna Jansen", "city": "Utrecht"},
    },
    "subtotal": 250000,
    "total": 302500,
    "positions": [{"name": "Kozijn", "glazing": "HR++", "quantity": 2, "price": 125000}],
}


@pytest.fixture()
def api_overrides(tmp_path):
    repository = DocumentRepository(SQLiteStore(str(tmp_path / "records.sqlite3")))
    queue_client = DummyQueueClient()
    token_service = DummyTokenService()

    app.dependency_overrides.update(
        {
            dependencies.get_document_repository: lambda: repository,
            dependencies.get_document_queue_service: lambda: DocumentQueueService(
                queue_client, repository
            ),
            dependencies.get_google_token_service: lambda: token_service,
        }
    )

    yield repository, queue_client, token_service

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


@pytest.mark.anyio
async def test_health():
    async with _client() as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_saved_offer_queues_default_documents(api_overrides):
    repository, queue_client, _ = api_overrides

    async with _client() as client:
        response = await client.post("/api/offers", json=OFFER_PAYLOAD)
        job_id = response.json()["job_id"]
        job_response = await client.get(f"/api/jobs/{job_id}")

    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "pending"
    assert body["template_kinds"] == ["installation", "items"]

    assert repository.get_offer("offer-42").lead.lead_number == "L-007"
    assert queue_client.payloads[-1]["subject_id"] == "offer-42"

    assert job_response.status_code == 200
    assert job_response.json()["status"] == "pending"


@pytest.mark.anyio
async def test_regenerate_specific_kind(api_overrides):
    repository, queue_client, _ = api_overrides

    async with _client() as client:
        await client.post("/api/offers", json=OFFER_PAYLOAD)
        response = await client.post(
            "/api/offers/offer-42/documents", json={"template_kinds": ["items"]}
        )

    assert response.status_code == 202
    assert response.json()["template_kinds"] == ["items"]
    assert queue_client.payloads[-1]["template_kinds"] == ["items"]


@pytest.mark.anyio
async def test_regenerate_unknown_offer_returns_404(api_overrides):
    async with _client() as client:
        response = await client.post("/api/offers/missing/documents", json={})

    assert response.status_code == 404


@pytest.mark.anyio
async def test_regenerate_without_google_connection_returns_401(api_overrides):
    _, queue_client, token_service = api_overrides
    token_service.connected = False

    async with _client() as client:
        await client.post("/api/offers", json=OFFER_PAYLOAD)
        queued_before = len(queue_client.payloads)
        response = await client.post("/api/offers/offer-42/documents", json={})

    assert response.status_code == 401
    assert len(queue_client.payloads) == queued_before


@pytest.mark.anyio
async def test_regenerate_rejects_unknown_template_kind(api_overrides):
    async with _client() as client:
        await client.post("/api/offers", json=OFFER_PAYLOAD)
        response = await client.post(
            "/api/offers/offer-42/documents", json={"template_kinds": ["brochure"]}
        )

    assert response.status_code == 422


@pytest.mark.anyio
async def test_list_documents_and_unknown_job(api_overrides):
    repository, _, _ = api_overrides
    now = datetime.now(timezone.utc) - timedelta(minutes=5)
    repository.upsert_document(
        GeneratedDocument(
            subject_kind=SubjectKind.OFFER,
            subject_id="offer-42",
            template_kind=TemplateKind.ITEMS,
            status=DocumentStatus.GENERATED,
            file_name="items_OF-042_Anna_Jansen",
            document_id="doc-1",
            pdf_id="pdf-1",
            document_url="https://docs.google.com/document/d/doc-1/edit",
            pdf_url="https://drive.google.com/file/d/pdf-1/view",
            local_pdf_path="documents/offers/offer-42/items_OF-042_Anna_Jansen.pdf",
            created_at=now,
            updated_at=now,
        )
    )

    async with _client() as client:
        documents = await client.get("/api/offers/offer-42/documents")
        missing_job = await client.get("/api/jobs/does-not-exist")

    assert documents.status_code == 200
    body = documents.json()
    assert body["offer_id"] == "offer-42"
    assert [doc["template_kind"] for doc in body["documents"]] == ["items"]
    assert body["documents"][0]["document_id"] == "doc-1"

    assert missing_job.status_code == 404
