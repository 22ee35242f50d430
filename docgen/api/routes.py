"""
FastAPI routes for the offer document service.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from docgen.clients.google_auth import OAuthStateError, OAuthTokenExchangeError
from docgen.dependencies import (
    get_app_settings,
    get_document_queue_service,
    get_document_repository,
    get_google_oauth_client,
    get_google_token_service,
    get_oauth_state_encoder,
)
from docgen.models.documents import DocumentJobRecord, SubjectKind, SubjectRef
from docgen.schemas import (
    DocumentGenerationRequest,
    DocumentJobAccepted,
    OAuthCallbackPayload,
    OAuthConnectionStatus,
    Offer,
    OfferDocumentsResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _accepted(record: DocumentJobRecord) -> DocumentJobAccepted:
    return DocumentJobAccepted(
        job_id=record.job_id,
        status=record.status,
        template_kinds=record.template_kinds,
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/google/authorize", status_code=HTTPStatus.OK)
async def start_google_oauth_flow(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_google_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    redirect_to: str | None = Query(
        default=None,
        description="Optional URL to redirect back to on successful authentication.",
    ),
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Google consent screen.",
    ),
) -> Any:
    """
    Kick off the OAuth flow for the system-wide Google account.
    """
    state_payload = {
        "nonce": uuid.uuid4().hex,
        "redirect_to": redirect_to,
        "issued_at": datetime.now(timezone.utc).isoformat(),
    }
    state = state_encoder.encode(state_payload)
    authorization_url = oauth_client.build_authorization_url(state=state)

    wants_html = "text/html" in request.headers.get("accept", "").lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return {"authorization_url": authorization_url, "state": state}


@router.post("/auth/google/callback", status_code=HTTPStatus.OK)
async def handle_google_oauth_callback(
    payload: OAuthCallbackPayload,
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    token_service: Annotated[Any, Depends(get_google_token_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> dict:
    """Complete the OAuth exchange and replace the stored credential."""
    try:
        state_data = state_encoder.decode(payload.state)
    except OAuthStateError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    issued_at_raw = state_data.get("issued_at")
    if not issued_at_raw:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Missing issued_at in state token.",
        )

    try:
        issued_at = datetime.fromisoformat(issued_at_raw)
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Invalid issued_at in state token.",
        ) from exc

    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)

    if datetime.now(timezone.utc) - issued_at > timedelta(
        seconds=settings.oauth.state_ttl_seconds
    ):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="OAuth state token has expired."
        )

    try:
        credential = await token_service.handle_callback(payload.code)
    except OAuthTokenExchangeError as exc:
        logger.error("Google OAuth code exchange failed", extra={"error": str(exc)})
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Failed to exchange authorization code.",
        ) from exc

    return {
        "status": "connected",
        "expires_at": credential.expires_at.isoformat(),
        "redirect_to": state_data.get("redirect_to"),
    }


@router.get("/auth/google/callback", status_code=HTTPStatus.OK)
async def handle_google_oauth_callback_get(
    request: Request,
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    token_service: Annotated[Any, Depends(get_google_token_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    state: str = Query(..., description="OAuth state token."),
    code: str = Query(..., description="Authorization code returned by Google."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    result = await handle_google_oauth_callback(
        payload=OAuthCallbackPayload(state=state, code=code),
        state_encoder=state_encoder,
        token_service=token_service,
        settings=settings,
    )

    wants_html = "text/html" in request.headers.get("accept", "").lower()
    redirect_target = result.get("redirect_to") or settings.frontend_base_url

    if redirect_target and (redirect or wants_html):
        return RedirectResponse(url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return JSONResponse(content=result)


@router.get(
    "/auth/google/status",
    response_model=OAuthConnectionStatus,
    status_code=HTTPStatus.OK,
)
async def google_connection_status(
    token_service: Annotated[Any, Depends(get_google_token_service)],
) -> OAuthConnectionStatus:
    """Report whether the Google account is connected, without refreshing it."""
    credential = token_service.current()
    if credential is None:
        return OAuthConnectionStatus(connected=False)
    return OAuthConnectionStatus(
        connected=True,
        expires_at=credential.expires_at,
        has_refresh_token=bool(credential.refresh_token),
        scopes=credential.scopes,
    )


@router.post(
    "/offers",
    response_model=DocumentJobAccepted,
    status_code=HTTPStatus.ACCEPTED,
)
async def offer_saved(
    offer: Offer,
    queue_service: Annotated[Any, Depends(get_document_queue_service)],
) -> DocumentJobAccepted:
    """Record a saved offer and schedule its default documents."""
    record = queue_service.on_offer_saved(offer)
    return _accepted(record)


@router.post(
    "/offers/{offer_id}/documents",
    response_model=DocumentJobAccepted,
    status_code=HTTPStatus.ACCEPTED,
)
async def regenerate_offer_documents(
    offer_id: str,
    payload: DocumentGenerationRequest,
    queue_service: Annotated[Any, Depends(get_document_queue_service)],
    repository: Annotated[Any, Depends(get_document_repository)],
    token_service: Annotated[Any, Depends(get_google_token_service)],
) -> DocumentJobAccepted:
    """Queue (re)generation of specific document kinds for a stored offer.

    Requires a connected Google account; ``AuthRequired`` surfaces as 401.
    """
    if repository.get_offer(offer_id) is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Offer not found.")
    await token_service.ensure_valid()
    record = queue_service.enqueue(offer_id, payload.template_kinds)
    return _accepted(record)


@router.get(
    "/offers/{offer_id}/documents",
    response_model=OfferDocumentsResponse,
    status_code=HTTPStatus.OK,
)
async def list_offer_documents(
    offer_id: str,
    repository: Annotated[Any, Depends(get_document_repository)],
) -> OfferDocumentsResponse:
    documents = repository.list_documents(SubjectRef(SubjectKind.OFFER, offer_id))
    return OfferDocumentsResponse(offer_id=offer_id, documents=documents)


@router.get(
    "/jobs/{job_id}",
    response_model=DocumentJobRecord,
    status_code=HTTPStatus.OK,
)
async def get_document_job(
    job_id: str,
    repository: Annotated[Any, Depends(get_document_repository)],
) -> DocumentJobRecord:
    record = repository.get_job(job_id)
    if record is None:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail="Job not found.")
    return record


__all__ = ["router"]
