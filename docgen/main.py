"""
FastAPI application entrypoint for the offer document service.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docgen.api.routes import router as api_router
from docgen.core.config import get_settings
from docgen.core.errors import AuthRequired
from docgen.core.logging import configure_logging


async def _auth_required_handler(request: Request, exc: AuthRequired) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Offer Document Service",
        version="0.1.0",
        description="Generates Google Docs and PDF documents for saved offers.",
    )
    app.add_exception_handler(AuthRequired, _auth_required_handler)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
