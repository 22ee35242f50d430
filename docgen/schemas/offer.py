"""
Pydantic models describing offers and the requests that trigger documents.

Money fields are integer cents throughout.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from docgen.models.documents import (
    DEFAULT_TEMPLATE_KINDS,
    GeneratedDocument,
    JobStatus,
    TemplateKind,
)


class ContactDetails(BaseModel):
    """Primary contact of a lead."""

    name: Optional[str] = None
    street: Optional[str] = None
    house_number: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class Lead(BaseModel):
    """Customer record that owns offers and their Drive folder."""

    id: str = Field(..., description="Identifier of the lead.")
    lead_number: Optional[str] = Field(
        None, description="Human-facing lead number, used in the folder name."
    )
    contact: Optional[ContactDetails] = None


class OfferPosition(BaseModel):
    """Single line item of an offer."""

    name: Optional[str] = None
    glazing: Optional[str] = None
    quantity: int = 1
    price: int = Field(0, description="Line price in cents.")


class Offer(BaseModel):
    """Priced offer; the subject documents are generated for."""

    id: str = Field(..., description="Identifier of the offer.")
    offer_number: Optional[str] = None
    created_at: Optional[datetime] = None
    lead: Optional[Lead] = None
    subtotal: Optional[int] = None
    installation_cost: Optional[int] = None
    vat_21_amount: Optional[int] = None
    vat_9_amount: Optional[int] = None
    total: Optional[int] = None
    processing_cost: Optional[int] = None
    scaffold_cost: Optional[int] = None
    parapet_cost: Optional[int] = None
    lift_cost: Optional[int] = None
    hoist_cost: Optional[int] = None
    container_cost: Optional[int] = None
    positions: list[OfferPosition] = Field(default_factory=list)


class DocumentGenerationRequest(BaseModel):
    """Explicit request to (re)generate documents for a stored offer."""

    template_kinds: list[TemplateKind] = Field(
        default_factory=lambda: list(DEFAULT_TEMPLATE_KINDS),
        min_length=1,
    )


class DocumentJobAccepted(BaseModel):
    """Response returned once a document job has been queued."""

    job_id: str
    status: JobStatus
    template_kinds: list[TemplateKind]


class OfferDocumentsResponse(BaseModel):
    """Generated documents currently recorded for an offer."""

    offer_id: str
    documents: list[GeneratedDocument] = Field(default_factory=list)


__all__ = [
    "ContactDetails",
    "DocumentGenerationRequest",
    "DocumentJobAccepted",
    "Lead",
    "Offer",
    "OfferDocumentsResponse",
    "OfferPosition",
]
