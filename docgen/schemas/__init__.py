"""Public schema exports."""

from .auth import OAuthCallbackPayload, OAuthConnectionStatus
from .offer import (
    ContactDetails,
    DocumentGenerationRequest,
    DocumentJobAccepted,
    Lead,
    Offer,
    OfferDocumentsResponse,
    OfferPosition,
)

__all__ = [
    "ContactDetails",
    "DocumentGenerationRequest",
    "DocumentJobAccepted",
    "Lead",
    "OAuthCallbackPayload",
    "OAuthConnectionStatus",
    "Offer",
    "OfferDocumentsResponse",
    "OfferPosition",
]
