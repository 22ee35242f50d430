"""
Placeholder values for offer documents.

Templates mark optional lines with a conditional placeholder. When the block
does not apply its placeholder becomes :data:`REMOVE_LINE`, which the template
post-processing strips together with the line it sits on.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Mapping

from docgen.models.documents import TemplateKind
from docgen.schemas.offer import ContactDetails, Offer
from docgen.services.money import format_cents, percentage_of

REMOVE_LINE = "[REMOVE_LINE]"
DATE_FORMAT = "%d/%m/%Y"
INHAAK_MARKER = "INHAAK"

LeadTimeTable = Mapping[TemplateKind, tuple[int, int]]


def conditional_block(active: bool) -> str:
    return "" if active else REMOVE_LINE


def format_address(contact: ContactDetails | None) -> str:
    if contact is None:
        return ""
    street = " ".join(part for part in (contact.street, contact.house_number) if part)
    locality = " ".join(part for part in (contact.postal_code, contact.city) if part)
    return ", ".join(part for part in (street, locality) if part)


def format_weeks_range(weeks: tuple[int, int]) -> str:
    low, high = weeks
    if low == high:
        return f"{low} weeks"
    return f"{low}-{high} weeks"


def glazing_summary(offer: Offer) -> str:
    seen: list[str] = []
    for position in offer.positions:
        glazing = (position.glazing or "").strip()
        if glazing and glazing not in seen:
            seen.append(glazing)
    return ", ".join(seen)


def has_inhaak_position(offer: Offer) -> bool:
    return any(INHAAK_MARKER in (position.name or "").upper() for position in offer.positions)


def build_replacements(
    offer: Offer,
    template_kind: TemplateKind,
    *,
    lead_times: LeadTimeTable,
    today: date,
) -> Dict[str, str]:
    """Map every template placeholder to its display value for ``offer``."""
    contact = offer.lead.contact if offer.lead else None
    created = offer.created_at.strftime(DATE_FORMAT) if offer.created_at else ""

    replacements = {
        "{{todayDate}}": today.strftime(DATE_FORMAT),
        "{{customer.name}}": (contact.name if contact else None) or "",
        "{{customer.address}}": format_address(contact),
        "{{customer.email}}": (contact.email if contact else None) or "",
        "{{customer.phone}}": (contact.phone if contact else None) or "",
        "{{offer.nr}}": offer.offer_number or "",
        "{{offer.createdDate}}": created,
        "{{price.offer}}": format_cents(offer.subtotal),
        "{{price.installation}}": format_cents(offer.installation_cost),
        "{{price.totalNetto}}": format_cents(offer.subtotal),
        "{{price.vat21Netto}}": format_cents(offer.vat_21_amount),
        "{{price.vat21}}": format_cents(percentage_of(offer.vat_21_amount, 21)),
        "{{price.vat9Netto}}": format_cents(offer.vat_9_amount),
        "{{price.vat9}}": format_cents(percentage_of(offer.vat_9_amount, 9)),
        "{{price.total}}": format_cents(offer.total),
        "{{price.processing}}": format_cents(offer.processing_cost),
        "{{price.scaffold}}": format_cents(offer.scaffold_cost),
        "{{price.parapet}}": format_cents(offer.parapet_cost),
        "{{price.lift}}": format_cents(offer.lift_cost),
        "{{price.hoist}}": format_cents(offer.hoist_cost),
        "{{price.container}}": format_cents(offer.container_cost),
        "{{glazing}}": glazing_summary(offer),
        "{{weeksRange}}": format_weeks_range(lead_times[template_kind]),
    }

    has_processing = (offer.processing_cost or 0) > 0
    replacements["{{isProcessing1}}"] = conditional_block(has_processing)
    replacements["{{isProcessing2}}"] = conditional_block(has_processing)
    replacements["{{isInhaak}}"] = conditional_block(has_inhaak_position(offer))

    return replacements


__all__ = [
    "REMOVE_LINE",
    "LeadTimeTable",
    "build_replacements",
    "conditional_block",
    "format_address",
    "format_weeks_range",
    "glazing_summary",
]
