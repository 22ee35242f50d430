from __future__ import annotations

from datetime import date, datetime

from docgen.models.documents import TemplateKind
from docgen.schemas.offer import ContactDetails, Lead, Offer, OfferPosition
from docgen.services.replacements import (
    REMOVE_LINE,
    build_replacements,
    format_address,
    format_weeks_range,
)

LEAD_TIMES = {
    TemplateKind.INSTALLATION: (6, 8),
    TemplateKind.ITEMS: (4, 4),
}


def _offer(**overrides) -> Offer:
    data = {
        "id": "offer-1",
        "offer_number": "OF-2024-001",
        "created_at": datetime(2024, 3, 5, 14, 30),
        "lead": Lead(
            id="lead-1",
            lead_number="L-100",
            contact=ContactDetails(
                name="Jan de Vries",
                street="Dorpsstraat",
                house_number="12a",
                postal_code="1234 AB",
                city="Utrecht",
                email="jan@example.com",
                phone="0612345678",
            ),
        ),
        "subtotal": 123456,
        "installation_cost": 25000,
        "vat_21_amount": 100000,
        "vat_9_amount": 50000,
        "total": 149456,
        "positions": [
            OfferPosition(name="Kozijn voorgevel", glazing="HR++"),
            OfferPosition(name="Achterdeur", glazing="Triple"),
            OfferPosition(name="Schuifpui", glazing="HR++"),
        ],
    }
    data.update(overrides)
    return Offer(**data)


def test_build_replacements_formats_customer_and_prices() -> None:
    values = build_replacements(
        _offer(), TemplateKind.INSTALLATION, lead_times=LEAD_TIMES, today=date(2024, 4, 1)
    )

    assert values["{{todayDate}}"] == "01/04/2024"
    assert values["{{offer.createdDate}}"] == "05/03/2024"
    assert values["{{offer.nr}}"] == "OF-2024-001"
    assert values["{{customer.name}}"] == "Jan de Vries"
    assert values["{{customer.address}}"] == "Dorpsstraat 12a, 1234 AB Utrecht"
    assert values["{{price.offer}}"] == "1.234,56"
    assert values["{{price.installation}}"] == "250,00"
    assert values["{{price.vat21Netto}}"] == "1.000,00"
    assert values["{{price.vat21}}"] == "210,00"
    assert values["{{price.vat9}}"] == "45,00"
    assert values["{{price.total}}"] == "1.494,56"
    assert values["{{glazing}}"] == "HR++, Triple"
    assert values["{{weeksRange}}"] == "6-8 weeks"


def test_missing_amounts_render_as_zero() -> None:
    values = build_replacements(
        _offer(scaffold_cost=None, lift_cost=0),
        TemplateKind.ITEMS,
        lead_times=LEAD_TIMES,
        today=date(2024, 4, 1),
    )

    assert values["{{price.scaffold}}"] == "0,00"
    assert values["{{price.lift}}"] == "0,00"
    assert values["{{weeksRange}}"] == "4 weeks"


def test_inactive_conditional_blocks_use_remove_sentinel() -> None:
    values = build_replacements(
        _offer(processing_cost=None),
        TemplateKind.INSTALLATION,
        lead_times=LEAD_TIMES,
        today=date(2024, 4, 1),
    )

    assert values["{{isProcessing1}}"] == REMOVE_LINE
    assert values["{{isProcessing2}}"] == REMOVE_LINE
    assert values["{{isInhaak}}"] == REMOVE_LINE


def test_active_conditional_blocks_become_empty_strings() -> None:
    values = build_replacements(
        _offer(
            processing_cost=7500,
            positions=[OfferPosition(name="Inhaak raam", glazing="HR++")],
        ),
        TemplateKind.INSTALLATION,
        lead_times=LEAD_TIMES,
        today=date(2024, 4, 1),
    )

    assert values["{{isProcessing1}}"] == ""
    assert values["{{isProcessing2}}"] == ""
    assert values["{{isInhaak}}"] == ""
    assert values["{{price.processing}}"] == "75,00"


def test_offer_without_lead_leaves_customer_fields_blank() -> None:
    values = build_replacements(
        _offer(lead=None, created_at=None),
        TemplateKind.ITEMS,
        lead_times=LEAD_TIMES,
        today=date(2024, 4, 1),
    )

    assert values["{{customer.name}}"] == ""
    assert values["{{customer.address}}"] == ""
    assert values["{{offer.createdDate}}"] == ""


def test_format_helpers() -> None:
    assert format_address(None) == ""
    assert format_address(ContactDetails(city="Utrecht")) == "Utrecht"
    assert format_weeks_range((6, 8)) == "6-8 weeks"


def test_processing_block_switches_on_strictly_positive_cost() -> None:
    zero = build_replacements(
        _offer(processing_cost=0), TemplateKind.ITEMS, lead_times=LEAD_TIMES, today=date(2024, 4, 1)
    )
    positive = build_replacements(
        _offer(processing_cost=500), TemplateKind.ITEMS, lead_times=LEAD_TIMES, today=date(2024, 4, 1)
    )

    assert zero["{{isProcessing1}}"] == REMOVE_LINE
    assert positive["{{isProcessing1}}"] == ""
