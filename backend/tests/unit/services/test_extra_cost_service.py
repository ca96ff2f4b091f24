"""
Tests for ExtraCostService.

WHY: A billed cost is part of an invoice and must not change afterwards,
and billing must pick up every outstanding cost exactly once. These tests
pin:
1. The invoiced guard on update, delete, void and unvoid
2. How costs turn into invoice lines (separate vs grouped per tax rate)
3. Which costs get billed, and that they are stamped with the invoice
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.models.extra_cost import ExtraCost
from app.models.invoice import InvoiceStatus
from app.models.quote import DocumentLanguage
from app.services.extra_cost_service import (
    ExtraCostService,
    build_invoice_items,
    extra_costs_overview_url,
)
from tests.factories import ExtraCostFactory, InvoiceFactory, PortalBuilder, ProjectFactory


def _cost(name="Hosting", amount=1.0, price=10.0, tax=21, separate=False) -> ExtraCost:
    return ExtraCost(
        name=name,
        description="",
        amount=amount,
        price_excl_tax=price,
        tax=tax,
        show_separately_on_invoice=separate,
    )


class TestInvoiceItems:
    URL = "https://sleads.nl/dashboard/1/projects/2/extra-costs?invoiceId=3"

    def test_grouped_per_tax_rate(self):
        items = build_invoice_items(
            [_cost(amount=2, price=10.0, tax=21), _cost(amount=3, price=5.0, tax=21), _cost(price=7.5, tax=9)],
            DocumentLanguage.EN,
            self.URL,
        )

        assert [(i["name"], i["quantity"], i["price_excl_tax"], i["tax"]) for i in items] == [
            ("Extra costs", 1, 7.5, 9),
            ("Extra costs", 1, 35.0, 21),
        ]
        assert self.URL in items[0]["description"]
        assert "Click here for overview" in items[0]["description"]

    def test_separate_costs_keep_their_own_line(self):
        items = build_invoice_items(
            [_cost(name="Logo redesign", amount=4, price=60.0, separate=True), _cost(price=10.0)],
            DocumentLanguage.NL,
            self.URL,
        )

        assert items[0] == {
            "name": "Logo redesign",
            "description": "",
            "quantity": 4,
            "price_excl_tax": 60.0,
            "tax": 21,
        }
        assert items[1]["name"] == "Extra kosten"
        assert "Klik hier voor overzicht" in items[1]["description"]

    def test_reimbursement_lowers_the_group(self):
        items = build_invoice_items(
            [_cost(price=100.0), _cost(amount=-1, price=30.0)],
            DocumentLanguage.EN,
            self.URL,
        )

        assert items[0]["price_excl_tax"] == 70.0

    def test_overview_url(self):
        assert extra_costs_overview_url(1, 2, 3).endswith("/1/projects/2/extra-costs?invoiceId=3")


class TestCrud:
    @pytest.mark.asyncio
    async def test_create_takes_organization_from_project(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)

        cost = await ExtraCostService(db_session, task_queue).create(
            portal.project.id, name="Refund", amount=-1, price_excl_tax=50.0, tax=0
        )

        assert cost.organization_id == portal.organization.id
        assert cost.voided is False
        assert cost.is_invoiced is False
        assert cost.total_excl_tax == -50.0

    @pytest.mark.asyncio
    async def test_create_on_unknown_project(self, db_session: AsyncSession, task_queue):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await ExtraCostService(db_session, task_queue).create(4040, name="x", amount=1, price_excl_tax=1, tax=0)

        assert exc_info.value.message == "Project not found"

    @pytest.mark.asyncio
    async def test_update_keeps_omitted_values(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        cost = await ExtraCostFactory.create(db_session, portal.project, name="Fonts", amount=2)

        updated = await ExtraCostService(db_session, task_queue).update(
            cost.id, name=None, amount=3, show_separately_on_invoice=True
        )

        assert updated.name == "Fonts"
        assert updated.amount == 3
        assert updated.show_separately_on_invoice is True

    @pytest.mark.asyncio
    async def test_get_unknown(self, db_session: AsyncSession, task_queue):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await ExtraCostService(db_session, task_queue).get(999)

        assert exc_info.value.message == "Extra cost not found"

    @pytest.mark.asyncio
    async def test_void_and_unvoid(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        cost = await ExtraCostFactory.create(db_session, portal.project)
        service = ExtraCostService(db_session, task_queue)

        voided = await service.set_voided(cost.id, True)
        assert voided.voided is True

        unvoided = await service.set_voided(cost.id, False)
        assert unvoided.voided is False

    @pytest.mark.asyncio
    async def test_list_by_project_else_organization(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        second = await ProjectFactory.create(db_session, portal.organization, name="Shop")
        elsewhere = await ProjectFactory.create(db_session, portal.other_organization)
        first_cost = await ExtraCostFactory.create(db_session, portal.project)
        second_cost = await ExtraCostFactory.create(db_session, second)
        other_cost = await ExtraCostFactory.create(db_session, elsewhere)
        service = ExtraCostService(db_session, task_queue)

        by_project = await service.list_extra_costs(project_id=portal.project.id)
        by_org = await service.list_extra_costs(organization_id=portal.organization.id)
        everything = await service.list_extra_costs()

        assert [c.id for c in by_project] == [first_cost.id]
        assert [c.id for c in by_org] == [first_cost.id, second_cost.id]
        assert {c.id for c in everything} >= {first_cost.id, second_cost.id, other_cost.id}


class TestInvoicedGuard:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "action, message",
        [
            ("update", "Cannot update extra cost that has been invoiced"),
            (
                "delete",
                "Cannot delete extra cost that has been invoiced. Contact support if you need to make changes.",
            ),
            ("void", "Cannot void extra cost that has been invoiced"),
            ("unvoid", "Cannot unvoid extra cost that has been invoiced"),
        ],
    )
    async def test_invoiced_cost_is_frozen(self, db_session: AsyncSession, task_queue, action, message):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project)
        cost = await ExtraCostFactory.create(db_session, portal.project, invoice=invoice)
        service = ExtraCostService(db_session, task_queue)
        calls = {
            "update": lambda: service.update(cost.id, amount=5),
            "delete": lambda: service.delete(cost.id),
            "void": lambda: service.set_voided(cost.id, True),
            "unvoid": lambda: service.set_voided(cost.id, False),
        }

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await calls[action]()

        assert exc_info.value.message == message
        assert await service.get(cost.id) is not None


class TestInvoiceOutstanding:
    @pytest.mark.asyncio
    async def test_bills_outstanding_costs_once(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        earlier = await InvoiceFactory.create(db_session, portal.project)
        billed_before = await ExtraCostFactory.create(db_session, portal.project, invoice=earlier)
        voided = await ExtraCostFactory.create(db_session, portal.project, voided=True)
        grouped = await ExtraCostFactory.create(db_session, portal.project, amount=2, price_excl_tax=15.0)
        separate = await ExtraCostFactory.create(
            db_session, portal.project, name="Domain", price_excl_tax=12.0, tax=0, show_separately_on_invoice=True
        )
        service = ExtraCostService(db_session, task_queue)

        invoice = await service.invoice_outstanding(portal.project.id, language=DocumentLanguage.NL)

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.language == DocumentLanguage.NL
        assert [(i["name"], i["price_excl_tax"], i["tax"]) for i in invoice.items] == [
            ("Domain", 12.0, 0),
            ("Extra kosten", 30.0, 21),
        ]
        assert f"invoiceId={invoice.id}" in invoice.items[1]["description"]

        for cost in (grouped, separate, voided, billed_before):
            await db_session.refresh(cost)
        assert grouped.invoice_id == invoice.id
        assert separate.invoice_id == invoice.id
        assert grouped.invoiced_date is not None
        assert voided.invoice_id is None
        assert billed_before.invoice_id == earlier.id

        billed = await service.list_for_organization(portal.organization.id, invoice_id=invoice.id)
        assert {c.id for c in billed} == {grouped.id, separate.id}

        with pytest.raises(ValidationError) as exc_info:
            await service.invoice_outstanding(portal.project.id)
        assert exc_info.value.message == "No extra costs to invoice"

    @pytest.mark.asyncio
    async def test_unknown_project(self, db_session: AsyncSession, task_queue):
        with pytest.raises(ResourceNotFoundError):
            await ExtraCostService(db_session, task_queue).invoice_outstanding(4040)
