"""
Tests for the concrete property-management services.

WHY: The concrete services only add validation and side effects on top
of BaseService. These tests cover the side effects that change other
records (payments, tours) and the validation that guards references
across tenants.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from propman.core.exceptions import ValidationError
from propman.models.inspection import Inspection
from propman.models.invoice import Invoice, InvoiceStatus, Payment
from propman.models.maintenance import MaintenanceRequest, MaintenanceStatus
from propman.models.property import PropertyStatus
from propman.models.prospect import ProspectiveTenant, ProspectStatus, Tour
from propman.services.inspection_service import InspectionService
from propman.services.invoice_service import InvoiceService, PaymentService
from propman.services.lease_service import LeaseService
from propman.services.maintenance_service import MaintenanceRequestService
from propman.services.property_service import PropertyService
from propman.services.prospect_service import ProspectiveTenantService, TourService
from propman.services.tenant_service import TenantService
from tests.factories import LeaseFactory, PropertyFactory, TenantFactory


@pytest.fixture
async def lease_a(db_session, make_user_context, org_a, owner_a):
    """An active lease in organization A, created through the services."""
    context = make_user_context(owner_a)
    prop = await PropertyService(db_session, context).create(PropertyFactory.build())
    tenant = await TenantService(db_session, context).create(TenantFactory.build())
    return await LeaseService(db_session, context).create(LeaseFactory.build(prop.id, tenant.id))


async def _create_invoice(db_session, context, lease, amount="1000.00", due_on=None):
    return await InvoiceService(db_session, context).create(
        Invoice(
            lease_id=lease.id,
            invoice_number=f"INV-{amount}",
            invoiced_on=date(2026, 3, 1),
            due_on=due_on or date(2026, 3, 5),
            amount=Decimal(amount),
        )
    )


class TestPayments:
    @pytest.mark.asyncio
    async def test_partial_then_full_payment(self, db_session, make_user_context, owner_a, lease_a):
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)
        payments = PaymentService(db_session, context)

        await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("400.00"))
        )
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID
        assert invoice.amount_paid == Decimal("400.00")

        await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 4), amount=Decimal("600.00"))
        )
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_on == date(2026, 3, 4)
        assert invoice.last_modified_by == owner_a.id
        assert len(await payments.get_payments_for_invoice(invoice.id)) == 2

    @pytest.mark.asyncio
    async def test_payment_needs_positive_amount(self, db_session, make_user_context, owner_a, lease_a):
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)

        with pytest.raises(ValidationError):
            await PaymentService(db_session, context).create(
                Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("0"))
            )

    @pytest.mark.asyncio
    async def test_payment_against_foreign_invoice_is_rejected(
        self, db_session, make_user_context, owner_a, owner_b, org_b, lease_a
    ):
        invoice = await _create_invoice(db_session, make_user_context(owner_a), lease_a)

        with pytest.raises(ValidationError):
            await PaymentService(db_session, make_user_context(owner_b)).create(
                Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("10"))
            )
        assert invoice.status == InvoiceStatus.PENDING

    @pytest.mark.asyncio
    async def test_deleting_payment_reopens_invoice(
        self, db_session, make_user_context, owner_a, lease_a
    ):
        """WHY: The invoice balance is derived from live payments, not a running total."""
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)
        payments = PaymentService(db_session, context)
        payment = await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("1000.00"))
        )
        assert invoice.status == InvoiceStatus.PAID

        assert await payments.delete(payment.id) is True

        assert invoice.amount_paid == Decimal("0")
        assert invoice.status == InvoiceStatus.PENDING
        assert invoice.paid_on is None

    @pytest.mark.asyncio
    async def test_deleting_one_of_two_payments(
        self, db_session, make_user_context, owner_a, lease_a
    ):
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)
        payments = PaymentService(db_session, context)
        first = await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("400.00"))
        )
        await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 3), amount=Decimal("600.00"))
        )

        await payments.delete(first.id)

        assert invoice.amount_paid == Decimal("600.00")
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID

    @pytest.mark.asyncio
    async def test_updating_payment_amount_recalculates(
        self, db_session, make_user_context, owner_a, lease_a
    ):
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)
        payments = PaymentService(db_session, context)
        payment = await payments.create(
            Payment(invoice_id=invoice.id, paid_on=date(2026, 3, 2), amount=Decimal("400.00"))
        )
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID

        await payments.update(
            Payment(
                id=payment.id,
                invoice_id=invoice.id,
                paid_on=date(2026, 3, 4),
                amount=Decimal("1000.00"),
            )
        )

        assert invoice.amount_paid == Decimal("1000.00")
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_on == date(2026, 3, 4)

    @pytest.mark.asyncio
    async def test_moving_payment_recalculates_both_invoices(
        self, db_session, make_user_context, owner_a, lease_a
    ):
        context = make_user_context(owner_a)
        original = await _create_invoice(db_session, context, lease_a, amount="1000.00")
        other = await _create_invoice(db_session, context, lease_a, amount="500.00")
        payments = PaymentService(db_session, context)
        payment = await payments.create(
            Payment(invoice_id=original.id, paid_on=date(2026, 3, 2), amount=Decimal("500.00"))
        )

        await payments.update(
            Payment(
                id=payment.id,
                invoice_id=other.id,
                paid_on=date(2026, 3, 2),
                amount=Decimal("500.00"),
            )
        )

        assert original.amount_paid == Decimal("0")
        assert original.status == InvoiceStatus.PENDING
        assert other.amount_paid == Decimal("500.00")
        assert other.status == InvoiceStatus.PAID


class TestInvoices:
    @pytest.mark.asyncio
    async def test_due_date_before_invoice_date_is_rejected(
        self, db_session, make_user_context, owner_a, lease_a
    ):
        with pytest.raises(ValidationError):
            await _create_invoice(
                db_session, make_user_context(owner_a), lease_a, due_on=date(2026, 2, 1)
            )

    @pytest.mark.asyncio
    async def test_overdue_invoices(self, db_session, make_user_context, owner_a, lease_a):
        context = make_user_context(owner_a)
        overdue = await _create_invoice(db_session, context, lease_a, amount="500.00")
        await _create_invoice(db_session, context, lease_a, amount="700.00", due_on=date(2026, 4, 5))

        results = await InvoiceService(db_session, context).get_overdue_invoices(date(2026, 3, 20))

        assert [i.id for i in results] == [overdue.id]


class TestLeases:
    @pytest.mark.asyncio
    async def test_end_must_follow_start(self, db_session, make_user_context, owner_a, lease_a):
        service = LeaseService(db_session, make_user_context(owner_a))
        bad = LeaseFactory.build(
            lease_a.property_id,
            lease_a.tenant_id,
            start_date=date(2026, 1, 1),
            end_date=date(2025, 1, 1),
        )

        with pytest.raises(ValidationError):
            await service.create(bad)

    @pytest.mark.asyncio
    async def test_current_lease(self, db_session, make_user_context, owner_a, lease_a):
        service = LeaseService(db_session, make_user_context(owner_a))

        current = await service.get_current_lease(lease_a.property_id)
        assert current.id == lease_a.id
        later = date.today() + timedelta(days=400)
        assert await service.get_current_lease(lease_a.property_id, on=later) is None

    @pytest.mark.asyncio
    async def test_lease_is_invisible_to_other_organization(
        self, db_session, make_user_context, owner_b, org_b, lease_a
    ):
        service = LeaseService(db_session, make_user_context(owner_b))

        assert await service.get_by_id(lease_a.id) is None
        assert await service.get_leases_for_property(lease_a.property_id) == []


class TestTours:
    @pytest.mark.asyncio
    async def test_first_tour_moves_lead_forward(self, db_session, make_user_context, owner_a, org_a):
        context = make_user_context(owner_a)
        prop = await PropertyService(db_session, context).create(PropertyFactory.build())
        prospect = await ProspectiveTenantService(db_session, context).create(
            ProspectiveTenant(first_name="Ada", last_name="Park", email="ada@example.com")
        )
        assert prospect.status == ProspectStatus.LEAD

        await TourService(db_session, context).create(
            Tour(
                prospective_tenant_id=prospect.id,
                property_id=prop.id,
                scheduled_on=datetime(2026, 5, 1, 10, 0),
            )
        )

        assert prospect.status == ProspectStatus.TOUR_SCHEDULED

    @pytest.mark.asyncio
    async def test_prospect_needs_valid_email(self, db_session, make_user_context, owner_a, org_a):
        with pytest.raises(ValidationError):
            await ProspectiveTenantService(db_session, make_user_context(owner_a)).create(
                ProspectiveTenant(first_name="Ada", last_name="Park", email="nope")
            )


class TestMaintenance:
    @pytest.mark.asyncio
    async def test_complete_request(self, db_session, make_user_context, owner_a, org_a):
        context = make_user_context(owner_a)
        prop = await PropertyService(db_session, context).create(PropertyFactory.build())
        service = MaintenanceRequestService(db_session, context)
        request = await service.create(MaintenanceRequest(property_id=prop.id, title="Leaky tap"))
        assert request.requested_on == date.today()
        assert [r.id for r in await service.get_open_requests()] == [request.id]

        completed = await service.complete(request, completed_on=date(2026, 6, 1))

        assert completed.status == MaintenanceStatus.COMPLETED
        assert completed.completed_on == date(2026, 6, 1)
        assert await service.get_open_requests() == []


class TestProperties:
    @pytest.mark.asyncio
    async def test_search_and_availability(self, db_session, make_user_context, owner_a, org_a):
        service = PropertyService(db_session, make_user_context(owner_a))
        await service.create(PropertyFactory.build(address="1 Oak Avenue", city="Salem"))
        await service.create(
            PropertyFactory.build(
                address="9 Pine Road", status=PropertyStatus.OCCUPIED, is_available=False
            )
        )

        assert [p.address for p in await service.search("salem")] == ["1 Oak Avenue"]
        assert [p.address for p in await service.get_available_properties()] == ["1 Oak Avenue"]

    @pytest.mark.asyncio
    async def test_unknown_status_is_rejected(self, db_session, make_user_context, owner_a, org_a):
        with pytest.raises(ValidationError):
            await PropertyService(db_session, make_user_context(owner_a)).create(
                PropertyFactory.build(status="Haunted")
            )


class TestQueries:
    """Entity-specific lookups all run through BaseService.find, so they stay tenant-scoped."""

    @pytest.mark.asyncio
    async def test_lookups_by_parent(self, db_session, make_user_context, owner_a, lease_a):
        context = make_user_context(owner_a)
        invoice = await _create_invoice(db_session, context, lease_a)
        inspection = await InspectionService(db_session, context).create(
            Inspection(property_id=lease_a.property_id, completed_on=date(2026, 2, 1))
        )
        prospect = await ProspectiveTenantService(db_session, context).create(
            ProspectiveTenant(first_name="Ada", last_name="Park", email="ada@example.com")
        )
        tour = await TourService(db_session, context).create(
            Tour(
                prospective_tenant_id=prospect.id,
                property_id=lease_a.property_id,
                scheduled_on=datetime(2026, 5, 1, 10, 0),
            )
        )

        invoices = await InvoiceService(db_session, context).get_invoices_for_lease(lease_a.id)
        inspections = await InspectionService(db_session, context).get_inspections_for_property(
            lease_a.property_id
        )
        tours = await TourService(db_session, context).get_tours_for_property(lease_a.property_id)

        assert [i.id for i in invoices] == [invoice.id]
        assert [i.id for i in inspections] == [inspection.id]
        assert [t.id for t in tours] == [tour.id]

    @pytest.mark.asyncio
    async def test_lookups_hide_other_organization(
        self, db_session, make_user_context, owner_a, owner_b, org_b, lease_a
    ):
        await _create_invoice(db_session, make_user_context(owner_a), lease_a)

        invoices = await InvoiceService(
            db_session, make_user_context(owner_b)
        ).get_invoices_for_lease(lease_a.id)

        assert invoices == []

    @pytest.mark.asyncio
    async def test_expiring_leases(self, db_session, make_user_context, owner_a, lease_a):
        service = LeaseService(db_session, make_user_context(owner_a))

        assert await service.get_expiring_leases(date.today()) == []
        expiring = await service.get_expiring_leases(date.today() + timedelta(days=400))
        assert [lease.id for lease in expiring] == [lease_a.id]

    @pytest.mark.asyncio
    async def test_active_tenants(self, db_session, make_user_context, owner_a, org_a):
        service = TenantService(db_session, make_user_context(owner_a))
        current = await service.create(
            TenantFactory.build(last_name="Current", email="Current@Example.com")
        )
        await service.create(TenantFactory.build(last_name="Former", is_active=False))

        assert [t.id for t in await service.get_active_tenants()] == [current.id]
        assert (await service.get_by_email("current@example.com")).id == current.id
