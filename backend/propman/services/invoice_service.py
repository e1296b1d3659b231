"""
Invoice and payment services.

WHAT: Tenant-scoped CRUD for invoices and the payments applied to them.

HOW: Every payment create, update and delete re-sums the invoice's
remaining payments and re-derives amount_paid, status and paid_on, so an
edited or removed payment never leaves a stale balance behind.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from propman.core.exceptions import ValidationError
from propman.dao.base import BaseDAO
from propman.models.base import utcnow
from propman.models.invoice import Invoice, InvoiceStatus, Payment
from propman.models.lease import Lease
from propman.services.base import BaseService


class InvoiceService(BaseService[Invoice]):
    model = Invoice

    async def validate_entity(self, entity: Invoice) -> None:
        if not entity.invoice_number:
            raise ValidationError("Invoice number is required", field="invoice_number")
        if entity.amount is None or Decimal(entity.amount) <= 0:
            raise ValidationError("Invoice amount must be positive", field="amount")
        if entity.invoiced_on and entity.due_on and entity.due_on < entity.invoiced_on:
            raise ValidationError("Due date cannot precede invoice date", field="due_on")
        await self.require_related(Lease, entity.lease_id, "lease_id")

    async def get_invoices_for_lease(self, lease_id: UUID) -> List[Invoice]:
        return await self.find(Invoice.lease_id == lease_id)

    async def get_overdue_invoices(self, as_of: date) -> List[Invoice]:
        return await self.find(
            Invoice.status.in_((InvoiceStatus.PENDING, InvoiceStatus.PARTIALLY_PAID)),
            Invoice.due_on < as_of,
        )


class PaymentService(BaseService[Payment]):
    model = Payment

    async def validate_entity(self, entity: Payment) -> None:
        if entity.amount is None or Decimal(entity.amount) <= 0:
            raise ValidationError("Payment amount must be positive", field="amount")
        if entity.paid_on is None:
            raise ValidationError("Payment date is required", field="paid_on")
        await self.require_related(Invoice, entity.invoice_id, "invoice_id")

    async def after_create(self, entity: Payment) -> None:
        await self.recalculate_invoice(entity.invoice_id, entity.created_by)

    async def update(self, entity: Payment) -> Payment:
        # Persisted value, in case the payment is moved to another invoice
        with self.session.no_autoflush:
            result = await self.session.execute(
                select(Payment.invoice_id).where(Payment.id == entity.id)
            )
        previous_invoice_id = result.scalar_one_or_none()

        updated = await super().update(entity)

        await self.recalculate_invoice(updated.invoice_id, updated.last_modified_by)
        if previous_invoice_id is not None and previous_invoice_id != updated.invoice_id:
            await self.recalculate_invoice(previous_invoice_id, updated.last_modified_by)
        return updated

    async def delete(self, id: UUID) -> bool:
        payment = await self.get_by_id(id)
        deleted = await super().delete(id)
        if deleted and payment is not None:
            await self.recalculate_invoice(payment.invoice_id, self.user_context.get_user_id())
        return deleted

    async def recalculate_invoice(
        self, invoice_id: UUID, modified_by: Optional[str]
    ) -> Optional[Invoice]:
        """
        Re-derive an invoice's balance from its live payments in the active organization.

        Fully paid -> Paid (paid_on = latest payment); some paid -> PartiallyPaid;
        nothing paid -> Pending. A Cancelled invoice keeps its status unless
        it is fully paid.
        """
        organization_id = await self.user_context.get_active_organization_id()
        if organization_id is None:
            return None
        invoice = await BaseDAO(Invoice, self.session).get_by_id_and_org(
            invoice_id, organization_id
        )
        if invoice is None:
            return None

        payments = await self.find(Payment.invoice_id == invoice_id)
        total = sum((Decimal(p.amount) for p in payments), Decimal("0"))

        invoice.amount_paid = total
        if total >= Decimal(invoice.amount):
            invoice.status = InvoiceStatus.PAID
            invoice.paid_on = max(p.paid_on for p in payments)
        else:
            invoice.paid_on = None
            if invoice.status != InvoiceStatus.CANCELLED:
                invoice.status = (
                    InvoiceStatus.PARTIALLY_PAID if total > 0 else InvoiceStatus.PENDING
                )
        invoice.last_modified_by = modified_by
        invoice.last_modified_on = utcnow()
        await self.session.flush()
        return invoice

    async def get_payments_for_invoice(self, invoice_id: UUID) -> List[Payment]:
        return await self.find(Payment.invoice_id == invoice_id)
