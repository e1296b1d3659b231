"""Invoice and payment models."""

from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Text, Uuid

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin
from propman.models.lease import Lease


class InvoiceStatus:
    PENDING = "Pending"
    PAID = "Paid"
    PARTIALLY_PAID = "PartiallyPaid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class Invoice(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "invoices"

    lease_id = Column(Uuid, ForeignKey("leases.id"), nullable=False, index=True)
    invoice_number = Column(String(50), nullable=False)
    invoiced_on = Column(Date, nullable=False)
    due_on = Column(Date, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    amount_paid = Column(Numeric(18, 2), nullable=False, default=0)
    description = Column(String(500), nullable=True)
    status = Column(String(50), nullable=False, default=InvoiceStatus.PENDING)
    paid_on = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    __sample_data_parents__ = (("lease_id", Lease),)


class Payment(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "payments"

    invoice_id = Column(Uuid, ForeignKey("invoices.id"), nullable=False, index=True)
    paid_on = Column(Date, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    payment_method = Column(String(50), nullable=False, default="Check")
    notes = Column(Text, nullable=True)

    __sample_data_parents__ = (("invoice_id", Invoice),)
