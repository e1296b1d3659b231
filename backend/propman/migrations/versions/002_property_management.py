"""Property management tables

Revision ID: 002
Revises: 001
Create Date: 2026-01-24

WHY: Every table here is tenant-owned: organization_id is NOT NULL and
indexed because every query the access layer issues filters on it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tenant_columns() -> list:
    """EntityMixin + OrganizationOwnedMixin columns."""
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('organization_id', sa.Uuid(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('created_on', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_modified_by', sa.String(length=100), nullable=True),
        sa.Column('last_modified_on', sa.DateTime(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_sample_data', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.PrimaryKeyConstraint('id'),
    ]


def _create_tenant_table(name: str, *columns: sa.Column) -> None:
    op.create_table(name, *_tenant_columns(), *columns)
    op.create_index(f'ix_{name}_organization_id', name, ['organization_id'])


TABLES = (
    'tours',
    'prospective_tenants',
    'inspections',
    'maintenance_requests',
    'payments',
    'invoices',
    'leases',
    'tenants',
    'properties',
)


def upgrade() -> None:
    _create_tenant_table(
        'properties',
        sa.Column('address', sa.String(length=200), nullable=False),
        sa.Column('unit_number', sa.String(length=50), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('state', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('zip_code', sa.String(length=10), nullable=False, server_default=''),
        sa.Column('property_type', sa.String(length=50), nullable=False, server_default='House'),
        sa.Column('bedrooms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bathrooms', sa.Numeric(3, 1), nullable=False, server_default='0'),
        sa.Column('square_feet', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('monthly_rent', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Available'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('description', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'tenants',
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('emergency_contact_name', sa.String(length=200), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index('ix_tenants_email', 'tenants', ['email'])

    _create_tenant_table(
        'leases',
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False, index=True),
        sa.Column('tenant_id', sa.Uuid(), sa.ForeignKey('tenants.id'), nullable=False, index=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('monthly_rent', sa.Numeric(18, 2), nullable=False),
        sa.Column('security_deposit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Active'),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'invoices',
        sa.Column('lease_id', sa.Uuid(), sa.ForeignKey('leases.id'), nullable=False, index=True),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('invoiced_on', sa.Date(), nullable=False),
        sa.Column('due_on', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Pending'),
        sa.Column('paid_on', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'payments',
        sa.Column('invoice_id', sa.Uuid(), sa.ForeignKey('invoices.id'), nullable=False, index=True),
        sa.Column('paid_on', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=False, server_default='Check'),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'maintenance_requests',
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False, index=True),
        sa.Column('lease_id', sa.Uuid(), sa.ForeignKey('leases.id'), nullable=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('request_type', sa.String(length=50), nullable=False, server_default='General'),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='Medium'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Submitted'),
        sa.Column('requested_on', sa.Date(), nullable=False),
        sa.Column('scheduled_on', sa.Date(), nullable=True),
        sa.Column('completed_on', sa.Date(), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(18, 2), nullable=True),
        sa.Column('actual_cost', sa.Numeric(18, 2), nullable=True),
        sa.Column('assigned_to', sa.String(length=100), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'inspections',
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False, index=True),
        sa.Column('lease_id', sa.Uuid(), sa.ForeignKey('leases.id'), nullable=True),
        sa.Column('completed_on', sa.Date(), nullable=False),
        sa.Column('inspection_type', sa.String(length=50), nullable=False, server_default='Routine'),
        sa.Column('inspected_by', sa.String(length=100), nullable=True),
        sa.Column('overall_condition', sa.String(length=20), nullable=False, server_default='Good'),
        sa.Column('general_notes', sa.Text(), nullable=True),
        sa.Column('action_items', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'prospective_tenants',
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Lead'),
        sa.Column('source', sa.String(length=100), nullable=True),
        sa.Column('interested_property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=True),
        sa.Column('desired_move_in_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )

    _create_tenant_table(
        'tours',
        sa.Column(
            'prospective_tenant_id',
            sa.Uuid(),
            sa.ForeignKey('prospective_tenants.id'),
            nullable=False,
            index=True,
        ),
        sa.Column('property_id', sa.Uuid(), sa.ForeignKey('properties.id'), nullable=False, index=True),
        sa.Column('scheduled_on', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Scheduled'),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('conducted_by', sa.String(length=100), nullable=True),
    )


def downgrade() -> None:
    for name in TABLES:
        op.drop_table(name)
