"""Initial schema - users, organizations, memberships, bookkeeping

Revision ID: 001
Revises:
Create Date: 2026-01-10

WHY: Users and organizations are the foundation of tenant isolation;
schema_versions and database_settings describe the store itself and are
read by the startup sequence before any business table exists.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _entity_columns() -> list:
    """Columns shared by every EntityMixin table."""
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('created_on', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_modified_by', sa.String(length=100), nullable=True),
        sa.Column('last_modified_on', sa.DateTime(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_sample_data', sa.Boolean(), nullable=False, server_default=sa.text('0')),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('active_organization_id', sa.Uuid(), nullable=True),
        sa.Column('created_on', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_on', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'organizations',
        *_entity_columns(),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('display_name', sa.String(length=200), nullable=True),
        sa.Column('state', sa.String(length=2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_organizations_owner_id', 'organizations', ['owner_id'])

    op.create_table(
        'organization_users',
        *_entity_columns(),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('granted_by', sa.String(length=36), nullable=False),
        sa.Column('granted_on', sa.DateTime(), nullable=False),
        sa.Column('revoked_on', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'user_id', name='uq_organization_users_org_user'),
    )
    op.create_index('ix_organization_users_organization_id', 'organization_users', ['organization_id'])
    op.create_index('ix_organization_users_user_id', 'organization_users', ['user_id'])

    op.create_table(
        'schema_versions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('version', sa.String(length=50), nullable=False),
        sa.Column('applied_on', sa.DateTime(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'database_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('database_encryption_enabled', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('encryption_changed_on', sa.DateTime(), nullable=True),
        sa.Column('last_modified_on', sa.DateTime(), nullable=True),
        sa.Column('last_modified_by', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('database_settings')
    op.drop_table('schema_versions')
    op.drop_index('ix_organization_users_user_id', table_name='organization_users')
    op.drop_index('ix_organization_users_organization_id', table_name='organization_users')
    op.drop_table('organization_users')
    op.drop_index('ix_organizations_owner_id', table_name='organizations')
    op.drop_table('organizations')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
