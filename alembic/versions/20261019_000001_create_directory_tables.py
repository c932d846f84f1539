"""Create directory reference tables and document sequences

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Organizations, lessees, landlords and leases are maintained by the
directory service; the ledger only references them. document_sequences
holds the per-organization invoice and receipt counters.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('base_currency', sa.String(length=3), nullable=False, server_default='KES'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'lessees',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('contact_number', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_lessees_organization_id'),
    )
    op.create_index('ix_lessees_organization_id', 'lessees', ['organization_id'])

    op.create_table(
        'landlords',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('contact_number', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_landlords_organization_id'),
    )
    op.create_index('ix_landlords_organization_id', 'landlords', ['organization_id'])

    op.create_table(
        'leases',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('lessee_id', sa.String(length=36), nullable=False),
        sa.Column('landlord_id', sa.String(length=36), nullable=True),
        sa.Column('unit_label', sa.String(length=100), nullable=True),
        sa.Column('rent_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_leases_organization_id'),
        sa.ForeignKeyConstraint(['lessee_id'], ['lessees.id'], name='fk_leases_lessee_id'),
        sa.ForeignKeyConstraint(['landlord_id'], ['landlords.id'], name='fk_leases_landlord_id'),
    )
    op.create_index('ix_leases_organization_id', 'leases', ['organization_id'])
    op.create_index('ix_leases_lessee_id', 'leases', ['lessee_id'])
    op.create_index('ix_leases_landlord_id', 'leases', ['landlord_id'])

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('current_value', sa.BigInteger(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'], name='fk_document_sequences_organization_id'
        ),
        sa.UniqueConstraint('organization_id', 'name', name='uq_document_sequences_org_name'),
    )
    op.create_index('ix_document_sequences_organization_id', 'document_sequences', ['organization_id'])


def downgrade() -> None:
    op.drop_index('ix_document_sequences_organization_id', table_name='document_sequences')
    op.drop_table('document_sequences')
    op.drop_index('ix_leases_landlord_id', table_name='leases')
    op.drop_index('ix_leases_lessee_id', table_name='leases')
    op.drop_index('ix_leases_organization_id', table_name='leases')
    op.drop_table('leases')
    op.drop_index('ix_landlords_organization_id', table_name='landlords')
    op.drop_table('landlords')
    op.drop_index('ix_lessees_organization_id', table_name='lessees')
    op.drop_table('lessees')
    op.drop_table('organizations')
