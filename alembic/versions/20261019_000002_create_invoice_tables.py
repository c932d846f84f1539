"""Create invoices and invoice_items tables

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

paid_amount, balance_amount and status are maintained by balance
reconciliation. Invoice numbers are unique per organization.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000002'
down_revision: Union[str, None] = '20261019_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'invoices',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('landlord_id', sa.String(length=36), nullable=True),
        sa.Column('lease_id', sa.String(length=36), nullable=True),
        sa.Column('transaction_class', sa.String(length=50), nullable=False),
        sa.Column('ac_receivable', sa.String(length=100), nullable=True),
        sa.Column('bill_to', sa.String(length=255), nullable=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='KES'),
        sa.Column('spot_rate', sa.Numeric(precision=18, scale=6), nullable=False, server_default='1'),
        sa.Column('lpo_number', sa.String(length=100), nullable=True),
        sa.Column('sign_on_efims', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('payment_info', sa.Text(), nullable=True),
        sa.Column('terms_conditions', sa.Text(), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('vat_amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('paid_amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('balance_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum(
                'DRAFT', 'PENDING', 'PARTIALLY_PAID', 'PAID', 'OVERDUE', 'CANCELLED',
                name='invoice_status',
                create_constraint=True,
            ),
            nullable=False,
            server_default='PENDING'
        ),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_invoices_organization_id'),
        sa.ForeignKeyConstraint(['landlord_id'], ['landlords.id'], name='fk_invoices_landlord_id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_invoices_lease_id'),
        sa.UniqueConstraint('organization_id', 'invoice_number', name='uq_invoices_org_number'),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_organization_id', 'invoices', ['organization_id'])
    op.create_index('ix_invoices_landlord_id', 'invoices', ['landlord_id'])
    op.create_index('ix_invoices_lease_id', 'invoices', ['lease_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revenue_expense_item', sa.String(length=255), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('income_account', sa.String(length=100), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=14, scale=2), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('vat_rate', sa.Numeric(precision=7, scale=4), nullable=False, server_default='0'),
        sa.Column('vat_amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('class_name', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'], name='fk_invoice_items_organization_id'
        ),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_invoice_items_invoice_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_invoice_items_organization_id', 'invoice_items', ['organization_id'])
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])


def downgrade() -> None:
    op.drop_index('ix_invoice_items_invoice_id', table_name='invoice_items')
    op.drop_index('ix_invoice_items_organization_id', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_lease_id', table_name='invoices')
    op.drop_index('ix_invoices_landlord_id', table_name='invoices')
    op.drop_index('ix_invoices_organization_id', table_name='invoices')
    op.drop_table('invoices')

    # Drop the enum type (PostgreSQL)
    sa.Enum(name='invoice_status').drop(op.get_bind(), checkfirst=True)
