"""Create receipts, receipt_lines and payments tables

Revision ID: 20261019_000003
Revises: 20261019_000002
Create Date: 2026-10-19

A receipt owns its lines (deleted with it). Payments reference the invoice
they settle and, when produced by a receipt, that receipt; they have no
cascade so they are never removed without reconciling their invoice.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000003'
down_revision: Union[str, None] = '20261019_000002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PAYMENT_METHODS = ('CASH', 'BANK_TRANSFER', 'CHEQUE', 'MPESA', 'CARD', 'OTHER')


def upgrade() -> None:
    op.create_table(
        'receipts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('receipt_number', sa.String(length=50), nullable=False),
        sa.Column(
            'receipt_type',
            sa.Enum('ApplyToInvoice', 'CashReceipt', name='receipt_type', create_constraint=True),
            nullable=False,
            server_default='ApplyToInvoice'
        ),
        sa.Column(
            'receipt_category',
            sa.Enum('Rent', 'General', name='receipt_category', create_constraint=True),
            nullable=False,
            server_default='Rent'
        ),
        sa.Column('received_from', sa.String(length=255), nullable=False),
        sa.Column('lessee_id', sa.String(length=36), nullable=True),
        sa.Column('landlord_id', sa.String(length=36), nullable=True),
        sa.Column(
            'payment_method',
            sa.Enum(*PAYMENT_METHODS, name='receipt_payment_method', create_constraint=True),
            nullable=False
        ),
        sa.Column('deposit_into_ac', sa.String(length=100), nullable=True),
        sa.Column('ref_no', sa.String(length=100), nullable=True),
        sa.Column('cheque_no', sa.String(length=50), nullable=True),
        sa.Column('cheque_date', sa.Date(), nullable=True),
        sa.Column('payment_ref_no', sa.String(length=100), nullable=True),
        sa.Column('payment_bank', sa.String(length=100), nullable=True),
        sa.Column('amount_received', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('amount_vat_inclusive', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='KES'),
        sa.Column('spot_rate', sa.Numeric(precision=18, scale=6), nullable=False, server_default='1'),
        sa.Column('recording_date', sa.Date(), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=True),
        sa.Column('banking_date', sa.Date(), nullable=True),
        sa.Column(
            'receipt_to',
            sa.Enum('Landlord', 'GeneralLedger', name='receipt_to', create_constraint=True),
            nullable=False,
            server_default='Landlord'
        ),
        sa.Column(
            'drt_or_drf',
            sa.Enum('DirectReceipt', 'DepositRefund', name='receipt_source', create_constraint=True),
            nullable=False,
            server_default='DepositRefund'
        ),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_receipts_organization_id'),
        sa.ForeignKeyConstraint(['lessee_id'], ['lessees.id'], name='fk_receipts_lessee_id'),
        sa.ForeignKeyConstraint(['landlord_id'], ['landlords.id'], name='fk_receipts_landlord_id'),
        sa.UniqueConstraint('organization_id', 'receipt_number', name='uq_receipts_org_number'),
    )
    op.create_index('ix_receipts_organization_id', 'receipts', ['organization_id'])
    op.create_index('ix_receipts_lessee_id', 'receipts', ['lessee_id'])
    op.create_index('ix_receipts_landlord_id', 'receipts', ['landlord_id'])

    op.create_table(
        'receipt_lines',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('receipt_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line_date', sa.Date(), nullable=False),
        sa.Column('invoice_number', sa.String(length=50), nullable=True),
        sa.Column('particular', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('invoice_total', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('prev_receipts', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('amount_due', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('payment', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('new_balance', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('wht_tax', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['organization_id'], ['organizations.id'], name='fk_receipt_lines_organization_id'
        ),
        sa.ForeignKeyConstraint(
            ['receipt_id'],
            ['receipts.id'],
            name='fk_receipt_lines_receipt_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_receipt_lines_invoice_id'),
    )
    op.create_index('ix_receipt_lines_organization_id', 'receipt_lines', ['organization_id'])
    op.create_index('ix_receipt_lines_receipt_id', 'receipt_lines', ['receipt_id'])
    op.create_index('ix_receipt_lines_invoice_id', 'receipt_lines', ['invoice_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=36), nullable=False),
        sa.Column('invoice_id', sa.String(length=36), nullable=True),
        sa.Column('lease_id', sa.String(length=36), nullable=True),
        sa.Column('receipt_id', sa.String(length=36), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='KES'),
        sa.Column('spot_rate', sa.Numeric(precision=18, scale=6), nullable=False, server_default='1'),
        sa.Column(
            'payment_method',
            sa.Enum(*PAYMENT_METHODS, name='payment_method', create_constraint=True),
            nullable=False
        ),
        sa.Column(
            'payment_type',
            sa.Enum('ApplyToBill', 'CashPayment', name='payment_kind', create_constraint=True),
            nullable=False,
            server_default='ApplyToBill'
        ),
        sa.Column('payment_reference', sa.String(length=100), nullable=True),
        sa.Column('cheque_number', sa.String(length=50), nullable=True),
        sa.Column('cheque_date', sa.Date(), nullable=True),
        sa.Column('mpesa_receipt_number', sa.String(length=50), nullable=True),
        sa.Column('mpesa_phone_number', sa.String(length=30), nullable=True),
        sa.Column('payee', sa.String(length=255), nullable=True),
        sa.Column('paid_from', sa.String(length=255), nullable=True),
        sa.Column('paid_to', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('attachments', sa.Text(), nullable=True),
        sa.Column('recorded_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_payments_organization_id'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_payments_invoice_id'),
        sa.ForeignKeyConstraint(['lease_id'], ['leases.id'], name='fk_payments_lease_id'),
        sa.ForeignKeyConstraint(['receipt_id'], ['receipts.id'], name='fk_payments_receipt_id'),
    )
    op.create_index('ix_payments_organization_id', 'payments', ['organization_id'])
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])
    op.create_index('ix_payments_lease_id', 'payments', ['lease_id'])
    op.create_index('ix_payments_receipt_id', 'payments', ['receipt_id'])


def downgrade() -> None:
    op.drop_index('ix_payments_receipt_id', table_name='payments')
    op.drop_index('ix_payments_lease_id', table_name='payments')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_index('ix_payments_organization_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_receipt_lines_invoice_id', table_name='receipt_lines')
    op.drop_index('ix_receipt_lines_receipt_id', table_name='receipt_lines')
    op.drop_index('ix_receipt_lines_organization_id', table_name='receipt_lines')
    op.drop_table('receipt_lines')
    op.drop_index('ix_receipts_landlord_id', table_name='receipts')
    op.drop_index('ix_receipts_lessee_id', table_name='receipts')
    op.drop_index('ix_receipts_organization_id', table_name='receipts')
    op.drop_table('receipts')

    # Drop enum types (PostgreSQL)
    for enum_name in (
        'payment_kind', 'payment_method', 'receipt_source', 'receipt_to',
        'receipt_payment_method', 'receipt_category', 'receipt_type',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
