"""Balance reconciliation: pure status and balance derivation."""
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from models.invoice import InvoiceStatus
from services.money import amounts_match, money_sum, to_money
from services.reconciliation import derive_status, reconcile

TODAY = date(2026, 3, 15)


def _invoice(total="50000.00", currency="KES", due=TODAY + timedelta(days=10), status=InvoiceStatus.PENDING):
    return SimpleNamespace(total_amount=Decimal(total), currency=currency, due_date=due, status=status)


def _payment(amount, currency="KES"):
    return SimpleNamespace(amount=Decimal(amount), currency=currency)


class TestDeriveStatus:
    def test_unpaid_before_due_is_pending(self):
        assert derive_status(100, 0, 100, TODAY, TODAY) == InvoiceStatus.PENDING

    def test_unpaid_after_due_is_overdue(self):
        assert derive_status(100, 0, 100, TODAY - timedelta(days=1), TODAY) == InvoiceStatus.OVERDUE

    def test_partial_payment_wins_over_overdue(self):
        status = derive_status(100, 40, 60, TODAY - timedelta(days=30), TODAY)
        assert status == InvoiceStatus.PARTIALLY_PAID

    def test_zero_balance_is_paid(self):
        assert derive_status(100, 100, 0, TODAY - timedelta(days=30), TODAY) == InvoiceStatus.PAID

    def test_cancelled_is_terminal(self):
        status = derive_status(100, 100, 0, TODAY, TODAY, current_status=InvoiceStatus.CANCELLED)
        assert status == InvoiceStatus.CANCELLED

    def test_draft_moves_on_when_reconciled(self):
        status = derive_status(100, 0, 100, TODAY, TODAY, current_status=InvoiceStatus.DRAFT)
        assert status == InvoiceStatus.PENDING


class TestReconcile:
    def test_no_payments(self):
        result = reconcile(_invoice(), [], TODAY)
        assert result.paid_amount == Decimal("0.00")
        assert result.balance_amount == Decimal("50000.00")
        assert result.status == InvoiceStatus.PENDING

    def test_sums_payments_in_invoice_currency(self):
        payments = [_payment("30000"), _payment("5000"), _payment("100", currency="USD")]
        result = reconcile(_invoice(), payments, TODAY)
        assert result.paid_amount == Decimal("35000.00")
        assert result.balance_amount == Decimal("15000.00")
        assert result.status == InvoiceStatus.PARTIALLY_PAID

    def test_full_payment(self):
        result = reconcile(_invoice(), [_payment("50000")], TODAY)
        assert result.balance_amount == Decimal("0.00")
        assert result.status == InvoiceStatus.PAID

    def test_is_idempotent(self):
        invoice = _invoice(due=TODAY - timedelta(days=1))
        payments = [_payment("1000")]
        assert reconcile(invoice, payments, TODAY) == reconcile(invoice, payments, TODAY)

    def test_does_not_mutate_invoice(self):
        invoice = _invoice()
        reconcile(invoice, [_payment("50000")], TODAY)
        assert invoice.status == InvoiceStatus.PENDING


class TestMoney:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, Decimal("0.00")),
            (10, Decimal("10.00")),
            ("0.005", Decimal("0.01")),
            (Decimal("12.344"), Decimal("12.34")),
            (0.1, Decimal("0.10")),
        ],
    )
    def test_to_money(self, value, expected):
        assert to_money(value) == expected

    def test_money_sum(self):
        assert money_sum(["0.10", "0.20", None]) == Decimal("0.30")

    def test_amounts_match_within_one_cent(self):
        assert amounts_match(Decimal("100.00"), Decimal("100.01"))
        assert not amounts_match(Decimal("100.00"), Decimal("100.02"))
