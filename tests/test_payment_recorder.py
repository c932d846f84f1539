"""Payment Recorder: recording and removing payments keeps balances consistent."""
from decimal import Decimal

import pytest

from models import InvoiceStatus, Payment, PaymentKind, PaymentMethod
from schemas.payment import PaymentCreate
from services.exceptions import (
    CurrencyMismatchError,
    LedgerValidationError,
    NotFoundError,
    OverpaymentError,
)
from services.invoice_ledger import InvoiceLedger
from services.payment_recorder import PaymentRecorder

from conftest import TODAY, make_invoice_draft


def _draft(invoice_id=None, amount="1000", **overrides) -> PaymentCreate:
    data = {
        "invoice_id": invoice_id,
        "payment_date": TODAY,
        "amount": Decimal(amount),
        "payment_method": PaymentMethod.MPESA,
    }
    data.update(overrides)
    return PaymentCreate(**data)


@pytest.fixture
def invoice(db, ctx, org_a):
    return InvoiceLedger(db, ctx).issue(make_invoice_draft(lease_id=org_a["lease_id"]))


def _balance_invariant_holds(invoice) -> bool:
    return invoice.balance_amount == invoice.total_amount - invoice.paid_amount


def test_full_payment_marks_invoice_paid(db, ctx, invoice):
    payment = PaymentRecorder(db, ctx).record(_draft(invoice.id, "50000"))

    assert invoice.paid_amount == Decimal("50000.00")
    assert invoice.balance_amount == Decimal("0.00")
    assert invoice.status == InvoiceStatus.PAID
    assert payment.payment_type == PaymentKind.APPLY_TO_BILL
    assert payment.currency == "KES"
    assert payment.lease_id == invoice.lease_id
    assert payment.recorded_by == "test-user"


def test_partial_payment_then_overpayment_is_rejected(db, ctx, invoice):
    recorder = PaymentRecorder(db, ctx)
    recorder.record(_draft(invoice.id, "30000"))

    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    assert invoice.balance_amount == Decimal("20000.00")

    with pytest.raises(OverpaymentError) as excinfo:
        recorder.record(_draft(invoice.id, "25000"))

    assert excinfo.value.balance == Decimal("20000.00")
    assert invoice.balance_amount == Decimal("20000.00")
    assert db.query(Payment).filter_by(invoice_id=invoice.id).count() == 1
    assert _balance_invariant_holds(invoice)


def test_currency_mismatch_is_rejected(db, ctx, invoice):
    with pytest.raises(CurrencyMismatchError):
        PaymentRecorder(db, ctx).record(_draft(invoice.id, "100", currency="USD"))


def test_payment_on_cancelled_invoice_is_rejected(db, ctx, invoice):
    InvoiceLedger(db, ctx).cancel(invoice.id)

    with pytest.raises(LedgerValidationError):
        PaymentRecorder(db, ctx).record(_draft(invoice.id, "100"))


def test_payment_without_invoice_is_cash_payment(db, ctx):
    payment = PaymentRecorder(db, ctx).record(_draft(None, "2500"))

    assert payment.invoice_id is None
    assert payment.payment_type == PaymentKind.CASH_PAYMENT
    assert payment.currency == ctx.base_currency


def test_invoice_of_other_organization_is_not_found(db, org_b, invoice):
    with pytest.raises(NotFoundError):
        PaymentRecorder(db, org_b["ctx"]).record(_draft(invoice.id, "100"))


def test_delete_restores_balance(db, ctx, invoice):
    recorder = PaymentRecorder(db, ctx)
    first = recorder.record(_draft(invoice.id, "20000"))
    recorder.record(_draft(invoice.id, "30000"))
    assert invoice.status == InvoiceStatus.PAID

    recorder.delete(first.id)

    assert invoice.paid_amount == Decimal("30000.00")
    assert invoice.balance_amount == Decimal("20000.00")
    assert invoice.status == InvoiceStatus.PARTIALLY_PAID
    assert _balance_invariant_holds(invoice)


def test_delete_many_reconciles_each_invoice(db, ctx, invoice):
    other = InvoiceLedger(db, ctx).issue(make_invoice_draft())
    recorder = PaymentRecorder(db, ctx)
    ids = [
        recorder.record(_draft(invoice.id, "10000")).id,
        recorder.record(_draft(other.id, "5000")).id,
    ]

    assert recorder.delete_many(ids) == 2
    assert invoice.balance_amount == Decimal("50000.00")
    assert other.balance_amount == Decimal("50000.00")
    assert invoice.status == InvoiceStatus.PENDING


def test_delete_unknown_payment_is_not_found(db, ctx):
    with pytest.raises(NotFoundError):
        PaymentRecorder(db, ctx).delete("missing")


def test_list_filters_by_invoice(db, ctx, invoice):
    recorder = PaymentRecorder(db, ctx)
    recorder.record(_draft(invoice.id, "100"))
    recorder.record(_draft(None, "200"))

    payments, total = recorder.list(invoice_id=invoice.id)
    assert total == 1
    assert payments[0].amount == Decimal("100.00")


def test_record_reads_the_invoice_with_a_row_lock(db, ctx, invoice, monkeypatch):
    locked = []
    lock_query = InvoiceLedger.lock_query

    def tracking_lock_query(self, invoice_id):
        locked.append(invoice_id)
        return lock_query(self, invoice_id)

    monkeypatch.setattr(InvoiceLedger, "lock_query", tracking_lock_query)
    PaymentRecorder(db, ctx).record(_draft(invoice.id, "100"))

    assert invoice.id in locked


class TestTenantIsolation:
    @pytest.fixture
    def payment(self, db, ctx, invoice):
        return PaymentRecorder(db, ctx).record(_draft(invoice.id, "1000"))

    def test_get_from_other_organization_is_not_found(self, db, org_b, payment):
        with pytest.raises(NotFoundError):
            PaymentRecorder(db, org_b["ctx"]).get(payment.id)

    def test_delete_from_other_organization_is_not_found(self, db, org_b, payment, invoice):
        with pytest.raises(NotFoundError):
            PaymentRecorder(db, org_b["ctx"]).delete(payment.id)
        assert invoice.paid_amount == Decimal("1000.00")

    def test_delete_many_skips_other_organizations(self, db, ctx, org_b, payment):
        assert PaymentRecorder(db, org_b["ctx"]).delete_many([payment.id]) == 0
        assert PaymentRecorder(db, ctx).get(payment.id) is payment

    def test_list_is_scoped(self, db, org_b, payment):
        payments, total = PaymentRecorder(db, org_b["ctx"]).list()
        assert total == 0
        assert payments == []
