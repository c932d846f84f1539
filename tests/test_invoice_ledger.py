"""Invoice Ledger: issuance, cancellation, deletion and overdue refresh."""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.dialects import mssql, postgresql

from models import Invoice, InvoiceItem, InvoiceStatus, PaymentMethod
from schemas.invoice import InvoiceItemCreate
from schemas.payment import PaymentCreate
from services.exceptions import DependentRecordsError, LedgerValidationError, NotFoundError
from services.invoice_ledger import InvoiceLedger
from services.payment_recorder import PaymentRecorder

from conftest import TODAY, make_invoice_draft


def _pay(db, ctx, invoice, amount, **overrides):
    data = {
        "invoice_id": invoice.id,
        "payment_date": TODAY,
        "amount": Decimal(amount),
        "payment_method": PaymentMethod.CASH,
    }
    data.update(overrides)
    return PaymentRecorder(db, ctx).record(PaymentCreate(**data))


class TestIssue:
    def test_new_invoice_is_pending_with_full_balance(self, db, ctx, org_a):
        invoice = InvoiceLedger(db, ctx).issue(make_invoice_draft(lease_id=org_a["lease_id"]))

        assert invoice.status == InvoiceStatus.PENDING
        assert invoice.paid_amount == Decimal("0.00")
        assert invoice.balance_amount == Decimal("50000.00")
        assert invoice.organization_id == ctx.organization_id
        assert invoice.currency == "KES"
        # Landlord is taken from the lease when not given
        assert invoice.landlord_id == org_a["landlord_id"]

    def test_generated_numbers_are_sequential(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        first = ledger.issue(make_invoice_draft())
        second = ledger.issue(make_invoice_draft())

        prefix = f"INV-{TODAY.year}{TODAY.month:02d}-"
        assert first.invoice_number == prefix + "0001"
        assert second.invoice_number == prefix + "0002"

    def test_generated_number_skips_supplied_numbers(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        taken = f"INV-{TODAY.year}{TODAY.month:02d}-0001"
        ledger.issue(make_invoice_draft(invoice_number=taken))

        generated = ledger.issue(make_invoice_draft())
        assert generated.invoice_number == f"INV-{TODAY.year}{TODAY.month:02d}-0002"

    def test_duplicate_supplied_number_is_rejected(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        ledger.issue(make_invoice_draft(invoice_number="LEGACY-1"))

        with pytest.raises(LedgerValidationError):
            ledger.issue(make_invoice_draft(invoice_number="LEGACY-1"))

    def test_same_number_allowed_in_another_organization(self, db, org_a, org_b):
        InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft(invoice_number="LEGACY-1"))
        invoice = InvoiceLedger(db, org_b["ctx"]).issue(make_invoice_draft(invoice_number="LEGACY-1"))
        assert invoice.organization_id == org_b["organization_id"]

    def test_total_must_equal_amount_plus_vat(self, db, ctx):
        draft = make_invoice_draft(
            amount=Decimal("50000"), vat_amount=Decimal("8000"), total_amount=Decimal("50000")
        )
        with pytest.raises(LedgerValidationError) as excinfo:
            InvoiceLedger(db, ctx).issue(draft)
        assert excinfo.value.field == "totalAmount"

    def test_paid_amount_must_be_zero(self, db, ctx):
        with pytest.raises(LedgerValidationError):
            InvoiceLedger(db, ctx).issue(make_invoice_draft(paid_amount=Decimal("100")))

    def test_client_balance_is_ignored(self, db, ctx):
        invoice = InvoiceLedger(db, ctx).issue(make_invoice_draft(balance_amount=Decimal("1")))
        assert invoice.balance_amount == Decimal("50000.00")

    def test_only_pending_or_draft_may_be_requested(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        assert ledger.issue(make_invoice_draft(status=InvoiceStatus.DRAFT)).status == InvoiceStatus.DRAFT

        with pytest.raises(LedgerValidationError):
            ledger.issue(make_invoice_draft(status=InvoiceStatus.PAID))

    def test_unknown_lease_is_not_found(self, db, ctx):
        with pytest.raises(NotFoundError):
            InvoiceLedger(db, ctx).issue(make_invoice_draft(lease_id="missing"))

    def test_lease_of_other_organization_is_not_found(self, db, ctx, org_b):
        with pytest.raises(NotFoundError):
            InvoiceLedger(db, ctx).issue(make_invoice_draft(lease_id=org_b["lease_id"]))

    def test_items_are_computed_and_checked(self, db, ctx):
        draft = make_invoice_draft(
            amount=Decimal("1000"),
            vat_amount=Decimal("160"),
            total_amount=Decimal("1160"),
            invoice_items=[
                InvoiceItemCreate(particular="Water", qty=Decimal("2"), unit_cost=Decimal("300"), tax_rate=Decimal("16")),
                InvoiceItemCreate(particular="Garbage", unit_cost=Decimal("400"), tax_rate=Decimal("16")),
            ],
        )
        invoice = InvoiceLedger(db, ctx).issue(draft)

        items = db.query(InvoiceItem).filter_by(invoice_id=invoice.id).order_by(InvoiceItem.position).all()
        assert [item.description for item in items] == ["Water", "Garbage"]
        assert [item.amount for item in items] == [Decimal("600.00"), Decimal("400.00")]
        assert [item.vat_amount for item in items] == [Decimal("96.00"), Decimal("64.00")]

    def test_items_must_add_up_to_amount(self, db, ctx):
        draft = make_invoice_draft(
            invoice_items=[InvoiceItemCreate(particular="Rent", line_total=Decimal("40000"))],
        )
        with pytest.raises(LedgerValidationError):
            InvoiceLedger(db, ctx).issue(draft)


class TestCancel:
    def test_cancel_pending(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(make_invoice_draft())
        assert ledger.cancel(invoice.id).status == InvoiceStatus.CANCELLED

    def test_cancel_keeps_payments_and_is_terminal(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(make_invoice_draft())
        _pay(db, ctx, invoice, "10000")

        ledger.cancel(invoice.id)
        result = ledger.reconcile(ledger.get_for_update(invoice.id))

        assert result.status == InvoiceStatus.CANCELLED
        assert result.paid_amount == Decimal("10000.00")

    def test_paid_invoice_cannot_be_cancelled(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(make_invoice_draft())
        _pay(db, ctx, invoice, "50000")

        with pytest.raises(LedgerValidationError):
            ledger.cancel(invoice.id)

    def test_cancelled_invoice_cannot_be_cancelled_again(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(make_invoice_draft())
        ledger.cancel(invoice.id)

        with pytest.raises(LedgerValidationError):
            ledger.cancel(invoice.id)


class TestDelete:
    def test_delete_removes_invoice_and_items(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(
            make_invoice_draft(invoice_items=[InvoiceItemCreate(particular="Rent", line_total=Decimal("50000"))])
        )
        ledger.delete(invoice.id)

        assert db.query(Invoice).count() == 0
        assert db.query(InvoiceItem).count() == 0

    def test_delete_with_payments_is_refused(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        invoice = ledger.issue(make_invoice_draft())
        _pay(db, ctx, invoice, "100")

        with pytest.raises(DependentRecordsError) as excinfo:
            ledger.delete(invoice.id)
        assert excinfo.value.dependents == 1

    def test_delete_many_is_all_or_nothing(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        free = ledger.issue(make_invoice_draft())
        paid = ledger.issue(make_invoice_draft())
        _pay(db, ctx, paid, "100")

        with pytest.raises(DependentRecordsError):
            ledger.delete_many([free.id, paid.id])
        assert ledger.get(free.id) is not None

    def test_delete_many_returns_count(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        ids = [ledger.issue(make_invoice_draft()).id for _ in range(3)]
        assert ledger.delete_many(ids) == 3

    def test_delete_many_skips_other_organizations(self, db, org_a, org_b):
        own = InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft())
        foreign = InvoiceLedger(db, org_b["ctx"]).issue(make_invoice_draft())

        assert InvoiceLedger(db, org_a["ctx"]).delete_many([own.id, foreign.id, "missing"]) == 1
        assert InvoiceLedger(db, org_b["ctx"]).get(foreign.id) is foreign

    def test_delete_of_other_organization_is_not_found(self, db, org_a, org_b):
        invoice = InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft())
        with pytest.raises(NotFoundError):
            InvoiceLedger(db, org_b["ctx"]).delete(invoice.id)


class TestRefreshOverdue:
    def test_marks_pending_invoices_past_due(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        late = ledger.issue(make_invoice_draft(due_date=TODAY + timedelta(days=1)))
        on_time = ledger.issue(make_invoice_draft(due_date=TODAY + timedelta(days=10)))

        later = InvoiceLedger(db, ctx, today=lambda: TODAY + timedelta(days=5))
        assert later.refresh_overdue() == 1
        assert later.get(late.id).status == InvoiceStatus.OVERDUE
        assert later.get(on_time.id).status == InvoiceStatus.PENDING

    def test_other_organizations_are_untouched(self, db, org_a, org_b):
        invoice_b = InvoiceLedger(db, org_b["ctx"]).issue(make_invoice_draft(due_date=TODAY))

        later = lambda: TODAY + timedelta(days=5)  # noqa: E731
        assert InvoiceLedger(db, org_a["ctx"], today=later).refresh_overdue() == 0
        assert InvoiceLedger(db, org_b["ctx"]).get(invoice_b.id).status == InvoiceStatus.PENDING


class TestLocking:
    def test_lock_query_locks_the_row_on_server_databases(self, db, ctx):
        statement = InvoiceLedger(db, ctx).lock_query("inv-1").statement

        assert "FOR UPDATE" in str(statement.compile(dialect=postgresql.dialect()))
        assert "WITH (UPDLOCK, ROWLOCK)" in str(statement.compile(dialect=mssql.dialect()))

    def test_lock_query_is_scoped(self, db, ctx):
        sql = str(InvoiceLedger(db, ctx).lock_query("inv-1").statement.compile(dialect=postgresql.dialect()))
        assert "invoices.organization_id" in sql

    def test_lock_returns_rows_in_id_order(self, db, ctx):
        ledger = InvoiceLedger(db, ctx)
        ids = [ledger.issue(make_invoice_draft()).id for _ in range(3)]

        assert list(ledger.lock(reversed(ids))) == sorted(ids)

    def test_lock_of_unknown_invoice_is_not_found(self, db, ctx):
        with pytest.raises(NotFoundError):
            InvoiceLedger(db, ctx).lock(["missing"])


class TestTenancy:
    def test_get_from_other_organization_is_not_found(self, db, org_a, org_b):
        invoice = InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft())

        with pytest.raises(NotFoundError) as excinfo:
            InvoiceLedger(db, org_b["ctx"]).get(invoice.id)
        assert "not found" in excinfo.value.message

    def test_list_is_scoped(self, db, org_a, org_b):
        InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft())
        InvoiceLedger(db, org_a["ctx"]).issue(make_invoice_draft())
        InvoiceLedger(db, org_b["ctx"]).issue(make_invoice_draft())

        invoices, total = InvoiceLedger(db, org_b["ctx"]).list()
        assert total == 1
        assert all(inv.organization_id == org_b["organization_id"] for inv in invoices)

    def test_service_requires_org_context(self, db, org_a):
        with pytest.raises(TypeError):
            InvoiceLedger(db, org_a["organization_id"])
