"""JSON log lines carry the structured fields passed through extra=."""
import json
import logging
import sys
from decimal import Decimal

from logging_config import StructuredFormatter
from services.exceptions import OverpaymentError


def _record(message, extra=None, exc_info=None) -> logging.LogRecord:
    logger = logging.getLogger("services.payment_recorder")
    return logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, message, (), exc_info, extra=extra
    )


def test_extra_fields_are_written():
    record = _record(
        "payment_recorded",
        extra={"organization_id": "org-1", "invoice_id": "inv-1", "amount": Decimal("20000.00")},
    )

    line = json.loads(StructuredFormatter().format(record))

    assert line["message"] == "payment_recorded"
    assert line["level"] == "INFO"
    assert line["logger"] == "services.payment_recorder"
    assert line["organization_id"] == "org-1"
    assert line["invoice_id"] == "inv-1"
    assert line["amount"] == "20000.00"
    assert "args" not in line


def test_ledger_error_code_is_written():
    try:
        raise OverpaymentError("INV-202610-0001", Decimal("25000"), Decimal("20000"))
    except OverpaymentError:
        record = _record("ledger_error", exc_info=sys.exc_info())

    line = json.loads(StructuredFormatter().format(record))

    assert line["exc_type"] == "OverpaymentError"
    assert line["exc_code"] == "OVERPAYMENT"
    assert line["exc_balance"] == "20000"
    assert "Traceback" in line["traceback"]
