"""Alembic migrations render against the configured database URL."""
import io
from pathlib import Path

from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parent.parent


def test_offline_upgrade_creates_ledger_tables():
    buffer = io.StringIO()
    config = Config(output_buffer=buffer)
    config.set_main_option("script_location", str(ROOT / "alembic"))

    command.upgrade(config, "head", sql=True)

    sql = buffer.getvalue()
    for table in ("organizations", "invoices", "invoice_items", "receipts", "receipt_lines", "payments"):
        assert f"CREATE TABLE {table}" in sql
    assert "20261019_000003" in sql
