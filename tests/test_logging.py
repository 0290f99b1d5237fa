"""Tests for the structured logging system (ledger_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import update

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import MissingAccountError, UnbalancedEntryError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from ledger_kernel.models.account import Account
from ledger_modules.ar import InvoiceLineItem, InvoiceType, Party


@pytest.fixture
def _clean_logging():
    """Start from an unconfigured logger tree; restore the test default afterwards."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _by_message(records: list[dict], message: str) -> list[dict]:
    return [r for r in records if r["message"] == message]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_clean_logging")
class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "ledger_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("posted", extra={"entry_number": "JE-000001", "status": "posted"})

        record = _parse_log(stream)
        assert record["entry_number"] == "JE-000001"
        assert record["status"] == "posted"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", invoice_id="inv-9")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["invoice_id"] == "inv-9"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "tenant_id" not in record

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_values", extra={"entry": uid, "amount": Decimal("10.50")})

        record = _parse_log(stream)
        assert record["entry"] == str(uid)
        assert record["amount"] == "10.50"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_ledger_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise MissingAccountError("2100", role="vat_output")
        except MissingAccountError:
            get_logger("test").error("posting_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "MISSING_ACCOUNT"
        assert record["exc_type"] == "MissingAccountError"
        assert record["exc_account_code"] == "2100"
        assert record["exc_role"] == "vat_output"

    def test_default_level_drops_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", entry_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "entry_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(correlation_id="temp"):
            assert LogContext.get_all()["correlation_id"] == "temp"
        assert "correlation_id" not in LogContext.get_all()

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(tenant_id="t", producer="p"):
            assert LogContext.get_all() == {"tenant_id": "t"}

    def test_tenant_log_scope(self, tenant_context):
        with tenant_context.log_scope(entry_id="e-1"):
            ctx = LogContext.get_all()
        assert ctx["tenant_id"] == str(tenant_context.tenant_id)
        assert ctx["actor_id"] == str(tenant_context.actor_id)
        assert ctx["entry_id"] == "e-1"
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("_clean_logging")
class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert logging.getLogger("ledger_kernel").handlers == [h1]

    def test_get_logger_returns_child(self):
        assert get_logger("services.journal_engine").name == "ledger_kernel.services.journal_engine"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "ledger_kernel.deep.nested.module"


# ---------------------------------------------------------------------------
# Events emitted by the services
# ---------------------------------------------------------------------------


class TestServiceEvents:

    def test_entry_creation_logged_with_tenant(self, gl, seeded_chart, tenant_context, header, captured_logs):
        gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "25.00"), LineSpec.cr("4000", "25.00")]
        )

        (record,) = _by_message(captured_logs(), "journal_entry_created")
        assert record["entry_number"] == "JE-000001"
        assert record["debit_total"] == "25.00"
        assert record["line_count"] == 2
        assert record["tenant_id"] == str(tenant_context.tenant_id)
        assert record["logger"] == "ledger_kernel.services.journal_engine"

    def test_rejected_entry_logged(self, gl, seeded_chart, tenant_context, header, captured_logs):
        with pytest.raises(UnbalancedEntryError):
            gl.record_entry(
                tenant_context, header(), [LineSpec.dr("1001", "25.00"), LineSpec.cr("4000", "20.00")]
            )

        records = _by_message(captured_logs(), "journal_entry_rejected")
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"

    def test_missing_account_logged(self, session, invoice_service, seeded_chart, tenant_context, captured_logs):
        session.execute(
            update(Account)
            .where(Account.tenant_id == tenant_context.tenant_id, Account.code == "2100")
            .values(is_active=False)
        )
        invoice = invoice_service.create_draft(
            tenant_context,
            InvoiceType.STANDARD,
            Party(name="Acme Trading", vat_number="300000000000003"),
            Party(name="Gulf Retail", vat_number="310000000000003"),
            [InvoiceLineItem("Goods", Decimal("1"), Decimal("100.00"))],
        )
        invoice_service.approve_invoice(tenant_context, invoice.id)
        with pytest.raises(MissingAccountError):
            invoice_service.post_invoice(tenant_context, invoice.id)

        (record,) = _by_message(captured_logs(), "posting_blocked_missing_account")
        assert record["level"] == "ERROR"
        assert record["account_code"] == "2100"
        assert record["role"] == "vat_output"

    def test_invoice_transitions_logged(self, invoice_service, seeded_chart, tenant_context, captured_logs):
        invoice = invoice_service.create_draft(
            tenant_context,
            InvoiceType.SIMPLIFIED,
            Party(name="Acme Trading", vat_number="300000000000003"),
            Party(),
            [InvoiceLineItem("Goods", Decimal("2"), Decimal("50.00"))],
        )
        invoice_service.approve_invoice(tenant_context, invoice.id)
        invoice_service.post_invoice(tenant_context, invoice.id)

        transitions = _by_message(captured_logs(), "invoice_transition")
        assert [(r["from_state"], r["to_state"]) for r in transitions] == [
            ("draft", "approved"),
            ("approved", "posted"),
        ]
        assert all(r["invoice_id"] == str(invoice.id) for r in transitions)
