"""
Tax Compliance Service - VAT and Zakat reporting derived from the ledger.

Read-only: figures come from posted invoices and from LedgerSelector
aggregations; nothing is written, so this service never commits.

Usage:
    service = ComplianceService(session)
    report = service.vat_report(context, date(2024, 1, 1), date(2024, 3, 31))
    estimate = service.zakat_estimate(context, 2024)
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.account_resolver import AccountRole
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.domain.values import ZERO, round_money
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountType
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_modules.ar.models import InvoiceType, TaxInvoice
from ledger_modules.ar.orm import TaxInvoiceModel
from ledger_modules.tax.helpers import check_invoice_compliance
from ledger_modules.tax.models import (
    ChecklistItem,
    VatReport,
    ZakatDataPack,
    ZakatEstimate,
    ZakatFinancials,
)

logger = get_logger("modules.tax.service")

ZAKAT_CHECKLIST = (
    ChecklistItem("Financial statements (audited)", "pending_upload"),
    ChecklistItem("Commercial registration (active)", "to_verify"),
    ChecklistItem("VAT returns (yearly)", "available"),
)


class ComplianceService:
    """VAT return and Zakat figures for one tenant."""

    def __init__(
        self,
        session: Session,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or get_active_config()
        self._clock = clock or SystemClock()
        self._ledger = LedgerSelector(session)

    def vat_report(self, context: TenantContext, start: date, end: date) -> VatReport:
        """
        Output VAT from invoices issued in [start, end] in a reportable
        status; input VAT from debits to the VAT-input account in POSTED
        entries dated in range.
        """
        with context.log_scope():
            invoices = self._session.execute(
                select(
                    TaxInvoiceModel.invoice_type,
                    TaxInvoiceModel.subtotal,
                    TaxInvoiceModel.vat_amount,
                ).where(
                    TaxInvoiceModel.tenant_id == context.tenant_id,
                    TaxInvoiceModel.issue_date >= start,
                    TaxInvoiceModel.issue_date <= end,
                    TaxInvoiceModel.status.in_(self._config.tax.vat_report_statuses),
                )
            ).all()

            standard_count = sum(
                1 for row in invoices if row.invoice_type == InvoiceType.STANDARD.value
            )
            simplified_count = sum(
                1 for row in invoices if row.invoice_type == InvoiceType.SIMPLIFIED.value
            )
            total_sales = sum((row.subtotal for row in invoices), ZERO)
            output_vat = sum((row.vat_amount for row in invoices), ZERO)

            input_code = self._config.account_for_role(AccountRole.VAT_INPUT.value)
            input_vat = self._ledger.debit_lines_total(context, input_code, start, end)
            rate = self._config.tax.default_vat_rate

            report = VatReport(
                period_start=start,
                period_end=end,
                standard_count=standard_count,
                simplified_count=simplified_count,
                total_sales=total_sales,
                output_vat=output_vat,
                input_vat=input_vat,
                estimated_purchases=round_money(input_vat / rate) if rate else ZERO,
            )
            logger.info(
                "vat_report_computed",
                extra={
                    "period_start": start.isoformat(),
                    "period_end": end.isoformat(),
                    "invoice_count": len(invoices),
                    "output_vat": str(output_vat),
                    "input_vat": str(input_vat),
                    "net_payable": str(report.net_payable),
                },
            )
            return report

    def check_invoice(self, invoice: TaxInvoice) -> list[str]:
        """Phase-1 checks against the tenant's VAT rate and mismatch tolerance."""
        return check_invoice_compliance(
            invoice,
            vat_rate=self._config.tax.default_vat_rate,
            tolerance=self._config.tax.vat_check_tolerance,
        )

    def _year_figures(self, context: TenantContext, year: int):
        year_start, year_end = date(year, 1, 1), date(year, 12, 31)
        balances = self._ledger.trial_balance(context, end=year_end)
        pnl = self._ledger.profit_and_loss(context, year_start, year_end)
        return balances, pnl

    def _estimate(self, year: int, balances, pnl) -> ZakatEstimate:
        fixed_codes = set(self._config.tax.fixed_asset_codes)
        equity = sum(
            (row.balance for row in balances if row.account_type == AccountType.EQUITY), ZERO
        )
        fixed_assets = sum((row.balance for row in balances if row.code in fixed_codes), ZERO)
        base = abs(equity) + pnl.net_income - fixed_assets
        rate = self._config.tax.zakat_rate
        return ZakatEstimate(
            year=year,
            equity=equity,
            net_income=pnl.net_income,
            fixed_assets=fixed_assets,
            base=base,
            rate=rate,
            amount=round_money(max(ZERO, base) * rate),
        )

    def zakat_estimate(self, context: TenantContext, year: int) -> ZakatEstimate:
        with context.log_scope():
            balances, pnl = self._year_figures(context, year)
            estimate = self._estimate(year, balances, pnl)
            logger.info(
                "zakat_estimate_computed",
                extra={"year": year, "base": str(estimate.base), "amount": str(estimate.amount)},
            )
            return estimate

    def zakat_data_pack(self, context: TenantContext, year: int) -> ZakatDataPack:
        """The estimate plus the year's headline financials."""
        with context.log_scope():
            balances, pnl = self._year_figures(context, year)

            def total(account_type):
                return sum(
                    (row.balance for row in balances if row.account_type == account_type), ZERO
                )

            financials = ZakatFinancials(
                revenue=pnl.revenue,
                expenses=pnl.expense,
                net_profit=pnl.net_income,
                total_assets=total(AccountType.ASSET),
                total_liabilities=total(AccountType.LIABILITY),
                equity=total(AccountType.EQUITY),
            )
            pack = ZakatDataPack(
                year=year,
                generated_at=self._clock.now(),
                financials=financials,
                estimate=self._estimate(year, balances, pnl),
                checklist=ZAKAT_CHECKLIST,
            )
            logger.info("zakat_data_pack_generated", extra={"year": year})
            return pack
