"""Payroll payments."""

from ledger_modules.payroll.models import PayrollRun
from ledger_modules.payroll.posting import PayrollPoster
from ledger_modules.payroll.service import PayrollService

__all__ = ["PayrollPoster", "PayrollRun", "PayrollService"]
