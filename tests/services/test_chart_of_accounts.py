"""
Chart of accounts maintenance tests.
"""

from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import AccountSpec, LineSpec
from ledger_kernel.exceptions import (
    AccountReferencedError,
    DuplicateAccountCodeError,
    NotFoundError,
    SystemAccountError,
)
from ledger_kernel.models.account import AccountType, NormalBalance
from ledger_kernel.services.coa_service import ChartOfAccountsService


class TestSeedDefaultChart:

    def test_seeds_configured_accounts(self, seeded_chart, ledger_config):
        assert set(seeded_chart) == {spec.code for spec in ledger_config.chart_of_accounts}
        assert all(account.is_system for account in seeded_chart.values())

    def test_seeding_twice_creates_nothing(self, gl, seeded_chart, tenant_context):
        assert gl.seed_default_chart(tenant_context) == []
        assert len(gl.list_accounts(tenant_context)) == len(seeded_chart)

    def test_normal_balance_follows_type(self, seeded_chart):
        assert seeded_chart["1001"].normal_balance == NormalBalance.DEBIT
        assert seeded_chart["5200"].normal_balance == NormalBalance.DEBIT
        assert seeded_chart["2100"].normal_balance == NormalBalance.CREDIT
        assert seeded_chart["3000"].normal_balance == NormalBalance.CREDIT
        assert seeded_chart["4000"].normal_balance == NormalBalance.CREDIT

    def test_each_tenant_gets_its_own_chart(self, gl, seeded_chart, make_context):
        other = make_context(tenant_id=uuid4())
        gl.seed_default_chart(other)
        other_ids = {account.id for account in gl.list_accounts(other)}
        assert other_ids.isdisjoint({account.id for account in seeded_chart.values()})


class TestAddAccount:

    def test_add_user_account(self, gl, seeded_chart, tenant_context):
        account = gl.add_account(
            tenant_context, AccountSpec("1003", "Petty Cash", AccountType.ASSET)
        )
        assert account.code == "1003"
        assert account.account_type == AccountType.ASSET
        assert not account.is_system

    def test_duplicate_code_rejected(self, gl, seeded_chart, tenant_context):
        with pytest.raises(DuplicateAccountCodeError) as exc_info:
            gl.add_account(tenant_context, AccountSpec("1001", "Another Cash", AccountType.ASSET))
        assert exc_info.value.account_code == "1001"

    def test_same_code_allowed_for_other_tenant(self, gl, seeded_chart, make_context):
        other = make_context(tenant_id=uuid4())
        account = gl.add_account(other, AccountSpec("1001", "Cash", AccountType.ASSET))
        assert account.code == "1001"


class TestChangeCode:

    def test_unreferenced_code_can_change(self, gl, seeded_chart, tenant_context):
        gl.add_account(tenant_context, AccountSpec("1003", "Petty Cash", AccountType.ASSET))
        account = gl.change_code(tenant_context, "1003", "1004")
        assert account.code == "1004"

    def test_referenced_code_is_frozen(self, gl, seeded_chart, tenant_context, header):
        gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "1.00"), LineSpec.cr("4000", "1.00")]
        )
        with pytest.raises(AccountReferencedError) as exc_info:
            gl.change_code(tenant_context, "1001", "1009")
        assert exc_info.value.operation == "change code of"

    def test_new_code_must_be_free(self, gl, seeded_chart, tenant_context):
        with pytest.raises(DuplicateAccountCodeError):
            gl.change_code(tenant_context, "5400", "5300")

    def test_unknown_code(self, gl, seeded_chart, tenant_context):
        with pytest.raises(NotFoundError):
            gl.change_code(tenant_context, "0000", "0001")


class TestDeleteAccount:

    def test_unused_user_account_deleted(self, gl, seeded_chart, tenant_context):
        gl.add_account(tenant_context, AccountSpec("1003", "Petty Cash", AccountType.ASSET))
        gl.delete_account(tenant_context, "1003")
        assert "1003" not in {account.code for account in gl.list_accounts(tenant_context)}

    def test_system_account_refused(self, gl, seeded_chart, tenant_context):
        with pytest.raises(SystemAccountError):
            gl.delete_account(tenant_context, "5400")

    def test_referenced_account_refused(self, gl, seeded_chart, tenant_context, header):
        gl.add_account(tenant_context, AccountSpec("1003", "Petty Cash", AccountType.ASSET))
        gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1003", "1.00"), LineSpec.cr("4000", "1.00")]
        )
        with pytest.raises(AccountReferencedError):
            gl.delete_account(tenant_context, "1003")


class TestKernelService:
    """The kernel service flushes but leaves the commit to its caller."""

    def test_get_by_code(self, session, seeded_chart, tenant_context, deterministic_clock):
        service = ChartOfAccountsService(session, deterministic_clock)
        account = service.get_by_code(tenant_context, "4000")
        assert account.name == seeded_chart["4000"].name

    def test_get_by_code_missing(self, session, seeded_chart, tenant_context):
        with pytest.raises(NotFoundError):
            ChartOfAccountsService(session).get_by_code(tenant_context, "0000")
