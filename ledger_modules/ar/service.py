"""
Sales Tax Invoice Service - lifecycle of ZATCA tax invoices.

Thin glue layer that:
1. Keeps drafts (numbering, party snapshots, line totals)
2. Walks the INVOICE_WORKFLOW state machine, asking the injected
   TransitionPolicy who may perform each transition
3. Calls SalesInvoicePoster for the journal entry when an invoice posts

This service owns the transaction boundary: it commits on success and
rolls back on failure.

Usage:
    service = InvoiceService(session, resolver, RoleTransitionPolicy(roles))
    invoice = service.create_draft(context, InvoiceType.STANDARD, seller, buyer, items)
    service.approve_invoice(context, invoice.id)
    service.post_invoice(context, invoice.id)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.account_resolver import AccountResolver
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.exceptions import (
    EmptyInvoiceError,
    InvoiceImmutableError,
    NotFoundError,
    UnauthorizedTransitionError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_event import AuditAction
from ledger_kernel.services.auditor_service import AuditorService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_modules._posting_helpers import build_journal_engine
from ledger_modules.ar.helpers import calculate_invoice_totals
from ledger_modules.ar.models import (
    InvoiceLineItem,
    InvoiceStatus,
    InvoiceType,
    Party,
    TaxInvoice,
)
from ledger_modules.ar.orm import InvoiceItemModel, TaxInvoiceModel
from ledger_modules.ar.policy import TransitionPolicy
from ledger_modules.ar.posting import SalesInvoicePoster
from ledger_modules.ar.workflows import INVOICE_WORKFLOW, Transition
from ledger_modules.tax.zatca import generate_tlv_qr

logger = get_logger("modules.ar.service")


class InvoiceService:
    """
    Orchestrates tax invoice drafting, approval and posting.

    Transaction boundary: every public write commits on success and rolls
    back on failure.
    """

    def __init__(
        self,
        session: Session,
        account_resolver: AccountResolver,
        transition_policy: TransitionPolicy,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._policy = transition_policy
        self._sequences = SequenceService(session)
        self._auditor = AuditorService(session, self._clock)
        self._poster = SalesInvoicePoster(
            build_journal_engine(session, self._config, self._clock),
            account_resolver,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def _load(self, context: TenantContext, invoice_id: UUID, lock: bool = False) -> TaxInvoiceModel:
        query = select(TaxInvoiceModel).where(
            TaxInvoiceModel.tenant_id == context.tenant_id,
            TaxInvoiceModel.id == invoice_id,
        )
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        invoice = self._session.execute(query).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("TaxInvoice", str(invoice_id))
        return invoice

    def get_invoice(self, context: TenantContext, invoice_id: UUID) -> TaxInvoice:
        return self._load(context, invoice_id).to_dto()

    def list_invoices(
        self,
        context: TenantContext,
        status: InvoiceStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TaxInvoice]:
        query = select(TaxInvoiceModel).where(TaxInvoiceModel.tenant_id == context.tenant_id)
        if status is not None:
            query = query.where(TaxInvoiceModel.status == InvoiceStatus(status).value)
        if start is not None:
            query = query.where(TaxInvoiceModel.issue_date >= start)
        if end is not None:
            query = query.where(TaxInvoiceModel.issue_date <= end)
        query = query.order_by(TaxInvoiceModel.invoice_number)
        return [invoice.to_dto() for invoice in self._session.execute(query).scalars()]

    # =========================================================================
    # Drafts
    # =========================================================================

    def _replace_items(
        self,
        context: TenantContext,
        invoice: TaxInvoiceModel,
        items: Sequence[InvoiceLineItem],
    ) -> None:
        rate = self._config.tax.default_vat_rate
        items = [item.with_default_rate(rate) for item in items]
        invoice.items = [
            InvoiceItemModel.from_dto(
                item,
                tenant_id=context.tenant_id,
                line_seq=seq,
                created_by_id=context.actor_id,
            )
            for seq, item in enumerate(items, start=1)
        ]
        totals = calculate_invoice_totals(items)
        invoice.subtotal = totals.subtotal
        invoice.vat_amount = totals.vat_amount
        invoice.total_amount = totals.total_amount

    def create_draft(
        self,
        context: TenantContext,
        invoice_type: InvoiceType,
        seller: Party,
        buyer: Party,
        items: Sequence[InvoiceLineItem],
        issue_date: date | None = None,
        currency: str | None = None,
    ) -> TaxInvoice:
        """Create a DRAFT invoice with the next ``INV-`` number."""
        with context.log_scope():
            try:
                number = self._sequences.next_number(
                    context.tenant_id,
                    SequenceService.TAX_INVOICE,
                    self._config.invoice.number_prefix,
                )
                invoice = TaxInvoiceModel(
                    tenant_id=context.tenant_id,
                    invoice_number=number,
                    invoice_type=InvoiceType(invoice_type).value,
                    status=InvoiceStatus.DRAFT.value,
                    issue_date=issue_date,
                    currency=currency or self._config.ledger.currency,
                    seller=seller.to_dict(),
                    buyer=buyer.to_dict(),
                    created_by_id=context.actor_id,
                )
                self._replace_items(context, invoice, items)
                self._session.add(invoice)
                self._session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="TaxInvoice",
                    entity_id=invoice.id,
                    action=AuditAction.INVOICE_CREATED,
                    actor_id=context.actor_id,
                    payload={"invoice_number": number, "total_amount": invoice.total_amount},
                )
                result = invoice.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "invoice_draft_created",
                extra={
                    "invoice_id": str(result.id),
                    "invoice_number": result.invoice_number,
                    "total_amount": str(result.total_amount),
                },
            )
            return result

    def update_draft(
        self,
        context: TenantContext,
        invoice_id: UUID,
        *,
        invoice_type: InvoiceType | None = None,
        seller: Party | None = None,
        buyer: Party | None = None,
        items: Sequence[InvoiceLineItem] | None = None,
        issue_date: date | None = None,
    ) -> TaxInvoice:
        """
        Edit a DRAFT invoice.  Only the given fields change.

        Raises:
            InvoiceImmutableError: the invoice is not a draft.
        """
        with context.log_scope(invoice_id=str(invoice_id)):
            try:
                invoice = self._load(context, invoice_id, lock=True)
                if invoice.status != InvoiceStatus.DRAFT.value:
                    raise InvoiceImmutableError(str(invoice_id), invoice.status)

                if invoice_type is not None:
                    invoice.invoice_type = InvoiceType(invoice_type).value
                if seller is not None:
                    invoice.seller = seller.to_dict()
                if buyer is not None:
                    invoice.buyer = buyer.to_dict()
                if issue_date is not None:
                    invoice.issue_date = issue_date
                if items is not None:
                    self._replace_items(context, invoice, items)
                invoice.updated_by_id = context.actor_id
                self._session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="TaxInvoice",
                    entity_id=invoice.id,
                    action=AuditAction.INVOICE_UPDATED,
                    actor_id=context.actor_id,
                    payload={"total_amount": invoice.total_amount},
                )
                result = invoice.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info("invoice_draft_updated", extra={"total_amount": str(result.total_amount)})
            return result

    # =========================================================================
    # Transitions
    # =========================================================================

    def _authorize(
        self,
        context: TenantContext,
        invoice: TaxInvoiceModel,
        to_state: InvoiceStatus,
    ) -> Transition:
        from_state = invoice.status
        transition = INVOICE_WORKFLOW.find_transition(from_state, to_state.value)
        if not self._policy.can_transition(context.actor, from_state, to_state.value):
            logger.warning(
                "invoice_transition_refused",
                extra={"from_state": from_state, "to_state": to_state.value},
            )
            raise UnauthorizedTransitionError(
                actor_id=str(context.actor_id),
                from_state=from_state,
                to_state=to_state.value,
            )
        return transition

    def _log_transition(self, transition: Transition, invoice: TaxInvoice) -> None:
        logger.info(
            "invoice_transition",
            extra={
                "action": transition.action,
                "from_state": transition.from_state,
                "to_state": transition.to_state,
                "invoice_number": invoice.invoice_number,
            },
        )

    def approve_invoice(self, context: TenantContext, invoice_id: UUID) -> TaxInvoice:
        """
        DRAFT -> APPROVED.  Only the status and approval stamp change.

        Raises:
            EmptyInvoiceError: the draft has no line items.
        """
        with context.log_scope(invoice_id=str(invoice_id)):
            try:
                invoice = self._load(context, invoice_id, lock=True)
                transition = self._authorize(context, invoice, InvoiceStatus.APPROVED)
                if not invoice.items:
                    raise EmptyInvoiceError(str(invoice.id), invoice.invoice_number)

                invoice.status = InvoiceStatus.APPROVED.value
                invoice.approved_by_id = context.actor_id
                invoice.approved_at = self._clock.now()
                invoice.updated_by_id = context.actor_id
                self._session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="TaxInvoice",
                    entity_id=invoice.id,
                    action=AuditAction.INVOICE_APPROVED,
                    actor_id=context.actor_id,
                )
                result = invoice.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            self._log_transition(transition, result)
            return result

    def revert_to_draft(self, context: TenantContext, invoice_id: UUID) -> TaxInvoice:
        """APPROVED -> DRAFT.  Clears the approval stamp."""
        with context.log_scope(invoice_id=str(invoice_id)):
            try:
                invoice = self._load(context, invoice_id, lock=True)
                transition = self._authorize(context, invoice, InvoiceStatus.DRAFT)

                invoice.status = InvoiceStatus.DRAFT.value
                invoice.approved_by_id = None
                invoice.approved_at = None
                invoice.updated_by_id = context.actor_id
                self._session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="TaxInvoice",
                    entity_id=invoice.id,
                    action=AuditAction.INVOICE_REVERTED,
                    actor_id=context.actor_id,
                )
                result = invoice.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            self._log_transition(transition, result)
            return result

    def post_invoice(self, context: TenantContext, invoice_id: UUID) -> TaxInvoice:
        """
        APPROVED -> POSTED.

        Posts the sales entry, records ``posting_ref``, stamps the QR code
        when missing and freezes the invoice.  If the entry cannot be
        written (e.g. MissingAccountError) the invoice stays APPROVED.
        """
        with context.log_scope(invoice_id=str(invoice_id)):
            try:
                invoice = self._load(context, invoice_id, lock=True)
                transition = self._authorize(context, invoice, InvoiceStatus.POSTED)

                if invoice.issue_date is None:
                    invoice.issue_date = self._clock.today()
                entry_id = self._poster.post(context, invoice.to_dto())

                invoice.posting_ref = entry_id
                invoice.status = InvoiceStatus.POSTED.value
                invoice.posted_by_id = context.actor_id
                invoice.posted_at = self._clock.now()
                invoice.updated_by_id = context.actor_id
                if not invoice.qr_code:
                    invoice.qr_code = generate_tlv_qr(
                        seller_name=invoice.seller.get("name") or "",
                        vat_number=invoice.seller.get("vat_number") or "",
                        timestamp=invoice.issue_date,
                        total=invoice.total_amount,
                        vat=invoice.vat_amount,
                    )
                self._session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="TaxInvoice",
                    entity_id=invoice.id,
                    action=AuditAction.INVOICE_POSTED,
                    actor_id=context.actor_id,
                    payload={"posting_ref": entry_id, "total_amount": invoice.total_amount},
                )
                result = invoice.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            self._log_transition(transition, result)
            logger.info(
                "invoice_posted",
                extra={"entry_id": str(entry_id), "total_amount": str(result.total_amount)},
            )
            return result
