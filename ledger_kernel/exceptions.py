"""
Typed exception hierarchy for the ledger kernel.

Every error carries a machine-readable ``code`` class attribute and the
structured data needed to act on it, so callers catch by type and never
parse message text.

    LedgerCoreError (base)
    |
    +-- PostingError
    |   +-- UnbalancedEntryError
    |   +-- EmptyEntryError
    |   +-- InvalidLineError
    |   +-- AlreadyPostedError
    |   +-- VoidedSourceError
    |   +-- MissingAccountError
    |
    +-- NotFoundError
    |
    +-- AccountError
    |   +-- AccountReferencedError
    |   +-- SystemAccountError
    |   +-- DuplicateAccountCodeError
    |
    +-- ReversalError
    |   +-- EntryNotPostedError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- UnauthorizedTransitionError
    |   +-- InvoiceImmutableError
    |   +-- EmptyInvoiceError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

Errors are raised synchronously to the caller and never retried inside the
kernel: every write is a single atomic unit, so a failed attempt leaves no
partial state behind.
"""

from decimal import Decimal


class LedgerCoreError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_CORE_ERROR"


# Posting-related exceptions


class PostingError(LedgerCoreError):
    """Base exception for journal posting errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits within tolerance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debit_total: Decimal, credit_total: Decimal):
        self.debit_total = debit_total
        self.credit_total = credit_total
        super().__init__(
            f"Unbalanced entry: debits={debit_total}, credits={credit_total}"
        )


class EmptyEntryError(PostingError):
    """Journal entry has no lines."""

    code: str = "EMPTY_ENTRY"

    def __init__(self):
        super().__init__("Journal entry must contain at least one line")


class InvalidLineError(PostingError):
    """A line violates the debit-XOR-credit rule or carries a negative amount."""

    code: str = "INVALID_LINE"

    def __init__(self, line_index: int, reason: str):
        self.line_index = line_index
        self.reason = reason
        super().__init__(f"Invalid journal line #{line_index}: {reason}")


class AlreadyPostedError(PostingError):
    """Entry is not a draft and cannot be posted again."""

    code: str = "ALREADY_POSTED"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(f"Journal entry {entry_id} is {status}, not draft")


class VoidedSourceError(PostingError):
    """The idempotency key belongs to an entry that has since been voided."""

    code: str = "SOURCE_VOIDED"

    def __init__(self, idempotency_key: str, entry_id: str):
        self.idempotency_key = idempotency_key
        self.entry_id = entry_id
        super().__init__(
            f"Entry {entry_id} for {idempotency_key} was voided; post the document under a new key"
        )


class MissingAccountError(PostingError):
    """A required account code is not present in the chart of accounts."""

    code: str = "MISSING_ACCOUNT"

    def __init__(self, account_code: str, role: str | None = None):
        self.account_code = account_code
        self.role = role
        detail = f" (role {role})" if role else ""
        super().__init__(
            f"Required account {account_code}{detail} is missing from the chart of accounts"
        )


# Lookup exceptions


class NotFoundError(LedgerCoreError):
    """Reference to a nonexistent entry, account or invoice."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str, reason: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        message = f"{entity_type} not found: {entity_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# Account-related exceptions


class AccountError(LedgerCoreError):
    """Base exception for chart-of-accounts errors."""

    code: str = "ACCOUNT_ERROR"


class AccountReferencedError(AccountError):
    """Account is referenced by journal lines and cannot be changed or removed."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_code: str, operation: str = "delete"):
        self.account_code = account_code
        self.operation = operation
        super().__init__(
            f"Cannot {operation} account {account_code}: referenced by journal lines"
        )


class SystemAccountError(AccountError):
    """System (seeded) accounts cannot be deleted."""

    code: str = "SYSTEM_ACCOUNT"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account {account_code} is a system account and cannot be deleted")


class DuplicateAccountCodeError(AccountError):
    """Account code already exists for the tenant."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code {account_code} already exists")


# Reversal-related exceptions


class ReversalError(LedgerCoreError):
    """Base exception for void/reversal errors."""

    code: str = "REVERSAL_ERROR"


class EntryNotPostedError(ReversalError):
    """Only posted entries can be voided."""

    code: str = "ENTRY_NOT_POSTED"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(
            f"Cannot void entry {entry_id}: status is {status}, expected posted"
        )


# Workflow-related exceptions


class WorkflowError(LedgerCoreError):
    """Base exception for document lifecycle errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Status transition is not allowed by the workflow."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")


class UnauthorizedTransitionError(WorkflowError):
    """Actor is not permitted to perform the transition."""

    code: str = "UNAUTHORIZED_TRANSITION"

    def __init__(self, actor_id: str, from_state: str, to_state: str):
        self.actor_id = actor_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Actor {actor_id} is not authorized for {from_state} -> {to_state}"
        )


class InvoiceImmutableError(WorkflowError):
    """Invoice is no longer a draft and cannot be edited."""

    code: str = "INVOICE_IMMUTABLE"

    def __init__(self, invoice_id: str, status: str):
        self.invoice_id = invoice_id
        self.status = status
        super().__init__(f"Invoice {invoice_id} is {status} and cannot be modified")


class EmptyInvoiceError(WorkflowError):
    """Invoice has no line items and cannot leave DRAFT."""

    code: str = "EMPTY_INVOICE"

    def __init__(self, invoice_id: str, invoice_number: str):
        self.invoice_id = invoice_id
        self.invoice_number = invoice_number
        super().__init__(f"Invoice {invoice_number} has no line items")


# Immutability-related exceptions


class ImmutabilityError(LedgerCoreError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Posted journal entries, their lines, audit events and posted invoices
    are immutable.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
