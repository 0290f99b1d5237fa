"""
Sales Invoice Workflow.

State machine for the tax invoice lifecycle.  Transition authorization is
not part of the machine; see ``policy.py``.
"""

from dataclasses import dataclass

from ledger_kernel.exceptions import InvalidTransitionError
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.ar.workflows")


@dataclass(frozen=True)
class Guard:
    """A condition for a transition."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    posts_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def find_transition(self, from_state: str, to_state: str) -> Transition:
        """
        The transition from ``from_state`` to ``to_state``.

        Raises:
            InvalidTransitionError: the workflow has no such edge.
        """
        for transition in self.transitions:
            if transition.from_state == from_state and transition.to_state == to_state:
                return transition
        raise InvalidTransitionError(from_state=from_state, to_state=to_state)


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ITEMS = Guard(
    name="has_items",
    description="Invoice has at least one line item",
)

BALANCED_POSTING = Guard(
    name="balanced_posting",
    description="Sales posting resolves every account and balances",
)


# -----------------------------------------------------------------------------
# Invoice Workflow
# -----------------------------------------------------------------------------

INVOICE_WORKFLOW = Workflow(
    name="sales_tax_invoice",
    description="ZATCA sales tax invoice lifecycle",
    initial_state="draft",
    states=(
        "draft",
        "approved",
        "posted",
        "sent_to_authority",
        "paid",
    ),
    transitions=(
        Transition("draft", "approved", action="approve", guard=HAS_ITEMS),
        Transition("approved", "draft", action="revert"),
        Transition("approved", "posted", action="post", guard=BALANCED_POSTING, posts_entry=True),
    ),
)

logger.info(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
        "initial_state": INVOICE_WORKFLOW.initial_state,
    },
)
