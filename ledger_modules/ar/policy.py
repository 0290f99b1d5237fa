"""
Transition authorization for the invoice workflow.

The state machine decides which edges exist; a ``TransitionPolicy``
decides who may walk them.  ``RoleTransitionPolicy`` is built from the
``invoice.transition_roles`` configuration.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol

from ledger_kernel.domain.tenant import Actor
from ledger_modules.ar.workflows import INVOICE_WORKFLOW, Workflow


class TransitionPolicy(Protocol):
    def can_transition(self, actor: Actor, from_state: str, to_state: str) -> bool:
        ...


class RoleTransitionPolicy:
    """
    Allow a transition when the actor holds one of the roles configured
    for its action.  Actions without configured roles are refused.
    """

    def __init__(
        self,
        roles_by_action: Mapping[str, Iterable[str]],
        workflow: Workflow = INVOICE_WORKFLOW,
    ):
        self._roles = {action: frozenset(roles) for action, roles in roles_by_action.items()}
        self._workflow = workflow

    def can_transition(self, actor: Actor, from_state: str, to_state: str) -> bool:
        transition = self._workflow.find_transition(from_state, to_state)
        return actor.has_any_role(self._roles.get(transition.action, frozenset()))

