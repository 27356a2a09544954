"""
Declarative state machines (``contractor_kernel.domain.workflow``).

The ledger entry lifecycle (``contractor_kernel.domain.ledger``) is declared
as a ``Workflow`` value: DRAFT -> SUBMITTED -> APPROVED or REJECTED.  A
move not listed as a ``Transition`` is refused, so approving a draft or
reopening a rejected entry is impossible by construction.

A ``Workflow`` checks itself on construction: every transition names
declared states, the initial state is declared, and terminal states have
no way out.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    Guarantees: ``initial_state`` is a member of ``states``.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow '{self.name}': initial state {self.initial_state} "
                f"is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow '{self.name}': transition {t.action} "
                    f"references an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow '{self.name}': terminal state {t.from_state} "
                    f"has an outgoing transition"
                )

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        """Return the transition for (state, action), or None if not allowed."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)
