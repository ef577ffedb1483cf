from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CheckoutState(str, Enum):
    EMPTY = "EMPTY"
    EDITING = "EDITING"
    METHOD_SELECTED = "METHOD_SELECTED"
    VALIDATING = "VALIDATING"
    COMMITTING = "COMMITTING"
    COMMITTED = "COMMITTED"


_EDITABLE = {CheckoutState.EMPTY, CheckoutState.EDITING, CheckoutState.METHOD_SELECTED}

TRANSITIONS: dict[CheckoutState, frozenset[CheckoutState]] = {
    CheckoutState.EMPTY: frozenset({CheckoutState.EMPTY, CheckoutState.EDITING, CheckoutState.METHOD_SELECTED}),
    CheckoutState.EDITING: frozenset({CheckoutState.EMPTY, CheckoutState.EDITING, CheckoutState.METHOD_SELECTED}),
    CheckoutState.METHOD_SELECTED: frozenset(
        {CheckoutState.EMPTY, CheckoutState.EDITING, CheckoutState.METHOD_SELECTED, CheckoutState.VALIDATING}
    ),
    CheckoutState.VALIDATING: frozenset({CheckoutState.METHOD_SELECTED, CheckoutState.COMMITTING}),
    CheckoutState.COMMITTING: frozenset({CheckoutState.METHOD_SELECTED, CheckoutState.COMMITTED}),
    CheckoutState.COMMITTED: frozenset({CheckoutState.EMPTY}),
}


@dataclass(frozen=True)
class CheckoutActionAvailability:
    can_edit_cart: bool
    can_select_method: bool
    can_submit: bool
    can_clear: bool


def checkout_action_availability(state: CheckoutState, *, has_lines: bool) -> CheckoutActionAvailability:
    return CheckoutActionAvailability(
        can_edit_cart=state in _EDITABLE,
        can_select_method=state in _EDITABLE,
        can_submit=state == CheckoutState.METHOD_SELECTED and has_lines,
        can_clear=state in _EDITABLE,
    )


def can_transition(current: CheckoutState, target: CheckoutState) -> bool:
    return target in TRANSITIONS[current]
