"""Procedure State Machine — legal edges and history bookkeeping.

Invariants:
    - Legal edges: PENDING -> IN_REVIEW, PENDING -> CANCELLED, IN_REVIEW -> COMPLETED
    - CANCELLED and COMPLETED are terminal
    - Every applied transition appends exactly one HistoryEntry whose new_status
      equals the procedure status right after it
    - Functions here are PURE: they mutate only the Procedure passed in
"""

from datetime import datetime

from tramites.core.domain_types import ProcedureStatus
from tramites.core.entities import HistoryEntry, Procedure
from tramites.core.errors import InvalidStateError, ErrorContext

LEGAL_TRANSITIONS: dict[ProcedureStatus, frozenset[ProcedureStatus]] = {
    ProcedureStatus.PENDING: frozenset({
        ProcedureStatus.IN_REVIEW, ProcedureStatus.CANCELLED,
    }),
    ProcedureStatus.IN_REVIEW: frozenset({ProcedureStatus.COMPLETED}),
    ProcedureStatus.CANCELLED: frozenset(),
    ProcedureStatus.COMPLETED: frozenset(),
}

TERMINAL_STATES = frozenset(
    status for status, targets in LEGAL_TRANSITIONS.items() if not targets
)


def is_legal(current: ProcedureStatus, new: ProcedureStatus) -> bool:
    return new in LEGAL_TRANSITIONS[current]


def check_transition(procedure: Procedure, new_status: ProcedureStatus) -> None:
    """Raise InvalidStateError unless current -> new_status is a legal edge."""
    current = procedure.status
    if is_legal(current, new_status):
        return
    if new_status == ProcedureStatus.CANCELLED:
        message = (
            f"Only PENDING procedures can be cancelled "
            f"(procedure {procedure.file_number} is {current.value})"
        )
    elif current in TERMINAL_STATES:
        message = f"Procedure {procedure.file_number} is {current.value} and cannot change status"
    else:
        message = f"Illegal transition {current.value} -> {new_status.value}"
    raise InvalidStateError(
        message,
        current_status=current.value,
        code="ILLEGAL_TRANSITION",
        context=ErrorContext(entity_type="Procedure", entity_id=str(procedure.id)),
    )


def opening_entry(now: datetime) -> HistoryEntry:
    return HistoryEntry(
        new_status=ProcedureStatus.PENDING, timestamp=now, reason="opened",
    )


def apply_transition(
    procedure: Procedure, new_status: ProcedureStatus, reason: str, now: datetime,
) -> Procedure:
    """Validate and apply a status change together with its history entry."""
    check_transition(procedure, new_status)
    previous = procedure.status
    procedure.status = new_status
    procedure.history.append(HistoryEntry(
        previous_status=previous,
        new_status=new_status,
        timestamp=now,
        reason=reason,
    ))
    if new_status == ProcedureStatus.COMPLETED:
        procedure.completed_at = now
    return procedure
