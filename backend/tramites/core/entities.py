"""Entities — citizen, procedure, debt, installment plan and payment value objects.

Invariants:
    - Entities are plain dataclasses; repositories hand out copies, never shared instances
    - Debt.total_amount is derived (base_amount + late_interest), never stored
    - Procedure.history is append-only; one entry per status change
    - PaymentOutcome carries a gateway decline as a value, not an exception
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from tramites.core.domain_types import (
    CitizenId, ProcedureId, DebtId,
    ProcedureStatus, DebtStatus, PaymentTargetKind, ZERO,
)


@dataclass
class Citizen:
    id: CitizenId
    national_id: str
    full_name: str
    email: str
    phone: str
    address: str
    registered_at: datetime


@dataclass
class HistoryEntry:
    """One procedure status change."""
    new_status: ProcedureStatus
    timestamp: datetime
    reason: str
    previous_status: ProcedureStatus | None = None


@dataclass
class Procedure:
    id: ProcedureId
    file_number: str
    citizen_id: CitizenId
    type: str
    description: str
    status: ProcedureStatus
    started_at: datetime
    amount_due: Decimal
    completed_at: datetime | None = None
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def is_payable(self) -> bool:
        return self.status == ProcedureStatus.PENDING and self.amount_due > ZERO


@dataclass
class Debt:
    id: DebtId
    citizen_id: CitizenId
    type: str
    base_amount: Decimal
    late_interest: Decimal
    period: str
    due_date: date
    status: DebtStatus = DebtStatus.PENDING

    @property
    def total_amount(self) -> Decimal:
        return self.base_amount + self.late_interest


@dataclass
class InstallmentPlan:
    """A debt divided into equal cents-rounded payments; the last one absorbs the remainder."""
    debt_id: DebtId
    number_of_installments: int
    installment_amount: Decimal
    installments: list[Decimal]
    total_amount: Decimal
    created_at: datetime

    @property
    def id(self) -> DebtId:
        # Keyed by debt: one plan per debt.
        return self.debt_id


@dataclass
class Receipt:
    """Audit record of a successful payment."""
    id: str
    target_kind: PaymentTargetKind
    target_id: int
    method: str
    amount: Decimal
    issued_at: datetime


@dataclass(frozen=True)
class GatewayResult:
    approved: bool
    reason: str | None = None


@dataclass(frozen=True)
class RetryDirective:
    """Instruction for an external queue to re-attempt a declined payment."""
    target_kind: PaymentTargetKind
    target_id: int
    method: str
    amount: Decimal
    attempt: int
    reason: str
    not_before: datetime


@dataclass(frozen=True)
class PaymentOutcome:
    success: bool
    target_kind: PaymentTargetKind
    target_id: int
    amount: Decimal
    timestamp: datetime
    receipt_id: str | None = None
    reason: str | None = None
    retry: RetryDirective | None = None
