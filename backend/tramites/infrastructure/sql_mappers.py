"""Row Mappers — entity <-> ORM row conversion for SqlRepository.

Invariants:
    - Decimal amounts round-trip exactly (Numeric columns, strings inside JSON)
    - Datetimes come back timezone-aware (UTC assumed when the driver drops tzinfo)
"""

from datetime import datetime, timezone
from decimal import Decimal

from tramites.core.domain_types import (
    CitizenId, ProcedureId, DebtId,
    ProcedureStatus, DebtStatus, PaymentTargetKind,
)
from tramites.core.entities import (
    Citizen, Procedure, HistoryEntry, Debt, InstallmentPlan, Receipt,
)
from tramites.core.installments import to_money
from tramites.models import CitizenRow, ProcedureRow, DebtRow, InstallmentPlanRow, ReceiptRow


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ─── Citizen ─────────────────────────────────────────────────────

def citizen_to_row(citizen: Citizen) -> dict:
    return {
        "id": citizen.id,
        "national_id": citizen.national_id,
        "full_name": citizen.full_name,
        "email": citizen.email,
        "phone": citizen.phone,
        "address": citizen.address,
        "registered_at": citizen.registered_at,
    }


def citizen_from_row(row: CitizenRow) -> Citizen:
    return Citizen(
        id=CitizenId(row.id),
        national_id=row.national_id,
        full_name=row.full_name,
        email=row.email,
        phone=row.phone,
        address=row.address,
        registered_at=_aware(row.registered_at),
    )


# ─── Procedure ───────────────────────────────────────────────────

def _history_to_json(entry: HistoryEntry) -> dict:
    return {
        "previous_status": entry.previous_status.value if entry.previous_status else None,
        "new_status": entry.new_status.value,
        "timestamp": entry.timestamp.isoformat(),
        "reason": entry.reason,
    }


def _history_from_json(data: dict) -> HistoryEntry:
    previous = data.get("previous_status")
    return HistoryEntry(
        previous_status=ProcedureStatus(previous) if previous else None,
        new_status=ProcedureStatus(data["new_status"]),
        timestamp=_aware(datetime.fromisoformat(data["timestamp"])),
        reason=data["reason"],
    )


def procedure_to_row(procedure: Procedure) -> dict:
    return {
        "id": procedure.id,
        "file_number": procedure.file_number,
        "citizen_id": procedure.citizen_id,
        "type": procedure.type,
        "description": procedure.description,
        "status": procedure.status.value,
        "started_at": procedure.started_at,
        "completed_at": procedure.completed_at,
        "amount_due": procedure.amount_due,
        "history": [_history_to_json(e) for e in procedure.history],
    }


def procedure_from_row(row: ProcedureRow) -> Procedure:
    return Procedure(
        id=ProcedureId(row.id),
        file_number=row.file_number,
        citizen_id=CitizenId(row.citizen_id),
        type=row.type,
        description=row.description,
        status=ProcedureStatus(row.status),
        started_at=_aware(row.started_at),
        completed_at=_aware(row.completed_at),
        amount_due=to_money(row.amount_due),
        history=[_history_from_json(e) for e in row.history or []],
    )


# ─── Debt / InstallmentPlan ──────────────────────────────────────

def debt_to_row(debt: Debt) -> dict:
    return {
        "id": debt.id,
        "citizen_id": debt.citizen_id,
        "type": debt.type,
        "base_amount": debt.base_amount,
        "late_interest": debt.late_interest,
        "period": debt.period,
        "due_date": debt.due_date,
        "status": debt.status.value,
    }


def debt_from_row(row: DebtRow) -> Debt:
    return Debt(
        id=DebtId(row.id),
        citizen_id=CitizenId(row.citizen_id),
        type=row.type,
        base_amount=to_money(row.base_amount),
        late_interest=to_money(row.late_interest),
        period=row.period,
        due_date=row.due_date,
        status=DebtStatus(row.status),
    )


def plan_to_row(plan: InstallmentPlan) -> dict:
    return {
        "debt_id": plan.debt_id,
        "number_of_installments": plan.number_of_installments,
        "installment_amount": plan.installment_amount,
        "total_amount": plan.total_amount,
        "installments": [str(amount) for amount in plan.installments],
        "created_at": plan.created_at,
    }


def plan_from_row(row: InstallmentPlanRow) -> InstallmentPlan:
    return InstallmentPlan(
        debt_id=DebtId(row.debt_id),
        number_of_installments=row.number_of_installments,
        installment_amount=to_money(row.installment_amount),
        installments=[Decimal(amount) for amount in row.installments],
        total_amount=to_money(row.total_amount),
        created_at=_aware(row.created_at),
    )


# ─── Receipt ─────────────────────────────────────────────────────

def receipt_to_row(receipt: Receipt) -> dict:
    return {
        "id": receipt.id,
        "target_kind": receipt.target_kind.value,
        "target_id": receipt.target_id,
        "method": receipt.method,
        "amount": receipt.amount,
        "issued_at": receipt.issued_at,
    }


def receipt_from_row(row: ReceiptRow) -> Receipt:
    return Receipt(
        id=row.id,
        target_kind=PaymentTargetKind(row.target_kind),
        target_id=row.target_id,
        method=row.method,
        amount=to_money(row.amount),
        issued_at=_aware(row.issued_at),
    )
