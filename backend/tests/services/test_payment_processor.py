"""PaymentProcessor tests — approved and declined payments for procedures and debts.

Tests cover:
    - Approved procedure payment: receipt, amount_due zeroed, IN_REVIEW with history
    - Declined payment: result value with reason and retry directive, target untouched,
      directive handed to the retry queue, no inline retry
    - Input validation happens before the gateway is called
    - Amount must match what is due; non-payable targets rejected
    - Debt payments mark the debt PAID; a plan-split debt cannot be paid in full
    - A receipt that cannot be stored leaves the target unpaid
"""

import re
from decimal import Decimal

import pytest

from tramites.core.domain_types import DebtStatus, PaymentTargetKind, ProcedureStatus
from tramites.core.errors import InvalidStateError, NotFoundError, ValidationError
from tests.doubles import FailingSaveRepository


# --- Procedures ---------------------------------------------------------------

async def test_approved_procedure_payment(services, procedure, gateway, notifier):
    outcome = await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")

    assert outcome.success is True
    assert re.fullmatch(r"COMP-\d+-\d{4}", outcome.receipt_id)
    assert outcome.amount == Decimal("245.00")
    assert gateway.calls == [("card", Decimal("245.00"))]

    stored = await services.procedures.get(procedure.id)
    assert stored.amount_due == Decimal("0.00")
    assert stored.status == ProcedureStatus.IN_REVIEW
    assert len(stored.history) == 2
    assert stored.history[-1].reason == "payment confirmed"

    receipt = await services.payments.get_receipt(outcome.receipt_id)
    assert receipt.target_kind == PaymentTargetKind.PROCEDURE
    assert receipt.target_id == procedure.id
    assert receipt.amount == Decimal("245.00")
    assert any("confirmed" in message for _, message in notifier.sent)


async def test_declined_procedure_payment(services, procedure, gateway, retries):
    gateway.approved = False

    outcome = await services.payments.pay(
        PaymentTargetKind.PROCEDURE, procedure.id, "card", Decimal("245.00"),
    )

    assert outcome.success is False
    assert outcome.reason == "Payment declined by the bank"
    assert outcome.receipt_id is None
    assert outcome.retry is not None
    assert outcome.retry.attempt == 2
    assert outcome.retry.not_before > outcome.timestamp
    assert len(gateway.calls) == 1
    assert retries.pending == [outcome.retry]

    stored = await services.procedures.get(procedure.id)
    assert stored.amount_due == Decimal("245.00")
    assert stored.status == ProcedureStatus.PENDING
    assert len(stored.history) == 1


async def test_retry_after_decline_succeeds(services, procedure, gateway, retries):
    gateway.approved = False
    declined = await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")

    gateway.approved = True
    directive = declined.retry
    outcome = await services.payments.pay(
        directive.target_kind, directive.target_id, directive.method, directive.amount,
        attempt=directive.attempt,
    )
    assert outcome.success is True
    assert outcome.retry is None


async def test_paid_procedure_cannot_be_paid_again(services, procedure, gateway):
    await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")

    with pytest.raises(InvalidStateError):
        await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")
    assert len(gateway.calls) == 1


async def test_cancelled_procedure_not_payable(services, procedure, gateway):
    await services.procedures.cancel(procedure.id)
    with pytest.raises(InvalidStateError) as exc:
        await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")
    assert exc.value.code == "NOT_PAYABLE"
    assert gateway.calls == []


async def test_amount_must_match_amount_due(services, procedure, gateway):
    with pytest.raises(ValidationError) as exc:
        await services.payments.pay("PROCEDURE", procedure.id, "card", "100.00")
    assert exc.value.code == "AMOUNT_MISMATCH"
    assert gateway.calls == []


@pytest.mark.parametrize("method,amount", [
    ("", "245.00"),
    ("card", "0"),
    ("card", "-5"),
    ("card", "not-a-number"),
    ("card", "NaN"),
    ("card", "Infinity"),
    ("card", float("nan")),
])
async def test_invalid_input_never_reaches_gateway(services, procedure, gateway, method, amount):
    with pytest.raises(ValidationError):
        await services.payments.pay("PROCEDURE", procedure.id, method, amount)
    assert gateway.calls == []


async def test_unknown_target_kind(services, procedure):
    with pytest.raises(ValidationError):
        await services.payments.pay("FINE", procedure.id, "card", "245.00")


async def test_unknown_procedure(services, gateway):
    with pytest.raises(NotFoundError):
        await services.payments.pay("PROCEDURE", 999, "card", "245.00")
    assert gateway.calls == []


# --- Debts --------------------------------------------------------------------

async def test_approved_debt_payment(services, debt):
    outcome = await services.payments.pay("DEBT", debt.id, "transfer", "465.00")

    assert outcome.success is True
    assert (await services.debts.get(debt.id)).status == DebtStatus.PAID
    receipt = await services.payments.get_receipt(outcome.receipt_id)
    assert receipt.target_kind == PaymentTargetKind.DEBT


async def test_declined_debt_payment_leaves_debt_pending(services, debt, gateway, retries):
    gateway.approved = False
    outcome = await services.payments.pay("DEBT", debt.id, "transfer", "465.00")

    assert outcome.success is False
    assert outcome.retry.target_kind == PaymentTargetKind.DEBT
    assert (await services.debts.get(debt.id)).status == DebtStatus.PENDING
    assert len(retries.pending) == 1


async def test_debt_in_installment_plan_not_payable_in_full(services, debt, gateway):
    await services.debts.create_installment_plan(debt.id, 3)
    with pytest.raises(InvalidStateError):
        await services.payments.pay("DEBT", debt.id, "transfer", "465.00")
    assert gateway.calls == []


async def test_unknown_receipt(services):
    with pytest.raises(NotFoundError):
        await services.payments.get_receipt("COMP-0-0000")


# --- Receipt storage failures ---------------------------------------------------

async def test_receipt_failure_restores_procedure(services, procedure, gateway):
    services.payments._receipts = FailingSaveRepository(services.payments._receipts)

    with pytest.raises(RuntimeError):
        await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")

    stored = await services.procedures.get(procedure.id)
    assert stored.status == ProcedureStatus.PENDING
    assert stored.amount_due == Decimal("245.00")
    assert len(stored.history) == 1
    assert len(gateway.calls) == 1


async def test_receipt_failure_restores_debt(services, debt):
    services.payments._receipts = FailingSaveRepository(services.payments._receipts)

    with pytest.raises(RuntimeError):
        await services.payments.pay("DEBT", debt.id, "transfer", "465.00")

    assert (await services.debts.get(debt.id)).status == DebtStatus.PENDING
    services.payments._receipts.fail_saves = False
    outcome = await services.payments.pay("DEBT", debt.id, "transfer", "465.00")
    assert outcome.success is True
