"""DebtLedger tests — registration, settlement and installment plans.

Tests cover:
    - register_debt(): amounts validated, total derived, unknown citizen rejected
    - list_outstanding(): only PENDING debts, ordered by due date
    - settle(): PENDING -> PAID once; a second settle fails
    - create_installment_plan(): bounds, remainder on the last installment,
      sum equals total, status INSTALLMENT_PLAN, one plan per debt, reminders
    - Plan storage failure restores the debt status
"""

from datetime import date
from decimal import Decimal

import pytest

from tramites.core.domain_types import DebtStatus
from tramites.core.errors import InvalidStateError, NotFoundError, ValidationError
from tests.doubles import FailingReminders, FailingSaveRepository


# --- register -----------------------------------------------------------------

async def test_register_debt_derives_total(services, debt):
    assert debt.status == DebtStatus.PENDING
    assert debt.total_amount == Decimal("465.00")
    stored = await services.debts.get(debt.id)
    assert stored == debt


@pytest.mark.parametrize("base,interest,field", [
    ("0", "0", "base_amount"),
    ("-10", "0", "base_amount"),
    ("100", "-1", "late_interest"),
    ("abc", "0", "base_amount"),
    ("NaN", "0", "base_amount"),
    ("100", "NaN", "late_interest"),
    ("Infinity", "0", "base_amount"),
])
async def test_invalid_amounts_rejected(services, citizen, base, interest, field):
    with pytest.raises(ValidationError) as exc:
        await services.debts.register_debt(
            citizen.id, "ARBITRIOS", base, interest, "2024", date(2024, 12, 31),
        )
    assert exc.value.field == field


async def test_register_for_unknown_citizen(services):
    with pytest.raises(NotFoundError):
        await services.debts.register_debt(
            77, "PREDIAL", "100", "0", "2024", date(2024, 12, 31),
        )


async def test_list_outstanding_orders_by_due_date(services, citizen):
    later = await services.debts.register_debt(
        citizen.id, "PREDIAL", "380.00", "0", "2024", date(2024, 12, 31),
    )
    sooner = await services.debts.register_debt(
        citizen.id, "ARBITRIOS", "120.00", "5.50", "Ene 2024", date(2024, 2, 28),
    )
    settled = await services.debts.register_debt(
        citizen.id, "MULTA", "50.00", "0", "2023", date(2023, 6, 30),
    )
    await services.debts.settle(settled.id)

    outstanding = await services.debts.list_outstanding(citizen.id)
    assert [d.id for d in outstanding] == [sooner.id, later.id]


# --- settle -------------------------------------------------------------------

async def test_settle_marks_paid_once(services, debt):
    paid = await services.debts.settle(debt.id)
    assert paid.status == DebtStatus.PAID

    with pytest.raises(InvalidStateError) as exc:
        await services.debts.settle(debt.id)
    assert exc.value.code == "DEBT_NOT_PENDING"


async def test_settle_unknown_debt(services):
    with pytest.raises(NotFoundError):
        await services.debts.settle(404)


# --- installment plans ----------------------------------------------------------

async def test_plan_of_four_for_465(services, debt, reminders):
    plan = await services.debts.create_installment_plan(debt.id, 4)

    assert plan.installment_amount == Decimal("116.25")
    assert plan.installments == [Decimal("116.25")] * 4
    assert plan.total_amount == Decimal("465.00")
    assert (await services.debts.get(debt.id)).status == DebtStatus.INSTALLMENT_PLAN
    assert reminders.scheduled == [(debt.id, 4)]


async def test_plan_remainder_on_last_installment(services, citizen):
    debt = await services.debts.register_debt(
        citizen.id, "ARBITRIOS", "100.00", "0", "2024", date(2024, 3, 31),
    )
    plan = await services.debts.create_installment_plan(debt.id, 3)
    assert plan.installments == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(plan.installments) == debt.total_amount


@pytest.mark.parametrize("count", [2, 13])
async def test_plan_bounds(services, debt, count):
    with pytest.raises(ValidationError):
        await services.debts.create_installment_plan(debt.id, count)
    assert (await services.debts.get(debt.id)).status == DebtStatus.PENDING


async def test_plan_requires_pending_debt(services, debt):
    await services.debts.settle(debt.id)
    with pytest.raises(InvalidStateError):
        await services.debts.create_installment_plan(debt.id, 6)


async def test_second_plan_rejected(services, debt):
    await services.debts.create_installment_plan(debt.id, 6)
    with pytest.raises(InvalidStateError):
        await services.debts.create_installment_plan(debt.id, 3)
    plan = await services.debts.get_plan(debt.id)
    assert plan.number_of_installments == 6


async def test_get_plan_missing(services, debt):
    with pytest.raises(NotFoundError):
        await services.debts.get_plan(debt.id)


async def test_reminder_failure_does_not_fail_plan(services, debt):
    services.debts._reminders = FailingReminders()
    plan = await services.debts.create_installment_plan(debt.id, 12)
    assert plan.number_of_installments == 12


async def test_plan_store_failure_restores_debt(services, debt):
    services.debts._plans = FailingSaveRepository(services.debts._plans)

    with pytest.raises(RuntimeError):
        await services.debts.create_installment_plan(debt.id, 4)

    assert (await services.debts.get(debt.id)).status == DebtStatus.PENDING
    services.debts._plans.fail_saves = False
    plan = await services.debts.create_installment_plan(debt.id, 4)
    assert plan.installments == [Decimal("116.25")] * 4


@pytest.mark.parametrize("count", [3.5, Decimal("4"), True])
async def test_plan_count_must_be_integer(services, debt, count):
    with pytest.raises(ValidationError) as exc:
        await services.debts.create_installment_plan(debt.id, count)
    assert exc.value.code == "INVALID_INSTALLMENT_COUNT"
    assert (await services.debts.get(debt.id)).status == DebtStatus.PENDING
