"""Debt Ledger — debts owed by citizens, settlement and installment plans.

Invariants:
    - Only PENDING debts can be settled, paid or split; settle() on a PAID debt fails
    - A debt gets at most one installment plan; plan and status change commit together
      (the debt is restored if the plan cannot be stored)
    - sum(plan.installments) == debt.total_amount to the cent
    - Reminders are scheduled once per plan, fire-and-forget, after the commit
"""

import dataclasses
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from tramites.core.domain_types import CitizenId, DebtId, DebtStatus, ZERO
from tramites.core.entities import Debt, InstallmentPlan
from tramites.core.errors import InvalidStateError, NotFoundError, ValidationError, ErrorContext
from tramites.core.installments import check_installment_count, split_installments, to_money
from tramites.core.repository_protocols import ReminderScheduler, Repository
from tramites.core.validate_input import check_required
from tramites.services.citizen_registry import CitizenRegistry
from tramites.services.ledger_helpers import Deadline, commit, fire_and_forget, utcnow

logger = logging.getLogger(__name__)


class DebtLedger:
    """Owns Debt and InstallmentPlan entities."""

    def __init__(
        self,
        debts: Repository[Debt],
        plans: Repository[InstallmentPlan],
        citizens: CitizenRegistry,
        reminders: ReminderScheduler,
        clock: Callable[[], datetime] = utcnow,
        timeout: float | None = None,
    ):
        self._debts = debts
        self._plans = plans
        self._citizens = citizens
        self._reminders = reminders
        self._clock = clock
        self._timeout = timeout

    async def register_debt(
        self,
        citizen_id: CitizenId,
        debt_type: str,
        base_amount: Decimal | str | int,
        late_interest: Decimal | str | int,
        period: str,
        due_date: date,
        *,
        timeout: float | None = None,
    ) -> Debt:
        debt_type = check_required(debt_type, "type")
        period = check_required(period, "period")
        base_amount = _amount(base_amount, "base_amount")
        late_interest = _amount(late_interest, "late_interest")
        if base_amount <= ZERO:
            raise ValidationError("base_amount must be greater than zero", field="base_amount")
        if late_interest < ZERO:
            raise ValidationError("late_interest cannot be negative", field="late_interest")

        deadline = Deadline("register_debt", self._timeout if timeout is None else timeout)
        await deadline.run(self._citizens.get(citizen_id))
        debt = Debt(
            id=DebtId(await deadline.run(self._debts.next_id())),
            citizen_id=citizen_id,
            type=debt_type,
            base_amount=base_amount,
            late_interest=late_interest,
            period=period,
            due_date=due_date,
        )
        await commit(self._debts.save(debt))
        logger.info("Debt registered", extra={"debt_id": debt.id, "citizen_id": citizen_id})
        return debt

    async def get(self, debt_id: DebtId, *, timeout: float | None = None) -> Debt:
        deadline = Deadline("get_debt", self._timeout if timeout is None else timeout)
        return await deadline.run(self._load(debt_id))

    async def list_outstanding(
        self, citizen_id: CitizenId, *, timeout: float | None = None,
    ) -> list[Debt]:
        """PENDING debts of a citizen, by due date."""
        deadline = Deadline("list_debts", self._timeout if timeout is None else timeout)
        debts = await deadline.run(self._debts.query(
            lambda d: d.citizen_id == citizen_id and d.status == DebtStatus.PENDING,
        ))
        return sorted(debts, key=lambda d: (d.due_date, d.id))

    async def settle(self, debt_id: DebtId, *, timeout: float | None = None) -> Debt:
        deadline = Deadline("settle_debt", self._timeout if timeout is None else timeout)
        async with deadline.hold(self._debts.lock(debt_id)):
            debt = await deadline.run(self._load(debt_id))
            self.mark_paid(debt)
            await commit(self._debts.save(debt))
        logger.info("Debt settled", extra={"debt_id": debt_id})
        return debt

    async def create_installment_plan(
        self,
        debt_id: DebtId,
        number_of_installments: int,
        *,
        timeout: float | None = None,
    ) -> InstallmentPlan:
        check_installment_count(number_of_installments)
        deadline = Deadline("create_installment_plan", self._timeout if timeout is None else timeout)

        async with deadline.hold(self._debts.lock(debt_id)):
            debt = await deadline.run(self._load(debt_id))
            self.check_pending(debt, "split into installments")
            if await deadline.run(self._plans.get(debt_id)) is not None:
                raise InvalidStateError(
                    f"Debt {debt_id} already has an installment plan",
                    current_status=debt.status.value,
                    code="PLAN_EXISTS",
                )
            installments = split_installments(debt.total_amount, number_of_installments)
            plan = InstallmentPlan(
                debt_id=debt.id,
                number_of_installments=number_of_installments,
                installment_amount=installments[0],
                installments=installments,
                total_amount=debt.total_amount,
                created_at=self._clock(),
            )
            previous = dataclasses.replace(debt)
            debt.status = DebtStatus.INSTALLMENT_PLAN
            await commit(self._store_plan(plan, debt, previous))

        logger.info(
            f"Installment plan created ({number_of_installments} x {plan.installment_amount})",
            extra={"debt_id": debt_id},
        )
        await fire_and_forget(
            self._reminders.schedule(debt.id, number_of_installments),
            "Reminder scheduling",
            timeout=self._timeout,
            debt_id=debt.id,
        )
        return plan

    async def get_plan(
        self, debt_id: DebtId, *, timeout: float | None = None,
    ) -> InstallmentPlan:
        deadline = Deadline("get_installment_plan", self._timeout if timeout is None else timeout)
        plan = await deadline.run(self._plans.get(debt_id))
        if plan is None:
            raise NotFoundError("InstallmentPlan", debt_id)
        return plan

    # --- Payment hooks (caller holds lock(debt_id)) -------------------------

    def lock(self, debt_id: DebtId) -> AbstractAsyncContextManager[None]:
        return self._debts.lock(debt_id)

    def check_pending(self, debt: Debt, action: str) -> None:
        if debt.status != DebtStatus.PENDING:
            raise InvalidStateError(
                f"Debt {debt.id} is {debt.status.value} and cannot be {action}",
                current_status=debt.status.value,
                code="DEBT_NOT_PENDING",
                context=ErrorContext(entity_type="Debt", entity_id=str(debt.id)),
            )

    def mark_paid(self, debt: Debt) -> Debt:
        self.check_pending(debt, "settled")
        debt.status = DebtStatus.PAID
        return debt

    async def store(self, debt: Debt) -> None:
        await self._debts.save(debt)

    async def load(self, debt_id: DebtId) -> Debt:
        return await self._load(debt_id)

    # --- Internals ----------------------------------------------------------

    async def _load(self, debt_id: DebtId) -> Debt:
        debt = await self._debts.get(debt_id)
        if debt is None:
            raise NotFoundError("Debt", debt_id)
        return debt

    async def _store_plan(self, plan: InstallmentPlan, debt: Debt, previous: Debt) -> None:
        await self._debts.save(debt)
        try:
            await self._plans.save(plan)
        except Exception:
            logger.error(
                "Installment plan could not be stored; restoring debt status",
                extra={"debt_id": debt.id},
            )
            await self._debts.save(previous)
            raise


def _amount(value, field: str) -> Decimal:
    try:
        return to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} is not a valid amount", field=field) from None
