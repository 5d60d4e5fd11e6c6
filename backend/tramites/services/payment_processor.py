"""Payment Processor — one gateway attempt against a procedure or a debt.

Invariants:
    - Input validated before any IO: method non-blank, amount > 0 (ValidationError)
    - Target resolved through its owning ledger (NotFoundError) and must be payable
      (InvalidStateError); amount must equal the amount due (ValidationError)
    - Exactly one PaymentGateway.charge() per call, made while holding the target's lock
    - Approved: receipt issued, target settled and receipt stored in one shielded commit;
      if the receipt cannot be stored the target is restored to its unpaid state
    - Declined: target untouched, PaymentOutcome(success=False) returned and a
      RetryDirective handed to the RetryScheduler — never retried inline

Design Decisions:
    - Decline is a value, not an exception: it is an expected, frequent outcome
      and the caller owns the retry policy
    - Procedure payments zero the procedure's own amount due; debt payments settle
      the debt. The two paths do not cross-credit each other.
"""

import copy
import logging
import random
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation

from tramites.core.domain_types import DebtId, PaymentTargetKind, ProcedureId, ZERO
from tramites.core.entities import PaymentOutcome, Receipt, RetryDirective
from tramites.core.errors import NotFoundError, ValidationError
from tramites.core.identifiers import ReceiptIdGenerator
from tramites.core.installments import to_money
from tramites.core.repository_protocols import PaymentGateway, Repository, RetryScheduler
from tramites.core.retry_policy import build_retry_directive
from tramites.core.validate_input import check_required
from tramites.services.debt_ledger import DebtLedger
from tramites.services.ledger_helpers import Deadline, commit, fire_and_forget, utcnow
from tramites.services.procedure_ledger import ProcedureLedger

logger = logging.getLogger(__name__)


class PaymentProcessor:
    """Executes payment attempts and reports their outcome."""

    def __init__(
        self,
        procedures: ProcedureLedger,
        debts: DebtLedger,
        gateway: PaymentGateway,
        receipts: Repository[Receipt],
        retries: RetryScheduler,
        receipt_ids: ReceiptIdGenerator | None = None,
        clock: Callable[[], datetime] = utcnow,
        rng: random.Random | None = None,
        retry_base_delay_ms: int = 30_000,
        retry_max_delay_ms: int = 3_600_000,
        timeout: float | None = None,
    ):
        self._procedures = procedures
        self._debts = debts
        self._gateway = gateway
        self._receipts = receipts
        self._retries = retries
        self._receipt_ids = receipt_ids or ReceiptIdGenerator()
        self._clock = clock
        self._rng = rng or random.Random()  # nosec B311
        self._retry_base_delay_ms = retry_base_delay_ms
        self._retry_max_delay_ms = retry_max_delay_ms
        self._timeout = timeout

    async def pay(
        self,
        target_kind: PaymentTargetKind | str,
        target_id: int,
        method: str,
        amount: Decimal | str | int,
        *,
        attempt: int = 1,
        timeout: float | None = None,
    ) -> PaymentOutcome:
        method = check_required(method, "method")
        amount = _positive_amount(amount)
        target_kind = _parse_kind(target_kind)
        deadline = Deadline("pay", self._timeout if timeout is None else timeout)

        if target_kind == PaymentTargetKind.PROCEDURE:
            outcome = await self._pay_procedure(
                ProcedureId(target_id), method, amount, attempt, deadline,
            )
        else:
            outcome = await self._pay_debt(DebtId(target_id), method, amount, attempt, deadline)

        if outcome.retry is not None:
            await fire_and_forget(
                self._retries.schedule(outcome.retry),
                "Retry scheduling",
                timeout=self._timeout,
                target_kind=target_kind.value,
                attempt=attempt,
            )
        return outcome

    async def get_receipt(self, receipt_id: str, *, timeout: float | None = None) -> Receipt:
        deadline = Deadline("get_receipt", self._timeout if timeout is None else timeout)
        receipt = await deadline.run(self._receipts.get(receipt_id))
        if receipt is None:
            raise NotFoundError("Receipt", receipt_id)
        return receipt

    # --- Targets ------------------------------------------------------------

    async def _pay_procedure(
        self,
        procedure_id: ProcedureId,
        method: str,
        amount: Decimal,
        attempt: int,
        deadline: Deadline,
    ) -> PaymentOutcome:
        kind = PaymentTargetKind.PROCEDURE
        async with deadline.hold(self._procedures.lock(procedure_id)):
            procedure = await deadline.run(self._procedures.load(procedure_id))
            self._procedures.check_payable(procedure)
            _check_matches(amount, procedure.amount_due)

            approved, reason = await self._charge(method, amount, deadline)
            now = self._clock()
            if not approved:
                return self._declined(kind, procedure_id, method, amount, attempt, reason, now)

            receipt = self._issue_receipt(kind, procedure_id, method, amount, now)
            previous = copy.deepcopy(procedure)
            self._procedures.record_payment(procedure, now)
            await commit(self._store_payment(
                self._procedures.store, procedure, previous, receipt,
            ))

        logger.info(
            "Procedure payment approved",
            extra={"procedure_id": procedure_id, "receipt_id": receipt.id},
        )
        await self._procedures.notify_paid(procedure, receipt.id)
        return _approved(kind, procedure_id, amount, receipt)

    async def _pay_debt(
        self,
        debt_id: DebtId,
        method: str,
        amount: Decimal,
        attempt: int,
        deadline: Deadline,
    ) -> PaymentOutcome:
        kind = PaymentTargetKind.DEBT
        async with deadline.hold(self._debts.lock(debt_id)):
            debt = await deadline.run(self._debts.load(debt_id))
            self._debts.check_pending(debt, "paid")
            _check_matches(amount, debt.total_amount)

            approved, reason = await self._charge(method, amount, deadline)
            now = self._clock()
            if not approved:
                return self._declined(kind, debt_id, method, amount, attempt, reason, now)

            receipt = self._issue_receipt(kind, debt_id, method, amount, now)
            previous = copy.deepcopy(debt)
            self._debts.mark_paid(debt)
            await commit(self._store_payment(self._debts.store, debt, previous, receipt))

        logger.info(
            "Debt payment approved",
            extra={"debt_id": debt_id, "receipt_id": receipt.id},
        )
        return _approved(kind, debt_id, amount, receipt)

    # --- Internals ----------------------------------------------------------

    async def _charge(
        self, method: str, amount: Decimal, deadline: Deadline,
    ) -> tuple[bool, str | None]:
        result = await deadline.run(self._gateway.charge(method, amount))
        return result.approved, result.reason

    async def _store_payment(
        self,
        store: Callable[[object], Awaitable[None]],
        target,
        previous,
        receipt: Receipt,
    ) -> None:
        """Persist the settled target, then its receipt; undo the target if the receipt fails."""
        await store(target)
        try:
            await self._receipts.save(receipt)
        except Exception:
            logger.error(
                "Receipt could not be stored; restoring payment target",
                extra={"receipt_id": receipt.id, "target_kind": receipt.target_kind.value},
            )
            await store(previous)
            raise

    def _issue_receipt(
        self, kind: PaymentTargetKind, target_id: int, method: str, amount: Decimal, now: datetime,
    ) -> Receipt:
        return Receipt(
            id=self._receipt_ids(now),
            target_kind=kind,
            target_id=target_id,
            method=method,
            amount=amount,
            issued_at=now,
        )

    def _declined(
        self,
        kind: PaymentTargetKind,
        target_id: int,
        method: str,
        amount: Decimal,
        attempt: int,
        reason: str | None,
        now: datetime,
    ) -> PaymentOutcome:
        reason = reason or "Payment declined"
        directive: RetryDirective = build_retry_directive(
            target_kind=kind,
            target_id=target_id,
            method=method,
            amount=amount,
            attempt=attempt,
            reason=reason,
            now=now,
            base_delay_ms=self._retry_base_delay_ms,
            max_delay_ms=self._retry_max_delay_ms,
            rng=self._rng,
        )
        logger.warning(
            f"Payment declined: {reason}",
            extra={"target_kind": kind.value, "attempt": attempt, "error_code": "DECLINED"},
        )
        return PaymentOutcome(
            success=False,
            target_kind=kind,
            target_id=target_id,
            amount=amount,
            timestamp=now,
            reason=reason,
            retry=directive,
        )


def _approved(
    kind: PaymentTargetKind, target_id: int, amount: Decimal, receipt: Receipt,
) -> PaymentOutcome:
    return PaymentOutcome(
        success=True,
        target_kind=kind,
        target_id=target_id,
        amount=amount,
        timestamp=receipt.issued_at,
        receipt_id=receipt.id,
    )


def _positive_amount(value) -> Decimal:
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("amount is not a valid number", field="amount") from None
    if amount <= ZERO:
        raise ValidationError("amount must be greater than zero", field="amount")
    return amount


def _check_matches(amount: Decimal, due: Decimal) -> None:
    if amount != due:
        raise ValidationError(
            f"amount {amount} does not match the amount due {due}",
            field="amount",
            code="AMOUNT_MISMATCH",
        )


def _parse_kind(value: PaymentTargetKind | str) -> PaymentTargetKind:
    try:
        return PaymentTargetKind(value)
    except ValueError:
        raise ValidationError(
            f"Unknown payment target '{value}'", field="target_kind",
        ) from None
