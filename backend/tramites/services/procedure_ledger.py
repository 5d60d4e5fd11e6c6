"""Procedure Ledger — opening, status transitions, cancellation and lookups of procedures.

Invariants:
    - Every mutation runs under the procedure's repository lock and ends in one save
    - Status and history change together (core/enforce_transitions.apply_transition)
    - File numbers are unique: generation and save run under a lock keyed by the number
    - cancel() with amount_due > 0 refunds first; a failed refund leaves the procedure
      PENDING with amount_due untouched, and a failed save voids the refund
    - Notifications are fire-and-forget and sent after the commit

Design Decisions:
    - record_payment() is the entry point for PaymentProcessor, which already holds
      the lock and owns the commit (the gateway call sits between load and save)
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from decimal import Decimal

from tramites.core.domain_types import (
    CitizenId, ProcedureId, ProcedureStatus, ZERO, fee_for,
)
from tramites.core.entities import Procedure
from tramites.core.enforce_transitions import (
    apply_transition, check_transition, opening_entry,
)
from tramites.core.errors import InvalidStateError, NotFoundError, ValidationError, ErrorContext
from tramites.core.identifiers import FileNumberGenerator
from tramites.core.repository_protocols import NotificationPort, RefundPort, Repository
from tramites.core.validate_input import check_required
from tramites.services.citizen_registry import CitizenRegistry
from tramites.services.ledger_helpers import Deadline, commit, fire_and_forget, utcnow

logger = logging.getLogger(__name__)

CANCELLATION_REASON = "user cancellation"
PAYMENT_REASON = "payment confirmed"
MAX_FILE_NUMBER_ATTEMPTS = 10


class ProcedureLedger:
    """Owns Procedure entities and their history."""

    def __init__(
        self,
        procedures: Repository[Procedure],
        citizens: CitizenRegistry,
        notifier: NotificationPort,
        refunds: RefundPort | None = None,
        file_numbers: FileNumberGenerator | None = None,
        clock: Callable[[], datetime] = utcnow,
        timeout: float | None = None,
    ):
        self._procedures = procedures
        self._citizens = citizens
        self._notifier = notifier
        self._refunds = refunds
        self._file_numbers = file_numbers or FileNumberGenerator()
        self._clock = clock
        self._timeout = timeout

    # --- Commands -----------------------------------------------------------

    async def open(
        self,
        citizen_id: CitizenId,
        procedure_type: str,
        description: str,
        *,
        timeout: float | None = None,
    ) -> Procedure:
        """Open a PENDING procedure with its fee and a fresh file number."""
        procedure_type = check_required(procedure_type, "type")
        description = check_required(description, "description")
        deadline = Deadline("open_procedure", self._timeout if timeout is None else timeout)

        await deadline.run(self._citizens.get(citizen_id))
        now = self._clock()

        for _ in range(MAX_FILE_NUMBER_ATTEMPTS):
            file_number = self._file_numbers(now)
            async with deadline.hold(self._procedures.lock(("file_number", file_number))):
                taken = await deadline.run(
                    self._procedures.query(lambda p: p.file_number == file_number),
                )
                if taken:
                    logger.info(f"File number {file_number} taken, regenerating")
                    continue
                procedure_id = ProcedureId(await deadline.run(self._procedures.next_id()))
                procedure = Procedure(
                    id=procedure_id,
                    file_number=file_number,
                    citizen_id=citizen_id,
                    type=procedure_type,
                    description=description,
                    status=ProcedureStatus.PENDING,
                    started_at=now,
                    amount_due=fee_for(procedure_type),
                    history=[opening_entry(now)],
                )
                await commit(self._procedures.save(procedure))
                break
        else:
            raise InvalidStateError(
                "Could not allocate a unique file number", code="FILE_NUMBER_EXHAUSTED",
            )

        logger.info(
            "Procedure opened",
            extra={
                "procedure_id": procedure.id,
                "file_number": procedure.file_number,
                "citizen_id": citizen_id,
            },
        )
        await self._notify(
            f"Procedure {procedure.file_number} registered successfully", procedure,
        )
        return procedure

    async def transition(
        self,
        procedure_id: ProcedureId,
        new_status: ProcedureStatus | str,
        reason: str,
        *,
        timeout: float | None = None,
    ) -> Procedure:
        """Move a procedure along a legal edge and record it in the history."""
        new_status = _parse_status(new_status)
        reason = check_required(reason, "reason")
        deadline = Deadline("transition_procedure", self._timeout if timeout is None else timeout)

        async with deadline.hold(self._procedures.lock(procedure_id)):
            procedure = await deadline.run(self._load(procedure_id))
            apply_transition(procedure, new_status, reason, self._clock())
            await commit(self._procedures.save(procedure))

        logger.info(
            f"Procedure moved to {new_status.value}",
            extra={"procedure_id": procedure.id, "file_number": procedure.file_number},
        )
        await self._notify(
            f"Procedure {procedure.file_number} is now {new_status.value}", procedure,
        )
        return procedure

    async def cancel(
        self, procedure_id: ProcedureId, *, timeout: float | None = None,
    ) -> Procedure:
        """Cancel a PENDING procedure, refunding its amount due first."""
        deadline = Deadline("cancel_procedure", self._timeout if timeout is None else timeout)

        async with deadline.hold(self._procedures.lock(procedure_id)):
            procedure = await deadline.run(self._load(procedure_id))
            check_transition(procedure, ProcedureStatus.CANCELLED)
            refunded = procedure.amount_due
            if refunded > ZERO:
                await deadline.run(self._refund(procedure, refunded))
                procedure.amount_due = ZERO
            apply_transition(
                procedure, ProcedureStatus.CANCELLED, CANCELLATION_REASON, self._clock(),
            )
            await commit(self._store_cancellation(procedure, refunded))

        logger.info(
            "Procedure cancelled",
            extra={"procedure_id": procedure.id, "file_number": procedure.file_number},
        )
        await self._notify(f"Procedure {procedure.file_number} cancelled", procedure)
        return procedure

    # --- Payment hooks (caller holds lock(procedure_id)) --------------------

    def lock(self, procedure_id: ProcedureId) -> AbstractAsyncContextManager[None]:
        return self._procedures.lock(procedure_id)

    def check_payable(self, procedure: Procedure) -> None:
        if procedure.status != ProcedureStatus.PENDING:
            raise InvalidStateError(
                f"Procedure {procedure.file_number} is {procedure.status.value} "
                "and does not accept payments",
                current_status=procedure.status.value,
                code="NOT_PAYABLE",
            )
        if procedure.amount_due <= ZERO:
            raise InvalidStateError(
                f"Procedure {procedure.file_number} has nothing due",
                current_status=procedure.status.value,
                code="NOTHING_DUE",
            )

    def record_payment(self, procedure: Procedure, now: datetime) -> Procedure:
        """Zero the amount due and move the procedure into review (not saved)."""
        self.check_payable(procedure)
        procedure.amount_due = ZERO
        return apply_transition(procedure, ProcedureStatus.IN_REVIEW, PAYMENT_REASON, now)

    async def load(self, procedure_id: ProcedureId) -> Procedure:
        return await self._load(procedure_id)

    async def store(self, procedure: Procedure) -> None:
        await self._procedures.save(procedure)

    async def notify_paid(self, procedure: Procedure, receipt_id: str) -> None:
        await self._notify(
            f"Payment for procedure {procedure.file_number} confirmed "
            f"(receipt {receipt_id})",
            procedure,
        )

    # --- Queries ------------------------------------------------------------

    async def get(
        self, procedure_id: ProcedureId, *, timeout: float | None = None,
    ) -> Procedure:
        deadline = Deadline("get_procedure", self._timeout if timeout is None else timeout)
        return await deadline.run(self._load(procedure_id))

    async def find_by_file_number(
        self, file_number: str, *, timeout: float | None = None,
    ) -> Procedure:
        deadline = Deadline("find_procedure", self._timeout if timeout is None else timeout)
        matches = await deadline.run(
            self._procedures.query(lambda p: p.file_number == file_number),
        )
        if not matches:
            raise NotFoundError("Procedure", file_number)
        return matches[0]

    async def list_by_citizen(
        self, citizen_id: CitizenId, *, timeout: float | None = None,
    ) -> list[Procedure]:
        """Procedures of a citizen ordered by (started_at, id)."""
        deadline = Deadline("list_procedures", self._timeout if timeout is None else timeout)
        procedures = await deadline.run(
            self._procedures.query(lambda p: p.citizen_id == citizen_id),
        )
        return sorted(procedures, key=lambda p: (p.started_at, p.id))

    async def list_pending_payment(
        self, citizen_id: CitizenId, *, timeout: float | None = None,
    ) -> list[Procedure]:
        """Procedures of a citizen that still accept a payment."""
        procedures = await self.list_by_citizen(citizen_id, timeout=timeout)
        return [p for p in procedures if p.is_payable]

    # --- Internals ----------------------------------------------------------

    async def _load(self, procedure_id: ProcedureId) -> Procedure:
        procedure = await self._procedures.get(procedure_id)
        if procedure is None:
            raise NotFoundError("Procedure", procedure_id)
        return procedure

    async def _refund(self, procedure: Procedure, amount: Decimal) -> None:
        context = ErrorContext(entity_type="Procedure", entity_id=str(procedure.id))
        if self._refunds is None:
            raise InvalidStateError(
                f"Procedure {procedure.file_number} has {amount} due and no refund "
                "channel is configured",
                current_status=procedure.status.value,
                code="REFUND_UNAVAILABLE",
                context=context,
            )
        try:
            await self._refunds.refund(procedure, amount)
        except Exception as e:
            logger.error(
                f"Refund failed: {e}",
                extra={"procedure_id": procedure.id, "error_code": "REFUND_FAILED"},
            )
            raise InvalidStateError(
                f"Refund for procedure {procedure.file_number} failed; "
                "the procedure was not cancelled",
                current_status=procedure.status.value,
                code="REFUND_FAILED",
                context=context,
            ) from e

    async def _store_cancellation(self, procedure: Procedure, refunded: Decimal) -> None:
        try:
            await self._procedures.save(procedure)
        except Exception:
            if refunded > ZERO:
                logger.error(
                    "Cancellation could not be stored; voiding refund",
                    extra={"procedure_id": procedure.id, "file_number": procedure.file_number},
                )
                try:
                    await self._refunds.void(procedure, refunded)
                except Exception:
                    logger.error(
                        "Refund void failed; needs manual reconciliation",
                        exc_info=True,
                        extra={"procedure_id": procedure.id, "error_code": "VOID_FAILED"},
                    )
            raise

    async def _notify(self, message: str, procedure: Procedure) -> None:
        await fire_and_forget(
            self._notifier.notify(message, procedure.citizen_id),
            "Notification",
            timeout=self._timeout,
            procedure_id=procedure.id,
        )


def _parse_status(value: ProcedureStatus | str) -> ProcedureStatus:
    try:
        return ProcedureStatus(value)
    except ValueError:
        raise ValidationError(
            f"Unknown procedure status '{value}'", field="new_status",
        ) from None
