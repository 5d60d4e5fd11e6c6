"""Simulated Collaborators — notification, reminder, retry-queue and refund adapters.

Invariants:
    - Each adapter logs what a real integration would send and keeps it in memory
      for inspection (sent, scheduled, pending, refunds, voided)
    - None of them raise in normal operation; the services treat notification,
      reminder and retry failures as non-fatal anyway

Design Decisions:
    - In-process stand-ins for email/SMS, the reminder system and the payment
      retry queue; production deployments replace them through build_services()
"""

import logging
from datetime import datetime
from decimal import Decimal

from tramites.core.domain_types import CitizenId, DebtId
from tramites.core.entities import Procedure, RetryDirective

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """NotificationPort that logs the message."""

    def __init__(self):
        self.sent: list[tuple[CitizenId, str]] = []

    async def notify(self, message: str, citizen_id: CitizenId) -> None:
        logger.info(f"Notification: {message}", extra={"citizen_id": citizen_id})
        self.sent.append((citizen_id, message))


class LoggingReminderScheduler:
    """ReminderScheduler that logs one reminder batch per plan."""

    def __init__(self):
        self.scheduled: list[tuple[DebtId, int]] = []

    async def schedule(self, debt_id: DebtId, installment_count: int) -> None:
        logger.info(
            f"Scheduling reminders for {installment_count} installments",
            extra={"debt_id": debt_id},
        )
        self.scheduled.append((debt_id, installment_count))


class InMemoryRetryQueue:
    """RetryScheduler that holds directives until an external worker drains them."""

    def __init__(self):
        self.pending: list[RetryDirective] = []

    async def schedule(self, directive: RetryDirective) -> None:
        logger.info(
            f"Payment retry scheduled for {directive.not_before.isoformat()}",
            extra={
                "target_kind": directive.target_kind.value,
                "attempt": directive.attempt,
            },
        )
        self.pending.append(directive)

    def due(self, now: datetime) -> list[RetryDirective]:
        """Remove and return the directives whose not_before has passed."""
        ready = [d for d in self.pending if d.not_before <= now]
        self.pending = [d for d in self.pending if d.not_before > now]
        return ready


class SimulatedRefund:
    """RefundPort that records the reversal."""

    def __init__(self):
        self.refunds: list[tuple[str, Decimal]] = []
        self.voided: list[tuple[str, Decimal]] = []

    async def refund(self, procedure: Procedure, amount: Decimal) -> None:
        logger.info(
            f"Simulating refund of {amount}",
            extra={"procedure_id": procedure.id, "file_number": procedure.file_number},
        )
        self.refunds.append((procedure.file_number, amount))

    async def void(self, procedure: Procedure, amount: Decimal) -> None:
        logger.warning(
            f"Voiding refund of {amount}",
            extra={"procedure_id": procedure.id, "file_number": procedure.file_number},
        )
        self.voided.append((procedure.file_number, amount))
