"""Simulated collaborator tests — recorded side effects, retry queue draining
and the simulated payment gateway."""

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tramites.core.domain_types import PaymentTargetKind, ProcedureStatus
from tramites.core.entities import Procedure, RetryDirective
from tramites.infrastructure.collaborators import (
    InMemoryRetryQueue, LoggingNotifier, LoggingReminderScheduler, SimulatedRefund,
)
from tramites.infrastructure.payment_gateway import DECLINE_REASON, SimulatedPaymentGateway

NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


def _directive(delay_s: int) -> RetryDirective:
    return RetryDirective(
        target_kind=PaymentTargetKind.DEBT,
        target_id=1,
        method="card",
        amount=Decimal("465.00"),
        attempt=2,
        reason=DECLINE_REASON,
        not_before=NOW + timedelta(seconds=delay_s),
    )


async def test_notifier_records_messages():
    notifier = LoggingNotifier()
    await notifier.notify("Procedure EXP-2024-123456 registered successfully", 1)
    assert notifier.sent == [(1, "Procedure EXP-2024-123456 registered successfully")]


async def test_reminders_record_plan():
    reminders = LoggingReminderScheduler()
    await reminders.schedule(3, 6)
    assert reminders.scheduled == [(3, 6)]


async def test_refund_and_void_recorded():
    procedure = Procedure(
        id=1, file_number="EXP-2024-123456", citizen_id=1, type="LICENCIA_COMERCIAL",
        description="Local", status=ProcedureStatus.PENDING, started_at=NOW,
        amount_due=Decimal("245.00"),
    )
    refunds = SimulatedRefund()
    await refunds.refund(procedure, Decimal("245.00"))
    await refunds.void(procedure, Decimal("245.00"))

    assert refunds.refunds == [("EXP-2024-123456", Decimal("245.00"))]
    assert refunds.voided == refunds.refunds


async def test_retry_queue_releases_due_directives():
    queue = InMemoryRetryQueue()
    soon, later = _directive(10), _directive(600)
    await queue.schedule(soon)
    await queue.schedule(later)

    assert queue.due(NOW) == []
    assert queue.due(NOW + timedelta(seconds=60)) == [soon]
    assert queue.pending == [later]


# --- Simulated gateway --------------------------------------------------------

@pytest.mark.parametrize("probability,approved", [(1.0, True), (0.0, False)])
async def test_gateway_extremes(probability, approved):
    gateway = SimulatedPaymentGateway(probability, rng=random.Random(1))
    result = await gateway.charge("card", Decimal("245.00"))
    assert result.approved is approved
    assert result.reason == (None if approved else DECLINE_REASON)


async def test_gateway_seeded_sequence_is_reproducible():
    a = SimulatedPaymentGateway(0.5, rng=random.Random(3))
    b = SimulatedPaymentGateway(0.5, rng=random.Random(3))
    first = [(await a.charge("card", Decimal("1.00"))).approved for _ in range(20)]
    second = [(await b.charge("card", Decimal("1.00"))).approved for _ in range(20)]
    assert first == second


def test_gateway_rejects_bad_probability():
    with pytest.raises(ValueError):
        SimulatedPaymentGateway(1.5)
