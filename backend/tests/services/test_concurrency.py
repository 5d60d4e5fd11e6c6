"""Concurrency tests — per-id serialization, independence across ids and timeouts.

Tests cover:
    - Two payments for the same procedure: exactly one gateway charge succeeds,
      the other observes the paid state
    - Operations on different procedures proceed while one is blocked in the gateway
    - A caller whose deadline expires while waiting for a lock leaves no state behind
    - A zero timeout is an immediate budget, not the configured default
    - A gateway that outlives the deadline raises OperationTimeoutError and
      leaves the target untouched
"""

import asyncio
from decimal import Decimal

import pytest

from tramites.core.domain_types import ProcedureStatus
from tramites.core.errors import InvalidStateError, OperationTimeoutError
from tests.doubles import BlockingGateway


@pytest.fixture
def gateway():
    return BlockingGateway()


async def test_same_procedure_payments_serialize(services, procedure, gateway):
    first = asyncio.create_task(
        services.payments.pay("PROCEDURE", procedure.id, "card", "245.00"),
    )
    await gateway.entered.wait()
    second = asyncio.create_task(
        services.payments.pay("PROCEDURE", procedure.id, "card", "245.00"),
    )
    await asyncio.sleep(0)
    gateway.release.set()

    results = await asyncio.gather(first, second, return_exceptions=True)

    assert results[0].success is True
    assert isinstance(results[1], InvalidStateError)
    assert len(gateway.calls) == 1
    stored = await services.procedures.get(procedure.id)
    assert stored.status == ProcedureStatus.IN_REVIEW
    assert len(stored.history) == 2


async def test_other_procedures_not_blocked(services, citizen, procedure, gateway):
    other = await services.procedures.open(citizen.id, "PERMISO_CONSTRUCCION", "Ampliación")
    paying = asyncio.create_task(
        services.payments.pay("PROCEDURE", procedure.id, "card", "245.00"),
    )
    await gateway.entered.wait()

    moved = await asyncio.wait_for(
        services.procedures.transition(other.id, "IN_REVIEW", "documents received"),
        timeout=1.0,
    )
    assert moved.status == ProcedureStatus.IN_REVIEW

    gateway.release.set()
    assert (await paying).success is True


async def test_lock_wait_timeout_leaves_no_state(services, procedure, gateway):
    paying = asyncio.create_task(
        services.payments.pay("PROCEDURE", procedure.id, "card", "245.00"),
    )
    await gateway.entered.wait()

    with pytest.raises(OperationTimeoutError):
        await services.procedures.cancel(procedure.id, timeout=0.05)

    gateway.release.set()
    await paying
    stored = await services.procedures.get(procedure.id)
    assert stored.status == ProcedureStatus.IN_REVIEW
    assert [e.new_status for e in stored.history] == [
        ProcedureStatus.PENDING, ProcedureStatus.IN_REVIEW,
    ]


async def test_zero_timeout_does_not_wait_for_lock(services, procedure, gateway):
    paying = asyncio.create_task(
        services.payments.pay("PROCEDURE", procedure.id, "card", "245.00"),
    )
    await gateway.entered.wait()

    with pytest.raises(OperationTimeoutError):
        await asyncio.wait_for(services.procedures.cancel(procedure.id, timeout=0), timeout=1.0)

    gateway.release.set()
    assert (await paying).success is True


async def test_gateway_timeout_leaves_target_untouched(services, procedure, gateway, retries):
    with pytest.raises(OperationTimeoutError) as exc:
        await services.payments.pay(
            "PROCEDURE", procedure.id, "card", "245.00", timeout=0.05,
        )

    assert exc.value.http_status == 504
    assert retries.pending == []
    stored = await services.procedures.get(procedure.id)
    assert stored.status == ProcedureStatus.PENDING
    assert stored.amount_due == Decimal("245.00")

    # Lock released after the timeout: a later payment goes through.
    gateway.release.set()
    outcome = await services.payments.pay("PROCEDURE", procedure.id, "card", "245.00")
    assert outcome.success is True
