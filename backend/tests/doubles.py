"""Test doubles — deterministic gateway, clock and collaborator fakes.

Invariants:
    - No double uses randomness or wall-clock time
    - Every double records its calls for assertions
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tramites.core.entities import GatewayResult, Procedure

START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

CITIZEN_DATA = {
    "national_id": "12345678",
    "full_name": "JUAN CARLOS DELGADO MARTINEZ",
    "email": "juan.delgado@email.com",
    "phone": "987654321",
    "address": "JR. REAL 456, HUANCAYO",
}


class SteppingClock:
    """Returns START, START+1s, START+2s, ... on successive calls."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now += self.step
        return value


class FixedGateway:
    """PaymentGateway whose answer is set by the test."""

    def __init__(self, approved: bool = True, reason: str = "Payment declined by the bank"):
        self.approved = approved
        self.reason = reason
        self.calls: list[tuple[str, Decimal]] = []

    async def charge(self, method: str, amount: Decimal) -> GatewayResult:
        self.calls.append((method, amount))
        if self.approved:
            return GatewayResult(approved=True)
        return GatewayResult(approved=False, reason=self.reason)


class BlockingGateway(FixedGateway):
    """Approves only once release is set; used to hold a lock open."""

    def __init__(self):
        super().__init__(approved=True)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def charge(self, method: str, amount: Decimal) -> GatewayResult:
        self.entered.set()
        await self.release.wait()
        return await super().charge(method, amount)


class RecordingRefund:
    """RefundPort that records the stored status of the procedure at refund time."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.ledger = None
        self.calls: list[tuple[str, Decimal]] = []
        self.stored_status_at_refund: list[str] = []
        self.voided: list[tuple[str, Decimal]] = []

    async def refund(self, procedure: Procedure, amount: Decimal) -> None:
        self.calls.append((procedure.file_number, amount))
        if self.ledger is not None:
            stored = await self.ledger.get(procedure.id)
            self.stored_status_at_refund.append(stored.status.value)
        if self.fail:
            raise RuntimeError("bank reversal service unavailable")

    async def void(self, procedure: Procedure, amount: Decimal) -> None:
        self.voided.append((procedure.file_number, amount))


class FailingNotifier:
    def __init__(self):
        self.calls = 0

    async def notify(self, message, citizen_id) -> None:
        self.calls += 1
        raise RuntimeError("SMTP down")


class FailingReminders:
    async def schedule(self, debt_id, installment_count) -> None:
        raise RuntimeError("scheduler down")


class FailingSaveRepository:
    """Wraps a repository; save() raises while fail_saves is True."""

    def __init__(self, inner):
        self.inner = inner
        self.fail_saves = True

    async def get(self, entity_id):
        return await self.inner.get(entity_id)

    async def save(self, entity) -> None:
        if self.fail_saves:
            raise RuntimeError("disk full")
        await self.inner.save(entity)

    async def query(self, predicate):
        return await self.inner.query(predicate)

    async def next_id(self) -> int:
        return await self.inner.next_id()

    def lock(self, entity_id):
        return self.inner.lock(entity_id)
