"""Service test fixtures — in-memory container with deterministic doubles.

Invariants:
    - Every test gets a fresh Services container (memory backend)
    - Gateway, clock and rng are deterministic (FixedGateway, SteppingClock, Random(42))
    - refunds records the stored procedure status at refund time

Design Decisions:
    - build_services() is used as-is so tests exercise the production wiring
    - Collaborators are the real in-memory adapters; failure doubles are
      swapped in per test where needed
"""

import random
from datetime import date

import pytest

from tramites.config import Settings
from tramites.infrastructure.collaborators import (
    InMemoryRetryQueue, LoggingNotifier, LoggingReminderScheduler,
)
from tramites.services.container import build_services
from tests.doubles import CITIZEN_DATA, FixedGateway, RecordingRefund, SteppingClock


@pytest.fixture
def settings():
    return Settings(
        storage_backend="memory",
        operation_timeout_seconds=5.0,
        retry_base_delay_ms=1000,
        retry_max_delay_ms=60_000,
        _env_file=None,
    )


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def gateway():
    return FixedGateway(approved=True)


@pytest.fixture
def refunds():
    return RecordingRefund()


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def reminders():
    return LoggingReminderScheduler()


@pytest.fixture
def retries():
    return InMemoryRetryQueue()


@pytest.fixture
def services(settings, clock, gateway, refunds, notifier, reminders, retries):
    built = build_services(
        settings,
        gateway=gateway,
        notifier=notifier,
        reminders=reminders,
        retries=retries,
        refunds=refunds,
        rng=random.Random(42),
        clock=clock,
    )
    refunds.ledger = built.procedures
    return built


@pytest.fixture
async def citizen(services):
    return await services.citizens.register(dict(CITIZEN_DATA))


@pytest.fixture
async def procedure(services, citizen):
    return await services.procedures.open(
        citizen.id, "LICENCIA_FUNCIONAMIENTO", "Solicitud de licencia para restaurante",
    )


@pytest.fixture
async def debt(services, citizen):
    return await services.debts.register_debt(
        citizen.id, "ARBITRIOS", "420.00", "45.00", "Ene-Mar 2024", date(2024, 11, 15),
    )
