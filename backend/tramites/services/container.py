"""Service Container — builds repositories, collaborators and services from Settings.

Invariants:
    - One Services instance per process, created explicitly at startup
      (FastAPI lifespan or test fixture); nothing is created at import time
    - memory backend: InMemoryRepository per entity type
    - sql backend: SqlRepository per entity type over the given DatabaseSessionManager
    - gateway, rng and clock are injectable; defaults come from Settings
"""

import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from tramites.config import Settings
from tramites.core.identifiers import FileNumberGenerator, ReceiptIdGenerator
from tramites.core.repository_protocols import (
    NotificationPort, PaymentGateway, RefundPort, ReminderScheduler, RetryScheduler,
)
from tramites.infrastructure import sql_mappers as mappers
from tramites.infrastructure.collaborators import (
    InMemoryRetryQueue, LoggingNotifier, LoggingReminderScheduler, SimulatedRefund,
)
from tramites.infrastructure.database import DatabaseSessionManager
from tramites.infrastructure.memory_repository import InMemoryRepository
from tramites.infrastructure.payment_gateway import SimulatedPaymentGateway
from tramites.infrastructure.sql_repository import SqlRepository
from tramites.models import CitizenRow, DebtRow, InstallmentPlanRow, ProcedureRow, ReceiptRow
from tramites.services.citizen_registry import CitizenRegistry
from tramites.services.debt_ledger import DebtLedger
from tramites.services.ledger_helpers import utcnow
from tramites.services.payment_processor import PaymentProcessor
from tramites.services.procedure_ledger import ProcedureLedger


@dataclass
class Services:
    citizens: CitizenRegistry
    procedures: ProcedureLedger
    debts: DebtLedger
    payments: PaymentProcessor
    notifier: NotificationPort
    reminders: ReminderScheduler
    retries: RetryScheduler
    refunds: RefundPort | None


def _repositories(settings: Settings, db: DatabaseSessionManager | None) -> dict:
    if settings.storage_backend == "memory":
        return {
            "citizens": InMemoryRepository(),
            "procedures": InMemoryRepository(),
            "debts": InMemoryRepository(),
            "plans": InMemoryRepository(key=lambda plan: plan.debt_id),
            "receipts": InMemoryRepository(),
        }
    if db is None:
        raise RuntimeError("storage_backend 'sql' requires an initialized database")
    return {
        "citizens": SqlRepository(
            db, CitizenRow, mappers.citizen_to_row, mappers.citizen_from_row,
        ),
        "procedures": SqlRepository(
            db, ProcedureRow, mappers.procedure_to_row, mappers.procedure_from_row,
        ),
        "debts": SqlRepository(db, DebtRow, mappers.debt_to_row, mappers.debt_from_row),
        "plans": SqlRepository(
            db, InstallmentPlanRow, mappers.plan_to_row, mappers.plan_from_row,
            id_column="debt_id",
        ),
        "receipts": SqlRepository(
            db, ReceiptRow, mappers.receipt_to_row, mappers.receipt_from_row,
        ),
    }


def build_services(
    settings: Settings,
    db: DatabaseSessionManager | None = None,
    *,
    gateway: PaymentGateway | None = None,
    notifier: NotificationPort | None = None,
    reminders: ReminderScheduler | None = None,
    retries: RetryScheduler | None = None,
    refunds: RefundPort | None = None,
    rng: random.Random | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Services:
    repos = _repositories(settings, db)
    rng = rng or random.Random()  # nosec B311
    timeout = settings.operation_timeout_seconds
    notifier = notifier or LoggingNotifier()
    reminders = reminders or LoggingReminderScheduler()
    retries = retries or InMemoryRetryQueue()
    refunds = refunds or SimulatedRefund()
    gateway = gateway or SimulatedPaymentGateway(
        settings.gateway_success_probability, rng=rng,
        latency_ms=settings.gateway_latency_ms,
    )

    citizens = CitizenRegistry(repos["citizens"], clock=clock, timeout=timeout)
    procedures = ProcedureLedger(
        repos["procedures"], citizens, notifier,
        refunds=refunds,
        file_numbers=FileNumberGenerator(settings.file_number_prefix, rng),
        clock=clock,
        timeout=timeout,
    )
    debts = DebtLedger(
        repos["debts"], repos["plans"], citizens, reminders, clock=clock, timeout=timeout,
    )
    payments = PaymentProcessor(
        procedures, debts, gateway, repos["receipts"], retries,
        receipt_ids=ReceiptIdGenerator(settings.receipt_prefix, rng),
        clock=clock,
        rng=rng,
        retry_base_delay_ms=settings.retry_base_delay_ms,
        retry_max_delay_ms=settings.retry_max_delay_ms,
        timeout=timeout,
    )
    return Services(
        citizens=citizens,
        procedures=procedures,
        debts=debts,
        payments=payments,
        notifier=notifier,
        reminders=reminders,
        retries=retries,
        refunds=refunds,
    )
