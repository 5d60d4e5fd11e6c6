"""Simulated Payment Gateway — approves a configurable share of charges.

Invariants:
    - Outcome drawn from the injected random.Random only (seed it for reproducible runs)
    - A decline is a GatewayResult(approved=False), never an exception
    - latency_ms simulates the bank round-trip; it is an await point, so caller
      deadlines and cancellation apply to it
"""

import asyncio
import logging
import random
from decimal import Decimal

from tramites.core.entities import GatewayResult

logger = logging.getLogger(__name__)

DECLINE_REASON = "Payment declined by the bank"


class SimulatedPaymentGateway:
    """PaymentGateway with a fixed approval probability."""

    def __init__(
        self,
        success_probability: float = 0.9,
        rng: random.Random | None = None,
        latency_ms: int = 0,
    ):
        if not 0.0 <= success_probability <= 1.0:
            raise ValueError("success_probability must be within [0, 1]")
        self.success_probability = success_probability
        self.rng = rng or random.Random()  # nosec B311
        self.latency_ms = latency_ms

    async def charge(self, method: str, amount: Decimal) -> GatewayResult:
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)
        approved = self.rng.random() < self.success_probability
        logger.debug(f"Simulated charge of {amount} via {method}: approved={approved}")
        if approved:
            return GatewayResult(approved=True)
        return GatewayResult(approved=False, reason=DECLINE_REASON)
