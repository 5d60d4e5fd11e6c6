"""Retry Policy — when an external queue may re-attempt a declined payment.

Invariants:
    - Exponential backoff: min(max_delay, 2**(attempt-1) * base_delay), ±25% jitter
    - attempt is 1-based: the first declined attempt schedules attempt 2
    - Pure: rng and now are arguments
"""

import random
from datetime import datetime, timedelta
from decimal import Decimal

from tramites.core.domain_types import PaymentTargetKind
from tramites.core.entities import RetryDirective


def backoff_ms(
    attempt: int, base_delay_ms: int, max_delay_ms: int, rng: random.Random,
) -> int:
    """Exponential backoff with ±25% jitter."""
    delay = min(max_delay_ms, (2 ** max(attempt - 1, 0)) * base_delay_ms)
    return int(delay * rng.uniform(0.75, 1.25))  # nosec B311


def build_retry_directive(
    *,
    target_kind: PaymentTargetKind,
    target_id: int,
    method: str,
    amount: Decimal,
    attempt: int,
    reason: str,
    now: datetime,
    base_delay_ms: int,
    max_delay_ms: int,
    rng: random.Random,
) -> RetryDirective:
    delay = backoff_ms(attempt, base_delay_ms, max_delay_ms, rng)
    return RetryDirective(
        target_kind=target_kind,
        target_id=target_id,
        method=method,
        amount=amount,
        attempt=attempt + 1,
        reason=reason,
        not_before=now + timedelta(milliseconds=delay),
    )
