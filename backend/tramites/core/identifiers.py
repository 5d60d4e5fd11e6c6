"""Identifier Generation — file numbers and receipt ids from an injected RNG.

Invariants:
    - File number format: {prefix}-{year}-{6 digits}, suffix in [100000, 999999]
    - Receipt id format: {prefix}-{epoch millis}-{4 digits}
    - No module-level randomness: callers pass a random.Random (seeded in tests)
"""

import random
from datetime import datetime


class FileNumberGenerator:
    """Issues human-readable procedure file numbers."""

    def __init__(self, prefix: str = "EXP", rng: random.Random | None = None):
        self.prefix = prefix
        self.rng = rng or random.Random()  # nosec B311

    def __call__(self, now: datetime) -> str:
        suffix = self.rng.randint(100_000, 999_999)
        return f"{self.prefix}-{now.year}-{suffix}"


class ReceiptIdGenerator:
    """Issues receipt ids for successful payments."""

    def __init__(self, prefix: str = "COMP", rng: random.Random | None = None):
        self.prefix = prefix
        self.rng = rng or random.Random()  # nosec B311

    def __call__(self, now: datetime) -> str:
        millis = int(now.timestamp() * 1000)
        return f"{self.prefix}-{millis}-{self.rng.randint(0, 9999):04d}"
