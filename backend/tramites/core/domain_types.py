"""Domain Types — identity types, status enums and the procedure fee table.

Invariants:
    - CitizenId, ProcedureId, DebtId wrap ints issued by Repository.next_id()
    - Money is always Decimal quantized to cents (CENT)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from decimal import Decimal
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CitizenId = NewType("CitizenId", int)
ProcedureId = NewType("ProcedureId", int)
DebtId = NewType("DebtId", int)


# ─── Money ───────────────────────────────────────────────────────

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MIN_INSTALLMENTS = 3
MAX_INSTALLMENTS = 12


# ─── Enums ───────────────────────────────────────────────────────

class ProcedureStatus(str, Enum):
    """Procedure lifecycle states."""
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class DebtStatus(str, Enum):
    """Debt settlement states."""
    PENDING = "PENDING"
    PAID = "PAID"
    INSTALLMENT_PLAN = "INSTALLMENT_PLAN"


class PaymentTargetKind(str, Enum):
    """What a payment settles."""
    PROCEDURE = "PROCEDURE"
    DEBT = "DEBT"


# ─── Procedure fees ──────────────────────────────────────────────

PROCEDURE_FEES: dict[str, Decimal] = {
    "LICENCIA_FUNCIONAMIENTO": Decimal("245.00"),
    "PERMISO_CONSTRUCCION": Decimal("380.00"),
    "CERTIFICADO_PARAMETROS": Decimal("150.00"),
}
DEFAULT_PROCEDURE_FEE = Decimal("100.00")


def fee_for(procedure_type: str) -> Decimal:
    """Amount due when a procedure of this type is opened."""
    return PROCEDURE_FEES.get(procedure_type, DEFAULT_PROCEDURE_FEE)
