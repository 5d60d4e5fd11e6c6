"""ORM models — one table per repository; imported here so Base.metadata is complete."""

from tramites.models.citizen import CitizenRow
from tramites.models.procedure import ProcedureRow
from tramites.models.debt import DebtRow, InstallmentPlanRow
from tramites.models.receipt import ReceiptRow

__all__ = [
    "CitizenRow", "ProcedureRow", "DebtRow", "InstallmentPlanRow", "ReceiptRow",
]
