"""Debt Schemas — debt registration, installment plan request and responses."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from tramites.core.domain_types import DebtStatus
from tramites.schemas.common import Money


class DebtCreate(BaseModel):
    citizen_id: int = Field(ge=1)
    type: str = Field(max_length=60)
    base_amount: Decimal
    late_interest: Decimal = Decimal("0.00")
    period: str = Field(max_length=40)
    due_date: date


class InstallmentPlanCreate(BaseModel):
    # Range enforced by the ledger (ValidationError), not here.
    number_of_installments: int


class DebtResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    citizen_id: int
    type: str
    base_amount: Money
    late_interest: Money
    total_amount: Money
    period: str
    due_date: date
    status: DebtStatus


class InstallmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    debt_id: int
    number_of_installments: int
    installment_amount: Money
    installments: list[Money]
    total_amount: Money
    created_at: datetime
