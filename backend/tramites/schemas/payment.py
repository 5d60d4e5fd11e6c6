"""Payment Schemas — payment request, outcome (approved or declined) and receipt."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from tramites.core.domain_types import PaymentTargetKind
from tramites.schemas.common import Money


class PaymentRequest(BaseModel):
    target_kind: PaymentTargetKind
    target_id: int
    method: str = ""
    amount: Decimal
    attempt: int = 1


class RetryDirectiveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempt: int
    reason: str
    not_before: datetime


class PaymentOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    target_kind: PaymentTargetKind
    target_id: int
    amount: Money
    timestamp: datetime
    receipt_id: str | None = None
    reason: str | None = None
    retry: RetryDirectiveResponse | None = None


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    target_kind: PaymentTargetKind
    target_id: int
    method: str
    amount: Money
    issued_at: datetime
