"""Payment routes — attempt a payment and fetch receipts.

Invariants:
    - A declined payment is a 200 with success=false and a retry directive;
      only invalid input, unknown targets and illegal states are error responses
"""

from fastapi import APIRouter, Depends

from tramites.api.dependencies import get_services
from tramites.schemas.payment import PaymentOutcomeResponse, PaymentRequest, ReceiptResponse
from tramites.services.container import Services

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("", response_model=PaymentOutcomeResponse)
async def pay(body: PaymentRequest, services: Services = Depends(get_services)):
    return PaymentOutcomeResponse.model_validate(await services.payments.pay(
        body.target_kind, body.target_id, body.method, body.amount, attempt=body.attempt,
    ))


@router.get("/receipts/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(receipt_id: str, services: Services = Depends(get_services)):
    return ReceiptResponse.model_validate(await services.payments.get_receipt(receipt_id))
