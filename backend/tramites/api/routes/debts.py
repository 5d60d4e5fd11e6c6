"""Debt routes — register, settle and split debts into installment plans."""

from fastapi import APIRouter, Depends, status

from tramites.api.dependencies import get_services
from tramites.core.domain_types import CitizenId, DebtId
from tramites.schemas.debt import (
    DebtCreate, DebtResponse, InstallmentPlanCreate, InstallmentPlanResponse,
)
from tramites.services.container import Services

router = APIRouter(prefix="/api/v1/debts", tags=["debts"])


@router.post("", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
async def register_debt(body: DebtCreate, services: Services = Depends(get_services)):
    return DebtResponse.model_validate(await services.debts.register_debt(
        CitizenId(body.citizen_id),
        body.type,
        body.base_amount,
        body.late_interest,
        body.period,
        body.due_date,
    ))


@router.get("/{debt_id}", response_model=DebtResponse)
async def get_debt(debt_id: int, services: Services = Depends(get_services)):
    return DebtResponse.model_validate(await services.debts.get(DebtId(debt_id)))


@router.post("/{debt_id}/settle", response_model=DebtResponse)
async def settle_debt(debt_id: int, services: Services = Depends(get_services)):
    return DebtResponse.model_validate(await services.debts.settle(DebtId(debt_id)))


@router.post(
    "/{debt_id}/installment-plan",
    response_model=InstallmentPlanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_installment_plan(
    debt_id: int,
    body: InstallmentPlanCreate,
    services: Services = Depends(get_services),
):
    return InstallmentPlanResponse.model_validate(await services.debts.create_installment_plan(
        DebtId(debt_id), body.number_of_installments,
    ))


@router.get("/{debt_id}/installment-plan", response_model=InstallmentPlanResponse)
async def get_installment_plan(debt_id: int, services: Services = Depends(get_services)):
    return InstallmentPlanResponse.model_validate(await services.debts.get_plan(DebtId(debt_id)))
