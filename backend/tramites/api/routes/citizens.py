"""Citizen routes — register and look up citizens."""

from fastapi import APIRouter, Depends, status

from tramites.api.dependencies import get_services
from tramites.core.domain_types import CitizenId
from tramites.schemas.citizen import CitizenCreate, CitizenResponse
from tramites.schemas.debt import DebtResponse
from tramites.schemas.procedure import ProcedureResponse
from tramites.services.container import Services

router = APIRouter(prefix="/api/v1/citizens", tags=["citizens"])


@router.post("", response_model=CitizenResponse, status_code=status.HTTP_201_CREATED)
async def register_citizen(
    body: CitizenCreate, services: Services = Depends(get_services),
):
    citizen = await services.citizens.register(body.model_dump())
    return CitizenResponse.model_validate(citizen)


@router.get("/{citizen_id}", response_model=CitizenResponse)
async def get_citizen(citizen_id: int, services: Services = Depends(get_services)):
    return CitizenResponse.model_validate(await services.citizens.get(CitizenId(citizen_id)))


@router.get("/{citizen_id}/procedures", response_model=list[ProcedureResponse])
async def list_citizen_procedures(
    citizen_id: int,
    pending_payment: bool = False,
    services: Services = Depends(get_services),
):
    """Procedures of a citizen by start date; optionally only those awaiting payment."""
    if pending_payment:
        procedures = await services.procedures.list_pending_payment(CitizenId(citizen_id))
    else:
        procedures = await services.procedures.list_by_citizen(CitizenId(citizen_id))
    return [ProcedureResponse.model_validate(p) for p in procedures]


@router.get("/{citizen_id}/debts", response_model=list[DebtResponse])
async def list_outstanding_debts(
    citizen_id: int, services: Services = Depends(get_services),
):
    debts = await services.debts.list_outstanding(CitizenId(citizen_id))
    return [DebtResponse.model_validate(d) for d in debts]
