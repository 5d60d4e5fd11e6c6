"""Procedure routes — open, inspect, transition and cancel procedures."""

from fastapi import APIRouter, Depends, status

from tramites.api.dependencies import get_services
from tramites.core.domain_types import CitizenId, ProcedureId
from tramites.schemas.procedure import ProcedureCreate, ProcedureResponse, TransitionRequest
from tramites.services.container import Services

router = APIRouter(prefix="/api/v1/procedures", tags=["procedures"])


@router.post("", response_model=ProcedureResponse, status_code=status.HTTP_201_CREATED)
async def open_procedure(
    body: ProcedureCreate, services: Services = Depends(get_services),
):
    return ProcedureResponse.model_validate(await services.procedures.open(
        CitizenId(body.citizen_id), body.type, body.description,
    ))


@router.get("/by-file-number/{file_number}", response_model=ProcedureResponse)
async def get_by_file_number(
    file_number: str, services: Services = Depends(get_services),
):
    return ProcedureResponse.model_validate(await services.procedures.find_by_file_number(file_number))


@router.get("/{procedure_id}", response_model=ProcedureResponse)
async def get_procedure(procedure_id: int, services: Services = Depends(get_services)):
    return ProcedureResponse.model_validate(await services.procedures.get(ProcedureId(procedure_id)))


@router.post("/{procedure_id}/transitions", response_model=ProcedureResponse)
async def transition_procedure(
    procedure_id: int,
    body: TransitionRequest,
    services: Services = Depends(get_services),
):
    return ProcedureResponse.model_validate(await services.procedures.transition(
        ProcedureId(procedure_id), body.new_status, body.reason,
    ))


@router.post("/{procedure_id}/cancel", response_model=ProcedureResponse)
async def cancel_procedure(procedure_id: int, services: Services = Depends(get_services)):
    return ProcedureResponse.model_validate(await services.procedures.cancel(ProcedureId(procedure_id)))
