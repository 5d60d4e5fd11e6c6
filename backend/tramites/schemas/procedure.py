"""Procedure Schemas — open/transition payloads and the procedure record with history."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tramites.core.domain_types import ProcedureStatus
from tramites.schemas.common import Money


class ProcedureCreate(BaseModel):
    citizen_id: int = Field(ge=1)
    type: str = Field("", max_length=60)
    description: str = Field("", max_length=2000)


class TransitionRequest(BaseModel):
    new_status: ProcedureStatus
    reason: str = Field(min_length=1, max_length=500)


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    previous_status: ProcedureStatus | None
    new_status: ProcedureStatus
    timestamp: datetime
    reason: str


class ProcedureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_number: str
    citizen_id: int
    type: str
    description: str
    status: ProcedureStatus
    started_at: datetime
    completed_at: datetime | None
    amount_due: Money
    history: list[HistoryEntryResponse]
