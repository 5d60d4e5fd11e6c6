"""Citizen Schemas — registration payload and public citizen record.

Invariants:
    - CitizenCreate only shapes the payload; the 8-digit and required-contact rules
      live in core/validate_input.py so every caller gets the same ValidationError
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CitizenCreate(BaseModel):
    national_id: str = Field(max_length=20)
    full_name: str = Field("", max_length=200)
    email: str = Field("", max_length=200)
    phone: str = Field("", max_length=30)
    address: str = Field("", max_length=300)


class CitizenResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    national_id: str
    full_name: str
    email: str
    phone: str
    address: str
    registered_at: datetime
