from typing import Dict
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr


class AppointmentPayload(BaseModel):
    """Client-supplied fields of an appointment.

    Only the shape is enforced here; emptiness and past dates are checked by
    the validation service so they surface with their own error kinds.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    date: StrictStr
    first_name: StrictStr = Field(..., alias="firstName")
    last_name: StrictStr = Field(..., alias="lastName")
    all_day: StrictBool = Field(..., alias="allDay")


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    date: str
    first_name: str = Field(..., serialization_alias="firstName")
    last_name: str = Field(..., serialization_alias="lastName")
    all_day: bool = Field(..., serialization_alias="allDay")
    owner_id: int = Field(..., serialization_alias="ownerId")


class AppointmentCreated(BaseModel):
    id: int


class MutationResult(BaseModel):
    success: bool
    affected: int


class ValidationReport(BaseModel):
    valid: bool
    errors: Dict[str, str]
