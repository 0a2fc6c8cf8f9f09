from pydantic import AwareDatetime, BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ..core.timeutils import as_utc
from ..models.appointment import AppointmentStatus

class BookAppointmentRequest(BaseModel):
    doctor_id: UUID
    scheduled_start: AwareDatetime
    reason: Optional[str] = Field(None, max_length=500)

class AppointmentResponse(BaseModel):
    id: str
    patient_id: str
    doctor_id: str
    scheduled_start: datetime
    status: AppointmentStatus
    queue_number: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("scheduled_start")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    class Config:
        from_attributes = True

class AppointmentEnvelope(BaseModel):
    appointment: AppointmentResponse

class PatientAppointmentResponse(AppointmentResponse):
    doctor_name: Optional[str] = None

class PatientAppointmentListResponse(BaseModel):
    appointments: List[PatientAppointmentResponse]

class StaffAppointmentRow(BaseModel):
    id: str
    doctor_id: str
    scheduled_start: datetime
    status: AppointmentStatus
    queue_number: Optional[str] = None
    patient_full_name: str
    doctor_name: str

    @field_validator("scheduled_start")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

class StaffAppointmentListResponse(BaseModel):
    appointments: List[StaffAppointmentRow]

class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus

class StatusUpdateResponse(BaseModel):
    success: bool = True
    status: AppointmentStatus
    queue_number: Optional[str] = None
