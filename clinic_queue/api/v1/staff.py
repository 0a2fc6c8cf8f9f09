from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ...api.deps import get_clinic_config, get_staff_member
from ...core.database import get_db
from ...models.staff import StaffProfile
from ...schemas.appointment import (
    StaffAppointmentListResponse, StaffAppointmentRow,
    StatusUpdateRequest, StatusUpdateResponse
)
from ...services.appointment_service import AppointmentService
from ...services.clinic_settings_service import ClinicConfig

router = APIRouter(prefix="/staff", tags=["Staff"])

@router.get("/appointments", response_model=StaffAppointmentListResponse)
def list_todays_appointments(
    doctor_id: Optional[str] = None,
    staff: StaffProfile = Depends(get_staff_member),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config)
):
    """Today's roster with patient and doctor names."""
    appointments = AppointmentService(db, config).list_for_day(doctor_id=doctor_id)
    return StaffAppointmentListResponse(appointments=[
        StaffAppointmentRow(
            id=appointment.id,
            doctor_id=appointment.doctor_id,
            scheduled_start=appointment.scheduled_start,
            status=appointment.status,
            queue_number=appointment.queue_number,
            patient_full_name=appointment.patient.full_name if appointment.patient else "Unknown",
            doctor_name=appointment.doctor.name if appointment.doctor else "Unknown",
        )
        for appointment in appointments
    ])

@router.post("/appointments/{appointment_id}/status", response_model=StatusUpdateResponse)
def update_appointment_status(
    appointment_id: str,
    status_update: StatusUpdateRequest,
    staff: StaffProfile = Depends(get_staff_member),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config)
):
    """Advance an appointment; the first arrival assigns a queue number."""
    appointment = AppointmentService(db, config).update_status(
        appointment_id, status_update.status
    )
    return StatusUpdateResponse(
        status=appointment.status,
        queue_number=appointment.queue_number,
    )
