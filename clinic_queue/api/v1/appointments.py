from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...api.deps import get_clinic_config, get_current_identity, rate_limit_check
from ...core.database import get_db
from ...core.security import Identity
from ...schemas.appointment import (
    AppointmentEnvelope, AppointmentResponse, BookAppointmentRequest,
    PatientAppointmentListResponse, PatientAppointmentResponse
)
from ...services.appointment_service import AppointmentService
from ...services.booking_service import BookingService
from ...services.clinic_settings_service import ClinicConfig

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def book_appointment(
    booking: BookAppointmentRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config),
    _: None = Depends(rate_limit_check)
):
    """Book a slot with a doctor."""
    appointment = BookingService(db, config).book(identity.user_id, booking)
    return AppointmentEnvelope(appointment=AppointmentResponse.model_validate(appointment))

@router.get("/mine", response_model=PatientAppointmentListResponse)
def list_own_appointments(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config)
):
    """List the caller's appointments, oldest first."""
    appointments = AppointmentService(db, config).list_for_patient(identity.user_id)
    return PatientAppointmentListResponse(appointments=[
        PatientAppointmentResponse(
            **AppointmentResponse.model_validate(appointment).model_dump(),
            doctor_name=appointment.doctor.name if appointment.doctor else None,
        )
        for appointment in appointments
    ])
