from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional
import logging

from ..core.errors import ConflictError, ValidationError
from ..core.timeutils import as_utc
from ..models.appointment import Appointment, AppointmentStatus, ACTIVE_STATUSES
from ..models.doctor import Doctor
from ..models.patient import PatientProfile
from ..schemas.appointment import BookAppointmentRequest
from .clinic_settings_service import ClinicConfig
from .slot_service import SlotService

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Sorry, this slot has just been taken. Please pick another slot."

class BookingService:
    def __init__(self, db: Session, config: ClinicConfig):
        self.db = db
        self.config = config

    def book(
        self,
        user_id: str,
        booking: BookAppointmentRequest,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Book a slot for the caller's patient profile."""
        profile = self.db.query(PatientProfile).filter(
            PatientProfile.user_id == user_id
        ).first()
        if not profile:
            raise ValidationError("Please complete your profile before booking.")

        doctor = self.db.get(Doctor, str(booking.doctor_id))
        if not doctor or not doctor.is_active:
            raise ValidationError("The selected doctor is not available for booking.")

        start = as_utc(booking.scheduled_start)
        if not SlotService(self.db, self.config).is_bookable(start, now=now):
            raise ValidationError("The selected time is not an available slot. Please pick another slot.")

        self.ensure_slot_free(doctor.id, start)

        appointment = Appointment(
            patient_id=profile.id,
            doctor_id=doctor.id,
            scheduled_start=start,
            status=AppointmentStatus.BOOKED,
            reason=booking.reason,
        )
        self.db.add(appointment)

        try:
            self.db.commit()
        except IntegrityError:
            # Lost the race to the unique index on active slots
            self.db.rollback()
            logger.info("Concurrent booking rejected for doctor %s at %s", doctor.id, start.isoformat())
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        self.db.refresh(appointment)
        logger.info("Booked appointment %s with doctor %s at %s",
                    appointment.id, doctor.id, start.isoformat())
        return appointment

    def ensure_slot_free(self, doctor_id: str, start: datetime) -> None:
        """Reject when an active appointment already holds this exact slot."""
        existing = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.scheduled_start == as_utc(start),
            Appointment.status.in_(ACTIVE_STATUSES),
        ).first()
        if existing:
            raise ConflictError(SLOT_TAKEN_MESSAGE)
