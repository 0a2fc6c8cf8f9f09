from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from datetime import date, datetime
from typing import Dict, List, Optional, Set
import logging

from ..core.errors import NotFoundError, UpstreamError, ValidationError
from ..core.timeutils import local_day_bounds, local_today
from ..models.appointment import Appointment, AppointmentStatus
from ..models.patient import PatientProfile
from .clinic_settings_service import ClinicConfig
from .queue_service import QueueService

logger = logging.getLogger(__name__)

# booked -> arrived -> in_consultation -> completed, no_show from booked
# or arrived. Forward skips are allowed, terminal statuses stay put.
TRANSITIONS: Dict[AppointmentStatus, Set[AppointmentStatus]] = {
    AppointmentStatus.BOOKED: {
        AppointmentStatus.ARRIVED,
        AppointmentStatus.IN_CONSULTATION,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.ARRIVED: {
        AppointmentStatus.IN_CONSULTATION,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.IN_CONSULTATION: {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.NO_SHOW: set(),
}

class AppointmentService:
    def __init__(self, db: Session, config: ClinicConfig):
        self.db = db
        self.config = config

    def list_for_patient(self, user_id: str) -> List[Appointment]:
        """All appointments of the caller's profile, oldest first."""
        profile = self.db.query(PatientProfile).filter(
            PatientProfile.user_id == user_id
        ).first()
        if not profile:
            return []

        return self.db.query(Appointment).options(
            joinedload(Appointment.doctor)
        ).filter(
            Appointment.patient_id == profile.id
        ).order_by(Appointment.scheduled_start.asc()).all()

    def list_for_day(
        self,
        day: Optional[date] = None,
        doctor_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[Appointment]:
        """Roster for a clinic-local day (today by default)."""
        day = day or local_today(self.config.tz, now)
        day_start, day_end = local_day_bounds(day, self.config.tz)

        query = self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor),
        ).filter(
            Appointment.scheduled_start >= day_start,
            Appointment.scheduled_start < day_end,
        )
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)

        return query.order_by(Appointment.scheduled_start.asc()).all()

    def update_status(self, appointment_id: str, new_status: AppointmentStatus) -> Appointment:
        """Move an appointment to a new status.

        The first move into ARRIVED assigns a queue number. Re-sending the
        current status changes nothing and returns the appointment as is.
        """
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).with_for_update().first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        current = appointment.status
        needs_queue_number = (
            new_status == AppointmentStatus.ARRIVED and not appointment.queue_number
        )

        if new_status == current and not needs_queue_number:
            return appointment

        if new_status != current and new_status not in TRANSITIONS[current]:
            raise ValidationError(
                f"An appointment that is {current.value} cannot be marked {new_status.value}."
            )

        try:
            if needs_queue_number:
                appointment.queue_number = QueueService(self.db, self.config).assign_next(
                    appointment.doctor_id, appointment.scheduled_start
                )
            appointment.status = new_status
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update status of appointment %s", appointment_id)
            if needs_queue_number:
                raise UpstreamError("Failed to assign queue number. Please try again.")
            raise UpstreamError("Failed to update the appointment. Please try again.")

        self.db.refresh(appointment)
        logger.info("Appointment %s moved %s -> %s (queue %s)",
                    appointment.id, current.value, new_status.value, appointment.queue_number)
        return appointment
