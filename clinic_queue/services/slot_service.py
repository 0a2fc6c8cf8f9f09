from sqlalchemy.orm import Session
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from ..core.timeutils import as_utc, local_today, utcnow
from ..models.appointment import Appointment, ACTIVE_STATUSES
from ..models.doctor import Doctor
from ..schemas.slot import SlotResponse
from .clinic_settings_service import ClinicConfig

def generate_day_slots(day: date, config: ClinicConfig) -> List[datetime]:
    """Candidate slot starts for a clinic-local day, ascending.

    Each window yields starts at open, open + duration, ... as long as
    the whole slot ends by the window's close.
    """
    tz = config.tz
    step = timedelta(minutes=config.slot_duration_min)
    slots = []
    for opens, closes in config.working_windows:
        current = datetime.combine(day, opens, tzinfo=tz)
        close_at = datetime.combine(day, closes, tzinfo=tz)
        while current + step <= close_at:
            slots.append(current)
            current = current + step
    return slots

def within_booking_window(day: date, config: ClinicConfig, now: Optional[datetime] = None) -> bool:
    today = local_today(config.tz, now)
    return today <= day <= today + timedelta(days=config.booking_window_days)

class SlotService:
    def __init__(self, db: Session, config: ClinicConfig):
        self.db = db
        self.config = config

    def available_slots(
        self,
        doctor_id: str,
        day: date,
        now: Optional[datetime] = None
    ) -> List[SlotResponse]:
        """Bookable slots for a doctor on a clinic-local day."""
        now = as_utc(now or utcnow())
        if not within_booking_window(day, self.config, now):
            return []

        doctor = self.db.get(Doctor, doctor_id)
        if not doctor or not doctor.is_active:
            return []

        candidates = generate_day_slots(day, self.config)
        if not candidates:
            return []

        occupied = self._occupied_instants(doctor_id, candidates[0], candidates[-1])

        slots = []
        for start in candidates:
            instant = start.astimezone(timezone.utc)
            if instant <= now or instant in occupied:
                continue
            slots.append(SlotResponse(instant=instant, label=start.strftime("%H:%M")))
        return slots

    def is_bookable(self, instant: datetime, now: Optional[datetime] = None) -> bool:
        """Whether an instant is a grid slot inside the booking window and still ahead.

        Occupancy is not checked here; see BookingService.
        """
        now = as_utc(now or utcnow())
        instant = as_utc(instant)
        if instant <= now:
            return False

        day = instant.astimezone(self.config.tz).date()
        if not within_booking_window(day, self.config, now):
            return False

        return any(
            start.astimezone(timezone.utc) == instant
            for start in generate_day_slots(day, self.config)
        )

    def _occupied_instants(self, doctor_id: str, first: datetime, last: datetime):
        # Exact-instant matching: an appointment occupies the slot that
        # starts at precisely its scheduled_start.
        rows = self.db.query(Appointment.scheduled_start).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.scheduled_start >= first.astimezone(timezone.utc),
            Appointment.scheduled_start <= last.astimezone(timezone.utc),
        ).all()
        return {as_utc(row.scheduled_start) for row in rows}
