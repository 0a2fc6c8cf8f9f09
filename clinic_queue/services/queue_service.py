from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import date, datetime
from typing import Iterable, Optional
import logging
import re

from ..core.timeutils import as_utc, local_day_bounds
from ..models.appointment import Appointment, QueueCounter
from .clinic_settings_service import ClinicConfig

logger = logging.getLogger(__name__)

QUEUE_PREFIX = "A"

def parse_queue_suffix(queue_number: Optional[str]) -> int:
    """Numeric part of a queue number; "A012" -> 12, no digits -> 0."""
    digits = re.sub(r"\D", "", queue_number or "")
    return int(digits) if digits else 0

def format_queue_number(number: int) -> str:
    return f"{QUEUE_PREFIX}{number:03d}"

def next_queue_number(existing: Iterable[Optional[str]]) -> str:
    """Next label after the highest already assigned; A001 when none."""
    assigned = [q for q in existing if q]
    if not assigned:
        return format_queue_number(1)
    return format_queue_number(max(parse_queue_suffix(q) for q in assigned) + 1)

class QueueService:
    """Hands out queue numbers per doctor and clinic-local day.

    Numbers come from a QueueCounter row locked for the rest of the
    caller's transaction, so two arrivals for the same doctor and day
    cannot read the same maximum. The counter never goes below what is
    already assigned on appointments for that day.
    """

    def __init__(self, db: Session, config: ClinicConfig):
        self.db = db
        self.config = config

    def service_date(self, scheduled_start: datetime) -> date:
        return as_utc(scheduled_start).astimezone(self.config.tz).date()

    def assign_next(self, doctor_id: str, scheduled_start: datetime) -> str:
        """Reserve the next number. The caller commits or rolls back."""
        day = self.service_date(scheduled_start)
        counter = self._lock_counter(doctor_id, day)

        day_start, day_end = local_day_bounds(day, self.config.tz)
        rows = self.db.query(Appointment.queue_number).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.scheduled_start >= day_start,
            Appointment.scheduled_start < day_end,
            Appointment.queue_number.isnot(None),
        ).all()

        scanned = next_queue_number(row.queue_number for row in rows)
        number = max(parse_queue_suffix(scanned), (counter.last_number or 0) + 1)
        counter.last_number = number
        self.db.flush()

        logger.info("Queue number %s reserved for doctor %s on %s",
                    format_queue_number(number), doctor_id, day)
        return format_queue_number(number)

    def _lock_counter(self, doctor_id: str, day: date) -> QueueCounter:
        counter = self._select_counter(doctor_id, day)
        if counter:
            return counter

        counter = QueueCounter(doctor_id=doctor_id, service_date=day, last_number=0)
        try:
            # Only the savepoint rolls back on conflict
            with self.db.begin_nested():
                self.db.add(counter)
        except IntegrityError:
            # Another request created the row first
            counter = self._select_counter(doctor_id, day)
            if not counter:
                raise
        return counter

    def _select_counter(self, doctor_id: str, day: date) -> Optional[QueueCounter]:
        return self.db.query(QueueCounter).filter(
            QueueCounter.doctor_id == doctor_id,
            QueueCounter.service_date == day,
        ).with_for_update().first()
