from sqlalchemy import (
    Column, Integer, String, ForeignKey, Date, DateTime, Text, Index,
    UniqueConstraint, Enum as SQLEnum, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    BOOKED = "booked"
    ARRIVED = "arrived"
    IN_CONSULTATION = "in_consultation"
    COMPLETED = "completed"
    NO_SHOW = "no_show"

# Statuses that hold a doctor's slot
ACTIVE_STATUSES = (
    AppointmentStatus.BOOKED,
    AppointmentStatus.ARRIVED,
    AppointmentStatus.IN_CONSULTATION,
)

_ACTIVE_SLOT_PREDICATE = text("status IN ('booked', 'arrived', 'in_consultation')")

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_doctor_active_slot",
            "doctor_id",
            "scheduled_start",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Relationships
    patient_id = Column(String(36), ForeignKey("patient_profiles.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)

    # Appointment details, scheduled_start is stored in UTC
    scheduled_start = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(
        SQLEnum(AppointmentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AppointmentStatus.BOOKED,
    )
    queue_number = Column(String(8), nullable=True)
    reason = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("PatientProfile", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, "
            f"start='{self.scheduled_start}', status='{self.status}')>"
        )

class QueueCounter(Base):
    """Last queue number handed out per doctor and clinic-local day."""
    __tablename__ = "queue_counters"
    __table_args__ = (
        UniqueConstraint("doctor_id", "service_date", name="uq_queue_counters_doctor_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False)
    service_date = Column(Date, nullable=False)
    last_number = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<QueueCounter(doctor_id={self.doctor_id}, date={self.service_date}, last={self.last_number})>"
