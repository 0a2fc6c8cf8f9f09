from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from ..core.database import Base

class ClinicSettings(Base):
    """Singleton row with the clinic's booking configuration."""
    __tablename__ = "clinic_settings"

    id = Column(Integer, primary_key=True, index=True)
    slot_duration_min = Column(Integer, nullable=False)
    booking_window_days = Column(Integer, nullable=False)
    timezone = Column(String(64), nullable=False)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return (
            f"<ClinicSettings(slot_duration_min={self.slot_duration_min}, "
            f"booking_window_days={self.booking_window_days}, timezone='{self.timezone}')>"
        )
