from sqlalchemy import Column, String, Date, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class ChasTier(str, enum.Enum):
    BLUE = "blue"
    ORANGE = "orange"
    GREEN = "green"
    NONE = "none"
    UNKNOWN = "unknown"

class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), unique=True, index=True, nullable=False)

    # Personal information. The raw national ID is never stored.
    full_name = Column(String(200), nullable=False)
    nric_hash = Column(String(64), unique=True, nullable=False)
    nric_masked = Column(String(32), nullable=False)
    dob = Column(Date, nullable=False)
    language = Column(String(16), nullable=False, default="en")
    chas_tier = Column(
        SQLEnum(ChasTier, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ChasTier.UNKNOWN,
    )

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="patient")

    def __repr__(self):
        return f"<PatientProfile(id={self.id}, user_id='{self.user_id}')>"
