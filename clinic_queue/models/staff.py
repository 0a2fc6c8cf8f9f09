from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func

from ..core.database import Base
from ..core.security import StaffRole

class StaffProfile(Base):
    """Staff directory entry keyed by identity."""
    __tablename__ = "staff_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), unique=True, index=True, nullable=False)
    display_name = Column(String(200), nullable=True)
    role = Column(
        SQLEnum(StaffRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<StaffProfile(user_id='{self.user_id}', role='{self.role}')>"
