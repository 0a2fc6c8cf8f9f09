from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from ...api.deps import get_clinic_config
from ...core.database import get_db
from ...core.errors import ValidationError
from ...schemas.slot import SlotListResponse
from ...services.clinic_settings_service import ClinicConfig
from ...services.slot_service import SlotService

router = APIRouter(prefix="/slots", tags=["Slots"])

@router.get("", response_model=SlotListResponse)
def list_available_slots(
    doctor_id: Optional[str] = None,
    date: Optional[str] = None,
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config)
):
    """Bookable slots for a doctor on a clinic-local date (YYYY-MM-DD)."""
    doctor_id = (doctor_id or "").strip()
    date = (date or "").strip()
    if not doctor_id or not date:
        raise ValidationError("doctor_id and date are required")

    try:
        day = datetime.strptime(date, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date, expected YYYY-MM-DD")

    slots = SlotService(db, config).available_slots(doctor_id, day)
    return SlotListResponse(slots=slots)
