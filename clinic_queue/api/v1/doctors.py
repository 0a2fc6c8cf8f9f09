from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models.doctor import Doctor
from ...schemas.doctor import DoctorListResponse, DoctorResponse

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=DoctorListResponse)
def list_doctors(db: Session = Depends(get_db)):
    """List active doctors available for booking."""
    doctors = db.query(Doctor).filter(
        Doctor.is_active == True
    ).order_by(Doctor.name.asc()).all()

    return DoctorListResponse(
        doctors=[DoctorResponse.model_validate(doctor) for doctor in doctors]
    )
