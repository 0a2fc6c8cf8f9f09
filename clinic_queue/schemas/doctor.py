from pydantic import BaseModel
from typing import List, Optional

class DoctorResponse(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    languages: List[str] = []

    class Config:
        from_attributes = True

class DoctorListResponse(BaseModel):
    doctors: List[DoctorResponse]
