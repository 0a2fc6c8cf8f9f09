from pydantic import BaseModel
from datetime import datetime
from typing import List

class SlotResponse(BaseModel):
    instant: datetime  # UTC
    label: str  # clinic-local "HH:MM"

class SlotListResponse(BaseModel):
    slots: List[SlotResponse]
