from pydantic import BaseModel, Field, field_validator
from datetime import date
from typing import Optional

from ..models.patient import ChasTier

class ProfileUpdate(BaseModel):
    """Profile form. `nric` is accepted raw and never stored or echoed."""
    full_name: str = Field(..., min_length=1, max_length=200)
    nric: str = Field(..., min_length=5, max_length=32)
    dob: date
    language: str = Field("en", min_length=1, max_length=16)
    chas_tier: ChasTier = ChasTier.UNKNOWN

    @field_validator("full_name", "nric", "language", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("nric")
    @classmethod
    def validate_nric(cls, v: str) -> str:
        if not v.isalnum():
            raise ValueError("National ID may only contain letters and digits")
        return v.upper()

    @field_validator("dob")
    @classmethod
    def validate_dob(cls, v: date) -> date:
        # Future dates are checked against the clinic-local day in ProfileService
        if v.year < 1900:
            raise ValueError("Date of birth looks invalid")
        return v

class ProfileResponse(BaseModel):
    id: str
    full_name: str
    nric_masked: str
    dob: date
    language: str
    chas_tier: ChasTier

    class Config:
        from_attributes = True

class ProfileEnvelope(BaseModel):
    profile: Optional[ProfileResponse] = None
