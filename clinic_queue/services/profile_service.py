from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional
import logging

from ..core.errors import ConflictError, ValidationError
from ..core.timeutils import local_today
from ..models.patient import PatientProfile
from ..schemas.patient import ProfileUpdate
from .clinic_settings_service import ClinicConfig
from .national_id import protect_national_id

logger = logging.getLogger(__name__)

class ProfileService:
    def __init__(self, db: Session, config: ClinicConfig):
        self.db = db
        self.config = config

    def get_profile(self, user_id: str) -> Optional[PatientProfile]:
        """Return the caller's profile, or None if not created yet."""
        return self.db.query(PatientProfile).filter(
            PatientProfile.user_id == user_id
        ).first()

    def upsert_profile(
        self, user_id: str, profile_data: ProfileUpdate, now: Optional[datetime] = None
    ) -> PatientProfile:
        """Create or update the caller's profile."""
        if profile_data.dob > local_today(self.config.tz, now):
            raise ValidationError("Date of birth cannot be in the future")

        protected = protect_national_id(profile_data.nric)

        # The hash is the dedup key: one national ID, one account
        claimed = self.db.query(PatientProfile.id).filter(
            PatientProfile.nric_hash == protected.hash,
            PatientProfile.user_id != user_id
        ).first()
        if claimed:
            raise ConflictError(
                "This national ID is already registered to another account. "
                "Please contact the clinic."
            )

        profile = self.get_profile(user_id)
        if profile is None:
            profile = PatientProfile(user_id=user_id)
            self.db.add(profile)

        profile.full_name = profile_data.full_name
        profile.nric_hash = protected.hash
        profile.nric_masked = protected.masked
        profile.dob = profile_data.dob
        profile.language = profile_data.language
        profile.chas_tier = profile_data.chas_tier

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Your profile could not be saved. Please try again.")

        self.db.refresh(profile)
        logger.info("Saved patient profile %s", profile.id)
        return profile
