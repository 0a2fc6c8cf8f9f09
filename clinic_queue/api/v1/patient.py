from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_clinic_config, get_current_identity, rate_limit_check
from ...core.database import get_db
from ...core.security import Identity
from ...schemas.patient import ProfileEnvelope, ProfileResponse, ProfileUpdate
from ...services.clinic_settings_service import ClinicConfig
from ...services.profile_service import ProfileService

router = APIRouter(prefix="/patient", tags=["Patient"])

@router.get("/profile", response_model=ProfileEnvelope)
def get_own_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config)
):
    """Return the caller's masked profile, or null if not created yet."""
    profile = ProfileService(db, config).get_profile(identity.user_id)
    if profile is None:
        return ProfileEnvelope(profile=None)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))

@router.put("/profile", response_model=ProfileEnvelope)
def upsert_own_profile(
    profile_data: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
    config: ClinicConfig = Depends(get_clinic_config),
    _: None = Depends(rate_limit_check)
):
    """Create or update the caller's profile. The national ID is hashed and masked."""
    profile = ProfileService(db, config).upsert_profile(identity.user_id, profile_data)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))
