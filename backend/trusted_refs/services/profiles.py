# backend/trusted_refs/services/profiles.py
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from trusted_refs.models.profile import Profile
from trusted_refs.schemas.reference import ProfileSummary


def get_profile_summary(session: Session, profile_id: uuid.UUID) -> Optional[ProfileSummary]:
    """Display fields for a profile; decoration only, never used for workflow decisions."""
    profile = session.get(Profile, profile_id)
    if profile is None:
        return None
    return ProfileSummary.model_validate(profile)
