# backend/trusted_refs/routers/profiles.py
import uuid
from typing import List

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from trusted_refs.db import get_db, SessionLocal
from trusted_refs.schemas.reference import (
    FriendCandidate,
    NotificationOut,
    ProfileSummary,
    ReferenceOut,
)
from trusted_refs.services import eligibility
from trusted_refs.services.notifications import SqlNotificationBridge
from trusted_refs.services.profiles import get_profile_summary
from trusted_refs.routers.references import get_acting_profile, get_reference_service
from trusted_refs.services.references import ReferenceService

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_notification_bridge() -> SqlNotificationBridge:
    return SqlNotificationBridge(SessionLocal)


def _require_profile(db: Session, profile_id: uuid.UUID) -> ProfileSummary:
    profile = get_profile_summary(db, profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("/{profile_id}/references", response_model=List[ReferenceOut])
def get_public_references(
    profile_id: uuid.UUID,
    db: Session = Depends(get_db),
    service: ReferenceService = Depends(get_reference_service),
):
    """Accepted references shown on a profile, visible to everyone."""
    _require_profile(db, profile_id)
    return service.public_references(profile_id)


@router.get("/{profile_id}/friends", response_model=List[FriendCandidate])
def get_reference_candidates(profile_id: uuid.UUID, db: Session = Depends(get_db)):
    """Accepted friends of a profile, flagged when they already share an active reference."""
    _require_profile(db, profile_id)
    return [
        FriendCandidate(profile=ProfileSummary.model_validate(friend), has_active_reference=active)
        for friend, active in eligibility.accepted_friends(db, profile_id)
    ]


@router.get("/{profile_id}/notifications", response_model=List[NotificationOut])
def get_notifications(
    profile_id: uuid.UUID,
    db: Session = Depends(get_db),
    acting: uuid.UUID = Depends(get_acting_profile),
    bridge: SqlNotificationBridge = Depends(get_notification_bridge),
):
    """Live notifications, readable only by their recipient."""
    _require_profile(db, profile_id)
    if acting != profile_id:
        raise HTTPException(status_code=403, detail="Not your notifications")
    return bridge.list_for_recipient(profile_id)
