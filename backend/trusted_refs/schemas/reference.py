# backend/trusted_refs/schemas/reference.py
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from trusted_refs.models.profile import ProfileRole
from trusted_refs.models.reference import ReferenceStatus


class ProfileSummary(BaseModel):
    id: uuid.UUID
    display_name: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    role: ProfileRole

    class Config:
        from_attributes = True


# ---- Requests ---------------------------------------------------------------
# Text lengths and relationship types are validated by ReferenceService.

class ReferenceRequestIn(BaseModel):
    giver_id: uuid.UUID
    relationship_type: str
    request_note: Optional[str] = None


class ReferenceRespondIn(BaseModel):
    accept: bool
    endorsement_text: Optional[str] = None


class EndorsementIn(BaseModel):
    endorsement_text: Optional[str] = None


# ---- Responses --------------------------------------------------------------

class ReferenceOut(BaseModel):
    id: uuid.UUID
    requester_id: uuid.UUID
    giver_id: uuid.UUID
    status: ReferenceStatus
    relationship_type: str
    request_note: Optional[str] = None
    endorsement_text: Optional[str] = None
    created_at: datetime
    responded_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    closed_by: Optional[uuid.UUID] = None
    requester: Optional[ProfileSummary] = None
    giver: Optional[ProfileSummary] = None

    class Config:
        from_attributes = True


class ReferenceLists(BaseModel):
    accepted: List[ReferenceOut]
    pending: List[ReferenceOut]
    incoming_requests: List[ReferenceOut]
    given_references: List[ReferenceOut]
    accepted_count: int
    max_references: int


class FriendCandidate(BaseModel):
    profile: ProfileSummary
    has_active_reference: bool


class NotificationOut(BaseModel):
    id: uuid.UUID
    kind: str
    source_entity_id: uuid.UUID
    recipient_profile_id: uuid.UUID
    actor_profile_id: Optional[uuid.UUID] = None
    payload: dict
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True
