# backend/trusted_refs/routers/references.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Header, Path

from trusted_refs.db import SessionLocal
from trusted_refs.schemas.reference import (
    ReferenceRequestIn,
    ReferenceRespondIn,
    EndorsementIn,
    ReferenceOut,
    ReferenceLists,
)
from trusted_refs.services.notifications import SqlNotificationBridge
from trusted_refs.services.references import ReferenceService

router = APIRouter(prefix="/references", tags=["references"])


def get_reference_service() -> ReferenceService:
    return ReferenceService(SessionLocal, SqlNotificationBridge(SessionLocal))


# Authentication lives in front of this service; it forwards the signed-in profile.
def get_acting_profile(x_profile_id: uuid.UUID = Header(...)) -> uuid.UUID:
    return x_profile_id


@router.post("", response_model=ReferenceOut, status_code=201)
def request_reference(
    payload: ReferenceRequestIn,
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    """
    POST /references
    Body: { "giver_id": "...", "relationship_type": "Teammate", "request_note": "..." }
    """
    return service.request_reference(
        acting, payload.giver_id, payload.relationship_type, payload.request_note
    )


@router.get("/me", response_model=ReferenceLists)
def list_my_references(
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    """Accepted, pending, incoming and given references for the acting profile."""
    return service.list_references(acting)


@router.post("/{reference_id}/respond", response_model=ReferenceOut)
def respond_to_request(
    payload: ReferenceRespondIn,
    reference_id: uuid.UUID = Path(...),
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    return service.respond_to_request(reference_id, acting, payload.accept, payload.endorsement_text)


@router.post("/{reference_id}/cancel", response_model=ReferenceOut)
def cancel_request(
    reference_id: uuid.UUID = Path(...),
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    return service.cancel_request(reference_id, acting)


@router.post("/{reference_id}/remove", status_code=204)
def remove_reference(
    reference_id: uuid.UUID = Path(...),
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    service.remove_reference(reference_id, acting)
    return None


@router.post("/{reference_id}/withdraw", status_code=204)
def withdraw_reference(
    reference_id: uuid.UUID = Path(...),
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    service.withdraw_reference(reference_id, acting)
    return None


@router.patch("/{reference_id}/endorsement", response_model=ReferenceOut)
def edit_endorsement(
    payload: EndorsementIn,
    reference_id: uuid.UUID = Path(...),
    acting: uuid.UUID = Depends(get_acting_profile),
    service: ReferenceService = Depends(get_reference_service),
):
    """Body: { "endorsement_text": "..." }; null clears the endorsement."""
    return service.edit_endorsement(reference_id, acting, payload.endorsement_text)
