"""
Reference Workflow Service

Validates and applies every trusted-reference transition:

    request  -> pending
    pending  -> accepted | declined          (giver responds)
    pending  -> declined                     (requester cancels)
    accepted -> removed                      (requester)
    accepted -> withdrawn                    (giver)

Each public operation is a single unit of work. The checks and the write
share one transaction, the requester's profile row is locked before any
capacity count, and the partial unique indexes on ``profile_references``
(active pair, accepted slot) reject anything a stale read lets through. A
constraint violation or lock/serialisation error re-runs the whole unit,
so on retry the caller sees the typed error the fresh state implies.

Notifications are sent after commit and never affect the outcome.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from trusted_refs.constants import (
    MAX_ACCEPTED_REFERENCES,
    REQUEST_NOTE_MAX_LENGTH,
    ENDORSEMENT_MAX_LENGTH,
    REQUESTER_ROLES,
    RELATIONSHIP_TYPES,
    NOTIFICATION_REFERENCE_REQUEST,
    NOTIFICATION_REFERENCE_ACCEPTED,
)
from trusted_refs.models.profile import Profile
from trusted_refs.models.reference import ProfileReference, ReferenceStatus, pair_key_for
from trusted_refs.schemas.reference import ReferenceOut, ReferenceLists
from trusted_refs.services import eligibility
from trusted_refs.services.exceptions import (
    NotEligibleRole,
    NotFriends,
    DuplicateActiveRelationship,
    CapacityExceeded,
    SelfReferenceForbidden,
    NotFound,
    ProfileNotFound,
    NotAuthorized,
    InvalidState,
    InvalidInput,
    TransientFailure,
)
from trusted_refs.services.notifications import NotificationBridge

logger = logging.getLogger(__name__)

T = TypeVar("T")

REFERENCE_TX_ATTEMPTS = int(os.getenv("REFERENCE_TX_ATTEMPTS", "3"))

_CANONICAL_TYPES = {t.lower(): t for t in RELATIONSHIP_TYPES}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_length(value: Optional[str], limit: int, field: str) -> None:
    if value is not None and len(value) > limit:
        raise InvalidInput(f"{field} must be at most {limit} characters.")


def _canonical_relationship_type(value: Optional[str]) -> str:
    canonical = _CANONICAL_TYPES.get((value or "").strip().lower())
    if canonical is None:
        raise InvalidInput(f"Unknown relationship type: {value!r}")
    return canonical


def _serialize(ref: ProfileReference) -> ReferenceOut:
    return ReferenceOut.model_validate(ref)


class ReferenceService:
    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: Optional[NotificationBridge] = None,
        max_attempts: int = REFERENCE_TX_ATTEMPTS,
    ):
        self._session_factory = session_factory
        self._notifier = notifier
        self._max_attempts = max(1, max_attempts)

    # ---- plumbing -----------------------------------------------------------

    def _run(self, op: str, work: Callable[[Session], T]) -> T:
        """Run ``work`` in its own transaction, retrying on store contention."""
        last_error: Optional[Exception] = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._session_factory() as s:
                    with s.begin():
                        return work(s)
            except (IntegrityError, OperationalError) as e:
                last_error = e
                logger.warning(
                    "[references] %s hit store contention (attempt %d/%d): %s",
                    op, attempt, self._max_attempts, e.__class__.__name__,
                )
        raise TransientFailure(f"{op} could not complete, please retry.") from last_error

    def _emit(
        self,
        kind: str,
        reference_id: uuid.UUID,
        recipient_id: uuid.UUID,
        actor_id: uuid.UUID,
        payload: dict,
    ) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.emit_notification(
                kind, reference_id, recipient_id, actor_id=actor_id, payload=payload
            )
        except Exception:
            logger.warning("[references] emitting %s for %s failed", kind, reference_id, exc_info=True)

    def _dismiss(self, kind: str, reference_id: uuid.UUID) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.dismiss_notification(kind, reference_id)
        except Exception:
            logger.warning("[references] dismissing %s for %s failed", kind, reference_id, exc_info=True)

    @staticmethod
    def _lock_profile(s: Session, profile_id: uuid.UUID) -> Optional[Profile]:
        return s.execute(
            select(Profile).where(Profile.id == profile_id).with_for_update()
        ).scalar_one_or_none()

    @staticmethod
    def _lock_reference(s: Session, reference_id: uuid.UUID) -> ProfileReference:
        ref = s.execute(
            select(ProfileReference).where(ProfileReference.id == reference_id).with_for_update()
        ).scalar_one_or_none()
        if ref is None:
            raise NotFound()
        return ref

    # ---- operations ---------------------------------------------------------

    def request_reference(
        self,
        requester_id: uuid.UUID,
        giver_id: uuid.UUID,
        relationship_type: str,
        request_note: Optional[str] = None,
    ) -> ReferenceOut:
        def work(s: Session) -> ReferenceOut:
            requester = self._lock_profile(s, requester_id)
            if requester is None:
                raise ProfileNotFound()
            if requester.role.value not in REQUESTER_ROLES:
                raise NotEligibleRole()
            if requester_id == giver_id:
                raise SelfReferenceForbidden()
            if not eligibility.is_accepted_friend(s, requester_id, giver_id):
                raise NotFriends()
            if eligibility.has_active_relationship(s, requester_id, giver_id):
                raise DuplicateActiveRelationship()
            if eligibility.accepted_reference_count(s, requester_id) >= MAX_ACCEPTED_REFERENCES:
                raise CapacityExceeded(
                    f"You already have {MAX_ACCEPTED_REFERENCES} accepted references."
                )

            kind = _canonical_relationship_type(relationship_type)
            note = _clean_text(request_note)
            _check_length(note, REQUEST_NOTE_MAX_LENGTH, "request_note")

            ref = ProfileReference(
                requester_id=requester_id,
                giver_id=giver_id,
                pair_key=pair_key_for(requester_id, giver_id),
                status=ReferenceStatus.PENDING,
                relationship_type=kind,
                request_note=note,
                created_at=_utcnow(),
            )
            s.add(ref)
            s.flush()
            return _serialize(ref)

        out = self._run("request_reference", work)
        logger.info("[references] %s requested a reference from %s (%s)", requester_id, giver_id, out.id)
        self._emit(
            NOTIFICATION_REFERENCE_REQUEST,
            out.id,
            giver_id,
            actor_id=requester_id,
            payload={
                "reference_id": str(out.id),
                "requester_id": str(requester_id),
                "relationship_type": out.relationship_type,
                "request_note": out.request_note,
            },
        )
        return out

    def respond_to_request(
        self,
        reference_id: uuid.UUID,
        acting_profile_id: uuid.UUID,
        accept: bool,
        endorsement_text: Optional[str] = None,
    ) -> ReferenceOut:
        def work(s: Session) -> ReferenceOut:
            ref = self._lock_reference(s, reference_id)
            if ref.giver_id != acting_profile_id:
                raise NotAuthorized("Only the requested reference can respond.")
            if ref.status != ReferenceStatus.PENDING:
                raise InvalidState("Reference request already handled.")

            now = _utcnow()
            ref.responded_at = now
            if accept:
                endorsement = _clean_text(endorsement_text)
                _check_length(endorsement, ENDORSEMENT_MAX_LENGTH, "endorsement_text")

                # serialise with other writers for this requester, then re-count
                self._lock_profile(s, ref.requester_id)
                if eligibility.accepted_reference_count(s, ref.requester_id) >= MAX_ACCEPTED_REFERENCES:
                    raise CapacityExceeded(
                        f"The requester already has {MAX_ACCEPTED_REFERENCES} accepted references."
                    )
                slot = eligibility.free_slot(s, ref.requester_id)
                if slot is None:
                    raise CapacityExceeded()

                ref.status = ReferenceStatus.ACCEPTED
                ref.slot = slot
                ref.accepted_at = now
                ref.endorsement_text = endorsement
            else:
                ref.status = ReferenceStatus.DECLINED
                ref.closed_at = now
                ref.closed_by = acting_profile_id
            s.flush()
            return _serialize(ref)

        out = self._run("respond_to_request", work)
        logger.info("[references] %s %s reference %s", acting_profile_id, out.status.value, out.id)
        self._dismiss(NOTIFICATION_REFERENCE_REQUEST, out.id)
        if out.status == ReferenceStatus.ACCEPTED:
            self._emit(
                NOTIFICATION_REFERENCE_ACCEPTED,
                out.id,
                out.requester_id,
                actor_id=out.giver_id,
                payload={
                    "reference_id": str(out.id),
                    "giver_id": str(out.giver_id),
                    "relationship_type": out.relationship_type,
                    "endorsement_text": out.endorsement_text,
                },
            )
        return out

    def cancel_request(self, reference_id: uuid.UUID, acting_profile_id: uuid.UUID) -> ReferenceOut:
        """Requester takes back a request the giver has not answered yet."""
        def work(s: Session) -> ReferenceOut:
            ref = self._lock_reference(s, reference_id)
            if ref.requester_id != acting_profile_id:
                raise NotAuthorized("Only the requester can cancel a request.")
            if ref.status != ReferenceStatus.PENDING:
                raise InvalidState("Only pending requests can be cancelled.")
            now = _utcnow()
            ref.status = ReferenceStatus.DECLINED
            ref.responded_at = now
            ref.closed_at = now
            ref.closed_by = acting_profile_id
            s.flush()
            return _serialize(ref)

        out = self._run("cancel_request", work)
        logger.info("[references] %s cancelled reference request %s", acting_profile_id, out.id)
        self._dismiss(NOTIFICATION_REFERENCE_REQUEST, out.id)
        return out

    def _close_accepted(
        self,
        op: str,
        reference_id: uuid.UUID,
        acting_profile_id: uuid.UUID,
        actor_field: str,
        new_status: ReferenceStatus,
    ) -> None:
        def work(s: Session) -> None:
            ref = self._lock_reference(s, reference_id)
            if getattr(ref, actor_field) != acting_profile_id:
                raise NotAuthorized()
            if ref.status != ReferenceStatus.ACCEPTED:
                raise InvalidState("Reference is not accepted.")
            ref.status = new_status
            ref.slot = None
            ref.closed_at = _utcnow()
            ref.closed_by = acting_profile_id

        self._run(op, work)
        logger.info("[references] %s set reference %s to %s", acting_profile_id, reference_id, new_status.value)

    def remove_reference(self, reference_id: uuid.UUID, acting_profile_id: uuid.UUID) -> None:
        self._close_accepted(
            "remove_reference", reference_id, acting_profile_id, "requester_id", ReferenceStatus.REMOVED
        )

    def withdraw_reference(self, reference_id: uuid.UUID, acting_profile_id: uuid.UUID) -> None:
        self._close_accepted(
            "withdraw_reference", reference_id, acting_profile_id, "giver_id", ReferenceStatus.WITHDRAWN
        )

    def edit_endorsement(
        self,
        reference_id: uuid.UUID,
        acting_profile_id: uuid.UUID,
        endorsement_text: Optional[str],
    ) -> ReferenceOut:
        def work(s: Session) -> ReferenceOut:
            ref = self._lock_reference(s, reference_id)
            if ref.giver_id != acting_profile_id:
                raise NotAuthorized("Only the reference giver can edit the endorsement.")
            if ref.status != ReferenceStatus.ACCEPTED:
                raise InvalidState("Endorsements can only be edited on accepted references.")
            endorsement = _clean_text(endorsement_text)
            _check_length(endorsement, ENDORSEMENT_MAX_LENGTH, "endorsement_text")
            ref.endorsement_text = endorsement
            s.flush()
            return _serialize(ref)

        return self._run("edit_endorsement", work)

    # ---- reads --------------------------------------------------------------

    def list_references(self, profile_id: uuid.UUID) -> ReferenceLists:
        with self._session_factory() as s:
            def fetch(*criteria, order_by):
                rows = s.execute(
                    select(ProfileReference).where(*criteria).order_by(*order_by)
                ).scalars().all()
                return [_serialize(r) for r in rows]

            accepted = fetch(
                ProfileReference.requester_id == profile_id,
                ProfileReference.status == ReferenceStatus.ACCEPTED,
                order_by=(ProfileReference.accepted_at.desc(), ProfileReference.created_at.desc()),
            )
            pending = fetch(
                ProfileReference.requester_id == profile_id,
                ProfileReference.status == ReferenceStatus.PENDING,
                order_by=(ProfileReference.created_at.desc(),),
            )
            incoming = fetch(
                ProfileReference.giver_id == profile_id,
                ProfileReference.status == ReferenceStatus.PENDING,
                order_by=(ProfileReference.created_at.asc(),),
            )
            given = fetch(
                ProfileReference.giver_id == profile_id,
                ProfileReference.status == ReferenceStatus.ACCEPTED,
                order_by=(ProfileReference.accepted_at.desc(), ProfileReference.created_at.desc()),
            )

        return ReferenceLists(
            accepted=accepted,
            pending=pending,
            incoming_requests=incoming,
            given_references=given,
            accepted_count=len(accepted),
            max_references=MAX_ACCEPTED_REFERENCES,
        )

    def public_references(self, profile_id: uuid.UUID) -> list[ReferenceOut]:
        """Accepted references of any profile; the only view visible to non-participants."""
        # the request note is private between the two parties
        return [
            r.model_copy(update={"request_note": None})
            for r in self.list_references(profile_id).accepted
        ]
