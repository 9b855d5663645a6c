"""
Notification Bridge

Turns reference transitions into notification rows. The workflow calls the
bridge only after its own transaction has committed, and every bridge call
runs in a separate transaction: a failure here never undoes a transition.

Dismissal is keyed by (kind, source_entity_id) and is a no-op when the
notification is already cleared or was never created.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from trusted_refs.models.notification import ProfileNotification

logger = logging.getLogger(__name__)


class NotificationBridge(Protocol):
    def emit_notification(
        self,
        kind: str,
        source_entity_id: uuid.UUID,
        recipient_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
        payload: Optional[dict] = None,
    ) -> None: ...

    def dismiss_notification(self, kind: str, source_entity_id: uuid.UUID) -> None: ...


class SqlNotificationBridge:
    """Stores notifications in ``profile_notifications``."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def emit_notification(
        self,
        kind: str,
        source_entity_id: uuid.UUID,
        recipient_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
        payload: Optional[dict] = None,
    ) -> None:
        """Create the notification, or revive an existing one for the same source."""
        now = datetime.now(timezone.utc)
        for attempt in range(2):
            with self._session_factory() as s:
                existing = s.execute(
                    select(ProfileNotification).where(
                        ProfileNotification.kind == kind,
                        ProfileNotification.source_entity_id == source_entity_id,
                    )
                ).scalar_one_or_none()
                if existing is None:
                    s.add(ProfileNotification(
                        recipient_profile_id=recipient_id,
                        actor_profile_id=actor_id,
                        kind=kind,
                        source_entity_id=source_entity_id,
                        payload=payload or {},
                        created_at=now,
                        updated_at=now,
                    ))
                else:
                    existing.recipient_profile_id = recipient_id
                    existing.actor_profile_id = actor_id
                    existing.payload = payload or {}
                    existing.created_at = now
                    existing.read_at = None
                    existing.cleared_at = None
                try:
                    s.commit()
                    return
                except IntegrityError:
                    # lost an insert race for the same (kind, source); update the winner
                    s.rollback()
                    if attempt:
                        raise

    def dismiss_notification(self, kind: str, source_entity_id: uuid.UUID) -> None:
        with self._session_factory() as s:
            res = s.execute(
                update(ProfileNotification)
                .where(
                    ProfileNotification.kind == kind,
                    ProfileNotification.source_entity_id == source_entity_id,
                    ProfileNotification.cleared_at.is_(None),
                )
                .values(cleared_at=datetime.now(timezone.utc))
            )
            s.commit()
            if res.rowcount:
                logger.debug("Dismissed %s notification for %s", kind, source_entity_id)

    def list_for_recipient(self, recipient_id: uuid.UUID) -> List[ProfileNotification]:
        """Live (not cleared) notifications for a recipient, newest first."""
        with self._session_factory() as s:
            return list(
                s.execute(
                    select(ProfileNotification)
                    .where(
                        ProfileNotification.recipient_profile_id == recipient_id,
                        ProfileNotification.cleared_at.is_(None),
                    )
                    .order_by(ProfileNotification.created_at.desc())
                ).scalars().all()
            )
