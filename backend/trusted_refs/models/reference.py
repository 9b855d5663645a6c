# backend/trusted_refs/models/reference.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    Text,
    Integer,
    DateTime,
    Enum,
    ForeignKey,
    Uuid,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from trusted_refs.constants import (
    MAX_ACCEPTED_REFERENCES,
    REQUEST_NOTE_MAX_LENGTH,
    ENDORSEMENT_MAX_LENGTH,
)
from trusted_refs.db import Base


class ReferenceStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    WITHDRAWN = "withdrawn"
    REMOVED = "removed"


ACTIVE_STATUSES = (ReferenceStatus.PENDING, ReferenceStatus.ACCEPTED)


def pair_key_for(a: uuid.UUID, b: uuid.UUID) -> str:
    """Direction-free key for a pair of profiles."""
    lo, hi = sorted((str(a), str(b)))
    return f"{lo}:{hi}"


class ProfileReference(Base):
    __tablename__ = "profile_references"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    requester_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    giver_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    pair_key: Mapped[str] = mapped_column(String(80), nullable=False)
    status: Mapped[ReferenceStatus] = mapped_column(
        Enum(
            ReferenceStatus,
            name="reference_status",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ReferenceStatus.PENDING,
    )
    relationship_type: Mapped[str] = mapped_column(String(120), nullable=False)
    request_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    endorsement_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    # capacity unit held while accepted, NULL otherwise
    slot: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )

    requester = relationship("Profile", foreign_keys=[requester_id])
    giver = relationship("Profile", foreign_keys=[giver_id])

    __table_args__ = (
        CheckConstraint("requester_id != giver_id", name="chk_reference_not_self"),
        CheckConstraint(
            f"request_note IS NULL OR length(request_note) <= {REQUEST_NOTE_MAX_LENGTH}",
            name="chk_reference_note_length",
        ),
        CheckConstraint(
            f"endorsement_text IS NULL OR length(endorsement_text) <= {ENDORSEMENT_MAX_LENGTH}",
            name="chk_reference_endorsement_length",
        ),
        CheckConstraint(
            f"(status = 'accepted' AND slot IS NOT NULL AND slot BETWEEN 1 AND {MAX_ACCEPTED_REFERENCES})"
            " OR (status != 'accepted' AND slot IS NULL)",
            name="chk_reference_slot",
        ),
        # at most one pending/accepted row per unordered pair
        Index(
            "uq_profile_references_active_pair",
            "pair_key",
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
        # each accepted row owns a distinct slot, so a requester holds at most
        # MAX_ACCEPTED_REFERENCES of them
        Index(
            "uq_profile_references_accepted_slot",
            "requester_id",
            "slot",
            unique=True,
            postgresql_where=text("status = 'accepted'"),
            sqlite_where=text("status = 'accepted'"),
        ),
        Index("ix_profile_references_requester", "requester_id", "status", "created_at"),
        Index("ix_profile_references_giver", "giver_id", "status", "created_at"),
    )
