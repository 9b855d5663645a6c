# backend/trusted_refs/models/profile.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from trusted_refs.db import Base


class ProfileRole(str, enum.Enum):
    PLAYER = "player"
    COACH = "coach"
    CLUB = "club"
    BRAND = "brand"


class Profile(Base):
    """Member account. Owned by the accounts system; only read here."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    role: Mapped[ProfileRole] = mapped_column(
        Enum(
            ProfileRole,
            name="profile_role",
            native_enum=False,
            create_constraint=True,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String(120), nullable=False)
    username: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
