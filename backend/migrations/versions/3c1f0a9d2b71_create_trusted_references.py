"""create trusted references tables

Revision ID: 3c1f0a9d2b71
Revises:
Create Date: 2026-02-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b71'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=False),
        sa.Column("username", sa.String(64), nullable=True, unique=True),
        sa.Column("avatar_url", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('player', 'coach', 'club', 'brand')", name="chk_profile_role"),
    )

    op.create_table(
        "profile_friendships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_one", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_two", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("requester_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_one", "user_two", name="uq_profile_friendship"),
        sa.CheckConstraint("user_one != user_two", name="chk_no_self_friendship"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'cancelled', 'blocked')",
            name="chk_valid_friendship_status",
        ),
    )

    op.create_table(
        "profile_references",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("requester_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("giver_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("pair_key", sa.String(80), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("relationship_type", sa.String(120), nullable=False),
        sa.Column("request_note", sa.Text(), nullable=True),
        sa.Column("endorsement_text", sa.Text(), nullable=True),
        sa.Column("slot", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_by", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.CheckConstraint("requester_id != giver_id", name="chk_reference_not_self"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'withdrawn', 'removed')",
            name="chk_valid_reference_status",
        ),
        sa.CheckConstraint(
            "request_note IS NULL OR length(request_note) <= 600", name="chk_reference_note_length"
        ),
        sa.CheckConstraint(
            "endorsement_text IS NULL OR length(endorsement_text) <= 800",
            name="chk_reference_endorsement_length",
        ),
        sa.CheckConstraint(
            "(status = 'accepted' AND slot IS NOT NULL AND slot BETWEEN 1 AND 5) OR (status != 'accepted' AND slot IS NULL)",
            name="chk_reference_slot",
        ),
    )
    op.create_index(
        "uq_profile_references_active_pair",
        "profile_references",
        ["pair_key"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'accepted')"),
    )
    op.create_index(
        "uq_profile_references_accepted_slot",
        "profile_references",
        ["requester_id", "slot"],
        unique=True,
        postgresql_where=sa.text("status = 'accepted'"),
    )
    op.create_index(
        "ix_profile_references_requester", "profile_references", ["requester_id", "status", "created_at"]
    )
    op.create_index(
        "ix_profile_references_giver", "profile_references", ["giver_id", "status", "created_at"]
    )

    op.create_table(
        "profile_notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("recipient_profile_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_profile_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("kind", sa.String(64), nullable=False),
        sa.Column("source_entity_id", sa.Uuid(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cleared_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("kind", "source_entity_id", name="uq_profile_notification_source"),
    )
    op.create_index(
        "ix_profile_notifications_recipient",
        "profile_notifications",
        ["recipient_profile_id", "cleared_at", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_profile_notifications_recipient", table_name="profile_notifications")
    op.drop_table("profile_notifications")
    op.drop_index("ix_profile_references_giver", table_name="profile_references")
    op.drop_index("ix_profile_references_requester", table_name="profile_references")
    op.drop_index("uq_profile_references_accepted_slot", table_name="profile_references")
    op.drop_index("uq_profile_references_active_pair", table_name="profile_references")
    op.drop_table("profile_references")
    op.drop_table("profile_friendships")
    op.drop_table("profiles")
