"""
Eligibility & capacity queries

Read-only helpers used by the reference workflow. They take the caller's
session so that, inside a workflow transaction, they observe the same
snapshot the subsequent write is made against.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_, and_
from sqlalchemy.orm import Session

from trusted_refs.constants import MAX_ACCEPTED_REFERENCES
from trusted_refs.models.friendship import ProfileFriendship, FriendshipStatus
from trusted_refs.models.profile import Profile
from trusted_refs.models.reference import (
    ProfileReference,
    ReferenceStatus,
    ACTIVE_STATUSES,
    pair_key_for,
)


def _pair_clause(a: uuid.UUID, b: uuid.UUID):
    return or_(
        and_(ProfileFriendship.user_one == a, ProfileFriendship.user_two == b),
        and_(ProfileFriendship.user_one == b, ProfileFriendship.user_two == a),
    )


def get_friendship_status(session: Session, a: uuid.UUID, b: uuid.UUID) -> Optional[FriendshipStatus]:
    """Status of the friendship between a and b, in either direction; None if there is none."""
    statuses = session.execute(
        select(ProfileFriendship.status).where(_pair_clause(a, b))
    ).scalars().all()
    if not statuses:
        return None
    # a stray mirrored row must not hide an accepted edge
    if FriendshipStatus.ACCEPTED in statuses:
        return FriendshipStatus.ACCEPTED
    return statuses[0]


def is_accepted_friend(session: Session, a: uuid.UUID, b: uuid.UUID) -> bool:
    return get_friendship_status(session, a, b) == FriendshipStatus.ACCEPTED


def accepted_reference_count(session: Session, requester_id: uuid.UUID) -> int:
    return session.execute(
        select(func.count(ProfileReference.id)).where(
            ProfileReference.requester_id == requester_id,
            ProfileReference.status == ReferenceStatus.ACCEPTED,
        )
    ).scalar_one()


def has_active_relationship(session: Session, requester_id: uuid.UUID, giver_id: uuid.UUID) -> bool:
    """True if the unordered pair already has a pending or accepted reference."""
    count = session.execute(
        select(func.count(ProfileReference.id)).where(
            ProfileReference.pair_key == pair_key_for(requester_id, giver_id),
            ProfileReference.status.in_(ACTIVE_STATUSES),
        )
    ).scalar_one()
    return count > 0


def free_slot(session: Session, requester_id: uuid.UUID) -> Optional[int]:
    """Lowest capacity slot the requester has not filled, or None when all are taken."""
    used = set(
        session.execute(
            select(ProfileReference.slot).where(
                ProfileReference.requester_id == requester_id,
                ProfileReference.status == ReferenceStatus.ACCEPTED,
            )
        ).scalars().all()
    )
    for slot in range(1, MAX_ACCEPTED_REFERENCES + 1):
        if slot not in used:
            return slot
    return None


def accepted_friends(session: Session, profile_id: uuid.UUID) -> List[Tuple[Profile, bool]]:
    """
    Accepted friends of a profile, each paired with whether the two already
    share an active reference. Feeds the "ask for a reference" picker.
    """
    edges = session.execute(
        select(ProfileFriendship).where(
            ProfileFriendship.status == FriendshipStatus.ACCEPTED,
            or_(ProfileFriendship.user_one == profile_id, ProfileFriendship.user_two == profile_id),
        )
    ).scalars().all()

    friend_ids = {e.user_two if e.user_one == profile_id else e.user_one for e in edges}
    if not friend_ids:
        return []

    friends = session.execute(
        select(Profile).where(Profile.id.in_(friend_ids)).order_by(Profile.display_name)
    ).scalars().all()

    active_keys = set(
        session.execute(
            select(ProfileReference.pair_key).where(
                ProfileReference.pair_key.in_([pair_key_for(profile_id, f) for f in friend_ids]),
                ProfileReference.status.in_(ACTIVE_STATUSES),
            )
        ).scalars().all()
    )
    return [(f, pair_key_for(profile_id, f.id) in active_keys) for f in friends]
