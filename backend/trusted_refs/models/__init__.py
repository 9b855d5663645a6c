# backend/trusted_refs/models/__init__.py
# IMPORTANT: Use Base from trusted_refs.db since all models import from there
from trusted_refs.db import Base

# import all model modules so tables get registered on Base.metadata
from .profile import Profile, ProfileRole
from .friendship import ProfileFriendship, FriendshipStatus
from .reference import ProfileReference, ReferenceStatus
from .notification import ProfileNotification


__all__ = [
    "Base",
    "Profile",
    "ProfileRole",
    "ProfileFriendship",
    "FriendshipStatus",
    "ProfileReference",
    "ReferenceStatus",
    "ProfileNotification",
]
