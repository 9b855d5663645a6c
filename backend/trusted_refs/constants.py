"""
Trusted reference domain constants.

Limits and closed value sets shared by the models, the workflow service and
the request schemas.
"""

# MARK: - Capacity

# Accepted references a single requester may hold at once
MAX_ACCEPTED_REFERENCES = 5


# MARK: - Text limits

REQUEST_NOTE_MAX_LENGTH = 600

ENDORSEMENT_MAX_LENGTH = 800


# MARK: - Roles

# Roles allowed to start collecting references. Any role may answer a request.
REQUESTER_ROLES = frozenset({"player", "coach"})


# MARK: - Relationship types

RELATIONSHIP_TYPES = frozenset({
    # player -> player
    "Teammate",
    "Team Captain",
    "Former Teammate",
    "Former Captain",
    # player -> coach
    "Head Coach",
    "Assistant Coach",
    "Former Coach",
    "Academy Coach",
    # anyone -> club
    "Club",
    "Former Club",
    "Club Manager",
    # coach -> player
    "Player",
    "Former Player",
    "Mentor",
    # coach -> coach
    "Colleague",
    "Fellow Coach",
    "Former Colleague",
    # club -> player / coach
    "Club Member",
    "Former Member",
    "Club Captain",
    "Club Coach",
    # industry
    "Agent",
    "Scout",
})


# MARK: - Notification kinds

NOTIFICATION_REFERENCE_REQUEST = "reference_request_received"

NOTIFICATION_REFERENCE_ACCEPTED = "reference_accepted"
