"""
Canonical audit event type strings.
"""

EVENT_COLLAB_CREATED = "collab.created"
EVENT_MEMBERSHIP_JOINED = "membership.joined"
EVENT_MEMBERSHIP_REACTIVATED = "membership.reactivated"
EVENT_MEMBERSHIP_LEFT = "membership.left"
EVENT_MEMBERSHIP_INVITED = "membership.invited"
EVENT_SELECTIONS_SAVED = "selections.saved"
EVENT_COMMUNICATION_SUBMITTED = "communication.submitted"
EVENT_COMMUNICATION_WITHDRAWN = "communication.withdrawn"
EVENT_COMMUNICATIONS_SELECTED = "communications.selected"

EVENT_TYPES = frozenset(
    {
        EVENT_COLLAB_CREATED,
        EVENT_MEMBERSHIP_JOINED,
        EVENT_MEMBERSHIP_REACTIVATED,
        EVENT_MEMBERSHIP_LEFT,
        EVENT_MEMBERSHIP_INVITED,
        EVENT_SELECTIONS_SAVED,
        EVENT_COMMUNICATION_SUBMITTED,
        EVENT_COMMUNICATION_WITHDRAWN,
        EVENT_COMMUNICATIONS_SELECTED,
    }
)

__all__ = [
    "EVENT_COLLAB_CREATED",
    "EVENT_MEMBERSHIP_JOINED",
    "EVENT_MEMBERSHIP_REACTIVATED",
    "EVENT_MEMBERSHIP_LEFT",
    "EVENT_MEMBERSHIP_INVITED",
    "EVENT_SELECTIONS_SAVED",
    "EVENT_COMMUNICATION_SUBMITTED",
    "EVENT_COMMUNICATION_WITHDRAWN",
    "EVENT_COMMUNICATIONS_SELECTED",
    "EVENT_TYPES",
]
