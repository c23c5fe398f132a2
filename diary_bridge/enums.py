"""Closed vocabularies for family roles and invitation state."""

from enum import StrEnum


class FamilyRole(StrEnum):
    """Role a user holds within a parent/child link."""

    PARENT = "parent"
    CHILD = "child"

    @property
    def complement(self) -> "FamilyRole":
        """The role the other side of a link holds."""
        match self:
            case FamilyRole.PARENT:
                return FamilyRole.CHILD
            case FamilyRole.CHILD:
                return FamilyRole.PARENT


class InvitationStatus(StrEnum):
    """Invitation lifecycle status. Only pending invitations may change."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    # Set only when an expired pending invitation is replaced by a new one
    EXPIRED = "expired"


class RelationshipType(StrEnum):
    PARENT_CHILD = "parent_child"
