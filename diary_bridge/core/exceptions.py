"""Typed errors raised by the family services.

Each error carries the HTTP status and a stable machine-readable ``code``
so the API layer can translate it without knowing the service internals
(see ``family_error_handler`` in ``diary_bridge.main``).
"""

from fastapi import status


class FamilyError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "family_error"
    detail: str = "Family request failed"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvitationValidationError(FamilyError):
    status_code = 422
    code = "validation_error"
    detail = "Invalid invitation request"


class DuplicateInvitation(FamilyError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_invitation"
    detail = "A pending invitation for this e-mail address already exists"


class InvitationNotFound(FamilyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "invitation_not_found"
    detail = "Invitation not found"


class InvitationNotPending(FamilyError):
    status_code = status.HTTP_409_CONFLICT
    code = "invitation_not_pending"
    detail = "This invitation was already handled"


class InvitationExpired(FamilyError):
    status_code = status.HTTP_410_GONE
    code = "invitation_expired"
    detail = "This invitation has expired"


class NotAuthorized(FamilyError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    detail = "You are not allowed to act on this invitation"


class DuplicateRelationship(FamilyError):
    """Detected when accepting; never surfaced to the client."""

    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_relationship"
    detail = "These accounts are already linked"


class RelationshipNotFound(FamilyError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "relationship_not_found"
    detail = "Family relationship not found"


class InvitationCodeUnavailable(FamilyError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "code_unavailable"
    detail = "Could not generate a unique invitation code"
