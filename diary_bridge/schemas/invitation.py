import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from diary_bridge.enums import FamilyRole, InvitationStatus


class InvitationCreate(BaseModel):
    invitee_email: str = Field(max_length=255)
    # Defaults to the caller's own account type
    inviter_role: FamilyRole | None = None


class InvitationRedeemRequest(BaseModel):
    invitation_code: str = Field(min_length=1, max_length=20)


class InvitationResponse(BaseModel):
    id: uuid.UUID
    inviter_id: uuid.UUID
    invitee_email: str
    inviter_role: FamilyRole
    status: InvitationStatus
    invitation_code: str
    expires_at: datetime | None = None
    expired: bool = False
    responded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvitationCreatedResponse(BaseModel):
    invitation: InvitationResponse
    delivered: bool
    warning: str | None = None
