import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from diary_bridge.enums import FamilyRole, RelationshipType


class RelationshipResponse(BaseModel):
    id: uuid.UUID
    parent_id: uuid.UUID
    child_id: uuid.UUID
    relationship_type: RelationshipType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FamilyMemberResponse(BaseModel):
    member_id: uuid.UUID
    role: FamilyRole  # the member's role relative to the caller
    full_name: str
    email: str
    relationship_id: uuid.UUID
    linked_at: datetime

    model_config = ConfigDict(from_attributes=True)
