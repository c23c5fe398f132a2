"""Family router.

Endpoints for viewing and removing the caller's family links.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from diary_bridge.core.dependencies import Identity, get_current_identity
from diary_bridge.database import get_db
from diary_bridge.schemas.family import FamilyMemberResponse
from diary_bridge.services.relationship_service import list_family_members, remove_relationship

router = APIRouter(prefix="/family", tags=["Family"])


@router.get("/members", response_model=list[FamilyMemberResponse])
async def get_family_members(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """List everyone linked to the caller, with their role relative to the caller."""
    return await list_family_members(db, identity.user_id)


@router.delete(
    "/relationships/{relationship_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_relationship(
    relationship_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Unlink two accounts. Either side of the relationship may do this."""
    await remove_relationship(db, relationship_id, user_id=identity.user_id)
    return None
