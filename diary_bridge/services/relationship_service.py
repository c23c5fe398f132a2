"""Relationship Service.

Creates, lists and removes parent/child links between accounts.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from diary_bridge.core.exceptions import DuplicateRelationship, NotAuthorized, RelationshipNotFound
from diary_bridge.enums import FamilyRole, RelationshipType
from diary_bridge.models.relationship import FamilyRelationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FamilyMember:
    """The other side of a link, seen from one user."""

    member_id: uuid.UUID
    role: FamilyRole
    full_name: str
    email: str
    relationship_id: uuid.UUID
    linked_at: datetime


def upsert_insert(db: AsyncSession, model):
    """Dialect-specific ``INSERT`` supporting ``ON CONFLICT DO NOTHING``."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


def derive_relationship_pair(
    inviter_role: FamilyRole,
    inviter_id: uuid.UUID,
    invitee_id: uuid.UUID,
) -> tuple[uuid.UUID, uuid.UUID]:
    """Return ``(parent_id, child_id)`` for an accepted invitation.

    The invitee always takes the role complementary to the inviter's.
    """
    match inviter_role:
        case FamilyRole.PARENT:
            return inviter_id, invitee_id
        case FamilyRole.CHILD:
            return invitee_id, inviter_id
    raise ValueError(f"Unknown family role: {inviter_role!r}")


async def get_relationship_for_pair(
    db: AsyncSession, parent_id: uuid.UUID, child_id: uuid.UUID,
) -> FamilyRelationship | None:
    result = await db.execute(
        select(FamilyRelationship).where(
            FamilyRelationship.parent_id == parent_id,
            FamilyRelationship.child_id == child_id,
        )
    )
    return result.scalar_one_or_none()


async def create_relationship(
    db: AsyncSession, parent_id: uuid.UUID, child_id: uuid.UUID,
) -> FamilyRelationship:
    """Insert a relationship row unless the pair is already linked.

    The insert is conditional on the ``(parent_id, child_id)`` unique
    constraint, so two concurrent callers cannot both create a row.

    Raises:
        DuplicateRelationship: If the pair already exists.
    """
    stmt = (
        upsert_insert(db, FamilyRelationship)
        .values(
            id=uuid.uuid4(),
            parent_id=parent_id,
            child_id=child_id,
            relationship_type=RelationshipType.PARENT_CHILD,
        )
        .on_conflict_do_nothing(index_elements=["parent_id", "child_id"])
        .returning(FamilyRelationship.id)
    )
    new_id = (await db.execute(stmt)).scalar_one_or_none()
    if new_id is None:
        raise DuplicateRelationship()

    relationship = await db.get(FamilyRelationship, new_id)
    logger.info("Linked parent %s with child %s", parent_id, child_id)
    return relationship


async def link_family_members(
    db: AsyncSession, parent_id: uuid.UUID, child_id: uuid.UUID,
) -> FamilyRelationship:
    """Return the relationship for the pair, creating it if needed."""
    try:
        return await create_relationship(db, parent_id, child_id)
    except DuplicateRelationship:
        logger.info(
            "Parent %s and child %s already linked, reusing relationship",
            parent_id, child_id,
        )
        existing = await get_relationship_for_pair(db, parent_id, child_id)
        if existing is None:
            # Removed between the conflicting insert and this read
            return await create_relationship(db, parent_id, child_id)
        return existing


async def list_family_members(
    db: AsyncSession, user_id: uuid.UUID,
) -> list[FamilyMember]:
    """List everyone linked to ``user_id`` with their role relative to it."""
    result = await db.execute(
        select(FamilyRelationship)
        .where(
            or_(
                FamilyRelationship.parent_id == user_id,
                FamilyRelationship.child_id == user_id,
            )
        )
        .options(
            selectinload(FamilyRelationship.parent),
            selectinload(FamilyRelationship.child),
        )
        .order_by(FamilyRelationship.created_at)
    )

    members: list[FamilyMember] = []
    for rel in result.scalars().all():
        if rel.parent_id == user_id:
            other, role = rel.child, FamilyRole.CHILD
        else:
            other, role = rel.parent, FamilyRole.PARENT
        members.append(
            FamilyMember(
                member_id=other.id,
                role=role,
                full_name=other.full_name,
                email=other.email,
                relationship_id=rel.id,
                linked_at=rel.created_at,
            )
        )
    return members


async def remove_relationship(
    db: AsyncSession, relationship_id: uuid.UUID, *, user_id: uuid.UUID,
) -> None:
    """Hard-delete a link. Either party may remove it.

    Invitation history is left untouched.
    """
    relationship = await db.get(FamilyRelationship, relationship_id)
    if relationship is None:
        raise RelationshipNotFound()

    if user_id not in (relationship.parent_id, relationship.child_id):
        logger.warning(
            "User %s tried to remove relationship %s they are not part of",
            user_id, relationship_id,
        )
        raise NotAuthorized("You are not part of this family relationship")

    await db.delete(relationship)
    await db.flush()
    logger.info("Relationship %s removed by %s", relationship_id, user_id)
