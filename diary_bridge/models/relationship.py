import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from diary_bridge.database import Base
from diary_bridge.enums import RelationshipType
from diary_bridge.types import StrEnumType


class FamilyRelationship(Base):
    """Accepted link between one parent and one child account."""

    __tablename__ = "family_relationships"
    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_family_relationships_pair"),
        CheckConstraint("parent_id <> child_id", name="ck_family_relationships_distinct"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    parent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    relationship_type: Mapped[RelationshipType] = mapped_column(
        StrEnumType(RelationshipType),
        nullable=False,
        default=RelationshipType.PARENT_CHILD,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(),
    )

    # Relationships
    parent: Mapped["User"] = relationship(foreign_keys=[parent_id])  # noqa: F821
    child: Mapped["User"] = relationship(foreign_keys=[child_id])  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<FamilyRelationship(id={self.id}, parent_id={self.parent_id}, "
            f"child_id={self.child_id})>"
        )
