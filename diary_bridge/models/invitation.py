import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from diary_bridge.database import Base
from diary_bridge.enums import FamilyRole, InvitationStatus
from diary_bridge.types import StrEnumType

PENDING_ONLY = text("status = 'pending'")


class FamilyInvitation(Base):
    __tablename__ = "family_invitations"
    __table_args__ = (
        # At most one pending invitation per (inviter, invitee e-mail).
        Index(
            "uq_family_invitations_pending_pair",
            "inviter_id",
            "invitee_email",
            unique=True,
            postgresql_where=PENDING_ONLY,
            sqlite_where=PENDING_ONLY,
        ),
        Index("ix_family_invitations_invitee_status", "invitee_email", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    inviter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True,
    )
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    inviter_role: Mapped[FamilyRole] = mapped_column(
        StrEnumType(FamilyRole), nullable=False,
    )
    status: Mapped[InvitationStatus] = mapped_column(
        StrEnumType(InvitationStatus),
        nullable=False,
        default=InvitationStatus.PENDING,
    )
    invitation_code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    responded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True,
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(),
    )

    # Relationships
    inviter: Mapped["User"] = relationship(foreign_keys=[inviter_id])  # noqa: F821
    responder: Mapped["User | None"] = relationship(foreign_keys=[responded_by])  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<FamilyInvitation(id={self.id}, code={self.invitation_code!r}, "
            f"status={self.status!r})>"
        )
