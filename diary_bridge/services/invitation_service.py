"""Invitation Service.

Family invitation lifecycle: create, list, accept, decline and resend.

Every mutating call re-reads the invitation from the database and applies
its status change as a conditional ``UPDATE ... WHERE status = 'pending'``,
so a stale copy held by a client can never move an invitation twice.
Functions flush but do not commit; the caller's session owns the
transaction.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from diary_bridge.config import settings
from diary_bridge.core.exceptions import (
    DuplicateInvitation,
    InvitationCodeUnavailable,
    InvitationExpired,
    InvitationNotFound,
    InvitationNotPending,
    InvitationValidationError,
    NotAuthorized,
)
from diary_bridge.enums import FamilyRole, InvitationStatus
from diary_bridge.models.invitation import PENDING_ONLY, FamilyInvitation
from diary_bridge.models.relationship import FamilyRelationship
from diary_bridge.services.notification_service import InvitationNotifier
from diary_bridge.services.relationship_service import (
    derive_relationship_pair,
    get_relationship_for_pair,
    link_family_members,
    upsert_insert,
)

logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes survive being read out loud
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_ATTEMPTS = 10


@dataclass
class InvitationResult:
    """A persisted invitation plus the outcome of notifying the invitee."""

    invitation: FamilyInvitation
    delivered: bool
    warning: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def normalize_email(email: str) -> str:
    return email.strip().lower()


def _validated_email(email: str) -> str:
    normalized = normalize_email(email)
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvitationValidationError(f"Invalid e-mail address: {exc}") from exc
    return normalized


def _validated_role(role: FamilyRole | str) -> FamilyRole:
    try:
        return FamilyRole(role)
    except ValueError:
        raise InvitationValidationError(
            f"Invalid role {role!r}, expected 'parent' or 'child'"
        ) from None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(invitation: FamilyInvitation, now: datetime | None = None) -> bool:
    """True once the current time is past ``expires_at``. Invitations without one never expire."""
    if invitation.expires_at is None:
        return False
    return _as_utc(invitation.expires_at) < (now or _utcnow())


def _not_expired_clause(now: datetime):
    return or_(
        FamilyInvitation.expires_at.is_(None),
        FamilyInvitation.expires_at >= now,
    )


def _generate_code(length: int | None = None) -> str:
    """Generate a random invitation code like 'K7QH2MXP'."""
    length = length or settings.INVITATION_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def generate_invitation_code(db: AsyncSession) -> str:
    """Generate a unique invitation code, retrying on collision."""
    for _ in range(CODE_ATTEMPTS):
        code = _generate_code()
        result = await db.execute(
            select(FamilyInvitation.id).where(FamilyInvitation.invitation_code == code)
        )
        if result.scalar_one_or_none() is None:
            return code

    raise InvitationCodeUnavailable()


async def _dispatch(
    notifier: InvitationNotifier | None,
    invitation: FamilyInvitation,
    inviter_name: str,
) -> tuple[bool, str | None]:
    """Best-effort notification. Never raises."""
    delivered = False
    if notifier is not None:
        try:
            delivered = await notifier.send(
                invitation.invitee_email,
                inviter_name,
                invitation.inviter_role,
                invitation.invitation_code,
            )
        except Exception:
            logger.warning(
                "Delivery of invitation %s to %s failed",
                invitation.id, invitation.invitee_email, exc_info=True,
            )
            delivered = False

    if delivered:
        return True, None
    return False, (
        "The invitation e-mail could not be sent. "
        f"Share the code {invitation.invitation_code} with the invitee directly."
    )


def _ensure_invitee(
    invitation: FamilyInvitation, user_id: uuid.UUID, user_email: str,
) -> None:
    if normalize_email(user_email) != invitation.invitee_email:
        logger.warning(
            "User %s tried to respond to invitation %s addressed to someone else",
            user_id, invitation.id,
        )
        raise NotAuthorized()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def get_invitation(db: AsyncSession, invitation_id: uuid.UUID) -> FamilyInvitation:
    """Load an invitation, always refreshing from the database."""
    invitation = await db.get(FamilyInvitation, invitation_id, populate_existing=True)
    if invitation is None:
        raise InvitationNotFound()
    return invitation


async def get_invitation_by_code(db: AsyncSession, code: str) -> FamilyInvitation:
    result = await db.execute(
        select(FamilyInvitation)
        .where(FamilyInvitation.invitation_code == code.strip().upper())
        .execution_options(populate_existing=True)
    )
    invitation = result.scalar_one_or_none()
    if invitation is None:
        raise InvitationNotFound("No invitation matches this code")
    return invitation


async def list_pending_invitations_received(
    db: AsyncSession, user_email: str,
) -> list[FamilyInvitation]:
    """Pending invitations addressed to ``user_email``, newest first."""
    result = await db.execute(
        select(FamilyInvitation)
        .where(
            FamilyInvitation.invitee_email == normalize_email(user_email),
            FamilyInvitation.status == InvitationStatus.PENDING,
        )
        .order_by(FamilyInvitation.created_at.desc())
    )
    return list(result.scalars().all())


async def list_pending_invitations_sent(
    db: AsyncSession, inviter_id: uuid.UUID,
) -> list[FamilyInvitation]:
    """Pending invitations created by ``inviter_id``, newest first."""
    result = await db.execute(
        select(FamilyInvitation)
        .where(
            FamilyInvitation.inviter_id == inviter_id,
            FamilyInvitation.status == InvitationStatus.PENDING,
        )
        .order_by(FamilyInvitation.created_at.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def _retire_expired_pending(
    db: AsyncSession, inviter_id: uuid.UUID, invitee_email: str, now: datetime,
) -> None:
    """Move an expired pending invitation for the pair to ``expired``.

    Frees the pending slot so the pair can be re-invited. The condition on
    ``expires_at`` keeps this from touching an invitation that can still
    be accepted.
    """
    result = await db.execute(
        update(FamilyInvitation)
        .where(
            FamilyInvitation.inviter_id == inviter_id,
            FamilyInvitation.invitee_email == invitee_email,
            FamilyInvitation.status == InvitationStatus.PENDING,
            FamilyInvitation.expires_at.is_not(None),
            FamilyInvitation.expires_at < now,
        )
        .values(status=InvitationStatus.EXPIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(
            "Retired %d expired invitation(s) from %s to %s",
            result.rowcount, inviter_id, invitee_email,
        )


async def create_invitation(
    db: AsyncSession,
    *,
    inviter_id: uuid.UUID,
    inviter_email: str,
    inviter_name: str,
    inviter_role: FamilyRole | str,
    invitee_email: str,
    notifier: InvitationNotifier | None = None,
) -> InvitationResult:
    """Create a pending invitation and try to notify the invitee.

    Raises:
        InvitationValidationError: Malformed e-mail or role, or a self-invite.
        DuplicateInvitation: A pending invitation for the pair exists.
    """
    role = _validated_role(inviter_role)
    email = _validated_email(invitee_email)
    if email == normalize_email(inviter_email):
        raise InvitationValidationError("You cannot invite yourself")

    now = _utcnow()
    await _retire_expired_pending(db, inviter_id, email, now)

    code = await generate_invitation_code(db)
    expires_at = None
    if settings.INVITATION_EXPIRE_DAYS > 0:
        expires_at = now + timedelta(days=settings.INVITATION_EXPIRE_DAYS)

    # Conditional insert against the partial unique index: a concurrent
    # duplicate loses here instead of creating a second pending row.
    stmt = (
        upsert_insert(db, FamilyInvitation)
        .values(
            id=uuid.uuid4(),
            inviter_id=inviter_id,
            invitee_email=email,
            inviter_role=role,
            status=InvitationStatus.PENDING,
            invitation_code=code,
            expires_at=expires_at,
        )
        .on_conflict_do_nothing(
            index_elements=["inviter_id", "invitee_email"],
            index_where=PENDING_ONLY,
        )
        .returning(FamilyInvitation.id)
    )
    new_id = (await db.execute(stmt)).scalar_one_or_none()
    if new_id is None:
        raise DuplicateInvitation()

    invitation = await get_invitation(db, new_id)
    logger.info(
        "Invitation %s created by %s (%s) for %s",
        invitation.id, inviter_id, role, email,
    )

    delivered, warning = await _dispatch(notifier, invitation, inviter_name)
    return InvitationResult(invitation=invitation, delivered=delivered, warning=warning)


async def _relationship_for_accepted(
    db: AsyncSession, invitation: FamilyInvitation, user_id: uuid.UUID,
) -> FamilyRelationship:
    """Idempotent path for an invitation that is already accepted."""
    parent_id, child_id = derive_relationship_pair(
        invitation.inviter_role, invitation.inviter_id, user_id,
    )
    relationship = await get_relationship_for_pair(db, parent_id, child_id)
    if relationship is None:
        raise InvitationNotPending()
    return relationship


async def accept_invitation(
    db: AsyncSession,
    invitation_id: uuid.UUID,
    *,
    user_id: uuid.UUID,
    user_email: str,
) -> FamilyRelationship:
    """Accept an invitation and link the two accounts.

    The status change and the relationship insert share the caller's
    transaction. Accepting an invitation that this user already accepted
    returns the existing relationship.

    Raises:
        InvitationNotFound, NotAuthorized, InvitationNotPending,
        InvitationExpired
    """
    invitation = await get_invitation(db, invitation_id)
    _ensure_invitee(invitation, user_id, user_email)

    if invitation.status == InvitationStatus.ACCEPTED:
        return await _relationship_for_accepted(db, invitation, user_id)
    if invitation.status == InvitationStatus.EXPIRED:
        raise InvitationExpired()
    if invitation.status != InvitationStatus.PENDING:
        raise InvitationNotPending()
    if is_expired(invitation):
        raise InvitationExpired()

    now = _utcnow()
    result = await db.execute(
        update(FamilyInvitation)
        .where(
            FamilyInvitation.id == invitation.id,
            FamilyInvitation.status == InvitationStatus.PENDING,
            _not_expired_clause(now),
        )
        .values(
            status=InvitationStatus.ACCEPTED,
            responded_by=user_id,
            responded_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(invitation)

    if result.rowcount == 0:
        # Someone else changed it between our read and the update
        if invitation.status == InvitationStatus.ACCEPTED:
            return await _relationship_for_accepted(db, invitation, user_id)
        if invitation.status == InvitationStatus.EXPIRED or (
            invitation.status == InvitationStatus.PENDING and is_expired(invitation, now)
        ):
            raise InvitationExpired()
        raise InvitationNotPending()

    parent_id, child_id = derive_relationship_pair(
        invitation.inviter_role, invitation.inviter_id, user_id,
    )
    relationship = await link_family_members(db, parent_id, child_id)
    logger.info("Invitation %s accepted by %s", invitation.id, user_id)
    return relationship


async def accept_invitation_by_code(
    db: AsyncSession,
    code: str,
    *,
    user_id: uuid.UUID,
    user_email: str,
) -> FamilyRelationship:
    """Accept using the code shared out-of-band."""
    invitation = await get_invitation_by_code(db, code)
    return await accept_invitation(
        db, invitation.id, user_id=user_id, user_email=user_email,
    )


async def decline_invitation(
    db: AsyncSession,
    invitation_id: uuid.UUID,
    *,
    user_id: uuid.UUID,
    user_email: str,
) -> FamilyInvitation:
    """Decline a pending invitation. Expired invitations may still be declined."""
    invitation = await get_invitation(db, invitation_id)
    _ensure_invitee(invitation, user_id, user_email)

    if invitation.status != InvitationStatus.PENDING:
        raise InvitationNotPending()

    now = _utcnow()
    result = await db.execute(
        update(FamilyInvitation)
        .where(
            FamilyInvitation.id == invitation.id,
            FamilyInvitation.status == InvitationStatus.PENDING,
        )
        .values(
            status=InvitationStatus.DECLINED,
            responded_by=user_id,
            responded_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(invitation)
    if result.rowcount == 0:
        raise InvitationNotPending()

    logger.info("Invitation %s declined by %s", invitation.id, user_id)
    return invitation


async def resend_invitation(
    db: AsyncSession,
    invitation_id: uuid.UUID,
    *,
    inviter_id: uuid.UUID,
    inviter_name: str,
    notifier: InvitationNotifier | None = None,
) -> InvitationResult:
    """Send the notification for a pending invitation again."""
    invitation = await get_invitation(db, invitation_id)
    if invitation.inviter_id != inviter_id:
        raise NotAuthorized("Only the inviter can resend this invitation")
    if invitation.status != InvitationStatus.PENDING:
        raise InvitationNotPending()
    if is_expired(invitation):
        raise InvitationExpired()

    delivered, warning = await _dispatch(notifier, invitation, inviter_name)
    return InvitationResult(invitation=invitation, delivered=delivered, warning=warning)
