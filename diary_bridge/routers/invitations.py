"""Invitations router.

Endpoints for creating, listing, accepting and declining family invitations.
Service errors (``FamilyError``) are turned into JSON by the handler
registered in ``diary_bridge.main``.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from diary_bridge.config import settings
from diary_bridge.core.dependencies import Identity, get_current_identity
from diary_bridge.core.rate_limit import limiter
from diary_bridge.database import get_db
from diary_bridge.models.invitation import FamilyInvitation
from diary_bridge.schemas.family import RelationshipResponse
from diary_bridge.schemas.invitation import (
    InvitationCreate,
    InvitationCreatedResponse,
    InvitationRedeemRequest,
    InvitationResponse,
)
from diary_bridge.services import invitation_service
from diary_bridge.services.invitation_service import InvitationResult, is_expired
from diary_bridge.services.notification_service import InvitationNotifier, get_notifier

router = APIRouter(prefix="/invitations", tags=["Invitations"])


def _to_response(invitation: FamilyInvitation) -> InvitationResponse:
    response = InvitationResponse.model_validate(invitation)
    response.expired = is_expired(invitation)
    return response


def _to_created_response(result: InvitationResult) -> InvitationCreatedResponse:
    return InvitationCreatedResponse(
        invitation=_to_response(result.invitation),
        delivered=result.delivered,
        warning=result.warning,
    )


@router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.INVITATION_RATE_LIMIT)
async def create_invitation(
    request: Request,
    body: InvitationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[InvitationNotifier, Depends(get_notifier)],
    identity: Identity = Depends(get_current_identity),
):
    """Invite someone by e-mail.

    The response always carries the invitation code, even when the e-mail
    could not be delivered (``delivered`` is false and ``warning`` says so).
    """
    result = await invitation_service.create_invitation(
        db,
        inviter_id=identity.user_id,
        inviter_email=identity.email,
        inviter_name=identity.display_name,
        inviter_role=body.inviter_role or identity.user_type,
        invitee_email=body.invitee_email,
        notifier=notifier,
    )
    return _to_created_response(result)


@router.get("/received", response_model=list[InvitationResponse])
async def list_received_invitations(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Pending invitations addressed to the caller's e-mail."""
    invitations = await invitation_service.list_pending_invitations_received(
        db, identity.email,
    )
    return [_to_response(inv) for inv in invitations]


@router.get("/sent", response_model=list[InvitationResponse])
async def list_sent_invitations(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Pending invitations the caller created."""
    invitations = await invitation_service.list_pending_invitations_sent(
        db, identity.user_id,
    )
    return [_to_response(inv) for inv in invitations]


@router.post("/redeem", response_model=RelationshipResponse)
async def redeem_invitation(
    body: InvitationRedeemRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Accept an invitation using the code shared with the invitee."""
    return await invitation_service.accept_invitation_by_code(
        db,
        body.invitation_code,
        user_id=identity.user_id,
        user_email=identity.email,
    )


@router.post("/{invitation_id}/accept", response_model=RelationshipResponse)
async def accept_invitation(
    invitation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Accept an invitation. Repeating the call returns the same relationship."""
    return await invitation_service.accept_invitation(
        db,
        invitation_id,
        user_id=identity.user_id,
        user_email=identity.email,
    )


@router.post("/{invitation_id}/decline", response_model=InvitationResponse)
async def decline_invitation(
    invitation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Identity = Depends(get_current_identity),
):
    """Decline an invitation."""
    invitation = await invitation_service.decline_invitation(
        db,
        invitation_id,
        user_id=identity.user_id,
        user_email=identity.email,
    )
    return _to_response(invitation)


@router.post("/{invitation_id}/resend", response_model=InvitationCreatedResponse)
@limiter.limit(settings.INVITATION_RATE_LIMIT)
async def resend_invitation(
    request: Request,
    invitation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[InvitationNotifier, Depends(get_notifier)],
    identity: Identity = Depends(get_current_identity),
):
    """Send the invitation e-mail again. Only the inviter may do this."""
    result = await invitation_service.resend_invitation(
        db,
        invitation_id,
        inviter_id=identity.user_id,
        inviter_name=identity.display_name,
        notifier=notifier,
    )
    return _to_created_response(result)
