"""Collaboration invitations: invite -> accept | reject, and the co-management grants they create."""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from msme_passport.config import get_settings
from msme_passport.models.business import BusinessProfile
from msme_passport.models.collaboration import (
    BusinessCollaboration,
    CollaborationInvitation,
    InvitationStatus,
    COLLABORATOR_ROLE,
)
from msme_passport.models.user import User
from msme_passport.services.eligibility import can_add_collaborators, collaboration_eligibility_reason
from msme_passport.services.errors import WorkflowError
from msme_passport.services.tokens import compute_expiry, is_expired

log = logging.getLogger("uvicorn.error")

NOT_ELIGIBLE_FOR_COLLABORATION = "NOT_ELIGIBLE_FOR_COLLABORATION"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_business_collaborator(db: Session, business_id: str, user_id: str) -> bool:
    return (
        db.query(BusinessCollaboration)
        .filter(
            BusinessCollaboration.business_id == business_id,
            BusinessCollaboration.collaborator_id == user_id,
            BusinessCollaboration.status == InvitationStatus.accepted.value,
        )
        .first()
        is not None
    )


def can_manage_business(db: Session, business: BusinessProfile, user: User) -> bool:
    """Owner or accepted collaborator."""
    return business.user_id == user.id or is_business_collaborator(db, business.id, user.id)


def _expire(invitation: CollaborationInvitation) -> None:
    invitation.status = InvitationStatus.expired.value


def send_invitation(
    db: Session,
    *,
    business_id: str | None,
    invitee_email: str | None,
    inviter_id: str | None,
    message: str | None,
    now: datetime,
) -> CollaborationInvitation:
    """Create a pending invitation. Checks run in a fixed order and the first failure wins."""
    invitee_email = normalize_email(invitee_email)
    if not business_id or not invitee_email or not inviter_id:
        raise WorkflowError(400, "Business ID, invitee email, and inviter ID are required")

    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise WorkflowError(404, "Business not found")
    if business.user_id != inviter_id:
        raise WorkflowError(403, "You can only invite collaborators to businesses you own")

    inviter = db.query(User).filter(User.id == inviter_id).first()
    if not inviter:
        raise WorkflowError(400, "Invalid inviter ID")
    if normalize_email(inviter.email) == invitee_email:
        raise WorkflowError(400, "You cannot invite yourself as a collaborator")

    invitee = db.query(User).filter(User.email == invitee_email).first()
    if not invitee:
        raise WorkflowError(400, "User with this email does not exist. They must create an account first.")

    existing = (
        db.query(CollaborationInvitation)
        .filter(
            CollaborationInvitation.business_id == business_id,
            CollaborationInvitation.invitee_email == invitee_email,
            CollaborationInvitation.status == InvitationStatus.pending.value,
        )
        .first()
    )
    if existing:
        if not is_expired(existing.expires_at, now):
            raise WorkflowError(400, "An invitation has already been sent to this user for this business")
        _expire(existing)
        db.flush()

    if not can_add_collaborators(business):
        raise WorkflowError(403, collaboration_eligibility_reason(business), NOT_ELIGIBLE_FOR_COLLABORATION)

    invitation = CollaborationInvitation(
        business_id=business_id,
        inviter_id=inviter_id,
        invitee_email=invitee_email,
        message=(message or "").strip() or None,
        status=InvitationStatus.pending.value,
        expires_at=compute_expiry(now, days=get_settings().invitation_expire_days),
    )
    db.add(invitation)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with an identical request; the partial unique index kept one pending row
        db.rollback()
        raise WorkflowError(400, "An invitation has already been sent to this user for this business")
    db.refresh(invitation)
    log.info("[Collaboration] Invitation %s sent for business %s to %s", invitation.id, business_id, invitee_email)
    return invitation


def pending_invitations_for(db: Session, user: User, now: datetime) -> list[CollaborationInvitation]:
    invitations = (
        db.query(CollaborationInvitation)
        .filter(
            CollaborationInvitation.invitee_email == normalize_email(user.email),
            CollaborationInvitation.status == InvitationStatus.pending.value,
        )
        .order_by(CollaborationInvitation.created_at)
        .all()
    )
    return [inv for inv in invitations if not is_expired(inv.expires_at, now)]


def respond_to_invitation(
    db: Session,
    *,
    invitation_id: str,
    user: User,
    action: str,
    now: datetime,
) -> CollaborationInvitation:
    """Accept or reject a pending invitation addressed to `user`. Both outcomes are terminal."""
    invitation = db.query(CollaborationInvitation).filter(CollaborationInvitation.id == invitation_id).first()
    if not invitation:
        raise WorkflowError(404, "Invitation not found")
    if invitation.invitee_email != normalize_email(user.email):
        raise WorkflowError(403, "This invitation was not sent to you")
    if invitation.status != InvitationStatus.pending.value:
        raise WorkflowError(400, f"Invitation has already been {invitation.status}")
    if is_expired(invitation.expires_at, now):
        _expire(invitation)
        db.commit()
        raise WorkflowError(400, "Invitation has expired")

    if action == "accept":
        invitation.status = InvitationStatus.accepted.value
        if not is_business_collaborator(db, invitation.business_id, user.id):
            db.add(
                BusinessCollaboration(
                    business_id=invitation.business_id,
                    owner_id=invitation.inviter_id,
                    collaborator_id=user.id,
                    status=InvitationStatus.accepted.value,
                    role=COLLABORATOR_ROLE,
                )
            )
    elif action == "reject":
        invitation.status = InvitationStatus.rejected.value
    else:
        raise WorkflowError(400, "Action must be 'accept' or 'reject'")
    db.commit()
    db.refresh(invitation)
    return invitation


def business_collaborators(db: Session, business_id: str) -> list[BusinessCollaboration]:
    return (
        db.query(BusinessCollaboration)
        .filter(
            BusinessCollaboration.business_id == business_id,
            BusinessCollaboration.status == InvitationStatus.accepted.value,
        )
        .order_by(BusinessCollaboration.created_at)
        .all()
    )


def remove_collaborator(db: Session, business_id: str, collaborator_id: str) -> bool:
    deleted = (
        db.query(BusinessCollaboration)
        .filter(
            BusinessCollaboration.business_id == business_id,
            BusinessCollaboration.collaborator_id == collaborator_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def collaborated_businesses(db: Session, user_id: str) -> list[BusinessProfile]:
    return (
        db.query(BusinessProfile)
        .join(BusinessCollaboration, BusinessCollaboration.business_id == BusinessProfile.id)
        .filter(
            BusinessCollaboration.collaborator_id == user_id,
            BusinessCollaboration.status == InvitationStatus.accepted.value,
        )
        .order_by(BusinessProfile.created_at)
        .all()
    )
