"""Collaboration invitations and the co-management grants they create."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.dependencies import get_current_user, get_now
from msme_passport.models.business import BusinessProfile
from msme_passport.models.user import User
from msme_passport.schemas.business import BusinessResponse
from msme_passport.schemas.collaboration import (
    CollaboratorResponse,
    InvitationCreate,
    InvitationRespond,
    InvitationResponse,
)
from msme_passport.services.audit_log import CATEGORY_COLLABORATION, create_log, request_context
from msme_passport.services.collaboration import (
    business_collaborators,
    can_manage_business,
    collaborated_businesses,
    pending_invitations_for,
    remove_collaborator,
    respond_to_invitation,
    send_invitation,
)
from msme_passport.services.errors import WorkflowError
from msme_passport.services.notifications import send_collaboration_invitation_email

router = APIRouter(prefix="/collaborations", tags=["collaborations"])


@router.post("/invitations", response_model=InvitationResponse, status_code=201)
def invite_collaborator(
    request: Request,
    data: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    try:
        invitation = send_invitation(
            db,
            business_id=data.business_id,
            invitee_email=data.invitee_email,
            inviter_id=current_user.id,
            message=data.message,
            now=now,
        )
    except WorkflowError as e:
        raise e.to_http()
    business_name = invitation.business.business_name
    create_log(
        db,
        CATEGORY_COLLABORATION,
        "Collaboration invitation sent",
        f"{current_user.email} invited {invitation.invitee_email} to collaborate on {business_name}.",
        business_id=invitation.business_id,
        invitation_id=invitation.id,
        actor_user_id=current_user.id,
        actor_email=current_user.email,
        meta={"invitee_email": invitation.invitee_email, "expires_at": invitation.expires_at},
        **request_context(request),
    )
    db.commit()
    send_collaboration_invitation_email(
        invitation.invitee_email,
        current_user.full_name or current_user.email,
        business_name,
        invitation.message,
    )
    return InvitationResponse.from_invitation(invitation)


@router.get("/invitations", response_model=list[InvitationResponse])
def my_pending_invitations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    return [InvitationResponse.from_invitation(i) for i in pending_invitations_for(db, current_user, now)]


@router.post("/invitations/{invitation_id}/respond", response_model=InvitationResponse)
def respond(
    request: Request,
    invitation_id: str,
    data: InvitationRespond,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    try:
        invitation = respond_to_invitation(db, invitation_id=invitation_id, user=current_user, action=data.action, now=now)
    except WorkflowError as e:
        raise e.to_http()
    create_log(
        db,
        CATEGORY_COLLABORATION,
        f"Collaboration invitation {invitation.status}",
        f"{current_user.email} {invitation.status} the invitation to collaborate on business id={invitation.business_id}.",
        business_id=invitation.business_id,
        invitation_id=invitation.id,
        actor_user_id=current_user.id,
        actor_email=current_user.email,
        meta={"action": data.action},
        **request_context(request),
    )
    db.commit()
    return InvitationResponse.from_invitation(invitation)


@router.get("/businesses", response_model=list[BusinessResponse])
def my_collaborated_businesses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return [BusinessResponse.from_business(b) for b in collaborated_businesses(db, current_user.id)]


@router.get("/businesses/{business_id}/collaborators", response_model=list[CollaboratorResponse])
def list_collaborators(business_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    if not can_manage_business(db, business, current_user):
        raise HTTPException(status_code=403, detail="Access denied")
    return [CollaboratorResponse.from_collaboration(c) for c in business_collaborators(db, business_id)]


@router.delete("/businesses/{business_id}/collaborators/{collaborator_id}")
def revoke_collaborator(
    request: Request,
    business_id: str,
    collaborator_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Owner only. Invitation history is left as it was."""
    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    if business.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the business owner can remove collaborators")
    if not remove_collaborator(db, business_id, collaborator_id):
        raise HTTPException(status_code=404, detail="Collaborator not found")
    create_log(
        db,
        CATEGORY_COLLABORATION,
        "Collaborator removed",
        f"Owner removed collaborator id={collaborator_id} from {business.business_name}.",
        business_id=business_id,
        actor_user_id=current_user.id,
        actor_email=current_user.email,
        meta={"collaborator_id": collaborator_id},
        **request_context(request),
    )
    db.commit()
    return {"status": "success", "message": "Collaborator removed."}
