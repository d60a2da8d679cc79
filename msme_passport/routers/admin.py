"""Administrator actions: user and business verification, rejection, statistics."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.dependencies import require_admin
from msme_passport.models.business import BusinessProfile
from msme_passport.models.user import User
from msme_passport.schemas.admin import (
    AdminBusinessResponse,
    AdminStats,
    AdminUserResponse,
    OwnerSummary,
    RejectBusinessRequest,
    VerifyBusinessRequest,
    VerifyUserRequest,
)
from msme_passport.schemas.business import BusinessResponse
from msme_passport.services.audit_log import (
    CATEGORY_PAYMENT,
    CATEGORY_STATUS_CHANGE,
    create_log,
    request_context,
)
from msme_passport.services.completion import missing_user_fields, user_completion_percentage
from msme_passport.services.eligibility import is_user_eligible_for_verification, user_verification_eligibility_reason
from msme_passport.services.errors import WorkflowError
from msme_passport.services.notifications import send_business_rejected_email, send_business_verified_email
from msme_passport.services.verification import (
    BusinessState,
    UserState,
    business_state,
    reject_business,
    set_user_verification,
    user_state,
    verify_business,
)

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/admin", tags=["admin"])


def _user_response(user: User) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        email_verified=user.email_verified,
        verified=user.verified,
        is_admin=user.is_admin,
        business_count=user.business_count or 0,
        completion_percentage=user_completion_percentage(user),
        missing_fields=missing_user_fields(user),
        status=user_state(user).value,
        eligible_for_verification=is_user_eligible_for_verification(user),
        verification_reason=user_verification_eligibility_reason(user),
        created_at=user.created_at,
    )


def _business_response(business: BusinessProfile) -> AdminBusinessResponse:
    owner = business.owner
    return AdminBusinessResponse(
        **BusinessResponse.from_business(business).model_dump(),
        owner=OwnerSummary(id=owner.id, email=owner.email, full_name=owner.full_name) if owner else None,
    )


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _get_business(db: Session, business_id: str) -> BusinessProfile:
    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


@router.get("/users", response_model=list[AdminUserResponse])
def list_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return [_user_response(u) for u in db.query(User).order_by(User.created_at).all()]


@router.patch("/users/{user_id}/verify", response_model=AdminUserResponse)
def verify_user(
    request: Request,
    user_id: str,
    data: VerifyUserRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user(db, user_id)
    try:
        set_user_verification(user, data.verified)
    except WorkflowError as e:
        raise e.to_http()
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "User verified" if data.verified else "User verification revoked",
        f"Admin set verified={data.verified} for user {user.email} (id={user.id}).",
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"user_id": user.id, "verified": data.verified},
        **request_context(request),
    )
    db.commit()
    db.refresh(user)
    return _user_response(user)


@router.delete("/users/{user_id}")
def delete_user(
    request: Request,
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Deletes the account together with its businesses, tokens and collaborations."""
    user = _get_user(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    email = user.email
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "User deleted",
        f"Admin deleted user {email} (id={user_id}).",
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"user_id": user_id, "email": email, "business_count": user.business_count},
        **request_context(request),
    )
    db.delete(user)
    db.commit()
    log.info("[Admin] Deleted user %s", email)
    return {"status": "success", "message": f"User {email} deleted."}


@router.get("/businesses", response_model=list[AdminBusinessResponse])
def list_businesses(
    status: str | None = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """All businesses, optionally filtered by derived status (incomplete, pending, verified, rejected)."""
    businesses = db.query(BusinessProfile).order_by(BusinessProfile.created_at).all()
    if status:
        businesses = [b for b in businesses if business_state(b).value == status]
    return [_business_response(b) for b in businesses]


@router.post("/businesses/{business_id}/verify", response_model=AdminBusinessResponse)
def admin_verify_business(
    request: Request,
    business_id: str,
    data: VerifyBusinessRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Completion is re-checked here, whatever the client last saw."""
    business = _get_business(db, business_id)
    was_verified = business.verified
    previous_payment = business.payment_status
    try:
        verify_business(business, data.verified, data.payment_status)
    except WorkflowError as e:
        raise e.to_http()
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Business verified" if data.verified else "Business verification revoked",
        f"Admin set verified={data.verified} for business {business.business_name} (id={business.id}).",
        business_id=business.id,
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"verified": data.verified, "payment_status": business.payment_status},
        **request_context(request),
    )
    if business.payment_status != previous_payment:
        create_log(
            db,
            CATEGORY_PAYMENT,
            "Payment status changed",
            f"Admin set payment_status={business.payment_status.value} for business {business.business_name}.",
            business_id=business.id,
            actor_user_id=admin.id,
            actor_email=admin.email,
            meta={"from": previous_payment, "to": business.payment_status},
            **request_context(request),
        )
    db.commit()
    db.refresh(business)
    if business.verified and not was_verified and business.owner:
        send_business_verified_email(business.owner.email, business.business_name)
    return _business_response(business)


@router.post("/businesses/{business_id}/reject", response_model=AdminBusinessResponse)
def admin_reject_business(
    request: Request,
    business_id: str,
    data: RejectBusinessRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    business = _get_business(db, business_id)
    try:
        reject_business(business, data.rejected, data.reason)
    except WorkflowError as e:
        raise e.to_http()
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Business rejected" if data.rejected else "Business rejection cleared",
        f"Admin set rejected={data.rejected} for business {business.business_name} (id={business.id}).",
        business_id=business.id,
        actor_user_id=admin.id,
        actor_email=admin.email,
        meta={"rejected": data.rejected, "reason": business.rejection_reason},
        **request_context(request),
    )
    db.commit()
    db.refresh(business)
    if business.rejected and business.owner:
        send_business_rejected_email(business.owner.email, business.business_name, business.rejection_reason)
    return _business_response(business)


@router.get("/stats", response_model=AdminStats)
def stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    users = db.query(User).all()
    businesses = db.query(BusinessProfile).all()
    user_states = [user_state(u) for u in users]
    business_states = [business_state(b) for b in businesses]
    return AdminStats(
        total_users=len(users),
        verified_users=user_states.count(UserState.verified),
        users_awaiting_verification=user_states.count(UserState.awaiting),
        total_businesses=len(businesses),
        verified_businesses=business_states.count(BusinessState.verified),
        pending_businesses=business_states.count(BusinessState.pending),
        rejected_businesses=business_states.count(BusinessState.rejected),
        paid_businesses=sum(1 for b in businesses if b.paid),
    )
