"""Business profiles: create, edit, archive, delete, pay, and issue the MSME passport."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.dependencies import get_current_user, get_now
from msme_passport.models.affiliate import BusinessSecondaryAffiliate, MainAffiliate, SecondaryAffiliate
from msme_passport.models.business import BusinessProfile
from msme_passport.models.user import User
from msme_passport.schemas.business import (
    AccessibleBusinesses,
    AffiliateResponse,
    ArchiveRequest,
    BusinessCreate,
    BusinessResponse,
    BusinessUpdate,
    EligibilityResponse,
    PassportResponse,
    SecondaryAffiliatesUpdate,
)
from msme_passport.services.audit_log import (
    CATEGORY_PASSPORT,
    CATEGORY_PAYMENT,
    CATEGORY_STATUS_CHANGE,
    create_log,
    request_context,
)
from msme_passport.services.collaboration import can_manage_business, collaborated_businesses
from msme_passport.services.completion import business_completion_percentage, missing_business_fields
from msme_passport.services.eligibility import (
    business_creation_block,
    can_add_collaborators,
    collaboration_eligibility_reason,
    is_eligible_for_verification,
    verification_eligibility_reason,
)
from msme_passport.services.errors import WorkflowError
from msme_passport.services.passport import issue_passport
from msme_passport.services.verification import business_state, record_payment

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/businesses", tags=["businesses"])

# Plain columns a create/update request may set directly
_COLUMN_FIELDS = (
    "business_name",
    "business_email",
    "category",
    "address",
    "phone",
    "website",
    "tagline",
    "business_registration_number",
    "owner_name",
    "year_established",
    "number_of_employees",
    "profile_picture",
    "primary_affiliate_id",
)


def _get_business(db: Session, business_id: str) -> BusinessProfile:
    business = db.query(BusinessProfile).filter(BusinessProfile.id == business_id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def _get_managed_business(db: Session, business_id: str, user: User) -> BusinessProfile:
    """Owner or accepted collaborator."""
    business = _get_business(db, business_id)
    if not can_manage_business(db, business, user):
        raise HTTPException(status_code=403, detail="Access denied")
    return business


def _get_owned_business(db: Session, business_id: str, user: User) -> BusinessProfile:
    business = _get_business(db, business_id)
    if business.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the business owner can perform this action")
    return business


def _check_primary_affiliate(db: Session, affiliate_id: str) -> None:
    if not db.query(MainAffiliate).filter(MainAffiliate.id == affiliate_id).first():
        raise HTTPException(status_code=400, detail="Invalid primary chamber")


def _replace_secondary_affiliates(db: Session, business: BusinessProfile, affiliate_ids: list[str]) -> None:
    wanted = list(dict.fromkeys(i for i in affiliate_ids if i))
    if wanted:
        found = {a.id for a in db.query(SecondaryAffiliate).filter(SecondaryAffiliate.id.in_(wanted)).all()}
        unknown = [i for i in wanted if i not in found]
        if unknown:
            raise HTTPException(status_code=400, detail=f"Invalid secondary chamber: {', '.join(unknown)}")
    # Reuse surviving links; a delete-then-insert of the same pair trips the unique constraint
    current = {link.secondary_affiliate_id: link for link in business.secondary_affiliates}
    business.secondary_affiliates = [
        current.get(i) or BusinessSecondaryAffiliate(secondary_affiliate_id=i) for i in wanted
    ]


def _apply_fields(db: Session, business: BusinessProfile, data: BusinessCreate | BusinessUpdate) -> None:
    values = data.model_dump(include=set(_COLUMN_FIELDS), exclude_unset=True)
    if values.get("primary_affiliate_id"):
        _check_primary_affiliate(db, values["primary_affiliate_id"])
    for field, value in values.items():
        if field in ("business_name", "primary_affiliate_id") and not value:
            continue
        setattr(business, field, value if value != "" else None)
    for category, contents in data.documents().items():
        business.set_documents(category, contents)
    if data.secondary_affiliate_ids is not None:
        _replace_secondary_affiliates(db, business, data.secondary_affiliate_ids)


@router.post("", response_model=BusinessResponse, status_code=201)
def create_business(
    request: Request,
    data: BusinessCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Lock the owner row so eligibility, priority and business_count are read and written together
    owner = db.query(User).filter(User.id == current_user.id).with_for_update().first()
    block = business_creation_block(owner)
    if block:
        code = block.pop("code")
        message = block.pop("message")
        raise WorkflowError(403, message, code, **block).to_http()

    existing = db.query(BusinessProfile).filter(BusinessProfile.user_id == owner.id).count()
    business = BusinessProfile(user_id=owner.id, priority=existing + 1)
    _apply_fields(db, business, data)
    db.add(business)
    db.query(User).filter(User.id == owner.id).update(
        {User.business_count: User.business_count + 1}, synchronize_session=False
    )
    db.flush()
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Business registered",
        f"User registered business: {business.business_name} (id={business.id}).",
        business_id=business.id,
        actor_user_id=owner.id,
        actor_email=owner.email,
        meta={"business_id": business.id, "business_name": business.business_name, "priority": business.priority},
        **request_context(request),
    )
    db.commit()
    db.refresh(business)
    return BusinessResponse.from_business(business)


@router.get("", response_model=list[BusinessResponse])
def list_my_businesses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Owned businesses; archived ones last, otherwise in creation order."""
    businesses = (
        db.query(BusinessProfile)
        .filter(BusinessProfile.user_id == current_user.id)
        .order_by(BusinessProfile.archived, BusinessProfile.priority, BusinessProfile.created_at)
        .all()
    )
    return [BusinessResponse.from_business(b) for b in businesses]


@router.get("/all", response_model=AccessibleBusinesses)
def list_accessible_businesses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    owned = (
        db.query(BusinessProfile)
        .filter(BusinessProfile.user_id == current_user.id)
        .order_by(BusinessProfile.archived, BusinessProfile.priority, BusinessProfile.created_at)
        .all()
    )
    return AccessibleBusinesses(
        owned=[BusinessResponse.from_business(b) for b in owned],
        collaborated=[BusinessResponse.from_business(b) for b in collaborated_businesses(db, current_user.id)],
    )


@router.get("/{business_id}", response_model=BusinessResponse)
def get_business(business_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return BusinessResponse.from_business(_get_managed_business(db, business_id, current_user))


@router.patch("/{business_id}", response_model=BusinessResponse)
def update_business(
    business_id: str,
    data: BusinessUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Owner or collaborator edits. Review state is left alone; a rejected business stays rejected until an admin acts."""
    business = _get_managed_business(db, business_id, current_user)
    _apply_fields(db, business, data)
    db.commit()
    db.refresh(business)
    return BusinessResponse.from_business(business)


@router.post("/{business_id}/archive", response_model=BusinessResponse)
def archive_business(
    business_id: str,
    data: ArchiveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    business = _get_owned_business(db, business_id, current_user)
    business.archived = data.archived
    db.commit()
    db.refresh(business)
    return BusinessResponse.from_business(business)


@router.delete("/{business_id}")
def delete_business(
    request: Request,
    business_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    business = _get_owned_business(db, business_id, current_user)
    name = business.business_name
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Business deleted",
        f"Owner deleted business: {name} (id={business_id}).",
        actor_user_id=current_user.id,
        actor_email=current_user.email,
        meta={"business_id": business_id, "business_name": name},
        **request_context(request),
    )
    db.delete(business)
    db.query(User).filter(User.id == current_user.id, User.business_count > 0).update(
        {User.business_count: User.business_count - 1}, synchronize_session=False
    )
    db.commit()
    return {"status": "success", "message": f"Business '{name}' deleted."}


@router.post("/{business_id}/payment", response_model=BusinessResponse)
def pay_for_business(
    request: Request,
    business_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Simulated payment: marks the business paid without touching its review state."""
    business = _get_owned_business(db, business_id, current_user)
    if business.paid:
        return BusinessResponse.from_business(business)
    record_payment(business)
    create_log(
        db,
        CATEGORY_PAYMENT,
        "Payment recorded",
        f"Payment recorded for business: {business.business_name} (id={business.id}).",
        business_id=business.id,
        actor_user_id=current_user.id,
        actor_email=current_user.email,
        meta={"payment_status": business.payment_status, "simulated": True},
        **request_context(request),
    )
    db.commit()
    db.refresh(business)
    return BusinessResponse.from_business(business)


@router.get("/{business_id}/eligibility", response_model=EligibilityResponse)
def business_eligibility(business_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    business = _get_managed_business(db, business_id, current_user)
    return EligibilityResponse(
        business_id=business.id,
        status=business_state(business).value,
        completion_percentage=business_completion_percentage(business),
        missing_fields=missing_business_fields(business),
        eligible_for_verification=is_eligible_for_verification(business),
        verification_reason=verification_eligibility_reason(business),
        can_add_collaborators=can_add_collaborators(business),
        collaboration_reason=collaboration_eligibility_reason(business),
    )


@router.get("/{business_id}/affiliates", response_model=list[AffiliateResponse])
def get_secondary_affiliates(business_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    business = _get_managed_business(db, business_id, current_user)
    return [AffiliateResponse.model_validate(link.secondary_affiliate) for link in business.secondary_affiliates]


@router.put("/{business_id}/affiliates", response_model=list[AffiliateResponse])
def replace_secondary_affiliates(
    business_id: str,
    data: SecondaryAffiliatesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    business = _get_managed_business(db, business_id, current_user)
    _replace_secondary_affiliates(db, business, data.secondary_affiliate_ids)
    db.commit()
    db.refresh(business)
    return [AffiliateResponse.model_validate(link.secondary_affiliate) for link in business.secondary_affiliates]


@router.post("/{business_id}/passport", response_model=PassportResponse)
def generate_passport(
    request: Request,
    business_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """Issue the QR payload and passport id once; later calls return the stored values."""
    business = _get_managed_business(db, business_id, current_user)
    already_issued = bool(business.qr_code and business.passport_id)
    qr_code, passport_id = issue_passport(db, business, now)
    if not already_issued:
        create_log(
            db,
            CATEGORY_PASSPORT,
            "Passport issued",
            f"Passport {passport_id} issued for business: {business.business_name} (id={business.id}).",
            business_id=business.id,
            actor_user_id=current_user.id,
            actor_email=current_user.email,
            meta={"passport_id": passport_id},
            **request_context(request),
        )
        db.commit()
    return PassportResponse(business_id=business.id, qr_code=qr_code, passport_id=passport_id)
