"""Personal profile and the user's own verification status."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.dependencies import get_current_user
from msme_passport.models.user import User
from msme_passport.schemas.user import UserProfileResponse, UserProfileUpdate, UserVerificationStatus
from msme_passport.services.completion import missing_user_fields, user_completion_percentage
from msme_passport.services.verification import user_verification_status

router = APIRouter(prefix="/users", tags=["users"])


def _profile_response(user: User) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        date_of_birth=user.date_of_birth,
        gender=user.gender,
        profile_picture=user.profile_picture,
        ic_document=user.ic_document,
        email_verified=user.email_verified,
        verified=user.verified,
        business_count=user.business_count or 0,
        completion_percentage=user_completion_percentage(user),
        missing_fields=missing_user_fields(user),
        created_at=user.created_at,
    )


@router.get("/me/profile", response_model=UserProfileResponse)
def get_my_profile(current_user: User = Depends(get_current_user)):
    return _profile_response(current_user)


@router.patch("/me/profile", response_model=UserProfileResponse)
def update_my_profile(
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Editing the profile does not revoke an existing admin verification."""
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("first_name", "last_name"):
            # Names are required at signup and cannot be blanked
            if value:
                setattr(current_user, field, value)
            continue
        setattr(current_user, field, value or None)
    db.commit()
    db.refresh(current_user)
    return _profile_response(current_user)


@router.get("/me/verification-status", response_model=UserVerificationStatus)
def my_verification_status(current_user: User = Depends(get_current_user)):
    return user_verification_status(current_user)
