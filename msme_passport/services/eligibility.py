"""Eligibility predicates and the reasons shown when they fail.

Pure functions of the entity's current fields: no database access, no side effects.
"""
from msme_passport.services.completion import (
    business_completion_percentage,
    missing_business_fields,
    missing_user_fields,
    user_completion_percentage,
)

PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"
AWAITING_VERIFICATION = "AWAITING_VERIFICATION"
VERIFICATION_THRESHOLD = 99


# --- users ---------------------------------------------------------------

def is_user_profile_complete(user) -> bool:
    return user_completion_percentage(user) == 100


def is_user_eligible_for_verification(user) -> bool:
    """Profile is complete and an admin has not verified it yet."""
    return not user.verified and is_user_profile_complete(user)


def user_verification_eligibility_reason(user) -> str:
    if user.verified:
        return "User is already verified"
    missing = missing_user_fields(user)
    if missing:
        return f"Complete all required fields to be eligible for verification: {', '.join(missing)}"
    return "User is eligible for verification"


def can_user_create_businesses(user) -> bool:
    return bool(user.verified) and is_user_profile_complete(user)


def business_creation_reason(user) -> str:
    pct = user_completion_percentage(user)
    missing = missing_user_fields(user)
    if not user.verified:
        if pct < 100:
            return (
                f"Complete your profile ({pct}% complete) and await admin verification to create businesses. "
                f"Missing: {', '.join(missing)}"
            )
        return (
            "Your profile is complete but awaiting admin verification. "
            "You'll be able to create businesses once verified by our admin team (1-3 business days)."
        )
    if pct < 100:
        return f"Complete your profile ({pct}% complete) to create businesses. Missing: {', '.join(missing)}"
    return "You can create businesses"


def business_creation_block(user) -> dict | None:
    """Machine-readable refusal for business creation, or None when the user is eligible."""
    if can_user_create_businesses(user):
        return None
    pct = user_completion_percentage(user)
    if pct < 100:
        return {
            "code": PROFILE_INCOMPLETE,
            "message": business_creation_reason(user),
            "completion_percentage": pct,
            "missing_fields": missing_user_fields(user),
        }
    return {
        "code": AWAITING_VERIFICATION,
        "message": business_creation_reason(user),
        "completion_percentage": pct,
    }


# --- businesses ----------------------------------------------------------

def is_eligible_for_verification(business) -> bool:
    if business.rejected or business.verified:
        return False
    return business_completion_percentage(business) >= VERIFICATION_THRESHOLD


def verification_eligibility_reason(business) -> str:
    if business.rejected:
        return "Business has been rejected and cannot be verified"
    if business.verified:
        return "Business is already verified"
    pct = business_completion_percentage(business)
    if pct < VERIFICATION_THRESHOLD:
        missing = missing_business_fields(business)
        return f"Profile completion is {pct}%. Complete all required fields to reach 99%: {', '.join(missing)}"
    return "Business is eligible for verification"


def can_add_collaborators(business) -> bool:
    """Verified, paid, not rejected and every required field filled (secondary chambers optional)."""
    if business.rejected or not business.verified or not business.paid:
        return False
    return not missing_business_fields(business)


def collaboration_eligibility_reason(business) -> str:
    if business.rejected:
        return "Business has been rejected and cannot add collaborators"
    if not business.verified:
        return "Business must be verified by admin before adding collaborators"
    if not business.paid:
        return "Payment must be completed before adding collaborators"
    missing = missing_business_fields(business)
    if missing:
        return f"Complete these required fields: {', '.join(missing)}"
    return "Eligible to add collaborators"
