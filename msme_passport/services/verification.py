"""User and business verification state machines.

Users:      incomplete -> awaiting -> verified   (admin moves awaiting <-> verified)
Businesses: incomplete -> pending -> verified | rejected
Payment is a separate pending/paid flag that any of these states can carry.
"""
import enum

from msme_passport.models.business import PaymentStatus, ReviewStatus
from msme_passport.schemas.user import NextAction, UserVerificationStatus
from msme_passport.services.completion import (
    business_completion_percentage,
    business_field_percentage,
    missing_business_fields,
    missing_user_fields,
    user_completion_percentage,
)
from msme_passport.services.eligibility import (
    PROFILE_INCOMPLETE,
    VERIFICATION_THRESHOLD,
    can_user_create_businesses,
)
from msme_passport.services.errors import WorkflowError

BUSINESS_INCOMPLETE = "BUSINESS_INCOMPLETE"


class UserState(str, enum.Enum):
    incomplete = "incomplete"
    awaiting = "awaiting"
    verified = "verified"


class BusinessState(str, enum.Enum):
    incomplete = "incomplete"
    pending = "pending"
    verified = "verified"
    rejected = "rejected"


def user_state(user) -> UserState:
    if user_completion_percentage(user) < 100:
        return UserState.incomplete
    return UserState.verified if user.verified else UserState.awaiting


def business_state(business) -> BusinessState:
    if business.rejected:
        return BusinessState.rejected
    if business.verified:
        return BusinessState.verified
    if business_completion_percentage(business) >= VERIFICATION_THRESHOLD:
        return BusinessState.pending
    return BusinessState.incomplete


def user_verification_status(user) -> UserVerificationStatus:
    state = user_state(user)
    pct = user_completion_percentage(user)
    missing = missing_user_fields(user)
    if state == UserState.verified:
        message = "Profile verified - You can create businesses"
        next_steps = ["You can now create and manage businesses"]
    elif state == UserState.awaiting:
        message = "Profile complete - Awaiting admin verification"
        next_steps = [
            "Your profile has been submitted for review",
            "Admin verification typically takes 1-3 business days",
            "You will receive an email once verified",
        ]
    else:
        message = f"Complete your profile ({pct}% complete)"
        next_steps = ["Complete all required profile fields", "Upload your IC document", "Submit for admin review"]
        if missing:
            next_steps.append(f"Missing: {', '.join(missing)}")
    return UserVerificationStatus(
        status=state.value,
        message=message,
        completion_percentage=pct,
        can_create_businesses=can_user_create_businesses(user),
        missing_fields=missing,
        next_steps=next_steps,
        next_actions=user_next_actions(user),
    )


def user_next_actions(user) -> list[NextAction]:
    state = user_state(user)
    actions = []
    if state == UserState.incomplete:
        for label in missing_user_fields(user):
            actions.append(
                NextAction(
                    action="complete_" + label.lower().replace(" ", "_"),
                    description=f"Add {label} to your profile",
                    priority="high",
                )
            )
    elif state == UserState.awaiting:
        actions.append(
            NextAction(action="await_verification", description="Wait for admin verification (1-3 business days)", priority="medium")
        )
    else:
        actions.append(
            NextAction(action="create_business", description="Create your first business profile", priority="medium")
        )
    return actions


# --- admin transitions ---------------------------------------------------

def set_user_verification(user, verified: bool) -> None:
    """Admin verify (awaiting -> verified) or revoke (verified -> awaiting)."""
    if verified:
        pct = user_completion_percentage(user)
        if pct < 100:
            missing = missing_user_fields(user)
            raise WorkflowError(
                400,
                f"Cannot verify user with incomplete profile ({pct}% complete). Missing: {', '.join(missing)}",
                PROFILE_INCOMPLETE,
                completion_percentage=pct,
                missing_fields=missing,
            )
    user.verified = verified


def verify_business(business, verified: bool, payment_status: PaymentStatus | None = None) -> None:
    """Admin verify/unverify. Verifying re-checks field completion now and clears any rejection."""
    if verified:
        pct = business_field_percentage(business)
        if pct < VERIFICATION_THRESHOLD:
            raise WorkflowError(
                400,
                "Business profile must be at least 99% complete for verification",
                BUSINESS_INCOMPLETE,
                completion_percentage=pct,
                required_percentage=VERIFICATION_THRESHOLD,
                missing_fields=missing_business_fields(business),
            )
        business.review_status = ReviewStatus.verified
        business.rejection_reason = None
    elif business.review_status == ReviewStatus.verified:
        business.review_status = ReviewStatus.unverified
    if payment_status is not None:
        business.payment_status = payment_status


def reject_business(business, rejected: bool, reason: str | None) -> None:
    """Reject (clears verification) or explicitly un-reject back to unverified."""
    if rejected:
        reason = (reason or "").strip()
        if not reason:
            raise WorkflowError(400, "A rejection reason is required")
        business.review_status = ReviewStatus.rejected
        business.rejection_reason = reason
    elif business.review_status == ReviewStatus.rejected:
        business.review_status = ReviewStatus.unverified
        business.rejection_reason = None


def record_payment(business) -> None:
    """Simulated payment: marks paid, leaves the review state alone."""
    business.payment_status = PaymentStatus.paid
