import pytest

from msme_passport.models import PaymentStatus, ReviewStatus
from msme_passport.services.completion import business_completion_percentage
from msme_passport.services.errors import WorkflowError
from msme_passport.services.verification import (
    BUSINESS_INCOMPLETE,
    BusinessState,
    UserState,
    business_state,
    record_payment,
    reject_business,
    set_user_verification,
    user_state,
    user_verification_status,
    verify_business,
)

from factories import make_business, make_user


def test_user_states():
    assert user_state(make_user(verified=False, gender=None)) == UserState.incomplete
    assert user_state(make_user(verified=False)) == UserState.awaiting
    assert user_state(make_user(verified=True)) == UserState.verified


def test_admin_cannot_verify_incomplete_user():
    user = make_user(verified=False, ic_document=None)
    with pytest.raises(WorkflowError) as exc:
        set_user_verification(user, True)
    assert exc.value.status_code == 400
    assert exc.value.detail["error"] == "PROFILE_INCOMPLETE"
    assert exc.value.detail["missing_fields"] == ["IC Document"]
    assert not user.verified


def test_admin_verify_and_revoke_user():
    user = make_user(verified=False)
    set_user_verification(user, True)
    assert user_state(user) == UserState.verified
    set_user_verification(user, False)
    assert user_state(user) == UserState.awaiting


def test_revoking_is_allowed_for_incomplete_profile():
    user = make_user(verified=True, gender=None)
    set_user_verification(user, False)
    assert user.verified is False


def test_verification_status_for_incomplete_user_lists_actions():
    status = user_verification_status(make_user(verified=False, gender=None, phone_number=""))
    assert status.status == "incomplete"
    assert status.completion_percentage == 71
    assert status.missing_fields == ["Phone Number", "Gender"]
    assert status.can_create_businesses is False
    assert [a.action for a in status.next_actions] == ["complete_phone_number", "complete_gender"]
    assert all(a.priority == "high" for a in status.next_actions)


def test_verification_status_for_awaiting_and_verified_user():
    awaiting = user_verification_status(make_user(verified=False))
    assert awaiting.status == "awaiting"
    assert awaiting.next_actions[0].action == "await_verification"
    verified = user_verification_status(make_user(verified=True))
    assert verified.status == "verified"
    assert verified.can_create_businesses is True
    assert verified.next_actions[0].action == "create_business"


def test_business_states():
    assert business_state(make_business(omit=("tagline",))) == BusinessState.incomplete
    assert business_state(make_business()) == BusinessState.pending
    assert business_state(make_business(review_status=ReviewStatus.verified)) == BusinessState.verified
    assert business_state(make_business(review_status=ReviewStatus.rejected)) == BusinessState.rejected


def test_verify_business_rechecks_completion():
    business = make_business(omit=("tagline",))
    with pytest.raises(WorkflowError) as exc:
        verify_business(business, True, PaymentStatus.paid)
    detail = exc.value.detail
    assert detail["error"] == BUSINESS_INCOMPLETE
    assert detail["completion_percentage"] == 92
    assert detail["missing_fields"] == ["Tagline"]
    assert business.review_status == ReviewStatus.unverified
    assert business.payment_status == PaymentStatus.pending


def test_verify_business_with_payment_reaches_100():
    business = make_business()
    verify_business(business, True, PaymentStatus.paid)
    assert business.verified and business.paid
    assert business_completion_percentage(business) == 100


def test_verify_leaves_payment_alone_when_not_given():
    business = make_business(payment_status=PaymentStatus.paid)
    verify_business(business, True)
    assert business.paid


def test_unverify_returns_to_pending_and_can_reset_payment():
    business = make_business(review_status=ReviewStatus.verified, payment_status=PaymentStatus.paid)
    verify_business(business, False, PaymentStatus.pending)
    assert business_state(business) == BusinessState.pending
    assert not business.paid


def test_reject_verified_business():
    business = make_business(review_status=ReviewStatus.verified, payment_status=PaymentStatus.paid)
    reject_business(business, True, "Invalid registration number")
    assert business.verified is False
    assert business.rejected is True
    assert business.rejection_reason == "Invalid registration number"
    assert business_completion_percentage(business) == 0


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_requires_reason(reason):
    business = make_business()
    with pytest.raises(WorkflowError) as exc:
        reject_business(business, True, reason)
    assert exc.value.status_code == 400
    assert business.review_status == ReviewStatus.unverified


def test_unreject_clears_reason():
    business = make_business(review_status=ReviewStatus.rejected)
    business.rejection_reason = "Blurry certificate"
    reject_business(business, False, None)
    assert business.review_status == ReviewStatus.unverified
    assert business.rejection_reason is None
    assert business_state(business) == BusinessState.pending


def test_unreject_does_not_touch_a_verified_business():
    business = make_business(review_status=ReviewStatus.verified)
    reject_business(business, False, None)
    assert business.verified


def test_verify_clears_previous_rejection():
    business = make_business(review_status=ReviewStatus.rejected)
    business.rejection_reason = "Blurry certificate"
    verify_business(business, True, PaymentStatus.paid)
    assert business.verified and not business.rejected
    assert business.rejection_reason is None


def test_rejected_incomplete_business_cannot_be_verified():
    business = make_business(omit=("address",), review_status=ReviewStatus.rejected)
    with pytest.raises(WorkflowError):
        verify_business(business, True)
    assert business.rejected


def test_simulated_payment_leaves_review_state():
    business = make_business()
    record_payment(business)
    assert business.paid
    assert business_state(business) == BusinessState.pending
    assert business_completion_percentage(business) == 99
