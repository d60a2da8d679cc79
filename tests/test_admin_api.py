import pytest

from msme_passport.models import AuditLog, BusinessProfile, PaymentStatus, ReviewStatus, User


@pytest.fixture
def admin(make_user):
    return make_user("admin@msmepassport.com.my", admin=True)


@pytest.fixture
def owner(make_user):
    return make_user("siti@kedaikopi.com.my")


def test_admin_routes_need_an_admin(client, auth_headers, owner):
    headers = auth_headers(owner)
    assert client.get("/admin/users", headers=headers).status_code == 403
    assert client.get("/admin/stats", headers=headers).status_code == 403
    assert client.get("/admin/users").status_code == 401


def test_verify_user_requires_complete_profile(client, auth_headers, admin, make_user, db):
    applicant = make_user("ali@tokoali.com.my", verified=False, ic_document=None)
    r = client.patch(f"/admin/users/{applicant.id}/verify", json={"verified": True}, headers=auth_headers(admin))
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "PROFILE_INCOMPLETE"
    assert detail["missing_fields"] == ["IC Document"]
    db.expire_all()
    assert db.get(User, applicant.id).verified is False


def test_verify_and_revoke_user(client, auth_headers, admin, make_user, db):
    applicant = make_user("ali@tokoali.com.my", verified=False)
    headers = auth_headers(admin)
    r = client.patch(f"/admin/users/{applicant.id}/verify", json={"verified": True}, headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "verified"
    r = client.patch(f"/admin/users/{applicant.id}/verify", json={"verified": False}, headers=headers)
    assert r.json()["status"] == "awaiting"
    assert db.query(AuditLog).filter(AuditLog.actor_user_id == admin.id).count() == 2


def test_list_users(client, auth_headers, admin, make_user):
    make_user("ali@tokoali.com.my", verified=False, gender=None)
    make_user("mei@kedaimei.com.my", verified=False)
    users = {u["email"]: u for u in client.get("/admin/users", headers=auth_headers(admin)).json()}
    ali = users["ali@tokoali.com.my"]
    assert ali["status"] == "incomplete"
    assert ali["completion_percentage"] == 86
    assert ali["eligible_for_verification"] is False
    assert "Gender" in ali["verification_reason"]

    mei = users["mei@kedaimei.com.my"]
    assert mei["eligible_for_verification"] is True
    assert mei["verification_reason"] == "User is eligible for verification"

    admin_row = users["admin@msmepassport.com.my"]
    assert admin_row["is_admin"] is True
    assert admin_row["eligible_for_verification"] is False
    assert admin_row["verification_reason"] == "User is already verified"


def test_verify_rechecks_business_completion(client, auth_headers, admin, owner, create_business):
    business = create_business(owner, tagline=None)
    r = client.post(
        f"/admin/businesses/{business['id']}/verify",
        json={"verified": True, "payment_status": "paid"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "BUSINESS_INCOMPLETE"
    assert detail["completion_percentage"] == 92
    assert detail["required_percentage"] == 99
    assert detail["missing_fields"] == ["Tagline"]


def test_verify_with_payment_reaches_100_and_notifies(client, auth_headers, admin, owner, create_business, outbox, db):
    business = create_business(owner)
    r = client.post(
        f"/admin/businesses/{business['id']}/verify",
        json={"verified": True, "payment_status": "paid"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["verified"] is True
    assert body["payment_status"] == "paid"
    assert body["completion_percentage"] == 100
    assert body["can_add_collaborators"] is True
    assert body["owner"]["email"] == "siti@kedaikopi.com.my"
    assert outbox[-1] == {"kind": "business_verified", "to": "siti@kedaikopi.com.my", "args": ("Kedai Kopi Siti",)}

    categories = [
        c for (c,) in db.query(AuditLog.category).filter(AuditLog.actor_user_id == admin.id).all()
    ]
    assert sorted(categories) == ["payment", "status_change"]


def test_verify_without_payment_stays_at_99(client, auth_headers, admin, owner, create_business, outbox):
    business = create_business(owner)
    r = client.post(
        f"/admin/businesses/{business['id']}/verify", json={"verified": True}, headers=auth_headers(admin)
    )
    body = r.json()
    assert body["status"] == "verified"
    assert body["completion_percentage"] == 99
    assert body["can_add_collaborators"] is False


def test_reject_verified_business(client, auth_headers, admin, owner, create_business, set_review, outbox):
    business = create_business(owner)
    set_review(business["id"], ReviewStatus.verified, PaymentStatus.paid)
    r = client.post(
        f"/admin/businesses/{business['id']}/reject",
        json={"reason": "Invalid registration number"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["verified"] is False
    assert body["rejected"] is True
    assert body["status"] == "rejected"
    assert body["rejection_reason"] == "Invalid registration number"
    assert body["completion_percentage"] == 0
    assert outbox[-1]["kind"] == "business_rejected"
    assert outbox[-1]["args"] == ("Kedai Kopi Siti", "Invalid registration number")


def test_reject_needs_a_reason(client, auth_headers, admin, owner, create_business, db):
    business = create_business(owner)
    r = client.post(
        f"/admin/businesses/{business['id']}/reject", json={"reason": "  "}, headers=auth_headers(admin)
    )
    assert r.status_code == 400
    db.expire_all()
    assert db.get(BusinessProfile, business["id"]).review_status == ReviewStatus.unverified


def test_unreject_then_verify(client, auth_headers, admin, owner, create_business):
    business = create_business(owner)
    headers = auth_headers(admin)
    client.post(f"/admin/businesses/{business['id']}/reject", json={"reason": "Blurry certificate"}, headers=headers)
    r = client.post(f"/admin/businesses/{business['id']}/reject", json={"rejected": False}, headers=headers)
    assert r.json()["status"] == "pending"
    assert r.json()["rejection_reason"] is None
    r = client.post(f"/admin/businesses/{business['id']}/verify", json={"verified": True}, headers=headers)
    assert r.json()["status"] == "verified"


def test_filter_businesses_by_status(client, auth_headers, admin, owner, create_business, set_review):
    pending = create_business(owner, business_name="Pending")
    create_business(owner, business_name="Incomplete", tagline=None)
    done = create_business(owner, business_name="Done")
    set_review(done["id"], ReviewStatus.verified, PaymentStatus.paid)
    headers = auth_headers(admin)

    def names(status):
        return [b["business_name"] for b in client.get("/admin/businesses", params={"status": status}, headers=headers).json()]

    assert names("pending") == ["Pending"]
    assert names("incomplete") == ["Incomplete"]
    assert names("verified") == ["Done"]
    assert len(client.get("/admin/businesses", headers=headers).json()) == 3
    assert pending["status"] == "pending"


def test_stats(client, auth_headers, admin, owner, make_user, create_business, set_review):
    make_user("ali@tokoali.com.my", verified=False)
    make_user("mei@kedaimei.com.my", verified=False, gender=None)
    create_business(owner, business_name="Pending")
    create_business(owner, business_name="Incomplete", tagline=None)
    done = create_business(owner, business_name="Done")
    rejected = create_business(owner, business_name="Rejected")
    set_review(done["id"], ReviewStatus.verified, PaymentStatus.paid)
    set_review(rejected["id"], ReviewStatus.rejected, PaymentStatus.pending)

    stats = client.get("/admin/stats", headers=auth_headers(admin)).json()
    assert stats == {
        "total_users": 4,
        "verified_users": 2,
        "users_awaiting_verification": 1,
        "total_businesses": 4,
        "verified_businesses": 1,
        "pending_businesses": 1,
        "rejected_businesses": 1,
        "paid_businesses": 1,
    }


def test_delete_user_cascades(client, auth_headers, admin, owner, create_business, db):
    business = create_business(owner)
    owner_id = owner.id
    headers = auth_headers(admin)
    assert client.delete(f"/admin/users/{admin.id}", headers=headers).status_code == 400

    r = client.delete(f"/admin/users/{owner_id}", headers=headers)
    assert r.status_code == 200
    db.expire_all()
    assert db.get(User, owner_id) is None
    assert db.get(BusinessProfile, business["id"]) is None
    # The business's audit history survives, detached from the deleted row
    assert db.query(AuditLog).filter(AuditLog.title == "Business registered").one().business_id is None
    assert client.delete(f"/admin/users/{owner_id}", headers=headers).status_code == 404
