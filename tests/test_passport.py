import json

from msme_passport.models import PaymentStatus, ReviewStatus
from msme_passport.services.passport import (
    PASSPORT_TYPE,
    build_qr_payload,
    make_passport_id,
    parse_qr_payload,
)

from factories import NOW


def test_passport_id_uses_id_tail_and_year():
    assert make_passport_id("0b7e4f2a-9c1d-4e55-8a6b-3f21d4c9e8a7", NOW) == "MP-D4C9E8A7-2025"


def test_qr_payload_shape():
    payload = json.loads(build_qr_payload("biz-1", "MP-00000001-2025", NOW))
    assert payload == {
        "businessId": "biz-1",
        "passportId": "MP-00000001-2025",
        "timestamp": "2025-03-14T09:30:00.000Z",
        "type": PASSPORT_TYPE,
    }


def test_parse_rejects_foreign_payloads():
    assert parse_qr_payload("not json") is None
    assert parse_qr_payload("[1, 2]") is None
    assert parse_qr_payload(json.dumps({"businessId": "x", "type": "boarding-pass"})) is None
    assert parse_qr_payload(json.dumps({"type": PASSPORT_TYPE})) is None
    assert parse_qr_payload(json.dumps({"businessId": "x", "type": PASSPORT_TYPE}))["businessId"] == "x"


def test_issue_is_idempotent(client, make_user, auth_headers, create_business, clock):
    owner = make_user("siti@kedaikopi.com.my")
    business = create_business(owner)
    first = client.post(f"/businesses/{business['id']}/passport", headers=auth_headers(owner))
    assert first.status_code == 200
    data = first.json()
    payload = json.loads(data["qr_code"])
    assert payload["type"] == "msme-passport"
    assert payload["businessId"] == business["id"]
    assert data["passport_id"] == f"MP-{business['id'][-8:].upper()}-2025"

    clock.advance(days=400)
    second = client.post(f"/businesses/{business['id']}/passport", headers=auth_headers(owner))
    assert second.json() == data


def test_stranger_cannot_issue_passport(client, make_user, auth_headers, create_business):
    owner = make_user("siti@kedaikopi.com.my")
    stranger = make_user("ali@tokoali.com.my")
    business = create_business(owner)
    r = client.post(f"/businesses/{business['id']}/passport", headers=auth_headers(stranger))
    assert r.status_code == 403


def test_qr_verifies_only_while_verified_and_paid(client, make_user, auth_headers, create_business, set_review):
    owner = make_user("siti@kedaikopi.com.my")
    business = create_business(owner)
    qr_code = client.post(f"/businesses/{business['id']}/passport", headers=auth_headers(owner)).json()["qr_code"]

    # Issued but not yet verified: nothing to show
    assert client.post("/verify/qr", json={"qr_data": qr_code}).status_code == 404

    set_review(business["id"], ReviewStatus.verified, PaymentStatus.paid)
    r = client.post("/verify/qr", json={"qr_data": qr_code})
    assert r.status_code == 200
    summary = r.json()
    assert summary["id"] == business["id"]
    assert summary["business_name"] == "Kedai Kopi Siti"
    assert summary["verified"] is True
    assert set(summary) == {"id", "business_name", "business_registration_number", "verified", "passport_id", "created_at"}

    # Unpaying revokes the same unmodified payload
    set_review(business["id"], ReviewStatus.verified, PaymentStatus.pending)
    assert client.post("/verify/qr", json={"qr_data": qr_code}).status_code == 404

    # As does unverifying
    set_review(business["id"], ReviewStatus.unverified, PaymentStatus.paid)
    assert client.post("/verify/qr", json={"qr_data": qr_code}).status_code == 404


def test_verify_by_passport_id(client, make_user, auth_headers, create_business, set_review):
    owner = make_user("siti@kedaikopi.com.my")
    business = create_business(owner)
    passport_id = client.post(f"/businesses/{business['id']}/passport", headers=auth_headers(owner)).json()["passport_id"]
    set_review(business["id"])
    r = client.get(f"/verify/{passport_id}")
    assert r.status_code == 200
    assert r.json()["passport_id"] == passport_id

    set_review(business["id"], ReviewStatus.rejected, PaymentStatus.paid)
    assert client.get(f"/verify/{passport_id}").status_code == 404


def test_failures_are_indistinguishable(client):
    malformed = client.post("/verify/qr", json={"qr_data": "{broken"})
    unknown = client.post(
        "/verify/qr", json={"qr_data": json.dumps({"businessId": "nope", "type": PASSPORT_TYPE})}
    )
    missing_id = client.get("/verify/MP-DEADBEEF-2025")
    assert malformed.status_code == unknown.status_code == missing_id.status_code == 404
    assert malformed.json() == unknown.json() == missing_id.json()
