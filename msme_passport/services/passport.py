"""MSME passport issuance and scan-time verification.

The QR payload is a JSON string stored verbatim on the business. Verification never trusts
the payload alone: the business it names must be verified and paid at lookup time, so
unverifying or unpaying a business revokes every QR code already handed out.
"""
import json
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from msme_passport.models.business import BusinessProfile, PaymentStatus, ReviewStatus

log = logging.getLogger("uvicorn.error")

PASSPORT_TYPE = "msme-passport"


def make_passport_id(business_id: str, now: datetime) -> str:
    return f"MP-{business_id[-8:].upper()}-{now.year}"


def _iso_timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_qr_payload(business_id: str, passport_id: str, now: datetime) -> str:
    return json.dumps(
        {
            "businessId": business_id,
            "passportId": passport_id,
            "timestamp": _iso_timestamp(now),
            "type": PASSPORT_TYPE,
        }
    )


def issue_passport(db: Session, business: BusinessProfile, now: datetime) -> tuple[str, str]:
    """Return (qr_code, passport_id), generating and storing them on first call only."""
    if business.qr_code and business.passport_id:
        return business.qr_code, business.passport_id
    passport_id = make_passport_id(business.id, now)
    qr_code = build_qr_payload(business.id, passport_id, now)
    # Conditional update: a concurrent issuer that got there first keeps its values
    db.query(BusinessProfile).filter(
        BusinessProfile.id == business.id,
        BusinessProfile.qr_code.is_(None),
    ).update(
        {BusinessProfile.qr_code: qr_code, BusinessProfile.passport_id: passport_id},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(business)
    log.info("[Passport] Issued passport %s for business %s", business.passport_id, business.id)
    return business.qr_code, business.passport_id


def parse_qr_payload(raw: str) -> dict | None:
    """Decoded payload, or None when it is not an MSME passport QR code."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict) or data.get("type") != PASSPORT_TYPE:
        return None
    if not isinstance(data.get("businessId"), str):
        return None
    return data


def _live(db: Session):
    return db.query(BusinessProfile).filter(
        BusinessProfile.review_status == ReviewStatus.verified,
        BusinessProfile.payment_status == PaymentStatus.paid,
    )


def find_business_by_qr(db: Session, raw: str) -> BusinessProfile | None:
    data = parse_qr_payload(raw)
    if data is None:
        log.info("[Passport] Rejected scan: not an MSME passport payload")
        return None
    return _live(db).filter(BusinessProfile.id == data["businessId"]).first()


def find_business_by_passport_id(db: Session, passport_id: str) -> BusinessProfile | None:
    passport_id = (passport_id or "").strip()
    if not passport_id:
        return None
    return _live(db).filter(BusinessProfile.passport_id == passport_id).first()
