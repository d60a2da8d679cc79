"""Public passport verification. Any failure is the same 404 so scans reveal nothing about unlisted businesses."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.schemas.verify import PublicBusinessSummary, QRVerifyRequest
from msme_passport.services.passport import find_business_by_passport_id, find_business_by_qr

router = APIRouter(prefix="/verify", tags=["verify"])

INVALID_PASSPORT = "Invalid or expired QR code"


@router.post("/qr", response_model=PublicBusinessSummary)
def verify_qr(data: QRVerifyRequest, db: Session = Depends(get_db)):
    business = find_business_by_qr(db, data.qr_data)
    if not business:
        raise HTTPException(status_code=404, detail=INVALID_PASSPORT)
    return PublicBusinessSummary.model_validate(business)


@router.get("/{passport_id}", response_model=PublicBusinessSummary)
def verify_passport_id(passport_id: str, db: Session = Depends(get_db)):
    business = find_business_by_passport_id(db, passport_id)
    if not business:
        raise HTTPException(status_code=404, detail=INVALID_PASSPORT)
    return PublicBusinessSummary.model_validate(business)
