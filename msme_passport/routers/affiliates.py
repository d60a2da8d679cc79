"""Chamber reference lists (public)."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from msme_passport.database import get_db
from msme_passport.models.affiliate import MainAffiliate, SecondaryAffiliate
from msme_passport.schemas.business import AffiliateResponse

router = APIRouter(prefix="/affiliates", tags=["affiliates"])


@router.get("/main", response_model=list[AffiliateResponse])
def list_main_affiliates(db: Session = Depends(get_db)):
    return [AffiliateResponse.model_validate(a) for a in db.query(MainAffiliate).order_by(MainAffiliate.name).all()]


@router.get("/secondary", response_model=list[AffiliateResponse])
def list_secondary_affiliates(db: Session = Depends(get_db)):
    return [
        AffiliateResponse.model_validate(a) for a in db.query(SecondaryAffiliate).order_by(SecondaryAffiliate.name).all()
    ]
