"""Public passport verification schemas."""
from datetime import datetime

from pydantic import BaseModel


class QRVerifyRequest(BaseModel):
    qr_data: str


class PublicBusinessSummary(BaseModel):
    """What a scanner is allowed to see about a verified, paid business."""
    id: str
    business_name: str
    business_registration_number: str | None = None
    verified: bool
    passport_id: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
