"""Administrator request/response schemas."""
from datetime import datetime

from pydantic import BaseModel

from msme_passport.models.business import PaymentStatus
from msme_passport.schemas.business import BusinessResponse


class VerifyUserRequest(BaseModel):
    verified: bool


class VerifyBusinessRequest(BaseModel):
    verified: bool
    payment_status: PaymentStatus | None = None


class RejectBusinessRequest(BaseModel):
    rejected: bool = True
    reason: str | None = None


class AdminUserResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    email_verified: bool
    verified: bool
    is_admin: bool
    business_count: int
    completion_percentage: int
    missing_fields: list[str] = []
    status: str  # incomplete | awaiting | verified
    eligible_for_verification: bool = False
    verification_reason: str = ""
    created_at: datetime | None = None


class OwnerSummary(BaseModel):
    id: str
    email: str
    full_name: str


class AdminBusinessResponse(BusinessResponse):
    owner: OwnerSummary | None = None


class AdminStats(BaseModel):
    total_users: int
    verified_users: int
    users_awaiting_verification: int
    total_businesses: int
    verified_businesses: int
    pending_businesses: int
    rejected_businesses: int
    paid_businesses: int
