"""Personal profile and user verification-status schemas."""
from datetime import datetime

from pydantic import BaseModel, field_validator

PHONE_MAX_DIGITS = 15


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    email_verified: bool = False
    verified: bool = False
    is_admin: bool = False

    class Config:
        from_attributes = True


class UserProfileResponse(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    profile_picture: str | None = None
    ic_document: str | None = None
    email_verified: bool = False
    verified: bool = False
    business_count: int = 0
    completion_percentage: int = 0
    missing_fields: list[str] = []
    created_at: datetime | None = None


class UserProfileUpdate(BaseModel):
    """All optional; only provided fields are updated. Email is changed nowhere but signup."""
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    profile_picture: str | None = None
    ic_document: str | None = None

    @field_validator("first_name", "last_name", "phone_number", "date_of_birth", "gender")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone_number")
    @classmethod
    def phone_not_too_long(cls, v: str | None) -> str | None:
        if v and sum(ch.isdigit() for ch in v) > PHONE_MAX_DIGITS:
            raise ValueError(f"Phone number cannot exceed {PHONE_MAX_DIGITS} digits.")
        return v


class NextAction(BaseModel):
    action: str
    description: str
    priority: str  # high | medium | low


class UserVerificationStatus(BaseModel):
    status: str  # incomplete | awaiting | verified
    message: str
    completion_percentage: int
    can_create_businesses: bool
    missing_fields: list[str] = []
    next_steps: list[str] = []
    next_actions: list[NextAction] = []
