"""Business profile schemas.

Documents travel as one array per category. The older single-value field is still accepted
on input and echoed (first document) on output for clients that have not moved to arrays.
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

from msme_passport.models.business import BusinessProfile, DocumentCategory, PaymentStatus
from msme_passport.services.completion import business_completion_percentage, missing_business_fields
from msme_passport.services.eligibility import can_add_collaborators, is_eligible_for_verification
from msme_passport.services.verification import business_state

_TEXT_FIELDS = (
    "category",
    "address",
    "phone",
    "website",
    "tagline",
    "business_registration_number",
    "owner_name",
    "year_established",
    "number_of_employees",
)


class _BusinessFields(BaseModel):
    business_email: EmailStr | None = None
    category: str | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    tagline: str | None = None
    business_registration_number: str | None = None
    owner_name: str | None = None
    year_established: str | None = None
    number_of_employees: str | None = None
    profile_picture: str | None = None

    business_license: str | None = None
    business_license_documents: list[str] | None = None
    registration_certificate: str | None = None
    registration_certificate_documents: list[str] | None = None
    proof_of_operations: str | None = None
    proof_of_operations_documents: list[str] | None = None

    secondary_affiliate_ids: list[str] | None = None

    @field_validator("business_email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @field_validator(*_TEXT_FIELDS)
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return v.strip() if isinstance(v, str) else v

    @field_validator("owner_name", mode="before")
    @classmethod
    def join_owner_names(cls, v):
        """Accept a list of names from the multi-input UI and store them comma-joined."""
        if isinstance(v, list):
            return ", ".join(n.strip() for n in v if isinstance(n, str) and n.strip())
        return v

    def documents(self) -> dict[DocumentCategory, list[str]]:
        """Categories the request touches, resolved to one list each (array wins when non-empty)."""
        out = {}
        fields_set = self.model_fields_set
        for category in DocumentCategory:
            if f"{category.value}_documents" not in fields_set and category.value not in fields_set:
                continue
            array = getattr(self, f"{category.value}_documents")
            single = getattr(self, category.value)
            contents = [c for c in (array or []) if c]
            if not contents and single:
                contents = [single]
            out[category] = contents
        return out


class BusinessCreate(_BusinessFields):
    business_name: str
    primary_affiliate_id: str

    @field_validator("business_name", "primary_affiliate_id")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("This field is required")
        return v


class BusinessUpdate(_BusinessFields):
    """All optional; only provided fields are updated."""
    business_name: str | None = None
    primary_affiliate_id: str | None = None

    @field_validator("business_name", "primary_affiliate_id")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("This field cannot be blank")
        return v


class AffiliateResponse(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class BusinessResponse(BaseModel):
    id: str
    user_id: str
    business_name: str
    business_email: str | None = None
    category: str | None = None
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    tagline: str | None = None
    business_registration_number: str | None = None
    owner_name: str | None = None
    year_established: str | None = None
    number_of_employees: str | None = None
    profile_picture: str | None = None

    primary_affiliate_id: str
    primary_affiliate_name: str | None = None
    secondary_affiliates: list[AffiliateResponse] = []

    business_license: str | None = None
    business_license_documents: list[str] = []
    registration_certificate: str | None = None
    registration_certificate_documents: list[str] = []
    proof_of_operations: str | None = None
    proof_of_operations_documents: list[str] = []

    status: str  # incomplete | pending | verified | rejected
    completed: bool
    verified: bool
    rejected: bool
    rejection_reason: str | None = None
    payment_status: PaymentStatus
    completion_percentage: int
    missing_fields: list[str] = []
    eligible_for_verification: bool = False
    can_add_collaborators: bool = False

    archived: bool = False
    priority: int | None = None
    qr_code: str | None = None
    passport_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_business(cls, business: BusinessProfile) -> "BusinessResponse":
        docs = {}
        for category in DocumentCategory:
            contents = business.documents_for(category)
            docs[category.value] = contents[0] if contents else None
            docs[f"{category.value}_documents"] = contents
        pct = business_completion_percentage(business)
        missing = missing_business_fields(business)
        return cls(
            id=business.id,
            user_id=business.user_id,
            business_name=business.business_name,
            business_email=business.business_email,
            category=business.category,
            address=business.address,
            phone=business.phone,
            website=business.website,
            tagline=business.tagline,
            business_registration_number=business.business_registration_number,
            owner_name=business.owner_name,
            year_established=business.year_established,
            number_of_employees=business.number_of_employees,
            profile_picture=business.profile_picture,
            primary_affiliate_id=business.primary_affiliate_id,
            primary_affiliate_name=business.primary_affiliate.name if business.primary_affiliate else None,
            secondary_affiliates=[
                AffiliateResponse.model_validate(link.secondary_affiliate) for link in business.secondary_affiliates
            ],
            status=business_state(business).value,
            completed=not missing,
            verified=business.verified,
            rejected=business.rejected,
            rejection_reason=business.rejection_reason,
            payment_status=business.payment_status,
            completion_percentage=pct,
            missing_fields=missing,
            eligible_for_verification=is_eligible_for_verification(business),
            can_add_collaborators=can_add_collaborators(business),
            archived=bool(business.archived),
            priority=business.priority,
            qr_code=business.qr_code,
            passport_id=business.passport_id,
            created_at=business.created_at,
            updated_at=business.updated_at,
            **docs,
        )


class ArchiveRequest(BaseModel):
    archived: bool


class SecondaryAffiliatesUpdate(BaseModel):
    secondary_affiliate_ids: list[str] = []


class EligibilityResponse(BaseModel):
    business_id: str
    status: str
    completion_percentage: int
    missing_fields: list[str]
    eligible_for_verification: bool
    verification_reason: str
    can_add_collaborators: bool
    collaboration_reason: str


class PassportResponse(BaseModel):
    business_id: str
    qr_code: str
    passport_id: str


class AccessibleBusinesses(BaseModel):
    owned: list[BusinessResponse]
    collaborated: list[BusinessResponse]
