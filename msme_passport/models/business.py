"""Business profiles, their documents and their verification/payment state."""
import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum as SQLEnum, DateTime, Text
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from msme_passport.database import Base, new_id


class ReviewStatus(str, enum.Enum):
    """Administrator decision on a business. The only stored verification state."""
    unverified = "unverified"
    verified = "verified"
    rejected = "rejected"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"


class DocumentCategory(str, enum.Enum):
    business_license = "business_license"
    registration_certificate = "registration_certificate"
    proof_of_operations = "proof_of_operations"


class BusinessProfile(Base):
    __tablename__ = "business_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    business_name = Column(String(255), nullable=False)
    business_email = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    website = Column(String(255), nullable=True)
    tagline = Column(String(255), nullable=True)
    business_registration_number = Column(String(100), nullable=True)
    owner_name = Column(String(500), nullable=True)  # comma-joined names
    year_established = Column(String(10), nullable=True)
    number_of_employees = Column(String(20), nullable=True)  # bucket, e.g. "1-10"
    profile_picture = Column(Text, nullable=True)

    primary_affiliate_id = Column(String(36), ForeignKey("main_affiliates.id"), nullable=False)

    review_status = Column(SQLEnum(ReviewStatus), nullable=False, default=ReviewStatus.unverified)
    rejection_reason = Column(Text, nullable=True)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.pending)

    archived = Column(Boolean, nullable=False, default=False)
    priority = Column(Integer, nullable=True)  # 1-based insertion order within the owner's businesses

    # Passport: both null until issued, then set together
    qr_code = Column(Text, nullable=True)
    passport_id = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", backref=backref("businesses", cascade="all, delete-orphan", passive_deletes=True))
    primary_affiliate = relationship("MainAffiliate")
    documents = relationship(
        "BusinessDocument",
        back_populates="business",
        cascade="all, delete-orphan",
        order_by="BusinessDocument.position",
    )
    secondary_affiliates = relationship(
        "BusinessSecondaryAffiliate",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def verified(self) -> bool:
        return self.review_status == ReviewStatus.verified

    @property
    def rejected(self) -> bool:
        return self.review_status == ReviewStatus.rejected

    @property
    def paid(self) -> bool:
        return self.payment_status == PaymentStatus.paid

    def documents_for(self, category: DocumentCategory) -> list[str]:
        return [d.content for d in self.documents if d.category == category]

    def set_documents(self, category: DocumentCategory, contents: list[str]) -> None:
        """Replace one category's documents; an empty list means no document."""
        self.documents = [d for d in self.documents if d.category != category] + [
            BusinessDocument(category=category, position=i, content=c) for i, c in enumerate(contents)
        ]


class BusinessDocument(Base):
    """One uploaded document. A category either has no rows or an ordered, non-empty list."""
    __tablename__ = "business_documents"

    id = Column(String(36), primary_key=True, default=new_id)
    business_id = Column(String(36), ForeignKey("business_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(SQLEnum(DocumentCategory), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    business = relationship("BusinessProfile", back_populates="documents")
