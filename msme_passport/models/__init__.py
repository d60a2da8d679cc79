"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table; no migration scripts needed for fresh installs.
"""
from msme_passport.models.user import User
from msme_passport.models.affiliate import MainAffiliate, SecondaryAffiliate, BusinessSecondaryAffiliate
from msme_passport.models.business import (
    BusinessProfile,
    BusinessDocument,
    ReviewStatus,
    PaymentStatus,
    DocumentCategory,
)
from msme_passport.models.collaboration import (
    CollaborationInvitation,
    BusinessCollaboration,
    InvitationStatus,
)
from msme_passport.models.email_verification_token import EmailVerificationToken
from msme_passport.models.audit_log import AuditLog

__all__ = [
    "User",
    "MainAffiliate",
    "SecondaryAffiliate",
    "BusinessSecondaryAffiliate",
    "BusinessProfile",
    "BusinessDocument",
    "ReviewStatus",
    "PaymentStatus",
    "DocumentCategory",
    "CollaborationInvitation",
    "BusinessCollaboration",
    "InvitationStatus",
    "EmailVerificationToken",
    "AuditLog",
]
