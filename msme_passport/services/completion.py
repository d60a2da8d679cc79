"""Profile completion percentages for users and businesses.

Every call site (API responses, eligibility gates, admin checks) goes through these
functions so the checklists cannot drift apart.
"""
from msme_passport.models.business import DocumentCategory

# (attribute, label) in declaration order; missing-field lists follow this order
USER_REQUIRED_FIELDS: list[tuple[str, str]] = [
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("phone_number", "Phone Number"),
    ("date_of_birth", "Date of Birth"),
    ("gender", "Gender"),
    ("ic_document", "IC Document"),
]

BUSINESS_REQUIRED_FIELDS: list[tuple[str, str]] = [
    ("business_name", "Business Name"),
    ("business_email", "Business Email"),
    ("business_registration_number", "Registration Number"),
    ("year_established", "Year Established"),
    ("owner_name", "Owner Name"),
    ("category", "Category"),
    ("number_of_employees", "Number of Employees"),
    ("primary_affiliate_id", "Primary Chamber"),
    ("tagline", "Tagline"),
    ("address", "Address"),
    ("phone", "Phone"),
]
REQUIRED_DOCUMENT = (DocumentCategory.registration_certificate, "Registration Certificate")

# Field completion alone never shows more than this; 100 means verified and paid
UNPAID_COMPLETION_CAP = 99


def _filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _percentage(filled: int, total: int) -> int:
    # round-half-up, not Python's banker's rounding
    return (200 * filled + total) // (2 * total)


def missing_user_fields(user) -> list[str]:
    return [label for attr, label in USER_REQUIRED_FIELDS if not _filled(getattr(user, attr, None))]


def user_completion_percentage(user) -> int:
    total = len(USER_REQUIRED_FIELDS)
    return _percentage(total - len(missing_user_fields(user)), total)


def missing_business_fields(business) -> list[str]:
    missing = [label for attr, label in BUSINESS_REQUIRED_FIELDS if not _filled(getattr(business, attr, None))]
    category, label = REQUIRED_DOCUMENT
    docs = business.documents_for(category)
    if not docs or not _filled(docs[0]):
        missing.append(label)
    return missing


def business_field_percentage(business) -> int:
    """Share of the twelve required fields that are filled, ignoring review and payment state."""
    total = len(BUSINESS_REQUIRED_FIELDS) + 1
    return _percentage(total - len(missing_business_fields(business)), total)


def business_completion_percentage(business) -> int:
    if business.rejected:
        return 0
    if business.verified and business.paid:
        return 100
    return min(business_field_percentage(business), UNPAID_COMPLETION_CAP)
