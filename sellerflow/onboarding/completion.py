"""Completeness vector for the four onboarding sub-entities.

Pure: same input, same output, no I/O. Legal completeness is gated on
PAN, GST or MSME only; aadhaar, fassi and export/import numbers are shown
to reviewers but never make a record "complete".
"""

from sellerflow.models.business import (
    BASIC_REQUIRED_FIELDS,
    Application,
    Business,
    LegalInfo,
    OnboardingSnapshot,
    SocialInfo,
)
from sellerflow.models.common import is_blank
from sellerflow.models.wizard import CompletenessVector


def evaluate(
    business: Business | None,
    legal: LegalInfo | None,
    social: SocialInfo | None,
    application: Application | None,
) -> CompletenessVector:
    """Map a snapshot of the four entities to a completeness vector."""
    basic = business is not None and all(
        not is_blank(getattr(business, f)) for f in BASIC_REQUIRED_FIELDS
    )
    return CompletenessVector(
        basic_complete=basic,
        legal_complete=legal is not None and legal.has_identifier(),
        social_complete=social is not None and social.has_channel(),
        has_application=application is not None and bool(application.application_id),
    )


def evaluate_snapshot(snapshot: OnboardingSnapshot) -> CompletenessVector:
    return evaluate(snapshot.business, snapshot.legal, snapshot.social, snapshot.application)
