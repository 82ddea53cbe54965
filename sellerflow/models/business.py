"""Canonical onboarding entities: Business, LegalInfo, SocialInfo, Application.

These are the shapes the state machine reasons about. Wire formats of the
two backend families are translated into them in ``sellerflow.client.adapters``
and nowhere else.
"""

from datetime import date, datetime

from pydantic import Field, field_validator

from sellerflow.models.common import ApplicationStatus, SellerflowBase, is_blank

LEGAL_GATING_FIELDS: tuple[str, ...] = ("pan", "gst", "msme")
LEGAL_FIELDS: tuple[str, ...] = ("aadhaar", "pan", "gst", "msme", "fassi", "export_import")
SOCIAL_FIELDS: tuple[str, ...] = (
    "linkedin",
    "instagram",
    "facebook",
    "website",
    "telegram",
    "youtube",
    "x",
    "whatsapp",
)
BASIC_REQUIRED_FIELDS: tuple[str, ...] = ("name", "email", "phone", "address")


class SkipFlags(SellerflowBase):
    """Which optional steps the user explicitly skipped."""

    legal: bool = False
    social: bool = False

    def merge(self, other: "SkipFlags") -> "SkipFlags":
        return SkipFlags(legal=self.legal or other.legal, social=self.social or other.social)


class Business(SellerflowBase):
    """The seller's registered business. Owned by exactly one user."""

    business_id: str = Field(..., min_length=1)
    user_id: str | None = Field(
        default=None,
        description="Owner. None means the backend did not say, which fails the ownership check.",
    )
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    business_type: str = ""
    establishment_date: date | None = None
    skipped: SkipFlags = Field(default_factory=SkipFlags)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id is not None and self.user_id == user_id


class LegalInfo(SellerflowBase):
    """Optional legal identifiers. Every field is independently optional."""

    business_id: str
    aadhaar: str | None = None
    pan: str | None = None
    gst: str | None = None
    msme: str | None = None
    fassi: str | None = None
    export_import: str | None = None

    def has_identifier(self) -> bool:
        return any(not is_blank(getattr(self, f)) for f in LEGAL_GATING_FIELDS)


class SocialInfo(SellerflowBase):
    """Optional social channels."""

    business_id: str
    linkedin: str | None = None
    instagram: str | None = None
    facebook: str | None = None
    website: str | None = None
    telegram: str | None = None
    youtube: str | None = None
    x: str | None = None
    whatsapp: str | None = None

    def has_channel(self) -> bool:
        return any(not is_blank(getattr(self, f)) for f in SOCIAL_FIELDS)


class Application(SellerflowBase):
    """A seller application. One per submission cycle."""

    application_id: str = ""
    business_id: str
    status: ApplicationStatus = ApplicationStatus.NONE
    rejection_reason: str | None = None
    created_at: datetime | None = None
    reviewed_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v: object) -> ApplicationStatus:
        return ApplicationStatus.normalize(v)


class OnboardingSnapshot(SellerflowBase):
    """The four sub-entities exactly as last fetched. Any may be absent."""

    model_config = {"frozen": True}

    business: Business | None = None
    legal: LegalInfo | None = None
    social: SocialInfo | None = None
    application: Application | None = None

    @property
    def status(self) -> ApplicationStatus:
        if self.application is None:
            return ApplicationStatus.NONE
        return self.application.status


# ---------------------------------------------------------------------------
# Step payloads (what the user typed)
# ---------------------------------------------------------------------------


class BasicInfoPayload(SellerflowBase):
    """Step 1 form. ``establishment_date`` is the DD/MM/YYYY form value."""

    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    business_type: str = ""
    establishment_date: str = ""


class LegalInfoPayload(SellerflowBase):
    """Step 2 form."""

    aadhaar: str = ""
    pan: str = ""
    gst: str = ""
    msme: str = ""
    fassi: str = ""
    export_import: str = ""


class SocialInfoPayload(SellerflowBase):
    """Step 3 form."""

    linkedin: str = ""
    instagram: str = ""
    facebook: str = ""
    website: str = ""
    telegram: str = ""
    youtube: str = ""
    x: str = ""
    whatsapp: str = ""
