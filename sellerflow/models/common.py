"""Shared types, enums, and base models used across sellerflow domain models."""

from datetime import datetime, timezone
from enum import IntEnum, StrEnum
from uuid import UUID

from pydantic import BaseModel
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


def is_blank(value: object) -> bool:
    """True for None and for strings that are empty after stripping."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


# --- Shared enums ---


class ApplicationStatus(StrEnum):
    """Review status of a seller application."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def normalize(cls, raw: object) -> "ApplicationStatus":
        """Map a wire status string onto the enum, case-insensitively.

        Missing or unrecognised values collapse to NONE.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return cls.NONE
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.NONE


class WizardStep(IntEnum):
    """The four onboarding wizard steps."""

    BASIC_INFO = 1
    LEGAL_INFO = 2
    SOCIAL_INFO = 3
    REVIEW = 4


class Redirect(StrEnum):
    """Screens the engine may send the user to."""

    SELLER_DASHBOARD = "seller_dashboard"
    APPLICATION_STATUS = "application_status"
    ONBOARDING_WIZARD = "onboarding_wizard"


class ApiFamily(StrEnum):
    """REST naming family used by the marketplace backend."""

    BUSINESS = "business"
    COMPANY = "company"


# --- Base model ---


class SellerflowBase(BaseModel):
    """Base model with common configuration for all sellerflow Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }
