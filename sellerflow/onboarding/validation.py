"""Local, field-level validation of the wizard forms.

Runs before any network call. Each validator returns the canonical field
dict to write (blank optional values dropped) or raises
``FieldValidationError`` carrying one message per offending field.
"""

import re
from datetime import date, datetime
from typing import Any

from sellerflow.errors import FieldValidationError
from sellerflow.models.business import (
    LEGAL_GATING_FIELDS,
    BasicInfoPayload,
    LegalInfoPayload,
    SocialInfoPayload,
)

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
_PHONE_RE = re.compile(r"^\d{10}$")
_PINCODE_RE = re.compile(r"^\d{6}$")
_FORM_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_URL_RE = re.compile(r"^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)?/?$", re.IGNORECASE)

PAN_LENGTH = 10
GST_LENGTH = 15

_BASIC_REQUIRED: dict[str, str] = {
    "name": "Business name is required",
    "email": "Email is required",
    "phone": "Phone number is required",
    "address": "Address is required",
    "city": "City is required",
    "state": "State is required",
    "pincode": "Pincode is required",
}

_SOCIAL_URL_FIELDS: dict[str, str] = {
    "linkedin": "Invalid LinkedIn URL",
    "instagram": "Invalid Instagram URL",
    "facebook": "Invalid Facebook URL",
    "website": "Invalid Website URL",
    "telegram": "Invalid Telegram URL",
    "youtube": "Invalid YouTube URL",
    "x": "Invalid X URL",
}


def parse_form_date(raw: str) -> date:
    """Parse a DD/MM/YYYY form value.

    Raises:
        ValueError: If the value is not a real calendar date in that format.
    """
    if not _FORM_DATE_RE.match(raw):
        msg = f"Expected DD/MM/YYYY, got {raw!r}."
        raise ValueError(msg)
    return datetime.strptime(raw, "%d/%m/%Y").date()


def validate_basic_info(payload: BasicInfoPayload) -> dict[str, Any]:
    """Validate step 1 and return the Business fields to write."""
    values = {k: v.strip() for k, v in payload.model_dump().items()}
    errors: dict[str, str] = {}

    for field, message in _BASIC_REQUIRED.items():
        if not values[field]:
            errors[field] = message

    if values["email"] and not _EMAIL_RE.match(values["email"]):
        errors["email"] = "Invalid email format"
    if values["phone"] and not _PHONE_RE.match(values["phone"]):
        errors["phone"] = "Phone number must be 10 digits"
    if values["pincode"] and not _PINCODE_RE.match(values["pincode"]):
        errors["pincode"] = "Pincode must be 6 digits"

    established: date | None = None
    if values["establishment_date"]:
        try:
            established = parse_form_date(values["establishment_date"])
        except ValueError:
            errors["establishment_date"] = "Date must be in DD/MM/YYYY format"

    if errors:
        raise FieldValidationError(errors)

    fields: dict[str, Any] = {k: v for k, v in values.items() if k != "establishment_date"}
    if established is not None:
        fields["establishment_date"] = established
    return fields


def validate_legal_info(payload: LegalInfoPayload) -> dict[str, Any]:
    """Validate step 2.

    Every field is optional on its own, but saving (rather than skipping)
    the step needs at least one of PAN, GST or MSME.
    """
    values = {k: v.strip() for k, v in payload.model_dump().items()}
    errors: dict[str, str] = {}

    if values["pan"] and len(values["pan"]) != PAN_LENGTH:
        errors["pan"] = f"PAN number must be {PAN_LENGTH} characters"
    if values["gst"] and len(values["gst"]) != GST_LENGTH:
        errors["gst"] = f"GST number must be {GST_LENGTH} characters"

    if not errors and not any(values[f] for f in LEGAL_GATING_FIELDS):
        errors["pan"] = "Enter a PAN, GST or MSME number, or skip this step"

    if errors:
        raise FieldValidationError(errors)
    return {k: v for k, v in values.items() if v}


def validate_social_info(payload: SocialInfoPayload) -> dict[str, Any]:
    """Validate step 3. Saving the step needs at least one channel."""
    values = {k: v.strip() for k, v in payload.model_dump().items()}
    errors: dict[str, str] = {}

    for field, message in _SOCIAL_URL_FIELDS.items():
        if values[field] and not _URL_RE.match(values[field]):
            errors[field] = message
    if values["whatsapp"] and not _PHONE_RE.match(values["whatsapp"]):
        errors["whatsapp"] = "Invalid WhatsApp number (10 digits required)"
    if not errors and not any(values.values()):
        errors["website"] = "Add at least one channel, or skip this step"

    if errors:
        raise FieldValidationError(errors)
    return {k: v for k, v in values.items() if v}
