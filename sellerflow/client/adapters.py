"""Wire adapters for the two backend naming families.

The marketplace backend exposes the same entities under ``business/*`` and
``company/*`` paths, with envelopes that are sometimes flat
(``{"data": {...}}``) and sometimes nested (``{"data": {"company": {...}}}``).
This module is the only place that knows about those differences. Everything
above it sees the canonical models of ``sellerflow.models.business``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

from sellerflow.errors import MalformedResponse, NotFound
from sellerflow.models.business import (
    Application,
    Business,
    LegalInfo,
    SkipFlags,
    SocialInfo,
)
from sellerflow.models.common import ApiFamily

# canonical field -> wire suffix (prefixed with the family name on the wire)
_BUSINESS_WIRE_SUFFIX: dict[str, str] = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "pincode": "pincode",
    "business_type": "type",
    "establishment_date": "establishment_date",
}

_LEGAL_WIRE: dict[str, str] = {
    "aadhaar": "aadhaar_number",
    "pan": "pan_number",
    "gst": "gst_number",
    "msme": "msme_number",
    "fassi": "fassi_number",
    "export_import": "export_import_number",
}

_SOCIAL_WIRE: dict[str, str] = {
    "linkedin": "linkedin_url",
    "instagram": "instagram_url",
    "facebook": "facebook_url",
    "website": "website_url",
    "telegram": "telegram_url",
    "youtube": "youtube_url",
    "x": "x_url",
    "whatsapp": "whatsapp_number",
}

_SKIP_WIRE: dict[str, str] = {"legal": "skipped_legal", "social": "skipped_social"}


@dataclass(frozen=True)
class Endpoints:
    """Path templates for one wire family. ``{id}`` is the business id."""

    find_for_user: str
    get: str
    create: str
    update: str
    legal_get: str
    legal_create: str
    legal_update: str
    social_get: str
    social_create: str
    social_update: str
    application_create: str
    application_get: str
    # business/* takes the id in the body, company/* in the path
    application_id_in_body: bool


ENDPOINTS: dict[ApiFamily, Endpoints] = {
    ApiFamily.BUSINESS: Endpoints(
        find_for_user="business/get/user/{user_id}",
        get="business/get/{id}",
        create="business/create",
        update="business/update/{id}",
        legal_get="business/legal/get/{id}",
        legal_create="business/legal/create",
        legal_update="business/legal/update/{id}",
        social_get="business/social/get/{id}",
        social_create="business/social/create",
        social_update="business/social/update/{id}",
        application_create="business/application/create",
        application_get="business/application/get/business/{id}",
        application_id_in_body=True,
    ),
    ApiFamily.COMPANY: Endpoints(
        find_for_user="company/get/user/{user_id}",
        get="company/get/{id}",
        create="company/create",
        update="company/update/details",
        legal_get="company/legal/get/{id}",
        legal_create="company/legal/create",
        legal_update="company/legal/update",
        social_get="company/social/get/{id}",
        social_create="company/social/create",
        social_update="company/social/update",
        application_create="company/application/create/{id}",
        application_get="company/application/get/company/{id}",
        application_id_in_body=False,
    ),
}


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


class WireAdapter:
    """Translate between one wire family and the canonical models."""

    def __init__(self, family: ApiFamily) -> None:
        self.family = family
        self.endpoints = ENDPOINTS[family]
        self._prefix = family.value

    @property
    def id_key(self) -> str:
        """Wire name of the business id (``business_id`` / ``company_id``)."""
        return f"{self._prefix}_id"

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def unwrap(self, payload: Any, *nested: str) -> dict[str, Any] | None:
        """Return the entity dict inside an envelope, or None if empty.

        Accepts ``{"status": "success", "data": {...}}``, a bare entity, and
        entities nested one level deeper under any of ``nested``.
        """
        if not isinstance(payload, dict):
            return None
        data: Any = payload
        if "data" in payload:
            status = payload.get("status")
            if isinstance(status, str) and status.lower() not in ("success", "ok"):
                return None
            data = payload["data"]
        if not isinstance(data, dict) or not data:
            return None
        for key in nested:
            inner = data.get(key)
            if isinstance(inner, dict):
                return inner
        return data

    def _entity_id(self, data: dict[str, Any]) -> str | None:
        value = _first(data, self.id_key, "id", f"{self._prefix}Id", "business_id", "company_id")
        return None if value is None else str(value)

    def _owner_id(self, data: dict[str, Any]) -> str | None:
        value = _first(data, "user_id", "userId")
        if value is None and isinstance(data.get("user"), dict):
            value = data["user"].get("id")
        return None if value is None else str(value)

    # ------------------------------------------------------------------
    # Business
    # ------------------------------------------------------------------

    def parse_business_ref(self, payload: Any) -> tuple[str, str | None]:
        """Parse the find-for-user response into (business_id, owner_id)."""
        data = self.unwrap(payload, self._prefix, "business", "company")
        if data is None:
            # the backend answers "no business" with an empty success body too
            raise NotFound("business")
        business_id = self._entity_id(data)
        if business_id is None:
            msg = f"Business lookup response carries no id (fields: {sorted(data)})."
            raise MalformedResponse(msg)
        return business_id, self._owner_id(data)

    def parse_business(self, payload: Any) -> Business:
        data = self.unwrap(payload, self._prefix, "business", "company")
        if data is None:
            msg = "Empty business response."
            raise MalformedResponse(msg)
        business_id = self._entity_id(data)
        if business_id is None:
            msg = "Business response carries no id."
            raise MalformedResponse(msg)

        fields: dict[str, Any] = {}
        for canonical, suffix in _BUSINESS_WIRE_SUFFIX.items():
            fields[canonical] = _first(data, f"{self._prefix}_{suffix}", canonical)
        raw_date = fields.pop("establishment_date")

        return Business(
            business_id=business_id,
            user_id=self._owner_id(data),
            name=_text(fields["name"]),
            email=_text(fields["email"]),
            phone=_text(fields["phone"]),
            address=_text(fields["address"]),
            city=_text(fields["city"]),
            state=_text(fields["state"]),
            pincode=_text(fields["pincode"]),
            business_type=_text(fields["business_type"]),
            establishment_date=_parse_date(raw_date),
            skipped=SkipFlags(
                legal=bool(data.get(_SKIP_WIRE["legal"], False)),
                social=bool(data.get(_SKIP_WIRE["social"], False)),
            ),
        )

    def business_to_wire(
        self,
        fields: dict[str, Any],
        *,
        business_id: str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Serialise a (possibly partial) canonical business dict."""
        body: dict[str, Any] = {}
        if business_id is not None:
            body[self.id_key] = business_id
        if user_id is not None:
            body["user_id"] = user_id
        for canonical, value in fields.items():
            if canonical == "skipped":
                flags = value if isinstance(value, SkipFlags) else SkipFlags.model_validate(value)
                body[_SKIP_WIRE["legal"]] = flags.legal
                body[_SKIP_WIRE["social"]] = flags.social
                continue
            suffix = _BUSINESS_WIRE_SUFFIX.get(canonical)
            if suffix is None:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            body[f"{self._prefix}_{suffix}"] = value
        return body

    def parse_created_id(self, payload: Any, *keys: str) -> str:
        """Extract the new entity id from a create response."""
        data = self.unwrap(payload, self._prefix, "business", "company", "application")
        if data is None:
            msg = "Create response carries no data."
            raise MalformedResponse(msg)
        value = _first(data, *keys, self.id_key, "id")
        if value is None:
            msg = f"Create response carries no id (fields: {sorted(data)})."
            raise MalformedResponse(msg)
        return str(value)

    # ------------------------------------------------------------------
    # Legal / social
    # ------------------------------------------------------------------

    def parse_legal(self, payload: Any, business_id: str) -> LegalInfo:
        data = self.unwrap(payload, "legal_details", "legal") or {}
        return LegalInfo(
            business_id=business_id,
            **{canonical: _optional_text(data.get(wire)) for canonical, wire in _LEGAL_WIRE.items()},
        )

    def legal_to_wire(self, fields: dict[str, Any], business_id: str) -> dict[str, Any]:
        body: dict[str, Any] = {self.id_key: business_id}
        for canonical, value in fields.items():
            wire = _LEGAL_WIRE.get(canonical)
            if wire is not None:
                body[wire] = value
        return body

    def parse_social(self, payload: Any, business_id: str) -> SocialInfo:
        data = self.unwrap(payload, "social_details", "social") or {}
        return SocialInfo(
            business_id=business_id,
            **{canonical: _optional_text(data.get(wire)) for canonical, wire in _SOCIAL_WIRE.items()},
        )

    def social_to_wire(self, fields: dict[str, Any], business_id: str) -> dict[str, Any]:
        body: dict[str, Any] = {self.id_key: business_id}
        for canonical, value in fields.items():
            wire = _SOCIAL_WIRE.get(canonical)
            if wire is not None:
                body[wire] = value
        return body

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def parse_application(self, payload: Any, business_id: str) -> Application | None:
        """Parse an application; None when the body holds no application."""
        data = self.unwrap(payload, "application")
        if data is None:
            return None
        application_id = _first(data, "application_id", "applicationId", "id")
        return Application(
            application_id="" if application_id is None else str(application_id),
            business_id=str(_first(data, self.id_key, "business_id", "company_id") or business_id),
            status=data.get("status"),
            rejection_reason=_optional_text(data.get("rejection_reason")),
            created_at=data.get("created_at") or None,
            reviewed_at=data.get("reviewed_at") or None,
        )

    def application_create_request(self, business_id: str) -> tuple[str, dict[str, Any] | None]:
        """Path and body for a submission (first or re-)."""
        path = self.endpoints.application_create.format(id=business_id)
        if self.endpoints.application_id_in_body:
            return path, {"id": business_id}
        return path, None


def _parse_date(raw: Any) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        return None
