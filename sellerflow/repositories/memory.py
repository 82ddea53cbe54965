"""In-memory EntityStore for tests and offline runs.

Behaves like the remote backend: ids are minted on create, absent records
raise ``NotFound``, and a resubmission resets the application to pending.
Every call is appended to ``calls`` so tests can assert that no remote
write happened. ``fail_next`` primes an operation to raise once.
"""

from typing import Any

from sellerflow.errors import NotFound
from sellerflow.models.business import (
    Application,
    Business,
    LegalInfo,
    SocialInfo,
)
from sellerflow.models.common import ApplicationStatus, new_uuid7, utc_now
from sellerflow.repositories.base import (
    ApplicationRepository,
    BusinessRef,
    BusinessRepository,
    EntityStore,
    OptionalInfoRepository,
)


class InMemoryBackend:
    """Shared state behind the four in-memory repositories."""

    def __init__(self) -> None:
        self.businesses: dict[str, Business] = {}
        self.legal: dict[str, LegalInfo] = {}
        self.social: dict[str, SocialInfo] = {}
        self.applications: dict[str, Application] = {}
        self.calls: list[tuple[str, str]] = []
        self.user_links: dict[str, str] = {}
        self._failures: dict[str, BaseException] = {}

    def fail_next(self, operation: str, exc: BaseException) -> None:
        """Make the next call to ``operation`` (e.g. ``"legal.get"``) raise ``exc``."""
        self._failures[operation] = exc

    def record(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        exc = self._failures.pop(operation, None)
        if exc is not None:
            raise exc

    def writes(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0].endswith((".create", ".update"))]

    # --- seeding helpers for tests ---

    def seed_business(self, business: Business) -> Business:
        self.businesses[business.business_id] = business
        return business

    def link_user(self, user_id: str, business_id: str) -> None:
        """Point the user lookup at an arbitrary business (tampered ids)."""
        self.user_links[user_id] = business_id

    def seed_legal(self, legal: LegalInfo) -> LegalInfo:
        self.legal[legal.business_id] = legal
        return legal

    def seed_social(self, social: SocialInfo) -> SocialInfo:
        self.social[social.business_id] = social
        return social

    def seed_application(self, application: Application) -> Application:
        self.applications[application.business_id] = application
        return application

    def store(self) -> EntityStore:
        return EntityStore(
            businesses=InMemoryBusinessRepository(self),
            legal=InMemoryLegalInfoRepository(self),
            social=InMemorySocialInfoRepository(self),
            applications=InMemoryApplicationRepository(self),
        )


class InMemoryBusinessRepository(BusinessRepository):
    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    async def find_for_user(self, user_id: str) -> BusinessRef:
        self._backend.record("business.find_for_user", user_id)
        linked = self._backend.user_links.get(user_id)
        if linked is not None and linked in self._backend.businesses:
            return BusinessRef(business_id=linked, owner_id=self._backend.businesses[linked].user_id)
        for business in self._backend.businesses.values():
            if business.user_id == user_id:
                return BusinessRef(business_id=business.business_id, owner_id=business.user_id)
        raise NotFound("business", user_id)

    async def get(self, business_id: str) -> Business:
        self._backend.record("business.get", business_id)
        try:
            return self._backend.businesses[business_id]
        except KeyError:
            raise NotFound("business", business_id) from None

    async def create(self, user_id: str, fields: dict[str, Any]) -> str:
        business_id = str(new_uuid7())
        self._backend.record("business.create", business_id)
        self._backend.businesses[business_id] = Business(
            business_id=business_id, user_id=user_id, **fields,
        )
        return business_id

    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        self._backend.record("business.update", business_id)
        current = self._backend.businesses.get(business_id)
        if current is None:
            raise NotFound("business", business_id)
        self._backend.businesses[business_id] = current.model_copy(update=fields)


class _InMemoryOptionalInfoRepository(OptionalInfoRepository):
    _kind: str = ""
    _model: type = LegalInfo

    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    def _records(self) -> dict:
        return getattr(self._backend, self._kind)

    async def get(self, business_id: str):
        self._backend.record(f"{self._kind}.get", business_id)
        try:
            return self._records()[business_id]
        except KeyError:
            raise NotFound(f"{self._kind} info", business_id) from None

    async def create(self, business_id: str, fields: dict[str, Any]) -> str:
        self._backend.record(f"{self._kind}.create", business_id)
        self._records()[business_id] = self._model(business_id=business_id, **fields)
        return business_id

    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        self._backend.record(f"{self._kind}.update", business_id)
        current = self._records().get(business_id)
        if current is None:
            raise NotFound(f"{self._kind} info", business_id)
        self._records()[business_id] = current.model_copy(update=fields)


class InMemoryLegalInfoRepository(_InMemoryOptionalInfoRepository):
    _kind = "legal"
    _model = LegalInfo


class InMemorySocialInfoRepository(_InMemoryOptionalInfoRepository):
    _kind = "social"
    _model = SocialInfo


class InMemoryApplicationRepository(ApplicationRepository):
    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    async def get_for_business(self, business_id: str) -> Application:
        self._backend.record("application.get", business_id)
        try:
            return self._backend.applications[business_id]
        except KeyError:
            raise NotFound("application", business_id) from None

    async def create(self, business_id: str) -> Application:
        self._backend.record("application.create", business_id)
        existing = self._backend.applications.get(business_id)
        if existing is not None and existing.status == ApplicationStatus.REJECTED:
            # resubmission keeps the record and puts it back in review
            application = existing.model_copy(update={
                "status": ApplicationStatus.PENDING,
                "rejection_reason": None,
                "reviewed_at": None,
                "created_at": utc_now(),
            })
        else:
            application = Application(
                application_id=str(new_uuid7()),
                business_id=business_id,
                status=ApplicationStatus.PENDING,
                created_at=utc_now(),
            )
        self._backend.applications[business_id] = application
        return application
