"""Abstract repository interfaces for the onboarding EntityStore.

Four independent resources, each fetchable, creatable and updatable on
its own. Reads are safe to repeat. Creates are NOT idempotent: a second
create makes a second remote record, so callers guard with the
completeness vector before creating.

Failure contract: ``NotFound`` means "absent", ``Unauthorized`` is
propagated, ``NetworkError`` / ``RemoteError`` are surfaced unchanged.
No implementation may swallow or retry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sellerflow.models.business import Application, Business, LegalInfo, SocialInfo

T = TypeVar("T")


@dataclass(frozen=True)
class BusinessRef:
    """Result of the user -> business lookup."""

    business_id: str
    owner_id: str | None


class BusinessRepository(ABC):
    """The seller's Business record."""

    @abstractmethod
    async def find_for_user(self, user_id: str) -> BusinessRef:
        ...

    @abstractmethod
    async def get(self, business_id: str) -> Business:
        ...

    @abstractmethod
    async def create(self, user_id: str, fields: dict[str, Any]) -> str:
        """Create the Business and return its id."""
        ...

    @abstractmethod
    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        ...


class OptionalInfoRepository(ABC, Generic[T]):
    """Legal or social sub-record keyed by business id."""

    @abstractmethod
    async def get(self, business_id: str) -> T:
        ...

    @abstractmethod
    async def create(self, business_id: str, fields: dict[str, Any]) -> str:
        ...

    @abstractmethod
    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        ...


class ApplicationRepository(ABC):
    """Seller application. Submission and resubmission share ``create``."""

    @abstractmethod
    async def get_for_business(self, business_id: str) -> Application:
        ...

    @abstractmethod
    async def create(self, business_id: str) -> Application:
        ...


@dataclass(frozen=True)
class EntityStore:
    """The four repositories the onboarding engine reads and writes."""

    businesses: BusinessRepository
    legal: OptionalInfoRepository[LegalInfo]
    social: OptionalInfoRepository[SocialInfo]
    applications: ApplicationRepository
