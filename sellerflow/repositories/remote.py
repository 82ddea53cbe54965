"""HTTP-backed EntityStore.

Each repository issues exactly one request per call through
``MarketplaceClient`` and hands the body to the ``WireAdapter``. Errors
from the client propagate untouched.
"""

import logging
from typing import Any

from sellerflow.client.adapters import WireAdapter
from sellerflow.client.http import MarketplaceClient
from sellerflow.errors import NotFound
from sellerflow.models.business import Application, Business, LegalInfo, SocialInfo
from sellerflow.models.common import ApiFamily, ApplicationStatus
from sellerflow.repositories.base import (
    ApplicationRepository,
    BusinessRef,
    BusinessRepository,
    EntityStore,
    OptionalInfoRepository,
)

logger = logging.getLogger(__name__)


class RemoteBusinessRepository(BusinessRepository):
    def __init__(self, client: MarketplaceClient, adapter: WireAdapter) -> None:
        self._client = client
        self._adapter = adapter

    async def find_for_user(self, user_id: str) -> BusinessRef:
        path = self._adapter.endpoints.find_for_user.format(user_id=user_id)
        business_id, owner_id = self._adapter.parse_business_ref(await self._client.get(path))
        return BusinessRef(business_id=business_id, owner_id=owner_id)

    async def get(self, business_id: str) -> Business:
        path = self._adapter.endpoints.get.format(id=business_id)
        return self._adapter.parse_business(await self._client.get(path))

    async def create(self, user_id: str, fields: dict[str, Any]) -> str:
        body = self._adapter.business_to_wire(fields, user_id=user_id)
        payload = await self._client.post(self._adapter.endpoints.create, body)
        business_id = self._adapter.parse_created_id(payload)
        logger.info("Created business %s for user %s", business_id, user_id)
        return business_id

    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        path = self._adapter.endpoints.update.format(id=business_id)
        await self._client.put(path, self._adapter.business_to_wire(fields, business_id=business_id))


class RemoteLegalInfoRepository(OptionalInfoRepository[LegalInfo]):
    def __init__(self, client: MarketplaceClient, adapter: WireAdapter) -> None:
        self._client = client
        self._adapter = adapter

    async def get(self, business_id: str) -> LegalInfo:
        path = self._adapter.endpoints.legal_get.format(id=business_id)
        payload = await self._client.get(path)
        if self._adapter.unwrap(payload, "legal_details", "legal") is None:
            raise NotFound("legal info", business_id)
        return self._adapter.parse_legal(payload, business_id)

    async def create(self, business_id: str, fields: dict[str, Any]) -> str:
        payload = await self._client.post(
            self._adapter.endpoints.legal_create,
            self._adapter.legal_to_wire(fields, business_id),
        )
        return _created_or_parent(self._adapter, payload, business_id, "legal_id")

    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        path = self._adapter.endpoints.legal_update.format(id=business_id)
        await self._client.put(path, self._adapter.legal_to_wire(fields, business_id))


class RemoteSocialInfoRepository(OptionalInfoRepository[SocialInfo]):
    def __init__(self, client: MarketplaceClient, adapter: WireAdapter) -> None:
        self._client = client
        self._adapter = adapter

    async def get(self, business_id: str) -> SocialInfo:
        path = self._adapter.endpoints.social_get.format(id=business_id)
        payload = await self._client.get(path)
        if self._adapter.unwrap(payload, "social_details", "social") is None:
            raise NotFound("social info", business_id)
        return self._adapter.parse_social(payload, business_id)

    async def create(self, business_id: str, fields: dict[str, Any]) -> str:
        payload = await self._client.post(
            self._adapter.endpoints.social_create,
            self._adapter.social_to_wire(fields, business_id),
        )
        return _created_or_parent(self._adapter, payload, business_id, "social_id")

    async def update(self, business_id: str, fields: dict[str, Any]) -> None:
        path = self._adapter.endpoints.social_update.format(id=business_id)
        await self._client.put(path, self._adapter.social_to_wire(fields, business_id))


class RemoteApplicationRepository(ApplicationRepository):
    def __init__(self, client: MarketplaceClient, adapter: WireAdapter) -> None:
        self._client = client
        self._adapter = adapter

    async def get_for_business(self, business_id: str) -> Application:
        path = self._adapter.endpoints.application_get.format(id=business_id)
        application = self._adapter.parse_application(await self._client.get(path), business_id)
        if application is None:
            raise NotFound("application", business_id)
        return application

    async def create(self, business_id: str) -> Application:
        path, body = self._adapter.application_create_request(business_id)
        payload = await self._client.post(path, body)
        application = self._adapter.parse_application(payload, business_id)
        if application is None or not application.application_id:
            application_id = self._adapter.parse_created_id(payload, "application_id")
            application = Application(
                application_id=application_id,
                business_id=business_id,
                status=ApplicationStatus.PENDING,
            )
        logger.info("Submitted application %s for business %s", application.application_id, business_id)
        return application


def _created_or_parent(adapter: WireAdapter, payload: Any, business_id: str, key: str) -> str:
    """Sub-records are keyed by business; fall back to it when no id comes back."""
    data = adapter.unwrap(payload)
    if data is None:
        return business_id
    value = data.get(key) or data.get("id")
    return business_id if value is None else str(value)


def build_remote_store(client: MarketplaceClient, family: ApiFamily) -> EntityStore:
    """Wire the four HTTP repositories for one backend family."""
    adapter = WireAdapter(family)
    return EntityStore(
        businesses=RemoteBusinessRepository(client, adapter),
        legal=RemoteLegalInfoRepository(client, adapter),
        social=RemoteSocialInfoRepository(client, adapter),
        applications=RemoteApplicationRepository(client, adapter),
    )
