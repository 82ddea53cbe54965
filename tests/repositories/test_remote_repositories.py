"""Tests for the HTTP-backed EntityStore against a scripted backend.

A MockTransport routes (method, path) to canned JSON so each repository is
checked for the path it calls, the body it sends and how it reads the answer,
for both wire families.
"""

import json

import httpx
import pytest

from sellerflow.client.http import MarketplaceClient
from sellerflow.errors import NotFound, Unauthorized
from sellerflow.models.common import ApiFamily, ApplicationStatus
from sellerflow.onboarding.controller import WizardController
from sellerflow.repositories.remote import build_remote_store
from sellerflow.storage.cache import InMemoryKeyValueStore, OnboardingCache

BASE_URL = "https://api.example.test/v1"


class ScriptedBackend:
    """Answers requests from a route table and records what it saw."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[tuple[str, str, dict | None]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1/")
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))
        response = self.routes.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"message": "not found"})
        return response


def _ok(data) -> httpx.Response:
    return httpx.Response(200, json={"status": "success", "data": data})


@pytest.fixture
async def http_store():
    """Factory: (routes, family) -> (store, backend); closes clients at teardown."""
    clients: list[MarketplaceClient] = []

    def _build(routes, family=ApiFamily.BUSINESS):
        backend = ScriptedBackend(routes)
        client = MarketplaceClient(BASE_URL, transport=httpx.MockTransport(backend))
        clients.append(client)
        return build_remote_store(client, family), backend

    yield _build
    for client in clients:
        await client.aclose()


# ===================================================================
# business/* family
# ===================================================================


class TestBusinessFamily:
    async def test_find_for_user(self, http_store) -> None:
        store, backend = http_store({
            ("GET", "business/get/user/u1"): _ok({"business_id": "b1", "user_id": "u1"}),
        })
        ref = await store.businesses.find_for_user("u1")
        assert (ref.business_id, ref.owner_id) == ("b1", "u1")

    async def test_find_for_user_empty_data_is_not_found(self, http_store) -> None:
        store, _ = http_store({("GET", "business/get/user/u1"): _ok({})})
        with pytest.raises(NotFound):
            await store.businesses.find_for_user("u1")

    async def test_create_posts_prefixed_fields(self, http_store) -> None:
        store, backend = http_store({("POST", "business/create"): _ok({"business_id": "b7"})})
        business_id = await store.businesses.create("u1", {"name": "Acme", "phone": "9876543210"})
        assert business_id == "b7"
        assert backend.requests == [
            ("POST", "business/create",
             {"user_id": "u1", "business_name": "Acme", "business_phone": "9876543210"}),
        ]

    async def test_update_puts_to_id_path(self, http_store) -> None:
        store, backend = http_store({("PUT", "business/update/b1"): _ok({})})
        await store.businesses.update("b1", {"city": "Pune"})
        assert backend.requests[0] == (
            "PUT", "business/update/b1", {"business_id": "b1", "business_city": "Pune"},
        )

    async def test_missing_legal_is_not_found(self, http_store) -> None:
        store, _ = http_store({("GET", "business/legal/get/b1"): _ok({})})
        with pytest.raises(NotFound):
            await store.legal.get("b1")

    async def test_legal_create_falls_back_to_business_id(self, http_store) -> None:
        store, backend = http_store({("POST", "business/legal/create"): _ok({})})
        assert await store.legal.create("b1", {"pan": "ABCDE1234F"}) == "b1"
        assert backend.requests[0][2] == {"business_id": "b1", "pan_number": "ABCDE1234F"}

    async def test_social_get(self, http_store) -> None:
        store, _ = http_store({
            ("GET", "business/social/get/b1"): _ok({"linkedin_url": "https://linkedin.com/acme"}),
        })
        social = await store.social.get("b1")
        assert social.linkedin == "https://linkedin.com/acme"

    async def test_submit_sends_id_in_body(self, http_store) -> None:
        store, backend = http_store({
            ("POST", "business/application/create"): _ok({"application_id": "a1", "status": "pending"}),
        })
        application = await store.applications.create("b1")
        assert application.application_id == "a1"
        assert application.status == ApplicationStatus.PENDING
        assert backend.requests[0] == ("POST", "business/application/create", {"id": "b1"})

    async def test_submit_reads_plain_id(self, http_store) -> None:
        store, _ = http_store({("POST", "business/application/create"): _ok({"id": "a2"})})
        application = await store.applications.create("b1")
        assert application.application_id == "a2"
        assert application.business_id == "b1"

    async def test_application_404_is_not_found(self, http_store) -> None:
        store, _ = http_store({})
        with pytest.raises(NotFound):
            await store.applications.get_for_business("b1")

    async def test_unauthorized_propagates(self, http_store) -> None:
        store, _ = http_store({("GET", "business/get/b1"): httpx.Response(401)})
        with pytest.raises(Unauthorized):
            await store.businesses.get("b1")


# ===================================================================
# company/* family
# ===================================================================


class TestCompanyFamily:
    async def test_get_nested_company(self, http_store) -> None:
        store, _ = http_store(
            {("GET", "company/get/c1"): _ok({"company": {"company_id": "c1", "user_id": "u1",
                                                         "company_name": "Acme"}})},
            ApiFamily.COMPANY,
        )
        business = await store.businesses.get("c1")
        assert business.business_id == "c1"
        assert business.name == "Acme"

    async def test_update_uses_details_path_with_id_in_body(self, http_store) -> None:
        store, backend = http_store(
            {("PUT", "company/update/details"): _ok({})}, ApiFamily.COMPANY,
        )
        await store.businesses.update("c1", {"name": "Acme"})
        assert backend.requests[0] == (
            "PUT", "company/update/details", {"company_id": "c1", "company_name": "Acme"},
        )

    async def test_legal_update_has_no_id_in_path(self, http_store) -> None:
        store, backend = http_store(
            {("PUT", "company/legal/update"): _ok({})}, ApiFamily.COMPANY,
        )
        await store.legal.update("c1", {"gst": "22AAAAA0000A1Z5"})
        assert backend.requests[0] == (
            "PUT", "company/legal/update", {"company_id": "c1", "gst_number": "22AAAAA0000A1Z5"},
        )

    async def test_submit_sends_id_in_path(self, http_store) -> None:
        store, backend = http_store(
            {("POST", "company/application/create/c1"): _ok({"application": {"id": "a1"}})},
            ApiFamily.COMPANY,
        )
        application = await store.applications.create("c1")
        assert application.application_id == "a1"
        assert backend.requests[0] == ("POST", "company/application/create/c1", None)

    async def test_application_status_is_normalised(self, http_store) -> None:
        store, _ = http_store(
            {("GET", "company/application/get/company/c1"): _ok({"id": "a1", "status": "Approved"})},
            ApiFamily.COMPANY,
        )
        application = await store.applications.get_for_business("c1")
        assert application.status == ApplicationStatus.APPROVED


# ===================================================================
# End to end through the controller
# ===================================================================


class TestControllerOverHttp:
    async def test_resume_with_partial_records(self, http_store) -> None:
        store, backend = http_store(
            {
                ("GET", "company/get/user/u1"): _ok({"company_id": "c1", "user_id": "u1"}),
                ("GET", "company/get/c1"): _ok({
                    "company_id": "c1",
                    "user_id": "u1",
                    "company_name": "Acme",
                    "company_email": "a@acme.example",
                    "company_phone": "9876543210",
                    "company_address": "12 Market Road",
                }),
                ("GET", "company/legal/get/c1"): _ok({"gst_number": "22AAAAA0000A1Z5"}),
                ("GET", "company/social/get/c1"): _ok({}),
            },
            ApiFamily.COMPANY,
        )
        kv = InMemoryKeyValueStore()
        controller = WizardController(store, OnboardingCache(kv, ApiFamily.COMPANY))

        state = await controller.load_for_user("u1")

        assert state.step == 3
        assert state.business_id == "c1"
        assert kv.as_dict() == {"companyId": "c1"}
        assert all(method == "GET" for method, _, _ in backend.requests)
