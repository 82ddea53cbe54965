"""Shared pytest fixtures for the sellerflow test suite.

Provides:
- backend: InMemoryBackend (records every call, can be primed to fail)
- store: EntityStore over the backend
- kv / cache: in-memory advisory cache
- controller: WizardController wired to the above
- seed_*: helpers that populate the backend for a user
"""

import pytest

from sellerflow.models.business import (
    Application,
    Business,
    LegalInfo,
    SocialInfo,
)
from sellerflow.models.common import ApiFamily, ApplicationStatus
from sellerflow.onboarding.controller import WizardController
from sellerflow.repositories.memory import InMemoryBackend
from sellerflow.storage.cache import InMemoryKeyValueStore, OnboardingCache

USER_ID = "user-a"
OTHER_USER_ID = "user-b"


def make_business(
    business_id: str = "biz-1",
    user_id: str | None = USER_ID,
    **overrides,
) -> Business:
    fields = {
        "name": "Acme Traders",
        "email": "owner@acme.example",
        "phone": "9876543210",
        "address": "12 Market Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }
    fields.update(overrides)
    return Business(business_id=business_id, user_id=user_id, **fields)


def make_legal(business_id: str = "biz-1", **fields) -> LegalInfo:
    if not fields:
        fields = {"pan": "ABCDE1234F"}
    return LegalInfo(business_id=business_id, **fields)


def make_social(business_id: str = "biz-1", **fields) -> SocialInfo:
    if not fields:
        fields = {"website": "https://acme.example"}
    return SocialInfo(business_id=business_id, **fields)


def make_application(
    status: ApplicationStatus = ApplicationStatus.PENDING,
    business_id: str = "biz-1",
    application_id: str = "app-1",
    **fields,
) -> Application:
    return Application(
        application_id=application_id,
        business_id=business_id,
        status=status,
        **fields,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return backend.store()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(kv) -> OnboardingCache:
    return OnboardingCache(kv, ApiFamily.BUSINESS)


@pytest.fixture
def controller(store, cache) -> WizardController:
    return WizardController(store, cache)
