"""Tests for the status gate: projection table, refresh, polling, prompt."""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import OTHER_USER_ID, USER_ID, make_application, make_business
from sellerflow.errors import AccessDenied, NetworkError, NotFound
from sellerflow.models.common import ApplicationStatus, Redirect
from sellerflow.onboarding.status_gate import (
    StatusAction,
    StatusGate,
    project,
    seller_prompt,
)


@pytest.fixture
def gate(store, cache) -> StatusGate:
    return StatusGate(store, cache, poll_interval_s=0.0, poll_max_attempts=3)


# ===================================================================
# Projection
# ===================================================================


class TestProject:
    def test_approved(self) -> None:
        display = project(ApplicationStatus.APPROVED)
        assert display.icon == "checkmark-circle"
        assert display.title == "Application Approved"
        assert display.action == StatusAction.GO_TO_DASHBOARD
        assert display.locked_fields is False

    def test_pending_locks_fields(self) -> None:
        display = project(ApplicationStatus.PENDING)
        assert display.icon == "time"
        assert display.title == "Application Under Review"
        assert display.action == StatusAction.NONE
        assert display.locked_fields is True

    def test_rejected_offers_resubmission(self) -> None:
        display = project(ApplicationStatus.REJECTED)
        assert display.icon == "close-circle"
        assert display.action == StatusAction.EDIT_AND_RESUBMIT

    def test_none_offers_start(self) -> None:
        display = project(ApplicationStatus.NONE)
        assert display.icon == "help-circle"
        assert display.title == "No Application Found"
        assert display.action == StatusAction.START_APPLICATION

    def test_every_status_projects(self) -> None:
        for status in ApplicationStatus:
            assert project(status).message


# ===================================================================
# Refresh
# ===================================================================


class TestRefresh:
    async def test_no_business_projects_none(self, gate, cache) -> None:
        cache.remember_business("stale")
        view = await gate.refresh(USER_ID)
        assert view.status == ApplicationStatus.NONE
        assert view.display.action == StatusAction.START_APPLICATION
        assert view.redirect == Redirect.ONBOARDING_WIZARD
        assert cache.business_id is None

    async def test_no_application_projects_none(self, gate, backend, cache) -> None:
        backend.seed_business(make_business())
        view = await gate.refresh(USER_ID)
        assert view.status == ApplicationStatus.NONE
        assert view.business_id == "biz-1"
        assert cache.business_id == "biz-1"
        assert cache.seller_status is None

    async def test_rejected_carries_reason_and_writes_cache(self, gate, backend, cache) -> None:
        backend.seed_business(make_business())
        backend.seed_application(
            make_application(ApplicationStatus.REJECTED, rejection_reason="GST mismatch"),
        )
        view = await gate.refresh(USER_ID)
        assert view.status == ApplicationStatus.REJECTED
        assert view.rejection_reason == "GST mismatch"
        assert cache.seller_status == ApplicationStatus.REJECTED
        assert cache.application_id == "app-1"

    async def test_approved_redirects_to_dashboard(self, gate, backend) -> None:
        backend.seed_business(make_business())
        backend.seed_application(make_application(ApplicationStatus.APPROVED))
        view = await gate.refresh(USER_ID)
        assert view.redirect == Redirect.SELLER_DASHBOARD

    async def test_pending_stays_on_status_screen(self, gate, backend) -> None:
        backend.seed_business(make_business())
        backend.seed_application(make_application(ApplicationStatus.PENDING))
        view = await gate.refresh(USER_ID)
        assert view.redirect is None
        assert view.display.locked_fields is True

    async def test_foreign_business_is_denied(self, gate, backend, cache) -> None:
        backend.seed_business(make_business(user_id=USER_ID))
        backend.link_user(OTHER_USER_ID, "biz-1")
        cache.remember_application("app-1", ApplicationStatus.APPROVED)
        with pytest.raises(AccessDenied):
            await gate.refresh(OTHER_USER_ID)
        assert cache.seller_status is None
        assert cache.application_id is None

    async def test_vanished_business_projects_none(self, gate, backend, cache) -> None:
        backend.seed_business(make_business())
        backend.fail_next("business.get", NotFound("business", "biz-1"))
        cache.remember_business("biz-1")
        cache.remember_application("app-1", ApplicationStatus.PENDING)

        view = await gate.refresh(USER_ID)

        assert view.status == ApplicationStatus.NONE
        assert view.business_id is None
        assert view.redirect == Redirect.ONBOARDING_WIZARD
        assert cache.business_id is None
        assert cache.seller_status is None

    async def test_network_failure_propagates(self, gate, backend) -> None:
        backend.seed_business(make_business())
        backend.fail_next("application.get", NetworkError("offline"))
        with pytest.raises(NetworkError):
            await gate.refresh(USER_ID)


# ===================================================================
# Polling
# ===================================================================


class TestWatch:
    async def test_returns_first_non_pending_view(self, gate, backend) -> None:
        backend.seed_business(make_business())
        backend.seed_application(make_application(ApplicationStatus.PENDING))

        async def _approve(_delay: float) -> None:
            backend.seed_application(make_application(ApplicationStatus.APPROVED))

        with patch("sellerflow.onboarding.status_gate.asyncio.sleep", side_effect=_approve) as sleep:
            view = await gate.watch(USER_ID, interval_s=5.0)

        assert view.status == ApplicationStatus.APPROVED
        sleep.assert_awaited_once_with(5.0)

    async def test_gives_up_after_max_attempts(self, gate, backend) -> None:
        backend.seed_business(make_business())
        backend.seed_application(make_application(ApplicationStatus.PENDING))
        with patch("sellerflow.onboarding.status_gate.asyncio.sleep", new=AsyncMock()) as sleep:
            view = await gate.watch(USER_ID)
        assert view.status == ApplicationStatus.PENDING
        assert sleep.await_count == 2
        assert backend.calls.count(("application.get", "biz-1")) == 3

    async def test_non_pending_returns_without_sleeping(self, gate, backend) -> None:
        backend.seed_business(make_business())
        with patch("sellerflow.onboarding.status_gate.asyncio.sleep", new=AsyncMock()) as sleep:
            view = await gate.watch(USER_ID)
        assert view.status == ApplicationStatus.NONE
        sleep.assert_not_awaited()

    async def test_rejects_zero_attempts(self, gate) -> None:
        with pytest.raises(ValueError):
            await gate.watch(USER_ID, max_attempts=0)


# ===================================================================
# Become-a-seller prompt
# ===================================================================


class TestSellerPrompt:
    def test_no_cached_status_invites_to_start(self, cache) -> None:
        prompt = seller_prompt(cache)
        assert prompt is not None
        assert prompt.title == "Become a Seller"
        assert prompt.redirect == Redirect.ONBOARDING_WIZARD

    def test_pending_routes_to_status_screen(self, cache) -> None:
        cache.remember_status(ApplicationStatus.PENDING)
        prompt = seller_prompt(cache)
        assert prompt.subtitle == "Tap to check status"
        assert prompt.redirect == Redirect.APPLICATION_STATUS

    def test_rejected_routes_to_wizard(self, cache) -> None:
        cache.remember_status(ApplicationStatus.REJECTED)
        prompt = seller_prompt(cache)
        assert prompt.subtitle == "Tap to resubmit"
        assert prompt.redirect == Redirect.ONBOARDING_WIZARD

    def test_hidden_for_approved_sellers(self, cache) -> None:
        cache.remember_status(ApplicationStatus.APPROVED)
        assert seller_prompt(cache) is None

    def test_status_is_read_case_insensitively(self, kv, cache) -> None:
        kv.set("sellerStatus", "PENDING")
        assert seller_prompt(cache).redirect == Redirect.APPLICATION_STATUS
