"""Status gate: the read side of a submitted application.

Projects an application status onto what the status screen shows, refreshes
it from the backend (with the same ownership check as the wizard), polls
while a review is in flight, and drives the "become a seller" prompt from
the cached status alone.

Deterministic projection; the only I/O is in ``refresh`` / ``watch``.
"""

import asyncio
from dataclasses import dataclass
from enum import StrEnum

import structlog

from sellerflow.errors import AccessDenied, NotFound
from sellerflow.models.business import Application
from sellerflow.models.common import ApplicationStatus, Redirect
from sellerflow.repositories.base import EntityStore
from sellerflow.storage.cache import OnboardingCache

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL_S = 30.0
DEFAULT_POLL_MAX_ATTEMPTS = 20


class StatusAction(StrEnum):
    """Primary call to action on the status screen."""

    GO_TO_DASHBOARD = "go_to_dashboard"
    NONE = "none"
    EDIT_AND_RESUBMIT = "edit_and_resubmit"
    START_APPLICATION = "start_application"


@dataclass(frozen=True)
class StatusDisplay:
    """What the status screen renders for one application status."""

    icon: str
    title: str
    message: str
    locked_fields: bool
    action: StatusAction


_DISPLAYS: dict[ApplicationStatus, StatusDisplay] = {
    ApplicationStatus.APPROVED: StatusDisplay(
        icon="checkmark-circle",
        title="Application Approved",
        message=(
            "Your seller application has been approved. "
            "You can now access the seller dashboard."
        ),
        locked_fields=False,
        action=StatusAction.GO_TO_DASHBOARD,
    ),
    ApplicationStatus.PENDING: StatusDisplay(
        icon="time",
        title="Application Under Review",
        message=(
            "Your seller application is being reviewed by our team. "
            "This usually takes 1-3 business days."
        ),
        locked_fields=True,
        action=StatusAction.NONE,
    ),
    ApplicationStatus.REJECTED: StatusDisplay(
        icon="close-circle",
        title="Application Rejected",
        message=(
            "Unfortunately, your seller application was not approved. "
            "Please review the feedback and resubmit."
        ),
        locked_fields=False,
        action=StatusAction.EDIT_AND_RESUBMIT,
    ),
    ApplicationStatus.NONE: StatusDisplay(
        icon="help-circle",
        title="No Application Found",
        message=(
            "You haven't submitted a seller application yet. "
            "Start the process to become a seller."
        ),
        locked_fields=False,
        action=StatusAction.START_APPLICATION,
    ),
}

_REDIRECTS: dict[ApplicationStatus, Redirect | None] = {
    ApplicationStatus.APPROVED: Redirect.SELLER_DASHBOARD,
    ApplicationStatus.PENDING: None,
    ApplicationStatus.REJECTED: Redirect.ONBOARDING_WIZARD,
    ApplicationStatus.NONE: Redirect.ONBOARDING_WIZARD,
}


def project(status: ApplicationStatus) -> StatusDisplay:
    """Map an application status to its status-screen display."""
    return _DISPLAYS[status]


@dataclass(frozen=True)
class StatusView:
    """Result of a status refresh."""

    user_id: str
    business_id: str | None
    application: Application | None
    display: StatusDisplay

    @property
    def status(self) -> ApplicationStatus:
        if self.application is None:
            return ApplicationStatus.NONE
        return self.application.status

    @property
    def rejection_reason(self) -> str | None:
        if self.application is None:
            return None
        return self.application.rejection_reason

    @property
    def redirect(self) -> Redirect | None:
        """Where the status screen sends the user next (None: stay)."""
        return _REDIRECTS[self.status]


@dataclass(frozen=True)
class SellerPrompt:
    """The "become a seller" banner shown outside the wizard."""

    icon: str
    title: str
    subtitle: str
    redirect: Redirect


def seller_prompt(cache: OnboardingCache) -> SellerPrompt | None:
    """Banner for the cached status, or None when the user already sells.

    Reads only the advisory cache so it can render before any network call.
    """
    status = cache.seller_status
    if status == ApplicationStatus.APPROVED:
        return None
    if status == ApplicationStatus.PENDING:
        return SellerPrompt(
            icon="time",
            title="Application Under Review",
            subtitle="Tap to check status",
            redirect=Redirect.APPLICATION_STATUS,
        )
    if status == ApplicationStatus.REJECTED:
        return SellerPrompt(
            icon="alert-circle",
            title="Application Rejected",
            subtitle="Tap to resubmit",
            redirect=Redirect.ONBOARDING_WIZARD,
        )
    return SellerPrompt(
        icon="storefront",
        title="Become a Seller",
        subtitle="Start selling now!",
        redirect=Redirect.ONBOARDING_WIZARD,
    )


class StatusGate:
    """Refreshes and polls the application status for one user."""

    def __init__(
        self,
        store: EntityStore,
        cache: OnboardingCache,
        *,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        poll_max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
    ) -> None:
        self._store = store
        self._cache = cache
        self._poll_interval_s = poll_interval_s
        self._poll_max_attempts = poll_max_attempts

    def _no_business(self, user_id: str) -> StatusView:
        self._cache.clear()
        logger.info("status_refreshed", status=ApplicationStatus.NONE.value)
        return StatusView(user_id, None, None, project(ApplicationStatus.NONE))

    async def refresh(self, user_id: str) -> StatusView:
        """Fetch the current application status and write it to the cache.

        Raises:
            AccessDenied: The looked-up business belongs to someone else.
                The cache is cleared first.
            Unauthorized / NetworkError / RemoteError: Propagated unchanged.
        """
        with structlog.contextvars.bound_contextvars(user_id=user_id):
            try:
                ref = await self._store.businesses.find_for_user(user_id)
            except NotFound:
                return self._no_business(user_id)

            try:
                business = await self._store.businesses.get(ref.business_id)
            except NotFound:
                # lookup pointed at a record that is gone
                return self._no_business(user_id)
            if not business.is_owned_by(user_id):
                self._cache.clear()
                logger.warning("status_access_denied", business_id=ref.business_id)
                raise AccessDenied(user_id, business.user_id)

            try:
                application = await self._store.applications.get_for_business(business.business_id)
            except NotFound:
                application = None

            self._cache.remember_business(business.business_id)
            if application is not None and application.application_id:
                self._cache.remember_application(application.application_id, application.status)
            else:
                self._cache.forget_application()

            view = StatusView(
                user_id=user_id,
                business_id=business.business_id,
                application=application,
                display=project(ApplicationStatus.NONE if application is None else application.status),
            )
            logger.info(
                "status_refreshed",
                business_id=business.business_id,
                status=view.status.value,
            )
            return view

    async def watch(
        self,
        user_id: str,
        *,
        interval_s: float | None = None,
        max_attempts: int | None = None,
    ) -> StatusView:
        """Refresh until the status leaves pending, or attempts run out.

        Returns the first non-pending view, or the last pending one.
        Errors from any refresh propagate; there is no retry.
        """
        interval_s = self._poll_interval_s if interval_s is None else interval_s
        max_attempts = self._poll_max_attempts if max_attempts is None else max_attempts
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}."
            raise ValueError(msg)

        view = await self.refresh(user_id)
        attempts = 1
        while view.status == ApplicationStatus.PENDING and attempts < max_attempts:
            await asyncio.sleep(interval_s)
            view = await self.refresh(user_id)
            attempts += 1

        if view.status == ApplicationStatus.PENDING:
            logger.info("status_watch_exhausted", user_id=user_id, attempts=attempts)
        return view
