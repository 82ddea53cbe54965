"""Application submission: fire-and-confirm, never retried here.

First submissions and resubmissions after a rejection go through the same
backend call; the backend treats a second create for the same business as
a resubmission and puts the record back in review. On success the status
is written to the local cache as pending so a cold start knows a review
is in flight without a network round trip.
"""

import logging

from sellerflow.errors import SubmissionNotAllowed
from sellerflow.models.business import Application, OnboardingSnapshot
from sellerflow.models.common import ApplicationStatus
from sellerflow.onboarding.completion import evaluate_snapshot
from sellerflow.repositories.base import ApplicationRepository
from sellerflow.storage.cache import OnboardingCache

logger = logging.getLogger(__name__)

_IN_REVIEW_OR_DONE = frozenset({ApplicationStatus.PENDING, ApplicationStatus.APPROVED})


class ApplicationSubmissionManager:
    """Submit (or resubmit) the seller application for a business."""

    def __init__(self, applications: ApplicationRepository, cache: OnboardingCache) -> None:
        self._applications = applications
        self._cache = cache

    def check(self, business_id: str | None, snapshot: OnboardingSnapshot) -> None:
        """Raise ``SubmissionNotAllowed`` unless a submit may be attempted.

        Legal and social info are optional at submission time; only the
        basic business info gates it.
        """
        if not business_id:
            msg = "No business to submit an application for."
            raise SubmissionNotAllowed(msg)
        if not evaluate_snapshot(snapshot).basic_complete:
            msg = "Basic business information is incomplete."
            raise SubmissionNotAllowed(msg)
        if snapshot.status in _IN_REVIEW_OR_DONE:
            msg = f"Application is already {snapshot.status.value}."
            raise SubmissionNotAllowed(msg)

    async def submit(
        self,
        business_id: str,
        *,
        snapshot: OnboardingSnapshot,
        is_edit_mode: bool = False,
    ) -> Application:
        """Create the application, or resubmit it when in edit mode.

        Returns:
            The application as confirmed by the backend, status pending.

        Raises:
            SubmissionNotAllowed: If the preconditions in ``check`` fail.
            NetworkError / RemoteError / Unauthorized: Propagated unchanged;
                the caller presents the retry affordance.
        """
        self.check(business_id, snapshot)

        application = await self._applications.create(business_id)
        if application.status == ApplicationStatus.NONE:
            # creation implies review; some backends omit the status field
            application = application.model_copy(update={"status": ApplicationStatus.PENDING})

        self._cache.remember_application(application.application_id, application.status)
        logger.info(
            "%s application %s for business %s",
            "Resubmitted" if is_edit_mode else "Submitted",
            application.application_id,
            business_id,
        )
        return application
