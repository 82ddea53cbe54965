"""Step resolver: completeness + application status -> wizard position.

Rules, evaluated top-down, first match wins:

1. approved  -> Terminal(approved), redirect to the seller dashboard
2. pending   -> Terminal(pending), read-only, redirect to the status screen
3. rejected  -> edit mode at step 1, every step pre-populated
4. none      -> first unsatisfied step; legal/social count as satisfied
                when complete OR explicitly skipped
5. none but an application id exists (contradictory) -> Terminal(pending)

Deterministic and total. It never reads a cached step number, so a cold
start reproduces the same position from remote data alone.
"""

from sellerflow.models.business import SkipFlags
from sellerflow.models.common import ApplicationStatus, Redirect, WizardStep
from sellerflow.models.wizard import CompletenessVector, Resolution

_TERMINAL_REDIRECTS: dict[ApplicationStatus, Redirect] = {
    ApplicationStatus.APPROVED: Redirect.SELLER_DASHBOARD,
    ApplicationStatus.PENDING: Redirect.APPLICATION_STATUS,
}


def _terminal(status: ApplicationStatus) -> Resolution:
    return Resolution(
        step=WizardStep.REVIEW,
        terminal=status,
        is_edit_mode=False,
        redirect=_TERMINAL_REDIRECTS[status],
    )


def resolve(
    completeness: CompletenessVector,
    status: ApplicationStatus,
    skipped: SkipFlags | None = None,
) -> Resolution:
    """Decide where the wizard stands."""
    skipped = skipped or SkipFlags()

    if status == ApplicationStatus.APPROVED:
        return _terminal(ApplicationStatus.APPROVED)
    if status == ApplicationStatus.PENDING:
        return _terminal(ApplicationStatus.PENDING)
    if status == ApplicationStatus.REJECTED:
        return Resolution(step=WizardStep.BASIC_INFO, is_edit_mode=True)

    legal_ok = completeness.legal_complete or skipped.legal
    social_ok = completeness.social_complete or skipped.social

    if not completeness.basic_complete:
        return Resolution(step=WizardStep.BASIC_INFO)
    if not legal_ok:
        return Resolution(step=WizardStep.LEGAL_INFO)
    if not social_ok:
        return Resolution(step=WizardStep.SOCIAL_INFO)
    if not completeness.has_application:
        return Resolution(step=WizardStep.REVIEW)
    return _terminal(ApplicationStatus.PENDING)
