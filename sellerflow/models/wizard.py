"""Derived wizard state and the actions that drive it.

WizardState is never authoritative. It is rebuilt from an
OnboardingSnapshot on every load; the only locally owned parts are the
step cursor and the session's advisory skip flags.
"""

from typing import Annotated, Literal, Union

from pydantic import Field, field_validator

from sellerflow.models.business import (
    BasicInfoPayload,
    LegalInfoPayload,
    OnboardingSnapshot,
    SkipFlags,
    SocialInfoPayload,
)
from sellerflow.models.common import (
    ApplicationStatus,
    Redirect,
    SellerflowBase,
    WizardStep,
)


SKIPPABLE_STEPS = frozenset({WizardStep.LEGAL_INFO, WizardStep.SOCIAL_INFO})


class CompletenessVector(SellerflowBase):
    """Which sub-entities satisfy their minimum-field requirement."""

    model_config = {"frozen": True}

    basic_complete: bool = False
    legal_complete: bool = False
    social_complete: bool = False
    has_application: bool = False


class Resolution(SellerflowBase):
    """Output of the step resolver.

    ``terminal`` is set for pending/approved: no step navigation is possible
    until the backend changes the status.
    """

    model_config = {"frozen": True}

    step: WizardStep = WizardStep.BASIC_INFO
    terminal: ApplicationStatus | None = None
    is_edit_mode: bool = False
    redirect: Redirect | None = None

    @property
    def is_terminal(self) -> bool:
        return self.terminal is not None


class WizardState(SellerflowBase):
    """Everything the wizard UI needs to render, derived from remote state."""

    model_config = {"frozen": True}

    user_id: str | None = None
    step: WizardStep = WizardStep.BASIC_INFO
    terminal: ApplicationStatus | None = None
    is_edit_mode: bool = False
    business_id: str | None = None
    application_id: str | None = None
    status: ApplicationStatus = ApplicationStatus.NONE
    locked_fields: bool = False
    redirect: Redirect | None = None
    completeness: CompletenessVector = Field(default_factory=CompletenessVector)
    skipped: SkipFlags = Field(default_factory=SkipFlags)
    snapshot: OnboardingSnapshot = Field(default_factory=OnboardingSnapshot)
    load_error: str | None = Field(
        default=None,
        description="Set when the load failed closed; the UI offers a manual retry.",
    )

    @classmethod
    def initial(cls, user_id: str | None = None, *, load_error: str | None = None) -> "WizardState":
        """The safe default: step 1, nothing known, nothing cached."""
        return cls(user_id=user_id, load_error=load_error)

    @property
    def is_terminal(self) -> bool:
        return self.terminal is not None


# ---------------------------------------------------------------------------
# Actions (tagged union consumed by WizardController.dispatch)
# ---------------------------------------------------------------------------


class CompleteBasicInfo(SellerflowBase):
    type: Literal["complete_basic_info"] = "complete_basic_info"
    payload: BasicInfoPayload


class CompleteLegalInfo(SellerflowBase):
    type: Literal["complete_legal_info"] = "complete_legal_info"
    payload: LegalInfoPayload


class CompleteSocialInfo(SellerflowBase):
    type: Literal["complete_social_info"] = "complete_social_info"
    payload: SocialInfoPayload


class SkipStep(SellerflowBase):
    type: Literal["skip_step"] = "skip_step"
    step: WizardStep

    @field_validator("step")
    @classmethod
    def _only_optional_steps(cls, v: WizardStep) -> WizardStep:
        if v not in SKIPPABLE_STEPS:
            msg = f"Step {int(v)} cannot be skipped."
            raise ValueError(msg)
        return v


class SubmitApplication(SellerflowBase):
    type: Literal["submit_application"] = "submit_application"


class GoBack(SellerflowBase):
    type: Literal["go_back"] = "go_back"


class Reload(SellerflowBase):
    type: Literal["reload"] = "reload"


WizardAction = Annotated[
    Union[
        CompleteBasicInfo,
        CompleteLegalInfo,
        CompleteSocialInfo,
        SkipStep,
        SubmitApplication,
        GoBack,
        Reload,
    ],
    Field(discriminator="type"),
]
