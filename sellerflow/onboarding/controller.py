"""WizardController: orchestrates load, step completion and submission.

Reconciliation loop:

    lookup business id -> fan out 4 fetches -> join -> evaluate -> resolve
        -> WizardState (+ advisory cache write-through)

Only this class mutates the WizardState. Every public coroutine registers
its task so ``dispose()`` can cancel in-flight work; after disposal neither
the state nor the cache is touched again.

Failure policy on load:
    - no business for the user      -> safe default, cache cleared
    - business/application unusable -> safe default with ``load_error``
    - legal/social unusable         -> treated as absent (warning); the next
                                       save re-fetches before choosing create
    - ownership mismatch            -> safe default, cache cleared, AccessDenied
    - Unauthorized                  -> propagated
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from pydantic import BaseModel, TypeAdapter

from sellerflow.errors import (
    AccessDenied,
    ControllerDisposed,
    EditingLocked,
    NoActiveUser,
    NotFound,
    SellerflowError,
    StepOutOfOrder,
    Unauthorized,
)
from sellerflow.models.business import (
    Application,
    BasicInfoPayload,
    Business,
    LegalInfo,
    LegalInfoPayload,
    OnboardingSnapshot,
    SkipFlags,
    SocialInfo,
    SocialInfoPayload,
)
from sellerflow.models.common import ApplicationStatus, WizardStep
from sellerflow.models.wizard import (
    SKIPPABLE_STEPS,
    CompleteBasicInfo,
    CompleteLegalInfo,
    CompleteSocialInfo,
    GoBack,
    Reload,
    SkipStep,
    SubmitApplication,
    WizardAction,
    WizardState,
)
from sellerflow.onboarding.completion import evaluate_snapshot
from sellerflow.onboarding.resolver import resolve
from sellerflow.onboarding.submission import ApplicationSubmissionManager
from sellerflow.onboarding.validation import (
    validate_basic_info,
    validate_legal_info,
    validate_social_info,
)
from sellerflow.repositories.base import EntityStore, OptionalInfoRepository
from sellerflow.storage.cache import OnboardingCache

logger = structlog.get_logger(__name__)

_ACTION_ADAPTER: TypeAdapter[WizardAction] = TypeAdapter(WizardAction)


def _coerce(payload: Any, model: type[BaseModel]) -> Any:
    if isinstance(payload, model):
        return payload
    if payload is None:
        return model()
    return model.model_validate(payload)


def _fetched(result: Any) -> Any:
    """Unpack one gather() result for an optional entity.

    NotFound becomes None. Unauthorized and non-sellerflow exceptions
    propagate. Other sellerflow errors are returned for the caller to judge.
    """
    if isinstance(result, NotFound):
        return None
    if isinstance(result, Unauthorized):
        raise result
    if isinstance(result, BaseException) and not isinstance(result, SellerflowError):
        raise result
    return result


class WizardController:
    """Drives the four-step seller onboarding wizard for one user at a time."""

    def __init__(
        self,
        store: EntityStore,
        cache: OnboardingCache,
        *,
        submission: ApplicationSubmissionManager | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._submission = submission or ApplicationSubmissionManager(store.applications, cache)
        self._state = WizardState.initial()
        self._local_skips = SkipFlags()
        self._unverified: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self._disposed = False

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel in-flight operations and refuse any new ones."""
        if self._disposed:
            return
        self._disposed = True
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self._tasks.clear()
        logger.info("wizard_disposed", user_id=self._state.user_id)

    def _ensure_open(self) -> None:
        if self._disposed:
            msg = "Wizard controller has been disposed."
            raise ControllerDisposed(msg)

    @asynccontextmanager
    async def _tracked(self) -> AsyncIterator[None]:
        self._ensure_open()
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        try:
            yield
        finally:
            if task is not None:
                self._tasks.discard(task)

    def _commit(self, state: WizardState) -> WizardState:
        self._ensure_open()
        self._state = state
        return state

    def _deny(self, user_id: str, owner_id: str | None) -> AccessDenied:
        """Reset to the safe default and build the error to raise."""
        self._ensure_open()
        self._cache.clear()
        self._local_skips = SkipFlags()
        self._state = WizardState.initial(user_id)
        logger.warning("business_access_denied", owner_id=owner_id)
        return AccessDenied(user_id, owner_id)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _derive(self, user_id: str, snapshot: OnboardingSnapshot) -> WizardState:
        business = snapshot.business
        skipped = self._local_skips
        if business is not None:
            skipped = business.skipped.merge(skipped)

        completeness = evaluate_snapshot(snapshot)
        resolution = resolve(completeness, snapshot.status, skipped)
        application = snapshot.application

        return WizardState(
            user_id=user_id,
            step=resolution.step,
            terminal=resolution.terminal,
            is_edit_mode=resolution.is_edit_mode,
            business_id=None if business is None else business.business_id,
            application_id=(application.application_id or None) if application else None,
            status=snapshot.status,
            locked_fields=resolution.terminal == ApplicationStatus.PENDING,
            redirect=resolution.redirect,
            completeness=completeness,
            skipped=skipped,
            snapshot=snapshot,
        )

    def _write_through(self, state: WizardState) -> None:
        if state.business_id is None:
            self._cache.clear()
            return
        self._cache.remember_business(state.business_id)
        if state.application_id:
            self._cache.remember_application(state.application_id, state.status)
        else:
            self._cache.forget_application()

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load_for_user(self, user_id: str) -> WizardState:
        """Rebuild the wizard state for ``user_id`` from the backend.

        Raises:
            AccessDenied: The business found for the user is owned by
                someone else. State and cache are reset first.
            Unauthorized: Propagated unchanged.
            ControllerDisposed: The controller was disposed.
        """
        async with self._tracked():
            with structlog.contextvars.bound_contextvars(user_id=user_id):
                if self._state.user_id != user_id:
                    self._local_skips = SkipFlags()
                state = await self._load(user_id)
                self._commit(state)
                if state.load_error is None:
                    self._write_through(state)
                logger.info(
                    "wizard_loaded",
                    business_id=state.business_id,
                    step=int(state.step),
                    status=state.status.value,
                    terminal=state.is_terminal,
                )
                return state

    async def _load(self, user_id: str) -> WizardState:
        businesses = self._store.businesses
        try:
            ref = await businesses.find_for_user(user_id)
        except NotFound:
            return WizardState.initial(user_id)
        except Unauthorized:
            raise
        except SellerflowError as exc:
            logger.warning("business_lookup_failed", error=str(exc))
            return WizardState.initial(user_id, load_error=str(exc))

        if ref.owner_id is not None and ref.owner_id != user_id:
            raise self._deny(user_id, ref.owner_id)

        business_id = ref.business_id
        results = await asyncio.gather(
            businesses.get(business_id),
            self._store.legal.get(business_id),
            self._store.social.get(business_id),
            self._store.applications.get_for_business(business_id),
            return_exceptions=True,
        )
        business_r, legal_r, social_r, application_r = (_fetched(r) for r in results)

        if business_r is None:
            return WizardState.initial(user_id)
        if isinstance(business_r, SellerflowError):
            logger.warning("business_fetch_failed", business_id=business_id, error=str(business_r))
            return WizardState.initial(user_id, load_error=str(business_r))
        business: Business = business_r
        if not business.is_owned_by(user_id):
            raise self._deny(user_id, business.user_id)

        if isinstance(application_r, SellerflowError):
            logger.warning(
                "application_fetch_failed", business_id=business_id, error=str(application_r),
            )
            return WizardState.initial(user_id, load_error=str(application_r))

        legal: LegalInfo | None = legal_r
        if isinstance(legal_r, SellerflowError):
            logger.warning("legal_fetch_failed", business_id=business_id, error=str(legal_r))
            legal = None
        social: SocialInfo | None = social_r
        if isinstance(social_r, SellerflowError):
            logger.warning("social_fetch_failed", business_id=business_id, error=str(social_r))
            social = None

        # a failed fetch may hide an existing record
        self._unverified = {
            name for name, r in (("legal", legal_r), ("social", social_r))
            if isinstance(r, SellerflowError)
        }

        snapshot = OnboardingSnapshot(
            business=business, legal=legal, social=social, application=application_r,
        )
        return self._derive(user_id, snapshot)

    # ------------------------------------------------------------------
    # Step completion
    # ------------------------------------------------------------------

    async def complete_step(
        self,
        step: WizardStep | int,
        payload: Any = None,
        *,
        skip: bool = False,
    ) -> WizardState:
        """Validate, persist and advance past ``step``.

        Steps 1 to 3 move the cursor to the next step; step 4 submits the
        application and lands in Terminal(pending).

        Raises:
            EditingLocked: A review is outstanding or finished.
            FieldValidationError: The payload failed local validation.
            StepOutOfOrder: Steps 2 to 4 before the Business exists.
            AccessDenied: The Business is owned by someone else.
            SubmissionNotAllowed: Step 4 preconditions are not met.
            NetworkError / RemoteError / Unauthorized: Propagated; the
                state is left unchanged.
        """
        step = WizardStep(step)
        async with self._tracked():
            state = self._state
            if state.user_id is None:
                msg = "No user loaded; call load_for_user first."
                raise NoActiveUser(msg)
            if skip and step not in SKIPPABLE_STEPS:
                msg = f"Step {int(step)} cannot be skipped."
                raise ValueError(msg)
            if state.locked_fields or state.is_terminal:
                msg = f"Application is {state.status.value}; editing is locked."
                raise EditingLocked(msg)
            if state.load_error is not None:
                msg = "The last load failed; reload before editing."
                raise EditingLocked(msg)

            with structlog.contextvars.bound_contextvars(
                user_id=state.user_id, business_id=state.business_id,
            ):
                if step == WizardStep.BASIC_INFO:
                    snapshot = await self._save_basic_info(state, payload)
                elif skip:
                    snapshot = await self._record_skip(state, step)
                elif step == WizardStep.LEGAL_INFO:
                    snapshot = await self._save_legal_info(state, payload)
                elif step == WizardStep.SOCIAL_INFO:
                    snapshot = await self._save_social_info(state, payload)
                else:
                    snapshot = await self._submit(state)

                derived = self._derive(state.user_id, snapshot)
                if not derived.is_terminal:
                    next_step = WizardStep(min(int(step) + 1, int(WizardStep.REVIEW)))
                    derived = derived.model_copy(update={"step": next_step})
                self._commit(derived)
                logger.info(
                    "wizard_step_completed",
                    step=int(step),
                    skipped=skip,
                    next_step=int(derived.step),
                    status=derived.status.value,
                )
                return derived

    async def _verify_owner(self, state: WizardState) -> Business:
        """Fresh Business fetch guarding every write."""
        if state.business_id is None:
            msg = "Basic business information must be saved first."
            raise StepOutOfOrder(msg)
        business = await self._store.businesses.get(state.business_id)
        if not business.is_owned_by(state.user_id):
            raise self._deny(state.user_id, business.user_id)
        return business

    async def _save_basic_info(self, state: WizardState, payload: Any) -> OnboardingSnapshot:
        fields = validate_basic_info(_coerce(payload, BasicInfoPayload))
        if state.business_id is None:
            business_id = await self._store.businesses.create(state.user_id, fields)
            self._ensure_open()
            self._cache.remember_business(business_id)
            business = Business(business_id=business_id, user_id=state.user_id, **fields)
        else:
            current = await self._verify_owner(state)
            await self._store.businesses.update(current.business_id, fields)
            business = current.model_copy(update=fields)
        return state.snapshot.model_copy(update={"business": business})

    async def _existing(
        self,
        name: str,
        loaded: Any,
        repository: OptionalInfoRepository,
        business_id: str,
    ) -> Any:
        """The loaded record, or a fresh fetch when the load could not tell."""
        if loaded is not None or name not in self._unverified:
            return loaded
        try:
            found = await repository.get(business_id)
        except NotFound:
            found = None
        self._ensure_open()
        self._unverified.discard(name)
        return found

    async def _save_legal_info(self, state: WizardState, payload: Any) -> OnboardingSnapshot:
        fields = validate_legal_info(_coerce(payload, LegalInfoPayload))
        business = await self._verify_owner(state)
        existing = await self._existing(
            "legal", state.snapshot.legal, self._store.legal, business.business_id,
        )
        if existing is None:
            await self._store.legal.create(business.business_id, fields)
            legal = LegalInfo(business_id=business.business_id, **fields)
        else:
            await self._store.legal.update(business.business_id, fields)
            legal = existing.model_copy(update=fields)
        return state.snapshot.model_copy(update={"business": business, "legal": legal})

    async def _save_social_info(self, state: WizardState, payload: Any) -> OnboardingSnapshot:
        fields = validate_social_info(_coerce(payload, SocialInfoPayload))
        business = await self._verify_owner(state)
        existing = await self._existing(
            "social", state.snapshot.social, self._store.social, business.business_id,
        )
        if existing is None:
            await self._store.social.create(business.business_id, fields)
            social = SocialInfo(business_id=business.business_id, **fields)
        else:
            await self._store.social.update(business.business_id, fields)
            social = existing.model_copy(update=fields)
        return state.snapshot.model_copy(update={"business": business, "social": social})

    async def _record_skip(self, state: WizardState, step: WizardStep) -> OnboardingSnapshot:
        business = await self._verify_owner(state)
        flag = SkipFlags(
            legal=step == WizardStep.LEGAL_INFO,
            social=step == WizardStep.SOCIAL_INFO,
        )
        skipped = business.skipped.merge(flag)
        await self._store.businesses.update(business.business_id, {"skipped": skipped})
        self._ensure_open()
        self._local_skips = self._local_skips.merge(flag)
        business = business.model_copy(update={"skipped": skipped})
        return state.snapshot.model_copy(update={"business": business})

    async def _submit(self, state: WizardState) -> OnboardingSnapshot:
        business = await self._verify_owner(state)
        snapshot = state.snapshot.model_copy(update={"business": business})
        application: Application = await self._submission.submit(
            business.business_id,
            snapshot=snapshot,
            is_edit_mode=state.is_edit_mode,
        )
        return snapshot.model_copy(update={"application": application})

    # ------------------------------------------------------------------
    # Navigation and dispatch
    # ------------------------------------------------------------------

    def go_back(self) -> WizardState:
        """Move the cursor back one step (floor 1). Nothing remote is undone."""
        self._ensure_open()
        state = self._state
        if state.is_terminal or state.step == WizardStep.BASIC_INFO:
            return state
        return self._commit(state.model_copy(update={"step": WizardStep(int(state.step) - 1)}))

    async def dispatch(self, action: WizardAction | dict[str, Any]) -> WizardState:
        """Single entry point over the tagged action union."""
        if isinstance(action, dict):
            action = _ACTION_ADAPTER.validate_python(action)

        if isinstance(action, CompleteBasicInfo):
            return await self.complete_step(WizardStep.BASIC_INFO, action.payload)
        if isinstance(action, CompleteLegalInfo):
            return await self.complete_step(WizardStep.LEGAL_INFO, action.payload)
        if isinstance(action, CompleteSocialInfo):
            return await self.complete_step(WizardStep.SOCIAL_INFO, action.payload)
        if isinstance(action, SkipStep):
            return await self.complete_step(action.step, skip=True)
        if isinstance(action, SubmitApplication):
            return await self.complete_step(WizardStep.REVIEW)
        if isinstance(action, GoBack):
            return self.go_back()
        if isinstance(action, Reload):
            if self._state.user_id is None:
                msg = "No user loaded; call load_for_user first."
                raise NoActiveUser(msg)
            return await self.load_for_user(self._state.user_id)

        msg = f"Unknown wizard action: {action!r}"
        raise TypeError(msg)
