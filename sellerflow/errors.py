"""Error taxonomy for the onboarding engine.

NotFound is folded into "incomplete" by callers and never reaches the user.
Unauthorized and the network family are surfaced unchanged; the core never
retries on its own. AccessDenied always comes with a reset to the safe default.
"""


class SellerflowError(Exception):
    """Root of every error raised by sellerflow."""


class NotFound(SellerflowError):
    """The requested remote entity does not exist (yet)."""

    def __init__(self, resource: str, key: str | None = None) -> None:
        self.resource = resource
        self.key = key
        msg = f"{resource} not found" if key is None else f"{resource} {key!r} not found"
        super().__init__(msg)


class Unauthorized(SellerflowError):
    """The backend rejected the caller's credentials (401/403)."""


class AccessDenied(SellerflowError):
    """The fetched record belongs to a different user."""

    def __init__(self, user_id: str, owner_id: str | None) -> None:
        self.user_id = user_id
        self.owner_id = owner_id
        msg = f"Business does not belong to user {user_id!r}."
        super().__init__(msg)


class NetworkError(SellerflowError):
    """Transport failure talking to the backend."""


class RequestTimeout(NetworkError):
    """A remote call exceeded the configured timeout."""


class RemoteError(SellerflowError):
    """The backend answered with an unexpected non-success status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        msg = f"Backend error {status_code}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class MalformedResponse(SellerflowError, ValueError):
    """The backend answered 2xx with a body that cannot be interpreted."""


class FieldValidationError(SellerflowError, ValueError):
    """Local, field-level validation failure. Never sent to the network."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        msg = f"Invalid fields: {fields}"
        super().__init__(msg)


class EditingLocked(SellerflowError):
    """A review is outstanding (or finished) so the record is read-only."""


class SubmissionNotAllowed(SellerflowError):
    """Submission preconditions are not met."""


class ControllerDisposed(SellerflowError):
    """The wizard controller was torn down and accepts no more work."""


class StepOutOfOrder(SellerflowError):
    """A later step was attempted before the Business record exists."""


class NoActiveUser(SellerflowError):
    """An operation needs a loaded user and none is loaded."""
