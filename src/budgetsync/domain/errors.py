from __future__ import annotations


class BudgetSyncError(RuntimeError):
    """Base class for every recoverable client error."""


class ValidationError(BudgetSyncError):
    """Input was malformed or incomplete; never sent to the remote store."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [message])


class Unauthenticated(BudgetSyncError):
    """No credential, or the remote store rejected the one we sent."""


class StaleSession(Unauthenticated):
    """The session changed while a remote call was outstanding."""


class AuthenticationFailed(BudgetSyncError):
    """Login or registration was refused."""


class NotFound(BudgetSyncError):
    """The remote store has no transaction with the requested id."""


class NotLocal(BudgetSyncError):
    """The local collection has no transaction with the requested id."""


class NetworkError(BudgetSyncError):
    """The remote store could not be reached."""


class Busy(BudgetSyncError):
    """Another store operation is still waiting on the remote store."""


class GatewayError(BudgetSyncError):
    """The remote store answered with something we cannot use."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
