"""Exceptions raised by the credit-reporting services.

The API layer maps these to HTTP status codes with generic messages; the
exception text itself only reaches logs and the pull log's error_message.
"""


class CreditError(Exception):
    """Base exception for credit-reporting errors."""


class CreditValidationError(CreditError):
    """Request rejected before any pull-log write (e.g. missing consent)."""


class NotFoundError(CreditError):
    """Loan, borrower or report does not exist."""


class AccessDeniedError(CreditError):
    """Caller may not read the requested report or raw payload."""


class CreditPullError(CreditError):
    """A pull attempt failed after its pull log was written.

    ``pull_log_id`` is filled in by the orchestrator once the attempt has a
    pull log; provider clients raise without one.
    """

    def __init__(self, message: str = "", pull_log_id: int | None = None):
        super().__init__(message)
        self.pull_log_id = pull_log_id


class ProviderError(CreditPullError):
    """The tri-merge provider raised, timed out or answered with garbage."""


class PersistenceError(CreditError):
    """Writing the terminal state of a pull log failed."""


class EncryptionConfigError(CreditError):
    """The credit encryption key is missing or malformed."""


class StatusTransitionError(CreditError):
    """Invalid credit report status transition attempted."""
