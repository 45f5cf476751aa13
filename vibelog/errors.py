"""Error taxonomy for the VibeLog checkpoint core.

Read errors from the Log Store and Checkpoint Store are fatal to the
invoking command.  Ledger errors live in ``vibelog.bridge.ledger_gateway``
and are always recoverable at the checkpoint call site.
"""

from __future__ import annotations


class VibelogError(RuntimeError):
    """Base class for every error raised by the checkpoint core."""


class NotInitializedError(VibelogError):
    """Raised when the ``.vibelog`` store location does not exist yet."""

    def __init__(self, path: object) -> None:
        super().__init__(
            f"VibeLog not initialized at {path}. Run `vibe init` first."
        )
        self.path = path


class StoreReadError(VibelogError):
    """Raised when a persisted record cannot be read or parsed."""


class LogEntryExistsError(VibelogError):
    """Raised when appending a log id that is already stored."""


class CheckpointExistsError(VibelogError):
    """Raised when recording a checkpoint id that is already stored."""


class NoPendingLogsError(VibelogError):
    """Nothing has been logged since the watermark.  A no-op signal."""


class SubmissionFailure(VibelogError):
    """Raised when ledger submission failed and the caller chose not to queue.

    Parameters
    ----------
    message:
        Human-readable failure description.
    retryable:
        ``False`` when the ledger rejected the payload itself and a retry
        would fail the same way.
    """

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class RateLimitExceededError(VibelogError):
    """Raised when submissions exceed the configured rate."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(
            f"Submission rate limit reached; retry in {retry_after:.0f}s."
        )
        self.retry_after = retry_after


class InvalidQueueTransitionError(VibelogError):
    """Raised when a queued checkpoint is moved to a disallowed status."""


class QueueItemNotFoundError(VibelogError):
    """Raised when a queue id does not exist."""


class VerificationAbortedError(VibelogError):
    """Raised when the ledger cannot even report its checkpoint count."""
