"""Custom exception hierarchy for searchwait.

All searchwait-specific exceptions inherit from SearchWaitError, enabling
callers to catch every waiter failure with a single except clause.

Only ``TransientError`` is ever absorbed by the polling engine; everything
else reaches the caller unchanged.
"""

from __future__ import annotations


class SearchWaitError(Exception):
    """Base exception for all searchwait errors."""


class ConfigurationError(SearchWaitError):
    """Raised for invalid retry configuration or malformed config files."""


class TransientError(SearchWaitError):
    """Raised by a status fetcher for a failure worth retrying.

    The polling engine swallows it and polls again.
    """


class UnexpectedStateError(SearchWaitError):
    """Raised when the remote reports an empty or unrecognized state."""

    def __init__(self, state: str | None, expected: tuple[str, ...] = ()) -> None:
        self.state = state
        self.expected = expected
        shown = "<empty>" if not state else state
        msg = f"unexpected search deployment state: {shown}"
        if expected:
            msg += f" (expected one of: {', '.join(expected)})"
        super().__init__(msg)


class RemoteFatalError(SearchWaitError):
    """Raised for any non-retryable error reported by the remote API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class ResourceAbsentError(RemoteFatalError):
    """The search deployment does not exist.

    Success signal for deletion flows, fatal everywhere else.
    """


class WaitTimeoutError(SearchWaitError, TimeoutError):
    """Raised when the deadline passes while the resource is still in progress."""

    def __init__(self, timeout: float, last_state: str | None, attempts: int) -> None:
        self.timeout = timeout
        self.last_state = last_state
        self.attempts = attempts
        super().__init__(
            f"timeout after {timeout:.1f}s waiting for search deployment "
            f"(last state: {last_state or 'unknown'}, attempts: {attempts})"
        )


class WaitCancelledError(SearchWaitError):
    """Raised when the caller's cancellation signal fires mid-wait."""

    def __init__(self) -> None:
        super().__init__("wait cancelled by caller")
