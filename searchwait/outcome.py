"""Classification of a single status query.

Every fetch result, or the exception a fetch raised, is turned into one
of three outcomes before any waiter sees it:

    match classify(result):
        case Observed(snapshot=s):
            ...
        case TransientFailure(cause=e):
            ...  # poll again
        case FatalFailure(error=e):
            ...  # stop, unless the waiter expects this error
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, Union

from searchwait.constants import (
    HTTP_BAD_REQUEST,
    HTTP_NETWORK_ERROR,
    HTTP_SERVICE_UNAVAILABLE,
    SEARCH_DEPLOYMENT_DOES_NOT_EXIST,
)
from searchwait.core.exceptions import (
    RemoteFatalError,
    ResourceAbsentError,
    SearchWaitError,
    TransientError,
    UnexpectedStateError,
)
from searchwait.infra.http import HttpError
from searchwait.types import ResourceSnapshot

__all__ = [
    "FatalFailure",
    "Observed",
    "PollOutcome",
    "TransientFailure",
    "classify",
    "classify_error",
    "is_absence",
]


@dataclass(frozen=True, slots=True)
class Observed:
    """The remote answered with a snapshot carrying a non-empty state."""

    snapshot: ResourceSnapshot

    @property
    def state(self) -> str:
        return self.snapshot.state_name or ""


@dataclass(frozen=True, slots=True)
class TransientFailure:
    """Temporary failure. The engine polls again."""

    cause: BaseException


@dataclass(frozen=True, slots=True)
class FatalFailure:
    """Non-retryable failure, already mapped to a SearchWaitError."""

    error: SearchWaitError


PollOutcome: TypeAlias = Union[Observed, TransientFailure, FatalFailure]

# Only 503 among real HTTP statuses; 0 marks a connection-level failure.
_TRANSIENT_STATUSES = frozenset({HTTP_SERVICE_UNAVAILABLE, HTTP_NETWORK_ERROR})


def is_absence(error: HttpError) -> bool:
    return error.status == HTTP_BAD_REQUEST and SEARCH_DEPLOYMENT_DOES_NOT_EXIST in error.body


def classify_error(error: BaseException) -> TransientFailure | FatalFailure:
    match error:
        case TransientError():
            return TransientFailure(error)
        case HttpError(status=status) if status in _TRANSIENT_STATUSES:
            return TransientFailure(error)
        case HttpError() if is_absence(error):
            absent = ResourceAbsentError("search deployment does not exist", status=error.status)
            absent.__cause__ = error
            return FatalFailure(absent)
        case HttpError(status=status):
            fatal = RemoteFatalError(str(error), status=status)
            fatal.__cause__ = error
            return FatalFailure(fatal)
        # Before the builtin match: WaitTimeoutError is also a TimeoutError.
        case SearchWaitError():
            return FatalFailure(error)
        case ConnectionError() | TimeoutError():
            return TransientFailure(error)
        case _:
            fatal = RemoteFatalError(f"{type(error).__name__}: {error}")
            fatal.__cause__ = error
            return FatalFailure(fatal)


def classify(result: ResourceSnapshot | BaseException) -> PollOutcome:
    """Map one fetch result (snapshot or raised exception) to an outcome."""
    match result:
        case ResourceSnapshot(state_name=state) if state:
            return Observed(result)
        case ResourceSnapshot(state_name=state):
            return FatalFailure(UnexpectedStateError(state))
        case _:
            return classify_error(result)
