"""Generic state-transition polling engine.

One loop shared by every waiter. A waiter only supplies a decision
function that maps each classified poll outcome to one of three
decisions:

    Continue()      poll again after the backoff delay
    Done(value)     stop and return ``value``
    Abort(error)    stop and raise ``error``

Retry scheduling is delegated to tenacity: the loop retries while the
decision is ``Continue``, stops at the deadline, and sleeps according to
a tenacity wait strategy clamped to the time left.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
)
from tenacity.wait import wait_base

from searchwait.config import RetryConfig
from searchwait.core.exceptions import SearchWaitError, WaitCancelledError, WaitTimeoutError
from searchwait.observability.logger import logger
from searchwait.outcome import FatalFailure, Observed, PollOutcome, TransientFailure, classify
from searchwait.types import ResourceSnapshot

T = TypeVar("T")

__all__ = [
    "Abort",
    "Continue",
    "Decide",
    "Decision",
    "Done",
    "Fetch",
    "poll",
]


# =============================================================================
# Decisions
# =============================================================================


@dataclass(frozen=True, slots=True)
class Continue:
    """Keep polling."""


@dataclass(frozen=True, slots=True)
class Done(Generic[T]):
    """Terminal success."""

    value: T


@dataclass(frozen=True, slots=True)
class Abort:
    """Terminal failure; ``error`` is raised to the caller as is."""

    error: SearchWaitError


Decision: TypeAlias = Union[Continue, Done[T], Abort]

Fetch: TypeAlias = Callable[[], Awaitable[ResourceSnapshot]]
Decide: TypeAlias = Callable[[PollOutcome], Decision[T]]


# =============================================================================
# Cancellation
# =============================================================================


def _check_cancelled(cancel: asyncio.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise WaitCancelledError()


class _DeadlineReached(Exception):
    """The wall-clock deadline passed before a fetch completed."""


async def _fetch_once(
    fetch: Fetch, cancel: asyncio.Event | None, deadline: float
) -> ResourceSnapshot:
    """Run one fetch, abandoning it when ``cancel`` fires or the deadline passes."""
    _check_cancelled(cancel)
    fetch_task = asyncio.ensure_future(fetch())
    cancel_task = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
    tasks = {fetch_task} if cancel_task is None else {fetch_task, cancel_task}
    try:
        done, _ = await asyncio.wait(
            tasks,
            timeout=max(0.0, deadline - time.monotonic()),
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        # Abandoned fetches finish their cleanup (e.g. releasing a connection) first.
        await asyncio.gather(*pending, return_exceptions=True)

    if cancel_task is not None and cancel_task in done:
        raise WaitCancelledError()
    if fetch_task not in done:
        raise _DeadlineReached()
    return fetch_task.result()


async def _sleep(seconds: float, *, cancel: asyncio.Event | None) -> None:
    _check_cancelled(cancel)
    if cancel is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except TimeoutError:
        return
    raise WaitCancelledError()


# =============================================================================
# Engine
# =============================================================================


def _clamped(strategy: wait_base, deadline: float) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        remaining = deadline - time.monotonic()
        return max(0.0, min(strategy(retry_state), remaining))

    return wait


async def poll(
    fetch: Fetch,
    decide: Decide[T],
    config: RetryConfig,
    *,
    wait: wait_base | None = None,
    cancel: asyncio.Event | None = None,
    description: str = "search deployment",
) -> T:
    """Poll ``fetch`` until ``decide`` returns Done or Abort.

    Args:
        fetch: Zero-argument coroutine function performing one status query.
        decide: Maps each classified outcome to a Decision.
        config: Timeout and backoff settings.
        wait: Optional tenacity wait strategy overriding ``config``.
        cancel: Optional event; setting it aborts the wait immediately,
            including an in-flight fetch or sleep.
        description: Used in log messages.

    Returns:
        The value carried by the first Done decision.

    Raises:
        SearchWaitError: The error carried by an Abort decision.
        WaitTimeoutError: The deadline passed while decisions were Continue,
            or while a fetch was still in flight.
        WaitCancelledError: ``cancel`` was set.
    """
    log = logger.bind(component="poller", resource=description)
    deadline = time.monotonic() + config.timeout
    attempts = 0
    last_state: str | None = None

    async def attempt() -> Decision[T]:
        nonlocal attempts, last_state
        if time.monotonic() >= deadline:
            raise _DeadlineReached()
        attempts += 1
        try:
            result: ResourceSnapshot | Exception = await _fetch_once(fetch, cancel, deadline)
        except (WaitCancelledError, _DeadlineReached):
            raise
        except Exception as e:
            result = e

        outcome = classify(result)
        match outcome:
            case Observed(state=state):
                last_state = state
                log.debug("Attempt {n}: state {state}", n=attempts, state=state)
            case TransientFailure(cause=cause):
                log.warning("Attempt {n}: transient failure, retrying: {cause}", n=attempts, cause=cause)
            case FatalFailure(error=error):
                log.debug("Attempt {n}: {kind}: {error}", n=attempts, kind=type(error).__name__, error=error)
        return decide(outcome)

    def before_sleep(retry_state: RetryCallState) -> None:
        if retry_state.next_action is not None:
            log.debug("Next poll in {s:.2f}s", s=retry_state.next_action.sleep)

    retrying = AsyncRetrying(
        retry=retry_if_result(lambda d: isinstance(d, Continue)),
        stop=lambda _: time.monotonic() >= deadline,
        wait=_clamped(wait if wait is not None else config.wait_strategy(), deadline),
        sleep=functools.partial(_sleep, cancel=cancel),
        before_sleep=before_sleep,
    )

    try:
        decision = await retrying(attempt)
    except (RetryError, _DeadlineReached):
        log.error(
            "Timed out after {t:.1f}s ({n} attempts, last state {state})",
            t=config.timeout, n=attempts, state=last_state,
        )
        raise WaitTimeoutError(config.timeout, last_state, attempts) from None

    match decision:
        case Done(value=value):
            log.debug("Finished after {n} attempts", n=attempts)
            return value
        case Abort(error=error):
            log.error("Aborted after {n} attempts: {error}", n=attempts, error=error)
            raise error
        case _:
            raise AssertionError(f"unexpected decision: {decision!r}")
