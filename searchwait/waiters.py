"""Search deployment waiters.

Both waiters run the shared polling engine and differ only in how they
judge each outcome:

- ``wait_for_state`` stops at the first snapshot in the target state.
- ``wait_for_deletion`` stops when the API reports that the deployment
  no longer exists. That error is the success signal here and nowhere else.

Example:
    async with AtlasSearchClient(BearerAuth(token)) as client:
        fetch = client.fetcher(project_id, "Cluster0")
        snapshot = await wait_for_state(project_id, "Cluster0", fetch, RetryConfig())
"""

from __future__ import annotations

import asyncio

from tenacity.wait import wait_base

from searchwait.config import RetryConfig
from searchwait.constants import IN_PROGRESS_STATES, DeploymentState
from searchwait.core.exceptions import ResourceAbsentError, UnexpectedStateError
from searchwait.observability.logger import logger
from searchwait.outcome import FatalFailure, Observed, PollOutcome, TransientFailure
from searchwait.polling import Abort, Continue, Decide, Decision, Done, Fetch, poll
from searchwait.types import ResourceSnapshot

__all__ = [
    "deletion_decider",
    "state_decider",
    "wait_for_deletion",
    "wait_for_state",
]


def state_decider(
    target: str = DeploymentState.IDLE,
    pending: frozenset[str] | None = None,
) -> Decide[ResourceSnapshot]:
    """Decision function for create/update flows.

    ``pending`` defaults to every known live state other than ``target``,
    so waiting for ``PAUSED`` keeps polling through ``IDLE``.
    """
    if pending is None:
        pending = (IN_PROGRESS_STATES | {DeploymentState.IDLE}) - {target}
    expected = (target, *sorted(pending))

    def decide(outcome: PollOutcome) -> Decision[ResourceSnapshot]:
        match outcome:
            case TransientFailure():
                return Continue()
            case FatalFailure(error=error):
                return Abort(error)
            case Observed(state=state) if state == target:
                return Done(outcome.snapshot)
            case Observed(state=state) if state in pending:
                return Continue()
            case Observed(state=state):
                return Abort(UnexpectedStateError(state, expected))

    return decide


def deletion_decider(
    pending: frozenset[str] = IN_PROGRESS_STATES | {DeploymentState.IDLE},
) -> Decide[None]:
    """Decision function for delete flows."""
    expected = tuple(sorted(pending))

    def decide(outcome: PollOutcome) -> Decision[None]:
        match outcome:
            case TransientFailure():
                return Continue()
            case FatalFailure(error=ResourceAbsentError()):
                return Done(None)
            case FatalFailure(error=error):
                return Abort(error)
            case Observed(state=state) if state in pending:
                return Continue()
            case Observed(state=state):
                return Abort(UnexpectedStateError(state, expected))

    return decide


async def wait_for_state(
    project_id: str,
    cluster_name: str,
    fetch: Fetch,
    config: RetryConfig,
    *,
    target: str = DeploymentState.IDLE,
    pending: frozenset[str] | None = None,
    wait: wait_base | None = None,
    cancel: asyncio.Event | None = None,
) -> ResourceSnapshot:
    """Wait until the search deployment reaches ``target``.

    Returns the first snapshot observed in the target state. States in
    ``pending`` keep the wait going; see ``state_decider`` for the default.

    Raises:
        UnexpectedStateError: Empty or unrecognized state reported.
        ResourceAbsentError: The deployment does not exist.
        RemoteFatalError: Any other non-retryable API error.
        WaitTimeoutError: Still in progress when the timeout elapsed.
        WaitCancelledError: ``cancel`` was set.
    """
    log = logger.bind(project_id=project_id, cluster=cluster_name)
    log.info("Waiting for search deployment to reach {target}", target=target)
    snapshot = await poll(
        fetch,
        state_decider(target, pending),
        config,
        wait=wait,
        cancel=cancel,
        description=f"search deployment {project_id}/{cluster_name}",
    )
    log.info("Search deployment reached {state}", state=snapshot.state_name)
    return snapshot


async def wait_for_deletion(
    project_id: str,
    cluster_name: str,
    fetch: Fetch,
    config: RetryConfig,
    *,
    wait: wait_base | None = None,
    cancel: asyncio.Event | None = None,
) -> None:
    """Wait until the search deployment no longer exists.

    Raises the same errors as ``wait_for_state``, except that
    ``ResourceAbsentError`` means success and is never raised.
    """
    log = logger.bind(project_id=project_id, cluster=cluster_name)
    log.info("Waiting for search deployment deletion")
    await poll(
        fetch,
        deletion_decider(),
        config,
        wait=wait,
        cancel=cancel,
        description=f"search deployment {project_id}/{cluster_name}",
    )
    log.info("Search deployment reached {state}", state=DeploymentState.DELETED)
