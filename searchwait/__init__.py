"""searchwait - wait for Atlas search deployments to settle.

Example:

    from searchwait import AtlasSearchClient, BearerAuth, RetryConfig, wait_for_state

    async with AtlasSearchClient(BearerAuth(token)) as client:
        snapshot = await wait_for_state(
            project_id,
            "Cluster0",
            client.fetcher(project_id, "Cluster0"),
            RetryConfig(timeout=3600),
        )
"""

from searchwait.client import AtlasSearchClient
from searchwait.config import RetryConfig, load_config, resolve_retry_config
from searchwait.constants import DeploymentState
from searchwait.core.exceptions import (
    ConfigurationError,
    RemoteFatalError,
    ResourceAbsentError,
    SearchWaitError,
    TransientError,
    UnexpectedStateError,
    WaitCancelledError,
    WaitTimeoutError,
)
from searchwait.infra.http import BearerAuth, HttpError, OAuth2Auth
from searchwait.outcome import FatalFailure, Observed, PollOutcome, TransientFailure, classify
from searchwait.polling import Abort, Continue, Decision, Done, poll
from searchwait.types import ResourceSnapshot, SearchNodeSpec
from searchwait.waiters import wait_for_deletion, wait_for_state

__all__ = [
    "Abort",
    "AtlasSearchClient",
    "BearerAuth",
    "ConfigurationError",
    "Continue",
    "Decision",
    "DeploymentState",
    "Done",
    "FatalFailure",
    "HttpError",
    "OAuth2Auth",
    "Observed",
    "PollOutcome",
    "RemoteFatalError",
    "ResourceAbsentError",
    "ResourceSnapshot",
    "RetryConfig",
    "SearchNodeSpec",
    "SearchWaitError",
    "TransientError",
    "TransientFailure",
    "UnexpectedStateError",
    "WaitCancelledError",
    "WaitTimeoutError",
    "classify",
    "load_config",
    "poll",
    "resolve_retry_config",
    "wait_for_deletion",
    "wait_for_state",
]
