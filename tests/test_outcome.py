from __future__ import annotations

import pytest

from searchwait.core.exceptions import (
    RemoteFatalError,
    ResourceAbsentError,
    TransientError,
    UnexpectedStateError,
    WaitTimeoutError,
)
from searchwait.infra.http import HttpError
from searchwait.outcome import FatalFailure, Observed, TransientFailure, classify, is_absence
from tests.conftest import snapshot

pytestmark = [pytest.mark.unit]

SENTINEL_BODY = '{"errorCode": "ATLAS_FTS_DEPLOYMENT_DOES_NOT_EXIST"}'


class TestSnapshots:
    def test_known_state_is_observed(self):
        s = snapshot("UPDATING")
        outcome = classify(s)
        assert outcome == Observed(s)
        assert outcome.state == "UPDATING"

    @pytest.mark.parametrize("state", ["", None])
    def test_unknown_state_is_fatal(self, state):
        outcome = classify(snapshot(state))
        assert isinstance(outcome, FatalFailure)
        assert isinstance(outcome.error, UnexpectedStateError)
        assert outcome.error.state == state


class TestTransient:
    @pytest.mark.parametrize(
        "error",
        [
            HttpError(status=503, body="Service Unavailable"),
            HttpError(status=0, body="Cannot connect to host"),
            TransientError("retry me"),
            ConnectionResetError(),
            TimeoutError(),
        ],
    )
    def test_transient(self, error):
        assert classify(error) == TransientFailure(error)

    @pytest.mark.parametrize("status", [500, 502, 504, 429])
    def test_other_statuses_are_fatal(self, status):
        outcome = classify(HttpError(status=status, body="nope"))
        assert isinstance(outcome, FatalFailure)
        assert type(outcome.error) is RemoteFatalError
        assert outcome.error.status == status


class TestAbsence:
    def test_400_with_sentinel(self):
        err = HttpError(status=400, body=SENTINEL_BODY)
        assert is_absence(err)
        outcome = classify(err)
        assert isinstance(outcome, FatalFailure)
        assert isinstance(outcome.error, ResourceAbsentError)
        assert outcome.error.__cause__ is err

    def test_400_without_sentinel(self):
        err = HttpError(status=400, body='{"errorCode": "INVALID_GROUP_ID"}')
        assert not is_absence(err)
        outcome = classify(err)
        assert isinstance(outcome, FatalFailure)
        assert not isinstance(outcome.error, ResourceAbsentError)

    def test_sentinel_needs_400(self):
        assert not is_absence(HttpError(status=404, body=SENTINEL_BODY))


class TestFatal:
    def test_package_errors_pass_through(self):
        err = RemoteFatalError("already classified", status=409)
        assert classify(err) == FatalFailure(err)

    def test_nested_wait_timeout_is_not_retried(self):
        err = WaitTimeoutError(60, "UPDATING", 3)
        assert isinstance(err, TimeoutError)
        assert classify(err) == FatalFailure(err)

    def test_unknown_exception_is_wrapped(self):
        err = ValueError("cannot decode")
        outcome = classify(err)
        assert isinstance(outcome, FatalFailure)
        assert isinstance(outcome.error, RemoteFatalError)
        assert outcome.error.status is None
        assert outcome.error.__cause__ is err
        assert "ValueError" in str(outcome.error)
