from __future__ import annotations

import pytest

from searchwait.config import RetryConfig
from searchwait.types import ResourceSnapshot, SearchNodeSpec

PROJECT_ID = "111111111111111111111111"
DEPLOYMENT_ID = "222222222222222222222222"
CLUSTER_NAME = "Cluster0"

# Polls back to back; timeout is only a safety net.
FAST = RetryConfig(timeout=30, min_retry_interval=0.1, delay=0)


def snapshot(state: str | None) -> ResourceSnapshot:
    return ResourceSnapshot(
        project_id=PROJECT_ID,
        deployment_id=DEPLOYMENT_ID,
        state_name=state,
        specs=(SearchNodeSpec(instance_size="S20_HIGHCPU_NVME", node_count=2),),
    )


class ScriptedFetch:
    """Status fetcher replaying a fixed script, one entry per call.

    Exceptions in the script are raised. With ``repeat_last`` the final
    entry is replayed forever; otherwise a call past the end fails the test.
    """

    def __init__(self, *script: ResourceSnapshot | BaseException, repeat_last: bool = False) -> None:
        self._script = list(script)
        self._repeat_last = repeat_last
        self.calls = 0

    async def __call__(self) -> ResourceSnapshot:
        if self.calls >= len(self._script):
            if not self._repeat_last:
                pytest.fail(f"unexpected fetch #{self.calls + 1}, script has {len(self._script)}")
            entry = self._script[-1]
        else:
            entry = self._script[self.calls]
        self.calls += 1
        if isinstance(entry, BaseException):
            raise entry
        return entry

    @property
    def exhausted(self) -> bool:
        return self.calls == len(self._script)
