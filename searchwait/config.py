"""Retry configuration and TOML-based defaults.

Loads ~/.searchwait/defaults.toml (global) and searchwait.toml (project),
merges them, and resolves per-operation timeouts into RetryConfig values:

    [timeouts]
    timeout = 10800
    min_retry_interval = 60

    [timeouts.delete]
    timeout = 3600
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, TypeAlias

from tenacity import wait_exponential, wait_fixed
from tenacity.wait import wait_base

from searchwait.constants import (
    DEFAULT_MAX_RETRY_INTERVAL,
    DEFAULT_MIN_RETRY_INTERVAL,
    DEFAULT_TIMEOUT,
    GLOBAL_CONFIG_PATH,
    PROJECT_CONFIG_NAME,
)
from searchwait.core.exceptions import ConfigurationError

RawConfig: TypeAlias = dict[str, Any]
Operation: TypeAlias = Literal["create", "update", "delete"]

OPERATIONS: tuple[Operation, ...] = ("create", "update", "delete")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Timeout and backoff settings for one wait call, in seconds.

    Args:
        timeout: Total wall-clock budget for the wait.
        min_retry_interval: Floor (and first value) of the exponential backoff.
        max_retry_interval: Backoff cap. Never below ``min_retry_interval``.
        delay: Fixed delay between attempts, replacing the backoff when set.
            ``0`` polls back to back.
    """

    timeout: float = DEFAULT_TIMEOUT
    min_retry_interval: float = DEFAULT_MIN_RETRY_INTERVAL
    max_retry_interval: float = DEFAULT_MAX_RETRY_INTERVAL
    delay: float | None = None

    def __post_init__(self) -> None:
        if self.min_retry_interval <= 0:
            raise ConfigurationError(
                f"min_retry_interval must be positive, got {self.min_retry_interval}"
            )
        if self.timeout < self.min_retry_interval:
            raise ConfigurationError(
                f"timeout ({self.timeout}) must be >= min_retry_interval "
                f"({self.min_retry_interval})"
            )
        if self.delay is not None and self.delay < 0:
            raise ConfigurationError(f"delay must be >= 0, got {self.delay}")

    def wait_strategy(self) -> wait_base:
        if self.delay is not None:
            return wait_fixed(self.delay)
        return wait_exponential(
            multiplier=self.min_retry_interval,
            min=self.min_retry_interval,
            max=max(self.max_retry_interval, self.min_retry_interval),
        )


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_cfg = _read_toml((project_dir or Path.cwd()) / PROJECT_CONFIG_NAME)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("timeouts", {})
    return merged


_FIELDS = frozenset(f.name for f in fields(RetryConfig))


def _build_retry_config(raw: RawConfig) -> RetryConfig:
    unknown = set(raw) - _FIELDS
    if unknown:
        raise ConfigurationError(
            f"Unknown timeout settings: {', '.join(sorted(unknown))}. "
            f"Valid: {', '.join(sorted(_FIELDS))}"
        )
    try:
        values = {k: float(v) for k, v in raw.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Timeout settings must be numbers: {e}") from e
    return RetryConfig(**values)


def resolve_retry_config(
    operation: Operation,
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RetryConfig:
    """Resolve the RetryConfig for ``operation`` from the merged TOML files."""
    if operation not in OPERATIONS:
        raise KeyError(f"Unknown operation '{operation}'. Valid: {', '.join(OPERATIONS)}")

    timeouts = load_config(project_dir=project_dir, global_path=global_path)["timeouts"]
    if not isinstance(timeouts, dict):
        raise ConfigurationError(f"[timeouts] must be a table, got {timeouts!r}")
    shared = {k: v for k, v in timeouts.items() if k not in OPERATIONS}
    specific = timeouts.get(operation, {})
    if not isinstance(specific, dict):
        raise ConfigurationError(f"[timeouts.{operation}] must be a table, got {specific!r}")
    return _build_retry_config(_deep_merge(shared, specific))
