"""Centralized constants and enums for searchwait.

All magic strings, endpoints, and default timings are defined here
to ensure consistency and enable type-safe usage throughout the codebase.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Final

# =============================================================================
# Search Deployment States
# =============================================================================


class DeploymentState(StrEnum):
    """State names reported by the Atlas search deployment API."""

    IDLE = "IDLE"
    UPDATING = "UPDATING"
    PAUSED = "PAUSED"
    # Never reported by the API; stands for "absence observed" in delete flows.
    DELETED = "DELETED"


IN_PROGRESS_STATES: Final = frozenset({DeploymentState.UPDATING, DeploymentState.PAUSED})

# =============================================================================
# Atlas Admin API
# =============================================================================

ATLAS_API_BASE: Final = "https://cloud.mongodb.com"
ATLAS_OAUTH_TOKEN_URL: Final = "https://cloud.mongodb.com/api/oauth/token"
ATLAS_MEDIA_TYPE: Final = "application/vnd.atlas.2023-01-01+json"
SEARCH_DEPLOYMENT_PATH: Final = "/api/atlas/v2/groups/{project_id}/clusters/{cluster_name}/search/deployment"

# Error code in the 400 body when the cluster has no search deployment.
SEARCH_DEPLOYMENT_DOES_NOT_EXIST: Final = "ATLAS_FTS_DEPLOYMENT_DOES_NOT_EXIST"

HTTP_BAD_REQUEST: Final = 400
HTTP_SERVICE_UNAVAILABLE: Final = 503
# Status used by the transport for connection-level failures.
HTTP_NETWORK_ERROR: Final = 0

# =============================================================================
# Retry Defaults (seconds)
# =============================================================================

DEFAULT_TIMEOUT: Final = 3 * 60 * 60.0
DEFAULT_MIN_RETRY_INTERVAL: Final = 60.0
DEFAULT_MAX_RETRY_INTERVAL: Final = 10.0
DEFAULT_REQUEST_TIMEOUT: Final = 30.0

# =============================================================================
# Config Files
# =============================================================================

GLOBAL_CONFIG_PATH: Final = Path.home() / ".searchwait" / "defaults.toml"
PROJECT_CONFIG_NAME: Final = "searchwait.toml"
