"""Async HTTP client for the Atlas search deployment API."""

from __future__ import annotations

from searchwait.constants import (
    ATLAS_API_BASE,
    ATLAS_MEDIA_TYPE,
    DEFAULT_REQUEST_TIMEOUT,
    SEARCH_DEPLOYMENT_PATH,
)
from searchwait.infra.http import Auth, HttpClient
from searchwait.observability.logger import logger
from searchwait.polling import Fetch
from searchwait.types import ResourceSnapshot, SearchDeploymentResponse


class AtlasSearchClient:
    """Reads search deployment status from the Atlas Admin API.

    API errors are not translated: they surface as ``HttpError`` so the
    waiters can tell a 503 or a missing deployment from a real failure.

    Example:
        async with AtlasSearchClient(BearerAuth(token)) as client:
            snapshot = await client.get_search_deployment(project_id, "Cluster0")
    """

    def __init__(
        self,
        auth: Auth | None = None,
        *,
        base_url: str = ATLAS_API_BASE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._log = logger.bind(component="atlas-client")
        self._http = HttpClient(
            base_url,
            auth,
            timeout=request_timeout,
            default_headers={"Accept": ATLAS_MEDIA_TYPE},
        )

    async def __aenter__(self) -> AtlasSearchClient:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self._http.close()

    async def get_search_deployment(self, project_id: str, cluster_name: str) -> ResourceSnapshot:
        path = SEARCH_DEPLOYMENT_PATH.format(project_id=project_id, cluster_name=cluster_name)
        resp = await self._http.get(path, response_type=SearchDeploymentResponse)
        snapshot = ResourceSnapshot.from_api(resp.data or {})
        self._log.debug(
            "Search deployment {cluster}: {state}",
            cluster=cluster_name, state=snapshot.state_name,
        )
        return snapshot

    def fetcher(self, project_id: str, cluster_name: str) -> Fetch:
        """Bind a zero-argument status fetcher for the waiters."""

        async def fetch() -> ResourceSnapshot:
            return await self.get_search_deployment(project_id, cluster_name)

        return fetch
