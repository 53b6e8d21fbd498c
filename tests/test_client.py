"""Atlas client and waiters against a local fake of the search deployment API."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from searchwait.client import AtlasSearchClient
from searchwait.core.exceptions import RemoteFatalError, UnexpectedStateError
from searchwait.infra.http import BearerAuth, HttpError
from searchwait.outcome import is_absence
from searchwait.types import SearchNodeSpec
from searchwait.waiters import wait_for_deletion, wait_for_state
from tests.conftest import CLUSTER_NAME, DEPLOYMENT_ID, FAST, PROJECT_ID

pytestmark = [pytest.mark.unit]

MEDIA_TYPE = "application/vnd.atlas.2023-01-01+json"


def deployment(state: str) -> web.Response:
    return web.json_response({
        "groupId": PROJECT_ID,
        "id": DEPLOYMENT_ID,
        "specs": [{"instanceSize": "S30_HIGHCPU_NVME", "nodeCount": 2}],
        "stateName": state,
    })


def does_not_exist() -> web.Response:
    return web.json_response(
        {
            "detail": f"There is no search deployment for cluster {CLUSTER_NAME}.",
            "error": 400,
            "errorCode": "ATLAS_FTS_DEPLOYMENT_DOES_NOT_EXIST",
            "reason": "Bad Request",
        },
        status=400,
    )


def unavailable() -> web.Response:
    return web.Response(status=503, text="Service Unavailable")


class FakeAtlas:
    """Serves one scripted response per request and records what it saw."""

    def __init__(self) -> None:
        self.script: Iterator[web.Response] = iter(())
        self.requests: list[dict[str, str | None]] = []

    def play(self, *responses: web.Response) -> None:
        self.script = iter(responses)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(
            "/api/atlas/v2/groups/{project}/clusters/{cluster}/search/deployment", self.handle,
        )
        return app

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "project": request.match_info["project"],
            "cluster": request.match_info["cluster"],
            "accept": request.headers.get("Accept"),
        })
        if request.headers.get("Authorization") != "Bearer atlas-token":
            return web.Response(status=401, text="unauthorized")
        try:
            return next(self.script)
        except StopIteration:
            return web.Response(status=500, text="script exhausted")


@pytest.fixture
def atlas() -> FakeAtlas:
    return FakeAtlas()


@pytest.fixture
async def client(atlas: FakeAtlas):
    srv = TestServer(atlas.app())
    await srv.start_server()
    async with AtlasSearchClient(
        BearerAuth("atlas-token"), base_url=f"http://{srv.host}:{srv.port}",
    ) as c:
        yield c
    await srv.close()


# ─── get_search_deployment ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_search_deployment_parses_snapshot(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(deployment("UPDATING"))
    snap = await client.get_search_deployment(PROJECT_ID, CLUSTER_NAME)
    assert snap.project_id == PROJECT_ID
    assert snap.deployment_id == DEPLOYMENT_ID
    assert snap.state_name == "UPDATING"
    assert snap.specs == (SearchNodeSpec(instance_size="S30_HIGHCPU_NVME", node_count=2),)

    (request,) = atlas.requests
    assert request == {"project": PROJECT_ID, "cluster": CLUSTER_NAME, "accept": MEDIA_TYPE}


@pytest.mark.asyncio
async def test_missing_state_is_kept_as_none(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(web.json_response({"groupId": PROJECT_ID, "id": DEPLOYMENT_ID}))
    snap = await client.get_search_deployment(PROJECT_ID, CLUSTER_NAME)
    assert snap.state_name is None
    assert snap.specs == ()


@pytest.mark.asyncio
async def test_absent_deployment_surfaces_as_http_error(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(does_not_exist())
    with pytest.raises(HttpError) as exc_info:
        await client.get_search_deployment(PROJECT_ID, CLUSTER_NAME)
    assert exc_info.value.status == 400
    assert is_absence(exc_info.value)


# ─── Waiters end to end ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_wait_for_state_through_client(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(deployment("UPDATING"), unavailable(), deployment("IDLE"))
    snap = await wait_for_state(
        PROJECT_ID, CLUSTER_NAME, client.fetcher(PROJECT_ID, CLUSTER_NAME), FAST,
    )
    assert snap.state_name == "IDLE"
    assert len(atlas.requests) == 3


@pytest.mark.asyncio
async def test_wait_for_state_unknown_state(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(deployment("UPDATING"), deployment(""))
    with pytest.raises(UnexpectedStateError):
        await wait_for_state(
            PROJECT_ID, CLUSTER_NAME, client.fetcher(PROJECT_ID, CLUSTER_NAME), FAST,
        )
    assert len(atlas.requests) == 2


@pytest.mark.asyncio
async def test_wait_for_deletion_through_client(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(deployment("UPDATING"), does_not_exist())
    await wait_for_deletion(
        PROJECT_ID, CLUSTER_NAME, client.fetcher(PROJECT_ID, CLUSTER_NAME), FAST,
    )
    assert len(atlas.requests) == 2


@pytest.mark.asyncio
async def test_server_error_aborts_without_retry(client: AtlasSearchClient, atlas: FakeAtlas):
    atlas.play(web.Response(status=500, text="Internal server error"), deployment("IDLE"))
    with pytest.raises(RemoteFatalError) as exc_info:
        await wait_for_deletion(
            PROJECT_ID, CLUSTER_NAME, client.fetcher(PROJECT_ID, CLUSTER_NAME), FAST,
        )
    assert exc_info.value.status == 500
    assert len(atlas.requests) == 1
