"""HTTP tests for the catalog endpoints"""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from willow_vault.api import app, get_cache, get_uow
from willow_vault.cache.keys import encode_key, entities_key
from willow_vault.observability import metrics
from willow_vault.params import parse_listing_params


ALICE = {"X-Authenticated-User": "alice"}


@pytest_asyncio.fixture
async def client(uow, cache):
    async def override_uow():
        yield uow

    app.dependency_overrides[get_uow] = override_uow
    app.dependency_overrides[get_cache] = lambda: cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_list_entities_envelope(client):
    resp = await client.get("/v1/entities", headers=ALICE)

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "success"
    assert body["data"]["totalCount"] == 6
    first = body["data"]["entities"][0]
    assert first == {
        "id": 1,
        "name": "Home",
        "category": "building",
        "location": "123 Willow Lane",
        "notes": "main house",
    }
    assert body["data"]["entities"][-1]["location"] == "Red Bin, Top Shelf, Metal Rack, Garage, Home"


@pytest.mark.asyncio
async def test_pagination_and_filter_params(client, repo):
    resp = await client.get(
        "/v1/entities",
        params={"offset": "0", "limit": "1", "filter": "room,item", "search": "a"},
        headers=ALICE,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [e["name"] for e in data["entities"]] == ["Garage"]
    assert data["totalCount"] == 1
    assert repo.calls_named("list_entities") == [
        ("list_entities", "alice", 0, 1, "a", ("room", "item"))
    ]


@pytest.mark.asyncio
async def test_served_from_cache(client, repo, cache):
    params = parse_listing_params()
    cache.data[encode_key(entities_key("alice", params))] = json.dumps(
        [{"id": 7, "name": "Cached", "category": "item", "location": "", "notes": ""}]
    )

    resp = await client.get("/v1/entities", headers=ALICE)

    assert [e["name"] for e in resp.json()["data"]["entities"]] == ["Cached"]
    assert repo.calls_named("list_entities") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params,field",
    [
        ({"offset": "-1"}, "offset"),
        ({"limit": "-20"}, "limit"),
        ({"offset": "abc"}, "offset"),
        ({"limit": "1.5"}, "limit"),
        ({"offset": "x", "limit": "-1"}, "offset"),
        ({"limit": "9" * 30}, "limit"),
        ({"limit": "1_0"}, "limit"),
    ],
)
async def test_invalid_pagination_is_rejected_early(client, repo, cache, params, field):
    resp = await client.get("/v1/entities", params=params, headers=ALICE)

    assert resp.status_code == 400
    body = resp.json()
    assert body["data"] is None
    assert body["field"] == field
    assert repo.calls == []
    assert cache.gets == []


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(client, repo):
    resp = await client.get("/v1/entities")
    assert resp.status_code == 401
    assert resp.json()["data"] is None
    assert repo.calls == []


@pytest.mark.asyncio
async def test_query_failure_is_500(client, repo):
    repo.fail_on.add("list_entities")

    resp = await client.get("/v1/entities", headers=ALICE)

    assert resp.status_code == 500
    assert resp.json() == {"message": "Error retrieving entities", "data": None}
    assert metrics.error_count == 1


@pytest.mark.asyncio
async def test_cache_outage_still_serves(client, cache):
    cache.down = True
    resp = await client.get("/v1/entities", headers=ALICE)
    assert resp.status_code == 200
    assert resp.json()["data"]["totalCount"] == 6


@pytest.mark.asyncio
async def test_get_single_entity(client):
    resp = await client.get("/v1/entities/container/1", headers=ALICE)

    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "id": 1,
        "name": "Red Bin",
        "category": "container",
        "location": "Top Shelf, Metal Rack, Garage, Home",
        "notes": "",
    }


@pytest.mark.asyncio
async def test_get_single_entity_not_found(client):
    resp = await client.get("/v1/entities/item/99", headers=ALICE)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_get_single_entity_unknown_category(client):
    resp = await client.get("/v1/entities/garage/1", headers=ALICE)
    assert resp.status_code == 400
    assert resp.json()["field"] == "category"


@pytest.mark.asyncio
async def test_other_users_entity_is_hidden(client):
    resp = await client.get("/v1/entities/building/1", headers={"X-Authenticated-User": "bob"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_detailed_health_degraded_without_cache(client, cache):
    cache.down = True
    resp = await client.get("/health/detailed")
    body = resp.json()
    assert body["status"] == "degraded"


@pytest.mark.asyncio
async def test_metrics_after_listing(client):
    await client.get("/v1/entities", headers=ALICE)

    resp = await client.get("/metrics")
    body = resp.json()
    assert body["counters"]["list_count"] == 1

    reset = await client.post("/metrics/reset")
    assert reset.json() == {"status": "reset"}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    resp = await client.get("/v2/nowhere", headers=ALICE)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not Found", "data": None}


@pytest.mark.asyncio
async def test_non_integer_entity_id_uses_error_envelope(client, repo):
    resp = await client.get("/v1/entities/room/abc", headers=ALICE)

    assert resp.status_code == 400
    body = resp.json()
    assert body["data"] is None
    assert body["field"] == "entity_id"
    assert repo.calls == []
