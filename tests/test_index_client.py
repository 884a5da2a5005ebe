import json

import httpx
import pytest

from docs_search_sync.core.errors import IndexRequestError, IndexResponseError
from docs_search_sync.index import AlgoliaIndexClient
from docs_search_sync.records.models import SearchRecord


def make_client(handler):
    return AlgoliaIndexClient(
        app_id="APPID",
        api_key="admin-key",
        index_name="docs test",
        transport=httpx.MockTransport(handler),
    )


def record(n, object_id=None):
    return SearchRecord(objectID=object_id, title=f"Page {n}", url=f"/p{n}/", text="t")


class Recorder:
    """Collects requests and answers batch calls with generated ids."""

    def __init__(self):
        self.requests = []
        self.counter = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append((request, body))
        ids = []
        for op in body["requests"]:
            if "objectID" in op["body"]:
                ids.append(op["body"]["objectID"])
            else:
                self.counter += 1
                ids.append(f"gen-{self.counter}")
        return httpx.Response(200, json={"taskID": 1, "objectIDs": ids})


@pytest.mark.asyncio
async def test_save_objects_batches_and_returns_ids():
    recorder = Recorder()
    client = make_client(recorder)

    ids = await client.save_objects(
        [record(1), record(2, "keep-2"), record(3)],
        batch_size=2,
    )

    assert ids == ["gen-1", "keep-2", "gen-2"]
    assert len(recorder.requests) == 2

    request, body = recorder.requests[0]
    assert request.method == "POST"
    assert request.url == "https://APPID.algolia.net/1/indexes/docs%20test/batch"
    assert request.headers["X-Algolia-Application-Id"] == "APPID"
    assert request.headers["X-Algolia-API-Key"] == "admin-key"
    assert [op["action"] for op in body["requests"]] == ["addObject", "updateObject"]
    assert body["requests"][0]["body"]["title"] == "Page 1"
    assert "objectID" not in body["requests"][0]["body"]


@pytest.mark.asyncio
async def test_save_without_auto_ids_rejects_before_request():
    recorder = Recorder()
    client = make_client(recorder)

    with pytest.raises(ValueError, match="objectID"):
        await client.save_objects([record(1)], auto_generate_object_id=False)

    assert recorder.requests == []


@pytest.mark.asyncio
async def test_browse_follows_cursor():
    pages = [
        {"hits": [{"objectID": "a"}, {"objectID": "b"}], "cursor": "next-1"},
        {"hits": [{"objectID": "c"}], "cursor": "next-2"},
        {"hits": [{"objectID": "a"}]},
    ]
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=pages[len(seen) - 1])

    ids = await make_client(handler).browse_object_ids(page_size=2)

    assert ids == {"a", "b", "c"}
    assert seen[0] == {"attributesToRetrieve": ["objectID"], "hitsPerPage": 2}
    assert seen[1] == {"cursor": "next-1"}
    assert seen[2] == {"cursor": "next-2"}


@pytest.mark.asyncio
async def test_browse_rejects_malformed_hits():
    def handler(request):
        return httpx.Response(200, json={"hits": [{"title": "no id"}]})

    with pytest.raises(IndexResponseError):
        await make_client(handler).browse_object_ids()


@pytest.mark.asyncio
async def test_delete_objects():
    recorder = Recorder()

    deleted = await make_client(recorder).delete_objects(["x", "y", "z"], batch_size=2)

    assert deleted == ["x", "y", "z"]
    assert len(recorder.requests) == 2
    _, body = recorder.requests[0]
    assert body["requests"] == [
        {"action": "deleteObject", "body": {"objectID": "x"}},
        {"action": "deleteObject", "body": {"objectID": "y"}},
    ]


@pytest.mark.asyncio
async def test_delete_nothing_sends_nothing():
    recorder = Recorder()
    assert await make_client(recorder).delete_objects([]) == []
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_http_error_status_raises_request_error():
    def handler(request):
        return httpx.Response(403, json={"message": "Invalid API key"})

    with pytest.raises(IndexRequestError) as excinfo:
        await make_client(handler).save_objects([record(1)])

    assert excinfo.value.status_code == 403
    assert "Invalid API key" in str(excinfo.value)


@pytest.mark.asyncio
async def test_transport_error_raises_request_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IndexRequestError):
        await make_client(handler).browse_object_ids()


@pytest.mark.asyncio
async def test_batch_response_without_ids_is_rejected():
    def handler(request):
        return httpx.Response(200, json={"taskID": 1})

    with pytest.raises(IndexResponseError):
        await make_client(handler).save_objects([record(1)])


def test_credentials_required():
    with pytest.raises(ValueError):
        AlgoliaIndexClient(app_id="APPID", api_key="", index_name="docs")
