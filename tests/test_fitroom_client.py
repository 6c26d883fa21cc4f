import pytest
import requests

from app.services.tryon.errors import RemoteSubmitError, RemoteTaskFailed, RemoteTimeoutError
from app.services.tryon.orchestrator import BatchOrchestrator
from app.services.tryon.providers.fitroom import FitRoomClient
from app.services.tryon.stores import InMemoryBatchStore
from app.services.tryon.types import OutfitRef
from tests.fixtures import no_sleep, png_data_url

BASE = "https://fitroom.example.com/api/tryon/v2/tasks"


class DummyResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body or {}

    def json(self):
        return self._body


class DummySession:
    """Replays queued responses for post/get in call order."""

    def __init__(self, posts=None, gets=None):
        self.posts = list(posts or [])
        self.gets = list(gets or [])
        self.post_calls = []
        self.get_calls = []

    def post(self, url, files=None, data=None, headers=None, timeout=None):
        self.post_calls.append({"url": url, "files": files, "data": data, "headers": headers})
        item = self.posts.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, headers=None, timeout=None):
        self.get_calls.append({"url": url, "headers": headers})
        item = self.gets.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_client(session, sleep=None, max_attempts=30):
    return FitRoomClient(
        "secret",
        BASE,
        poll_interval_s=2.0,
        max_attempts=max_attempts,
        http=session,
        sleep=sleep or SleepRecorder(),
    )


@pytest.mark.asyncio
async def test_run_submits_and_polls_until_completed():
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-1"})],
        gets=[
            DummyResponse(200, {"status": "CREATED"}),
            DummyResponse(200, {"status": "PROCESSING"}),
            DummyResponse(200, {"status": "COMPLETED", "download_signed_url": "https://r/1.jpg"}),
        ],
    )
    sleep = SleepRecorder()
    client = make_client(session, sleep)
    result = await client.run(b"user", b"cloth", "Chudi", outfit_id=7)

    assert result.task_id == "t-1"
    assert result.result_image_url == "https://r/1.jpg"
    call = session.post_calls[0]
    assert call["url"] == BASE
    assert call["headers"] == {"X-API-KEY": "secret"}
    assert call["data"] == {"cloth_type": "full_set"}
    assert set(call["files"]) == {"model_image", "cloth_image"}
    assert session.get_calls[0]["url"] == f"{BASE}/t-1"
    assert sleep.calls == [2.0, 2.0]


@pytest.mark.asyncio
async def test_lowercase_completed_is_accepted():
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-2"})],
        gets=[DummyResponse(200, {"status": "completed", "download_signed_url": "https://r/2.jpg"})],
    )
    result = await make_client(session).run(b"u", b"c", "Casuals", outfit_id=2)
    assert result.result_image_url == "https://r/2.jpg"
    assert session.post_calls[0]["data"] == {"cloth_type": "upper"}


@pytest.mark.asyncio
async def test_failed_task_carries_reason():
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-3"})],
        gets=[DummyResponse(200, {"status": "FAILED", "reason": "face not detected"})],
    )
    with pytest.raises(RemoteTaskFailed) as exc:
        await make_client(session).run(b"u", b"c", None, outfit_id=3)
    assert exc.value.reason == "face not detected"
    assert "face not detected" in str(exc.value)


@pytest.mark.asyncio
async def test_failed_task_without_reason():
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-4"})],
        gets=[DummyResponse(200, {"status": "failed"})],
    )
    with pytest.raises(RemoteTaskFailed) as exc:
        await make_client(session).run(b"u", b"c", None, outfit_id=4)
    assert exc.value.reason == "Unknown reason"


@pytest.mark.asyncio
async def test_poll_times_out_after_max_attempts():
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-5"})],
        gets=[DummyResponse(200, {"status": "PROCESSING"}) for _ in range(3)],
    )
    sleep = SleepRecorder()
    with pytest.raises(RemoteTimeoutError) as exc:
        await make_client(session, sleep, max_attempts=3).run(b"u", b"c", None, outfit_id=5)
    assert str(exc.value) == "Task timeout"
    assert len(session.get_calls) == 3
    assert len(sleep.calls) == 2


@pytest.mark.asyncio
async def test_submit_rejected_status():
    session = DummySession(posts=[DummyResponse(401, {"error": "bad key"})])
    with pytest.raises(RemoteSubmitError) as exc:
        await make_client(session).run(b"u", b"c", None, outfit_id=6)
    assert exc.value.status_code == 401
    assert str(exc.value) == "FitRoom API failed: 401"
    assert session.get_calls == []


@pytest.mark.asyncio
async def test_submit_without_task_id():
    session = DummySession(posts=[DummyResponse(200, {})])
    with pytest.raises(RemoteSubmitError):
        await make_client(session).submit(b"u", b"c", None)


@pytest.mark.asyncio
async def test_submit_transport_error():
    session = DummySession(posts=[requests.ConnectionError("down")])
    with pytest.raises(RemoteSubmitError) as exc:
        await make_client(session).submit(b"u", b"c", None)
    assert exc.value.status_code is None


@pytest.mark.asyncio
async def test_poll_http_error():
    session = DummySession(gets=[DummyResponse(500)])
    with pytest.raises(RemoteSubmitError) as exc:
        await make_client(session).poll("t-9")
    assert exc.value.status_code == 500


class HtmlResponse:
    """A 2xx answer whose body is not JSON, as gateways sometimes send."""

    status_code = 200

    def json(self):
        raise requests.JSONDecodeError("Expecting value", "<html>", 0)


@pytest.mark.asyncio
async def test_submit_with_non_json_body():
    session = DummySession(posts=[HtmlResponse()])
    with pytest.raises(RemoteSubmitError) as exc:
        await make_client(session).submit(b"u", b"c", None)
    assert exc.value.status_code == 200


@pytest.mark.asyncio
async def test_poll_with_list_body():
    session = DummySession(gets=[DummyResponse(200, ["COMPLETED"])])
    with pytest.raises(RemoteSubmitError):
        await make_client(session).poll("t-10")


@pytest.mark.asyncio
async def test_garbled_poll_fails_only_that_outfit(resolver):
    session = DummySession(
        posts=[DummyResponse(200, {"task_id": "t-a"}), DummyResponse(200, {"task_id": "t-b"})],
        gets=[
            HtmlResponse(),
            DummyResponse(200, {"status": "COMPLETED", "download_signed_url": "https://r/b.jpg"}),
        ],
    )
    store = InMemoryBatchStore()
    await store.create("b1", 2, png_data_url("white"), 1)
    orch = BatchOrchestrator(store, make_client(session), resolver, sleep=no_sleep)
    outfits = [OutfitRef(id=i, image_url=png_data_url(), cloth_type="Casuals") for i in (1, 2)]

    record = await orch.run_batch("b1", outfits, png_data_url("white"))

    assert record.status == "completed"
    assert [r.status for r in record.results] == ["failed", "completed"]
    assert record.results[0].error == "FitRoom API failed: 200"
    assert record.results[1].result_image_url == "https://r/b.jpg"
    assert session.posts == []
