import pytest

from app.services.tryon.errors import OrchestrationError, RemoteTaskFailed, RemoteTimeoutError
from app.services.tryon.orchestrator import BatchOrchestrator
from app.services.tryon.providers.base import MockSynthesisClient
from app.services.tryon.stores import InMemoryBatchStore
from app.services.tryon.types import OutfitRef
from tests.fixtures import ScriptedSynthesis, no_sleep, png_data_url

USER = png_data_url("white")


def refs(*ids):
    return [OutfitRef(id=i, image_url=png_data_url("blue"), cloth_type="Casuals") for i in ids]


class RecordingStore(InMemoryBatchStore):
    """Remembers every completed_count it hands back."""

    def __init__(self):
        super().__init__()
        self.seen = []

    async def update(self, batch_id, mutate):
        record = await super().update(batch_id, mutate)
        self.seen.append(record.completed_count)
        return record


class BrokenStore(InMemoryBatchStore):
    def __init__(self, fail_on: int):
        super().__init__()
        self.fail_on = fail_on
        self.updates = 0

    async def update(self, batch_id, mutate):
        self.updates += 1
        if self.updates == self.fail_on:
            raise RuntimeError("database went away")
        return await super().update(batch_id, mutate)


class UnreadableStore(InMemoryBatchStore):
    """Every read-modify-write trips over a results blob that no longer parses."""

    async def update(self, batch_id, mutate):
        raise OrchestrationError("unreadable batch results: 1 errors")


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.mark.asyncio
async def test_all_outfits_complete_in_order(resolver):
    store = RecordingStore()
    await store.create("b1", 2, USER, 1)
    sleep = SleepRecorder()
    orch = BatchOrchestrator(store, ScriptedSynthesis(), resolver, sleep=sleep)

    record = await orch.run_batch("b1", refs(10, 11), USER, item_delay_s=2.0)

    assert record.status == "completed"
    assert [r.outfit_id for r in record.results] == [10, 11]
    assert all(r.status == "completed" for r in record.results)
    assert store.seen == [1, 2]
    # paced between items, not after the last
    assert sleep.calls == [2.0]


@pytest.mark.asyncio
async def test_failed_item_does_not_stop_the_batch(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 3, USER, 1)
    synthesis = ScriptedSynthesis({11: RemoteTaskFailed("face not detected")})
    orch = BatchOrchestrator(store, synthesis, resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(10, 11, 12), USER)

    assert synthesis.calls == [10, 11, 12]
    assert record.status == "completed"
    assert record.completed_count == 3
    failed = record.results[1]
    assert failed.status == "failed"
    assert "face not detected" in failed.error
    assert failed.result_image_url is None


@pytest.mark.asyncio
async def test_timeout_and_missing_image_are_item_failures(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 2, USER, 1)
    outfits = [
        OutfitRef(id=1, image_url="/images/women/missing.jpg"),
        OutfitRef(id=2, image_url=png_data_url()),
    ]
    synthesis = ScriptedSynthesis({2: RemoteTimeoutError(30)})
    orch = BatchOrchestrator(store, synthesis, resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", outfits, USER)

    assert [r.status for r in record.results] == ["failed", "failed"]
    assert record.results[0].error.startswith("Image not found")
    assert record.results[1].error == "Task timeout"
    assert synthesis.calls == [2]
    assert record.status == "completed"


@pytest.mark.asyncio
async def test_mock_mode_always_completes(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 2, USER, 1)
    orch = BatchOrchestrator(store, MockSynthesisClient(delay_s=0, sleep=no_sleep), resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(5, 6), USER)

    assert record.status == "completed"
    assert [r.result_image_url for r in record.results] == [
        "https://picsum.photos/400/600?random=5",
        "https://picsum.photos/400/600?random=6",
    ]
    assert all(r.task_id for r in record.results)


@pytest.mark.asyncio
async def test_unreadable_user_image_fails_every_item(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 2, "missing-selfie.jpg", 1)
    synthesis = ScriptedSynthesis()
    orch = BatchOrchestrator(store, synthesis, resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(1, 2), "missing-selfie.jpg")

    assert synthesis.calls == []
    assert [r.status for r in record.results] == ["failed", "failed"]
    assert record.status == "completed"


@pytest.mark.asyncio
async def test_unexpected_error_marks_batch_failed(resolver):
    store = BrokenStore(fail_on=2)
    await store.create("b1", 3, USER, 1)
    synthesis = ScriptedSynthesis()
    orch = BatchOrchestrator(store, synthesis, resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(1, 2, 3), USER)

    assert record.status == "failed"
    assert record.completed_count == 1
    # the loop stops at the failure
    assert synthesis.calls == [1, 2]


@pytest.mark.asyncio
async def test_unexpected_synthesis_error_marks_batch_failed(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 2, USER, 1)
    orch = BatchOrchestrator(store, ScriptedSynthesis({1: KeyError("boom")}), resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(1, 2), USER)

    assert record.status == "failed"
    assert record.results == []


@pytest.mark.asyncio
async def test_failed_batch_is_not_reopened(resolver):
    store = InMemoryBatchStore()
    await store.create("b1", 2, USER, 1)
    await store.update("b1", lambda r: r.mark_failed())
    orch = BatchOrchestrator(store, ScriptedSynthesis(), resolver, sleep=no_sleep)

    await orch.run_batch("b1", refs(1, 2), USER)

    record = await store.get("b1")
    assert record.status == "failed"
    assert record.completed_count == 0


@pytest.mark.asyncio
async def test_unknown_batch_is_reported_not_raised(resolver):
    orch = BatchOrchestrator(InMemoryBatchStore(), ScriptedSynthesis(), resolver, sleep=no_sleep)
    assert await orch.run_batch("ghost", refs(1), USER) is None


@pytest.mark.asyncio
async def test_unreadable_record_is_still_marked_failed(resolver):
    store = UnreadableStore()
    await store.create("b1", 2, USER, 1)
    orch = BatchOrchestrator(store, ScriptedSynthesis(), resolver, sleep=no_sleep)

    record = await orch.run_batch("b1", refs(1, 2), USER)

    assert record.status == "failed"
    assert record.results == []
