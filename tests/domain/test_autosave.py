"""Tests for AutosaveScheduler: debounce, change suppression and load gating."""

import asyncio

import pytest

from sketchsite.services.autosave import AutosaveScheduler, fingerprint

pytestmark = pytest.mark.unit

PROJECT = "project-1"


class RecordingSave:
    """Save callable that records writes and can be told to fail."""

    def __init__(self):
        self.calls: list[tuple[str, dict | None]] = []
        self.fail = False

    async def __call__(self, project_id, snapshot):
        if self.fail:
            raise ConnectionError("database unavailable")
        self.calls.append((project_id, snapshot))


@pytest.fixture
def save():
    return RecordingSave()


@pytest.fixture
async def scheduler(save):
    scheduler = AutosaveScheduler(save, debounce_seconds=0.02)
    yield scheduler
    await scheduler.close()


def test_fingerprint_ignores_key_order():
    assert fingerprint({"a": 1, "b": [1, 2]}) == fingerprint({"b": [1, 2], "a": 1})
    assert fingerprint({"a": 1}) != fingerprint({"a": 2})


async def test_same_snapshot_persisted_once(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    snapshot = {"shapes": [{"id": "a"}]}

    assert await scheduler.persist(PROJECT, snapshot) is True
    assert await scheduler.persist(PROJECT, dict(snapshot)) is False

    assert save.calls == [(PROJECT, snapshot)]


async def test_loaded_snapshot_is_not_written_back(scheduler, save):
    stored = {"shapes": [{"id": "a"}]}
    scheduler.mark_loaded(PROJECT, stored)

    assert await scheduler.persist(PROJECT, {"shapes": [{"id": "a"}]}) is False
    assert save.calls == []


async def test_nothing_saved_before_load(scheduler, save):
    scheduler.notify(PROJECT, {"shapes": []})

    assert not scheduler.has_pending(PROJECT)
    assert await scheduler.persist(PROJECT, {"shapes": []}) is False
    assert save.calls == []


async def test_burst_of_edits_debounced_into_one_write(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)

    for i in range(5):
        scheduler.notify(PROJECT, {"shapes": [{"id": str(i)}]})
        await asyncio.sleep(0.001)
    await asyncio.sleep(0.1)

    assert save.calls == [(PROJECT, {"shapes": [{"id": "4"}]})]
    assert not scheduler.has_pending(PROJECT)


async def test_flush_writes_pending_immediately(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    scheduler.notify(PROJECT, {"shapes": [{"id": "x"}]})

    assert await scheduler.flush(PROJECT) is True
    assert save.calls == [(PROJECT, {"shapes": [{"id": "x"}]})]

    await asyncio.sleep(0.05)
    assert len(save.calls) == 1


async def test_flush_without_pending_is_noop(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)

    assert await scheduler.flush(PROJECT) is False


async def test_flush_waits_for_write_started_by_timer():
    order = []
    started = asyncio.Event()

    async def slow_save(project_id, snapshot):
        started.set()
        await asyncio.sleep(0.1)
        order.append(("write", snapshot))

    scheduler = AutosaveScheduler(slow_save, debounce_seconds=0.01)
    scheduler.mark_loaded(PROJECT, None)
    scheduler.notify(PROJECT, {"v": 1})
    await asyncio.wait_for(started.wait(), timeout=2)

    assert await scheduler.flush(PROJECT) is False
    order.append(("restore", None))

    assert order == [("write", {"v": 1}), ("restore", None)]
    await scheduler.close()


async def test_pending_snapshot_is_a_copy(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    snapshot = {"shapes": [{"id": "a"}]}

    scheduler.notify(PROJECT, snapshot)
    snapshot["shapes"].append({"id": "b"})
    await scheduler.flush(PROJECT)

    assert save.calls == [(PROJECT, {"shapes": [{"id": "a"}]})]


async def test_failed_write_is_swallowed_and_retried_on_next_change(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    save.fail = True

    assert await scheduler.persist(PROJECT, {"v": 1}) is False

    save.fail = False
    assert await scheduler.persist(PROJECT, {"v": 1}) is True
    assert save.calls == [(PROJECT, {"v": 1})]


async def test_acknowledged_snapshot_is_not_rewritten(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    scheduler.acknowledge(PROJECT, {"restored": True})

    assert await scheduler.persist(PROJECT, {"restored": True}) is False


async def test_cancel_drops_pending_write(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    scheduler.notify(PROJECT, {"v": 1})
    scheduler.cancel(PROJECT)

    await asyncio.sleep(0.05)
    assert save.calls == []


async def test_forget_disables_saving(scheduler, save):
    scheduler.mark_loaded(PROJECT, None)
    scheduler.forget(PROJECT)

    assert not scheduler.is_loaded(PROJECT)
    scheduler.notify(PROJECT, {"v": 1})
    assert not scheduler.has_pending(PROJECT)


async def test_projects_are_debounced_independently(scheduler, save):
    scheduler.mark_loaded("a", None)
    scheduler.mark_loaded("b", None)

    scheduler.notify("a", {"v": "a"})
    scheduler.notify("b", {"v": "b"})
    await asyncio.sleep(0.1)

    assert sorted(save.calls, key=lambda c: c[0]) == [("a", {"v": "a"}), ("b", {"v": "b"})]
