"""Tests for VersionStore against a SQLite database."""

import asyncio
import uuid

import pytest
from sqlalchemy import delete

from sketchsite.core.exceptions import NotFoundError
from sketchsite.db.models.version import Version
from sketchsite.schemas.artifacts import Artifact

pytestmark = pytest.mark.integration


def _artifact(n: int) -> Artifact:
    return Artifact(markup=f"<h1>v{n}</h1>", styles=f"h1{{order:{n}}}", script="")


async def _append(versions, project_id, n: int):
    return await versions.append(project_id, {"shapes": [{"id": f"s{n}"}]}, _artifact(n))


async def test_version_numbers_start_at_one_and_increase(versions, project):
    numbers = [(await _append(versions, project.id, n)).version_number for n in range(1, 4)]

    assert numbers == [1, 2, 3]


async def test_concurrent_appends_get_distinct_numbers(versions, project):
    created = await asyncio.gather(*(_append(versions, project.id, n) for n in range(5)))

    assert sorted(v.version_number for v in created) == [1, 2, 3, 4, 5]


async def test_numbers_are_per_project(versions, projects, project):
    other = await projects.create("someone-else")

    await _append(versions, project.id, 1)
    await _append(versions, project.id, 2)
    first_of_other = await _append(versions, other.id, 1)

    assert first_of_other.version_number == 1


async def test_number_not_reused_after_newest_deleted(versions, project, session_factory):
    await _append(versions, project.id, 1)
    await _append(versions, project.id, 2)
    newest = await _append(versions, project.id, 3)

    async with session_factory() as session:
        await session.execute(delete(Version).where(Version.id == newest.id))
        await session.commit()

    assert (await _append(versions, project.id, 4)).version_number == 4


async def test_append_to_missing_project_raises(versions):
    with pytest.raises(NotFoundError):
        await _append(versions, uuid.uuid4(), 1)


async def test_appended_snapshot_is_a_copy(versions, project):
    snapshot = {"shapes": [{"id": "a"}]}
    version = await versions.append(project.id, snapshot, _artifact(1))

    snapshot["shapes"].append({"id": "b"})

    stored = await versions.get(version.id)
    assert stored.canvas_snapshot == {"shapes": [{"id": "a"}]}


async def test_list_is_newest_first(versions, project):
    for n in range(1, 4):
        await _append(versions, project.id, n)

    listed = await versions.list(project.id).to_list()

    assert [v.version_number for v in listed] == [3, 2, 1]


async def test_list_respects_limit_across_pages(versions, project):
    for n in range(1, 8):
        await _append(versions, project.id, n)

    history = versions.list(project.id, limit=5)
    history.page_size = 2

    assert [v.version_number async for v in history] == [7, 6, 5, 4, 3]


async def test_listing_can_be_iterated_again_and_sees_new_versions(versions, project):
    await _append(versions, project.id, 1)
    history = versions.list(project.id)

    assert len(await history.to_list()) == 1
    await _append(versions, project.id, 2)
    assert [v.version_number for v in await history.to_list()] == [2, 1]


async def test_list_of_project_without_versions_is_empty(versions, project):
    assert await versions.list(project.id).to_list() == []


async def test_get_unknown_version_raises(versions):
    with pytest.raises(NotFoundError):
        await versions.get(uuid.uuid4())


async def test_get_for_project_rejects_foreign_version(versions, projects, project):
    other = await projects.create("someone-else")
    foreign = await _append(versions, other.id, 1)

    with pytest.raises(NotFoundError):
        await versions.get_for_project(project.id, foreign.id)


async def test_restore_overwrites_live_without_new_version(versions, projects, project):
    for n in range(1, 4):
        await _append(versions, project.id, n)
    v2 = (await versions.list(project.id).to_list())[1]

    restored = await versions.restore(project.id, v2.id)

    assert restored.canvas_snapshot == {"shapes": [{"id": "s2"}]}
    assert restored.live_artifact == _artifact(2).to_stored()
    assert [v.version_number for v in await versions.list(project.id).to_list()] == [3, 2, 1]

    reloaded = await projects.get(project.id)
    assert reloaded.live_artifact["markup"] == "<h1>v2</h1>"


async def test_restore_foreign_version_raises_and_leaves_live_untouched(versions, projects, project):
    other = await projects.create("someone-else")
    foreign = await _append(versions, other.id, 1)

    with pytest.raises(NotFoundError):
        await versions.restore(project.id, foreign.id)

    assert (await projects.get(project.id)).canvas_snapshot == project.canvas_snapshot
