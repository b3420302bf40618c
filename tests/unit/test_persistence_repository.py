from datetime import datetime, timedelta, timezone

import pytest

from regflow.persistence import InMemoryDraftStore, SQLiteDraftStore

T0 = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)


def _stores(tmp_path):
    return [InMemoryDraftStore(), SQLiteDraftStore(tmp_path / "drafts.db")]


@pytest.mark.asyncio
async def test_draft_store_crud(tmp_path):
    for store in _stores(tmp_path):
        assert await store.load_draft("u1") is None

        await store.save_step("u1", "personal", {"fullName": "Ali"}, [1], current_step=2, updated_at=T0)
        await store.save_step(
            "u1", "professional", {"educationLevel": "master"}, [1, 2], 3, T0 + timedelta(seconds=1)
        )

        draft = await store.load_draft("u1")
        assert draft is not None
        assert draft.owner_id == "u1"
        assert draft.document == {
            "personal": {"fullName": "Ali"},
            "professional": {"educationLevel": "master"},
        }
        assert draft.completed_steps == [1, 2]
        assert draft.current_step == 3
        assert draft.updated_at == T0 + timedelta(seconds=1)
        assert {s.step_key for s in draft.steps} == {"personal", "professional"}

        drafts = await store.list_drafts()
        assert [d.owner_id for d in drafts] == ["u1"]

        await store.delete_draft("u1")
        assert await store.load_draft("u1") is None


@pytest.mark.asyncio
async def test_save_step_is_idempotent(tmp_path):
    for store in _stores(tmp_path):
        for _ in range(2):
            await store.save_step("u1", "contact", {"phone": "0501234567"}, [1, 2, 3], 4, T0)
        draft = await store.load_draft("u1")
        assert len(draft.steps) == 1
        assert draft.document["contact"] == {"phone": "0501234567"}
        assert draft.completed_steps == [1, 2, 3]


@pytest.mark.asyncio
async def test_older_write_is_ignored(tmp_path):
    for store in _stores(tmp_path):
        await store.save_step("u1", "branch", {"preferredBranchId": "new"}, [1, 2], 3, T0)
        await store.save_step(
            "u1", "branch", {"preferredBranchId": "old"}, [1], 2, T0 - timedelta(seconds=5)
        )
        draft = await store.load_draft("u1")
        assert draft.document["branch"] == {"preferredBranchId": "new"}
        assert draft.completed_steps == [1, 2]
        assert draft.current_step == 3


@pytest.mark.asyncio
async def test_missing_current_step_keeps_previous(tmp_path):
    for store in _stores(tmp_path):
        await store.save_step("u1", "personal", {}, [1], 2, T0)
        await store.save_step("u1", "personal", {"x": 1}, [1], None, T0 + timedelta(seconds=1))
        draft = await store.load_draft("u1")
        assert draft.current_step == 2


@pytest.mark.asyncio
async def test_sqlite_draft_survives_reopen(tmp_path):
    path = tmp_path / "drafts.db"
    store = SQLiteDraftStore(path)
    await store.save_step("u1", "address", {"city": "Riyadh"}, [1, 2, 3], 4, T0)

    reopened = SQLiteDraftStore(path)
    draft = await reopened.load_draft("u1")
    assert draft.document == {"address": {"city": "Riyadh"}}
    assert draft.current_step == 4


@pytest.mark.asyncio
async def test_in_memory_store_records_calls():
    store = InMemoryDraftStore()
    await store.save_step("u1", "personal", {"fullName": "Ali"}, {2, 1}, 3, T0)
    assert store.save_calls == [
        {
            "owner_id": "u1",
            "step_key": "personal",
            "data": {"fullName": "Ali"},
            "completed_steps": [1, 2],
            "current_step": 3,
            "updated_at": T0,
        }
    ]
