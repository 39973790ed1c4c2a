"""Tests for planner_store module."""
import pytest
import pytest_asyncio

from planner_search import planner_store
from planner_search.models import EntityType
from planner_search.planner_store import PlannerStore, get_planner_store
from planner_search.service import SearchService


@pytest_asyncio.fixture
async def store(planner_db_path):
    """Create and initialize a test planner store."""
    s = PlannerStore(planner_db_path)
    await s.initialize()
    yield s
    await s.close()


@pytest.mark.asyncio
class TestPlannerStore:
    async def test_initialize_creates_db(self, planner_db_path):
        store = PlannerStore(planner_db_path)
        await store.initialize()
        assert planner_db_path.exists()
        await store.close()

    async def test_requires_initialize(self, planner_db_path):
        store = PlannerStore(planner_db_path)
        with pytest.raises(RuntimeError):
            await store.get_all_tasks()

    async def test_add_and_list(self, store):
        list_id = await store.add_list("Work", emoji="💼")
        await store.add_task(list_id, "Write report", description="Quarterly numbers")
        await store.add_label("Urgent")

        lists = await store.get_all_lists()
        tasks = await store.get_all_tasks()
        labels = await store.get_all_labels()

        assert lists[0]["name"] == "Work"
        assert lists[0]["emoji"] == "💼"
        assert tasks[0]["name"] == "Write report"
        assert tasks[0]["description"] == "Quarterly numbers"
        assert labels[0]["name"] == "Urgent"

    async def test_booleans_converted(self, store):
        list_id = await store.add_list("Inbox", is_default=True)
        await store.add_task(list_id, "Done already", is_completed=True)

        lists = await store.get_all_lists()
        tasks = await store.get_all_tasks()
        assert lists[0]["is_default"] is True
        assert tasks[0]["is_completed"] is True

    async def test_tasks_keep_insertion_order(self, store):
        list_id = await store.add_list("Inbox")
        for name in ["First", "Second", "Third"]:
            await store.add_task(list_id, name)

        tasks = await store.get_all_tasks()
        assert [t["name"] for t in tasks] == ["First", "Second", "Third"]
        assert [t["position"] for t in tasks] == [0, 1, 2]

    async def test_explicit_ids(self, store):
        list_id = await store.add_list("Inbox", list_id="inbox")
        task_id = await store.add_task(list_id, "Task", task_id="t-1")
        assert list_id == "inbox"
        assert task_id == "t-1"

    async def test_set_task_completed(self, store):
        list_id = await store.add_list("Inbox")
        task_id = await store.add_task(list_id, "Water plants")

        assert await store.set_task_completed(task_id) is True
        tasks = await store.get_all_tasks()
        assert tasks[0]["is_completed"] is True

    async def test_set_task_completed_missing(self, store):
        assert await store.set_task_completed("missing") is False

    async def test_load_records(self, store):
        list_id = await store.add_list("Inbox")
        await store.add_task(list_id, "Task")
        await store.add_label("Later")

        assert len(await store.load_records(EntityType.TASKS)) == 1
        assert len(await store.load_records("lists")) == 1
        assert len(await store.load_records(EntityType.LABELS)) == 1

    async def test_feeds_search_service(self, store, search_config):
        list_id = await store.add_list("Errands")
        await store.add_task(list_id, "Buy groceries")
        await store.add_task(list_id, "Walk the dog")
        done_id = await store.add_task(list_id, "Buy flowers")
        await store.set_task_completed(done_id)

        service = SearchService(config=search_config)
        service.refresh(EntityType.TASKS, await store.load_records(EntityType.TASKS))

        names = [r.record.name for r in service.search_tasks("buy")]
        assert names == ["Buy groceries"]

        names = [r.record.name for r in service.search_tasks("buy", {"include_completed": True})]
        assert names == ["Buy groceries", "Buy flowers"]


@pytest.mark.asyncio
class TestGetPlannerStore:
    async def test_returns_initialized_singleton(self, planner_db_path, monkeypatch):
        monkeypatch.setattr(planner_store, "_planner_store", None)

        first = await get_planner_store(planner_db_path)
        second = await get_planner_store()
        assert first is second
        assert await first.get_all_tasks() == []
        await first.close()

    async def test_failed_initialize_is_not_cached(self, tmp_path, monkeypatch):
        monkeypatch.setattr(planner_store, "_planner_store", None)
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        db_path = blocker / "planner.db"

        with pytest.raises(OSError):
            await get_planner_store(db_path)
        assert planner_store._planner_store is None

        blocker.unlink()
        store = await get_planner_store(db_path)
        assert await store.get_all_lists() == []
        await store.close()
