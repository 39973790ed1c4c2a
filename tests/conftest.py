"""Shared fixtures for tests."""
import pytest

from planner_search.config import SearchConfig
from planner_search.models import EntityType
from planner_search.service import SearchService, index_entities


SAMPLE_LISTS = [
    {"id": "l1", "name": "Work Tasks", "emoji": "💼", "color": "blue"},
    {"id": "l2", "name": "Groceries", "emoji": None, "color": "green"},
]

SAMPLE_LABELS = [
    {"id": "b1", "name": "Important", "emoji": "🔥", "color": "red"},
    {"id": "b2", "name": "Later", "emoji": None, "color": "gray"},
]

SAMPLE_TASKS = [
    {
        "id": "t1",
        "list_id": "l1",
        "name": "Complete project proposal",
        "description": "Write the Q1 project proposal document",
        "priority": 3,
        "is_completed": False,
    },
    {
        "id": "t2",
        "list_id": "l1",
        "name": "Review code changes",
        "description": "Review pull requests from team",
        "priority": 2,
        "is_completed": False,
    },
    {
        "id": "t3",
        "list_id": "l2",
        "name": "Buy groceries",
        "description": "Get milk and eggs from store",
        "priority": 1,
        "is_completed": False,
    },
    {
        "id": "t4",
        "list_id": "l1",
        "name": "Book flights",
        "description": "Important: check baggage rules",
        "priority": 0,
        "is_completed": True,
    },
]


@pytest.fixture
def search_config():
    """Search defaults, independent of the environment."""
    return SearchConfig()


@pytest.fixture
def errand_tasks():
    """Three small tasks used by the basic ranking scenarios."""
    return [
        {"id": "1", "name": "Buy groceries"},
        {"id": "2", "name": "Walk the dog"},
        {"id": "3", "name": "Buy flowers"},
    ]


@pytest.fixture
def errand_index(errand_tasks):
    return index_entities(EntityType.TASKS, errand_tasks)


@pytest.fixture
def service(search_config):
    """Search service with every index built from the sample data."""
    s = SearchService(config=search_config)
    s.refresh_all({
        EntityType.TASKS: SAMPLE_TASKS,
        EntityType.LISTS: SAMPLE_LISTS,
        EntityType.LABELS: SAMPLE_LABELS,
    })
    return s


@pytest.fixture
def planner_db_path(tmp_path):
    """Return path for a temporary planner database."""
    return tmp_path / "test_planner.db"
