"""SQLite planner store that supplies records to the search indexes."""
import uuid
import aiosqlite
from pathlib import Path
from typing import Optional, List, Dict, Any

from planner_search.models import EntityType


# Default database location
DEFAULT_DB_PATH = Path.home() / ".planner-search" / "planner.db"

_BOOLEAN_COLUMNS = ("is_completed", "is_default")


class PlannerStore:
    """Async SQLite store for planner tasks, lists and labels."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the planner store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.planner-search/planner.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS lists (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                color TEXT NOT NULL DEFAULT 'blue',
                emoji TEXT,
                position INTEGER NOT NULL DEFAULT 0,
                is_default INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                list_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                priority INTEGER NOT NULL DEFAULT 0,
                is_completed INTEGER NOT NULL DEFAULT 0,
                position INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL DEFAULT (datetime('now')),
                FOREIGN KEY (list_id) REFERENCES lists(id) ON DELETE CASCADE
            )
        """)

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS labels (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                emoji TEXT,
                color TEXT NOT NULL DEFAULT 'gray',
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_tasks_list_id ON tasks(list_id)
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    async def add_list(
        self,
        name: str,
        emoji: Optional[str] = None,
        color: str = "blue",
        is_default: bool = False,
        list_id: Optional[str] = None,
    ) -> str:
        """Insert a list.

        Args:
            name: List name
            emoji: Optional emoji shown next to the name
            color: Display color
            is_default: Whether this is the inbox list
            list_id: Explicit ID (generated if omitted)

        Returns:
            ID of the new list
        """
        connection = self._require_connection()
        list_id = list_id or str(uuid.uuid4())

        cursor = await connection.execute("SELECT COALESCE(MAX(position) + 1, 0) FROM lists")
        position = (await cursor.fetchone())[0]

        await connection.execute(
            "INSERT INTO lists (id, name, color, emoji, position, is_default) VALUES (?, ?, ?, ?, ?, ?)",
            (list_id, name, color, emoji, position, int(is_default)),
        )
        await connection.commit()

        return list_id

    async def add_task(
        self,
        list_id: str,
        name: str,
        description: Optional[str] = None,
        priority: int = 0,
        is_completed: bool = False,
        task_id: Optional[str] = None,
    ) -> str:
        """Insert a task at the end of its list.

        Returns:
            ID of the new task
        """
        connection = self._require_connection()
        task_id = task_id or str(uuid.uuid4())

        cursor = await connection.execute(
            "SELECT COALESCE(MAX(position) + 1, 0) FROM tasks WHERE list_id = ?",
            (list_id,),
        )
        position = (await cursor.fetchone())[0]

        await connection.execute("""
            INSERT INTO tasks (id, list_id, name, description, priority, is_completed, position)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (task_id, list_id, name, description, priority, int(is_completed), position))
        await connection.commit()

        return task_id

    async def add_label(
        self,
        name: str,
        emoji: Optional[str] = None,
        color: str = "gray",
        label_id: Optional[str] = None,
    ) -> str:
        """Insert a label. Label names are unique."""
        connection = self._require_connection()
        label_id = label_id or str(uuid.uuid4())

        await connection.execute(
            "INSERT INTO labels (id, name, emoji, color) VALUES (?, ?, ?, ?)",
            (label_id, name, emoji, color),
        )
        await connection.commit()

        return label_id

    async def set_task_completed(self, task_id: str, completed: bool = True) -> bool:
        """Mark a task done (or not done).

        Returns:
            True if updated, False if the task does not exist
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "UPDATE tasks SET is_completed = ? WHERE id = ?",
            (int(completed), task_id),
        )
        await connection.commit()

        return cursor.rowcount > 0

    async def get_all_lists(self) -> List[Dict[str, Any]]:
        connection = self._require_connection()
        cursor = await connection.execute("SELECT * FROM lists ORDER BY position, created_at")
        rows = await cursor.fetchall()
        return [self._row_to_dict(row) for row in rows]

    async def get_all_tasks(self) -> List[Dict[str, Any]]:
        connection = self._require_connection()
        cursor = await connection.execute(
            "SELECT * FROM tasks ORDER BY list_id, position, created_at"
        )
        rows = await cursor.fetchall()
        return [self._row_to_dict(row) for row in rows]

    async def get_all_labels(self) -> List[Dict[str, Any]]:
        connection = self._require_connection()
        cursor = await connection.execute("SELECT * FROM labels ORDER BY name")
        rows = await cursor.fetchall()
        return [self._row_to_dict(row) for row in rows]

    async def load_records(self, entity_type: EntityType) -> List[Dict[str, Any]]:
        """Get every entity of one type, as plain dicts for indexing.

        Args:
            entity_type: Which table to read

        Returns:
            List of entity dicts
        """
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.TASKS:
            return await self.get_all_tasks()
        if entity_type is EntityType.LISTS:
            return await self.get_all_lists()
        return await self.get_all_labels()

    def _row_to_dict(self, row: aiosqlite.Row) -> Dict[str, Any]:
        """Convert a database row to a dictionary.

        Args:
            row: SQLite row object

        Returns:
            Dictionary with integer flags converted to booleans
        """
        result = dict(row)

        for column in _BOOLEAN_COLUMNS:
            if column in result:
                result[column] = bool(result[column])

        return result


# Global store instance
_planner_store: Optional[PlannerStore] = None


async def get_planner_store(db_path: Optional[Path] = None) -> PlannerStore:
    """Get or create the global planner store instance.

    Args:
        db_path: Database path used when the store is first created

    Returns:
        Initialized PlannerStore
    """
    global _planner_store

    if _planner_store is None:
        store = PlannerStore(db_path)
        await store.initialize()
        _planner_store = store

    return _planner_store
