"""SQLite task store using aiosqlite, with conditional-write version checks."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Self

import aiosqlite

from tasktracker.core.store import (
    StorageError,
    build_new_task,
    normalize_changes,
    not_found,
    utc_now,
    version_conflict,
)
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import SortField, SortOrder, TaskFilters
from tasktracker.domain.task import Task


logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

_COLUMNS = "id, title, status, priority, due_date, tags, version, created_at, updated_at"

# seq is never reused (AUTOINCREMENT) and gives the default listing order
_SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL CHECK(length(title) >= 1 AND length(title) <= 120),
    status TEXT NOT NULL CHECK(status IN ('todo', 'doing', 'done')),
    priority INTEGER NOT NULL CHECK(priority >= 1 AND priority <= 5),
    due_date TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    version INTEGER NOT NULL DEFAULT 1 CHECK(version >= 1),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority);
CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date);
"""

_SORT_COLUMNS = {SortField.PRIORITY: "priority", SortField.DUE_DATE: "due_date"}


def _format_timestamp(value: datetime | None) -> str | None:
    """Serialize a timestamp as fixed-width UTC ISO 8601 so text order is time order."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _casefold_contains(haystack: str | None, needle: str | None) -> bool:
    """SQL function backing the case-insensitive title search."""
    if haystack is None or needle is None:
        return False
    return needle.casefold() in haystack.casefold()


def _to_column_value(field: str, value: Any) -> Any:
    """Convert a Task attribute value to its SQLite representation."""
    if field == "tags":
        return json.dumps(list(value))
    if field == "due_date":
        return _format_timestamp(value)
    if field == "status":
        return str(value)
    return value


def _row_to_task(row: aiosqlite.Row | tuple[Any, ...]) -> Task:
    """Convert a row selected with ``_COLUMNS`` to a Task."""
    task_id, title, status, priority, due_date, tags, version, created_at, updated_at = row
    return Task.model_validate(
        {
            "id": task_id,
            "title": title,
            "status": status,
            "priority": priority,
            "due_date": datetime.fromisoformat(due_date) if due_date else None,
            "tags": json.loads(tags),
            "version": version,
            "created_at": datetime.fromisoformat(created_at),
            "updated_at": datetime.fromisoformat(updated_at),
        }
    )


def _build_where(filters: TaskFilters) -> tuple[str, list[Any]]:
    """Build the WHERE clause and parameters for a listing."""
    conditions: list[str] = []
    params: list[Any] = []

    if filters.status is not None:
        conditions.append("status = ?")
        params.append(str(filters.status))

    if filters.tag is not None:
        conditions.append("EXISTS (SELECT 1 FROM json_each(tasks.tags) WHERE json_each.value = ?)")
        params.append(filters.tag)

    if filters.search is not None:
        conditions.append("casefold_contains(title, ?)")
        params.append(filters.search)

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where_clause, params


def _build_order(filters: TaskFilters) -> str:
    """Build the ORDER BY clause; nulls last, insertion order breaks ties."""
    if filters.sort_by is None:
        return "ORDER BY seq ASC"

    column = _SORT_COLUMNS[filters.sort_by]
    direction = "DESC" if filters.sort_order == SortOrder.DESC else "ASC"
    return f"ORDER BY ({column} IS NULL) ASC, {column} {direction}, seq ASC"


class SqliteTaskStore:
    """Task store persisted in SQLite.

    The connection runs in autocommit mode: every statement is its own
    transaction. Updates are a single ``UPDATE ... WHERE id = ? AND version = ?
    RETURNING`` statement, so the version check and the write cannot be
    interleaved by another writer, in this process or any other.
    """

    def __init__(self, conn: aiosqlite.Connection, db_path: str) -> None:
        """Wrap an open connection; use ``SqliteTaskStore.connect`` instead."""
        self._conn = conn
        self._db_path = db_path

    @classmethod
    async def connect(cls, db_path: str = MEMORY_DB) -> Self:
        """Open the database at ``db_path`` and ensure the schema exists.

        Raises:
            StorageError: If the database cannot be opened or initialized
        """
        try:
            if db_path != MEMORY_DB:
                Path(db_path).resolve().parent.mkdir(parents=True, exist_ok=True)

            conn = await aiosqlite.connect(db_path, isolation_level=None)
            await conn.execute("PRAGMA busy_timeout = 5000")
            if db_path != MEMORY_DB:
                await conn.execute("PRAGMA journal_mode = WAL")
            await conn.create_function("casefold_contains", 2, _casefold_contains, deterministic=True)
            await conn.executescript(_SCHEMA)
        except (aiosqlite.Error, OSError) as e:
            logger.error("sqlite_connect_failed", extra={"db_path": db_path, "error": str(e)})
            msg = f"Failed to open task database at {db_path}: {e}"
            raise StorageError(msg) from e

        logger.info("Opened SQLite task store", extra={"db_path": db_path})
        return cls(conn, db_path)

    async def close(self) -> None:
        """Close the underlying connection."""
        try:
            await self._conn.close()
            logger.info("Closed SQLite task store", extra={"db_path": self._db_path})
        except aiosqlite.Error as e:
            logger.warning("Error closing SQLite connection", extra={"db_path": self._db_path, "error": str(e)})

    async def create(self, data: TaskCreate) -> Task:
        task = build_new_task(data)
        try:
            await self._conn.execute(
                f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",  # noqa: S608 - constant columns
                (
                    task.id,
                    task.title,
                    str(task.status),
                    task.priority,
                    _format_timestamp(task.due_date),
                    json.dumps(task.tags),
                    task.version,
                    _format_timestamp(task.created_at),
                    _format_timestamp(task.updated_at),
                ),
            )
        except aiosqlite.Error as e:
            logger.error("create_task_failed", extra={"error": str(e)})
            msg = f"Failed to create task: {e}"
            raise StorageError(msg) from e

        logger.debug("Created task", extra={"task_id": task.id})
        return task

    async def find_by_id(self, task_id: str) -> Task | None:
        try:
            async with self._conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE id = ?",  # noqa: S608 - constant columns
                (task_id,),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("find_task_failed", extra={"task_id": task_id, "error": str(e)})
            msg = f"Failed to get task {task_id}: {e}"
            raise StorageError(msg) from e

        return _row_to_task(row) if row is not None else None

    async def find_many(self, filters: TaskFilters) -> tuple[list[Task], int]:
        where_clause, params = _build_where(filters)
        order_clause = _build_order(filters)

        try:
            async with self._conn.execute(
                f"SELECT COUNT(*) FROM tasks {where_clause}",  # noqa: S608 - clause built from fixed fragments
                params,
            ) as cursor:
                (total,) = await cursor.fetchone()

            async with self._conn.execute(
                f"SELECT {_COLUMNS} FROM tasks {where_clause} {order_clause} LIMIT ? OFFSET ?",  # noqa: S608
                [*params, filters.page_size, filters.offset],
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("list_tasks_failed", extra={"error": str(e)})
            msg = f"Failed to list tasks: {e}"
            raise StorageError(msg) from e

        return [_row_to_task(row) for row in rows], total

    async def update(self, task_id: str, changes: dict[str, Any], *, expected_version: int) -> Task:
        normalized = normalize_changes(changes, expected_version=expected_version)

        assignments = [f"{field} = ?" for field in normalized]
        params: list[Any] = [_to_column_value(field, value) for field, value in normalized.items()]
        assignments.extend(["version = version + 1", "updated_at = ?"])
        params.extend([_format_timestamp(utc_now()), task_id, expected_version])

        try:
            async with self._conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} "  # noqa: S608 - columns come from normalized field names
                f"WHERE id = ? AND version = ? RETURNING {_COLUMNS}",
                params,
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("update_task_failed", extra={"task_id": task_id, "error": str(e)})
            msg = f"Failed to update task {task_id}: {e}"
            raise StorageError(msg) from e

        if row is None:
            current_version = await self._current_version(task_id)
            if current_version is None:
                raise not_found(task_id)
            raise version_conflict(expected_version=expected_version, current_version=current_version)

        updated = _row_to_task(row)
        logger.debug("Updated task", extra={"task_id": task_id, "version": updated.version})
        return updated

    async def delete(self, task_id: str, *, expected_version: int | None = None) -> bool:
        query = "DELETE FROM tasks WHERE id = ?"
        params: list[Any] = [task_id]
        if expected_version is not None:
            query += " AND version = ?"
            params.append(expected_version)

        try:
            async with self._conn.execute(query, params) as cursor:
                deleted = cursor.rowcount > 0
        except OverflowError:
            # no stored version is outside the INTEGER range
            deleted = False
        except aiosqlite.Error as e:
            logger.error("delete_task_failed", extra={"task_id": task_id, "error": str(e)})
            msg = f"Failed to delete task {task_id}: {e}"
            raise StorageError(msg) from e

        if not deleted and expected_version is not None:
            current_version = await self._current_version(task_id)
            if current_version is not None:
                raise version_conflict(expected_version=expected_version, current_version=current_version)

        if deleted:
            logger.debug("Deleted task", extra={"task_id": task_id})
        return deleted

    async def exists(self, task_id: str) -> bool:
        return await self._current_version(task_id) is not None

    async def _current_version(self, task_id: str) -> int | None:
        try:
            async with self._conn.execute("SELECT version FROM tasks WHERE id = ?", (task_id,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("read_version_failed", extra={"task_id": task_id, "error": str(e)})
            msg = f"Failed to read version of task {task_id}: {e}"
            raise StorageError(msg) from e

        return row[0] if row is not None else None
