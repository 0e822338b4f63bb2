"""SQLite schema management (code-first approach)."""

import logging

from taskpulse.core.db_client import get_connection


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = ["tasks"]

# Assignees are embedded in the task row: the task aggregate is the unit of
# mutation, guarded by the version column.
_SCHEMAS: dict[str, str] = {
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            priority TEXT NOT NULL DEFAULT 'medium'
                CHECK (priority IN ('low', 'medium', 'high', 'urgent')),
            due_date TEXT,
            created_by TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            assignees TEXT NOT NULL DEFAULT '[]',
            is_archived INTEGER NOT NULL DEFAULT 0,
            archived_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            version INTEGER NOT NULL DEFAULT 1
        )
    """,
}

_INDEXES: dict[str, list[str]] = {
    "tasks": [
        "CREATE INDEX IF NOT EXISTS idx_tasks_archived ON tasks (is_archived)",
        "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks (due_date)",
        "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks (created_at)",
    ],
}


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist."""
    conn = await get_connection(db_path=db_path)

    for collection in COLLECTIONS:
        await conn.execute(_SCHEMAS[collection])
        for index_sql in _INDEXES.get(collection, []):
            await conn.execute(index_sql)
        logger.info("Ensured collection schema", extra={"collection": collection})

    await conn.commit()
