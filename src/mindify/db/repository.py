"""Repository pattern for all Mindify storage operations.

Single interface for: items, projects, the pending-sync queue and settings.
Every write goes through one guard that recovers from quota exhaustion by
evicting the oldest archived items and retrying once.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
import sqlite3
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, TypeVar

from mindify.db.models import Entities, Item, Project, ScheduledNotification, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ITEM_COLUMNS = (
    "id, raw_input, category, subcategory, title, tags, entities, urgency, status, "
    "pending_ai_processing, synced, scheduled_notification, created_at, updated_at"
)
_PROJECT_COLUMNS = (
    "id, name, description, color, item_ids, suggested_by_ai, user_approved, "
    "created_at, updated_at"
)


class StorageFullError(RuntimeError):
    """Raised when a write exceeds the storage quota and eviction cannot make room."""


class ItemNotFoundError(KeyError):
    """Raised when an item or project id does not exist."""


def _is_quota_error(exc: sqlite3.OperationalError) -> bool:
    if getattr(exc, "sqlite_errorname", None) == "SQLITE_FULL":
        return True
    return "database or disk is full" in str(exc).lower()


class Repository:
    """Data access layer for items, projects, sync queue and settings.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use. All access is serialised with a re-entrant
    lock so the capture path and the background processor can share one
    repository; reads always see preceding writes.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see mindify.db.migrations.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Write guard
    # ------------------------------------------------------------------

    def _run(self, op: Callable[[], T]) -> T:
        try:
            result = op()
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise
        return result

    def _write(self, op: Callable[[], T]) -> T:
        """Run *op* as one transaction, evicting archived items on quota errors."""
        with self._lock:
            try:
                return self._run(op)
            except sqlite3.OperationalError as exc:
                if not _is_quota_error(exc):
                    raise
                logger.warning("Storage quota exceeded, evicting archived items: %s", exc)
                if self._evict_archived() == 0:
                    raise StorageFullError(
                        "Storage is full and there are no archived items to evict."
                    ) from exc
            try:
                return self._run(op)
            except sqlite3.OperationalError as exc:
                if _is_quota_error(exc):
                    raise StorageFullError(
                        "Storage is still full after evicting archived items."
                    ) from exc
                raise

    def _evict_archived(self) -> int:
        rows = self._conn.execute(
            "SELECT id FROM items WHERE status = 'archived' ORDER BY updated_at, rowid"
        ).fetchall()
        if not rows:
            return 0
        victims = [r["id"] for r in rows[: math.ceil(len(rows) / 2)]]
        placeholders = ",".join("?" * len(victims))

        def _delete() -> None:
            self._conn.execute(f"DELETE FROM items WHERE id IN ({placeholders})", victims)
            self._conn.execute(
                f"DELETE FROM pending_sync WHERE item_id IN ({placeholders})", victims
            )

        self._run(_delete)
        logger.info("Evicted %d archived items", len(victims))
        return len(victims)

    def evict_archived(self) -> int:
        """Delete the oldest half (rounded up) of archived items by updated_at.

        Returns:
            Number of items deleted (0 if there were no archived items).
        """
        with self._lock:
            return self._evict_archived()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def _insert_item(self, item: Item) -> None:
        self._conn.execute(
            f"INSERT INTO items ({_ITEM_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            _item_params(item),
        )
        self._enqueue_sync(item.id, "upsert")

    def _enqueue_sync(self, item_id: str, action: str) -> None:
        self._conn.execute(
            """
            INSERT INTO pending_sync (item_id, action) VALUES (?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                action = excluded.action,
                queued_at = datetime('now')
            """,
            (item_id, action),
        )

    def add_item(self, item: Item) -> Item:
        """Insert a new item record, keeping its timestamps as given.

        Args:
            item: Item to persist.

        Returns:
            The same item.
        """
        self._write(lambda: self._insert_item(item))
        return item

    def get_item(self, item_id: str) -> Item | None:
        """Return an item by ID, or None if not found."""
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ?", (item_id,)
            ).fetchone()
        return _row_to_item(row) if row else None

    def require_item(self, item_id: str) -> Item:
        """Return an item by ID or raise ItemNotFoundError."""
        item = self.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def list_items(
        self,
        status: str | None = None,
        category: str | None = None,
        include_pending: bool = True,
    ) -> list[Item]:
        """Return items newest first, optionally filtered.

        Args:
            status: Only items with this status.
            category: Only items with this category.
            include_pending: When False, items still awaiting AI processing
                are left out.
        """
        sql = f"SELECT {_ITEM_COLUMNS} FROM items"
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status)
        if category is not None:
            clauses.append("category = ?")
            params.append(category)
        if not include_pending:
            clauses.append("pending_ai_processing = 0")
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC, rowid DESC"
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        return [_row_to_item(r) for r in rows]

    def list_visible_items(self) -> list[Item]:
        """Items shown in browsing views: not in flight, not archived."""
        return [
            item
            for item in self.list_items(include_pending=False)
            if item.status != "archived"
        ]

    def list_pending_items(self) -> list[Item]:
        """Inbox items still flagged for AI processing."""
        return [item for item in self.list_items(status="inbox") if item.pending_ai_processing]

    def count_pending(self) -> int:
        with self._lock:
            return self._conn.execute(
                "SELECT COUNT(*) FROM items WHERE pending_ai_processing = 1 AND status = 'inbox'"
            ).fetchone()[0]

    def update_item(self, item_id: str, **fields: Any) -> Item | None:
        """Apply a partial update and bump ``updated_at``.

        ``synced`` is reset to False unless given explicitly.

        Returns:
            The updated item, or None if *item_id* does not exist.

        Raises:
            TypeError: If a field name is not an Item attribute.
        """
        with self._lock:
            current = self.get_item(item_id)
            if current is None:
                return None
            fields.setdefault("synced", False)
            fields.pop("id", None)
            fields.pop("updated_at", None)
            updated = dataclasses.replace(current, **fields, updated_at=utcnow())

            def _update() -> None:
                params = _item_params(updated)
                self._conn.execute(
                    """
                    UPDATE items SET raw_input = ?, category = ?, subcategory = ?, title = ?,
                        tags = ?, entities = ?, urgency = ?, status = ?,
                        pending_ai_processing = ?, synced = ?, scheduled_notification = ?,
                        created_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (*params[1:], item_id),
                )
                self._enqueue_sync(item_id, "upsert")

            self._write(_update)
            return updated

    def delete_item(self, item_id: str) -> None:
        """Delete an item record by ID (no-op if missing)."""

        def _delete() -> None:
            self._conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
            self._enqueue_sync(item_id, "delete")

        self._write(_delete)

    def replace_item(self, original_id: str, new_items: Iterable[Item]) -> list[Item]:
        """Atomically delete *original_id* and insert *new_items* in its place.

        Raises:
            ItemNotFoundError: If *original_id* does not exist.
        """
        items = list(new_items)

        def _replace() -> None:
            cur = self._conn.execute("DELETE FROM items WHERE id = ?", (original_id,))
            if cur.rowcount == 0:
                raise ItemNotFoundError(original_id)
            self._enqueue_sync(original_id, "delete")
            for item in items:
                self._insert_item(item)

        self._write(_replace)
        return items

    def merge_items(self, merged: Item, source_ids: Iterable[str]) -> Item:
        """Atomically insert *merged* and archive every item in *source_ids*.

        Raises:
            ItemNotFoundError: If any source does not exist; nothing is written.
        """
        ids = list(source_ids)

        def _merge() -> None:
            self._insert_item(merged)
            archived_at = utcnow().isoformat(timespec="microseconds")
            for item_id in ids:
                cur = self._conn.execute(
                    "UPDATE items SET status = 'archived', synced = 0, updated_at = ? WHERE id = ?",
                    (archived_at, item_id),
                )
                if cur.rowcount == 0:
                    raise ItemNotFoundError(item_id)
                self._enqueue_sync(item_id, "upsert")

        self._write(_merge)
        return merged

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        def _insert() -> None:
            self._conn.execute(
                f"INSERT INTO projects ({_PROJECT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _project_params(project),
            )

        self._write(_insert)
        return project

    def get_project(self, project_id: str) -> Project | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_PROJECT_COLUMNS} FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
        return _row_to_project(row) if row else None

    def list_projects(self) -> list[Project]:
        """Return all projects ordered by creation time (oldest first)."""
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_PROJECT_COLUMNS} FROM projects ORDER BY created_at, rowid"
            ).fetchall()
        return [_row_to_project(r) for r in rows]

    def update_project(self, project_id: str, **fields: Any) -> Project | None:
        with self._lock:
            current = self.get_project(project_id)
            if current is None:
                return None
            fields.pop("id", None)
            fields.pop("updated_at", None)
            updated = dataclasses.replace(current, **fields, updated_at=utcnow())

            def _update() -> None:
                params = _project_params(updated)
                self._conn.execute(
                    """
                    UPDATE projects SET name = ?, description = ?, color = ?, item_ids = ?,
                        suggested_by_ai = ?, user_approved = ?, created_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (*params[1:], project_id),
                )

            self._write(_update)
            return updated

    def add_item_to_project(self, project_id: str, item_id: str) -> Project:
        """Append *item_id* to a project's item list if not already present."""
        with self._lock:
            project = self.get_project(project_id)
            if project is None:
                raise ItemNotFoundError(project_id)
            if item_id in project.item_ids:
                return project
            return self.update_project(project_id, item_ids=[*project.item_ids, item_id])

    def delete_project(self, project_id: str) -> None:
        self._write(
            lambda: self._conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        )

    def items_for_project(self, project_id: str) -> list[Item]:
        """Return the project's items that still exist, in project order."""
        project = self.get_project(project_id)
        if project is None:
            raise ItemNotFoundError(project_id)
        items = [self.get_item(item_id) for item_id in project.item_ids]
        return [i for i in items if i is not None]

    # ------------------------------------------------------------------
    # Pending sync queue
    # ------------------------------------------------------------------

    def list_pending_sync(self) -> list[tuple[str, str]]:
        """Return [(item_id, action), ...] oldest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT item_id, action FROM pending_sync ORDER BY queued_at, rowid"
            ).fetchall()
        return [(r["item_id"], r["action"]) for r in rows]

    def mark_synced(self, item_ids: Iterable[str]) -> None:
        ids = list(item_ids)
        if not ids:
            return
        placeholders = ",".join("?" * len(ids))

        def _mark() -> None:
            self._conn.execute(f"DELETE FROM pending_sync WHERE item_id IN ({placeholders})", ids)
            self._conn.execute(f"UPDATE items SET synced = 1 WHERE id IN ({placeholders})", ids)

        self._write(_mark)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ).fetchone()
        return json.loads(row["value"]) if row else default

    def set_setting(self, key: str, value: Any) -> None:
        self._write(
            lambda: self._conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = datetime('now')
                """,
                (key, json.dumps(value)),
            )
        )


# ------------------------------------------------------------------
# Row ↔ model helpers
# ------------------------------------------------------------------


def _item_params(item: Item) -> tuple:
    notification = (
        json.dumps(item.scheduled_notification.to_dict())
        if item.scheduled_notification is not None
        else None
    )
    return (
        item.id,
        item.raw_input,
        item.category,
        item.subcategory,
        item.title,
        json.dumps(list(item.tags)),
        json.dumps(item.entities.to_dict()),
        item.urgency,
        item.status,
        int(item.pending_ai_processing),
        int(item.synced),
        notification,
        item.created_at.isoformat(timespec="microseconds"),
        item.updated_at.isoformat(timespec="microseconds"),
    )


def _row_to_item(row: sqlite3.Row) -> Item:
    notification = row["scheduled_notification"]
    return Item(
        id=row["id"],
        raw_input=row["raw_input"],
        category=row["category"],
        subcategory=row["subcategory"],
        title=row["title"],
        tags=json.loads(row["tags"]),
        entities=Entities.from_dict(json.loads(row["entities"])),
        urgency=row["urgency"],
        status=row["status"],
        pending_ai_processing=bool(row["pending_ai_processing"]),
        synced=bool(row["synced"]),
        scheduled_notification=(
            ScheduledNotification.from_dict(json.loads(notification)) if notification else None
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _project_params(project: Project) -> tuple:
    return (
        project.id,
        project.name,
        project.description,
        project.color,
        json.dumps(list(project.item_ids)),
        int(project.suggested_by_ai),
        int(project.user_approved),
        project.created_at.isoformat(timespec="microseconds"),
        project.updated_at.isoformat(timespec="microseconds"),
    )


def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        color=row["color"],
        item_ids=json.loads(row["item_ids"]),
        suggested_by_ai=bool(row["suggested_by_ai"]),
        user_approved=bool(row["user_approved"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
