"""Task board service: the boundary between HTTP handlers and the record store.

This service owns every business rule that spans collections:
- validation of all externally supplied fields before they reach the store
- the completion-timestamp invariant of tasks
- soft deletion (and removal of the deleted task's likes)
- reassignment of tasks when a group is deleted
- keeping each task's like counter equal to the size of its like set
- visit counting

Every mutating operation runs a full read-modify-write of the collections it
touches while holding one in-process lock, so concurrent requests in the
same process cannot lose each other's updates. Read operations degrade to
empty results (and log) when storage is unavailable; mutations never do.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Any, Mapping

from taskboard.adapters.storage.base import AbstractRecordStore
from taskboard.core.errors import NotFoundAppError, StorageAppError, ValidationAppError
from taskboard.schemas.api import LikeToggleResponse
from taskboard.schemas.records import DEFAULT_GROUP_ID, Group, Stats, Task
from taskboard.utils.clock import Clock
from taskboard.utils.validators import (
    sanitize_string,
    validate_boolean,
    validate_group_id,
    validate_group_name,
    validate_priority,
    validate_task_text,
    validate_timestamp,
    validate_uuid,
)

logger = logging.getLogger(__name__)

MAX_CLIENT_IP_LENGTH = 256
MAX_VISITOR_ID_LENGTH = 200


def _visitor_digest(visitor_id: str) -> str:
    return hashlib.sha256(visitor_id.encode()).hexdigest()[:32]


def _find_active_index(tasks: list[Task], task_id: str) -> int:
    wanted = task_id.lower()
    for index, task in enumerate(tasks):
        if task.id.lower() == wanted and not task.is_deleted:
            return index
    raise NotFoundAppError.for_resource("task", task_id)


class TaskBoardService:
    """Operations on tasks, groups, likes and visit statistics."""

    def __init__(self, store: AbstractRecordStore, *, clock: Clock | None = None) -> None:
        self._store = store
        self._clock = clock or Clock()
        self._write_lock = threading.RLock()

    @property
    def store(self) -> AbstractRecordStore:
        return self._store

    def _log_degraded(self, operation: str, exc: StorageAppError) -> None:
        logger.error(
            "board.read_degraded",
            extra={"operation": operation, "error_code": exc.code, "error_message": exc.message},
        )

    def _ensure_group_exists(self, group_id: str) -> None:
        if group_id == DEFAULT_GROUP_ID:
            return
        if not any(group.id == group_id for group in self._store.load_groups()):
            raise NotFoundAppError.for_resource("group", group_id)

    # ---- tasks ----

    def list_active_tasks(self) -> list[Task]:
        """Return tasks that are not soft-deleted, in stored order."""
        # Loading may backfill or recreate documents, so reads share the write lock.
        with self._write_lock:
            try:
                tasks = self._store.load_tasks()
            except StorageAppError as exc:
                self._log_degraded("list_active_tasks", exc)
                return []
        return [task for task in tasks if not task.is_deleted]

    def create_task(
        self,
        text: Any,
        group_id: Any = None,
        priority: Any = None,
        created_at: Any = None,
    ) -> Task:
        """Validate input and append a new, incomplete task.

        Raises:
            ValidationAppError: If any field is malformed.
            NotFoundAppError: If ``group_id`` names no existing group.
            StorageAppError: If the collection cannot be read or written.
        """
        now = self._clock.now_ms()
        clean_text = validate_task_text(text)
        clean_group = (
            DEFAULT_GROUP_ID if group_id in (None, "") else validate_group_id(group_id)
        )
        clean_priority = validate_priority(priority)
        clean_created_at = validate_timestamp(created_at, field="createdAt", now=now)

        with self._write_lock:
            self._ensure_group_exists(clean_group)
            tasks = self._store.load_tasks()
            task = Task(
                id=self._clock.new_id(),
                text=clean_text,
                completed=False,
                created_at=clean_created_at,
                group_id=clean_group,
                priority=clean_priority,
                likes=0,
            )
            tasks.append(task)
            self._store.save_tasks(tasks)

        logger.info(
            "board.task_created",
            extra={"task_id": task.id, "group_id": task.group_id, "priority": task.priority},
        )
        return task

    def update_task(self, task_id: Any, fields: Mapping[str, Any]) -> Task:
        """Apply a partial update to an active task.

        Recognized keys (camelCase, as sent by clients): ``text``,
        ``completed``, ``createdAt``, ``completedAt``, ``groupId``,
        ``priority``. Other keys are ignored; ``None`` values mean "unchanged".

        Completing a task stamps ``completedAt`` (the supplied value or now);
        un-completing clears it. A ``completedAt`` earlier than ``createdAt``
        is rejected.

        Raises:
            ValidationAppError: If any field is malformed or the result would
                break the completion invariant.
            NotFoundAppError: If the task (or a referenced group) is absent.
            StorageAppError: If the collection cannot be read or written.
        """
        clean_id = validate_uuid(task_id)
        now = self._clock.now_ms()

        changes: dict[str, Any] = {}
        if fields.get("text") is not None:
            changes["text"] = validate_task_text(fields["text"])
        if fields.get("createdAt") is not None:
            changes["created_at"] = validate_timestamp(fields["createdAt"], field="createdAt", now=now)
        if fields.get("groupId") not in (None, ""):
            changes["group_id"] = validate_group_id(fields["groupId"])
        if fields.get("priority") is not None:
            changes["priority"] = validate_priority(fields["priority"])

        completed_at = None
        if fields.get("completedAt") is not None:
            completed_at = validate_timestamp(fields["completedAt"], field="completedAt", now=now)

        with self._write_lock:
            if "group_id" in changes:
                self._ensure_group_exists(changes["group_id"])

            tasks = self._store.load_tasks()
            index = _find_active_index(tasks, clean_id)
            task = tasks[index].model_copy(update=changes)

            if fields.get("completed") is not None:
                if validate_boolean(fields["completed"], default=task.completed):
                    task.completed = True
                    task.completed_at = (
                        completed_at if completed_at is not None else max(now, task.created_at)
                    )
                else:
                    task.completed = False
                    task.completed_at = None
            elif completed_at is not None and task.completed:
                task.completed_at = completed_at

            if task.completed and task.completed_at is not None and task.completed_at < task.created_at:
                raise ValidationAppError.for_field("completedAt", "cannot be earlier than createdAt")

            tasks[index] = task
            self._store.save_tasks(tasks)

        logger.info(
            "board.task_updated",
            extra={"task_id": task.id, "fields": sorted(k for k, v in fields.items() if v is not None)},
        )
        return task

    def soft_delete_task(self, task_id: Any) -> Task:
        """Flag a task as deleted, keep it on disk and drop its likes.

        Raises:
            ValidationAppError: If ``task_id`` is not a UUID.
            NotFoundAppError: If no active task has that id.
            StorageAppError: If a collection cannot be read or written.
        """
        clean_id = validate_uuid(task_id)

        with self._write_lock:
            tasks = self._store.load_tasks()
            index = _find_active_index(tasks, clean_id)
            task = tasks[index]
            task.deleted = True
            task.deleted_at = self._clock.now_ms()
            task.likes = 0
            self._store.save_tasks(tasks)
            self._store.remove_likes_for_task(task.id)

        logger.info("board.task_deleted", extra={"task_id": task.id})
        return task

    def purge_deleted_tasks(self, older_than: Any = None) -> int:
        """Permanently remove soft-deleted tasks deleted at or before a cutoff.

        Never called automatically; soft-deleted records stay on disk until an
        operator asks for this.

        Args:
            older_than: Cutoff in ms since epoch; defaults to now.

        Returns:
            Number of tasks removed.
        """
        cutoff = validate_timestamp(older_than, field="olderThan", now=self._clock.now_ms())

        with self._write_lock:
            tasks = self._store.load_tasks()
            kept: list[Task] = []
            purged: list[str] = []
            for task in tasks:
                if task.is_deleted and (task.deleted_at or 0) <= cutoff:
                    purged.append(task.id)
                else:
                    kept.append(task)

            if not purged:
                return 0

            self._store.save_tasks(kept)
            for task_id in purged:
                self._store.remove_likes_for_task(task_id)

        logger.info("board.tasks_purged", extra={"count": len(purged), "cutoff": cutoff})
        return len(purged)

    # ---- groups ----

    def list_groups(self) -> list[Group]:
        with self._write_lock:
            try:
                return self._store.load_groups()
            except StorageAppError as exc:
                self._log_degraded("list_groups", exc)
                return []

    def create_group(self, name: Any) -> Group:
        clean_name = validate_group_name(name)

        with self._write_lock:
            groups = self._store.load_groups()
            group = Group(id=self._clock.new_id(), name=clean_name, created_at=self._clock.now_ms())
            groups.append(group)
            self._store.save_groups(groups)

        logger.info("board.group_created", extra={"group_id": group.id})
        return group

    def delete_group(self, group_id: Any) -> int:
        """Delete a group and move its tasks (deleted ones included) to the default group.

        Tasks are rewritten before the group list, so a failure in between
        leaves an empty group behind rather than tasks pointing at nothing.

        Returns:
            Number of tasks reassigned.

        Raises:
            ValidationAppError: For a malformed id or the default group.
            NotFoundAppError: If the group does not exist.
            StorageAppError: If a collection cannot be read or written.
        """
        clean_id = validate_group_id(group_id, field="id")
        if clean_id == DEFAULT_GROUP_ID:
            raise ValidationAppError.for_field("id", "the default group cannot be deleted")

        with self._write_lock:
            groups = self._store.load_groups()
            if not any(group.id == clean_id for group in groups):
                raise NotFoundAppError.for_resource("group", clean_id)

            tasks = self._store.load_tasks()
            reassigned = 0
            for task in tasks:
                if task.group_id == clean_id:
                    task.group_id = DEFAULT_GROUP_ID
                    reassigned += 1
            if reassigned:
                self._store.save_tasks(tasks)

            self._store.save_groups([group for group in groups if group.id != clean_id])

        logger.info("board.group_deleted", extra={"group_id": clean_id, "reassigned": reassigned})
        return reassigned

    # ---- likes ----

    def toggle_like(self, task_id: Any, client_ip: Any) -> LikeToggleResponse:
        """Like an active task for ``client_ip``, or remove that like if present.

        The task's counter is recomputed from the like set on every toggle.
        """
        clean_id = validate_uuid(task_id, field="todoId")
        ip = sanitize_string(client_ip, field="clientIp", max_length=MAX_CLIENT_IP_LENGTH)

        with self._write_lock:
            tasks = self._store.load_tasks()
            index = _find_active_index(tasks, clean_id)
            task = tasks[index]

            likes = self._store.load_likes()
            ips = likes.get(task.id, [])
            if ip in ips:
                ips = [existing for existing in ips if existing != ip]
                liked = False
            else:
                ips = [*ips, ip]
                liked = True

            if ips:
                likes[task.id] = ips
            else:
                likes.pop(task.id, None)
            task.likes = len(ips)

            self._store.save_likes(likes)
            self._store.save_tasks(tasks)

        logger.info("board.like_toggled", extra={"task_id": task.id, "liked": liked, "likes": task.likes})
        return LikeToggleResponse(liked=liked, like_count=task.likes)

    def liked_task_ids(self, client_ip: str) -> list[str]:
        with self._write_lock:
            try:
                likes = self._store.load_likes()
            except StorageAppError as exc:
                self._log_degraded("liked_task_ids", exc)
                return []
        return [task_id for task_id, ips in likes.items() if client_ip in ips]

    # ---- stats ----

    def get_stats(self) -> Stats:
        with self._write_lock:
            try:
                return self._store.load_stats()
            except StorageAppError as exc:
                self._log_degraded("get_stats", exc)
                return Stats()

    def record_visit(self, is_new_visitor: Any) -> Stats:
        """Count a page view; also a unique visitor when the caller says so."""
        flag = validate_boolean(is_new_visitor, default=False)
        with self._write_lock:
            return self._store.increment_stats(flag)

    def record_hit(self, visitor_id: Any) -> Stats:
        """Count a page view and decide uniqueness from an opaque visitor id.

        Only a digest of the identifier is stored.
        """
        clean_id = sanitize_string(visitor_id, field="visitorId", max_length=MAX_VISITOR_ID_LENGTH)
        digest = _visitor_digest(clean_id)

        with self._write_lock:
            stats = self._store.load_stats()
            stats.pv += 1
            if digest not in stats.visitors:
                stats.visitors.append(digest)
                stats.uv += 1
            self._store.save_stats(stats)
        return stats
