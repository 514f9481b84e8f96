"""JSON file record store.

One pretty-printed document per collection inside the data directory:

- ``todos.json``: array of tasks
- ``groups.json``: array of groups
- ``likes.json``: object mapping task id to liking client IPs
- ``stats.json``: visit counters

Notes:
- Whole-document rewrites only. Each save goes to a temp file in the same
  directory and is swapped in with ``os.replace``.
- No file locking: one process owns the directory.
- A document that fails to parse is copied aside before the error is raised
  so a later save cannot overwrite the only copy.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from taskboard.adapters.storage.base import AbstractRecordStore
from taskboard.core.errors import StorageCorruptError, StorageUnavailableError
from taskboard.schemas.records import (
    DEFAULT_GROUP_ID,
    DEFAULT_GROUP_NAME,
    Group,
    LikesMap,
    Stats,
    Task,
)
from taskboard.utils.clock import now_ms

logger = logging.getLogger(__name__)

TASKS_FILE = "todos.json"
GROUPS_FILE = "groups.json"
LIKES_FILE = "likes.json"
STATS_FILE = "stats.json"


class JsonFileRecordStore(AbstractRecordStore):
    """Record store persisting each collection as a JSON document."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the store.

        Args:
            data_dir: Directory for the documents. Validate it first with
                ``taskboard.core.paths.validate_data_dir``.
            clock: Millisecond time source used for seeded records and
                backup file names.
        """
        self._data_dir = Path(data_dir)
        self._clock = clock

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, filename: str) -> Path:
        return self._data_dir / filename

    # ---- low-level helpers ----

    def _unavailable(self, filename: str, action: str, exc: OSError) -> StorageUnavailableError:
        logger.error(
            "storage.unavailable",
            extra={
                "collection": filename,
                "action": action,
                "path": str(self.path_for(filename)),
                "errno": exc.errno,
                "error_msg": exc.strerror or str(exc),
            },
        )
        return StorageUnavailableError(
            code="storage_unavailable",
            message=f"Could not {action} {filename}",
            details={"collection": filename, "context": {"path": str(self.path_for(filename))}},
        )

    def _corrupt(self, filename: str, reason: str) -> StorageCorruptError:
        path = self.path_for(filename)
        backup = path.with_name(f"{filename}.corrupt-{self._clock()}.bak")
        try:
            shutil.copy2(path, backup)
        except OSError as exc:
            logger.error(
                "storage.corrupt_backup_failed",
                extra={"collection": filename, "path": str(path), "error_msg": str(exc)},
            )
            backup_path = None
        else:
            backup_path = str(backup)

        logger.error(
            "storage.corrupt",
            extra={
                "collection": filename,
                "path": str(path),
                "reason": reason,
                "backup_path": backup_path,
            },
        )
        return StorageCorruptError(
            code="storage_corrupt",
            message=f"{filename} could not be parsed",
            details={
                "collection": filename,
                "reason": reason,
                "context": {"path": str(path), "backup_path": backup_path},
            },
        )

    def _ensure_dir(self, filename: str) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise self._unavailable(filename, "create the data directory for", exc) from exc

    def _write_document(self, filename: str, document: Any) -> None:
        self._ensure_dir(filename)
        path = self.path_for(filename)
        payload = json.dumps(document, indent=2, ensure_ascii=False)

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._data_dir,
                prefix=f".{filename}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise self._unavailable(filename, "write", exc) from exc

        logger.debug(
            "storage.saved",
            extra={"collection": filename, "bytes": len(payload)},
        )

    def _read_document(self, filename: str, default: Callable[[], Any]) -> Any:
        """Read and parse a document, creating it from ``default`` if missing."""
        self._ensure_dir(filename)
        path = self.path_for(filename)

        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            document = default()
            self._write_document(filename, document)
            logger.info("storage.created", extra={"collection": filename, "path": str(path)})
            return document
        except OSError as exc:
            raise self._unavailable(filename, "read", exc) from exc

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise self._corrupt(filename, f"invalid JSON at line {exc.lineno}: {exc.msg}") from exc

    def _default_group(self) -> Group:
        return Group(id=DEFAULT_GROUP_ID, name=DEFAULT_GROUP_NAME, created_at=self._clock())

    # ---- tasks ----

    def load_tasks(self) -> list[Task]:
        document = self._read_document(TASKS_FILE, list)
        if not isinstance(document, list):
            raise self._corrupt(TASKS_FILE, "expected a JSON array")

        # One-time migration: tasks written before groups existed
        backfilled = 0
        for item in document:
            if isinstance(item, dict) and not item.get("groupId"):
                item["groupId"] = DEFAULT_GROUP_ID
                backfilled += 1

        try:
            tasks = [Task.model_validate(item) for item in document]
        except ValidationError as exc:
            raise self._corrupt(TASKS_FILE, f"invalid task record: {exc.error_count()} error(s)") from exc

        if backfilled:
            logger.info(
                "storage.backfilled_group_ids",
                extra={"collection": TASKS_FILE, "count": backfilled},
            )
            self.save_tasks(tasks)

        logger.debug("storage.loaded", extra={"collection": TASKS_FILE, "count": len(tasks)})
        return tasks

    def save_tasks(self, tasks: list[Task]) -> None:
        self._write_document(TASKS_FILE, [task.to_document() for task in tasks])

    # ---- groups ----

    def load_groups(self) -> list[Group]:
        document = self._read_document(
            GROUPS_FILE, lambda: [self._default_group().to_document()]
        )
        if not isinstance(document, list):
            raise self._corrupt(GROUPS_FILE, "expected a JSON array")

        try:
            groups = [Group.model_validate(item) for item in document]
        except ValidationError as exc:
            raise self._corrupt(GROUPS_FILE, f"invalid group record: {exc.error_count()} error(s)") from exc

        if not any(group.id == DEFAULT_GROUP_ID for group in groups):
            groups.insert(0, self._default_group())
            logger.info("storage.default_group_restored", extra={"collection": GROUPS_FILE})
            self.save_groups(groups)

        return groups

    def save_groups(self, groups: list[Group]) -> None:
        self._write_document(GROUPS_FILE, [group.to_document() for group in groups])

    # ---- likes ----

    def load_likes(self) -> LikesMap:
        document = self._read_document(LIKES_FILE, dict)
        if not isinstance(document, dict):
            raise self._corrupt(LIKES_FILE, "expected a JSON object")

        likes: LikesMap = {}
        for task_id, ips in document.items():
            if not isinstance(ips, list) or not all(isinstance(ip, str) for ip in ips):
                raise self._corrupt(LIKES_FILE, "like sets must be arrays of strings")
            # dict.fromkeys keeps first-seen order while dropping repeats
            likes[task_id] = list(dict.fromkeys(ips))
        return likes

    def save_likes(self, likes: LikesMap) -> None:
        self._write_document(LIKES_FILE, likes)

    def remove_likes_for_task(self, task_id: str) -> bool:
        likes = self.load_likes()
        if task_id not in likes:
            return False
        del likes[task_id]
        self.save_likes(likes)
        logger.info("storage.likes_removed", extra={"collection": LIKES_FILE, "task_id": task_id})
        return True

    # ---- stats ----

    def load_stats(self) -> Stats:
        document = self._read_document(STATS_FILE, lambda: Stats().to_document())
        if not isinstance(document, dict):
            raise self._corrupt(STATS_FILE, "expected a JSON object")
        try:
            return Stats.model_validate(document)
        except ValidationError as exc:
            raise self._corrupt(STATS_FILE, f"invalid stats record: {exc.error_count()} error(s)") from exc

    def save_stats(self, stats: Stats) -> None:
        self._write_document(STATS_FILE, stats.to_document())
