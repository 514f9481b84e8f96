"""Record store interface.

Every operation works on a whole collection: callers load, mutate a copy and
save the full collection back. Implementations raise
``StorageUnavailableError`` / ``StorageCorruptError`` and never return
partially written state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from taskboard.schemas.records import Group, LikesMap, Stats, Task


class AbstractRecordStore(ABC):
    """Interface for task/group/like/stat persistence."""

    @abstractmethod
    def load_tasks(self) -> list[Task]:
        """Return every stored task, soft-deleted ones included.

        Tasks lacking a group reference are assigned the default group and the
        backfilled collection is persisted before returning.
        """

    @abstractmethod
    def save_tasks(self, tasks: list[Task]) -> None:
        """Overwrite the task collection."""

    @abstractmethod
    def load_groups(self) -> list[Group]:
        """Return every group; the default group is always present."""

    @abstractmethod
    def save_groups(self, groups: list[Group]) -> None:
        """Overwrite the group collection."""

    @abstractmethod
    def load_likes(self) -> LikesMap:
        """Return the task id -> liking client IPs mapping."""

    @abstractmethod
    def save_likes(self, likes: LikesMap) -> None:
        """Overwrite the like mapping."""

    @abstractmethod
    def remove_likes_for_task(self, task_id: str) -> bool:
        """Drop the like set of a task. Returns True if one existed."""

    @abstractmethod
    def load_stats(self) -> Stats:
        """Return visit counters, zeroed on first use."""

    @abstractmethod
    def save_stats(self, stats: Stats) -> None:
        """Overwrite visit counters."""

    def increment_stats(self, is_new_visitor: bool) -> Stats:
        """Count one page view, and one unique visitor when flagged.

        Returns:
            The counters as persisted.
        """
        stats = self.load_stats()
        stats.pv += 1
        if is_new_visitor:
            stats.uv += 1
        self.save_stats(stats)
        return stats
