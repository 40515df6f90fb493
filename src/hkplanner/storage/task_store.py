"""Task store interface and the in-memory implementation."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from hkplanner.domain.models import GeneratedTask, TaskStatus


class TaskStore(ABC):
    """Abstract persistence collaborator for generated tasks.

    Writes are idempotent: a task whose (room, task type, date) key already
    exists replaces the stored record instead of adding a second one.
    """

    @abstractmethod
    def upsert_many(self, tasks: list[GeneratedTask]) -> int:
        """Persist a batch of tasks atomically.

        Returns:
            Number of tasks written.

        Raises:
            PersistenceError: If the batch could not be written. Nothing from
                the batch is kept in that case.
        """
        pass

    @abstractmethod
    def all_tasks(self) -> list[GeneratedTask]:
        pass

    def tasks_for(
        self,
        status: Optional[TaskStatus] = None,
        from_date: Optional[date] = None,
    ) -> list[GeneratedTask]:
        """Stored tasks filtered by status and earliest scheduled date."""
        return [
            task
            for task in self.all_tasks()
            if (status is None or task.status == status)
            and (from_date is None or task.scheduled_date >= from_date)
        ]

    def count(self) -> int:
        return len(self.all_tasks())


class InMemoryTaskStore(TaskStore):
    """Task store backed by a dict keyed on the idempotency key."""

    def __init__(self):
        self._tasks: dict[tuple, GeneratedTask] = {}

    def upsert_many(self, tasks: list[GeneratedTask]) -> int:
        staged = dict(self._tasks)
        for task in tasks:
            staged[task.idempotency_key] = task
        self._tasks = staged
        return len(tasks)

    def all_tasks(self) -> list[GeneratedTask]:
        return sorted(
            self._tasks.values(),
            key=lambda t: (t.scheduled_date, t.scheduled_time, t.assigned_to, t.room_number),
        )
