"""Persistence collaborators for generated tasks."""

from hkplanner.storage.sql_store import SqlTaskStore, TaskRecord
from hkplanner.storage.task_store import InMemoryTaskStore, TaskStore

__all__ = [
    "TaskStore",
    "InMemoryTaskStore",
    "SqlTaskStore",
    "TaskRecord",
]
