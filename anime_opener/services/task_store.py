from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from anime_opener.models.task import GenerationTask

log = logging.getLogger(__name__)


@runtime_checkable
class TaskStore(Protocol):
    """Interface for task registries.

    The orchestrator and the status service only depend on get/set/delete,
    so a persistent backend can replace the in-memory one without touching
    call sites.
    """

    def get(self, task_id: str) -> GenerationTask | None: ...

    def set(self, task: GenerationTask) -> None: ...

    def delete(self, task_id: str) -> None: ...


class InMemoryTaskStore:
    """Process-local store. Tasks live until deleted or the process exits."""

    def __init__(self):
        self.tasks: dict[str, GenerationTask] = {}

    def get(self, task_id: str) -> GenerationTask | None:
        return self.tasks.get(task_id)

    def set(self, task: GenerationTask) -> None:
        self.tasks[task.id] = task
        log.info(f"Stored task {task.id} ({task.status.value})")

    def delete(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)

    def __len__(self) -> int:
        return len(self.tasks)
