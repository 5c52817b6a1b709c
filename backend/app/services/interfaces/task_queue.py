"""
Task queue interface.
The web process and the background worker only meet through this boundary.
"""

from abc import ABC, abstractmethod
from typing import Any


class TaskQueue(ABC):
    """
    Interface for handing work to the background worker.

    Implementations:
    - ArqTaskQueue: Redis-backed arq queue (production)
    - InMemoryTaskQueue: records tasks in a list (tests, local runs)
    """

    @abstractmethod
    async def enqueue(self, task_name: str, payload: dict[str, Any]) -> None:
        """
        Enqueue a one-shot task.

        Args:
            task_name: Name of the worker function to run
            payload: Keyword arguments for the task; must be serializable
        """
        pass


class InMemoryTaskQueue(TaskQueue):
    """Keeps enqueued tasks in order instead of sending them anywhere."""

    def __init__(self):
        self.tasks: list[tuple[str, dict[str, Any]]] = []

    async def enqueue(self, task_name: str, payload: dict[str, Any]) -> None:
        self.tasks.append((task_name, payload))
