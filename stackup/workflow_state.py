"""Tracking of the currently running task."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

CleanupCallback = Callable[[], None]


@dataclass
class WorkflowState:
    """The active task, the tasks it interrupted, and the uuids of all tasks run."""

    current_task: Any = None
    stack: list = field(default_factory=list)
    history: list = field(default_factory=list)

    def set_current(self, task) -> CleanupCallback:
        """Make `task` current, saving the previous one; return a callback restoring it."""
        if self.current_task is not None:
            self.stack.append(self.current_task)

        self.current_task = task

        if task is None:
            return lambda: None

        self.history.append(task.uuid)

        def cleanup() -> None:
            self.current_task = self.stack.pop() if self.stack else None

        return cleanup