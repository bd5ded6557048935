"""Compensation stack for multi-step workflows.

Each step that leaves a side effect pushes an undo action. On failure the
actions run newest first; an undo that itself fails is logged and the rest
still run.
"""

import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

UndoAction = Callable[[], Awaitable[object]]


class CompensationStack:
    def __init__(self, label: str = ""):
        self.label = label
        self._actions: list[tuple[str, UndoAction]] = []

    def push(self, description: str, action: UndoAction) -> None:
        self._actions.append((description, action))

    def clear(self) -> None:
        """Forget every pending undo (the workflow completed)."""
        self._actions.clear()

    def __len__(self) -> int:
        return len(self._actions)

    async def unwind(self) -> list[str]:
        """Run pending undo actions in reverse order.

        Returns the descriptions of actions that failed.
        """
        failed: list[str] = []
        while self._actions:
            description, action = self._actions.pop()
            try:
                await action()
            except Exception as exc:
                logger.error("Compensation '%s' failed for %s: %s", description, self.label, exc)
                failed.append(description)
            else:
                logger.info("Compensated '%s' for %s", description, self.label)
        return failed
