"""Process-local per-workspace gates.

Uploads enter a workspace's gate in shared mode, so files of one batch
proceed concurrently; rename and delete enter it exclusively and wait for
in-flight uploads to finish. Only effective within a single server process.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class WorkspaceGate:
    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class WorkspaceLocks:
    """Gates keyed by workspace id, kept only while someone holds or awaits one."""

    def __init__(self):
        self._gates: dict[str, WorkspaceGate] = {}
        self._holders: Counter[str] = Counter()

    def shared(self, workspace_id: str):
        return self._enter(workspace_id, exclusive=False)

    def exclusive(self, workspace_id: str):
        return self._enter(workspace_id, exclusive=True)

    @asynccontextmanager
    async def _enter(self, workspace_id: str, exclusive: bool) -> AsyncIterator[None]:
        gate = self._gates.get(workspace_id)
        if gate is None:
            gate = self._gates[workspace_id] = WorkspaceGate()
        self._holders[workspace_id] += 1
        try:
            async with gate.exclusive() if exclusive else gate.shared():
                yield
        finally:
            self._holders[workspace_id] -= 1
            if not self._holders[workspace_id]:
                del self._holders[workspace_id]
                del self._gates[workspace_id]
