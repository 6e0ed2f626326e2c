"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off task closures as coverage expands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ScriptedTask:
    """Zero-argument async task that replays a scripted sequence of outcomes.

    Each call pops the next item: exceptions are raised, anything else is
    returned. Once the script is exhausted, ``default`` is returned. Every
    invocation is counted so tests can assert the exact number of attempts.
    """

    script: list[Any] = field(default_factory=list)
    default: Any = "ok"
    delay_s: float = 0.0
    calls: int = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if not self.script:
            return self.default
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@dataclass
class GateTask:
    """Async task that blocks until released, recording cancellation.

    Useful for timeout tests: the attempt stays in flight until ``release()``
    is called, so tests control exactly when (or whether) it settles.
    """

    result: Any = "late"
    calls: int = 0
    cancelled: bool = False
    finished: bool = False
    _gate: asyncio.Event | None = None

    def release(self) -> None:
        if self._gate is None:
            self._gate = asyncio.Event()
        self._gate.set()

    async def __call__(self) -> Any:
        self.calls += 1
        if self._gate is None:
            self._gate = asyncio.Event()
        try:
            await self._gate.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        return self.result
