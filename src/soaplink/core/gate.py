"""
CallGate — coordinates calls (shared) with description reloads (exclusive).
An exclusive holder starts only once all shared holders are gone; while it runs
or waits, no new shared holder is admitted.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class CallGate:
    """Reader/writer gate on one asyncio.Condition. Writers are preferred so reloads cannot starve."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._active = 0
        self._exclusive = False
        self._waiting_exclusive = 0

    @property
    def active(self) -> int:
        """Number of in-flight calls."""
        return self._active

    @property
    def exclusive_held(self) -> bool:
        return self._exclusive

    def _can_share(self) -> bool:
        return not self._exclusive and self._waiting_exclusive == 0

    def _can_own(self) -> bool:
        return not self._exclusive and self._active == 0

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(self._can_share)
            self._active += 1
        try:
            yield
        finally:
            async with self._cond:
                self._active -= 1
                if self._active == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_exclusive += 1
            try:
                await self._cond.wait_for(self._can_own)
            finally:
                self._waiting_exclusive -= 1
                # Calls queued behind a cancelled waiter must be re-checked.
                self._cond.notify_all()
            self._exclusive = True
        try:
            yield
        finally:
            async with self._cond:
                self._exclusive = False
                self._cond.notify_all()
