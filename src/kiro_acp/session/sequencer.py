"""Ordered, failure-tolerant delivery of session updates."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from kiro_acp.logging import get_logger

log = get_logger("session")


class UpdateSequencer:
    """Serializes outgoing updates for one turn.

    Each ``send()`` is delivered only after every earlier update has been
    attempted, however long that takes. A failed delivery is logged and
    dropped; it never reaches the caller and never stops later updates.

    After ``cancel()`` nothing new is accepted, but updates already queued
    still drain. ``drain()`` waits for the current tail of the queue.
    """

    def __init__(self, deliver: Callable[[Any], Awaitable[Any]]) -> None:
        self._deliver = deliver
        self._tail: asyncio.Task[None] | None = None
        self.cancelled = False
        self.sent_any = False
        self.failures = 0

    def send(self, update: Any) -> asyncio.Task[None] | None:
        """Queue ``update``. Returns the delivery task, or None if dropped."""
        if self.cancelled:
            return None
        self.sent_any = True
        self._tail = asyncio.ensure_future(self._run(self._tail, update))
        return self._tail

    def cancel(self) -> None:
        """Stop accepting updates. Idempotent."""
        self.cancelled = True

    async def drain(self) -> None:
        """Wait until everything queued so far has been attempted."""
        tail = self._tail
        if tail is not None:
            await tail

    async def _run(self, previous: asyncio.Task[None] | None, update: Any) -> None:
        if previous is not None:
            await previous
        try:
            await self._deliver(update)
        except Exception as e:
            self.failures += 1
            log.debug("Dropping session update after delivery failure: %s", e)
