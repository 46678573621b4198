"""Coalescing of value-change notifications."""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from protoform import log
from protoform.engine.path import MISSING


class Debouncer:
    """
    Delivers the latest scheduled value once `delay` seconds pass without a new one.

    Without an event loop the owner drives delivery by calling `poll()`; with
    an asyncio loop the delivery is scheduled with `call_later`.

    Args:
        callback: Receives the delivered value
        delay: Quiet period in seconds
        clock: Monotonic time source
        loop: Optional event loop to schedule delivery on
    """

    def __init__(
        self,
        callback: Callable[[Any], None],
        delay: float,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self.clock = clock
        self.loop = loop
        self._pending: Any = MISSING
        self._deadline: float | None = None
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not MISSING

    def schedule(self, value: Any) -> None:
        self._pending = value
        self._deadline = self.clock() + self.delay
        if self.loop is not None:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = self.loop.call_later(self.delay, self.flush)

    def poll(self) -> bool:
        """Deliver the pending value if its quiet period has elapsed."""
        if not self.pending or self._deadline is None or self.clock() < self._deadline:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Deliver the pending value now. Returns False if nothing was pending."""
        if not self.pending:
            return False
        value = self._pending
        self.cancel()
        self.callback(value)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = MISSING
        self._deadline = None


class ChangeNotifier:
    """
    Notifies the host of a new value: debounced for edits, immediate for structure.

    An immediate notification supersedes a pending debounced one, since it
    carries the newer value.
    """

    def __init__(
        self,
        on_change: Callable[[Any], None] | None,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.on_change = on_change
        self._debouncer = Debouncer(self._deliver, delay, clock=clock, loop=loop)

    def _deliver(self, value: Any) -> None:
        if self.on_change is not None:
            log.debug("Notifying value change")
            self.on_change(value)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def changed(self, value: Any) -> None:
        self._debouncer.schedule(value)

    def changed_now(self, value: Any) -> None:
        self._debouncer.cancel()
        self._deliver(value)

    def poll(self) -> bool:
        return self._debouncer.poll()

    def flush(self) -> bool:
        return self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
