"""Cancellable success-pulse timers on the running event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable


class PulseTimers:
    """Keyed call_later handles.

    Scheduling a key that is already pending cancels the earlier
    handle. close() cancels everything so no callback fires after the
    owning view is gone.
    """

    def __init__(self):
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}

    def schedule(
        self, key: Hashable, delay: float, callback: Callable[[], None]
    ) -> None:
        self.cancel(key)
        loop = asyncio.get_running_loop()

        def fire():
            self._handles.pop(key, None)
            callback()

        self._handles[key] = loop.call_later(delay, fire)

    def cancel(self, key: Hashable) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def active(self, key: Hashable) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def close(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
