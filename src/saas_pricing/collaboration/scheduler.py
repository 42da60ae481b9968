"""
Timer scheduling for debounced typing indicators.

Any object with call_later(delay, callback, *args) returning a handle with
cancel() works as a scheduler; an asyncio event loop qualifies as-is.
"""
import threading
from typing import Any, Callable


class ThreadTimerScheduler:
    """Scheduler backed by daemon threading.Timer instances."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> threading.Timer:
        timer = threading.Timer(delay, callback, args=args)
        timer.daemon = True
        timer.start()
        return timer
