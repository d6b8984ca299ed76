"""Synchronous event emitter used by pipeline runs and the API client."""
from collections import defaultdict
from typing import Callable, DefaultDict, List, Optional

from ...logging import get_logger


class EventEmitter:
    """
    Observer with string-keyed events.

    Handlers run synchronously in registration order, on the caller's
    thread. Exceptions raised by a handler propagate to ``emit``.
    """

    def __init__(self, logger_name: str = "romup.events"):
        self._handlers: DefaultDict[str, List[Callable]] = defaultdict(list)
        self._logger = get_logger(logger_name)

    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers a handler; returns self for chaining."""
        self._handlers[event].append(callback)
        return self

    def once(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers a handler that is removed after its first call."""
        def wrapper(*args, **kwargs):
            self.off(event, wrapper)
            callback(*args, **kwargs)
        return self.on(event, wrapper)

    def emit(self, event: str, *args, **kwargs) -> int:
        """Calls every handler of ``event``. Returns how many were called."""
        # Handlers may register or remove handlers while running
        handlers = list(self._handlers.get(event, ()))
        for callback in handlers:
            callback(*args, **kwargs)
        if handlers:
            self._logger.debug(f"Emitted '{event}' to {len(handlers)} handler(s)")
        return len(handlers)

    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Removes one handler, or all handlers of ``event`` when none is given."""
        if callback is None:
            self._handlers.pop(event, None)
        elif event in self._handlers:
            remaining = [cb for cb in self._handlers[event] if cb != callback]
            if remaining:
                self._handlers[event] = remaining
            else:
                del self._handlers[event]
        return self

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))
