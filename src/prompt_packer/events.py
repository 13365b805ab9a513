"""Observer registration and debounced delivery for selection notifications."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


class SimpleEmitter:
    """Lightweight event emitter.

    Components emit named events; listeners subscribe with `on`. Handlers run
    synchronously in subscription order.

    Example:
        >>> emitter = SimpleEmitter()
        >>> emitter.on("changed", lambda *args: print(args))
        >>> emitter.emit("changed", 1, 2)
        (1, 2)
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., None]]] = {}

    def on(self, event: str, handler: Callable[..., None]) -> Callable[[], None]:
        """Subscribe to an event.

        Args:
            event: Event name to listen for.
            handler: Callable invoked with the emitted arguments.

        Returns:
            A function that removes the subscription when called.
        """
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: str, *args: Any) -> None:  # noqa: ANN401
        """Call every handler registered for `event` with `args`."""
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def has_listeners(self, event: str) -> bool:
        return bool(self._handlers.get(event))


class Debouncer:
    """Coalesce bursts of calls into one delayed call.

    Each `schedule` cancels the pending call and starts a new one, so the
    wrapped function runs once, `delay` seconds after the last call of a burst.
    `deliver` reads the state it reports when it runs, so listeners always get
    the latest state. A delay of zero delivers synchronously.

    When `schedule` is called from a running asyncio event loop, the delayed
    call is placed on that loop with `call_later` and runs on the loop's
    thread. Without a running loop a `threading.Timer` is used instead, and
    `deliver` then runs on the timer thread: listeners that touch state owned
    by the caller must hand the work back to the caller's thread.
    """

    def __init__(self, delay: float, deliver: Callable[[], None]) -> None:
        self.delay = delay
        self._deliver = deliver
        self._lock = threading.Lock()
        self._handle: threading.Timer | asyncio.TimerHandle | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def schedule(self) -> None:
        """Restart the debounce window."""
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            self._generation += 1
            if self.delay <= 0:
                run_now = True
            elif loop is not None:
                self._handle = loop.call_later(self.delay, self._fire, self._generation)
                run_now = False
            else:
                timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
                timer.daemon = True
                self._handle = timer
                timer.start()
                run_now = False
        if run_now:
            self._deliver()

    def flush(self) -> None:
        """Deliver a pending call immediately, if there is one."""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
            self._deliver()

    def cancel(self) -> None:
        """Drop a pending call without delivering it."""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._handle is None or generation != self._generation:
                return
            self._handle = None
        self._deliver()
