"""The ledger store: sole owner of the mutable ledger state.

The store applies intents through the pure ``reduce`` function, notifies
subscribers, and owns the timer that clears a visible error after
``ERROR_CLEAR_DELAY`` seconds. It never talks to the network.
"""

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from tally.domain.ledger import ClearError, FetchError, Intent, reduce
from tally.domain.models import LedgerState
from tally.domain.results import Err, ErrorKind, Ok, Result
from tally.logging_setup import get_logger

logger = get_logger(__name__)

ERROR_CLEAR_DELAY = 5.0

Listener = Callable[[LedgerState], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the returned handle cancels it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class LedgerStore:
    """Holds the ledger state and applies intents to it.

    Create one per application and pass it to whatever needs it; call
    ``close()`` at shutdown to cancel a pending error timer.
    """

    def __init__(
        self,
        initial: LedgerState | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = datetime.now,
        error_clear_delay: float = ERROR_CLEAR_DELAY,
    ) -> None:
        self._state = initial if initial is not None else LedgerState()
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._clock = clock
        self._error_clear_delay = error_clear_delay
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._clear_timer: TimerHandle | None = None
        # Bumped whenever the error changes; a timer only clears its own generation
        self._error_generation = 0

    @property
    def state(self) -> LedgerState:
        """Current state snapshot."""
        with self._lock:
            return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            Function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, intent: Intent) -> Result:
        """Apply an intent.

        Args:
            intent: Intent to apply.

        Returns:
            Ok with the new state, or Err(VALIDATION_FAILURE) if the intent
            was rejected (the state is then unchanged).
        """
        with self._lock:
            result = self._apply(intent)
        if isinstance(result, Ok):
            self._notify(result.value)
        return result

    def clear_error(self) -> None:
        """Dismiss the visible error now."""
        self.dispatch(ClearError())

    def close(self) -> None:
        """Cancel the pending error timer."""
        with self._lock:
            self._cancel_timer()

    def _track_error(self, previous: LedgerState, new_state: LedgerState, intent: Intent) -> None:
        if isinstance(intent, FetchError):
            # A new error supersedes the old one and restarts the countdown
            self._error_generation += 1
            self._cancel_timer()
            generation = self._error_generation
            self._clear_timer = self._scheduler.call_later(
                self._error_clear_delay, lambda: self._expire_error(generation)
            )
        elif new_state.error is None and previous.error is not None:
            self._error_generation += 1
            self._cancel_timer()

    def _apply(self, intent: Intent) -> Result:
        previous = self._state
        new_state, error = reduce(previous, intent, self._clock())
        if error:
            logger.info("Rejected %s: %s", type(intent).__name__, error)
            return Err(ErrorKind.VALIDATION_FAILURE, error)

        self._state = new_state
        self._track_error(previous, new_state, intent)
        return Ok(new_state)

    def _notify(self, state: LedgerState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(state)

    def _expire_error(self, generation: int) -> None:
        # Listeners run after the lock is released
        with self._lock:
            if generation != self._error_generation:
                logger.debug("Ignoring stale error timer (generation %d)", generation)
                return
            self._clear_timer = None
            result = self._apply(ClearError())
        if isinstance(result, Ok):
            self._notify(result.value)

    def _cancel_timer(self) -> None:
        if self._clear_timer is not None:
            self._clear_timer.cancel()
            self._clear_timer = None
