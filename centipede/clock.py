"""Game clock thread and the rendezvous signal it drives."""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ClockAlreadyRunningError(RuntimeError):
    """Raised when a second game clock is started for the same game"""


class ClockState(Enum):
    STOPPED = 0
    RUNNING = 1


class Signal:
    """Wait/notify rendezvous between the game clock and its listeners.

    Every notify bumps a generation counter and wakes all current waiters.
    A notify that arrives while nobody is waiting is dropped, so a slow tick
    loses clock beats instead of replaying them later. The counter is a
    Python int and never overflows.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def notify(self) -> None:
        with self._condition:
            self._generation += 1
            self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the next notify. Returns False if the timeout ran out."""
        with self._condition:
            generation = self._generation
            return self._condition.wait_for(lambda: self._generation != generation, timeout)


class GameClock:
    """Background thread that notifies a Signal once per game tick.

    The thread keeps ticking while the alive predicate holds and stop() has
    not been requested. join() must be called to reclaim it.
    """

    def __init__(self, tick_seconds: float, alive: Callable[[], bool], signal: Optional[Signal] = None):
        self.tick_seconds = tick_seconds
        self.signal = signal if signal is not None else Signal()
        self._alive = alive
        self._state = ClockState.STOPPED
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ClockState:
        return self._state

    def start(self) -> Signal:
        with self._state_lock:
            if self._state == ClockState.RUNNING:
                raise ClockAlreadyRunningError("Game clock already running.")
            self._state = ClockState.RUNNING
            self._stop_requested.clear()
            self._thread = threading.Thread(target=self._run, name="game-clock", daemon=True)
            self._thread.start()
        logger.debug("Game clock started with %.3fs ticks", self.tick_seconds)
        return self.signal

    def _run(self) -> None:
        while self._alive() and not self._stop_requested.is_set():
            # Sleep one tick, but wake early if stop() is called
            if self._stop_requested.wait(self.tick_seconds):
                break
            self.signal.notify()

    def stop(self) -> None:
        """Ask the clock to exit without waiting for the alive predicate"""
        self._stop_requested.set()

    def join(self) -> None:
        """Wait for the clock thread to finish and mark the clock stopped"""
        with self._state_lock:
            thread = self._thread
        if thread is not None:
            thread.join()
        with self._state_lock:
            self._thread = None
            self._state = ClockState.STOPPED
        logger.debug("Game clock stopped")
