"""
Cooperative cancellation token driven by interrupt signals.

States: RUNNING -> STOP_REQUESTED -> FORCE_ARMED.

The first interrupt requests a stop; loops poll `is_cancelled` at their
checkpoints. Further interrupts during the grace period are ignored. Once
the grace period has elapsed the token is armed, and the next interrupt
terminates the process immediately with exit code 130.
"""

import os
import time
import signal
import logging
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

logger = logging.getLogger(__name__)

FORCE_EXIT_CODE = 130


class CancellationState(str, Enum):
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"
    FORCE_ARMED = "force_armed"


class CancellationToken:
    """Stop flag plus two-stage force-exit timer."""

    def __init__(
        self,
        grace_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
        force_exit: Optional[Callable[[int], None]] = None
    ):
        self.grace_seconds = grace_seconds
        self._clock = clock
        self._force_exit = force_exit or os._exit
        self._state = CancellationState.RUNNING
        self._requested_at: Optional[float] = None
        self._previous_handlers: Dict[int, object] = {}

    @property
    def state(self) -> CancellationState:
        if (
            self._state == CancellationState.STOP_REQUESTED
            and self._clock() - self._requested_at >= self.grace_seconds
        ):
            self._state = CancellationState.FORCE_ARMED
        return self._state

    @property
    def is_cancelled(self) -> bool:
        return self.state != CancellationState.RUNNING

    def __call__(self) -> bool:
        # usable as a cancel_check callable
        return self.is_cancelled

    def request_stop(self, reason: str = "interrupt"):
        """Advance the state machine for one interrupt."""
        state = self.state
        if state == CancellationState.RUNNING:
            self._state = CancellationState.STOP_REQUESTED
            self._requested_at = self._clock()
            logger.warning(
                f"Received {reason}. Finishing the current operation, then stopping. "
                f"Interrupt again after {self.grace_seconds:g}s to force exit."
            )
        elif state == CancellationState.STOP_REQUESTED:
            logger.warning(f"Received {reason} while stopping; still finishing the current operation.")
        else:
            logger.error(f"Received {reason} again. Forcing exit.")
            self._force_exit(FORCE_EXIT_CODE)

    def handle_signal(self, signum, frame):
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = f"signal {signum}"
        self.request_stop(name)

    def install(self, signals: Sequence[int] = (signal.SIGINT, signal.SIGTERM)) -> "CancellationToken":
        """Route the given signals to this token. Must be called from the main thread."""
        for sig in signals:
            self._previous_handlers[sig] = signal.getsignal(sig)
            signal.signal(sig, self.handle_signal)
        return self

    def uninstall(self):
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()
