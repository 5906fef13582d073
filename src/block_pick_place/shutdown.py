"""
Process-wide cancellation signal.

The orchestrator polls `is_set()` at the top of every loop and before every
suspension point; the retry delay waits on the same event so a shutdown
interrupts it immediately. A blocking operator prompt is wrapped in
`interruptible()` so a signal ends the read instead of being deferred.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional

from .errors import ShutdownRequested
from .utils.logging_utils import get_structured_logger


class ShutdownSignal:
    """Thin wrapper around threading.Event with signal-handler installation."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._event = threading.Event()
        self._interrupt_blocking = False
        self.reason: Optional[str] = None
        self.logger = logger or get_structured_logger("ShutdownSignal")

    def request(self, reason: str = "shutdown requested") -> None:
        if not self._event.is_set():
            self.reason = reason
            self.logger.warning("Shutdown requested: %s", reason)
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; returns True if shutdown was requested."""
        return self._event.wait(timeout)

    @contextmanager
    def interruptible(self) -> Iterator[None]:
        """
        Let an installed signal handler abort the blocking call in this block.

        Python resumes a read interrupted by a handled signal, so inside this
        block the handler raises ShutdownRequested instead of returning.

        Raises:
            ShutdownRequested: on entry if shutdown was already requested, or
                from the signal handler while the block runs
        """
        if self.is_set():
            raise ShutdownRequested(self.reason or "shutdown requested")
        self._interrupt_blocking = True
        try:
            yield
        finally:
            self._interrupt_blocking = False

    def install_signal_handlers(self, signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM)) -> Dict[int, Any]:
        """
        Route the given OS signals to `request`. Main thread only.

        Returns:
            Previous handlers, for `restore_signal_handlers`
        """
        previous = {}
        for signum in signals:
            previous[signum] = signal.signal(signum, self._handle_signal)
        return previous

    @staticmethod
    def restore_signal_handlers(previous: Dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def _handle_signal(self, signum, frame) -> None:
        del frame
        self.request(f"received {signal.Signals(signum).name}")
        if self._interrupt_blocking:
            raise ShutdownRequested(self.reason)
