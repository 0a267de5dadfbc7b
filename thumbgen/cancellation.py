"""
CancellationToken - Cooperative stop signal shared by a run.
"""

import logging
import signal
import threading
from typing import Callable, Optional


class CancellationToken:
    """
    Stop signal passed explicitly to everything that can start work.

    Cancellation is cooperative: holders check the token before starting
    new work and never interrupt work already in progress.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = 'cancelled') -> None:
        """Signal cancellation. Later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def install_signal_handlers(
    token: CancellationToken,
    logger: Optional[logging.Logger] = None
) -> Callable[[], None]:
    """
    Cancel the token on SIGINT or SIGTERM.

    Must be called from the main thread. After the first SIGINT the default
    handler is restored, so a second Ctrl-C interrupts immediately.

    Returns:
        Function that restores the previous handlers
    """
    logger = logger or logging.getLogger(__name__)

    def handler(signum, frame):
        name = signal.Signals(signum).name
        if not token.is_cancelled:
            logger.warning(f"Received {name}, finishing in-flight conversions before exiting")
        token.cancel(name)
        if signum == signal.SIGINT:
            signal.signal(signal.SIGINT, signal.default_int_handler)

    previous = {
        signal.SIGINT: signal.signal(signal.SIGINT, handler),
        signal.SIGTERM: signal.signal(signal.SIGTERM, handler),
    }

    def restore() -> None:
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler)

    return restore
