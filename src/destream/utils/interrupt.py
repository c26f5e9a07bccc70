"""
SIGINT cleanup registration scoped to a block of code.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def on_interrupt(cleanup: Callable[[], None]) -> Iterator[None]:
    """Run ``cleanup`` if SIGINT arrives while the block is active.

    After cleanup the previous handler runs, so the interrupt still
    terminates the program (``KeyboardInterrupt`` with the default Python
    handler). The previous handler is restored when the block exits, which
    keeps exactly one cleanup registered per active block.

    Signal handlers can only be installed from the main thread; elsewhere
    the block runs without one and callers rely on their own cleanup.
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on the main thread, interrupt cleanup not registered")
        yield
        return

    previous = signal.getsignal(signal.SIGINT)
    if previous is None:
        # Installed outside Python; restore the default on exit
        previous = signal.SIG_DFL

    def _handler(signum, frame):
        logger.debug("Interrupt received, cleaning up")
        cleanup()
        if callable(previous):
            previous(signum, frame)
        elif previous != signal.SIG_IGN:
            raise KeyboardInterrupt

    signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)
