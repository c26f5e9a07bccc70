"""
Logging utilities.
"""

import logging
import sys
import time

logger = logging.getLogger("destream")


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the CLI.

    Args:
        verbose: Enable debug output
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )
    # urllib3 and the asyncio loop under Playwright are chatty at debug level
    for noisy in ("urllib3", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def log_timed(msg: str, start_time: float | None = None) -> None:
    """Log timestamped message.

    Args:
        msg: Message to log
        start_time: Start time from time.time(), or None for [START]
    """
    elapsed = f"[{time.time() - start_time:.1f}s]" if start_time else "[START]"
    logger.info(f"{elapsed} {msg}")
