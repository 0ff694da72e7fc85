"""
Utility functions for CLI graceful handling.

Ctrl-C and SIGTERM cancel the running stream instead of killing the process
mid-read, so the connection is always released.
"""

from __future__ import annotations

from collections.abc import Callable
import signal
import sys
from typing import Any

from .._streaming import CancelToken

CANCELLED_EXIT = 130  # POSIX: 128 + SIGINT (2)


def _print_cancelled(msg: str = "✖ Cancelled by user") -> None:
    """Print cancellation message to stderr."""
    sys.stderr.write("\n" + msg + "\n")
    sys.stderr.flush()


def graceful_main(fn: Callable[[list[str], CancelToken], int], argv: list[str]) -> int:
    """
    Run fn(argv, cancel) and handle Ctrl-C/SIGTERM nicely.

    Args:
        fn: Function to run that takes argv and a CancelToken and returns exit code
        argv: Command line arguments

    Returns:
        Exit code (130 for cancelled, or fn's return value)
    """
    cancel = CancelToken()

    # Handle SIGTERM like Ctrl-C
    def _term(_signum: int, _frame: Any) -> None:
        raise KeyboardInterrupt()

    old_term = signal.getsignal(signal.SIGTERM)
    signal.signal(signal.SIGTERM, _term)

    try:
        code = int(fn(argv, cancel) or 0)
    except KeyboardInterrupt:
        cancel.cancel()
        _print_cancelled()
        return CANCELLED_EXIT
    finally:
        signal.signal(signal.SIGTERM, old_term)

    if cancel.cancelled:
        _print_cancelled()
        return CANCELLED_EXIT
    return code
