"""
Hard wall-clock deadlines for blocking calls.

The wrapped call runs on a daemon thread; when the deadline passes the caller
stops waiting and gets :class:`DeadlineExceeded`. The underlying call is not
cancelled and may still complete in the background.
"""

import threading
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")


class DeadlineExceeded(TimeoutError):
    """Raised when a call does not finish before its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"call did not finish within {timeout:g}s")
        self.timeout = timeout


def run_with_deadline(fn: Callable[[], T], timeout: float) -> T:
    """
    Run ``fn`` and wait at most ``timeout`` seconds for it.

    Args:
        fn: Zero-argument callable
        timeout: Deadline in seconds

    Returns:
        Whatever ``fn`` returned

    Raises:
        DeadlineExceeded: If ``fn`` is still running at the deadline
        Exception: Anything ``fn`` raised
    """
    outcome: dict[str, Any] = {}
    done = threading.Event()

    def target() -> None:
        try:
            outcome["value"] = fn()
        except BaseException as e:  # re-raised on the calling thread
            outcome["error"] = e
        finally:
            done.set()

    worker = threading.Thread(target=target, name="hubgate-deadline", daemon=True)
    worker.start()

    if not done.wait(timeout):
        raise DeadlineExceeded(timeout)

    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]
