"""
API availability gate.

Decides whether the API may be called right now. Offline mode is
authoritative; otherwise a lightweight probe is issued at most once per
throttle interval. Failed probes offer to switch to offline mode so later
calls stop re-probing.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from hubgate.debug import DebugSettings
from hubgate.exceptions import HubGateError
from hubgate.logging import get_logger, log_probe
from hubgate.offline import OfflineModeState
from hubgate.timeouts import DeadlineExceeded, run_with_deadline

_logger = get_logger("http")

DEFAULT_THROTTLE_INTERVAL = 10.0
DEFAULT_API_TIMEOUT = 1.0


class ProbeStatus(Enum):
    AVAILABLE = "available"
    TIMED_OUT = "timed-out"
    ERRORED = "errored"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single probe."""

    status: ProbeStatus
    cause: str | None = None

    @property
    def available(self) -> bool:
        return self.status is ProbeStatus.AVAILABLE

    def reason(self, timeout: float) -> str:
        """Human-readable explanation of a failed probe."""
        if self.status is ProbeStatus.TIMED_OUT:
            return f"the API did not respond within {timeout:g}s"
        if self.status is ProbeStatus.ERRORED:
            return f"the API request failed ({self.cause})"
        return "the API is available"


@dataclass
class AvailabilityRecord:
    """Time of the last successful probe, on the gate's clock."""

    last_success: float | None = None

    def is_fresh(self, now: float, interval: float) -> bool:
        return self.last_success is not None and now - self.last_success < interval


def decline(message: str) -> bool:
    """Default confirm callback: never switch to offline mode."""
    return False


class AvailabilityGate:
    """
    Throttled availability check in front of the API.

    Args:
        probe: Callable taking a timeout in seconds; any return value means
            success, exceptions mean failure
        offline_state: Shared offline mode
        throttle_interval: Minimum seconds between probes after a success
        api_timeout: Hard deadline for one probe
        confirm: Asked whether to go offline after a failed probe
        clock: Monotonic time source
        debug: Debug settings; probe lines are logged while enabled

    Example:
        ```python
        gate = AvailabilityGate(ServiceMetadataProbe(transport), OfflineModeState())
        if gate.is_available():
            ...
        ```
    """

    def __init__(
        self,
        probe: Callable[[float], Any],
        offline_state: OfflineModeState,
        throttle_interval: float = DEFAULT_THROTTLE_INTERVAL,
        api_timeout: float = DEFAULT_API_TIMEOUT,
        confirm: Callable[[str], bool] = decline,
        clock: Callable[[], float] = time.monotonic,
        debug: DebugSettings | None = None,
    ) -> None:
        self.probe = probe
        self.offline_state = offline_state
        self.throttle_interval = throttle_interval
        self.api_timeout = api_timeout
        self.confirm = confirm
        self.clock = clock
        self.debug = debug or DebugSettings()
        self.record = AvailabilityRecord()
        self.last_outcome: ProbeOutcome | None = None
        self._lock = threading.Lock()

    def is_available(self, ignore_offline_override: bool = False) -> bool:
        """
        Return True if the API can be used now.

        Args:
            ignore_offline_override: Probe even when offline mode is active

        Returns:
            True if the API is reachable (or was within the throttle interval)
        """
        if not ignore_offline_override and self.offline_state.is_offline():
            return False

        with self._lock:
            if self.record.is_fresh(self.clock(), self.throttle_interval):
                return True

            outcome = self.probe_once()
            if outcome.available:
                self.record.last_success = self.clock()
                return True

        self._offer_offline(outcome)
        return False

    def probe_once(self) -> ProbeOutcome:
        """Issue one probe and classify it; does not touch the record or mode."""
        started = time.monotonic()
        try:
            run_with_deadline(lambda: self.probe(self.api_timeout), self.api_timeout)
        except (DeadlineExceeded, httpx.TimeoutException):
            outcome = ProbeOutcome(ProbeStatus.TIMED_OUT)
        except (httpx.HTTPError, HubGateError, OSError, ValueError) as e:
            outcome = ProbeOutcome(ProbeStatus.ERRORED, f"{type(e).__name__}: {e}")
        else:
            outcome = ProbeOutcome(ProbeStatus.AVAILABLE)

        self.last_outcome = outcome
        if self.debug.enabled:
            log_probe(outcome, elapsed_ms=(time.monotonic() - started) * 1000)
        return outcome

    def reset(self) -> None:
        """Forget the last success so the next check probes again."""
        with self._lock:
            self.record.last_success = None

    def _offer_offline(self, outcome: ProbeOutcome) -> None:
        reason = outcome.reason(self.api_timeout)
        _logger.warning("API unavailable: %s", reason)
        if self.offline_state.is_offline():
            return
        if self.confirm(f"GitHub appears to be unavailable: {reason}. Go offline?"):
            self.offline_state.go_offline()
