"""
Optional features.

Each feature is enabled, disabled or left unset. Unset features fall back to
the ``"all"`` entry, and to disabled when that is unset too.
"""

import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from hubgate.logging import get_logger

_logger = get_logger()

ALL_FEATURES = "all"

KNOWN_FEATURES = (
    "pull-request-merge",
    "pull-request-checkout",
    "commit-browse",
    "issue-create",
)

DEFAULT_IDLE_DELAY = 1.0


class FeatureState(Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNSET = "unset"


class CancellableTimer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


def log_unconfigured(features: list[str]) -> None:
    """Default notifier."""
    _logger.info(
        "Features not configured: %s (enable or disable them with HUBGATE_FEATURES)",
        ", ".join(features),
    )


class FeatureRegistry:
    """
    Feature switches plus a one-shot nudge about unconfigured features.

    Example:
        ```python
        features = FeatureRegistry.from_spec("all,-commit-browse")
        features.check("pull-request-merge")  # True
        features.check("commit-browse")  # False
        ```
    """

    def __init__(
        self,
        states: dict[str, FeatureState] | None = None,
        notifier: Callable[[list[str]], None] = log_unconfigured,
        idle_delay: float = DEFAULT_IDLE_DELAY,
        timer_factory: Callable[[float, Callable[[], None]], CancellableTimer] = threading.Timer,
    ) -> None:
        self._states: dict[str, FeatureState] = dict(states or {})
        self.notifier = notifier
        self.idle_delay = idle_delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._acknowledged: set[str] = set()
        self._timer: CancellableTimer | None = None

    @classmethod
    def from_spec(cls, spec: str | None, **kwargs: Any) -> "FeatureRegistry":
        """
        Build a registry from a comma-separated list.

        ``name`` enables a feature, ``-name`` disables it, and ``all`` /
        ``-all`` set the fallback for everything left unset.
        """
        states: dict[str, FeatureState] = {}
        for item in (spec or "").split(","):
            item = item.strip()
            if not item:
                continue
            if item.startswith("-"):
                states[item[1:].strip()] = FeatureState.DISABLED
            else:
                states[item] = FeatureState.ENABLED
        return cls(states, **kwargs)

    def set(self, feature: str, state: FeatureState | bool | None) -> None:
        """Set ``feature``; ``True``/``False``/``None`` map to enabled/disabled/unset."""
        if state is None:
            state = FeatureState.UNSET
        elif isinstance(state, bool):
            state = FeatureState.ENABLED if state else FeatureState.DISABLED
        with self._lock:
            if state is FeatureState.UNSET:
                self._states.pop(feature, None)
            else:
                self._states[feature] = state

    def state(self, feature: str) -> FeatureState:
        """Explicit state of ``feature``, ignoring the ``all`` fallback."""
        with self._lock:
            return self._states.get(feature, FeatureState.UNSET)

    def check(self, feature: str) -> bool:
        """Return True if ``feature`` is active."""
        with self._lock:
            state = self._states.get(feature, FeatureState.UNSET)
            if state is FeatureState.UNSET:
                state = self._states.get(ALL_FEATURES, FeatureState.UNSET)
        return state is FeatureState.ENABLED

    def is_unconfigured(self, feature: str) -> bool:
        """True when neither ``feature`` nor ``all`` has an explicit state."""
        with self._lock:
            return feature not in self._states and ALL_FEATURES not in self._states

    def notify_if_unconfigured(self, *features: str) -> None:
        """
        Schedule a single deferred notice listing unconfigured features.

        Repeated calls before the idle delay elapses restart the delay and
        are merged into one notice. Features already reported are skipped.
        Never blocks the caller.
        """
        with self._lock:
            if ALL_FEATURES in self._states:
                return
            candidates = [
                f for f in features if f not in self._acknowledged and f not in self._states
            ]
            if not candidates:
                return
            self._pending.update(candidates)
            if self._timer is not None:
                self._timer.cancel()
            timer = self._timer_factory(self.idle_delay, self._flush)
            if isinstance(timer, threading.Timer):
                timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel_pending(self) -> None:
        """Drop any scheduled notice without delivering it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending.clear()

    def _flush(self) -> None:
        with self._lock:
            self._timer = None
            features = sorted(
                f for f in self._pending
                if f not in self._acknowledged
                and f not in self._states
                and ALL_FEATURES not in self._states
            )
            self._pending.clear()
            self._acknowledged.update(features)
        if features:
            self.notifier(features)
