"""
Offline mode.

A single :class:`OfflineModeState` is shared by the availability gate and the
cache collaborator. It decides whether network lookups may happen at all and
which staleness policy the cache applies.
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum

from hubgate.exceptions import ConfigurationError
from hubgate.logging import get_logger

_logger = get_logger()


class OfflineMode(Enum):
    """Process-wide network/cache mode."""

    DISABLED = "disabled"  # cache bypassed for reads, still written
    DEFAULT = "default"  # cache used until entries expire
    FORCED_OFFLINE = "offline"  # cache only, never the network
    FORCED_OFFLINE_HARD_REFRESH = "hard-refresh"  # cache only, any age


class CachePolicy(Enum):
    """How the cache collaborator treats a lookup."""

    BYPASS = "bypass"
    EXPIRE = "expire"
    CACHE_ONLY = "cache-only"
    CACHE_ONLY_ANY_AGE = "cache-only-any-age"


_POLICIES = {
    OfflineMode.DISABLED: CachePolicy.BYPASS,
    OfflineMode.DEFAULT: CachePolicy.EXPIRE,
    OfflineMode.FORCED_OFFLINE: CachePolicy.CACHE_ONLY,
    OfflineMode.FORCED_OFFLINE_HARD_REFRESH: CachePolicy.CACHE_ONLY_ANY_AGE,
}

_OFFLINE_MODES = frozenset(
    {OfflineMode.FORCED_OFFLINE, OfflineMode.FORCED_OFFLINE_HARD_REFRESH}
)


def parse_offline_mode(value: str | None) -> OfflineMode:
    """Parse ``HUBGATE_CACHE_MODE`` (empty means ``default``)."""
    normalized = (value or "").strip().lower() or "default"
    # hard refresh is only ever entered through OfflineModeState.hard_refresh()
    modes = {
        "disabled": OfflineMode.DISABLED,
        "default": OfflineMode.DEFAULT,
        "offline": OfflineMode.FORCED_OFFLINE,
    }
    if normalized in modes:
        return modes[normalized]
    raise ConfigurationError(
        f"Invalid HUBGATE_CACHE_MODE: {value}. Must be 'disabled', 'default' or 'offline'"
    )


class OfflineModeState:
    """
    Holder for the current :class:`OfflineMode`.

    Transitions are idempotent and return whether the mode actually changed.
    Listeners registered with :meth:`subscribe` are called with
    ``(old, new)`` after each real change.

    Example:
        ```python
        state = OfflineModeState()
        state.go_offline()
        assert state.is_offline()

        with state.hard_refresh():
            ...  # every cache read is served regardless of age
        ```
    """

    def __init__(self, mode: OfflineMode = OfflineMode.DEFAULT) -> None:
        self._mode = mode
        self._lock = threading.RLock()
        self._listeners: list[Callable[[OfflineMode, OfflineMode], None]] = []

    @property
    def mode(self) -> OfflineMode:
        with self._lock:
            return self._mode

    def is_offline(self) -> bool:
        """True for both forced-offline variants."""
        return self.mode in _OFFLINE_MODES

    def cache_policy(self) -> CachePolicy:
        return _POLICIES[self.mode]

    def subscribe(self, listener: Callable[[OfflineMode, OfflineMode], None]) -> None:
        with self._lock:
            self._listeners.append(listener)

    def set_mode(self, mode: OfflineMode) -> bool:
        """
        Switch to ``mode``.

        Returns:
            True if the mode changed, False if it was already active
        """
        with self._lock:
            previous = self._mode
            if previous is mode:
                return False
            self._mode = mode
            listeners = list(self._listeners)

        _logger.info("offline mode: %s -> %s", previous.value, mode.value)
        for listener in listeners:
            listener(previous, mode)
        return True

    def go_offline(self) -> bool:
        with self._lock:
            if self.is_offline():
                return False
            return self.set_mode(OfflineMode.FORCED_OFFLINE)

    def go_online(self) -> bool:
        with self._lock:
            if not self.is_offline():
                return False
            return self.set_mode(OfflineMode.DEFAULT)

    def toggle(self) -> bool:
        """Flip between online and offline; returns the new ``is_offline()``."""
        with self._lock:
            if self.is_offline():
                self.go_online()
            else:
                self.go_offline()
            return self.is_offline()

    @contextmanager
    def hard_refresh(self) -> Iterator[OfflineMode]:
        """
        Hold ``FORCED_OFFLINE_HARD_REFRESH`` for the duration of the block.

        The previous mode is restored on every exit path, including
        exceptions raised inside the block.

        Yields:
            The mode that will be restored
        """
        with self._lock:
            previous = self._mode
            self.set_mode(OfflineMode.FORCED_OFFLINE_HARD_REFRESH)
        try:
            yield previous
        finally:
            self.set_mode(previous)
