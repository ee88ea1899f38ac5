"""Debug mode: call tracing and dry-run stand-ins for network calls."""

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from hubgate.exceptions import ConfigurationError
from hubgate.logging import get_logger, mask_sensitive_data

T = TypeVar("T")

_logger = get_logger("debug")

_TRACED_LOGGERS = ("debug", "http", "helper")


@dataclass
class DebugSettings:
    """
    Debug-mode flags shared by the network and helper-command layers.

    ``enabled`` turns on per-call log lines and can be flipped at runtime:
    switching it on lowers the ``hubgate.debug``, ``hubgate.http`` and
    ``hubgate.helper`` loggers to DEBUG, switching it off returns them to
    their inherited level.

    ``dry_run`` replaces calls made through :meth:`wrap_network` with
    stand-ins; helper commands are never affected by it.
    """

    enabled: bool = False
    dry_run: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        previous = self.__dict__.get(name, False)
        super().__setattr__(name, value)
        if name == "enabled" and bool(value) != bool(previous):
            _trace(bool(value))

    @classmethod
    def parse(cls, value: str | None) -> "DebugSettings":
        """Parse ``HUBGATE_DEBUG``: empty/0 off, 1 on, ``dry-run`` on with dry run."""
        normalized = (value or "").strip().lower()
        if normalized in ("", "0", "false", "no", "off"):
            return cls()
        if normalized in ("1", "true", "yes", "on"):
            return cls(enabled=True)
        if normalized in ("dry-run", "dry_run", "dryrun"):
            return cls(enabled=True, dry_run=True)
        raise ConfigurationError(
            f"Invalid HUBGATE_DEBUG: {value}. Must be '0', '1' or 'dry-run'"
        )

    def wrap_network(
        self,
        fn: Callable[..., T],
        name: str,
        stand_in: Callable[[], Any] | None = None,
    ) -> Callable[..., T]:
        """
        Wrap a network-family call with debug tracing and dry-run support.

        Settings are read at call time, so toggling ``enabled`` or
        ``dry_run`` affects already-wrapped functions.

        Args:
            fn: The network call
            name: Label used in log lines
            stand_in: Produces the dry-run result (default: empty dict)

        Returns:
            Wrapped callable
        """

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            if self.enabled:
                _logger.debug(
                    "%s%s args=%s kwargs=%s",
                    "[dry-run] " if self.dry_run else "",
                    name,
                    mask_sensitive_data(repr(args)),
                    mask_sensitive_data(repr(kwargs)),
                )
            if self.dry_run:
                return stand_in() if stand_in is not None else {}  # type: ignore[return-value]
            return fn(*args, **kwargs)

        return wrapper


def _trace(enabled: bool) -> None:
    for name in _TRACED_LOGGERS:
        get_logger(name).setLevel(logging.DEBUG if enabled else logging.NOTSET)
