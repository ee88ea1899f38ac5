"""
Configuration.

:class:`Settings` holds process-wide options read from the environment;
:class:`GitConfigStore` reads per-working-copy options through ``git config``.
"""

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from hubgate.availability import DEFAULT_API_TIMEOUT, DEFAULT_THROTTLE_INTERVAL
from hubgate.debug import DebugSettings
from hubgate.exceptions import ConfigurationError
from hubgate.helper import DEFAULT_HELPER, DEFAULT_HELPER_CONFIG, DEFAULT_HELPER_TIMEOUT
from hubgate.offline import OfflineMode, parse_offline_mode
from hubgate.transport import DEFAULT_API_URL

DEFAULT_REMOTE = "origin"

_FALSE_VALUES = {"false", "no", "0", "off"}


@dataclass
class Settings:
    """
    hubgate settings.

    Environment variables:
        HUBGATE_API_URL: API base URL (default: https://api.github.com)
        HUBGATE_TOKEN / GITHUB_TOKEN: API token (optional)
        HUBGATE_ENTERPRISE_TOKEN: API token for allowed non-github.com hosts (optional)
        HUBGATE_API_TIMEOUT: Availability probe deadline in seconds (default: 1)
        HUBGATE_THROTTLE_INTERVAL: Seconds between probes (default: 10)
        HUBGATE_HELPER: Helper executable (default: hub)
        HUBGATE_HELPER_CONFIG: Helper configuration file (default: ~/.config/hub)
        HUBGATE_HELPER_TIMEOUT: Helper command timeout in seconds (default: 5)
        HUBGATE_CACHE_MODE: disabled, default or offline (default: default)
        HUBGATE_FEATURES: Comma-separated features, ``-name`` disables (optional)
        HUBGATE_DOMAINS: Comma-separated extra GitHub hosts (optional)
        HUBGATE_DEBUG: 0, 1 or dry-run (default: 0)
    """

    api_url: str = DEFAULT_API_URL
    token: str | None = None
    enterprise_token: str | None = None
    api_timeout: float = DEFAULT_API_TIMEOUT
    throttle_interval: float = DEFAULT_THROTTLE_INTERVAL
    helper: str = DEFAULT_HELPER
    helper_config: Path = field(default_factory=lambda: Path(DEFAULT_HELPER_CONFIG).expanduser())
    helper_timeout: float = DEFAULT_HELPER_TIMEOUT
    offline_mode: OfflineMode = OfflineMode.DEFAULT
    features: str | None = None
    domains: tuple[str, ...] = ()
    debug: DebugSettings = field(default_factory=DebugSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Create settings from environment variables.

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ
        domains = tuple(
            d.strip() for d in env.get("HUBGATE_DOMAINS", "").split(",") if d.strip()
        )
        return cls(
            api_url=env.get("HUBGATE_API_URL", DEFAULT_API_URL),
            token=env.get("HUBGATE_TOKEN") or env.get("GITHUB_TOKEN") or None,
            enterprise_token=env.get("HUBGATE_ENTERPRISE_TOKEN") or None,
            api_timeout=_positive_float("HUBGATE_API_TIMEOUT", DEFAULT_API_TIMEOUT),
            throttle_interval=_positive_float(
                "HUBGATE_THROTTLE_INTERVAL", DEFAULT_THROTTLE_INTERVAL
            ),
            helper=env.get("HUBGATE_HELPER", DEFAULT_HELPER),
            helper_config=Path(
                env.get("HUBGATE_HELPER_CONFIG", DEFAULT_HELPER_CONFIG)
            ).expanduser(),
            helper_timeout=_positive_float("HUBGATE_HELPER_TIMEOUT", DEFAULT_HELPER_TIMEOUT),
            offline_mode=parse_offline_mode(env.get("HUBGATE_CACHE_MODE")),
            features=env.get("HUBGATE_FEATURES"),
            domains=domains,
            debug=DebugSettings.parse(env.get("HUBGATE_DEBUG")),
        )


def _positive_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {raw}. Must be a number") from None
    if value <= 0:
        raise ConfigurationError(f"Invalid {name}: {raw}. Must be positive")
    return value


class ConfigStore(Protocol):
    """Per-working-copy configuration read by the repository resolver."""

    def enabled(self, cwd: str | Path | None = None) -> bool: ...

    def remote_alias(self, cwd: str | Path | None = None) -> str: ...

    def remote_url(self, alias: str, cwd: str | Path | None = None) -> str | None: ...

    def domains(self, cwd: str | Path | None = None) -> list[str]: ...


class GitConfigStore:
    """
    Reads hubgate options from ``git config`` of a working copy.

    Keys:
        hubgate.enabled: Integration switch (default: true)
        hubgate.remote: Remote to resolve (default: origin)
        hubgate.host: Additional GitHub host, may be repeated
    """

    def __init__(self, git: str = "git") -> None:
        self.git = git

    def get(self, key: str, cwd: str | Path | None = None) -> str | None:
        """Get a single value, or None if unset."""
        values = self._config(["--get", key], cwd)
        return values[-1] if values else None

    def get_all(self, key: str, cwd: str | Path | None = None) -> list[str]:
        return self._config(["--get-all", key], cwd)

    def enabled(self, cwd: str | Path | None = None) -> bool:
        value = self.get("hubgate.enabled", cwd)
        return value is None or value.strip().lower() not in _FALSE_VALUES

    def remote_alias(self, cwd: str | Path | None = None) -> str:
        return self.get("hubgate.remote", cwd) or DEFAULT_REMOTE

    def remote_url(self, alias: str, cwd: str | Path | None = None) -> str | None:
        return self.get(f"remote.{alias}.url", cwd)

    def domains(self, cwd: str | Path | None = None) -> list[str]:
        return self.get_all("hubgate.host", cwd)

    def _config(self, args: list[str], cwd: str | Path | None) -> list[str]:
        # git exits 1 for an unset key; outside a repository --get still
        # reads global config, so any failure is treated as "unset"
        try:
            result = subprocess.run(
                [self.git, "config", *args],
                cwd=cwd,
                capture_output=True,
                text=True,
            )
        except OSError:
            return []
        if result.returncode != 0:
            return []
        return [line for line in result.stdout.splitlines() if line]
