"""
hubgate main client.

Wires the transport, offline mode, availability gate, helper runner,
feature registry, cache and repository resolver from one Settings object.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from hubgate.availability import AvailabilityGate, decline
from hubgate.cache import CacheStore, MemoryCache
from hubgate.clients import ReposClient
from hubgate.config import ConfigStore, GitConfigStore, Settings
from hubgate.exceptions import ErrorReport, build_error_report
from hubgate.features import FeatureRegistry
from hubgate.helper import CommandRunner
from hubgate.offline import OfflineMode, OfflineModeState
from hubgate.resolver import RepositoryContextResolver
from hubgate.transport import HTTPTransport, RetryConfig, ServiceMetadataProbe, api_url_for
from hubgate.types.repos import Repository, RepositoryIdentity


class HubClient:
    """
    Main entry point for UI layers.

    Example:
        ```python
        from hubgate import HubClient

        with HubClient.from_env() as hub:
            repo = hub.resolve("/path/to/checkout")
            if repo is not None and hub.features.check("pull-request-checkout"):
                hub.runner.command("checkout", f"{repo.html_url}/pull/12")
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        confirm: Callable[[str], bool] = decline,
        config_store: ConfigStore | None = None,
        cache: CacheStore | None = None,
        retry_config: RetryConfig | None = None,
        transport: HTTPTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            settings: Settings (default: built-in defaults, not the environment)
            confirm: Asked whether to go offline after a failed probe
            config_store: Per-working-copy configuration (default: git config)
            cache: Cache collaborator (default: in-memory)
            retry_config: Retry behavior for API requests (optional)
            transport: Pre-built transport (optional, mainly for tests)
        """
        self.settings = settings or Settings()
        settings = self.settings

        self._transport = transport or HTTPTransport(
            base_url=settings.api_url,
            token=settings.token,
            retry_config=retry_config,
            debug=settings.debug,
        )

        self.offline = OfflineModeState(settings.offline_mode)
        self.gate = AvailabilityGate(
            ServiceMetadataProbe(self._transport),
            self.offline,
            throttle_interval=settings.throttle_interval,
            api_timeout=settings.api_timeout,
            confirm=confirm,
            debug=settings.debug,
        )
        self.runner = CommandRunner(
            executable=settings.helper,
            config_file=settings.helper_config,
            timeout=settings.helper_timeout,
            debug=settings.debug,
        )
        self.features = FeatureRegistry.from_spec(settings.features)
        self.cache = cache if cache is not None else MemoryCache()
        self._retry_config = retry_config
        self.repos = ReposClient(self._transport, host_transport=self._host_transport)
        self.resolver = RepositoryContextResolver(
            config_store if config_store is not None else GitConfigStore(),
            self.offline,
            self.gate,
            self.cache,
            self.repos,
            allowed_domains=settings.domains,
        )

    @classmethod
    def from_env(
        cls,
        confirm: Callable[[str], bool] = decline,
        retry_config: RetryConfig | None = None,
    ) -> "HubClient":
        """
        Create a client from environment variables (see :class:`Settings`).

        Raises:
            ConfigurationError: If an environment variable is invalid
        """
        return cls(Settings.from_env(), confirm=confirm, retry_config=retry_config)

    def _host_transport(self, domain: str) -> HTTPTransport:
        return HTTPTransport(
            base_url=api_url_for(domain),
            token=self.settings.enterprise_token,
            retry_config=self._retry_config,
            debug=self.settings.debug,
        )

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport (for advanced use cases)."""
        return self._transport

    def is_available(self, ignore_offline_override: bool = False) -> bool:
        return self.gate.is_available(ignore_offline_override)

    def go_offline(self) -> bool:
        return self.offline.go_offline()

    def go_online(self) -> bool:
        return self.offline.go_online()

    def toggle_offline(self) -> bool:
        return self.offline.toggle()

    @contextmanager
    def hard_refresh(self) -> Iterator[OfflineMode]:
        """Serve every cache read regardless of age for the duration of the block."""
        with self.offline.hard_refresh() as previous:
            yield previous

    def identity(self, cwd: str | Path | None = None) -> RepositoryIdentity | None:
        return self.resolver.identity(cwd)

    def resolve(self, cwd: str | Path | None = None) -> Repository | None:
        return self.resolver.resolve(cwd)

    def report(self, exc: BaseException, **context: Any) -> ErrorReport:
        """Build an issue report for an unexpected failure."""
        context.setdefault("offline_mode", self.offline.mode.value)
        return build_error_report(exc, context)

    def close(self) -> None:
        """Close the client and release resources."""
        self.features.cancel_pending()
        self.repos.close()
        self._transport.close()

    def __enter__(self) -> "HubClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()
