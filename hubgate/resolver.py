"""
Repository context resolution.

Answers "is this working copy usable as a GitHub-backed repository, and which
repository is it?" by combining the host configuration, the remote-URL
parser, the availability gate, the offline mode and the cache.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from hubgate.cache import MISSING, CacheStore
from hubgate.exceptions import IntegrityError, RateLimitedError, ServerError
from hubgate.logging import get_logger
from hubgate.offline import CachePolicy, OfflineModeState
from hubgate.remote import is_github_domain, parse_remote_url
from hubgate.types.repos import Repository, RepositoryIdentity

if TYPE_CHECKING:
    from hubgate.availability import AvailabilityGate
    from hubgate.clients.repos import ReposClient
    from hubgate.config import ConfigStore

_logger = get_logger()

REPOSITORY_DATA_CLASS = "repository"


class RepositoryContextResolver:
    """
    Resolve the GitHub repository behind a local working copy.

    ``None`` results mean "not usable here" and are ordinary control flow:
    the integration is disabled, the remote is not a GitHub remote, or the
    repository is unknown (not found, or nothing cached while offline).
    """

    def __init__(
        self,
        config_store: "ConfigStore",
        offline_state: OfflineModeState,
        gate: "AvailabilityGate",
        cache: CacheStore,
        repos: "ReposClient",
        allowed_domains: Iterable[str] = (),
    ) -> None:
        self.config_store = config_store
        self.offline_state = offline_state
        self.gate = gate
        self.cache = cache
        self.repos = repos
        self.allowed_domains = tuple(allowed_domains)

    def identity(self, cwd: str | Path | None = None) -> RepositoryIdentity | None:
        """
        Parse the configured remote of ``cwd`` without any network access.

        Returns:
            RepositoryIdentity, or None if disabled, unparsable or not on an
            allowed GitHub host
        """
        if not self.config_store.enabled(cwd):
            _logger.debug("integration disabled for %s", cwd or ".")
            return None

        alias = self.config_store.remote_alias(cwd)
        identity = parse_remote_url(self.config_store.remote_url(alias, cwd))
        if identity is None:
            return None

        domains = [*self.allowed_domains, *self.config_store.domains(cwd)]
        if not is_github_domain(identity, domains):
            _logger.debug("%s is not a GitHub host", identity.domain)
            return None
        return identity

    def resolve(self, cwd: str | Path | None = None) -> Repository | None:
        """
        Resolve the repository record for ``cwd``.

        Offline, only the cache is consulted. Online, the availability gate
        is checked first; when the API is unavailable, or the lookup fails
        with a server error or rate limit, the cached record (if any) is
        used instead.

        Returns:
            Repository, or None when the working copy is not usable

        Raises:
            IntegrityError: If the cache holds something other than a repository
        """
        identity = self.identity(cwd)
        if identity is None:
            return None

        key = identity.cache_key(REPOSITORY_DATA_CLASS)

        if self.offline_state.is_offline():
            return self._cached(identity, key, self.offline_state.cache_policy())

        if not self.gate.is_available():
            return self._cached(identity, key, CachePolicy.CACHE_ONLY)

        return self._fetch(identity, key, self.offline_state.cache_policy())

    def refresh(self, cwd: str | Path | None = None) -> Repository | None:
        """Re-fetch the repository record, ignoring any cached copy when online."""
        identity = self.identity(cwd)
        if identity is None:
            return None
        key = identity.cache_key(REPOSITORY_DATA_CLASS)
        if self.offline_state.is_offline() or not self.gate.is_available():
            return self._cached(identity, key, CachePolicy.CACHE_ONLY)
        return self._fetch(identity, key, CachePolicy.BYPASS)

    def _fetch(
        self, identity: RepositoryIdentity, key: Any, policy: CachePolicy
    ) -> Repository | None:
        try:
            value = self.cache.get(key, lambda: self.repos.get(identity), policy)
        except (ServerError, RateLimitedError) as e:
            _logger.warning(
                "repository lookup for %s failed, using cached record: %s",
                identity.full_name,
                e,
            )
            return self._cached(identity, key, CachePolicy.CACHE_ONLY)
        return self._checked(identity, key, value)

    def _cached(
        self, identity: RepositoryIdentity, key: Any, policy: CachePolicy
    ) -> Repository | None:
        def offline_compute() -> Any:
            raise IntegrityError(
                "cache computed a value during a cache-only lookup",
                {"key": key, "policy": policy.value},
            )

        return self._checked(identity, key, self.cache.get(key, offline_compute, policy))

    def _checked(
        self, identity: RepositoryIdentity, key: Any, value: Any
    ) -> Repository | None:
        if value is MISSING or value is None:
            return None
        if not isinstance(value, Repository):
            raise IntegrityError(
                "cached repository record is malformed",
                {
                    "key": key,
                    "identity": identity.full_name,
                    "value_type": type(value).__name__,
                },
            )
        return value
