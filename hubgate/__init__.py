"""hubgate - offline-aware GitHub integration core for version-control UIs."""

__version__ = "0.1.0"

from hubgate.availability import AvailabilityGate, ProbeOutcome, ProbeStatus
from hubgate.cache import MISSING, MemoryCache
from hubgate.client import HubClient
from hubgate.config import GitConfigStore, Settings
from hubgate.debug import DebugSettings
from hubgate.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    HelperCommandError,
    HelperNotInitializedError,
    HelperNotInstalledError,
    HelperTimeoutError,
    HubGateError,
    IntegrityError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    ValidationError,
    build_error_report,
)
from hubgate.features import FeatureRegistry, FeatureState
from hubgate.helper import CommandRunner, InvocationMode
from hubgate.logging import configure_logging, get_logger
from hubgate.offline import CachePolicy, OfflineMode, OfflineModeState
from hubgate.remote import is_github_domain, parse_remote_url
from hubgate.resolver import RepositoryContextResolver
from hubgate.transport import HTTPTransport, RetryConfig
from hubgate.types.repos import RemoteKind, Repository, RepositoryIdentity

__all__ = [
    "__version__",
    # Main Client
    "HubClient",
    # Core
    "AvailabilityGate",
    "ProbeOutcome",
    "ProbeStatus",
    "OfflineModeState",
    "OfflineMode",
    "CachePolicy",
    "CommandRunner",
    "InvocationMode",
    "FeatureRegistry",
    "FeatureState",
    "RepositoryContextResolver",
    "parse_remote_url",
    "is_github_domain",
    # Types
    "RemoteKind",
    "Repository",
    "RepositoryIdentity",
    # Cache
    "MemoryCache",
    "MISSING",
    # Configuration
    "Settings",
    "GitConfigStore",
    "DebugSettings",
    # Exceptions
    "HubGateError",
    "ConfigurationError",
    "HelperNotInstalledError",
    "HelperNotInitializedError",
    "HelperTimeoutError",
    "HelperCommandError",
    "IntegrityError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitedError",
    "ValidationError",
    "ServerError",
    "build_error_report",
    # Transport
    "HTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
