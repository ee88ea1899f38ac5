"""Repositories resource client."""

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from hubgate.exceptions import NotFoundError
from hubgate.logging import get_logger
from hubgate.remote import GITHUB_DOMAIN
from hubgate.types.repos import Repository, RepositoryIdentity

if TYPE_CHECKING:
    from hubgate.transport import HTTPTransport

_logger = get_logger()


def _parse_repository(data: dict[str, Any]) -> Repository:
    """Parse a repository object from the REST API."""
    owner = data.get("owner") or {}
    return Repository(
        full_name=data["full_name"],
        owner=owner.get("login", data["full_name"].split("/", 1)[0]),
        name=data["name"],
        private=bool(data.get("private", False)),
        fork=bool(data.get("fork", False)),
        default_branch=data.get("default_branch", "main"),
        html_url=data.get("html_url", ""),
        clone_url=data.get("clone_url", ""),
        ssh_url=data.get("ssh_url", ""),
        description=data.get("description"),
    )


class ReposClient:
    """
    Client for repository-related operations.

    Lookups are routed by the identity's host: github.com goes through the
    primary transport, other hosts through a transport built on first use
    by ``host_transport``. Without ``host_transport`` only github.com
    repositories can be looked up.
    """

    def __init__(
        self,
        transport: "HTTPTransport",
        host_transport: Callable[[str], "HTTPTransport"] | None = None,
    ) -> None:
        """
        Initialize the repos client.

        Args:
            transport: HTTP transport for github.com
            host_transport: Builds the transport for another host (optional)
        """
        self.transport = transport
        self.host_transport = host_transport
        self._hosts: dict[str, "HTTPTransport"] = {}
        self._lock = threading.Lock()

    def transport_for(self, domain: str) -> "HTTPTransport | None":
        """Transport serving ``domain``, or None if that host has no API configured."""
        domain = domain.strip().lower()
        if domain == GITHUB_DOMAIN:
            return self.transport
        if self.host_transport is None:
            return None
        with self._lock:
            if domain not in self._hosts:
                self._hosts[domain] = self.host_transport(domain)
            return self._hosts[domain]

    def get(self, identity: RepositoryIdentity) -> Repository | None:
        """
        Get repository information.

        Args:
            identity: Parsed repository identity

        Returns:
            Repository, or None if the API reports it does not exist
            (or is not visible with the current token), or if no API is
            configured for the identity's host

        Raises:
            HubGateError: On other API errors
        """
        transport = self.transport_for(identity.domain)
        if transport is None:
            _logger.warning("no API configured for %s", identity.domain)
            return None

        try:
            data = transport.get(f"/repos/{identity.owner}/{identity.name}")
        except NotFoundError:
            return None

        # dry-run stand-ins are empty
        if not data:
            return None
        return _parse_repository(data)

    def close(self) -> None:
        """Close the transports built for other hosts."""
        with self._lock:
            hosts, self._hosts = self._hosts, {}
        for transport in hosts.values():
            transport.close()
