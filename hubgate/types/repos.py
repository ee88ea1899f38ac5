"""Repository-related data models."""

from dataclasses import dataclass, field
from enum import Enum


class RemoteKind(Enum):
    """Syntax a remote URL was written in."""

    SSH = "ssh"
    HTTP = "http"


@dataclass(frozen=True)
class RepositoryIdentity:
    """
    Canonical ``(domain, owner, name)`` identity parsed from a remote URL.

    ``kind`` and ``ssh_user`` describe how the URL was written and take no
    part in equality or hashing.
    """

    domain: str
    owner: str
    name: str
    kind: RemoteKind = field(default=RemoteKind.HTTP, compare=False)
    ssh_user: str | None = field(default=None, compare=False)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def ssh_url(self, user: str | None = None) -> str:
        """Render as ``user@domain:owner/name.git``."""
        return f"{user or self.ssh_user or 'git'}@{self.domain}:{self.full_name}.git"

    def https_url(self) -> str:
        return f"https://{self.domain}/{self.full_name}.git"

    def cache_key(self, data_class: str) -> tuple[str, str, str, str]:
        """Key for the cache collaborator, e.g. ``identity.cache_key("repository")``."""
        return (data_class, self.domain.lower(), self.owner.lower(), self.name.lower())


@dataclass
class Repository:
    """Repository record as returned by the API."""

    full_name: str
    owner: str
    name: str
    private: bool
    fork: bool
    default_branch: str
    html_url: str
    clone_url: str
    ssh_url: str
    description: str | None = None
