"""
Remote URL parsing.

Turns the URL configured for a git remote into a :class:`RepositoryIdentity`.
Anything that is not a recognisable hosted-repository URL parses to ``None``;
that is the normal "not a GitHub remote" answer, not an error.
"""

import re
from collections.abc import Iterable
from typing import Any

from hubgate.types.repos import RemoteKind, RepositoryIdentity

GITHUB_DOMAIN = "github.com"

_SEGMENT = r"[A-Za-z0-9.-]+"

# user@domain:owner/name[.git]
_SCP_PATTERN = re.compile(
    rf"^(?P<user>[^@\s]+?)@(?P<domain>[^:/\s]+?):/?(?P<owner>{_SEGMENT})/(?P<name>{_SEGMENT}?)(?:\.git)?/?$"
)

# scheme://[user@]domain[:port]/owner/name[.git]
_URL_PATTERN = re.compile(
    rf"^(?P<scheme>https?|git|ssh)://(?:(?P<user>[^@/\s]+)@)?(?P<domain>[^:/\s]+)(?::\d+)?"
    rf"/(?P<owner>{_SEGMENT})/(?P<name>{_SEGMENT}?)(?:\.git)?/?$"
)


def parse_remote_url(url: Any) -> RepositoryIdentity | None:
    """
    Parse a remote URL into a repository identity.

    Recognises ``user@domain:owner/name[.git]`` first, then
    ``(http|https|git|ssh)://domain/owner/name[.git]``.

    Args:
        url: Remote URL; ``None`` and non-strings are accepted

    Returns:
        RepositoryIdentity, or None if the URL is not recognised
    """
    if not isinstance(url, str):
        return None
    url = url.strip()

    match = _SCP_PATTERN.match(url)
    if match:
        return _identity(match, RemoteKind.SSH, match.group("user"))

    match = _URL_PATTERN.match(url)
    if match:
        if match.group("scheme") == "ssh":
            return _identity(match, RemoteKind.SSH, match.group("user"))
        return _identity(match, RemoteKind.HTTP, None)

    return None


def _identity(
    match: re.Match[str], kind: RemoteKind, user: str | None
) -> RepositoryIdentity | None:
    name = match.group("name")
    # "owner/.git" would otherwise leave an empty name behind
    if not name or name in (".", ".."):
        return None
    return RepositoryIdentity(
        domain=match.group("domain"),
        owner=match.group("owner"),
        name=name,
        kind=kind,
        ssh_user=user,
    )


def is_github_domain(
    identity: RepositoryIdentity, allowed_domains: Iterable[str] = ()
) -> bool:
    """Return True if ``identity`` lives on github.com or an allowed host."""
    domain = identity.domain.lower()
    if domain == GITHUB_DOMAIN:
        return True
    return any(domain == allowed.strip().lower() for allowed in allowed_domains)
