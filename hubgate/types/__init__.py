"""hubgate type definitions."""

from hubgate.types.repos import RemoteKind, Repository, RepositoryIdentity

__all__ = [
    "RemoteKind",
    "Repository",
    "RepositoryIdentity",
]
