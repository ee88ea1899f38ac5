"""hubgate resource clients."""

from hubgate.clients.repos import ReposClient

__all__ = [
    "ReposClient",
]
