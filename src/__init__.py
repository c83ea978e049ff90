"""smartcache: TTL-based read-through cache over a durable record store."""

from smartcache.version import __version__

__all__ = ["__version__"]
