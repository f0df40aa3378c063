"""Cache module."""

from .ttl_cache import ITTLCache, TTLCache

__all__ = ["ITTLCache", "TTLCache"]
