"""Caching layer with Redis."""

from .client import AsyncRedisClient, CacheStore
from .keys import CacheKeys

__all__ = [
    "AsyncRedisClient",
    "CacheKeys",
    "CacheStore",
]
