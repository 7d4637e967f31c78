"""Cache key builders for consistent key formatting."""


class CacheKeys:
    """Cache key builders for consistent key formatting."""

    PREFIX = "tunebridge"

    @classmethod
    def resolution(cls, source_uri: str, search_prefix: str = "ytsearch") -> str:
        """Key for the resolved track of a catalog item.

        The search prefix is part of the key so that the same catalog item
        resolved against different search sources does not collide.
        """
        return f"{cls.PREFIX}:resolve:{search_prefix}:{source_uri}"
