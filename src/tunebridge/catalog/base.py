"""Catalog client contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from tunebridge.core.models import CatalogPage, Classification


class CatalogClient(ABC):
    """
    Source catalog the pipeline reads from.

    Implementations raise ``CatalogUnavailableError`` when the catalog
    cannot be reached, and ``InvalidReferenceError`` when a well-formed
    reference does not exist.
    """

    # Largest page the catalog serves in one call
    max_page_size: ClassVar[int] = 100

    @abstractmethod
    async def classify(self, reference: str) -> Classification:
        """
        Find out what a reference points to.

        Args:
            reference: A catalog URL or URI

        Returns:
            The classification; its ``type`` is "item", "collection" or the
            catalog's own name for anything else.
        """
        ...

    @abstractmethod
    async def get_page(
        self,
        collection_id: str,
        offset: int,
        limit: int,
    ) -> CatalogPage:
        """
        Fetch one page of a collection.

        Args:
            collection_id: ID from the collection's classification
            offset: Index of the first item
            limit: Maximum number of items, at most ``max_page_size``
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
