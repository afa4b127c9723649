"""
Abstract adapter interfaces.
Defines the contracts the sync core calls through: the catalog source it
reads from and the CRM sink it writes to.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from catalog_sync.models.catalog import SourcePage, SourceRecord


class CatalogSource(ABC):
    """
    Paginated read access to the upstream product catalog.

    Implementations handle their own transport retries; any exception that
    escapes a page fetch is treated by the orchestrator as fatal for the run.
    """

    @abstractmethod
    async def fetch_by_id(self, record_id: str) -> Optional[SourceRecord]:
        """
        Fetches one product by its source identifier.

        Returns:
            The record, or None if the source has no such product
        """
        pass

    @abstractmethod
    async def fetch_by_key(self, key: str) -> Optional[SourceRecord]:
        """
        Fetches the product owning the variant with the given SKU.

        Returns:
            The record, or None if no variant carries that SKU
        """
        pass

    @abstractmethod
    async def fetch_page(self, cursor: Optional[str] = None) -> SourcePage:
        """
        Fetches one page of the full catalog.

        Args:
            cursor: Continuation cursor from the previous page (None for the first)

        Returns:
            SourcePage whose next_cursor is None on the last page
        """
        pass

    @abstractmethod
    async def fetch_page_by_date_range(
        self,
        start: datetime,
        end: datetime,
        cursor: Optional[str] = None,
    ) -> SourcePage:
        """
        Fetches one page of products created or modified within [start, end].

        Args:
            start: Inclusive lower bound (UTC)
            end: Inclusive upper bound (UTC)
            cursor: Continuation cursor from the previous page

        Returns:
            SourcePage whose next_cursor is None on the last page
        """
        pass

    async def close(self) -> None:
        """Releases transport resources."""
        return None


class CRMSink(ABC):
    """
    Write access to CRM product records.

    Errors are raised as-is; the orchestrator classifies them per record.
    """

    @abstractmethod
    async def find_by_key(self, sku: str) -> Optional[str]:
        """
        Searches for a CRM product by SKU, limited to one result.

        Returns:
            Destination identifier, or None if not found
        """
        pass

    @abstractmethod
    async def find_by_source_id(self, source_id: str) -> Optional[str]:
        """
        Searches for a CRM product by its source (catalog) identifier.

        Returns:
            Destination identifier, or None if not found
        """
        pass

    @abstractmethod
    async def create(self, properties: Dict[str, Any]) -> str:
        """Creates a CRM product and returns its identifier."""
        pass

    @abstractmethod
    async def update(self, destination_id: str, properties: Dict[str, Any]) -> None:
        """Updates an existing CRM product."""
        pass

    @abstractmethod
    async def archive(self, destination_id: str) -> None:
        """Archives (soft-deletes) a CRM product."""
        pass

    async def close(self) -> None:
        """Releases transport resources."""
        return None
