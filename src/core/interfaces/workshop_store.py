"""Abstract interface for workshop persistence."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from src.core.entities.identifiers import AssetId, JobCardId, StockId
from src.core.entities.inventory import StockItem
from src.core.entities.job_card import JobCard


class IWorkshopStore(ABC):
    """
    Interface for stock item and job card persistence.

    Stock items and job cards carry a ``version``. Saving one succeeds only
    if the stored version still equals the loaded one (0 for an entity not
    yet stored); the saved copy comes back with the version incremented. A
    mismatch, including a card deleted since it was loaded, raises
    StaleReferenceError and writes nothing.
    """

    @abstractmethod
    async def load_stock_items(self) -> list[StockItem]:
        """Load all stock items with batches and history."""
        pass

    @abstractmethod
    async def get_stock_item(self, stock_id: StockId) -> StockItem | None:
        """Get stock item by ID."""
        pass

    @abstractmethod
    async def save_stock_item(self, item: StockItem) -> StockItem:
        """Insert or update a stock item (version checked)."""
        pass

    @abstractmethod
    async def load_job_cards(self) -> list[JobCard]:
        """Load all job cards, newest first."""
        pass

    @abstractmethod
    async def get_job_card(self, job_card_id: JobCardId) -> JobCard | None:
        """Get job card by ID."""
        pass

    @abstractmethod
    async def save_job_card(self, card: JobCard) -> JobCard:
        """Insert or update a job card (version checked)."""
        pass

    @abstractmethod
    async def delete_job_card(self, job_card_id: JobCardId) -> bool:
        """Delete a job card. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def commit_stock_items(self, stock_items: Sequence[StockItem]) -> list[StockItem]:
        """Atomically save several stock items; one stale item fails them all."""
        pass

    @abstractmethod
    async def commit_settlement(
        self, stock_items: Sequence[StockItem], card: JobCard
    ) -> tuple[list[StockItem], JobCard]:
        """Atomically save the settled stock items and the completed card."""
        pass

    @abstractmethod
    async def commit_job_card_deletion(
        self, card: JobCard, stock_items: Sequence[StockItem]
    ) -> list[StockItem]:
        """Atomically save restored stock items and delete the card (version checked)."""
        pass

    @abstractmethod
    async def get_asset_name(self, asset_id: AssetId) -> str | None:
        """Display name of an asset, if known."""
        pass

    @abstractmethod
    async def save_asset(self, asset_id: AssetId, name: str) -> None:
        """Register or rename an asset."""
        pass
