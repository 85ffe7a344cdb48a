"""Ledger export/import use cases: move a stock item's ledger as JSON."""

from typing import Any

from src.application.dto.requests import ImportLedgerRequest
from src.application.dto.responses import LedgerExportResponse, StockItemResponse
from src.config import get_logger
from src.core.entities.identifiers import StockId
from src.core.entities.inventory import StockItem
from src.core.exceptions import StockItemNotFoundError
from src.core.interfaces.workshop_store import IWorkshopStore
from src.core.services.ledger_export import export_ledger, import_ledger

logger = get_logger(__name__)


class ExportLedgerUseCase:
    """Snapshot one stock item's ledger."""

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
    ):
        self._workshop_store = workshop_store

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def execute(self, stock_id: str) -> dict[str, Any]:
        """Execute export use case."""
        store = await self._get_store()
        item = await store.get_stock_item(StockId(stock_id))
        if item is None:
            raise StockItemNotFoundError(stock_id)

        logger.info("ledger_exported", stock_id=item.id, batches=len(item.batches))
        return export_ledger(item)

    def to_response(self, ledger: dict[str, Any]) -> LedgerExportResponse:
        """Convert result to API response."""
        return LedgerExportResponse(stock_id=ledger["id"], ledger=ledger)


class ImportLedgerUseCase:
    """
    Import a ledger snapshot.

    Unknown items are created with their history. For an item that already
    exists, the batches, aggregates and descriptive fields are replaced and
    the stored history is kept.
    """

    def __init__(
        self,
        workshop_store: IWorkshopStore | None = None,
    ):
        self._workshop_store = workshop_store

    async def _get_store(self) -> IWorkshopStore:
        if self._workshop_store is None:
            from src.infrastructure.storage.sqlite import get_workshop_store

            self._workshop_store = await get_workshop_store()
        return self._workshop_store

    async def execute(self, request: ImportLedgerRequest) -> StockItem:
        """Execute import use case."""
        imported = import_ledger(request.ledger)
        store = await self._get_store()

        existing = await store.get_stock_item(imported.id)
        if existing is None:
            imported.version = 0
            # History rows get fresh ids in this store
            for record in imported.usage_history:
                record.id = None
            for writeoff in imported.writeoffs:
                writeoff.id = None
        else:
            imported.version = existing.version
            imported.usage_history = existing.usage_history
            imported.writeoffs = existing.writeoffs
            imported.created_at = existing.created_at

        saved = await store.save_stock_item(imported)

        logger.info(
            "ledger_imported",
            stock_id=saved.id,
            replaced=existing is not None,
            batches=len(saved.batches),
        )
        return saved

    def to_response(self, item: StockItem) -> StockItemResponse:
        """Convert result to API response."""
        return StockItemResponse.from_entity(item, include_history=True)
